"""
Notification Orchestrator — per-session reminder prompt state.

State machine
-------------
  idle ──set_user()──▶ checking ──all kinds done──▶ ready
   ▲                       ▲                          │
   │                       └──── every interval ──────┘
   └──────────── logout() (clears every prompt, stops the timer)

A check evaluates every ReminderKind concurrently, each in a worker thread
with its own DB session, and sets each prompt to the latest evaluation: due
kinds open, kinds no longer due close. A kind whose evaluation raised
(ReminderCheckFailedError) keeps its previous state and never affects the
others.

A check tags itself with the session generation it started in; if the user
logs out or changes before it finishes, its results are discarded.

resolve(kind) closes the prompt immediately and writes the shown-record in
the background. A failed write is logged; the prompt stays closed.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from contextlib import suppress
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from sqlalchemy.orm import sessionmaker

from lifelog.core.clock import Clock, SystemClock
from lifelog.core.config import settings
from lifelog.core.errors import LifelogException, ReminderCheckFailedError
from lifelog.db.base import SessionLocal
from lifelog.models.reminder_shown import ReminderKind
from lifelog.services import reminder_gate

logger = logging.getLogger(__name__)

# Result of a kind whose evaluation raised.
_CHECK_FAILED = object()


class CheckState(str, enum.Enum):
    idle = "idle"
    checking = "checking"
    ready = "ready"


@dataclass
class PromptState:
    is_open: bool = False
    payload: Optional[dict[str, Any]] = None

    def open(self, payload: dict[str, Any]) -> None:
        self.is_open = True
        self.payload = payload

    def close(self) -> None:
        self.is_open = False
        self.payload = None


# ---------------------------------------------------------------------------
# One session
# ---------------------------------------------------------------------------

class NotificationCenter:
    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        clock: Optional[Clock] = None,
        interval_seconds: float = settings.REMINDER_CHECK_INTERVAL_SECONDS,
        kinds: tuple[ReminderKind, ...] = tuple(ReminderKind),
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.interval_seconds = interval_seconds
        self.kinds = kinds

        self.user_id: Optional[str] = None
        self.state = CheckState.idle
        self.prompts: dict[ReminderKind, PromptState] = {k: PromptState() for k in kinds}

        self._generation = 0
        self._resolved: set[tuple[ReminderKind, date]] = set()
        self._timer: Optional[asyncio.Task] = None
        self._pending: set[asyncio.Task] = set()

    # -- session -------------------------------------------------------------

    async def set_user(self, user_id: Optional[str]) -> None:
        if user_id is None:
            await self.logout()
            return
        if user_id == self.user_id:
            return
        self._generation += 1
        self.user_id = user_id
        self._reset_prompts()
        await self.check()

    async def logout(self) -> None:
        self._generation += 1
        self.user_id = None
        self._reset_prompts()
        self.state = CheckState.idle
        await self.stop()

    def _reset_prompts(self) -> None:
        for prompt in self.prompts.values():
            prompt.close()
        self._resolved.clear()

    # -- checks --------------------------------------------------------------

    def _evaluate_kind(self, user_id: str, kind: ReminderKind, today: date) -> Any:
        """Runs in a worker thread. Returns a ReminderPrompt, None, or _CHECK_FAILED."""
        db = None
        try:
            db = self.session_factory()
            return reminder_gate.evaluate(db, user_id, kind, today)
        except Exception as exc:
            failure = ReminderCheckFailedError(kind.value, exc)
            logger.warning("%s (user %s)", failure.message, user_id, exc_info=exc)
            return _CHECK_FAILED
        finally:
            if db is not None:
                db.close()

    async def check(self) -> None:
        user_id = self.user_id
        if user_id is None:
            return
        generation = self._generation
        today = self.clock.today()
        self.state = CheckState.checking

        results = await asyncio.gather(*(
            asyncio.to_thread(self._evaluate_kind, user_id, kind, today)
            for kind in self.kinds
        ))

        if generation != self._generation:
            logger.info("Discarding reminder check for %s: session changed", user_id)
            return

        for kind, prompt in zip(self.kinds, results):
            if prompt is _CHECK_FAILED:
                # Keep whatever the previous check decided for this kind.
                continue
            if prompt is None or (kind, today) in self._resolved:
                self.prompts[kind].close()
            else:
                self.prompts[kind].open(prompt.payload)
        self.state = CheckState.ready

    # -- periodic timer ------------------------------------------------------

    def start(self) -> None:
        if self._timer is None or self._timer.done():
            self._timer = asyncio.create_task(self._run_periodic())

    async def _run_periodic(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.check()
            except Exception:
                logger.exception("Periodic reminder check failed for user %s", self.user_id)

    async def stop(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            with suppress(asyncio.CancelledError):
                await timer
        if self._pending:
            await asyncio.gather(*self._pending)

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # -- resolution ----------------------------------------------------------

    def resolve(self, kind: ReminderKind) -> Optional[asyncio.Task]:
        """Close the prompt now; persist the shown-record in the background."""
        self.prompts[kind].close()
        if self.user_id is None:
            return None
        today = self.clock.today()
        self._resolved.add((kind, today))
        task = asyncio.create_task(self._persist_resolution(self.user_id, kind, today))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _write_shown(self, user_id: str, kind: ReminderKind, today: date) -> None:
        db = self.session_factory()
        try:
            reminder_gate.resolve(db, user_id, kind, today)
        finally:
            db.close()

    async def _persist_resolution(self, user_id: str, kind: ReminderKind, today: date) -> None:
        try:
            await asyncio.to_thread(self._write_shown, user_id, kind, today)
        except LifelogException as exc:
            logger.error("Resolving %s for user %s failed: %s", kind.value, user_id, exc.message)
        except Exception:
            logger.exception("Resolving %s for user %s failed", kind.value, user_id)

    # -- view ----------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "state": self.state.value,
            "prompts": [
                {"kind": kind.value, "is_open": p.is_open, "payload": p.payload}
                for kind, p in self.prompts.items()
            ],
        }


# ---------------------------------------------------------------------------
# All sessions of the process
# ---------------------------------------------------------------------------

class NotificationHub:
    """One NotificationCenter per active user."""

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        clock: Optional[Clock] = None,
        interval_seconds: float = settings.REMINDER_CHECK_INTERVAL_SECONDS,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock
        self.interval_seconds = interval_seconds
        self._centers: dict[str, NotificationCenter] = {}

    def get(self, user_id: str) -> Optional[NotificationCenter]:
        return self._centers.get(user_id)

    async def open_session(self, user_id: str) -> NotificationCenter:
        center = self._centers.get(user_id)
        if center is None:
            center = NotificationCenter(
                session_factory=self.session_factory,
                clock=self.clock,
                interval_seconds=self.interval_seconds,
            )
            self._centers[user_id] = center
        await center.set_user(user_id)
        center.start()
        return center

    async def close_session(self, user_id: str) -> None:
        center = self._centers.pop(user_id, None)
        if center is not None:
            await center.logout()

    async def shutdown(self) -> None:
        for user_id in list(self._centers):
            await self.close_session(user_id)
        logger.info("Notification hub stopped")


notification_hub = NotificationHub()


def get_notification_hub() -> NotificationHub:
    """FastAPI dependency. Overridden in tests."""
    return notification_hub
