"""
Notifications router — reminder prompts of the caller's session.

POST   /notifications/session          — start the session (first check + timer)
DELETE /notifications/session          — logout: clear prompts, stop the timer
GET    /notifications                  — current prompt state
POST   /notifications/check            — run a check now
POST   /notifications/{kind}/resolve   — close a prompt; recorded as shown today
GET    /notifications/preferences      — which kinds are enabled
PUT    /notifications/preferences      — update them
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lifelog.core.deps import get_current_user_id
from lifelog.db.base import get_db
from lifelog.models.reminder_shown import ReminderKind
from lifelog.schemas.notifications import NotificationStateResponse, PreferencesBody
from lifelog.services.notifications import (
    NotificationCenter,
    NotificationHub,
    get_notification_hub,
)
from lifelog.services.preferences import Preferences, get_preferences, save_preferences

router = APIRouter(prefix="/notifications", tags=["notifications"])


async def _center(user_id: str, hub: NotificationHub) -> NotificationCenter:
    return hub.get(user_id) or await hub.open_session(user_id)


@router.post("/session", response_model=NotificationStateResponse, summary="Start a session")
async def open_session(
    user_id: str = Depends(get_current_user_id),
    hub: NotificationHub = Depends(get_notification_hub),
):
    center = await hub.open_session(user_id)
    return center.snapshot()


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT, summary="End a session")
async def close_session(
    user_id: str = Depends(get_current_user_id),
    hub: NotificationHub = Depends(get_notification_hub),
):
    await hub.close_session(user_id)


@router.get("", response_model=NotificationStateResponse, summary="Current prompts")
async def read_prompts(
    user_id: str = Depends(get_current_user_id),
    hub: NotificationHub = Depends(get_notification_hub),
):
    """Starts a session implicitly when none is active."""
    center = await _center(user_id, hub)
    return center.snapshot()


@router.post("/check", response_model=NotificationStateResponse, summary="Re-check now")
async def run_check(
    user_id: str = Depends(get_current_user_id),
    hub: NotificationHub = Depends(get_notification_hub),
):
    center = hub.get(user_id)
    if center is None:
        center = await hub.open_session(user_id)
    else:
        await center.check()
    return center.snapshot()


@router.post(
    "/{kind}/resolve",
    response_model=NotificationStateResponse,
    summary="Resolve a prompt",
)
async def resolve_prompt(
    kind: ReminderKind,
    user_id: str = Depends(get_current_user_id),
    hub: NotificationHub = Depends(get_notification_hub),
):
    """
    Closes the prompt immediately. The shown-record is written in the
    background, so the prompt will not reappear today even if that write fails.
    """
    center = await _center(user_id, hub)
    center.resolve(kind)
    return center.snapshot()


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

@router.get("/preferences", response_model=PreferencesBody, summary="Notification preferences")
def read_preferences(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return PreferencesBody(**vars(get_preferences(db, user_id)))


@router.put("/preferences", response_model=PreferencesBody, summary="Update preferences")
def update_preferences(
    payload: PreferencesBody,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    prefs = save_preferences(db, user_id, Preferences(**payload.model_dump()))
    return PreferencesBody(**vars(prefs))
