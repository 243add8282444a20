"""
Tests for the idempotent summary generator.

Scenarios:
  - first generation calls the provider once and stores one row
  - a repeated request returns the stored row without calling the provider
  - confirmed regeneration updates the row in place
  - windows that have not elapsed, or have no records, are rejected first
  - provider failure writes nothing; store failure surfaces PersistenceFailed
  - concurrent requests for the same window converge to one row
  - store reads and writes run off the event loop thread
"""
import asyncio
import threading
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from lifelog.core.errors import (
    EmptyWindowError,
    ExternalCallFailedError,
    GenerationInProgressError,
    PersistenceFailedError,
    WindowNotElapsedError,
)
from lifelog.models.period_summary import PeriodSummary, SummaryKind
from lifelog.services import summary_generator
from lifelog.services.boundaries import month_window, week_window
from lifelog.services.records import SourceRecord, complete_task, create_task
from lifelog.services.summary_generator import (
    GenerationStatus,
    GenerationTracker,
    generate_for_window,
    generate_summary,
    get_summary,
)

TODAY = date(2025, 3, 10)
LAST_WEEK = week_window(date(2025, 3, 2))   # 2025-03-02 … 2025-03-08
RECORDS = [
    SourceRecord(id=1, day=date(2025, 3, 3), text="ship release"),
    SourceRecord(id=2, day=date(2025, 3, 5), text="write docs"),
]


def _rows(db, user_id, kind=SummaryKind.weekly_work):
    return (
        db.query(PeriodSummary)
        .filter(PeriodSummary.user_id == user_id, PeriodSummary.kind == kind.value)
        .all()
    )


def _generate(db, user_id, summarizer, window=LAST_WEEK, records=RECORDS, **kwargs):
    kwargs.setdefault("tracker", GenerationTracker())
    return asyncio.run(generate_summary(
        db, user_id, SummaryKind.weekly_work, window, records, summarizer, TODAY, **kwargs,
    ))


class TestGenerate:
    def test_first_generation_creates_one_row(self, db, user_id, summarizer):
        result = _generate(db, user_id, summarizer)
        assert result.status == GenerationStatus.CREATED
        assert len(summarizer.calls) == 1
        assert summarizer.calls[0][2] == [1, 2]
        rows = _rows(db, user_id)
        assert len(rows) == 1
        assert rows[0].period_start == date(2025, 3, 2)
        assert rows[0].period_end == date(2025, 3, 8)
        assert rows[0].source_count == 2
        assert result.summary.content == rows[0].content

    def test_existing_summary_returned_without_provider_call(self, db, user_id, summarizer):
        first = _generate(db, user_id, summarizer)
        second = _generate(db, user_id, summarizer)
        assert second.status == GenerationStatus.EXISTING
        assert second.summary.id == first.summary.id
        assert second.summary.content == first.summary.content
        assert len(summarizer.calls) == 1
        assert len(_rows(db, user_id)) == 1

    def test_confirmed_regeneration_updates_in_place(self, db, user_id, summarizer):
        first = _generate(db, user_id, summarizer)
        old_content = first.summary.content
        first_id = first.summary.id
        again = _generate(db, user_id, summarizer, confirm_regenerate=True)
        assert again.status == GenerationStatus.REGENERATED
        assert len(summarizer.calls) == 2
        rows = _rows(db, user_id)
        assert len(rows) == 1
        assert rows[0].id == first_id
        assert rows[0].content != old_content

    def test_confirm_without_existing_row_creates(self, db, user_id, summarizer):
        result = _generate(db, user_id, summarizer, confirm_regenerate=True)
        assert result.status == GenerationStatus.CREATED
        assert len(_rows(db, user_id)) == 1

    def test_kinds_are_independent(self, db, user_id, summarizer):
        _generate(db, user_id, summarizer)
        asyncio.run(generate_summary(
            db, user_id, SummaryKind.weekly_diary, LAST_WEEK, RECORDS, summarizer, TODAY,
            tracker=GenerationTracker(),
        ))
        assert len(summarizer.calls) == 2
        assert get_summary(db, user_id, SummaryKind.weekly_diary, LAST_WEEK) is not None


class TestRejections:
    def test_current_week_rejected(self, db, user_id, summarizer):
        with pytest.raises(WindowNotElapsedError):
            _generate(db, user_id, summarizer, window=week_window(TODAY))
        assert summarizer.calls == []
        assert _rows(db, user_id) == []

    def test_window_ending_today_rejected(self, db, user_id, summarizer):
        window = week_window(date(2025, 3, 8))
        with pytest.raises(WindowNotElapsedError):
            asyncio.run(generate_summary(
                db, user_id, SummaryKind.weekly_work, window, RECORDS, summarizer,
                date(2025, 3, 8), tracker=GenerationTracker(),
            ))
        assert summarizer.calls == []

    def test_current_month_rejected(self, db, user_id, summarizer):
        with pytest.raises(WindowNotElapsedError):
            asyncio.run(generate_summary(
                db, user_id, SummaryKind.monthly_work, month_window(2025, 3), RECORDS,
                summarizer, TODAY, tracker=GenerationTracker(),
            ))

    def test_empty_window_rejected(self, db, user_id, summarizer):
        with pytest.raises(EmptyWindowError):
            _generate(db, user_id, summarizer, records=[])
        assert summarizer.calls == []


class TestFailures:
    def test_provider_failure_writes_nothing(self, db, user_id, summarizer):
        summarizer.fail = True
        with pytest.raises(ExternalCallFailedError):
            _generate(db, user_id, summarizer)
        assert _rows(db, user_id) == []

    def test_unexpected_provider_error_is_wrapped(self, db, user_id):
        class Broken:
            async def summarize(self, kind, window_description, records):
                raise RuntimeError("socket closed")

        with pytest.raises(ExternalCallFailedError) as exc_info:
            _generate(db, user_id, Broken())
        assert "socket closed" in exc_info.value.message

    def test_store_failure_after_call(self, db, user_id, summarizer, monkeypatch):
        def broken_upsert(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("disk full"))

        monkeypatch.setattr(summary_generator, "upsert", broken_upsert)
        with pytest.raises(PersistenceFailedError) as exc_info:
            _generate(db, user_id, summarizer)
        assert exc_info.value.details["table"] == "period_summaries"
        assert len(summarizer.calls) == 1
        assert _rows(db, user_id) == []

    def test_retry_after_store_failure_converges(self, db, user_id, summarizer, monkeypatch):
        real_upsert = summary_generator.upsert
        calls = {"n": 0}

        def fail_once(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OperationalError("INSERT", {}, Exception("timeout"))
            return real_upsert(*args, **kwargs)

        monkeypatch.setattr(summary_generator, "upsert", fail_once)
        with pytest.raises(PersistenceFailedError):
            _generate(db, user_id, summarizer)
        result = _generate(db, user_id, summarizer)
        assert result.status == GenerationStatus.CREATED
        assert len(_rows(db, user_id)) == 1


class TestConcurrency:
    def test_same_window_in_process_is_rejected(self, db, user_id):
        tracker = GenerationTracker()
        started = asyncio.Event()
        release = asyncio.Event()

        class Slow:
            async def summarize(self, kind, window_description, records):
                started.set()
                await release.wait()
                return "slow summary"

        async def scenario():
            first = asyncio.create_task(generate_summary(
                db, user_id, SummaryKind.weekly_work, LAST_WEEK, RECORDS, Slow(), TODAY,
                tracker=tracker,
            ))
            await started.wait()
            assert tracker.is_generating(user_id, SummaryKind.weekly_work, LAST_WEEK)
            with pytest.raises(GenerationInProgressError):
                await generate_summary(
                    db, user_id, SummaryKind.weekly_work, LAST_WEEK, RECORDS, Slow(), TODAY,
                    tracker=tracker,
                )
            release.set()
            return await first

        result = asyncio.run(scenario())
        assert result.status == GenerationStatus.CREATED
        assert not tracker.is_generating(user_id, SummaryKind.weekly_work, LAST_WEEK)
        assert len(_rows(db, user_id)) == 1

    def test_other_window_not_blocked(self, user_id):
        tracker = GenerationTracker()
        other = week_window(date(2025, 2, 23))
        with tracker.track(user_id, SummaryKind.weekly_work, LAST_WEEK):
            assert not tracker.is_generating(user_id, SummaryKind.weekly_work, other)
            with tracker.track(user_id, SummaryKind.weekly_work, other):
                assert tracker.is_generating(user_id, SummaryKind.weekly_work, other)
            assert tracker.is_generating(user_id, SummaryKind.weekly_work, LAST_WEEK)

    def test_racing_writer_keeps_first_row(self, db, user_id, summarizer, monkeypatch):
        # Another process inserts between our read and our write.
        real_summarize = summarizer.summarize

        async def summarize_then_race(kind, window_description, records):
            content = await real_summarize(kind, window_description, records)
            db.add(PeriodSummary(
                user_id=user_id, kind=kind.value,
                period_start=LAST_WEEK.start, period_end=LAST_WEEK.end,
                content="written by the other process", source_count=2,
            ))
            db.commit()
            return content

        monkeypatch.setattr(summarizer, "summarize", summarize_then_race)
        result = _generate(db, user_id, summarizer)
        assert result.status == GenerationStatus.EXISTING
        assert result.summary.content == "written by the other process"
        assert len(_rows(db, user_id)) == 1


class TestGenerateForWindow:
    def test_loads_completed_tasks_of_the_window(self, db, user_id, summarizer):
        inside = create_task(db, user_id, "inside", day=date(2025, 3, 1))
        complete_task(db, user_id, inside.id, date(2025, 3, 4))
        outside = create_task(db, user_id, "outside", day=date(2025, 3, 4))
        complete_task(db, user_id, outside.id, date(2025, 3, 9))

        result = asyncio.run(generate_for_window(
            db, user_id, SummaryKind.weekly_work, LAST_WEEK, summarizer, TODAY,
            tracker=GenerationTracker(),
        ))
        assert result.summary.source_count == 1
        assert summarizer.calls[0][2] == [inside.id]


class TestStoreCallsOffLoop:
    def test_reads_and_writes_run_in_worker_threads(self, db, user_id, summarizer, monkeypatch):
        task = create_task(db, user_id, "ship", day=date(2025, 3, 3))
        complete_task(db, user_id, task.id, date(2025, 3, 4))
        seen = []

        def recording(fn):
            def wrapper(*args, **kwargs):
                seen.append((fn.__name__, threading.get_ident()))
                return fn(*args, **kwargs)
            return wrapper

        for name in ("get_summary", "_persist", "list_source_records"):
            monkeypatch.setattr(summary_generator, name, recording(getattr(summary_generator, name)))

        loop_thread = threading.get_ident()
        result = asyncio.run(generate_for_window(
            db, user_id, SummaryKind.weekly_work, LAST_WEEK, summarizer, TODAY,
            tracker=GenerationTracker(),
        ))
        assert result.status == GenerationStatus.CREATED
        assert {name for name, _ in seen} == {"get_summary", "_persist", "list_source_records"}
        assert all(ident != loop_thread for _, ident in seen)
