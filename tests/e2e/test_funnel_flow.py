from datetime import UTC, datetime, timedelta

import pytest

from recruitflow.core.tracker import FunnelTracker
from recruitflow.db.repositories import Repository
from recruitflow.db.seed import seed_demo_tenant
from recruitflow.db.session import SessionLocal
from recruitflow.errors import NotFoundError, ValidationError
from recruitflow.types import FormCompleteEvent, FormProgressEvent, FormStartEvent, FormSubmitEvent


def test_seeded_tenant_funnel_across_sources() -> None:
    with SessionLocal() as db:
        seeded = seed_demo_tenant(db)
        assert seed_demo_tenant(db) == seeded
        tracker = FunnelTracker(db)
        job_id = seeded["job_ids"][0]
        company_id = seeded["company_id"]

        visits = [
            ("v1", "linkedin", True, True),
            ("v2", "linkedin", True, False),
            ("v3", "linkedin", False, False),
            ("v4", "indeed", True, True),
            ("v5", None, False, False),
        ]
        for session_id, source, completes, submits in visits:
            tracker.record_start(FormStartEvent(job_id=job_id, session_id=session_id, source=source))
            if completes:
                tracker.record_completion(FormCompleteEvent(session_id=session_id))
            if submits:
                tracker.record_submission(FormSubmitEvent(session_id=session_id, candidate_id=7))

        summary = tracker.conversion_summary(company_id)
        assert summary.total_started == 5
        assert summary.total_completed == 3
        assert summary.total_converted == 2
        assert summary.completion_rate == 60
        assert summary.conversion_rate == 40
        assert 0 <= summary.conversion_rate <= 100

        rows = tracker.source_performance(company_id)
        assert [(row.source, row.total_started) for row in rows] == [
            ("linkedin", 3),
            ("indeed", 1),
            ("direct", 1),
        ]
        assert rows[0].completion_rate == 67
        assert rows[0].conversion_rate == 33
        assert rows[1].conversion_rate == 100


def test_completion_time_drives_average_duration() -> None:
    with SessionLocal() as db:
        seeded = seed_demo_tenant(db)
        tracker = FunnelTracker(db)
        record = tracker.record_start(FormStartEvent(job_id=seeded["job_ids"][0], session_id="timed"))
        started = record.start_time.replace(tzinfo=UTC) if record.start_time.tzinfo is None else record.start_time
        tracker.record_completion(
            FormCompleteEvent(session_id="timed", completion_time=started + timedelta(seconds=125))
        )

        summary = tracker.conversion_summary(seeded["company_id"])
        assert summary.avg_time_to_complete == 125


def test_repeated_completion_resets_fields_without_new_records() -> None:
    with SessionLocal() as db:
        seeded = seed_demo_tenant(db)
        tracker = FunnelTracker(db)
        tracker.record_start(FormStartEvent(job_id=seeded["job_ids"][0], session_id="again"))
        tracker.record_completion(FormCompleteEvent(session_id="again", fields_completed=["name"]))
        record = tracker.record_completion(FormCompleteEvent(session_id="again", fields_completed=["name", "cv"]))

        assert record.form_completed is True
        assert record.fields_completed_json == ["name", "cv"]
        assert Repository(db).count_form_analytics() == 1


def test_lifecycle_errors() -> None:
    with SessionLocal() as db:
        seeded = seed_demo_tenant(db)
        tracker = FunnelTracker(db)

        with pytest.raises(ValidationError):
            tracker.record_start(FormStartEvent(job_id=seeded["job_ids"][0], session_id=""))
        with pytest.raises(NotFoundError):
            tracker.record_start(FormStartEvent(job_id=10_000, session_id="s1"))
        with pytest.raises(NotFoundError):
            tracker.record_submission(FormSubmitEvent(session_id="never-started"))
        with pytest.raises(ValidationError):
            tracker.record_progress(FormProgressEvent(session_id="s1"))
        assert Repository(db).count_form_analytics() == 0


def test_job_view_trend_for_seeded_tenant() -> None:
    with SessionLocal() as db:
        seeded = seed_demo_tenant(db)
        repo = Repository(db)
        job_id = seeded["job_ids"][1]
        now = datetime(2026, 10, 19, tzinfo=UTC)
        for moment in (datetime(2026, 10, 2, tzinfo=UTC), datetime(2026, 9, 10, tzinfo=UTC), datetime(2026, 9, 11, tzinfo=UTC)):
            repo.create_job_view(job_id=job_id, company_id=seeded["company_id"], viewed_at=moment)

        trend = FunnelTracker(db).job_view_trend(seeded["company_id"], now=now)
        assert trend.total_views == 3
        assert trend.trend == "down"
        assert trend.percentage_change == -50.0
