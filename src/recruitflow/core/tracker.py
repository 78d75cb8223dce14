from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from recruitflow.config import Settings, get_settings
from recruitflow.core.classification import classify_browser, classify_device
from recruitflow.core.funnel import (
    aggregate_devices,
    aggregate_sources,
    analyze_abandonment,
    filter_by_date_range,
    summarize_conversions,
)
from recruitflow.core.job_views import summarize_job_views
from recruitflow.db.models import ApplicationFormAnalytics, Job, JobView
from recruitflow.db.repositories import Repository
from recruitflow.errors import InternalError, NotFoundError, ValidationError
from recruitflow.types import (
    AbandonmentStep,
    ConversionSummary,
    DateRange,
    DeviceBreakdown,
    FormCompleteEvent,
    FormProgressEvent,
    FormStartEvent,
    FormSubmitEvent,
    JobViewCount,
    JobViewEvent,
    JobViewTotal,
    JobViewTrend,
    SourcePerformance,
)

logger = logging.getLogger(__name__)


class FunnelTracker:
    """Records application-form funnel events and answers tenant-scoped queries.

    Lifecycle calls come from anonymous applicants and are keyed by the
    client-generated session id. Query calls take the tenant id resolved by
    the caller's authenticated context and never see other tenants' rows.
    Storage failures are rolled back, logged and re-raised as ``InternalError``.
    """

    def __init__(self, session: Session, settings: Settings | None = None):
        self.session = session
        self.repo = Repository(session)
        self.settings = settings or get_settings()

    @contextmanager
    def _storage_guard(self, failure: str, **context: object) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            details = " ".join(f"{key}={value}" for key, value in context.items())
            logger.exception("%s %s", failure, details)
            raise InternalError(failure) from exc

    def _require_session(self, session_id: str | None) -> ApplicationFormAnalytics:
        if not session_id:
            raise ValidationError("Session ID is required")
        record = self.repo.get_form_analytics_by_session(session_id)
        if record is None:
            raise NotFoundError("Form session not found")
        return record

    def _tenant_job(self, tenant_id: int, job_id: int) -> Job:
        job = self.repo.get_job(job_id)
        # another tenant's job looks exactly like a missing one
        if job is None or job.company_id != tenant_id:
            raise NotFoundError("Job not found")
        return job

    def record_start(self, event: FormStartEvent) -> ApplicationFormAnalytics:
        if not event.job_id or not event.session_id:
            raise ValidationError("Job ID and session ID are required")

        with self._storage_guard("Failed to track form start", job_id=event.job_id, session_id=event.session_id):
            job = self.repo.get_job(event.job_id)
            if job is None:
                raise NotFoundError("Job not found")

            existing = self.repo.get_form_analytics_by_session(event.session_id)
            if existing is not None:
                return self._reuse_started(existing, job)

            try:
                record = self.repo.create_form_analytics(
                    company_id=job.company_id,
                    job_id=job.id,
                    session_id=event.session_id,
                    form_started=True,
                    start_time=datetime.now(UTC),
                    source=event.source or self.settings.default_traffic_source,
                    user_agent=event.user_agent,
                    ip_address=event.ip_address,
                    referrer=event.referrer,
                    device_type=classify_device(event.user_agent),
                    browser_name=classify_browser(event.user_agent),
                    total_steps=self.settings.analytics_default_total_steps,
                )
            except IntegrityError:
                # a concurrent start for the same session won the insert
                self.session.rollback()
                existing = self.repo.get_form_analytics_by_session(event.session_id)
                if existing is None:
                    raise
                return self._reuse_started(existing, job)

        logger.info(
            "Form started session_id=%s job_id=%s company_id=%s source=%s",
            record.session_id,
            record.job_id,
            record.company_id,
            record.source,
        )
        return record

    def _reuse_started(self, existing: ApplicationFormAnalytics, job: Job) -> ApplicationFormAnalytics:
        if existing.job_id != job.id:
            raise ValidationError("Session ID is already tracking another job")
        logger.info("Repeated form start session_id=%s job_id=%s", existing.session_id, job.id)
        return existing

    def record_progress(self, event: FormProgressEvent) -> ApplicationFormAnalytics:
        if not event.session_id:
            raise ValidationError("Session ID is required")
        if event.step_reached is None:
            raise ValidationError("Step reached is required")

        with self._storage_guard("Failed to track form progress", session_id=event.session_id):
            record = self._require_session(event.session_id)
            values: dict[str, object] = {"step_reached": max(record.step_reached, event.step_reached)}
            if event.total_steps is not None:
                values["total_steps"] = event.total_steps
            return self.repo.update_form_analytics(record, values)

    def record_completion(self, event: FormCompleteEvent) -> ApplicationFormAnalytics:
        with self._storage_guard("Failed to track form completion", session_id=event.session_id):
            record = self._require_session(event.session_id)
            record = self.repo.update_form_analytics(
                record,
                {
                    "form_completed": True,
                    "completion_time": event.completion_time or datetime.now(UTC),
                    "fields_completed_json": event.fields_completed,
                },
            )
        logger.info("Form completed session_id=%s job_id=%s", record.session_id, record.job_id)
        return record

    def record_submission(self, event: FormSubmitEvent) -> ApplicationFormAnalytics:
        with self._storage_guard("Failed to track form submission", session_id=event.session_id):
            record = self._require_session(event.session_id)
            values: dict[str, object] = {"submitted": True, "submission_time": datetime.now(UTC)}
            if event.candidate_id is not None:
                values["candidate_id"] = event.candidate_id
            record = self.repo.update_form_analytics(record, values)
        logger.info(
            "Form submitted session_id=%s job_id=%s candidate_id=%s",
            record.session_id,
            record.job_id,
            record.candidate_id,
        )
        return record

    def _tenant_records(self, tenant_id: int, date_range: DateRange | None = None) -> list[ApplicationFormAnalytics]:
        records = self.repo.list_form_analytics_by_company(tenant_id)
        return filter_by_date_range(records, date_range)

    def conversion_summary(self, tenant_id: int, date_range: DateRange | None = None) -> ConversionSummary:
        with self._storage_guard("Failed to fetch conversion analytics", tenant_id=tenant_id):
            records = self._tenant_records(tenant_id, date_range)
        return summarize_conversions(records)

    def source_performance(self, tenant_id: int, date_range: DateRange | None = None) -> list[SourcePerformance]:
        with self._storage_guard("Failed to fetch source analytics", tenant_id=tenant_id):
            records = self._tenant_records(tenant_id, date_range)
        return aggregate_sources(records)

    def device_breakdown(self, tenant_id: int) -> DeviceBreakdown:
        with self._storage_guard("Failed to fetch device analytics", tenant_id=tenant_id):
            records = self._tenant_records(tenant_id)
        return aggregate_devices(records)

    def abandonment(self, tenant_id: int, date_range: DateRange | None = None) -> list[AbandonmentStep]:
        with self._storage_guard("Failed to fetch abandonment analytics", tenant_id=tenant_id):
            records = self._tenant_records(tenant_id, date_range)
        return analyze_abandonment(records)

    def job_form_analytics(self, tenant_id: int, job_id: int) -> list[ApplicationFormAnalytics]:
        with self._storage_guard("Failed to fetch form analytics", tenant_id=tenant_id, job_id=job_id):
            self._tenant_job(tenant_id, job_id)
            return self.repo.list_form_analytics_by_job(job_id)

    def record_job_view(self, event: JobViewEvent) -> JobView:
        if not event.job_id:
            raise ValidationError("Job ID is required")

        with self._storage_guard("Failed to track job view", job_id=event.job_id):
            job = self.repo.get_job(event.job_id)
            if job is None:
                raise NotFoundError("Job not found")
            return self.repo.create_job_view(
                job_id=job.id,
                company_id=job.company_id,
                ip_address=event.ip_address,
                user_agent=event.user_agent,
                referrer=event.referrer,
            )

    def job_views(self, tenant_id: int, job_id: int) -> list[JobView]:
        with self._storage_guard("Failed to fetch job views", tenant_id=tenant_id, job_id=job_id):
            self._tenant_job(tenant_id, job_id)
            return self.repo.list_job_views_by_job(job_id)

    def job_view_trend(self, tenant_id: int, now: datetime | None = None) -> JobViewTrend:
        with self._storage_guard("Failed to fetch job views analytics", tenant_id=tenant_id):
            viewed_at = self.repo.list_job_view_times_by_company(tenant_id)
        return summarize_job_views(viewed_at, now or datetime.now(UTC))

    def job_view_counts(self, tenant_id: int) -> list[JobViewCount]:
        """Views per tenant job, jobs nobody viewed included with zero."""
        with self._storage_guard("Failed to fetch job view counts", tenant_id=tenant_id):
            jobs = self.repo.list_jobs_by_company(tenant_id)
            counts = self.repo.count_job_views_by_company(tenant_id)
        return [JobViewCount(job_id=job.id, count=counts.get(job.id, 0)) for job in jobs]

    def total_job_views(self, tenant_id: int) -> JobViewTotal:
        with self._storage_guard("Failed to fetch total job views", tenant_id=tenant_id):
            counts = self.repo.count_job_views_by_company(tenant_id)
        return JobViewTotal(count=sum(counts.values()))
