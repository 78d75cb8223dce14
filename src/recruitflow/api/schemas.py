from __future__ import annotations

from datetime import datetime

from recruitflow.db.models import ApplicationFormAnalytics, JobView
from recruitflow.types import CamelModel, as_utc


def _utc(value: datetime | None) -> datetime | None:
    return as_utc(value) if value is not None else None


class FormStartResponse(CamelModel):
    success: bool = True
    session_id: str
    tracking_id: int


class FormAnalyticsResponse(CamelModel):
    id: int
    company_id: int
    job_id: int
    session_id: str
    form_started: bool
    form_completed: bool
    submitted: bool
    start_time: datetime | None = None
    completion_time: datetime | None = None
    submission_time: datetime | None = None
    source: str
    user_agent: str | None = None
    ip_address: str | None = None
    referrer: str | None = None
    device_type: str
    browser_name: str
    step_reached: int
    total_steps: int
    fields_completed: list[str] | None = None
    candidate_id: int | None = None

    @classmethod
    def from_record(cls, record: ApplicationFormAnalytics) -> FormAnalyticsResponse:
        return cls(
            id=record.id,
            company_id=record.company_id,
            job_id=record.job_id,
            session_id=record.session_id,
            form_started=record.form_started,
            form_completed=record.form_completed,
            submitted=record.submitted,
            start_time=_utc(record.start_time),
            completion_time=_utc(record.completion_time),
            submission_time=_utc(record.submission_time),
            source=record.source,
            user_agent=record.user_agent,
            ip_address=record.ip_address,
            referrer=record.referrer,
            device_type=record.device_type,
            browser_name=record.browser_name,
            step_reached=record.step_reached,
            total_steps=record.total_steps,
            fields_completed=record.fields_completed_json,
            candidate_id=record.candidate_id,
        )


class FormEventResponse(CamelModel):
    success: bool = True
    analytics: FormAnalyticsResponse


class JobViewCreatedResponse(CamelModel):
    success: bool = True
    view_id: int


class JobViewResponse(CamelModel):
    id: int
    job_id: int
    company_id: int
    ip_address: str | None = None
    user_agent: str | None = None
    referrer: str | None = None
    viewed_at: datetime

    @classmethod
    def from_record(cls, view: JobView) -> JobViewResponse:
        return cls(
            id=view.id,
            job_id=view.job_id,
            company_id=view.company_id,
            ip_address=view.ip_address,
            user_agent=view.user_agent,
            referrer=view.referrer,
            viewed_at=as_utc(view.viewed_at),
        )
