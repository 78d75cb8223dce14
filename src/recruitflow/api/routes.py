from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from recruitflow.api.deps import TenantContext, get_date_range, get_db, get_tenant_context
from recruitflow.api.schemas import (
    FormAnalyticsResponse,
    FormEventResponse,
    FormStartResponse,
    JobViewCreatedResponse,
    JobViewResponse,
)
from recruitflow.core.tracker import FunnelTracker
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

router = APIRouter(prefix="/api", tags=["analytics"])


@router.get("/analytics/job/{job_id}/forms", response_model=list[FormAnalyticsResponse])
def get_job_form_analytics(
    job_id: int,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> list[FormAnalyticsResponse]:
    rows = FunnelTracker(db).job_form_analytics(context.tenant_id, job_id)
    return [FormAnalyticsResponse.from_record(row) for row in rows]


@router.get("/analytics/conversions", response_model=ConversionSummary)
def get_conversions(
    date_range: DateRange = Depends(get_date_range),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> ConversionSummary:
    return FunnelTracker(db).conversion_summary(context.tenant_id, date_range)


@router.post("/analytics/forms/start", response_model=FormStartResponse)
def track_form_start(payload: FormStartEvent, db: Session = Depends(get_db)) -> FormStartResponse:
    record = FunnelTracker(db).record_start(payload)
    return FormStartResponse(session_id=record.session_id, tracking_id=record.id)


@router.post("/analytics/forms/progress", response_model=FormEventResponse)
def track_form_progress(payload: FormProgressEvent, db: Session = Depends(get_db)) -> FormEventResponse:
    record = FunnelTracker(db).record_progress(payload)
    return FormEventResponse(analytics=FormAnalyticsResponse.from_record(record))


@router.post("/analytics/forms/complete", response_model=FormEventResponse)
def track_form_completion(payload: FormCompleteEvent, db: Session = Depends(get_db)) -> FormEventResponse:
    record = FunnelTracker(db).record_completion(payload)
    return FormEventResponse(analytics=FormAnalyticsResponse.from_record(record))


@router.post("/analytics/forms/submit", response_model=FormEventResponse)
def track_form_submission(payload: FormSubmitEvent, db: Session = Depends(get_db)) -> FormEventResponse:
    record = FunnelTracker(db).record_submission(payload)
    return FormEventResponse(analytics=FormAnalyticsResponse.from_record(record))


@router.get("/analytics/sources", response_model=list[SourcePerformance])
def get_source_performance(
    date_range: DateRange = Depends(get_date_range),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> list[SourcePerformance]:
    return FunnelTracker(db).source_performance(context.tenant_id, date_range)


@router.get("/analytics/devices", response_model=DeviceBreakdown)
def get_device_breakdown(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> DeviceBreakdown:
    return FunnelTracker(db).device_breakdown(context.tenant_id)


@router.get("/analytics/abandonment", response_model=list[AbandonmentStep])
def get_abandonment(
    date_range: DateRange = Depends(get_date_range),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> list[AbandonmentStep]:
    return FunnelTracker(db).abandonment(context.tenant_id, date_range)


@router.post("/job-views", response_model=JobViewCreatedResponse)
def track_job_view(payload: JobViewEvent, db: Session = Depends(get_db)) -> JobViewCreatedResponse:
    view = FunnelTracker(db).record_job_view(payload)
    return JobViewCreatedResponse(view_id=view.id)


@router.get("/job-views/analytics/company", response_model=JobViewTrend)
def get_job_view_trend(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> JobViewTrend:
    return FunnelTracker(db).job_view_trend(context.tenant_id)


@router.get("/job-views/count/company", response_model=list[JobViewCount])
def get_job_view_counts(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> list[JobViewCount]:
    return FunnelTracker(db).job_view_counts(context.tenant_id)


@router.get("/job-views/total/company", response_model=JobViewTotal)
def get_total_job_views(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> JobViewTotal:
    return FunnelTracker(db).total_job_views(context.tenant_id)


@router.get("/job-views/{job_id}", response_model=list[JobViewResponse])
def get_job_views(
    job_id: int,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> list[JobViewResponse]:
    rows = FunnelTracker(db).job_views(context.tenant_id, job_id)
    return [JobViewResponse.from_record(row) for row in rows]
