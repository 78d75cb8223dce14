from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DeviceType = Literal["mobile", "tablet", "desktop", "unknown"]
BrowserName = Literal["chrome", "firefox", "safari", "edge", "opera", "other", "unknown"]
Trend = Literal["up", "down", "same"]


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC so comparisons work."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FormStartEvent(CamelModel):
    job_id: int | None = None
    session_id: str | None = None
    source: str | None = None
    user_agent: str | None = None
    ip_address: str | None = None
    referrer: str | None = None


class FormProgressEvent(CamelModel):
    session_id: str | None = None
    step_reached: int | None = Field(default=None, ge=1)
    total_steps: int | None = Field(default=None, ge=1)


class FormCompleteEvent(CamelModel):
    session_id: str | None = None
    completion_time: datetime | None = None
    fields_completed: list[str] | None = None

    @field_validator("completion_time")
    @classmethod
    def normalize_completion_time(cls, value: datetime | None) -> datetime | None:
        # naive input is taken as UTC; offsets are converted before storage drops them
        return as_utc(value) if value is not None else None


class FormSubmitEvent(CamelModel):
    session_id: str | None = None
    candidate_id: int | None = None


class JobViewEvent(CamelModel):
    job_id: int | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    referrer: str | None = None


class DateRange(BaseModel):
    start_date: datetime | None = None
    end_date: datetime | None = None

    @model_validator(mode="after")
    def validate_order(self) -> DateRange:
        if self.start_date and self.end_date and as_utc(self.start_date) > as_utc(self.end_date):
            raise ValueError("startDate must not be after endDate")
        return self

    @property
    def is_open(self) -> bool:
        return self.start_date is None and self.end_date is None

    def contains(self, moment: datetime | None) -> bool:
        if self.is_open:
            return True
        if moment is None:
            return False
        moment = as_utc(moment)
        if self.start_date and moment < as_utc(self.start_date):
            return False
        if self.end_date and moment > as_utc(self.end_date):
            return False
        return True


class ConversionSummary(CamelModel):
    total_started: int = 0
    total_completed: int = 0
    total_converted: int = 0
    conversion_rate: int = 0
    completion_rate: int = 0
    avg_time_to_complete: int = 0


class SourcePerformance(CamelModel):
    source: str
    total_started: int = 0
    total_completed: int = 0
    total_submitted: int = 0
    completion_rate: int = 0
    conversion_rate: int = 0


class DeviceShare(CamelModel):
    device: str
    count: int
    percentage: int


class BrowserShare(CamelModel):
    browser: str
    count: int
    percentage: int


class DeviceBreakdown(CamelModel):
    devices: list[DeviceShare] = Field(default_factory=list)
    browsers: list[BrowserShare] = Field(default_factory=list)


class AbandonmentStep(CamelModel):
    step: int
    count: int
    percentage: int


class JobViewTrend(CamelModel):
    total_views: int = 0
    current_month_views: int = 0
    last_month_views: int = 0
    percentage_change: float = 0.0
    trend: Trend = "same"


class JobViewCount(CamelModel):
    job_id: int
    count: int = 0


class JobViewTotal(CamelModel):
    count: int = 0
