"""Pure aggregations over a fetched set of form analytics records.

Nothing here touches the database: callers fetch the tenant's rows and pass
them in, so every request rebuilds its tallies from persisted state.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from recruitflow.types import (
    AbandonmentStep,
    BrowserShare,
    ConversionSummary,
    DateRange,
    DeviceBreakdown,
    DeviceShare,
    SourcePerformance,
    as_utc,
)

DEFAULT_SOURCE = "direct"


class FunnelRecord(Protocol):
    source: str | None
    device_type: str | None
    browser_name: str | None
    form_completed: bool
    submitted: bool
    step_reached: int
    start_time: Any
    completion_time: Any


def percentage(part: int, whole: int) -> int:
    """Rounded ``part / whole`` percentage, half-up, ``0`` for an empty whole."""
    if whole <= 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)


def filter_by_date_range(records: Iterable[FunnelRecord], date_range: DateRange | None) -> list[FunnelRecord]:
    if date_range is None or date_range.is_open:
        return list(records)
    return [record for record in records if date_range.contains(record.start_time)]


def average_seconds_to_complete(records: Sequence[FunnelRecord]) -> int:
    durations = [
        (as_utc(record.completion_time) - as_utc(record.start_time)).total_seconds()
        for record in records
        if record.form_completed and record.start_time and record.completion_time
    ]
    if not durations:
        return 0
    return math.floor(sum(durations) / len(durations) + 0.5)


def summarize_conversions(records: Sequence[FunnelRecord]) -> ConversionSummary:
    total_started = len(records)
    total_completed = sum(1 for record in records if record.form_completed)
    total_submitted = sum(1 for record in records if record.submitted)
    return ConversionSummary(
        total_started=total_started,
        total_completed=total_completed,
        total_converted=total_submitted,
        conversion_rate=percentage(total_submitted, total_started),
        completion_rate=percentage(total_completed, total_started),
        avg_time_to_complete=average_seconds_to_complete(records),
    )


def aggregate_sources(records: Sequence[FunnelRecord]) -> list[SourcePerformance]:
    stats: dict[str, dict[str, int]] = {}
    for record in records:
        bucket = stats.setdefault(
            record.source or DEFAULT_SOURCE,
            {"total_started": 0, "total_completed": 0, "total_submitted": 0},
        )
        bucket["total_started"] += 1
        if record.form_completed:
            bucket["total_completed"] += 1
        if record.submitted:
            bucket["total_submitted"] += 1

    rows = [
        SourcePerformance(
            source=source,
            completion_rate=percentage(bucket["total_completed"], bucket["total_started"]),
            conversion_rate=percentage(bucket["total_submitted"], bucket["total_started"]),
            **bucket,
        )
        for source, bucket in stats.items()
    ]
    # sorted() is stable, so equal counts keep first-seen order
    return sorted(rows, key=lambda row: row.total_started, reverse=True)


def aggregate_devices(records: Sequence[FunnelRecord]) -> DeviceBreakdown:
    total = len(records)
    devices = Counter(record.device_type or "unknown" for record in records)
    browsers = Counter(record.browser_name or "unknown" for record in records)
    return DeviceBreakdown(
        devices=[
            DeviceShare(device=device, count=count, percentage=percentage(count, total))
            for device, count in devices.items()
        ],
        browsers=[
            BrowserShare(browser=browser, count=count, percentage=percentage(count, total))
            for browser, count in browsers.items()
        ],
    )


def analyze_abandonment(records: Sequence[FunnelRecord]) -> list[AbandonmentStep]:
    abandoned = Counter(record.step_reached for record in records if not record.form_completed)
    total = sum(abandoned.values())
    return [
        AbandonmentStep(step=step, count=count, percentage=percentage(count, total))
        for step, count in sorted(abandoned.items())
    ]
