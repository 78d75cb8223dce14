from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from recruitflow.types import JobViewTrend, as_utc


def month_start(moment: datetime) -> datetime:
    return as_utc(moment).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def previous_month_start(moment: datetime) -> datetime:
    start = month_start(moment)
    if start.month == 1:
        return start.replace(year=start.year - 1, month=12)
    return start.replace(month=start.month - 1)


def summarize_job_views(viewed_at: Iterable[datetime], now: datetime) -> JobViewTrend:
    """Month-over-month view counts for one tenant's jobs."""
    current_start = month_start(now)
    last_start = previous_month_start(now)

    total_views = 0
    current_month_views = 0
    last_month_views = 0
    for moment in viewed_at:
        total_views += 1
        moment = as_utc(moment)
        if moment >= current_start:
            current_month_views += 1
        elif moment >= last_start:
            last_month_views += 1

    if last_month_views > 0:
        change = (current_month_views - last_month_views) / last_month_views * 100
    elif current_month_views > 0:
        change = 100.0
    else:
        change = 0.0

    if current_month_views > last_month_views:
        trend = "up"
    elif current_month_views < last_month_views:
        trend = "down"
    else:
        trend = "same"

    return JobViewTrend(
        total_views=total_views,
        current_month_views=current_month_views,
        last_month_views=last_month_views,
        percentage_change=round(change, 2),
        trend=trend,
    )
