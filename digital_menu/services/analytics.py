"""
Menu View Analytics

User-agent classification for view tracking, plus the date arithmetic
and aggregation behind the analytics report:

    - classify_device / classify_browser: first-match regex checks
    - client_ip: first X-Forwarded-For hop, else X-Real-IP
    - resolve_period: 7d / 30d / 90d / custom ranges (whole UTC days)
    - daily_view_series: zero-filled per-day counts built with pandas
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Mapping, Optional

import pandas as pd

from digital_menu.models import as_utc

_MOBILE = re.compile(r"mobile|android|iphone|ipad|ipod|blackberry|iemobile|opera mini", re.IGNORECASE)
_TABLET = re.compile(r"tablet|ipad", re.IGNORECASE)

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}
ANALYTICS_PERIODS = ("7d", "30d", "90d", "custom")


# =============================================================================
# REQUEST CLASSIFICATION
# =============================================================================

def classify_device(user_agent: Optional[str]) -> Optional[str]:
    """Return "mobile", "tablet" or "desktop" (None without a user agent)."""
    if not user_agent:
        return None
    if _MOBILE.search(user_agent):
        return "tablet" if _TABLET.search(user_agent) else "mobile"
    return "desktop"


def classify_browser(user_agent: Optional[str]) -> Optional[str]:
    """
    First match wins, in this order: Chrome (not Edge), Safari (not
    Chrome), Firefox, Edge, Opera, Other.
    """
    if not user_agent:
        return None
    ua = user_agent.lower()
    if "chrome" in ua and "edg" not in ua:
        return "Chrome"
    if "safari" in ua and "chrome" not in ua:
        return "Safari"
    if "firefox" in ua:
        return "Firefox"
    if "edg" in ua:
        return "Edge"
    if "opera" in ua or "opr" in ua:
        return "Opera"
    return "Other"


def client_ip(headers: Mapping[str, str]) -> Optional[str]:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return headers.get("x-real-ip") or None


# =============================================================================
# PERIODS
# =============================================================================

@dataclass(frozen=True)
class Period:
    """Inclusive range of whole days, expressed as UTC instants."""
    start: datetime
    end: datetime

    @property
    def days(self) -> int:
        return (self.end.date() - self.start.date()).days + 1


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min, tzinfo=timezone.utc)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max, tzinfo=timezone.utc)


def resolve_period(
    period: str,
    now: datetime,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Period:
    """
    Turn a period name into a day range ending today.

    ``custom`` uses the given dates, defaulting to the last 30 days.

    Raises:
        ValueError: On an unknown period or an inverted custom range
    """
    now = as_utc(now)
    if period in PERIOD_DAYS:
        return Period(
            start=start_of_day(now - timedelta(days=PERIOD_DAYS[period] - 1)),
            end=end_of_day(now),
        )
    if period != "custom":
        raise ValueError(f"Unknown period: {period}")

    start = (
        datetime.combine(start_date, time.min, tzinfo=timezone.utc)
        if start_date else start_of_day(now - timedelta(days=29))
    )
    end = (
        datetime.combine(end_date, time.max, tzinfo=timezone.utc)
        if end_date else end_of_day(now)
    )
    if end < start:
        raise ValueError("End date must not be before start date")
    return Period(start=start, end=end)


def overview_windows(now: datetime) -> dict[str, datetime]:
    """Start instants for today, this week (Monday) and this month."""
    today = start_of_day(as_utc(now))
    return {
        "today": today,
        "week": today - timedelta(days=today.weekday()),
        "month": today.replace(day=1),
    }


# =============================================================================
# AGGREGATION
# =============================================================================

def daily_view_series(timestamps: Iterable[datetime], period: Period) -> list[dict]:
    """
    Count views per calendar day across the whole period.

    Days without views are present with a zero count.
    """
    days = pd.date_range(period.start.date(), period.end.date(), freq="D")
    stamps = [as_utc(ts).date() for ts in timestamps]

    if stamps:
        counts = pd.Series(1, index=pd.DatetimeIndex(stamps)).groupby(level=0).sum()
    else:
        counts = pd.Series(dtype="int64")
    counts = counts.reindex(days, fill_value=0)

    return [
        {"date": day.strftime("%Y-%m-%d"), "views": int(views)}
        for day, views in counts.items()
    ]


def percentage(count: int, total: int) -> float:
    """Share of ``total`` as a percentage with one decimal."""
    if total <= 0:
        return 0.0
    return round(count / total * 100, 1)


def average_daily(series: list[dict]) -> float:
    if not series:
        return 0.0
    return round(sum(day["views"] for day in series) / len(series), 1)
