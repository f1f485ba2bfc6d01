"""Named periods, period aggregation and period-over-period comparison."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from dateutil import tz
from dateutil.relativedelta import MO, relativedelta

from . import formulas
from .models import DailyMetricRecord, PeriodTotals
from .timeseries import synthesize

logger = logging.getLogger(__name__)

# Amazon US reports daily boundaries in Pacific time.
DEFAULT_TIMEZONE = "America/Los_Angeles"

# Seed distance between the periods of one set.  Larger than any date seed so
# two periods never share noise even when their date ranges overlap.
PERIOD_SEED_STRIDE = 100_000_000

SUMMED_FIELDS = ("sales", "units", "orders", "ad_spend", "fees", "cogs", "refunds", "net_profit")
PERCENT_FIELDS = SUMMED_FIELDS + ("average_order_value",)
POINT_FIELDS = ("margin", "acos", "roi")

PERIOD_LABELS: dict[str, str] = {
    "today": "Today",
    "yesterday": "Yesterday",
    "two-days-ago": "2 Days Ago",
    "this-week": "This Week",
    "last-week": "Last Week",
    "this-month": "This Month",
    "last-month": "Last Month",
    "two-months-ago": "2 Months Ago",
    "this-quarter": "This Quarter",
    "last-quarter": "Last Quarter",
    "two-quarters-ago": "2 Quarters Ago",
    "three-quarters-ago": "3 Quarters Ago",
    "this-year": "This Year",
    "last-year": "Last Year",
    "7d": "Last 7 Days",
    "14d": "Last 14 Days",
    "30d": "Last 30 Days",
    "90d": "Last 90 Days",
    "180d": "Last 180 Days",
    "365d": "Last 365 Days",
}

PERIOD_SETS: dict[str, tuple[str, ...]] = {
    "default": ("today", "yesterday", "this-month", "last-month"),
    "days": ("today", "yesterday"),
    "weeks": ("this-week", "last-week"),
    "months": ("this-month", "last-month", "two-months-ago"),
    "quarters": ("this-quarter", "last-quarter", "two-quarters-ago", "three-quarters-ago"),
}

_ROLLING_DAYS = {"7d": 7, "14d": 14, "30d": 30, "90d": 90, "180d": 180, "365d": 365}


class UnknownPeriodError(ValueError):
    """Raised for a period id that has no date rule."""


@dataclass(frozen=True)
class Period:
    """One resolved period: its daily series and their totals."""

    period_id: str
    label: str
    start: date
    end: date
    records: tuple[DailyMetricRecord, ...]
    totals: PeriodTotals

    def as_dict(self) -> dict:
        return {
            "period_id": self.period_id,
            "label": self.label,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "totals": self.totals.as_dict(),
            "daily": [r.as_dict() for r in self.records],
        }


def today_in(timezone_str: str = DEFAULT_TIMEZONE) -> date:
    """Calendar date 'now' in *timezone_str* (falls back to local time)."""
    zone = tz.gettz(timezone_str) or tz.tzlocal()
    return datetime.now(tz=zone).date()


# ---------------------------------------------------------------------------
# Date rules
# ---------------------------------------------------------------------------

def _quarter_start(day: date) -> date:
    return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)


def _full_month(as_of: date, months_back: int) -> tuple[date, date]:
    first = as_of.replace(day=1) - relativedelta(months=months_back)
    return first, first + relativedelta(months=1) - timedelta(days=1)


def _full_quarter(as_of: date, quarters_back: int) -> tuple[date, date]:
    first = _quarter_start(as_of) - relativedelta(months=3 * quarters_back)
    return first, first + relativedelta(months=3) - timedelta(days=1)


def resolve_period(period_id: str, as_of: date) -> tuple[date, date]:
    """
    Return the inclusive ``(start, end)`` bounds of *period_id* relative to
    *as_of*.  Periods that are still running end on *as_of*.
    """
    if period_id == "today":
        return as_of, as_of
    if period_id == "yesterday":
        day = as_of - timedelta(days=1)
        return day, day
    if period_id == "two-days-ago":
        day = as_of - timedelta(days=2)
        return day, day
    if period_id == "this-week":
        return as_of + relativedelta(weekday=MO(-1)), as_of
    if period_id == "last-week":
        monday = as_of + relativedelta(weekday=MO(-1)) - timedelta(days=7)
        return monday, monday + timedelta(days=6)
    if period_id == "this-month":
        return as_of.replace(day=1), as_of
    if period_id == "last-month":
        return _full_month(as_of, 1)
    if period_id == "two-months-ago":
        return _full_month(as_of, 2)
    if period_id == "this-quarter":
        return _quarter_start(as_of), as_of
    if period_id == "last-quarter":
        return _full_quarter(as_of, 1)
    if period_id == "two-quarters-ago":
        return _full_quarter(as_of, 2)
    if period_id == "three-quarters-ago":
        return _full_quarter(as_of, 3)
    if period_id == "this-year":
        return date(as_of.year, 1, 1), as_of
    if period_id == "last-year":
        return date(as_of.year - 1, 1, 1), date(as_of.year - 1, 12, 31)
    if period_id in _ROLLING_DAYS:
        return as_of - timedelta(days=_ROLLING_DAYS[period_id] - 1), as_of
    raise UnknownPeriodError(f"Unknown period id: {period_id!r}")


def period_days(period_id: str, as_of: date) -> int:
    start, end = resolve_period(period_id, as_of)
    return (end - start).days + 1


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def aggregate(records: Iterable[DailyMetricRecord], label: str = "") -> PeriodTotals:
    """Sum daily records into period totals.  Empty input gives all zeros."""
    records = list(records)
    if not records:
        return PeriodTotals(label=label)
    sums = {name: sum(getattr(r, name) for r in records) for name in SUMMED_FIELDS}
    return PeriodTotals(
        label=label,
        start=records[0].date,
        end=records[-1].date,
        days=len(records),
        **sums,
    )


def compare(periods: Sequence[PeriodTotals]) -> dict[str, float]:
    """
    Change of period 0 (current) against period 1 (previous).

    Count and money fields use percent change; margin, ACOS and ROI are
    already percentages and use the point difference.  Fewer than two periods
    gives an empty map.
    """
    if len(periods) < 2:
        return {}
    current, previous = periods[0], periods[1]
    changes = {
        name: formulas.percent_change(getattr(current, name), getattr(previous, name))
        for name in PERCENT_FIELDS
    }
    for name in POINT_FIELDS:
        changes[name] = formulas.point_change(getattr(current, name), getattr(previous, name))
    return changes


def regroup(records: Sequence[DailyMetricRecord], granularity: str = "daily") -> list[PeriodTotals]:
    """
    Bucket a daily series by ``daily``, ``weekly`` (Monday start) or
    ``monthly`` granularity, preserving date order.
    """
    if granularity not in ("daily", "weekly", "monthly"):
        raise ValueError(f"Unknown granularity: {granularity!r}")

    buckets: dict[date, list[DailyMetricRecord]] = {}
    for rec in records:
        if granularity == "daily":
            key = rec.date
        elif granularity == "weekly":
            key = rec.date + relativedelta(weekday=MO(-1))
        else:
            key = rec.date.replace(day=1)
        buckets.setdefault(key, []).append(rec)

    result = []
    for key, items in buckets.items():
        if granularity == "monthly":
            label = key.strftime("%b %Y")
        else:
            label = key.strftime("%b %d")
        result.append(aggregate(items, label=label))
    return result


# ---------------------------------------------------------------------------
# Period sets
# ---------------------------------------------------------------------------

def _build(
    entries: Sequence[tuple[str, str, date | None, date | None]],
    marketplace_ids: Iterable[str],
) -> list[Period]:
    ids = list(marketplace_ids)
    periods = []
    for idx, (period_id, label, start, end) in enumerate(entries):
        if start is None or end is None:
            start = end = date.min
            records = ()
        else:
            records = tuple(synthesize(start, end, idx * PERIOD_SEED_STRIDE, ids))
        periods.append(
            Period(
                period_id=period_id,
                label=label,
                start=start,
                end=end,
                records=records,
                totals=aggregate(records, label=label),
            )
        )
    return periods


def custom_periods(
    start: date,
    end: date,
    marketplace_ids: Iterable[str],
) -> list[Period]:
    """
    A custom range plus the equally long window right before it.

    An inverted range still yields both periods, each with no records.  A
    previous window reaching before ``date.min`` is an empty period.
    """
    length = (end - start).days + 1
    prev_start: date | None
    prev_end: date | None
    if length <= 0:
        prev_start, prev_end = start, end
    else:
        try:
            prev_end = start - timedelta(days=1)
            prev_start = prev_end - timedelta(days=length - 1)
        except OverflowError:
            logger.warning("Previous window of %s..%s is out of the calendar range", start, end)
            prev_start = prev_end = None
    return _build(
        [
            ("custom", "Custom Range", start, end),
            ("previous", "Previous Period", prev_start, prev_end),
        ],
        marketplace_ids,
    )


def build_periods(
    period_set: str,
    marketplace_ids: Iterable[str],
    as_of: date,
    start: date | None = None,
    end: date | None = None,
) -> list[Period]:
    """
    Resolve and synthesize the 1-4 periods of *period_set*.

    ``custom`` uses *start*/*end*; a custom set without bounds yields no
    periods.  Unknown set ids fall back to ``default``.
    """
    if period_set == "custom":
        if start is None or end is None:
            logger.warning("Custom period set requested without bounds; no periods built")
            return []
        return custom_periods(start, end, marketplace_ids)

    ids = PERIOD_SETS.get(period_set)
    if ids is None:
        logger.warning("Unknown period set %r; falling back to 'default'", period_set)
        ids = PERIOD_SETS["default"]

    entries = []
    for period_id in ids:
        try:
            p_start, p_end = resolve_period(period_id, as_of)
        except (OverflowError, ValueError):
            # Only the calendar bounds can fail here; every id in a set has a rule.
            logger.warning("Period %r relative to %s is out of the calendar range", period_id, as_of)
            p_start = p_end = None
        entries.append((period_id, PERIOD_LABELS[period_id], p_start, p_end))
    return _build(entries, marketplace_ids)
