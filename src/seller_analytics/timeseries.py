"""Daily time-series synthesis."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import date, datetime, timedelta

from dateutil.parser import isoparse

from . import formulas
from .models import DailyMetricRecord
from .multipliers import marketplace_multiplier, marketplace_seed
from .seeded import mix_seed, seeded_between, seeded_value

logger = logging.getLogger(__name__)

# Baseline daily sales for the neutral (US) marketplace before noise.
_BASE_DAILY_SALES = 3200.0
_SALES_SPREAD = 1600.0
_WEEKEND_FACTOR = 0.8

FEE_RATE = 0.15
COGS_RATE = 0.30
REFUND_RATE = 0.02

# Stream ids for the noise draws split off one date seed with mix_seed.
_SALES_STREAM = 1
_UNITS_STREAM = 2
_ORDERS_STREAM = 3
_AD_STREAM = 4


def to_date(value: date | str) -> date:
    """Accept a ``date`` or an ISO-8601 string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return isoparse(str(value)).date()


def iter_dates(start: date, end: date) -> Iterator[date]:
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)


def date_seed(day: date, seed_offset: int = 0, market_seed: int = 0) -> int:
    return day.year * 10000 + day.month * 100 + day.day + seed_offset + market_seed


def synthesize(
    start: date | str,
    end: date | str,
    seed_offset: int,
    marketplace_ids: Iterable[str],
) -> list[DailyMetricRecord]:
    """
    Produce one record per calendar day from *start* to *end* inclusive.

    Identical arguments always yield an identical list.  An inverted range
    yields an empty list.
    """
    start_d, end_d = to_date(start), to_date(end)
    if end_d < start_d:
        logger.debug("Empty range %s..%s", start_d, end_d)
        return []

    ids = list(marketplace_ids)
    mult = marketplace_multiplier(ids)
    mseed = marketplace_seed(ids)

    records = []
    for day in iter_dates(start_d, end_d):
        seed = date_seed(day, seed_offset, mseed)
        weekend = _WEEKEND_FACTOR if day.weekday() >= 5 else 1.0

        noise = seeded_value(mix_seed(seed, _SALES_STREAM))
        sales = round((_BASE_DAILY_SALES + noise * _SALES_SPREAD) * mult.sales * weekend)
        unit_price = seeded_between(mix_seed(seed, _UNITS_STREAM), 28.0, 38.0)
        units = round(sales / unit_price)
        orders = min(units, round(units * seeded_between(mix_seed(seed, _ORDERS_STREAM), 0.82, 0.94)))
        ad_ratio = seeded_between(mix_seed(seed, _AD_STREAM), 0.08, 0.16) * mult.acos
        ad_spend = round(sales * ad_ratio)
        fees = round(sales * FEE_RATE)
        cogs = round(sales * COGS_RATE)
        refunds = round(sales * REFUND_RATE)
        profit = round(
            formulas.net_profit(sales, ad_spend, fees, cogs, refunds, margin_factor=mult.margin)
        )

        records.append(
            DailyMetricRecord(
                date=day,
                sales=sales,
                units=units,
                orders=orders,
                ad_spend=ad_spend,
                fees=fees,
                cogs=cogs,
                refunds=refunds,
                net_profit=profit,
            )
        )
    return records
