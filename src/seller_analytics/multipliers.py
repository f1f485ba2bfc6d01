"""Marketplace and date-range scaling tables."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from types import MappingProxyType

from .models import MarketplaceMultiplier, ScaleFactors
from .seeded import mix_seed

logger = logging.getLogger(__name__)

DEFAULT_MULTIPLIER = MarketplaceMultiplier(sales=0.5, margin=1.0, acos=1.0)

# ── Marketplaces ─────────────────────────────────────────────────────────────

MARKETPLACE_MULTIPLIERS: MappingProxyType[str, MarketplaceMultiplier] = MappingProxyType(
    {
        "US": MarketplaceMultiplier(sales=1.00, margin=1.00, acos=1.00),
        "CA": MarketplaceMultiplier(sales=0.35, margin=0.95, acos=1.05),
        "MX": MarketplaceMultiplier(sales=0.15, margin=0.85, acos=1.10),
        "BR": MarketplaceMultiplier(sales=0.12, margin=0.80, acos=1.15),
        "UK": MarketplaceMultiplier(sales=0.45, margin=1.05, acos=0.95),
        "DE": MarketplaceMultiplier(sales=0.55, margin=1.10, acos=0.90),
        "FR": MarketplaceMultiplier(sales=0.30, margin=1.00, acos=1.00),
        "IT": MarketplaceMultiplier(sales=0.25, margin=0.95, acos=1.05),
        "ES": MarketplaceMultiplier(sales=0.22, margin=0.92, acos=1.08),
        "NL": MarketplaceMultiplier(sales=0.10, margin=0.98, acos=1.02),
        "SE": MarketplaceMultiplier(sales=0.06, margin=0.96, acos=1.04),
        "PL": MarketplaceMultiplier(sales=0.07, margin=0.90, acos=1.06),
        "JP": MarketplaceMultiplier(sales=0.40, margin=1.15, acos=0.85),
        "AU": MarketplaceMultiplier(sales=0.18, margin=0.97, acos=1.03),
        "IN": MarketplaceMultiplier(sales=0.20, margin=0.75, acos=1.20),
        "AE": MarketplaceMultiplier(sales=0.08, margin=1.08, acos=0.92),
    }
)

# Per-marketplace contribution to the daily seed.  Unknown ids contribute 0 so
# that every unrecognised marketplace yields the same series.
_MARKETPLACE_SEEDS: MappingProxyType[str, int] = MappingProxyType(
    {code: (idx + 1) * 104_729 for idx, code in enumerate(MARKETPLACE_MULTIPLIERS)}
)
# Mixed selection seeds are reduced below the period seed stride.
_SEED_SPACE = 100_000_000

# Amazon Selling Partner marketplace ids accepted in place of the short codes.
MARKETPLACE_ALIASES: MappingProxyType[str, str] = MappingProxyType(
    {
        "ATVPDKIKX0DER": "US",
        "A2EUQ1WTGCTBG2": "CA",
        "A1AM78C64UM0Y8": "MX",
        "A2Q3Y263D00KWC": "BR",
        "A1F83G8C2ARO7P": "UK",
        "A1PA6795UKMFR9": "DE",
        "A13V1IB3VIYZZH": "FR",
        "APJ6JRA9NG5V4": "IT",
        "A1RKKUPIHCS9HS": "ES",
        "A1805IZSGTT6HS": "NL",
        "A2NODRKZP88ZB9": "SE",
        "A1C3SOZRARQ6R3": "PL",
        "A1VC38T7YXB528": "JP",
        "A39IBJ37TRP1C6": "AU",
        "A21TJRUUN4KGV": "IN",
        "A2VIGQ35RCS4UG": "AE",
        "GB": "UK",
    }
)


def canonical_marketplace(marketplace_id: str) -> str:
    """Upper-cased short code for *marketplace_id*, resolving Amazon ids."""
    key = marketplace_id.strip().upper()
    return MARKETPLACE_ALIASES.get(key, key)


def canonical_marketplaces(marketplace_ids: Iterable[str]) -> list[str]:
    """Sorted distinct short codes; spellings of one marketplace count once."""
    return sorted({canonical_marketplace(m) for m in marketplace_ids})


def _lookup(marketplace_id: str) -> MarketplaceMultiplier:
    code = canonical_marketplace(marketplace_id)
    found = MARKETPLACE_MULTIPLIERS.get(code)
    if found is None:
        logger.debug("Unknown marketplace %r; using default multiplier", marketplace_id)
        return DEFAULT_MULTIPLIER
    return found


def marketplace_multiplier(marketplace_ids: Iterable[str]) -> MarketplaceMultiplier:
    """
    Average each factor across *marketplace_ids*.

    Unknown ids contribute the default triple; an empty selection is the
    default triple.
    """
    codes = canonical_marketplaces(marketplace_ids)
    if not codes:
        return DEFAULT_MULTIPLIER
    found = [_lookup(code) for code in codes]
    n = len(found)
    return MarketplaceMultiplier(
        sales=sum(m.sales for m in found) / n,
        margin=sum(m.margin for m in found) / n,
        acos=sum(m.acos for m in found) / n,
    )


def marketplace_seed(marketplace_ids: Iterable[str]) -> int:
    known = [_MARKETPLACE_SEEDS[c] for c in canonical_marketplaces(marketplace_ids) if c in _MARKETPLACE_SEEDS]
    if not known:
        return 0
    return mix_seed(*known) % _SEED_SPACE


# ── Date ranges ──────────────────────────────────────────────────────────────

RANGE_BASELINE_DAYS = 30

DATE_RANGE_MULTIPLIERS: MappingProxyType[str, float] = MappingProxyType(
    {
        "today": 1 / RANGE_BASELINE_DAYS,
        "yesterday": 1 / RANGE_BASELINE_DAYS,
        "7d": 7 / RANGE_BASELINE_DAYS,
        "this-week": 7 / RANGE_BASELINE_DAYS,
        "last-week": 7 / RANGE_BASELINE_DAYS,
        "14d": 14 / RANGE_BASELINE_DAYS,
        "30d": 1.0,
        "this-month": 1.0,
        "last-month": 1.0,
        "90d": 3.0,
        "this-quarter": 3.0,
        "last-quarter": 3.0,
        "180d": 6.0,
        "365d": 365 / RANGE_BASELINE_DAYS,
        "this-year": 365 / RANGE_BASELINE_DAYS,
        "last-year": 365 / RANGE_BASELINE_DAYS,
    }
)


def days_in_range(start: date | None, end: date | None) -> int:
    """Inclusive day count; 0 for missing or inverted bounds."""
    if start is None or end is None or end < start:
        return 0
    return (end - start).days + 1


def date_range_multiplier(
    range_id: str,
    custom_bounds: tuple[date | None, date | None] | None = None,
) -> float:
    """
    Scale factor of *range_id* relative to a 30-day baseline.

    ``custom`` ranges use ``days_in_range / 30``.  Unknown ids are treated as
    the baseline itself.
    """
    if range_id == "custom":
        start, end = custom_bounds or (None, None)
        return days_in_range(start, end) / RANGE_BASELINE_DAYS
    factor = DATE_RANGE_MULTIPLIERS.get(range_id)
    if factor is None:
        logger.debug("Unknown date range %r; using 30-day baseline", range_id)
        return 1.0
    return factor


def scale_factors(marketplace_ids: Iterable[str], period_scale: float) -> ScaleFactors:
    """Combine the marketplace multiplier with a period scale."""
    m = marketplace_multiplier(marketplace_ids)
    return ScaleFactors(volume=period_scale * m.sales, margin=m.margin, acos=m.acos)
