"""Regional rollup with per-region product breakdowns."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from .catalog import US_STATES
from .models import RegionRecord, ScaleFactors
from .multipliers import RANGE_BASELINE_DAYS, date_range_multiplier, scale_factors
from .normalize import matches, normalize_query
from .products import CATALOG_BASELINE_DAYS, product_matches, rollup_entry, sum_records
from .seeded import seeded_between, seeded_value, string_seed

logger = logging.getLogger(__name__)

# Share of a product's marketplace volume attributed to one region.
_MIN_SHARE = 0.02
_MAX_SHARE = 0.10
# A region carries a catalog product when its seeded draw is below this.
_CARRY_PROBABILITY = 0.5

_SHARE_OFFSET = 101
_CARRY_OFFSET = 211


def region_name(code: str) -> str:
    return US_STATES.get(code, code)


def _region_products(code: str, base_catalog: Sequence[Mapping[str, Any]], factors: ScaleFactors):
    seed = string_seed(code)
    carried = [
        (idx, entry)
        for idx, entry in enumerate(base_catalog)
        if seeded_value(seed + _CARRY_OFFSET + idx) < _CARRY_PROBABILITY
    ]
    if not carried and base_catalog:
        # Every region sells at least one product.
        pick = int(seeded_value(seed) * len(base_catalog))
        carried = [(pick, base_catalog[pick])]
    return tuple(
        rollup_entry(entry, factors.scaled(seeded_between(seed + _SHARE_OFFSET + idx, _MIN_SHARE, _MAX_SHARE)))
        for idx, entry in carried
    )


def region_factors(
    marketplace_ids: Iterable[str],
    range_id: str,
    custom_bounds: tuple[date | None, date | None] | None = None,
) -> ScaleFactors:
    """
    Combined marketplace and date-range factors for the map view.

    Date-range multipliers are relative to 30 days while the catalog is a
    7-day baseline, so the range is rebased before scaling.
    """
    period_scale = date_range_multiplier(range_id, custom_bounds) * RANGE_BASELINE_DAYS / CATALOG_BASELINE_DAYS
    return scale_factors(marketplace_ids, period_scale)


def rollup_regions(
    region_codes: Iterable[str],
    factors: ScaleFactors,
    base_catalog: Iterable[Mapping[str, Any]],
) -> list[RegionRecord]:
    """
    One record per region code, seeded by the code itself.

    Region output depends only on the code, the catalog and *factors*; its
    figures are the exact sum of its nested product breakdown.  ``rank`` orders
    regions by sales (1 = highest).
    """
    catalog = list(base_catalog)
    regions = []
    for code in region_codes:
        code = code.strip().upper()
        products = _region_products(code, catalog, factors)
        regions.append(RegionRecord(code=code, name=region_name(code), products=products, **sum_records(products)))

    by_sales = sorted(range(len(regions)), key=lambda i: regions[i].sales, reverse=True)
    ranks = {idx: pos + 1 for pos, idx in enumerate(by_sales)}
    return [dataclasses.replace(r, rank=ranks[i]) for i, r in enumerate(regions)]


def filter_regions(regions: Sequence[RegionRecord], term: str | None) -> list[RegionRecord]:
    """
    Regions whose name or code contains *term*, or that carry a product or
    variant whose ASIN, SKU or name contains it.
    """
    q = normalize_query(term)
    if not q:
        return list(regions)
    return [
        r for r in regions if matches(q, (r.code, r.name)) or any(product_matches(p, q) for p in r.products)
    ]


def region_intensity(regions: Sequence[RegionRecord], mode: str = "sales") -> dict[str, float]:
    """
    Map shading intensity 0-100 per region code, relative to the largest
    region for ``sales`` or ``stock``.
    """
    if mode not in ("sales", "stock"):
        raise ValueError(f"Unknown map mode: {mode!r}")
    values = {r.code: float(getattr(r, mode)) for r in regions}
    peak = max(list(values.values()) + [1.0])
    return {code: min(max(value, 0.0) / peak * 100, 100.0) for code, value in values.items()}
