"""Selection → dashboard pipeline.

``build_dashboard`` is a pure function of its arguments: the embedding
application decides when to call it (every interaction, or memoised on the
Selection).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .catalog import default_catalog, default_regions
from .models import ProductRecord, RegionRecord, Selection
from .periods import DEFAULT_TIMEZONE, Period, build_periods, compare, today_in
from .products import rollup_products, search_products, sort_products
from .regions import filter_regions, region_factors, rollup_regions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dashboard:
    selection: Selection
    as_of: date
    periods: tuple[Period, ...] = ()
    changes: dict[str, float] = field(default_factory=dict)
    product_days: int = 0
    products: tuple[ProductRecord, ...] = ()
    regions: tuple[RegionRecord, ...] = ()

    @property
    def primary(self) -> Period | None:
        return self.periods[0] if self.periods else None

    def as_dict(self) -> dict[str, Any]:
        return {
            "as_of": self.as_of.isoformat(),
            "marketplaces": sorted(self.selection.marketplaces),
            "period_set": self.selection.period_set,
            "periods": [p.as_dict() for p in self.periods],
            "changes": {k: round(v, 2) for k, v in self.changes.items()},
            "product_days": self.product_days,
            "products": [p.as_dict() for p in self.products],
            "regions": [r.as_dict() for r in self.regions],
        }


def build_dashboard(
    selection: Selection,
    catalog: Sequence[Mapping[str, Any]] | None = None,
    region_codes: Sequence[str] | None = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> Dashboard:
    """Derive every dashboard output for *selection*."""
    as_of = selection.as_of or today_in(timezone)
    catalog = default_catalog() if catalog is None else catalog
    region_codes = default_regions() if region_codes is None else region_codes
    marketplaces = sorted(selection.marketplaces)

    periods = tuple(
        build_periods(selection.period_set, marketplaces, as_of, selection.start, selection.end)
    )
    changes = compare([p.totals for p in periods])

    product_days = periods[0].totals.days if periods else 0
    products = rollup_products(catalog, product_days, marketplaces)
    products = sort_products(
        search_products(products, selection.product_query),
        selection.sort_key,
        selection.sort_descending,
    )

    factors = region_factors(
        marketplaces, selection.region_range, (selection.region_start, selection.region_end)
    )
    regions = filter_regions(rollup_regions(region_codes, factors, catalog), selection.region_query)

    logger.info(
        "Dashboard built: as_of=%s marketplaces=%s periods=%d products=%d regions=%d",
        as_of,
        ",".join(marketplaces),
        len(periods),
        len(products),
        len(regions),
    )
    return Dashboard(
        selection=selection,
        as_of=as_of,
        periods=periods,
        changes=changes,
        product_days=product_days,
        products=tuple(products),
        regions=tuple(regions),
    )
