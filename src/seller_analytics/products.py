"""Product hierarchy rollup, sorting and search."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from . import formulas
from .models import BREAKDOWNS, FLOW_FIELDS, ProductRecord, ScaleFactors
from .multipliers import scale_factors
from .normalize import matches, normalize_query

logger = logging.getLogger(__name__)

CATALOG_BASELINE_DAYS = 7

SORT_KEYS = ("net_profit", "sales", "units", "margin")

# Flow fields scaled directly from the catalog; net profit is derived.
_VOLUME_FIELDS = ("units", "orders", "sales", "fees", "cogs", "refunds", "indirect_expenses")


def _num(raw: Mapping[str, Any], key: str) -> float:
    value = raw.get(key)
    return float(value) if value else 0.0


def _scale_breakdown(raw: Mapping[str, Any] | None, keys: tuple[str, ...], factor: float) -> dict[str, float]:
    raw = raw or {}
    return {k: _num(raw, k) * factor for k in keys}


def _scale_leaf(entry: Mapping[str, Any], factors: ScaleFactors, parent_asin: str | None = None) -> ProductRecord:
    v = factors.volume
    scaled = {name: _num(entry, name) * v for name in _VOLUME_FIELDS}
    ad_spend = _num(entry, "ad_spend") * v * factors.acos
    profit = formulas.net_profit(
        scaled["sales"],
        ad_spend,
        scaled["fees"],
        scaled["cogs"],
        scaled["refunds"],
        scaled["indirect_expenses"],
        factors.margin,
    )
    breakdowns = {
        name: _scale_breakdown(
            entry.get(name),
            keys,
            v * factors.acos if name == "ad_channels" else v,
        )
        for name, keys in BREAKDOWNS.items()
    }
    return ProductRecord(
        asin=str(entry.get("asin") or ""),
        sku=str(entry.get("sku") or ""),
        name=str(entry.get("name") or ""),
        marketplace=str(entry.get("marketplace") or ""),
        parent_asin=parent_asin,
        ad_spend=ad_spend,
        net_profit=profit,
        stock=int(_num(entry, "stock")),
        rank=int(_num(entry, "rank")),
        **scaled,
        **breakdowns,
    )


def sum_records(records: Sequence[ProductRecord]) -> dict[str, Any]:
    """
    Field-wise sum of *records*: flow fields, breakdowns and stock.

    Used for parents (over variants) and for regions (over products).
    """
    totals: dict[str, Any] = {name: sum(getattr(r, name) for r in records) for name in FLOW_FIELDS}
    for name, keys in BREAKDOWNS.items():
        totals[name] = {k: sum(getattr(r, name).get(k, 0.0) for r in records) for k in keys}
    totals["stock"] = sum(r.stock for r in records)
    return totals


def _best_rank(records: Sequence[ProductRecord]) -> int:
    ranks = [r.rank for r in records if r.rank > 0]
    return min(ranks) if ranks else 0


def rollup_entry(entry: Mapping[str, Any], factors: ScaleFactors) -> ProductRecord:
    """
    Scale one catalog entry.  A parent is the exact sum of its independently
    scaled variants; its own catalog figures are ignored.
    """
    children = entry.get("children") or []
    if not children:
        return _scale_leaf(entry, factors)

    asin = str(entry.get("asin") or "")
    scaled_children = tuple(_scale_leaf(c, factors, parent_asin=asin) for c in children)
    totals = sum_records(scaled_children)
    return ProductRecord(
        asin=asin,
        sku=str(entry.get("sku") or ""),
        name=str(entry.get("name") or ""),
        marketplace=str(entry.get("marketplace") or ""),
        rank=_best_rank(scaled_children),
        children=scaled_children,
        **totals,
    )


def rollup_with_factors(base_catalog: Iterable[Mapping[str, Any]], factors: ScaleFactors) -> list[ProductRecord]:
    return [rollup_entry(e, factors) for e in base_catalog]


def rollup_products(
    base_catalog: Iterable[Mapping[str, Any]],
    period_days: int,
    marketplace_ids: Iterable[str],
) -> list[ProductRecord]:
    """
    Scale the 7-day baseline catalog to *period_days* for the selected
    marketplaces, preserving catalog order and parent/variant nesting.
    """
    factors = scale_factors(marketplace_ids, period_days / CATALOG_BASELINE_DAYS)
    records = rollup_with_factors(base_catalog, factors)
    logger.debug("Rolled up %d products for %d days (volume x%.4f)", len(records), period_days, factors.volume)
    return records


def sort_products(
    records: Sequence[ProductRecord],
    key: str = "net_profit",
    descending: bool = True,
) -> list[ProductRecord]:
    """Order top-level records by *key*.  Variants keep catalog order."""
    if key not in SORT_KEYS:
        logger.warning("Unknown sort key %r; sorting by net_profit", key)
        key = "net_profit"
    return sorted(records, key=lambda r: getattr(r, key), reverse=descending)


def product_matches(record: ProductRecord, term: str) -> bool:
    return matches(term, record.identity()) or any(matches(term, c.identity()) for c in record.children)


def search_products(records: Sequence[ProductRecord], term: str | None) -> list[ProductRecord]:
    """
    Keep records whose ASIN, SKU or name (or any variant's) contains *term*.

    A parent is returned with all of its variants so its totals still
    reconcile.
    """
    q = normalize_query(term)
    if not q:
        return list(records)
    return [r for r in records if product_matches(r, q)]


def flatten_products(records: Iterable[ProductRecord]) -> Iterator[ProductRecord]:
    """Yield each record followed by its variants."""
    for rec in records:
        yield rec
        yield from rec.children
