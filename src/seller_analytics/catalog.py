"""
Static product catalog and region list used by the rollups.

Catalog figures are 7-day baselines for the neutral marketplace.  A parent
entry lists its variants under ``children``; the parent's own figures are
never used, only the rolled-up sum of its variants.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .config import ConfigError
from .models import BREAKDOWNS, FLOW_FIELDS

logger = logging.getLogger(__name__)

_CATALOGUE: list[dict[str, Any]] = [
    {
        "asin": "B0XXYYZZ11", "sku": "YM-001-US", "name": "Premium Yoga Mat - Extra Thick",
        "marketplace": "US", "units": 33, "orders": 30, "sales": 1322.0, "ad_spend": 275.0,
        "fees": 198.0, "cogs": 396.0, "refunds": 26.0, "indirect_expenses": 40.0,
        "stock": 412, "rank": 27636,
        "sales_channels": {"organic": 920.0, "sponsored_products": 330.0, "sponsored_display": 72.0},
        "units_channels": {"organic": 23, "sponsored_products": 8, "sponsored_display": 2},
        "ad_channels": {"sponsored_products": 190.0, "sponsored_brands": 45.0, "sponsored_brands_video": 15.0, "sponsored_display": 25.0},
        "fee_breakdown": {"referral": 198.0},
        "refund_breakdown": {"refunded_amount": 24.0, "refund_commission": 2.0},
    },
    {
        "asin": "B0DRIGZWKC", "sku": "RB-PARENT", "name": "Luxurious Women's Robe - Turkish Cotton",
        "marketplace": "US",
        "children": [
            {
                "asin": "B0DRIGZWK1", "sku": "RB-002-S-WHT", "name": "Luxurious Women's Robe - White / S",
                "units": 12, "orders": 11, "sales": 420.0, "ad_spend": 28.0, "fees": 63.0, "cogs": 126.0,
                "refunds": 8.0, "indirect_expenses": 12.0, "stock": 140, "rank": 8585,
                "sales_channels": {"organic": 350.0, "sponsored_products": 70.0},
                "units_channels": {"organic": 10, "sponsored_products": 2},
                "ad_channels": {"sponsored_products": 22.0, "sponsored_brands": 6.0},
                "fee_breakdown": {"referral": 63.0},
                "refund_breakdown": {"refunded_amount": 8.0},
            },
            {
                "asin": "B0DRIGZWK2", "sku": "RB-002-M-WHT", "name": "Luxurious Women's Robe - White / M",
                "units": 8, "orders": 7, "sales": 280.0, "ad_spend": 19.0, "fees": 42.0, "cogs": 84.0,
                "refunds": 6.0, "indirect_expenses": 8.0, "stock": 96, "rank": 9120,
                "sales_channels": {"organic": 230.0, "sponsored_products": 50.0},
                "units_channels": {"organic": 7, "sponsored_products": 1},
                "ad_channels": {"sponsored_products": 19.0},
                "fee_breakdown": {"referral": 42.0},
            },
            {
                "asin": "B0DRIGZWK3", "sku": "RB-002-L-GRY", "name": "Luxurious Women's Robe - Grey / L",
                "units": 7, "orders": 6, "sales": 247.0, "ad_spend": 17.0, "fees": 37.0, "cogs": 74.0,
                "refunds": 5.0, "indirect_expenses": 7.0, "stock": 58, "rank": 11870,
            },
        ],
    },
    {
        "asin": "B0DRIGAM1", "sku": "RB-003-DE", "name": "Lightweight Women's Bathrobe",
        "marketplace": "DE", "units": 21, "orders": 19, "sales": 684.0, "ad_spend": 120.0,
        "fees": 103.0, "cogs": 205.0, "refunds": 14.0, "indirect_expenses": 21.0,
        "stock": 233, "rank": 963,
        "sales_channels": {"organic": 510.0, "sponsored_products": 174.0},
        "units_channels": {"organic": 16, "sponsored_products": 5},
        "ad_channels": {"sponsored_products": 96.0, "sponsored_display": 24.0},
        "fee_breakdown": {"referral": 103.0},
        "refund_breakdown": {"refunded_amount": 12.0, "return_processing": 2.0},
    },
    {
        "asin": "B0DRIGFTQZ", "sku": "RB-PARENT-SPA", "name": "Soft Spa Bathrobe - Unisex",
        "marketplace": "CA",
        "children": [
            {
                "asin": "B0DRIGFTQ1", "sku": "RB-004-SM", "name": "Soft Spa Bathrobe - S/M",
                "units": 11, "orders": 10, "sales": 462.0, "ad_spend": 36.0, "fees": 69.0, "cogs": 139.0,
                "refunds": 9.0, "indirect_expenses": 14.0, "stock": 180, "rank": 170439,
                "sales_channels": {"organic": 380.0, "sponsored_products": 82.0},
                "units_channels": {"organic": 9, "sponsored_products": 2},
                "ad_channels": {"sponsored_products": 36.0},
                "fee_breakdown": {"referral": 69.0},
            },
            {
                "asin": "B0DRIGFTQ2", "sku": "RB-004-LXL", "name": "Soft Spa Bathrobe - L/XL",
                "units": 10, "orders": 8, "sales": 399.0, "ad_spend": 30.0, "fees": 60.0, "cogs": 120.0,
                "refunds": 8.0, "indirect_expenses": 12.0, "stock": 122, "rank": 188210,
                "sales_channels": {"organic": 330.0, "sponsored_products": 69.0},
                "ad_channels": {"sponsored_products": 30.0},
            },
        ],
    },
    {
        "asin": "B0DRIGFMA3", "sku": "RB-005-FR", "name": "Classic Turkish Bathrobe",
        "marketplace": "FR", "units": 19, "orders": 17, "sales": 745.0, "ad_spend": 90.0,
        "fees": 112.0, "cogs": 223.0, "refunds": 15.0, "indirect_expenses": 22.0,
        "stock": 301, "rank": 45821,
        "sales_channels": {"organic": 600.0, "sponsored_products": 145.0},
        "units_channels": {"organic": 15, "sponsored_products": 4},
        "ad_channels": {"sponsored_products": 70.0, "sponsored_brands": 20.0},
        "fee_breakdown": {"referral": 112.0},
    },
    {
        "asin": "B0DRIGFMD1", "sku": "RB-006-IT", "name": "Plush Hooded Bathrobe",
        "marketplace": "IT", "units": 19, "orders": 17, "sales": 691.0, "ad_spend": 171.0,
        "fees": 104.0, "cogs": 207.0, "refunds": 14.0, "indirect_expenses": 21.0,
        "stock": 87, "rank": 92147,
        "ad_channels": {"sponsored_products": 131.0, "sponsored_display": 40.0},
    },
    {
        "asin": "B0DRIGP7Q", "sku": "RB-007-ES", "name": "Elegant Silk Robe",
        "marketplace": "ES", "units": 18, "orders": 16, "sales": 593.0, "ad_spend": 98.0,
        "fees": 89.0, "cogs": 178.0, "refunds": 12.0, "indirect_expenses": 18.0,
        "stock": 145, "rank": 61234,
        "sales_channels": {"organic": 470.0, "sponsored_products": 123.0},
        "fee_breakdown": {"referral": 89.0},
    },
    {
        "asin": "B0DRIGVXP3", "sku": "RB-008-JP", "name": "Cozy Fleece Bathrobe",
        "marketplace": "JP", "units": 17, "orders": 15, "sales": 602.0, "ad_spend": 277.0,
        "fees": 90.0, "cogs": 181.0, "refunds": 12.0, "indirect_expenses": 18.0,
        "stock": 64, "rank": 185342,
        "ad_channels": {"sponsored_products": 200.0, "sponsored_brands": 50.0, "sponsored_display": 27.0},
    },
]

# Map view regions: the 20 highest-volume US states.
US_STATES: dict[str, str] = {
    "CA": "California",
    "TX": "Texas",
    "FL": "Florida",
    "NY": "New York",
    "PA": "Pennsylvania",
    "IL": "Illinois",
    "OH": "Ohio",
    "GA": "Georgia",
    "NC": "North Carolina",
    "MI": "Michigan",
    "NJ": "New Jersey",
    "VA": "Virginia",
    "WA": "Washington",
    "AZ": "Arizona",
    "MA": "Massachusetts",
    "TN": "Tennessee",
    "IN": "Indiana",
    "MO": "Missouri",
    "MD": "Maryland",
    "WI": "Wisconsin",
}


def default_catalog() -> list[dict[str, Any]]:
    """Built-in catalog as fresh, normalised dicts."""
    return [_normalize_entry(e, where=f"catalog[{i}]") for i, e in enumerate(_CATALOGUE)]


def default_regions() -> list[str]:
    return list(US_STATES)


def _number(raw: dict[str, Any], key: str, where: str) -> float:
    value = raw.get(key)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{where}.{key} is not numeric: {value!r}") from exc


def _normalize_entry(raw: Any, where: str, allow_children: bool = True) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a mapping")
    asin = str(raw.get("asin") or "").strip()
    if not asin:
        raise ConfigError(f"{where} is missing 'asin'")

    entry: dict[str, Any] = {
        "asin": asin,
        "sku": str(raw.get("sku") or ""),
        "name": str(raw.get("name") or ""),
        "marketplace": str(raw.get("marketplace") or ""),
        "stock": int(_number(raw, "stock", where)),
        "rank": int(_number(raw, "rank", where)),
    }
    for key in FLOW_FIELDS:
        if key != "net_profit":
            entry[key] = _number(raw, key, where)
    for key in BREAKDOWNS:
        section = raw.get(key) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"{where}.{key} must be a mapping")
        entry[key] = {k: _number(section, k, f"{where}.{key}") for k in section}

    children = raw.get("children") or []
    if children and not allow_children:
        raise ConfigError(f"{where}: variants cannot have their own children")
    entry["children"] = [
        _normalize_entry(c, where=f"{where}.children[{j}]", allow_children=False)
        for j, c in enumerate(children)
    ]
    return entry


def load_catalog(path: str | Path) -> list[dict[str, Any]]:
    """
    Load a catalog YAML file: either a list of entries or a mapping with a
    ``products`` list.  Raises :class:`ConfigError` on malformed input.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Catalog file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or []
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if isinstance(raw, dict):
        raw = raw.get("products") or []
    if not isinstance(raw, list):
        raise ConfigError(f"Catalog must be a list of products: {path}")

    catalog = [_normalize_entry(e, where=f"products[{i}]") for i, e in enumerate(raw)]
    logger.info("Catalog loaded: %s (%d products)", path, len(catalog))
    return catalog
