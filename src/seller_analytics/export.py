"""Flat product export: row schema, DataFrame, CSV and JSON writers."""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from .models import AD_CHANNELS, FEE_KINDS, REFUND_KINDS, SALES_CHANNELS, UNITS_CHANNELS, ProductRecord
from .normalize import escape_control_chars
from .products import flatten_products

logger = logging.getLogger(__name__)

TEXT_COLUMNS = ["type", "asin", "sku", "name", "parent_asin", "marketplace"]

NUMERIC_COLUMNS = (
    ["stock", "sales"]
    + [f"sales_{k}" for k in SALES_CHANNELS]
    + ["units"]
    + [f"units_{k}" for k in UNITS_CHANNELS]
    + ["orders", "ad_spend"]
    + [f"ad_{k}" for k in AD_CHANNELS]
    + ["fees"]
    + [f"fee_{k}" for k in FEE_KINDS]
    + ["refunds"]
    + [f"refund_{k}" for k in REFUND_KINDS]
    + ["cogs", "gross_profit", "indirect_expenses", "net_profit", "estimated_payout", "margin_pct", "roi_pct", "rank"]
)

EXPORT_COLUMNS = TEXT_COLUMNS + NUMERIC_COLUMNS

_BREAKDOWN_PREFIXES = {
    "sales_channels": ("sales_", SALES_CHANNELS),
    "units_channels": ("units_", UNITS_CHANNELS),
    "ad_channels": ("ad_", AD_CHANNELS),
    "fee_breakdown": ("fee_", FEE_KINDS),
    "refund_breakdown": ("refund_", REFUND_KINDS),
}


def export_row(rec: ProductRecord) -> dict[str, Any]:
    row: dict[str, Any] = {
        "type": rec.record_type,
        "asin": rec.asin,
        "sku": rec.sku,
        "name": rec.name,
        "parent_asin": rec.parent_asin or "",
        "marketplace": rec.marketplace,
        "stock": rec.stock,
        "sales": rec.sales,
        "units": rec.units,
        "orders": rec.orders,
        "ad_spend": rec.ad_spend,
        "fees": rec.fees,
        "refunds": rec.refunds,
        "cogs": rec.cogs,
        "gross_profit": rec.gross_profit,
        "indirect_expenses": rec.indirect_expenses,
        "net_profit": rec.net_profit,
        "estimated_payout": rec.estimated_payout,
        "margin_pct": rec.margin,
        "roi_pct": rec.roi,
        "rank": rec.rank,
    }
    for attr, (prefix, keys) in _BREAKDOWN_PREFIXES.items():
        values = getattr(rec, attr)
        for k in keys:
            row[prefix + k] = values.get(k, 0.0)
    return row


def export_rows(products: Iterable[ProductRecord]) -> list[dict[str, Any]]:
    """One row per product followed by one row per variant."""
    return [export_row(r) for r in flatten_products(products)]


def to_dataframe(rows: list[dict[str, Any]]) -> pd.DataFrame:
    """
    Rows as a DataFrame in export column order: text cells escaped, every
    numeric cell a float.
    """
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    for col in TEXT_COLUMNS:
        df[col] = df[col].apply(escape_control_chars)
    df[NUMERIC_COLUMNS] = df[NUMERIC_COLUMNS].fillna(0).astype(float)
    return df


def to_csv_text(rows: list[dict[str, Any]]) -> str:
    """CSV with two-decimal numbers; cells holding the delimiter or quotes are quoted."""
    return to_dataframe(rows).to_csv(index=False, float_format="%.2f", quoting=csv.QUOTE_MINIMAL)


def write_csv(rows: list[dict[str, Any]], path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_csv_text(rows), encoding="utf-8")
    logger.info("Export written: %s (%d rows)", path, len(rows))
    return path


def write_exports(
    rows: list[dict[str, Any]],
    out_dir: str | Path,
    stem: str = "products",
) -> tuple[Path, Path]:
    """
    Write *rows* as ``<stem>.csv`` and ``<stem>.json`` to *out_dir*.
    Returns (csv_path, json_path).
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    csv_path = write_csv(rows, out_dir / f"{stem}.csv")

    records = to_dataframe(rows).round(2).to_dict(orient="records")
    json_path = out_dir / f"{stem}.json"
    json_path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Export written: %s", json_path)
    return csv_path, json_path
