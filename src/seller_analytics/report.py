"""Report generation: Markdown, JSON, and plain-text summary."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from dateutil import tz

from .periods import DEFAULT_TIMEZONE, POINT_FIELDS
from .pipeline import Dashboard

logger = logging.getLogger(__name__)

_DISCLAIMER = (
    "> **Note:** Figures are synthesized from seeded baselines for dashboard previews. "
    "They are deterministic for a given selection and date, and are not Amazon settlement data."
)

_CHANGE_LABELS = {
    "sales": "Sales",
    "units": "Units",
    "orders": "Orders",
    "ad_spend": "Ad Spend",
    "fees": "Amazon Fees",
    "cogs": "COGS",
    "refunds": "Refunds",
    "net_profit": "Net Profit",
    "average_order_value": "Avg. Order Value",
    "margin": "Margin",
    "acos": "ACOS",
    "roi": "ROI",
}


def _now_local(timezone_str: str) -> datetime:
    local_tz = tz.gettz(timezone_str) or tz.tzlocal()
    return datetime.now(tz=local_tz)


def _money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _format_change(name: str, value: float) -> str:
    unit = " pts" if name in POINT_FIELDS else "%"
    arrow = "▲" if value > 0 else "▼" if value < 0 else "•"
    return f"{arrow} {value:+.2f}{unit}"


def _periods_table(dashboard: Dashboard) -> str:
    if not dashboard.periods:
        return "_No periods selected._\n"
    header = "| Period | Dates | Sales | Orders | Units | Ad Spend | Net Profit | Margin |\n"
    separator = "|---|---|---|---|---|---|---|---|\n"
    rows = []
    for p in dashboard.periods:
        t = p.totals
        dates = p.start.isoformat() if p.start == p.end else f"{p.start.isoformat()} → {p.end.isoformat()}"
        rows.append(
            f"| {p.label} | {dates} | {_money(t.sales)} | {t.orders:,} | {t.units:,} | "
            f"{_money(t.ad_spend)} | {_money(t.net_profit)} | {t.margin:.2f}% |"
        )
    return header + separator + "\n".join(rows) + "\n"


def _changes_table(changes: dict[str, float]) -> str:
    if not changes:
        return "_Not enough periods to compare._\n"
    header = "| Metric | Change |\n"
    separator = "|---|---|\n"
    rows = [f"| {_CHANGE_LABELS.get(k, k)} | {_format_change(k, v)} |" for k, v in changes.items()]
    return header + separator + "\n".join(rows) + "\n"


def _products_table(dashboard: Dashboard, n: int = 10) -> str:
    if not dashboard.products:
        return "_No products match the current search._\n"
    header = "| ASIN | Name | Sales | Units | Net Profit | Margin | Stock |\n"
    separator = "|---|---|---|---|---|---|---|\n"
    rows = []
    for rec in dashboard.products[:n]:
        variants = f" ({len(rec.children)} variants)" if rec.is_parent else ""
        rows.append(
            f"| `{rec.asin}` | {rec.name}{variants} | {_money(rec.sales)} | {rec.units:,.0f} | "
            f"{_money(rec.net_profit)} | {rec.margin:.2f}% | {rec.stock:,} |"
        )
    return header + separator + "\n".join(rows) + "\n"


def _regions_table(dashboard: Dashboard, n: int = 10) -> str:
    if not dashboard.regions:
        return "_No regions match the current search._\n"
    header = "| Rank | Region | Sales | Units | Net Profit | Products |\n"
    separator = "|---|---|---|---|---|---|\n"
    ranked = sorted(dashboard.regions, key=lambda r: r.rank)[:n]
    rows = [
        f"| {r.rank} | {r.name} ({r.code}) | {_money(r.sales)} | {r.units:,.0f} | "
        f"{_money(r.net_profit)} | {len(r.products)} |"
        for r in ranked
    ]
    return header + separator + "\n".join(rows) + "\n"


def generate_markdown_summary(dashboard: Dashboard, timezone_str: str = DEFAULT_TIMEZONE) -> str:
    sel = dashboard.selection
    return f"""# Seller Analytics — Dashboard Summary

**As of:** {dashboard.as_of.isoformat()} ({timezone_str})
**Marketplaces:** {", ".join(sorted(sel.marketplaces)) or "none"}
**Period set:** {sel.period_set}

---

## 📅 Periods

{_periods_table(dashboard)}
## 📈 Change vs. Previous Period

{_changes_table(dashboard.changes)}
---

## 📦 Products ({dashboard.product_days} days, by {sel.sort_key})

{_products_table(dashboard)}
---

## 🗺️ Regions ({sel.region_range})

{_regions_table(dashboard)}
---

{_DISCLAIMER}
"""


def generate_json_summary(dashboard: Dashboard, timezone_str: str = DEFAULT_TIMEZONE) -> dict[str, Any]:
    data = dashboard.as_dict()
    for p in data["periods"]:
        p.pop("daily", None)
    return {
        "meta": {
            "as_of": dashboard.as_of.isoformat(),
            "timezone": timezone_str,
            "marketplaces": sorted(dashboard.selection.marketplaces),
            "period_set": dashboard.selection.period_set,
            "total_products": len(dashboard.products),
            "total_regions": len(dashboard.regions),
        },
        "periods": data["periods"],
        "changes": data["changes"],
        "products": data["products"],
        "regions": data["regions"],
    }


def generate_text_summary(dashboard: Dashboard, md_path: str = "", json_path: str = "") -> str:
    """Return a short plain-text summary for the terminal."""
    lines = [
        f"📊 Seller Analytics — {dashboard.as_of.isoformat()} "
        f"({', '.join(sorted(dashboard.selection.marketplaces))})",
        "",
    ]
    if not dashboard.periods:
        lines.append("No periods selected.")
    for p in dashboard.periods:
        t = p.totals
        lines.append(
            f"  {p.label:<16} sales {_money(t.sales):>14}  orders {t.orders:>7,}  "
            f"net profit {_money(t.net_profit):>13}  margin {t.margin:6.2f}%"
        )
    if dashboard.changes:
        lines += [
            "",
            f"  Sales {_format_change('sales', dashboard.changes['sales'])}  "
            f"Net profit {_format_change('net_profit', dashboard.changes['net_profit'])}  "
            f"Margin {_format_change('margin', dashboard.changes['margin'])}",
        ]
    if md_path or json_path:
        lines += ["", f"📄 Report (MD):   {md_path}", f"📋 Report (JSON): {json_path}"]
    return "\n".join(lines)


def write_reports(
    dashboard: Dashboard,
    reports_dir: str | Path,
    timezone_str: str = DEFAULT_TIMEZONE,
) -> tuple[Path, Path, str]:
    """
    Write Markdown + JSON summaries to reports_dir.
    Returns (md_path, json_path, text_summary).
    """
    reports_dir = Path(reports_dir)
    reports_dir.mkdir(parents=True, exist_ok=True)

    now = _now_local(timezone_str)
    file_stem = f"summary_{dashboard.as_of.strftime('%Y%m%d')}_{now.strftime('%H%M%S')}"

    md_path = reports_dir / f"{file_stem}.md"
    json_path = reports_dir / f"{file_stem}.json"

    md_path.write_text(generate_markdown_summary(dashboard, timezone_str), encoding="utf-8")
    json_path.write_text(
        json.dumps(generate_json_summary(dashboard, timezone_str), indent=2, default=str),
        encoding="utf-8",
    )

    logger.info("Report written: %s", md_path)
    logger.info("Report written: %s", json_path)

    return md_path, json_path, generate_text_summary(dashboard, str(md_path), str(json_path))
