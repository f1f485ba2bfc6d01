"""FastAPI Web API for Seller Analytics."""

from __future__ import annotations

import logging
import os
from datetime import date
from functools import lru_cache
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .catalog import load_catalog
from .config import AppConfig, ConfigError, load_config
from .export import export_rows, to_csv_text
from .models import Selection
from .multipliers import MARKETPLACE_ALIASES, MARKETPLACE_MULTIPLIERS
from .periods import aggregate, regroup
from .pipeline import Dashboard, build_dashboard
from .regions import region_intensity
from .timeseries import synthesize

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

app = FastAPI(
    title="Seller Analytics API",
    description=(
        "Synthesized seller dashboard metrics: daily series, period comparisons, "
        "product hierarchy rollups and regional rollups."
    ),
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_methods=["GET"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def _settings() -> tuple[AppConfig, list | None]:
    """Config from ``SELLER_ANALYTICS_CONFIG`` (if set) and its catalog file."""
    path = os.environ.get("SELLER_ANALYTICS_CONFIG")
    try:
        cfg = load_config(path) if path else AppConfig()
        catalog = load_catalog(cfg.engine.catalog_path) if cfg.engine.catalog_path else None
    except ConfigError as exc:
        logger.error("Configuration error, using built-in settings: %s", exc)
        return AppConfig(), None
    return cfg, catalog


def _dashboard(**fields: Any) -> Dashboard:
    cfg, catalog = _settings()
    if not fields.get("marketplaces"):
        fields["marketplaces"] = cfg.engine.marketplaces
    if fields.get("period_set") is None:
        fields["period_set"] = "custom" if fields.get("start") or fields.get("end") else cfg.engine.period_set
    if fields.get("region_range") is None:
        fields["region_range"] = cfg.engine.region_range
    try:
        return build_dashboard(
            Selection(**fields),
            catalog=catalog,
            region_codes=cfg.engine.regions or None,
            timezone=cfg.runtime.timezone,
        )
    except (OverflowError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=f"Invalid selection: {exc}") from exc


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health", tags=["meta"])
def health() -> dict[str, str]:
    """Returns 200 OK when the API is up."""
    return {"status": "ok", "version": API_VERSION}


@app.get("/marketplaces", tags=["meta"])
def marketplaces() -> list[dict[str, Any]]:
    """Supported marketplace codes, their scaling multipliers and Amazon ids."""
    ids_by_code: dict[str, list[str]] = {}
    for alias, code in MARKETPLACE_ALIASES.items():
        ids_by_code.setdefault(code, []).append(alias)
    return [
        {
            "code": code,
            "sales": m.sales,
            "margin": m.margin,
            "acos": m.acos,
            "aliases": sorted(ids_by_code.get(code, [])),
        }
        for code, m in MARKETPLACE_MULTIPLIERS.items()
    ]


# ── Time series ───────────────────────────────────────────────────────────────

@app.get("/daily", tags=["metrics"])
def daily(
    start: date = Query(..., description="First day (YYYY-MM-DD)"),
    end: date = Query(..., description="Last day, inclusive (YYYY-MM-DD)"),
    marketplace: list[str] = Query(default=[], description="Marketplace code(s); repeat for several"),
    seed_offset: int = Query(default=0, ge=0),
    granularity: str = Query(default="daily", description="daily, weekly or monthly"),
) -> dict[str, Any]:
    """
    Return the synthesized daily series for a date range, bucketed by
    *granularity*, together with its totals.

    **Example:** `/daily?start=2024-01-01&end=2024-01-31&marketplace=US&marketplace=DE`
    """
    ids = marketplace or _settings()[0].engine.marketplaces
    records = synthesize(start, end, seed_offset, ids)
    try:
        buckets = regroup(records, granularity)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {
        "marketplaces": sorted(set(ids)),
        "granularity": granularity,
        "totals": aggregate(records).as_dict(),
        "series": [r.as_dict() for r in records] if granularity == "daily" else [b.as_dict() for b in buckets],
    }


@app.get("/periods", tags=["metrics"])
def periods(
    period_set: str | None = Query(default=None, description="default, days, weeks, months, quarters or custom"),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    marketplace: list[str] = Query(default=[]),
    as_of: date | None = Query(default=None, description="Reference date (default: today)"),
    include_daily: bool = Query(default=False),
) -> dict[str, Any]:
    """Period totals for a period set plus the change of the first period against the second."""
    dash = _dashboard(period_set=period_set, start=start, end=end, marketplaces=marketplace, as_of=as_of)
    result = []
    for p in dash.periods:
        data = p.as_dict()
        if not include_daily:
            data.pop("daily")
        result.append(data)
    return {
        "as_of": dash.as_of.isoformat(),
        "periods": result,
        "changes": {k: round(v, 2) for k, v in dash.changes.items()},
    }


# ── Products ──────────────────────────────────────────────────────────────────

def _product_dashboard(
    query: str,
    sort: str,
    descending: bool,
    period_set: str | None,
    start: date | None,
    end: date | None,
    marketplace: list[str],
    as_of: date | None,
) -> Dashboard:
    return _dashboard(
        period_set=period_set,
        start=start,
        end=end,
        marketplaces=marketplace,
        as_of=as_of,
        product_query=query,
        sort_key=sort,
        sort_descending=descending,
    )


@app.get("/products", tags=["products"])
def products(
    query: str = Query(default="", description="ASIN, SKU or name substring"),
    sort: str = Query(default="net_profit", description="net_profit, sales, units or margin"),
    descending: bool = Query(default=True),
    period_set: str | None = Query(default=None),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    marketplace: list[str] = Query(default=[]),
    as_of: date | None = Query(default=None),
) -> dict[str, Any]:
    """
    Product hierarchy scaled to the primary period of the selection.

    Parents carry their variants under ``children``; a parent's figures are
    the exact sum of its variants.
    """
    dash = _product_dashboard(query, sort, descending, period_set, start, end, marketplace, as_of)
    return {
        "as_of": dash.as_of.isoformat(),
        "days": dash.product_days,
        "products": [p.as_dict() for p in dash.products],
    }


@app.get("/products/export.csv", tags=["products"])
def products_export(
    query: str = Query(default=""),
    sort: str = Query(default="net_profit"),
    descending: bool = Query(default=True),
    period_set: str | None = Query(default=None),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    marketplace: list[str] = Query(default=[]),
    as_of: date | None = Query(default=None),
) -> Response:
    """Flat CSV export: one row per product followed by its variants."""
    dash = _product_dashboard(query, sort, descending, period_set, start, end, marketplace, as_of)
    filename = f"products_{dash.as_of.strftime('%Y%m%d')}.csv"
    return Response(
        content=to_csv_text(export_rows(dash.products)),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Regions ───────────────────────────────────────────────────────────────────

@app.get("/regions", tags=["regions"])
def regions(
    range_id: str | None = Query(default=None, alias="range", description="Date range id, e.g. 30d or custom"),
    range_start: date | None = Query(default=None),
    range_end: date | None = Query(default=None),
    query: str = Query(default="", description="Region name/code or carried product"),
    marketplace: list[str] = Query(default=[]),
    mode: str = Query(default="sales", description="Map shading: sales or stock"),
) -> dict[str, Any]:
    """Regional rollup with per-region product breakdowns and map intensity."""
    if mode not in ("sales", "stock"):
        raise HTTPException(status_code=422, detail=f"Invalid map mode: {mode!r}")
    if range_id is None and (range_start or range_end):
        range_id = "custom"
    dash = _dashboard(
        marketplaces=marketplace,
        region_range=range_id,
        region_start=range_start,
        region_end=range_end,
        region_query=query,
        period_set="days",
    )
    return {
        "range": dash.selection.region_range,
        "intensity": {k: round(v, 2) for k, v in region_intensity(dash.regions, mode).items()},
        "regions": [r.as_dict() for r in dash.regions],
    }
