"""Command-line entry point for Seller Analytics."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date

from .config import AppConfig, ConfigError, load_config
from .models import Selection
from .periods import PERIOD_SETS
from .products import SORT_KEYS
from .timeseries import to_date

logger = logging.getLogger(__name__)


def _date_arg(value: str) -> date:
    try:
        return to_date(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date {value!r} (expected YYYY-MM-DD)") from exc


def _add_common(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--config", default=None, help="Path to config.yaml (default: built-in settings)")
    cmd.add_argument(
        "--period-set",
        choices=sorted(PERIOD_SETS) + ["custom"],
        default=None,
        help="Period set to compare (default: config engine.period_set).",
    )
    cmd.add_argument("--start", type=_date_arg, default=None, help="Custom range start (YYYY-MM-DD).")
    cmd.add_argument("--end", type=_date_arg, default=None, help="Custom range end (YYYY-MM-DD).")
    cmd.add_argument(
        "--marketplace",
        action="append",
        default=None,
        metavar="ID",
        help="Marketplace code or Amazon marketplace id; repeat for several.",
    )
    cmd.add_argument("--as-of", type=_date_arg, default=None, help="Reference date (default: today).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seller-analytics",
        description="Synthesize seller dashboard metrics and roll them up by period, product and region.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── summary ────────────────────────────────────────────────────────────
    summary_cmd = sub.add_parser("summary", help="Print period totals and period-over-period changes.")
    _add_common(summary_cmd)
    summary_cmd.add_argument("--json", dest="output_json", action="store_true", help="Output JSON only.")

    # ── products ───────────────────────────────────────────────────────────
    products_cmd = sub.add_parser("products", help="Print the product table for the primary period.")
    _add_common(products_cmd)
    products_cmd.add_argument("--query", default="", help="Filter by ASIN, SKU or name (case-insensitive).")
    products_cmd.add_argument("--sort", choices=SORT_KEYS, default="net_profit", help="Sort column.")
    products_cmd.add_argument("--ascending", action="store_true", help="Sort ascending instead of descending.")
    products_cmd.add_argument("--json", dest="output_json", action="store_true", help="Output JSON only.")

    # ── regions ────────────────────────────────────────────────────────────
    regions_cmd = sub.add_parser("regions", help="Print the regional rollup.")
    _add_common(regions_cmd)
    regions_cmd.add_argument("--range", dest="region_range", default=None, help="Date range id, e.g. 30d, this-month, custom.")
    regions_cmd.add_argument("--range-start", type=_date_arg, default=None, help="Custom range start.")
    regions_cmd.add_argument("--range-end", type=_date_arg, default=None, help="Custom range end.")
    regions_cmd.add_argument("--query", default="", help="Filter by region or carried product.")
    regions_cmd.add_argument("--json", dest="output_json", action="store_true", help="Output JSON only.")

    # ── export ─────────────────────────────────────────────────────────────
    export_cmd = sub.add_parser("export", help="Write the product export (CSV + JSON) and summary reports.")
    _add_common(export_cmd)
    export_cmd.add_argument("--query", default="", help="Filter exported products.")
    export_cmd.add_argument("--out-dir", default=None, help="Export directory (default: config storage.exports_dir).")
    export_cmd.add_argument("--reports-dir", default=None, help="Report directory (default: config storage.reports_dir).")

    return parser


# ---------------------------------------------------------------------------
# Shared setup
# ---------------------------------------------------------------------------

def _load(args: argparse.Namespace) -> tuple[AppConfig, list | None]:
    """Load config and (optionally) the catalog file; exit 2 on bad input."""
    from .catalog import load_catalog

    try:
        cfg = load_config(args.config) if args.config else AppConfig()
        catalog = load_catalog(cfg.engine.catalog_path) if cfg.engine.catalog_path else None
    except ConfigError as exc:
        print(f"[ERROR] Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    return cfg, catalog


def _selection(args: argparse.Namespace, cfg: AppConfig, **extra) -> Selection:
    period_set = args.period_set or cfg.engine.period_set
    if args.period_set is None and (args.start or args.end):
        period_set = "custom"
    if period_set == "custom" and (args.start is None or args.end is None):
        print("[ERROR] --period-set custom requires both --start and --end.", file=sys.stderr)
        sys.exit(2)
    fields = {
        "period_set": period_set,
        "start": args.start,
        "end": args.end,
        "marketplaces": frozenset(args.marketplace or cfg.engine.marketplaces),
        "region_range": cfg.engine.region_range,
        "as_of": args.as_of,
    }
    fields.update(extra)
    return Selection(**fields)


def _dashboard(args: argparse.Namespace, **extra):
    from .pipeline import build_dashboard

    cfg, catalog = _load(args)
    selection = _selection(args, cfg, **extra)
    dashboard = build_dashboard(
        selection,
        catalog=catalog,
        region_codes=cfg.engine.regions or None,
        timezone=cfg.runtime.timezone,
    )
    return cfg, dashboard


# ---------------------------------------------------------------------------
# Sub-command implementations
# ---------------------------------------------------------------------------

def _cmd_summary(args: argparse.Namespace) -> None:
    from .report import generate_json_summary, generate_text_summary

    cfg, dashboard = _dashboard(args)
    if args.output_json:
        payload = generate_json_summary(dashboard, cfg.runtime.timezone)
        print(json.dumps({k: payload[k] for k in ("meta", "periods", "changes")}, indent=2, default=str))
        return
    print(generate_text_summary(dashboard))


def _cmd_products(args: argparse.Namespace) -> None:
    _, dashboard = _dashboard(
        args,
        product_query=args.query,
        sort_key=args.sort,
        sort_descending=not args.ascending,
    )
    records = [p.as_dict() for p in dashboard.products]
    if args.output_json:
        print(json.dumps(records, indent=2, ensure_ascii=False))
        return

    sep = "-" * 96
    print(sep)
    print(f"  Products  •  {len(records)} result(s)  •  {dashboard.product_days} day(s)")
    print(sep)
    for rec in dashboard.products:
        print(
            f"  {rec.asin:<12} {rec.name[:36]:<36} sales {rec.sales:>12,.2f}  "
            f"net {rec.net_profit:>11,.2f}  margin {rec.margin:6.2f}%"
        )
        for child in rec.children:
            print(f"    └ {child.asin:<10} {child.name[:34]:<34} sales {child.sales:>12,.2f}  net {child.net_profit:>11,.2f}")
    print(sep)


def _region_overrides(args: argparse.Namespace) -> dict:
    overrides: dict = {"region_start": args.range_start, "region_end": args.range_end}
    if args.region_range:
        overrides["region_range"] = args.region_range
    elif args.range_start or args.range_end:
        overrides["region_range"] = "custom"
    return overrides


def _cmd_regions(args: argparse.Namespace) -> None:
    _, dashboard = _dashboard(
        args,
        region_query=args.query,
        **_region_overrides(args),
    )
    regions = sorted(dashboard.regions, key=lambda r: r.rank)
    if args.output_json:
        print(json.dumps([r.as_dict() for r in regions], indent=2, ensure_ascii=False))
        return

    sep = "-" * 80
    print(sep)
    print(f"  Regions  •  {len(regions)} result(s)  •  range {dashboard.selection.region_range}")
    print(sep)
    for r in regions:
        print(f"  #{r.rank:<3} {r.code:<3} {r.name:<16} sales {r.sales:>12,.2f}  units {r.units:>9,.0f}  products {len(r.products)}")
    print(sep)


def _cmd_export(args: argparse.Namespace) -> None:
    from .export import export_rows, write_exports
    from .report import write_reports

    cfg, dashboard = _dashboard(args, product_query=args.query)
    rows = export_rows(dashboard.products)
    try:
        csv_path, json_path = write_exports(
            rows,
            args.out_dir or cfg.storage.exports_dir,
            stem=f"products_{dashboard.as_of.strftime('%Y%m%d')}",
        )
        _, _, text = write_reports(
            dashboard,
            args.reports_dir or cfg.storage.reports_dir,
            timezone_str=cfg.runtime.timezone,
        )
    except OSError as exc:
        print(f"[ERROR] Export failed: {exc}", file=sys.stderr)
        sys.exit(4)

    logger.info("Exported %d product rows for %s", len(rows), dashboard.as_of)
    print(text)
    print(f"📦 Export (CSV):  {csv_path}")
    print(f"📦 Export (JSON): {json_path}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "summary":
        _cmd_summary(args)
    elif args.command == "products":
        _cmd_products(args)
    elif args.command == "regions":
        _cmd_regions(args)
    elif args.command == "export":
        _cmd_export(args)
    else:
        parser.print_help()
        sys.exit(0)

    sys.exit(0)


if __name__ == "__main__":
    main()
