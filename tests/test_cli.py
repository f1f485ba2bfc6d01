"""Tests for cli.py"""

import json

import pytest

from seller_analytics.cli import main

AS_OF = ["--as-of", "2025-03-12"]


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


def test_no_command_prints_help(capsys):
    assert _run([]) == 0
    assert "seller-analytics" in capsys.readouterr().out


def test_summary(capsys):
    assert _run(["summary", *AS_OF]) == 0
    out = capsys.readouterr().out
    assert "Today" in out
    assert "Last Month" in out


def test_summary_json(capsys):
    assert _run(["summary", *AS_OF, "--period-set", "weeks", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [p["period_id"] for p in data["periods"]] == ["this-week", "last-week"]
    assert "sales" in data["changes"]


def test_custom_range_implied_by_dates(capsys):
    assert _run(["summary", *AS_OF, "--start", "2025-02-01", "--end", "2025-02-07", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["meta"]["period_set"] == "custom"


def test_custom_range_needs_both_dates(capsys):
    assert _run(["summary", *AS_OF, "--period-set", "custom", "--start", "2025-02-01"]) == 2
    assert "[ERROR]" in capsys.readouterr().err


def test_invalid_date_exits_2():
    assert _run(["summary", "--as-of", "12/03/2025x"]) == 2


def test_missing_config_exits_2(tmp_path, capsys):
    assert _run(["summary", "--config", str(tmp_path / "missing.yaml")]) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_bad_catalog_exits_2(tmp_path):
    (tmp_path / "catalog.yaml").write_text("- name: no asin\n", encoding="utf-8")
    (tmp_path / "config.yaml").write_text("engine:\n  catalog_path: catalog.yaml\n", encoding="utf-8")
    assert _run(["products", "--config", str(tmp_path / "config.yaml")]) == 2


def test_products_json_with_query(capsys):
    assert _run(["products", *AS_OF, "--query", "B0DRIGZWK2", "--json"]) == 0
    records = json.loads(capsys.readouterr().out)
    assert [r["asin"] for r in records] == ["B0DRIGZWKC"]
    assert len(records[0]["children"]) == 3


def test_products_table(capsys):
    assert _run(["products", *AS_OF, "--sort", "sales", "--marketplace", "US", "--marketplace", "DE"]) == 0
    out = capsys.readouterr().out
    assert "B0XXYYZZ11" in out
    assert "└ B0DRIGZWK1" in out


def test_regions_json(capsys):
    assert _run(["regions", *AS_OF, "--range", "7d", "--query", "texas", "--json"]) == 0
    regions = json.loads(capsys.readouterr().out)
    assert [r["code"] for r in regions] == ["TX"]


def test_regions_custom_range(capsys):
    argv = ["regions", *AS_OF, "--range-start", "2025-03-01", "--range-end", "2025-03-30", "--json"]
    assert _run(argv) == 0
    regions = json.loads(capsys.readouterr().out)
    assert len(regions) == 20
    assert [r["rank"] for r in regions] == list(range(1, 21))


def test_export_writes_files(tmp_path, capsys):
    argv = ["export", *AS_OF, "--out-dir", str(tmp_path / "out"), "--reports-dir", str(tmp_path / "rep")]
    assert _run(argv) == 0
    assert (tmp_path / "out" / "products_20250312.csv").exists()
    assert (tmp_path / "out" / "products_20250312.json").exists()
    assert list((tmp_path / "rep").glob("summary_20250312_*.md"))
    assert "Export (CSV)" in capsys.readouterr().out


def test_config_drives_defaults(tmp_path, capsys):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("engine:\n  marketplaces: [DE]\n  period_set: days\n  regions: [CA, NY]\n", encoding="utf-8")
    assert _run(["summary", "--config", str(cfg), *AS_OF, "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["meta"]["marketplaces"] == ["DE"]
    assert data["meta"]["total_regions"] == 2
    assert [p["period_id"] for p in data["periods"]] == ["today", "yesterday"]
