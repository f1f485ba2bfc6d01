"""Tests for export.py"""

import csv
import io
import json

import pytest

from seller_analytics.catalog import default_catalog
from seller_analytics.export import (
    EXPORT_COLUMNS,
    export_rows,
    to_csv_text,
    to_dataframe,
    write_csv,
    write_exports,
)
from seller_analytics.products import rollup_products

AWKWARD_CATALOG = [
    {
        "asin": "B0AWKWARD1",
        "sku": "MUG;01",
        "name": 'Mug, "Big"\nRed',
        "marketplace": "US",
        "sales": 100.0,
        "units": 3,
        "cogs": 30.0,
    }
]


def _rows(catalog=None):
    return export_rows(rollup_products(catalog or default_catalog(), 7, ["US"]))


def test_one_row_per_product_and_variant():
    rows = _rows()
    assert len(rows) == 13
    assert [r["type"] for r in rows[1:5]] == ["product", "variant", "variant", "variant"]
    assert rows[2]["parent_asin"] == "B0DRIGZWKC"
    assert rows[0]["parent_asin"] == ""


def test_rows_carry_every_column():
    for row in _rows():
        assert set(row) == set(EXPORT_COLUMNS)


def test_row_values():
    row = _rows()[0]
    assert row["asin"] == "B0XXYYZZ11"
    assert row["sales"] == pytest.approx(1322.0)
    assert row["sales_organic"] == pytest.approx(920.0)
    assert row["ad_sponsored_brands_video"] == pytest.approx(15.0)
    assert row["fee_referral"] == pytest.approx(198.0)
    assert row["refund_refund_commission"] == pytest.approx(2.0)
    assert row["gross_profit"] == pytest.approx(1322 - 198 - 396 - 26)
    assert row["estimated_payout"] == pytest.approx(1322 - 198 - 26)
    assert row["margin_pct"] == pytest.approx(387 / 1322 * 100)


def test_dataframe_column_order():
    df = to_dataframe(_rows())
    assert list(df.columns) == EXPORT_COLUMNS
    assert df["stock"].dtype == float


def test_csv_numbers_have_two_decimals():
    text = to_csv_text(_rows())
    header, first = list(csv.reader(io.StringIO(text)))[:2]
    assert header == EXPORT_COLUMNS
    assert first[header.index("sales")] == "1322.00"
    assert first[header.index("stock")] == "412.00"


def test_csv_escapes_and_quotes_text():
    text = to_csv_text(_rows(AWKWARD_CATALOG))
    assert len(text.splitlines()) == 2
    header, row = list(csv.reader(io.StringIO(text)))
    assert row[header.index("name")] == 'Mug, "Big"\\nRed'
    assert row[header.index("sku")] == "MUG;01"
    assert row[header.index("sales")] == "100.00"


def test_write_csv(tmp_path):
    path = write_csv(_rows(), tmp_path / "nested" / "products.csv")
    assert path.exists()
    assert path.read_text(encoding="utf-8").startswith("type,asin,sku,name")


def test_write_exports(tmp_path):
    rows = _rows()
    csv_path, json_path = write_exports(rows, tmp_path, stem="products_test")
    assert csv_path.name == "products_test.csv"
    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert len(data) == len(rows)
    assert data[0]["sales"] == 1322.0
    assert data[0]["margin_pct"] == round(387 / 1322 * 100, 2)


def test_empty_export():
    text = to_csv_text([])
    assert text.strip() == ",".join(EXPORT_COLUMNS)
