"""Tests for products.py"""

import pytest

from seller_analytics import formulas
from seller_analytics.catalog import default_catalog
from seller_analytics.models import BREAKDOWNS, FLOW_FIELDS
from seller_analytics.products import (
    flatten_products,
    rollup_products,
    search_products,
    sort_products,
)

ROBE_PARENT = "B0DRIGZWKC"

SIMPLE_PARENT = [
    {
        "asin": "P1",
        "sku": "PARENT",
        "name": "Two Variant Parent",
        "children": [
            {"asin": "C1", "sku": "C1-SKU", "name": "Variant One", "sales": 420.0, "cogs": 100.0, "stock": 5, "rank": 900},
            {"asin": "C2", "sku": "C2-SKU", "name": "Variant Two", "sales": 280.0, "cogs": 200.0, "stock": 7, "rank": 300},
        ],
    }
]


def _by_asin(records):
    return {r.asin: r for r in flatten_products(records)}


def test_neutral_week_matches_catalog():
    records = _by_asin(rollup_products(default_catalog(), 7, ["US"]))
    mat = records["B0XXYYZZ11"]
    assert mat.sales == pytest.approx(1322.0)
    assert mat.ad_spend == pytest.approx(275.0)
    assert mat.net_profit == pytest.approx(1322 - 198 - 396 - 26 - 275 - 40)


def test_catalog_order_and_nesting_preserved():
    records = rollup_products(default_catalog(), 7, ["US"])
    assert [r.asin for r in records] == [e["asin"] for e in default_catalog()]
    parent = records[1]
    assert parent.is_parent
    assert [c.asin for c in parent.children] == ["B0DRIGZWK1", "B0DRIGZWK2", "B0DRIGZWK3"]
    assert all(c.parent_asin == ROBE_PARENT for c in parent.children)


def test_parent_sales_is_sum_of_variants():
    parent = rollup_products(SIMPLE_PARENT, 7, ["US"])[0]
    assert parent.sales == pytest.approx(700.0)


def test_parent_margin_uses_parent_totals():
    parent = rollup_products(SIMPLE_PARENT, 7, ["US"])[0]
    c1, c2 = parent.children
    assert parent.net_profit == pytest.approx(400.0)
    assert parent.margin == pytest.approx(formulas.margin(700.0, parent.net_profit))
    assert parent.margin != pytest.approx((c1.margin + c2.margin) / 2)


def test_parents_reconcile_with_variants():
    for marketplaces in (["US"], ["DE", "JP"], ["ZZ"]):
        for rec in rollup_products(default_catalog(), 30, marketplaces):
            if not rec.is_parent:
                continue
            for name in FLOW_FIELDS:
                assert getattr(rec, name) == pytest.approx(sum(getattr(c, name) for c in rec.children))
            for name, keys in BREAKDOWNS.items():
                for k in keys:
                    assert getattr(rec, name)[k] == pytest.approx(sum(getattr(c, name)[k] for c in rec.children))
            assert rec.stock == sum(c.stock for c in rec.children)


def test_parent_rank_is_best_variant_rank():
    parent = rollup_products(SIMPLE_PARENT, 7, ["US"])[0]
    assert parent.rank == 300
    assert parent.stock == 12


def test_scale_is_linear_in_period_length():
    week = _by_asin(rollup_products(default_catalog(), 7, ["US", "DE"]))
    fortnight = _by_asin(rollup_products(default_catalog(), 14, ["US", "DE"]))
    assert week.keys() == fortnight.keys()
    for asin, rec in week.items():
        doubled = fortnight[asin]
        for name in FLOW_FIELDS:
            assert getattr(doubled, name) == pytest.approx(2 * getattr(rec, name))
        for name in BREAKDOWNS:
            for k, v in getattr(rec, name).items():
                assert getattr(doubled, name)[k] == pytest.approx(2 * v)
        assert doubled.stock == rec.stock


def test_marketplace_blend():
    mat = _by_asin(rollup_products(default_catalog(), 7, ["DE"]))["B0XXYYZZ11"]
    assert mat.sales == pytest.approx(1322.0 * 0.55)
    assert mat.ad_spend == pytest.approx(275.0 * 0.55 * 0.90)
    expected = formulas.net_profit(
        1322.0 * 0.55, 275.0 * 0.55 * 0.90, 198.0 * 0.55, 396.0 * 0.55, 26.0 * 0.55, 40.0 * 0.55, 1.10
    )
    assert mat.net_profit == pytest.approx(expected)


def test_missing_breakdowns_are_zero():
    grey = _by_asin(rollup_products(default_catalog(), 7, ["US"]))["B0DRIGZWK3"]
    assert grey.sales_channels == {"organic": 0.0, "sponsored_products": 0.0, "sponsored_display": 0.0}
    assert sum(grey.fee_breakdown.values()) == 0


def test_zero_days_gives_zero_flows():
    for rec in flatten_products(rollup_products(default_catalog(), 0, ["US"])):
        assert rec.sales == 0
        assert rec.net_profit == 0
        assert rec.margin == 0


def test_record_types():
    records = _by_asin(rollup_products(default_catalog(), 7, ["US"]))
    assert records[ROBE_PARENT].record_type == "product"
    assert records["B0DRIGZWK1"].record_type == "variant"


def test_sort_descending_by_sales():
    records = sort_products(rollup_products(default_catalog(), 7, ["US"]), "sales")
    sales = [r.sales for r in records]
    assert sales == sorted(sales, reverse=True)


def test_sort_ascending_by_margin():
    records = sort_products(rollup_products(default_catalog(), 7, ["US"]), "margin", descending=False)
    margins = [r.margin for r in records]
    assert margins == sorted(margins)


def test_sort_keeps_variant_order():
    records = sort_products(rollup_products(default_catalog(), 7, ["US"]), "units", descending=False)
    parent = next(r for r in records if r.asin == ROBE_PARENT)
    assert [c.asin for c in parent.children] == ["B0DRIGZWK1", "B0DRIGZWK2", "B0DRIGZWK3"]


def test_unknown_sort_key_uses_net_profit():
    records = rollup_products(default_catalog(), 7, ["US"])
    assert sort_products(records, "colour") == sort_products(records, "net_profit")


def test_search_by_variant_asin_returns_whole_parent():
    found = search_products(rollup_products(default_catalog(), 7, ["US"]), "b0drigzwk2")
    assert [r.asin for r in found] == [ROBE_PARENT]
    assert len(found[0].children) == 3


def test_search_by_name_is_case_insensitive():
    found = search_products(rollup_products(default_catalog(), 7, ["US"]), "  YOGA   mat ")
    assert [r.asin for r in found] == ["B0XXYYZZ11"]


def test_empty_search_returns_everything():
    records = rollup_products(default_catalog(), 7, ["US"])
    assert search_products(records, "") == records
    assert search_products(records, None) == records


def test_search_without_match():
    assert search_products(rollup_products(default_catalog(), 7, ["US"]), "toaster") == []


def test_flatten_lists_variants_after_parent():
    records = rollup_products(default_catalog(), 7, ["US"])
    asins = [r.asin for r in flatten_products(records)]
    idx = asins.index(ROBE_PARENT)
    assert asins[idx + 1 : idx + 4] == ["B0DRIGZWK1", "B0DRIGZWK2", "B0DRIGZWK3"]
    assert len(asins) == 13
