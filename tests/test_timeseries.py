"""Tests for timeseries.py"""

from datetime import date

import pytest

from seller_analytics import formulas
from seller_analytics.timeseries import FEE_RATE, synthesize, to_date


def test_single_day_record():
    records = synthesize("2025-01-01", "2025-01-01", 0, {"US"})
    assert len(records) == 1
    rec = records[0]
    assert rec.date == date(2025, 1, 1)
    assert rec.margin == formulas.margin(rec.sales, rec.net_profit)
    assert rec.margin == pytest.approx(rec.net_profit / rec.sales * 100)


def test_one_record_per_day_in_order():
    records = synthesize(date(2025, 1, 1), date(2025, 1, 31), 0, ["US"])
    assert len(records) == 31
    assert [r.date.day for r in records] == list(range(1, 32))


def test_is_deterministic():
    a = synthesize("2025-02-01", "2025-02-28", 0, ["US", "DE"])
    b = synthesize("2025-02-01", "2025-02-28", 0, ["DE", "US"])
    assert a == b


def test_inverted_range_is_empty():
    assert synthesize("2025-01-10", "2025-01-01", 0, ["US"]) == []


def test_seed_offset_changes_series():
    a = synthesize("2025-01-01", "2025-01-07", 0, ["US"])
    b = synthesize("2025-01-01", "2025-01-07", 100_000_000, ["US"])
    assert [r.sales for r in a] != [r.sales for r in b]


def test_unknown_marketplaces_match_each_other():
    assert synthesize("2025-01-01", "2025-01-07", 0, ["ZZ"]) == synthesize("2025-01-01", "2025-01-07", 0, ["QQ"])


def test_smaller_marketplace_sells_less():
    us = sum(r.sales for r in synthesize("2025-01-01", "2025-01-31", 0, ["US"]))
    mx = sum(r.sales for r in synthesize("2025-01-01", "2025-01-31", 0, ["MX"]))
    assert mx < us


def test_record_fields_are_consistent():
    for rec in synthesize("2025-03-01", "2025-03-31", 0, ["US"]):
        assert rec.sales > 0
        assert 0 < rec.orders <= rec.units
        assert rec.fees == round(rec.sales * FEE_RATE)
        assert rec.ad_spend > 0
        assert isinstance(rec.net_profit, int)


def test_to_date_accepts_strings_and_dates():
    assert to_date("2025-01-05") == date(2025, 1, 5)
    assert to_date(date(2025, 1, 5)) == date(2025, 1, 5)


def test_to_date_rejects_garbage():
    with pytest.raises(ValueError):
        to_date("not-a-date")


def test_amazon_id_and_code_give_the_same_series():
    us = synthesize("2025-01-01", "2025-01-03", 0, {"US"})
    assert synthesize("2025-01-01", "2025-01-03", 0, {"US", "ATVPDKIKX0DER"}) == us
    assert synthesize("2025-01-01", "2025-01-03", 0, {"US", "us"}) == us


def test_series_reaching_the_last_calendar_day():
    records = synthesize(date(9999, 12, 30), date.max, 0, ["US"])
    assert [r.date for r in records] == [date(9999, 12, 30), date.max]
