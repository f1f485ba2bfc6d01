"""Tests for api.py"""

import csv
import io

from fastapi.testclient import TestClient

from seller_analytics.api import app

client = TestClient(app)

AS_OF = {"as_of": "2025-03-12"}


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_marketplaces():
    data = {m["code"]: m for m in client.get("/marketplaces").json()}
    assert data["US"]["sales"] == 1.0
    assert "ATVPDKIKX0DER" in data["US"]["aliases"]
    assert "GB" in data["UK"]["aliases"]


def test_daily_series():
    r = client.get("/daily", params={"start": "2025-01-01", "end": "2025-01-07"})
    assert r.status_code == 200
    data = r.json()
    assert len(data["series"]) == 7
    assert data["totals"]["sales"] == sum(d["sales"] for d in data["series"])


def test_daily_weekly_buckets():
    r = client.get("/daily", params={"start": "2025-03-03", "end": "2025-03-16", "granularity": "weekly"})
    assert len(r.json()["series"]) == 2


def test_daily_invalid_date():
    r = client.get("/daily", params={"start": "2025-13-01", "end": "2025-01-07"})
    assert r.status_code == 422


def test_daily_invalid_granularity():
    r = client.get("/daily", params={"start": "2025-01-01", "end": "2025-01-07", "granularity": "hourly"})
    assert r.status_code == 422


def test_periods():
    data = client.get("/periods", params=AS_OF).json()
    assert [p["period_id"] for p in data["periods"]] == ["today", "yesterday", "this-month", "last-month"]
    assert "daily" not in data["periods"][0]
    assert "sales" in data["changes"]


def test_periods_custom_with_daily():
    params = {**AS_OF, "start": "2025-02-01", "end": "2025-02-10", "include_daily": "true"}
    data = client.get("/periods", params=params).json()
    assert [p["period_id"] for p in data["periods"]] == ["custom", "previous"]
    assert len(data["periods"][0]["daily"]) == 10


def test_periods_invalid_as_of():
    assert client.get("/periods", params={"as_of": "yesterday"}).status_code == 422


def test_products_search():
    data = client.get("/products", params={**AS_OF, "query": "B0DRIGZWK2"}).json()
    assert [p["asin"] for p in data["products"]] == ["B0DRIGZWKC"]
    assert data["days"] == 1


def test_products_export_csv():
    r = client.get("/products/export.csv", params={**AS_OF, "period_set": "weeks"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "products_20250312.csv" in r.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(r.text)))
    assert rows[0][:3] == ["type", "asin", "sku"]
    assert len(rows) == 14


def test_regions():
    data = client.get("/regions", params={"range": "7d"}).json()
    assert data["range"] == "7d"
    assert len(data["regions"]) == 20
    assert max(data["intensity"].values()) == 100.0


def test_regions_query_and_stock_mode():
    data = client.get("/regions", params={"query": "texas", "mode": "stock"}).json()
    assert [r["code"] for r in data["regions"]] == ["TX"]
    assert data["intensity"] == {"TX": 100.0}


def test_regions_invalid_mode():
    assert client.get("/regions", params={"mode": "profit"}).status_code == 422


def test_regions_invalid_custom_date():
    assert client.get("/regions", params={"range_start": "2025-02-30"}).status_code == 422


def test_periods_at_first_calendar_day():
    params = {"start": "0001-01-01", "end": "0001-01-02", "as_of": "0001-01-02"}
    r = client.get("/periods", params=params)
    assert r.status_code == 200
    current, previous = r.json()["periods"]
    assert current["totals"]["days"] == 2
    assert previous["totals"]["sales"] == 0


def test_products_at_first_calendar_day():
    r = client.get("/products", params={"as_of": "0001-01-01"})
    assert r.status_code == 200
    assert r.json()["days"] == 1
