"""Immutable value types passed between the engine layers."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from . import formulas

# Breakdown keys carried by products and regions.  A catalog entry may omit any
# of them; missing entries are zero.
SALES_CHANNELS = ("organic", "sponsored_products", "sponsored_display")
UNITS_CHANNELS = ("organic", "sponsored_products", "sponsored_display")
AD_CHANNELS = ("sponsored_products", "sponsored_brands", "sponsored_brands_video", "sponsored_display")
FEE_KINDS = ("referral", "fba_fulfillment", "storage", "other")
REFUND_KINDS = ("refunded_amount", "refund_commission", "return_processing")

BREAKDOWNS: dict[str, tuple[str, ...]] = {
    "sales_channels": SALES_CHANNELS,
    "units_channels": UNITS_CHANNELS,
    "ad_channels": AD_CHANNELS,
    "fee_breakdown": FEE_KINDS,
    "refund_breakdown": REFUND_KINDS,
}

# Fields that accumulate over time.  They scale with period length and are
# summed from children into parents and from products into regions.
FLOW_FIELDS = (
    "units",
    "orders",
    "sales",
    "ad_spend",
    "fees",
    "cogs",
    "refunds",
    "indirect_expenses",
    "net_profit",
)


@dataclass(frozen=True)
class MarketplaceMultiplier:
    sales: float
    margin: float
    acos: float


@dataclass(frozen=True)
class ScaleFactors:
    """
    The one blending rule for synthesized product and region figures.

    Revenue, volume and cost fields scale by ``volume``; advertising spend by
    ``volume * acos``; net profit is derived from the scaled components and
    multiplied by ``margin``.
    """

    volume: float
    margin: float = 1.0
    acos: float = 1.0

    def scaled(self, share: float) -> "ScaleFactors":
        return ScaleFactors(volume=self.volume * share, margin=self.margin, acos=self.acos)


@dataclass(frozen=True)
class DailyMetricRecord:
    date: date
    sales: int
    units: int
    orders: int
    ad_spend: int
    fees: int
    cogs: int
    refunds: int
    net_profit: int

    @property
    def margin(self) -> float:
        return formulas.margin(self.sales, self.net_profit)

    @property
    def acos(self) -> float:
        return formulas.acos(self.sales, self.ad_spend)

    @property
    def roi(self) -> float:
        return formulas.roi(self.cogs, self.net_profit)

    @property
    def average_order_value(self) -> float:
        return formulas.average_order_value(self.sales, self.orders)

    def as_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "sales": self.sales,
            "units": self.units,
            "orders": self.orders,
            "ad_spend": self.ad_spend,
            "fees": self.fees,
            "cogs": self.cogs,
            "refunds": self.refunds,
            "net_profit": self.net_profit,
            "margin": round(self.margin, 2),
            "acos": round(self.acos, 2),
            "average_order_value": round(self.average_order_value, 2),
        }


@dataclass(frozen=True)
class PeriodTotals:
    label: str = ""
    start: date | None = None
    end: date | None = None
    days: int = 0
    sales: int = 0
    units: int = 0
    orders: int = 0
    ad_spend: int = 0
    fees: int = 0
    cogs: int = 0
    refunds: int = 0
    net_profit: int = 0

    @property
    def margin(self) -> float:
        return formulas.margin(self.sales, self.net_profit)

    @property
    def acos(self) -> float:
        return formulas.acos(self.sales, self.ad_spend)

    @property
    def roi(self) -> float:
        return formulas.roi(self.cogs, self.net_profit)

    @property
    def average_order_value(self) -> float:
        return formulas.average_order_value(self.sales, self.orders)

    def as_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "days": self.days,
            "sales": self.sales,
            "units": self.units,
            "orders": self.orders,
            "ad_spend": self.ad_spend,
            "fees": self.fees,
            "cogs": self.cogs,
            "refunds": self.refunds,
            "net_profit": self.net_profit,
            "margin": round(self.margin, 2),
            "acos": round(self.acos, 2),
            "roi": round(self.roi, 2),
            "average_order_value": round(self.average_order_value, 2),
        }


class _ProfitMixin:
    """Derived figures shared by products and regions."""

    sales: float
    ad_spend: float
    fees: float
    cogs: float
    refunds: float
    orders: float
    net_profit: float

    @property
    def margin(self) -> float:
        return formulas.margin(self.sales, self.net_profit)

    @property
    def roi(self) -> float:
        return formulas.roi(self.cogs, self.net_profit)

    @property
    def acos(self) -> float:
        return formulas.acos(self.sales, self.ad_spend)

    @property
    def average_order_value(self) -> float:
        return formulas.average_order_value(self.sales, self.orders)

    @property
    def gross_profit(self) -> float:
        return formulas.gross_profit(self.sales, self.fees, self.cogs, self.refunds)

    @property
    def estimated_payout(self) -> float:
        return formulas.estimated_payout(self.sales, self.fees, self.refunds)


@dataclass(frozen=True)
class ProductRecord(_ProfitMixin):
    asin: str
    sku: str = ""
    name: str = ""
    marketplace: str = ""
    parent_asin: str | None = None
    units: float = 0.0
    orders: float = 0.0
    sales: float = 0.0
    ad_spend: float = 0.0
    fees: float = 0.0
    cogs: float = 0.0
    refunds: float = 0.0
    indirect_expenses: float = 0.0
    net_profit: float = 0.0
    stock: int = 0
    rank: int = 0
    sales_channels: dict[str, float] = field(default_factory=dict)
    units_channels: dict[str, float] = field(default_factory=dict)
    ad_channels: dict[str, float] = field(default_factory=dict)
    fee_breakdown: dict[str, float] = field(default_factory=dict)
    refund_breakdown: dict[str, float] = field(default_factory=dict)
    children: tuple["ProductRecord", ...] = ()

    @property
    def is_parent(self) -> bool:
        return bool(self.children)

    @property
    def record_type(self) -> str:
        return "variant" if self.parent_asin else "product"

    def identity(self) -> tuple[str, ...]:
        return (self.asin, self.sku, self.name)

    def as_dict(self) -> dict[str, Any]:
        data = {
            "asin": self.asin,
            "sku": self.sku,
            "name": self.name,
            "marketplace": self.marketplace,
            "parent_asin": self.parent_asin,
            "type": self.record_type,
            "stock": self.stock,
            "rank": self.rank,
        }
        for name in FLOW_FIELDS:
            data[name] = round(getattr(self, name), 2)
        for name in BREAKDOWNS:
            data[name] = {k: round(v, 2) for k, v in getattr(self, name).items()}
        data.update(
            {
                "gross_profit": round(self.gross_profit, 2),
                "estimated_payout": round(self.estimated_payout, 2),
                "margin": round(self.margin, 2),
                "roi": round(self.roi, 2),
                "acos": round(self.acos, 2),
                "children": [c.as_dict() for c in self.children],
            }
        )
        return data


@dataclass(frozen=True)
class RegionRecord(_ProfitMixin):
    code: str
    name: str = ""
    units: float = 0.0
    orders: float = 0.0
    sales: float = 0.0
    ad_spend: float = 0.0
    fees: float = 0.0
    cogs: float = 0.0
    refunds: float = 0.0
    indirect_expenses: float = 0.0
    net_profit: float = 0.0
    stock: int = 0
    rank: int = 0
    sales_channels: dict[str, float] = field(default_factory=dict)
    units_channels: dict[str, float] = field(default_factory=dict)
    ad_channels: dict[str, float] = field(default_factory=dict)
    fee_breakdown: dict[str, float] = field(default_factory=dict)
    refund_breakdown: dict[str, float] = field(default_factory=dict)
    products: tuple[ProductRecord, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "name": self.name, "stock": self.stock, "rank": self.rank}
        for name in FLOW_FIELDS:
            data[name] = round(getattr(self, name), 2)
        for name in BREAKDOWNS:
            data[name] = {k: round(v, 2) for k, v in getattr(self, name).items()}
        data.update(
            {
                "gross_profit": round(self.gross_profit, 2),
                "margin": round(self.margin, 2),
                "roi": round(self.roi, 2),
                "acos": round(self.acos, 2),
                "products": [p.as_dict() for p in self.products],
            }
        )
        return data


@dataclass(frozen=True)
class Selection:
    """
    Caller-facing configuration of one dashboard view.

    A fresh Selection is built for every interaction; :meth:`replace` returns a
    modified copy and the pipeline re-derives everything from it.
    """

    period_set: str = "default"
    start: date | None = None
    end: date | None = None
    marketplaces: frozenset[str] = frozenset({"US"})
    product_query: str = ""
    sort_key: str = "net_profit"
    sort_descending: bool = True
    region_range: str = "30d"
    region_start: date | None = None
    region_end: date | None = None
    region_query: str = ""
    as_of: date | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.marketplaces, frozenset):
            object.__setattr__(self, "marketplaces", frozenset(self.marketplaces))

    def replace(self, **changes: Any) -> "Selection":
        return dataclasses.replace(self, **changes)
