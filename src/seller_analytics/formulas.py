"""Derived-metric formulas shared by every rollup level.

Daily records, period totals, products, parents and regions all derive their
ratios through these functions.  Each guard returns ``0`` instead of NaN or
Infinity when the denominator is zero.
"""

from __future__ import annotations


def margin(sales: float, net_profit: float) -> float:
    """Net profit as a percentage of sales."""
    return net_profit / sales * 100 if sales > 0 else 0.0


def acos(sales: float, ad_spend: float) -> float:
    """Advertising cost of sales, in percent."""
    return ad_spend / sales * 100 if sales > 0 else 0.0


def roi(cogs: float, net_profit: float) -> float:
    """Net profit as a percentage of cost of goods."""
    return net_profit / cogs * 100 if cogs > 0 else 0.0


def average_order_value(sales: float, orders: float) -> float:
    return sales / orders if orders > 0 else 0.0


def gross_profit(sales: float, fees: float, cogs: float, refunds: float) -> float:
    """Profit before advertising and indirect expenses."""
    return sales - fees - cogs - refunds


def net_profit(
    sales: float,
    ad_spend: float,
    fees: float,
    cogs: float,
    refunds: float,
    indirect: float = 0.0,
    margin_factor: float = 1.0,
) -> float:
    """
    Bottom-line profit after every cost, scaled by a marketplace margin factor.

    ``margin_factor`` is 1.0 for the neutral marketplace; other marketplaces
    widen or compress the profit that survives the same cost structure.
    """
    return (gross_profit(sales, fees, cogs, refunds) - ad_spend - indirect) * margin_factor


def estimated_payout(sales: float, fees: float, refunds: float) -> float:
    """Amount Amazon disburses: sales less fees and refunds."""
    return sales - fees - refunds


def percent_change(current: float, previous: float) -> float:
    """``(current - previous) / previous * 100``; 0 when there is no baseline."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def point_change(current: float, previous: float) -> float:
    """Absolute difference, used for fields that are already percentages."""
    return current - previous
