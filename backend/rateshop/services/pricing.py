"""
Customer pricing - applies margin and minimum profit on top of carrier cost.

The carrier cost is always the network's total. A customer-specific margin
overrides the default margin; the customer price never falls below
cost + minimum profit.
"""
from dataclasses import dataclass
from typing import Any, Optional

from rateshop.schemas.quote import Quote

# Charge codes that make up the linehaul/base portion of a rate breakdown
BASE_CHARGE_CODES = {"ITEM", "LINEHAUL", "BASE", "MIN", "DEFICIT", "DSC", "DISCOUNT"}
FUEL_CHARGE_CODES = {"FSC", "FUEL", "FUEL_SURCHARGE"}


@dataclass
class PricingSettings:
    margin_percentage: float = 15.0
    minimum_profit: float = 0.0


def apply_margin(base_cost: float, margin_percentage: float) -> float:
    return base_cost * (1 + margin_percentage / 100)


def calculate_margin(customer_price: float, carrier_cost: float) -> float:
    if carrier_cost == 0:
        return 0.0
    return (customer_price - carrier_cost) / carrier_cost * 100


def calculate_profit(customer_price: float, carrier_cost: float) -> float:
    return customer_price - carrier_cost


def format_currency(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def _is_fuel(code: Optional[str], description: Optional[str]) -> bool:
    return (code or "").upper() in FUEL_CHARGE_CODES or "fuel" in (description or "").lower()


def _customer_value(customer: Any, field: str) -> Optional[float]:
    if customer is None:
        return None
    value = customer.get(field) if isinstance(customer, dict) else getattr(customer, field, None)
    return float(value) if value is not None else None


def price(quote: Quote, settings: PricingSettings, customer: Any = None) -> Quote:
    """
    Return a priced copy of the quote.

    Raises:
        ValueError: when the quote has no positive carrier cost or the
            effective margin is not above -100%.
    """
    cost = quote.total
    if cost is None or cost <= 0:
        raise ValueError(f"Quote {quote.quote_id} has no carrier cost to price")

    margin = _customer_value(customer, "margin_percentage")
    if margin is None:
        margin = settings.margin_percentage
    if margin <= -100:
        raise ValueError(f"Invalid margin percentage: {margin}")
    minimum_profit = _customer_value(customer, "minimum_profit")
    if minimum_profit is None:
        minimum_profit = settings.minimum_profit

    customer_price = max(apply_margin(cost, margin), cost + minimum_profit)
    customer_price = round(customer_price, 2)

    updates = {
        "carrier_total_rate": cost,
        "customer_price": customer_price,
        "profit": round(calculate_profit(customer_price, cost), 2),
        "applied_margin_percentage": round(calculate_margin(customer_price, cost), 2),
    }

    if quote.charges:
        base = sum(c.amount for c in quote.charges if (c.code or "").upper() in BASE_CHARGE_CODES)
        fuel = sum(c.amount for c in quote.charges if _is_fuel(c.code, c.description))
        accessorials = [
            c for c in quote.charges
            if (c.code or "").upper() not in BASE_CHARGE_CODES and not _is_fuel(c.code, c.description)
        ]
        if base or fuel:
            updates["base_rate"] = round(base, 2)
            updates["fuel_surcharge"] = round(fuel, 2)
        updates["accessorial"] = accessorials
    elif not quote.base_rate and not quote.fuel_surcharge:
        updates["base_rate"] = cost

    return quote.model_copy(update=updates)
