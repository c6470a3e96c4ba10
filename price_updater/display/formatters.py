"""Formatting of prices and cart labels for the product page."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from price_updater.config import settings
from price_updater.discounts.models import PriceBreakdown


def round_half_up(amount: Decimal, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)


def format_price(amount: Decimal, currency: Optional[str] = None) -> str:
    """
    Format an amount for display, e.g. ``1 234.50 грн``.

    Args:
        amount: Amount to format
        currency: Currency label (defaults to the configured label)

    Returns:
        Formatted price string
    """
    currency = currency if currency is not None else settings.currency_label
    number = f"{round_half_up(amount, 2):,.2f}".replace(",", " ")
    return f"{number} {currency}".strip()


def cart_label(
    quantity: int,
    unit: str,
    total: Decimal,
    currency: Optional[str] = None,
) -> str:
    """Add-to-cart caption with the total rounded to whole currency units."""
    currency = currency if currency is not None else settings.currency_label
    return f"До кошика {quantity} {unit} ({round_half_up(total)} {currency})"


def format_breakdown(
    breakdown: PriceBreakdown,
    quantity: int,
    unit: str,
    currency: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Display fields for a price breakdown.

    Formatted strings sit next to the raw numbers so a client can both show
    and recompute prices.
    """
    return {
        "original_price": format_price(breakdown.original_price, currency),
        "unit_price": format_price(breakdown.discounted_price, currency),
        "total_price": format_price(breakdown.total_price, currency),
        "original_price_raw": float(breakdown.original_price),
        "unit_price_raw": float(breakdown.discounted_price),
        "total_price_raw": float(breakdown.total_price),
        "has_discount": breakdown.has_discount,
        "savings_percent": breakdown.savings_percent if breakdown.has_discount else None,
        "quantity": quantity,
        "unit_text": unit,
        "cart_label": cart_label(quantity, unit, breakdown.total_price, currency),
    }
