"""Quantity bracket pricing."""

from decimal import Decimal
from typing import Optional

from price_updater.discounts.models import Bracket, DiscountRule, PriceBreakdown, ProductSnapshot


def clamp_quantity(quantity: Optional[int], minimum: int) -> int:
    """Raise a requested quantity to the product's minimum purchasable quantity."""
    minimum = max(1, minimum)
    if quantity is None:
        return minimum
    return max(minimum, quantity)


def find_bracket(rule: DiscountRule, quantity: int) -> Optional[Bracket]:
    """First bracket of the rule whose range contains the quantity."""
    for bracket in rule.brackets:
        if bracket.contains(quantity):
            return bracket
    return None


def compute_breakdown(
    product: ProductSnapshot,
    quantity: int,
    rule: Optional[DiscountRule] = None,
) -> PriceBreakdown:
    """
    Price a product at a quantity under an optional discount rule.

    Only bulk rules change the price. The quantity is expected to be clamped
    to the product minimum already.

    Args:
        product: Product being priced
        quantity: Requested quantity
        rule: Rule selected for the product, if any

    Returns:
        PriceBreakdown with unit prices and the total for the quantity
    """
    original_price = product.price
    discounted_price = original_price
    has_discount = False

    if rule is not None and rule.is_bulk:
        bracket = find_bracket(rule, quantity)
        if bracket is not None:
            discounted_price = bracket.apply(original_price)
            has_discount = True

    return PriceBreakdown(
        original_price=original_price,
        discounted_price=discounted_price,
        has_discount=has_discount,
        total_price=discounted_price * Decimal(quantity),
    )
