"""Price quote engine for the single product page."""

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from price_updater import metrics
from price_updater.config import settings
from price_updater.discounts.matcher import select_rule
from price_updater.discounts.models import (
    DiscountRule,
    PriceBreakdown,
    ProductSnapshot,
    parse_rules,
)
from price_updater.discounts.pricing import clamp_quantity, compute_breakdown
from price_updater.display.formatters import format_breakdown
from price_updater.display.units import unit_text
from price_updater.logging_config import get_logger
from price_updater.storage.repository import PriceRepository


class ProductNotFoundError(LookupError):
    """Raised when a quote is requested for an unknown product."""

    pass


@dataclass(frozen=True)
class TaxPolicy:
    """How stored prices relate to the prices shown to shoppers."""

    enabled: bool = False
    display: str = "excl"  # "incl" or "excl"
    prices_include_tax: bool = False
    rate_percent: Decimal = Decimal("0")

    @classmethod
    def from_settings(cls) -> "TaxPolicy":
        return cls(
            enabled=settings.tax_enabled,
            display=settings.tax_display.lower(),
            prices_include_tax=settings.prices_include_tax,
            rate_percent=Decimal(str(settings.tax_rate_percent)),
        )

    def adjust(self, price: Decimal) -> Decimal:
        """Convert a stored price into the displayed price."""
        if not self.enabled or self.rate_percent <= 0:
            return price
        multiplier = 1 + self.rate_percent / Decimal("100")
        if self.display == "incl" and not self.prices_include_tax:
            return price * multiplier
        if self.display != "incl" and self.prices_include_tax:
            return price / multiplier
        return price

    def apply(self, breakdown: PriceBreakdown, quantity: int) -> PriceBreakdown:
        """Adjust both unit prices; the total follows the adjusted unit price."""
        discounted = self.adjust(breakdown.discounted_price)
        return PriceBreakdown(
            original_price=self.adjust(breakdown.original_price),
            discounted_price=discounted,
            has_discount=breakdown.has_discount,
            total_price=discounted * Decimal(quantity),
        )


@dataclass(frozen=True)
class PriceQuote:
    """A priced quantity of a product, ready for display."""

    product: ProductSnapshot
    quantity: int
    breakdown: PriceBreakdown
    unit_text: str
    rule: Optional[DiscountRule] = None

    def to_dict(self) -> Dict[str, Any]:
        data = format_breakdown(self.breakdown, self.quantity, self.unit_text)
        data["product_id"] = self.product.id
        data["rule_id"] = self.rule.id if self.rule else None
        return data


class PriceEngine:
    """Builds price quotes from stored products and discount rules."""

    def __init__(self, repository: PriceRepository, tax: Optional[TaxPolicy] = None):
        self.repository = repository
        self.tax = tax if tax is not None else TaxPolicy.from_settings()

    async def quote(self, product_id: int, quantity: Optional[int] = None) -> PriceQuote:
        """
        Price a product at a requested quantity.

        Args:
            product_id: Product ID
            quantity: Requested quantity; defaults to the product minimum

        Returns:
            PriceQuote for the clamped quantity

        Raises:
            ProductNotFoundError: if the product does not exist
        """
        started = time.perf_counter()
        log = get_logger(__name__, product_id=product_id)

        product = await self.repository.get_product(product_id)
        if product is None:
            metrics.record_quote("not_found", time.perf_counter() - started)
            raise ProductNotFoundError(f"Product {product_id} not found")

        quantity = clamp_quantity(quantity, product.min_quantity)
        log = log.bind(quantity=quantity)

        rules = parse_rules(await self.repository.get_rule_records())
        rule = select_rule(product, rules)

        breakdown = self.tax.apply(compute_breakdown(product, quantity, rule), quantity)

        if rule is not None:
            log.info(
                f"Priced with {rule.rule_type} rule: {breakdown.discounted_price} per unit",
                extra={"rule_id": rule.id},
            )
        else:
            log.debug("No discount rule applies")

        outcome = "discounted" if breakdown.has_discount else "regular"
        metrics.record_quote(outcome, time.perf_counter() - started)

        return PriceQuote(
            product=product,
            quantity=quantity,
            breakdown=breakdown,
            unit_text=unit_text(product, quantity),
            rule=rule,
        )
