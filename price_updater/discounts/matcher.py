"""Selection of the discount rule that applies to a product."""

import logging
from typing import Iterable, Optional

from price_updater.discounts.models import Comparison, DiscountRule, ProductSnapshot

logger = logging.getLogger(__name__)


def rule_matches(rule: DiscountRule, product: ProductSnapshot) -> bool:
    """
    Check whether a rule's conditions select the product.

    Conditions are read in order and the first one that covers the product
    decides: include selects the rule, exclude rejects it. A rule whose
    conditions never cover the product does not apply.
    """
    for condition in rule.conditions:
        if not condition.applies_to(product):
            continue
        return condition.comparison == Comparison.INCLUDE
    return False


def select_rule(
    product: ProductSnapshot,
    rules: Iterable[DiscountRule],
) -> Optional[DiscountRule]:
    """
    Pick the single discount rule that applies to a product.

    Rules are tried from the highest condition priority down; rules of equal
    priority keep their given order.

    Args:
        product: Product being priced
        rules: Candidate rules

    Returns:
        The first matching rule, or None
    """
    subject = product.matching_subject()

    for rule in sorted(rules, key=lambda r: r.priority, reverse=True):
        if rule_matches(rule, subject):
            logger.debug(
                f"Discount rule {rule.id} ({rule.title or rule.rule_type}) "
                f"selected for product {product.id}"
            )
            return rule

    return None
