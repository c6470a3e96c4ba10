"""Discount rule definitions and parsing of stored rule records."""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Iterable, Optional

from price_updater import metrics

logger = logging.getLogger(__name__)

BULK_RULE_TYPE = "bulk"


class MalformedRuleError(ValueError):
    """Raised when a stored rule or bracket record cannot be understood."""

    pass


class ConditionKind(str, Enum):
    """What a condition matches a product against."""

    ALL = "all"
    PRODUCT = "product"
    PRODUCT_TYPE = "product_type"
    PRODUCT_CATEGORY = "product_category"
    PRODUCT_TAG = "product_tag"

    @property
    def priority(self) -> int:
        """Match priority; higher wins when several rules could apply."""
        return CONDITION_PRIORITIES[self]


CONDITION_PRIORITIES = {
    ConditionKind.ALL: 10,
    ConditionKind.PRODUCT_TYPE: 30,
    ConditionKind.PRODUCT_CATEGORY: 30,
    ConditionKind.PRODUCT_TAG: 30,
    ConditionKind.PRODUCT: 40,
}


class Comparison(str, Enum):
    """Whether a matching condition includes or excludes the product."""

    INCLUDE = "include"
    EXCLUDE = "exclude"


class DiscountType(str, Enum):
    """How a bracket adjusts the unit price."""

    PERCENTAGE = "percentage"  # price - price * value / 100
    FIXED_AMOUNT = "fixed_amount"  # price - value


_DISCOUNT_TYPE_ALIASES = {
    "percentage": DiscountType.PERCENTAGE,
    "percent": DiscountType.PERCENTAGE,
    "amount": DiscountType.FIXED_AMOUNT,
    "fixed_amount": DiscountType.FIXED_AMOUNT,
}


@dataclass(frozen=True)
class ProductSnapshot:
    """Read-only view of a product as needed to price it."""

    id: int
    price: Decimal
    product_type: str = "simple"
    parent_id: Optional[int] = None
    category_ids: frozenset[int] = frozenset()
    tag_ids: frozenset[int] = frozenset()
    category_slugs: frozenset[str] = frozenset()
    min_quantity: int = 1
    name: Optional[str] = None
    parent: Optional["ProductSnapshot"] = None

    @property
    def is_variation(self) -> bool:
        return self.product_type == "variation"

    def matching_subject(self) -> "ProductSnapshot":
        """
        Product that discount conditions are evaluated against.

        Variations are matched through their parent product. When the parent
        was not loaded, the variation stands in for it under the parent's id.
        """
        if not self.is_variation:
            return self
        if self.parent is not None:
            return self.parent
        if self.parent_id:
            return replace(self, id=self.parent_id)
        return self


@dataclass(frozen=True)
class Condition:
    """A single include/exclude predicate of a discount rule."""

    kind: ConditionKind
    comparison: Comparison = Comparison.INCLUDE
    query: Any = None

    @property
    def priority(self) -> int:
        return self.kind.priority

    def applies_to(self, product: ProductSnapshot) -> bool:
        """Whether the product falls inside the set this condition queries."""
        if self.kind == ConditionKind.ALL:
            return True
        if self.kind == ConditionKind.PRODUCT:
            return product.id == self.query
        if self.kind == ConditionKind.PRODUCT_TYPE:
            return product.product_type == self.query
        if self.kind == ConditionKind.PRODUCT_CATEGORY:
            return self.query in product.category_ids
        if self.kind == ConditionKind.PRODUCT_TAG:
            return self.query in product.tag_ids
        return False

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "comparison": self.comparison.value,
            "query": self.query,
        }


@dataclass(frozen=True)
class Bracket:
    """A quantity range mapped to a discount."""

    quantity_from: int
    quantity_to: Optional[int]  # None means unbounded
    discount_type: DiscountType
    value: Decimal

    def contains(self, quantity: int) -> bool:
        if quantity < self.quantity_from:
            return False
        return self.quantity_to is None or quantity <= self.quantity_to

    def apply(self, price: Decimal) -> Decimal:
        """Discounted unit price. Fixed amounts are not floored at zero."""
        if self.discount_type == DiscountType.PERCENTAGE:
            return price - price * (self.value / Decimal("100"))
        return price - self.value

    def to_dict(self) -> dict:
        return {
            "from": self.quantity_from,
            "to": self.quantity_to,
            "type": self.discount_type.value,
            "value": str(self.value),
        }


@dataclass(frozen=True)
class DiscountRule:
    """A discount rule: who it applies to and how it prices quantities."""

    id: Optional[int] = None
    title: Optional[str] = None
    rule_type: str = BULK_RULE_TYPE
    conditions: tuple[Condition, ...] = ()
    brackets: tuple[Bracket, ...] = ()

    @property
    def priority(self) -> int:
        """Highest priority among the rule's conditions (0 without any)."""
        return max((c.priority for c in self.conditions), default=0)

    @property
    def is_bulk(self) -> bool:
        return self.rule_type == BULK_RULE_TYPE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "rule_type": self.rule_type,
            "conditions": [c.to_dict() for c in self.conditions],
            "brackets": [b.to_dict() for b in self.brackets],
        }


@dataclass(frozen=True)
class PriceBreakdown:
    """Unit and total price for a product at a quantity."""

    original_price: Decimal
    discounted_price: Decimal
    has_discount: bool
    total_price: Decimal

    @property
    def savings_percent(self) -> Optional[int]:
        return savings_percent(self.original_price, self.discounted_price)


def savings_percent(original: Decimal, discounted: Decimal) -> Optional[int]:
    """Rounded percentage saved, or None when the original price is not positive."""
    if original <= 0:
        return None
    ratio = (original - discounted) / original * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Parsing of stored records
# ---------------------------------------------------------------------------


def _to_decimal(value: Any, field_name: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise MalformedRuleError(f"{field_name} must be a number, got {value!r}")
    try:
        number = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        raise MalformedRuleError(f"{field_name} must be a number, got {value!r}") from None
    if not number.is_finite():
        raise MalformedRuleError(f"{field_name} must be finite, got {value!r}")
    return number


def _to_int(value: Any, field_name: str) -> int:
    number = _to_decimal(value, field_name)
    if number != number.to_integral_value():
        raise MalformedRuleError(f"{field_name} must be a whole number, got {value!r}")
    return int(number)


def parse_condition(data: dict) -> Condition:
    """Build a condition from a stored record."""
    if not isinstance(data, dict):
        raise MalformedRuleError(f"Condition must be an object, got {type(data).__name__}")

    raw_kind = data.get("kind", data.get("type"))
    try:
        kind = ConditionKind(raw_kind)
    except ValueError:
        raise MalformedRuleError(f"Unknown condition kind {raw_kind!r}") from None

    raw_comparison = data.get("comparison")
    if raw_comparison is None:
        raise MalformedRuleError(f"{kind.value} condition is missing its comparison")
    try:
        comparison = Comparison(raw_comparison)
    except ValueError:
        raise MalformedRuleError(f"Unknown comparison {raw_comparison!r}") from None

    query = data.get("query")
    if kind == ConditionKind.ALL:
        query = None
    elif kind == ConditionKind.PRODUCT_TYPE:
        if not isinstance(query, str) or not query.strip():
            raise MalformedRuleError(f"product_type condition needs a type name, got {query!r}")
        query = query.strip()
    else:
        if query is None or query == "":
            raise MalformedRuleError(f"{kind.value} condition is missing its query")
        query = _to_int(query, f"{kind.value} query")

    return Condition(kind=kind, comparison=comparison, query=query)


def parse_bracket(data: dict) -> Bracket:
    """
    Build a bracket from a stored record.

    Accepts plain keys (from, to, type, value) as well as the theme's
    meta keys (_woodmart_discount_rules_from, _woodmart_discount_type, ...).
    """
    if not isinstance(data, dict):
        raise MalformedRuleError(f"Bracket must be an object, got {type(data).__name__}")

    raw_type = data.get("type", data.get("_woodmart_discount_type"))
    discount_type = _DISCOUNT_TYPE_ALIASES.get(raw_type) if isinstance(raw_type, str) else None
    if discount_type is None:
        raise MalformedRuleError(f"Unknown discount type {raw_type!r}")

    raw_from = data.get("from", data.get("_woodmart_discount_rules_from"))
    if raw_from is None or raw_from == "":
        raise MalformedRuleError("Bracket is missing its lower bound")
    quantity_from = _to_int(raw_from, "bracket from")

    raw_to = data.get("to", data.get("_woodmart_discount_rules_to"))
    quantity_to = None
    if raw_to not in (None, ""):
        quantity_to = _to_int(raw_to, "bracket to") or None

    raw_value = data.get("value")
    if raw_value is None:
        raw_value = data.get(f"_woodmart_discount_{raw_type}_value")
    value = _to_decimal(raw_value, "discount value")

    return Bracket(
        quantity_from=quantity_from,
        quantity_to=quantity_to,
        discount_type=discount_type,
        value=value,
    )


def parse_rule(data: dict) -> DiscountRule:
    """
    Build a discount rule from a stored record.

    A missing rule type or a corrupt condition makes the whole rule
    unusable. A corrupt bracket is dropped and the remaining brackets keep
    their order.
    """
    if not isinstance(data, dict):
        raise MalformedRuleError(f"Rule must be an object, got {type(data).__name__}")

    rule_type = data.get("rule_type", data.get("_woodmart_rule_type"))
    if not isinstance(rule_type, str) or not rule_type.strip():
        raise MalformedRuleError(f"Rule is missing its rule type, got {rule_type!r}")

    raw_conditions = data.get("conditions") or []
    if not isinstance(raw_conditions, list):
        raise MalformedRuleError("Rule conditions must be a list")
    conditions = tuple(parse_condition(c) for c in raw_conditions)

    raw_brackets = data.get("brackets", data.get("discount_rules")) or []
    if not isinstance(raw_brackets, list):
        raise MalformedRuleError("Rule brackets must be a list")

    brackets = []
    for index, raw_bracket in enumerate(raw_brackets):
        try:
            brackets.append(parse_bracket(raw_bracket))
        except MalformedRuleError as e:
            logger.warning(f"Skipping bracket {index} of rule {data.get('id')}: {e}")
            metrics.record_rule_skipped("bracket")

    return DiscountRule(
        id=data.get("id"),
        title=data.get("title"),
        rule_type=rule_type.strip(),
        conditions=conditions,
        brackets=tuple(brackets),
    )


def parse_rules(records: Iterable[dict]) -> list[DiscountRule]:
    """Parse stored rule records, skipping the ones that are malformed."""
    rules = []
    for record in records:
        try:
            rules.append(parse_rule(record))
        except MalformedRuleError as e:
            rule_id = record.get("id") if isinstance(record, dict) else None
            logger.warning(f"Skipping malformed discount rule {rule_id}: {e}")
            metrics.record_rule_skipped("rule")
    return rules
