"""Ukrainian unit-of-measure text for quantities."""

from dataclasses import dataclass

from price_updater.config import settings
from price_updater.discounts.models import ProductSnapshot


@dataclass(frozen=True)
class UnitForms:
    """Singular, few (2-4) and many forms of a unit name."""

    singular: str
    few: str
    many: str

    def for_quantity(self, quantity: int) -> str:
        # Only 2-4 take the few form; 22, 23, 24 fall through to many.
        if quantity == 1:
            return self.singular
        if 2 <= quantity <= 4:
            return self.few
        return self.many


MILLILITER_FORMS = UnitForms(singular="мілілітр", few="мілілітри", many="мілілітрів")
ITEM_FORMS = UnitForms(singular="товар", few="товари", many="товарів")


def is_sold_by_volume(product: ProductSnapshot, volume_slug: str | None = None) -> bool:
    """Whether the product (or its parent) is in the by-the-milliliter category."""
    volume_slug = volume_slug or settings.volume_category_slug
    if volume_slug in product.category_slugs:
        return True
    return product.parent is not None and volume_slug in product.parent.category_slugs


def unit_forms(product: ProductSnapshot | None, volume_slug: str | None = None) -> UnitForms:
    if product is not None and is_sold_by_volume(product, volume_slug):
        return MILLILITER_FORMS
    return ITEM_FORMS


def unit_text(product: ProductSnapshot | None, quantity: int, volume_slug: str | None = None) -> str:
    """Unit name agreeing with the quantity, e.g. "5 мілілітрів" or "3 товари"."""
    return unit_forms(product, volume_slug).for_quantity(quantity)
