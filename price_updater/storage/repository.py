"""Loading of product snapshots and discount rule records."""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from price_updater import metrics
from price_updater.config import settings
from price_updater.db.models import DiscountRule as DiscountRuleModel
from price_updater.db.models import Product
from price_updater.discounts.models import ProductSnapshot
from price_updater.storage.cache import TTLCache, create_cache

logger = logging.getLogger(__name__)


def _id_set(values) -> frozenset[int]:
    ids = set()
    for value in values or []:
        try:
            ids.add(int(value))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric taxonomy id {value!r}")
    return frozenset(ids)


def snapshot_from_model(product: Product, parent: Optional[Product] = None) -> ProductSnapshot:
    """Convert a product row (and its parent row) into a snapshot."""
    return ProductSnapshot(
        id=product.id,
        name=product.name,
        price=Decimal(str(product.price)),
        product_type=product.product_type,
        parent_id=product.parent_id,
        category_ids=_id_set(product.category_ids),
        tag_ids=_id_set(product.tag_ids),
        category_slugs=frozenset(str(s) for s in product.category_slugs or []),
        min_quantity=max(1, product.min_quantity or settings.default_min_quantity),
        parent=snapshot_from_model(parent) if parent is not None else None,
    )


class PriceRepository:
    """Reads the data a price quote needs, caching the rule set."""

    def __init__(
        self,
        db: AsyncSession,
        cache: Optional[TTLCache] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self.db = db
        self.cache = cache if cache is not None else rules_cache
        self.ttl_seconds = ttl_seconds or settings.rules_cache_ttl_seconds
        self.cache_key = settings.rules_cache_key

    async def get_product(self, product_id: int) -> Optional[ProductSnapshot]:
        """
        Load a product snapshot.

        Variations are loaded together with their parent product.

        Args:
            product_id: Product ID

        Returns:
            ProductSnapshot, or None if the product does not exist
        """
        product = await self.db.get(Product, product_id)
        if product is None:
            return None

        parent = None
        if product.parent_id:
            parent = await self.db.get(Product, product.parent_id)
            if parent is None:
                logger.warning(
                    f"Product {product_id} refers to missing parent {product.parent_id}"
                )

        return snapshot_from_model(product, parent)

    async def get_rule_records(self) -> list[dict]:
        """Enabled discount rule records, served from cache when fresh."""
        try:
            cached = await self.cache.get(self.cache_key)
        except Exception as e:
            logger.warning(f"Rule cache read failed, loading from database: {e}")
            metrics.record_cache_lookup("error")
            cached = None
        else:
            metrics.record_cache_lookup("hit" if cached is not None else "miss")

        if cached is not None:
            return cached

        records = await self._load_rule_records()

        try:
            await self.cache.set(self.cache_key, records, self.ttl_seconds)
        except Exception as e:
            logger.warning(f"Rule cache write failed: {e}")

        return records

    async def _load_rule_records(self) -> list[dict]:
        query = select(DiscountRuleModel).where(
            DiscountRuleModel.enabled == True
        ).order_by(DiscountRuleModel.id.asc())

        result = await self.db.execute(query)
        records = [rule.to_record() for rule in result.scalars().all()]
        logger.info(f"Loaded {len(records)} discount rules from database")
        return records

    async def invalidate_rules(self) -> None:
        """Drop the cached rule set after rules change."""
        try:
            await self.cache.delete(self.cache_key)
        except Exception as e:
            logger.error(f"Failed to invalidate rule cache: {e}")


# Global rule cache instance
rules_cache = create_cache()
