#!/usr/bin/env python3
"""
Seed script for a small demo catalog.

Creates:
- Products sold by item and by the milliliter (category "rozpyv")
- A variable product with a variation
- Bulk discount rules covering category, tag and single-product conditions

Usage:
    python scripts/seed_demo_catalog.py           # Seed all data
    python scripts/seed_demo_catalog.py --clear   # Clear all data
    python scripts/seed_demo_catalog.py --stats   # Show data stats
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import delete, func, select

from price_updater.db.models import Base, DiscountRule, Product
from price_updater.db.session import AsyncSessionLocal, engine

PERFUME_CATEGORY = 17
ROZPYV_CATEGORY = 23
SALE_TAG = 5

PRODUCTS = [
    {"name": "Eau de Parfum 50 ml", "price": Decimal("2450.00"), "category_ids": [PERFUME_CATEGORY],
     "category_slugs": ["perfume"]},
    {"name": "Eau de Parfum, розпив", "price": Decimal("38.00"), "min_quantity": 2,
     "category_ids": [PERFUME_CATEGORY, ROZPYV_CATEGORY], "category_slugs": ["perfume", "rozpyv"]},
    {"name": "Travel atomizer", "price": Decimal("120.00"), "tag_ids": [SALE_TAG],
     "category_slugs": ["accessories"]},
]

RULES = [
    {
        "title": "Розпив: об'ємна знижка",
        "rule_type": "bulk",
        "conditions": [{"kind": "product_category", "comparison": "include", "query": ROZPYV_CATEGORY}],
        "brackets": [
            {"from": 1, "to": 9, "type": "percentage", "value": 0},
            {"from": 10, "to": 29, "type": "percentage", "value": 10},
            {"from": 30, "to": None, "type": "percentage", "value": 15},
        ],
    },
    {
        "title": "Sale tag",
        "rule_type": "bulk",
        "conditions": [{"kind": "product_tag", "comparison": "include", "query": SALE_TAG}],
        "brackets": [
            {"from": 3, "to": None, "type": "fixed_amount", "value": 20},
        ],
    },
    {
        "title": "Store-wide",
        "rule_type": "bulk",
        "conditions": [{"kind": "all", "comparison": "include"}],
        "brackets": [
            {"from": 5, "to": None, "type": "percentage", "value": 5},
        ],
    },
]


async def clear_all_data():
    """Delete all products and rules."""
    async with AsyncSessionLocal() as db:
        await db.execute(delete(DiscountRule))
        await db.execute(delete(Product).where(Product.parent_id.is_not(None)))
        await db.execute(delete(Product))
        await db.commit()
    print("🧹 Cleared products and discount rules")


async def seed_products() -> list[Product]:
    """Create demo products, including a variable product with a variation."""
    async with AsyncSessionLocal() as db:
        products = [Product(**data) for data in PRODUCTS]
        db.add_all(products)
        await db.flush()

        variable = Product(
            name="Body mist",
            price=Decimal("0"),
            product_type="variable",
            category_ids=[PERFUME_CATEGORY],
            category_slugs=["perfume"],
            tag_ids=[SALE_TAG],
        )
        db.add(variable)
        await db.flush()

        variation = Product(
            name="Body mist, 100 ml",
            price=Decimal("310.00"),
            product_type="variation",
            parent_id=variable.id,
        )
        db.add(variation)
        await db.commit()

        products.extend([variable, variation])
        print(f"✅ Created {len(products)} products")
        return products


async def seed_rules():
    """Create demo discount rules."""
    async with AsyncSessionLocal() as db:
        db.add_all(DiscountRule(**data) for data in RULES)
        await db.commit()
    print(f"✅ Created {len(RULES)} discount rules")


async def show_data_stats():
    """Show statistics about seeded data."""
    print("\n📊 Database Statistics:")
    print("=" * 50)

    async with AsyncSessionLocal() as db:
        product_total = (await db.execute(select(func.count(Product.id)))).scalar()
        type_breakdown = await db.execute(
            select(Product.product_type, func.count(Product.id)).group_by(Product.product_type)
        )

        print(f"Products: {product_total} total")
        for product_type, count in type_breakdown.all():
            print(f"  - {product_type}: {count}")

        rule_total = (await db.execute(select(func.count(DiscountRule.id)))).scalar()
        print(f"Discount rules: {rule_total} records")


async def seed_all_data():
    """Seed all demo data."""
    print("🌱 Seeding demo catalog...")
    print("=" * 50)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await seed_products()
    await seed_rules()

    print("\n🎉 Seeding complete!")
    await show_data_stats()


async def main():
    """Main entry point."""
    if len(sys.argv) > 1:
        if sys.argv[1] == "--clear":
            await clear_all_data()
        elif sys.argv[1] == "--stats":
            await show_data_stats()
        elif sys.argv[1] == "--help":
            print(__doc__)
        else:
            print(f"Unknown option: {sys.argv[1]}")
            print("Use --help for usage information")
    else:
        await seed_all_data()


if __name__ == "__main__":
    asyncio.run(main())
