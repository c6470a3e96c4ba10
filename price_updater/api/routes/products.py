"""Product management routes."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from price_updater.api.deps import get_database
from price_updater.config import settings
from price_updater.db.models import Product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


class ProductCreate(BaseModel):
    name: str | None = None
    price: Decimal = Field(..., ge=0)
    product_type: str = "simple"
    parent_id: int | None = None
    min_quantity: int | None = Field(None, ge=1)
    category_ids: list[int] = []
    category_slugs: list[str] = []
    tag_ids: list[int] = []


class ProductResponse(BaseModel):
    id: int
    name: str | None
    price: float
    product_type: str
    parent_id: Optional[int]
    min_quantity: int
    category_ids: list[int]
    category_slugs: list[str]
    tag_ids: list[int]
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("", response_model=List[ProductResponse])
async def list_products(db: AsyncSession = Depends(get_database)):
    """List all products."""
    result = await db.execute(select(Product).order_by(Product.id.asc()))
    return result.scalars().all()


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    product_data: ProductCreate,
    db: AsyncSession = Depends(get_database),
):
    """Create a product."""
    if product_data.parent_id is not None:
        parent = await db.get(Product, product_data.parent_id)
        if parent is None:
            raise HTTPException(status_code=400, detail="Parent product not found")

    product = Product(
        name=product_data.name,
        price=product_data.price,
        product_type=product_data.product_type,
        parent_id=product_data.parent_id,
        min_quantity=product_data.min_quantity or settings.default_min_quantity,
        category_ids=product_data.category_ids,
        category_slugs=product_data.category_slugs,
        tag_ids=product_data.tag_ids,
    )

    db.add(product)
    await db.commit()
    await db.refresh(product)

    logger.info(f"Created product {product.id} ({product.name})")
    return product


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_database)):
    """Get a product by ID."""
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
