"""Price quote routes used by the product page quantity selector."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from price_updater.api.deps import get_price_engine
from price_updater.discounts.engine import PriceEngine, ProductNotFoundError

router = APIRouter(prefix="/api/prices", tags=["prices"])


class QuoteRequest(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class QuoteResponse(BaseModel):
    product_id: int
    quantity: int
    original_price: str
    unit_price: str
    total_price: str
    original_price_raw: float
    unit_price_raw: float
    total_price_raw: float
    has_discount: bool
    savings_percent: Optional[int]
    unit_text: str
    cart_label: str
    rule_id: Optional[int]


async def _quote(engine: PriceEngine, product_id: int, quantity: Optional[int]) -> dict:
    try:
        quote = await engine.quote(product_id, quantity)
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    return quote.to_dict()


@router.post("/quote", response_model=QuoteResponse)
async def quote_price(
    request: QuoteRequest,
    engine: PriceEngine = Depends(get_price_engine),
):
    """Price a product for the quantity currently selected by the shopper."""
    return await _quote(engine, request.product_id, request.quantity)


@router.get("/{product_id}", response_model=QuoteResponse)
async def get_price(
    product_id: int,
    quantity: Optional[int] = Query(None, ge=1),
    engine: PriceEngine = Depends(get_price_engine),
):
    """Initial price display; quantity defaults to the product minimum."""
    return await _quote(engine, product_id, quantity)
