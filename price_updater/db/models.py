"""SQLAlchemy database models."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Product(Base):
    """Product as priced on the single product page."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("min_quantity >= 1", name="ck_products_min_quantity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    product_type: Mapped[str] = mapped_column(String(32), default="simple", nullable=False)
    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("products.id"), nullable=True
    )
    min_quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Taxonomy membership
    category_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    category_slugs: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    tag_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, nullable=False
    )


class DiscountRule(Base):
    """Stored discount rule; conditions and brackets are kept as JSON records."""

    __tablename__ = "discount_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    rule_type: Mapped[str] = mapped_column(String(32), default="bulk", nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    conditions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    brackets: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, nullable=False
    )

    def to_record(self) -> dict:
        """Plain record as consumed by the rule parser."""
        return {
            "id": self.id,
            "title": self.title,
            "rule_type": self.rule_type,
            "conditions": list(self.conditions or []),
            "brackets": list(self.brackets or []),
        }
