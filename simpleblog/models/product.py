import uuid
from decimal import Decimal
from typing import Optional, List
from datetime import datetime
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import JSON, Text

from simpleblog.core.clock import utcnow
from simpleblog.models.tag import ProductTagLink, Tag


class Product(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Basic Info
    name: str = Field(index=True)
    description: str = Field(sa_column=Column(Text, nullable=False))
    category: str = Field(index=True)

    # Pricing
    price: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)

    # Inventory (informational, orders do not decrement it)
    stock: int = Field(default=0)

    # Storage reference, signed per response
    image_url: Optional[str] = None

    # Hex codes or color names, in display order
    colors: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, index=True)

    tags: List[Tag] = Relationship(back_populates="products", link_model=ProductTagLink)


class ProductView(SQLModel, table=True):
    """Append-only view log used by the top-viewed report."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    product_id: uuid.UUID = Field(index=True)
    viewed_at: datetime = Field(default_factory=utcnow, index=True)
    user_id: Optional[str] = None
    session_id: Optional[str] = None
