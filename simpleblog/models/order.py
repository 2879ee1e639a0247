import uuid
from decimal import Decimal
from typing import List, Optional
from datetime import datetime
from sqlmodel import Field, Relationship, SQLModel

from simpleblog.core.clock import utcnow

# Conventional values only; status is stored as free text
ORDER_STATUS_NEW = "New"
ORDER_STATUSES = ("New", "Processing", "Shipped", "Completed", "Cancelled")


class OrderItem(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_id: uuid.UUID = Field(foreign_key="order.id", index=True)

    # Plain column, the product may be deleted later
    product_id: uuid.UUID = Field(index=True)

    # Snapshot taken when the order was placed
    product_name: str
    price: Decimal = Field(max_digits=10, decimal_places=2)

    quantity: int

    order: Optional["Order"] = Relationship(back_populates="items")


class Order(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Customer
    customer_name: str
    customer_email: str = Field(index=True)
    customer_phone: str

    # Shipping
    shipping_address: str
    shipping_city: str
    shipping_postal_code: str

    status: str = Field(default=ORDER_STATUS_NEW, index=True)
    total_amount: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)

    created_at: datetime = Field(default_factory=utcnow, index=True)

    # Relationships
    items: List[OrderItem] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
