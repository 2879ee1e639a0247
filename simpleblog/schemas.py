import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Money travels as a JSON number, stays Decimal in Python
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

T = TypeVar("T")


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class TagRead(ApiModel):
    id: uuid.UUID
    name: str
    slug: str
    color: Optional[str] = None
    created_at: datetime


class CommentRead(ApiModel):
    id: uuid.UUID
    post_id: uuid.UUID
    author: str
    content: str
    created_at: datetime


class PostRead(ApiModel):
    id: uuid.UUID
    title: str
    content: str
    author: str
    created_at: datetime
    is_pinned: bool = False
    image_urls: List[str] = []
    comments: List[CommentRead] = []
    tags: List[TagRead] = []


class ProductRead(ApiModel):
    id: uuid.UUID
    name: str
    description: str
    price: Money
    image_url: Optional[str] = None
    category: str
    stock: int
    created_at: datetime
    colors: List[str] = []
    tags: List[TagRead] = []


class OrderItemRead(ApiModel):
    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    price: Money
    quantity: int


class OrderRead(ApiModel):
    id: uuid.UUID
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    shipping_city: str
    shipping_postal_code: str
    status: str
    total_amount: Money
    created_at: datetime
    items: List[OrderItemRead] = []


class AboutMeRead(ApiModel):
    id: uuid.UUID
    content: str
    image_url: Optional[str] = None
    updated_at: datetime
    updated_by: str


class SiteSettingsRead(ApiModel):
    id: uuid.UUID
    theme: str
    logo_url: Optional[str] = None
    contact_text: Optional[str] = None
    updated_at: datetime
    updated_by: str


class Page(ApiModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, items: List[T], total: int, page: int, page_size: int) -> "Page[T]":
        total_pages = (total + page_size - 1) // page_size
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


class OrderSummary(ApiModel):
    total_orders: int
    total_revenue: Money
    average_order_value: Money


class SalesByDay(ApiModel):
    date: date
    orders_count: int
    revenue: Money


class StatusCount(ApiModel):
    status: str
    count: int


class TopProduct(ApiModel):
    product_id: uuid.UUID
    product_name: str
    count: int


# Request checks shared by the routers' input models

def require_text(value: Optional[str], label: str, max_length: int) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} cannot be empty")
    if len(value) > max_length:
        raise ValueError(f"{label} cannot exceed {max_length} characters")
    return value


def limit_text(value: Optional[str], label: str, max_length: int) -> Optional[str]:
    if value is not None and len(value) > max_length:
        raise ValueError(f"{label} cannot exceed {max_length} characters")
    return value


class AssignTagsRequest(ApiModel):
    tag_ids: List[uuid.UUID] = []
