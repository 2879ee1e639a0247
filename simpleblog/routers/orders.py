import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import EmailStr, Field, field_validator
from sqlmodel import Session

from simpleblog.core.config import settings
from simpleblog.core.logging import mask_email, mask_username
from simpleblog.db.session import get_session
from simpleblog.models.user import User
from simpleblog.routers.auth import check_admin, get_current_user
from simpleblog.routers.common import parse_datetime
from simpleblog.schemas import (
    ApiModel,
    OrderRead,
    OrderSummary,
    Page,
    SalesByDay,
    StatusCount,
    require_text,
)
from simpleblog.services.order import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


class OrderCreateItem(ApiModel):
    product_id: uuid.UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than zero")
        return v


class OrderCreate(ApiModel):
    customer_name: Optional[str] = Field(None, validate_default=True)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(None, validate_default=True)
    shipping_address: Optional[str] = Field(None, validate_default=True)
    shipping_city: Optional[str] = Field(None, validate_default=True)
    shipping_postal_code: Optional[str] = Field(None, validate_default=True)
    items: List[OrderCreateItem] = Field(default_factory=list, validate_default=True)

    @field_validator("customer_name")
    @classmethod
    def check_name(cls, v):
        return require_text(v, "Customer name", 200)

    @field_validator("customer_email")
    @classmethod
    def check_email(cls, v):
        if len(v) > 200:
            raise ValueError("Customer email cannot exceed 200 characters")
        return v

    @field_validator("customer_phone")
    @classmethod
    def check_phone(cls, v):
        return require_text(v, "Customer phone", 50)

    @field_validator("shipping_address")
    @classmethod
    def check_address(cls, v):
        return require_text(v, "Shipping address", 500)

    @field_validator("shipping_city")
    @classmethod
    def check_city(cls, v):
        return require_text(v, "Shipping city", 100)

    @field_validator("shipping_postal_code")
    @classmethod
    def check_postal_code(cls, v):
        return require_text(v, "Shipping postal code", 20)

    @field_validator("items")
    @classmethod
    def check_items(cls, v):
        if not v:
            raise ValueError("Order must contain at least one item")
        return v


class OrderStatusUpdate(ApiModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return require_text(v, "Status", 50).strip()


def get_order_service(session: Session = Depends(get_session)) -> OrderService:
    return OrderService(session)


def _check_order_view(user: User, action: str) -> None:
    check_admin(user, action, settings.REQUIRE_ADMIN_FOR_ORDER_VIEW)


@router.post("", response_model=OrderRead, status_code=201)
def create_order(data: OrderCreate, service: OrderService = Depends(get_order_service)):
    order = service.create_order(
        customer_name=data.customer_name,
        customer_email=data.customer_email,
        customer_phone=data.customer_phone,
        shipping_address=data.shipping_address,
        shipping_city=data.shipping_city,
        shipping_postal_code=data.shipping_postal_code,
        items_data=[{"product_id": item.product_id, "quantity": item.quantity} for item in data.items],
    )
    logger.info("Order %s placed by %s", order.id, mask_email(order.customer_email))
    return order


@router.get("", response_model=Page[OrderRead])
def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    _check_order_view(current_user, "view all orders")
    orders, total = service.list_orders(page, page_size)
    return Page[OrderRead].build([OrderRead.model_validate(o) for o in orders], total, page, page_size)


@router.get("/analytics/summary", response_model=OrderSummary)
def orders_summary(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    _check_order_view(current_user, "view orders analytics summary")
    return service.summary(parse_datetime(date_from), parse_datetime(date_to))


@router.get("/analytics/sales-by-day", response_model=List[SalesByDay])
def sales_by_day(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    limit: int = Query(30, ge=1, le=366),
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    _check_order_view(current_user, "view orders sales-by-day")
    return service.sales_by_day(parse_datetime(date_from), parse_datetime(date_to), limit)


@router.get("/analytics/status-counts", response_model=List[StatusCount])
def status_counts(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    _check_order_view(current_user, "view orders status counts")
    return service.status_counts(parse_datetime(date_from), parse_datetime(date_to))


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    _check_order_view(current_user, f"view order {order_id}")
    order = service.get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.put("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: uuid.UUID,
    data: OrderStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    check_admin(current_user, "update an order status")
    order = service.update_status(order_id, data.status)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s status changed by %s", order_id, mask_username(current_user.username))
    return order
