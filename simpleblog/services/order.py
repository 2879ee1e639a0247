import logging
import uuid
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from sqlalchemy import func, desc
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from simpleblog.core.logging import mask_email
from simpleblog.models.order import Order, OrderItem, ORDER_STATUS_NEW
from simpleblog.models.product import Product
from simpleblog.schemas import OrderSummary, SalesByDay, StatusCount
from simpleblog.services.email import send_order_confirmation_email

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _as_decimal(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS)


def _as_date(value) -> date:
    # SQLite hands DATE() back as text
    if isinstance(value, str):
        return date.fromisoformat(value)
    if isinstance(value, datetime):
        return value.date()
    return value


class OrderService:
    def __init__(self, session: Session):
        self.session = session

    def create_order(
        self,
        customer_name: str,
        customer_email: str,
        customer_phone: str,
        shipping_address: str,
        shipping_city: str,
        shipping_postal_code: str,
        items_data: List[dict],
    ) -> Order:
        """
        Price the requested lines and persist the order with its items in one commit.

        Lines whose product no longer exists are skipped without error. Each
        surviving line keeps a copy of the product name and price, so later
        product edits never change this order. Stock is not touched.
        """
        product_ids = {item["product_id"] for item in items_data}
        products = {}
        if product_ids:
            products = {
                p.id: p for p in self.session.exec(select(Product).where(Product.id.in_(product_ids))).all()
            }

        order = Order(
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            shipping_address=shipping_address,
            shipping_city=shipping_city,
            shipping_postal_code=shipping_postal_code,
            status=ORDER_STATUS_NEW,
        )

        total = Decimal("0")
        for item in items_data:
            product = products.get(item["product_id"])
            if not product:
                logger.info("Order line for missing product %s dropped", item["product_id"])
                continue

            price = _as_decimal(product.price)
            total += price * item["quantity"]
            order.items.append(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    price=price,
                    quantity=item["quantity"],
                )
            )

        order.total_amount = total.quantize(CENTS)
        self.session.add(order)
        self.session.commit()
        self.session.refresh(order)
        logger.info("Order %s created with %d items, total %s", order.id, len(order.items), order.total_amount)

        # Send order confirmation email
        try:
            send_order_confirmation_email(order)
        except Exception:
            logger.exception("Order confirmation for %s to %s failed", order.id, mask_email(order.customer_email))

        return order

    def list_orders(self, page: int = 1, page_size: int = 10) -> Tuple[List[Order], int]:
        offset = (page - 1) * page_size
        query = select(Order)

        total = self.session.exec(query.with_only_columns(func.count(Order.id))).first() or 0

        orders = self.session.exec(
            query.options(selectinload(Order.items))
            .order_by(desc(Order.created_at))
            .offset(offset)
            .limit(page_size)
        ).all()
        return orders, total

    def get(self, order_id: uuid.UUID) -> Optional[Order]:
        return self.session.get(Order, order_id)

    def update_status(self, order_id: uuid.UUID, status: str) -> Optional[Order]:
        order = self.get(order_id)
        if not order:
            return None
        order.status = status
        self.session.add(order)
        self.session.commit()
        self.session.refresh(order)
        logger.info("Order %s moved to %s", order_id, status)
        return order

    # Analytics

    def _in_range(self, query, date_from: Optional[datetime], date_to: Optional[datetime]):
        if date_from:
            query = query.where(Order.created_at >= date_from)
        if date_to:
            query = query.where(Order.created_at <= date_to)
        return query

    def summary(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> OrderSummary:
        query = self._in_range(select(func.count(Order.id), func.sum(Order.total_amount)), date_from, date_to)
        count, revenue = self.session.exec(query).one()

        total_orders = count or 0
        total_revenue = _as_decimal(revenue)
        average = Decimal("0.00")
        if total_orders:
            average = (total_revenue / total_orders).quantize(CENTS, rounding=ROUND_HALF_UP)

        return OrderSummary(
            total_orders=total_orders,
            total_revenue=total_revenue,
            average_order_value=average,
        )

    def sales_by_day(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None, limit: int = 30) -> List[SalesByDay]:
        """The most recent `limit` days that had orders, oldest first."""
        day = func.date(Order.created_at).label("day")
        query = self._in_range(
            select(day, func.count(Order.id), func.sum(Order.total_amount)),
            date_from,
            date_to,
        )
        rows = self.session.exec(query.group_by(day).order_by(desc(day)).limit(limit)).all()

        return [
            SalesByDay(date=_as_date(value), orders_count=count, revenue=_as_decimal(revenue))
            for value, count, revenue in reversed(rows)
        ]

    def status_counts(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> List[StatusCount]:
        query = self._in_range(select(Order.status, func.count(Order.id)), date_from, date_to)
        rows = self.session.exec(query.group_by(Order.status).order_by(Order.status)).all()
        return [StatusCount(status=status, count=count) for status, count in rows]
