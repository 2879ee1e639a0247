import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import func, desc, or_
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from simpleblog.models.order import Order, OrderItem
from simpleblog.models.product import Product, ProductView
from simpleblog.models.tag import ProductTagLink
from simpleblog.schemas import TopProduct
from simpleblog.services.tag import TagService

logger = logging.getLogger(__name__)


class ProductFilter(BaseModel):
    tag_ids: List[uuid.UUID] = []
    category: Optional[str] = None
    search_term: Optional[str] = None


class ProductService:
    def __init__(self, session: Session):
        self.session = session

    def list_products(self, filter: Optional[ProductFilter] = None, page: int = 1, page_size: int = 10) -> Tuple[List[Product], int]:
        filter = filter or ProductFilter()
        offset = (page - 1) * page_size

        query = select(Product)

        if filter.tag_ids:
            tagged = select(ProductTagLink.product_id).where(ProductTagLink.tag_id.in_(filter.tag_ids))
            query = query.where(Product.id.in_(tagged))

        if filter.category:
            query = query.where(Product.category == filter.category)

        if filter.search_term:
            term = filter.search_term.strip()
            query = query.where(
                or_(
                    Product.name.icontains(term, autoescape=True),
                    Product.description.icontains(term, autoescape=True)
                )
            )

        total = self.session.exec(query.with_only_columns(func.count(Product.id))).first() or 0

        products = self.session.exec(
            query.options(selectinload(Product.tags))
            .order_by(desc(Product.created_at))
            .offset(offset)
            .limit(page_size)
        ).all()
        return products, total

    def get(self, product_id: uuid.UUID) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def create(
        self,
        name: str,
        description: str,
        price: Decimal,
        category: str,
        stock: int = 0,
        image_url: Optional[str] = None,
        colors: Optional[List[str]] = None,
    ) -> Product:
        product = Product(
            name=name,
            description=description,
            price=price,
            category=category,
            stock=stock,
            image_url=image_url or None,
            colors=list(colors or []),
        )
        self.session.add(product)
        self.session.commit()
        self.session.refresh(product)
        logger.info("Product created: %s", product.id)
        return product

    def update(self, product_id: uuid.UUID, **changes) -> Optional[Product]:
        """Only keys with a non-None value are applied."""
        product = self.get(product_id)
        if not product:
            return None

        for field, value in changes.items():
            if value is None:
                continue
            if field == "colors":
                value = list(value)
            setattr(product, field, value)

        self.session.add(product)
        self.session.commit()
        self.session.refresh(product)
        return product

    def set_image(self, product_id: uuid.UUID, image_ref: Optional[str]) -> Optional[Product]:
        product = self.get(product_id)
        if not product:
            return None
        product.image_url = image_ref or None
        self.session.add(product)
        self.session.commit()
        self.session.refresh(product)
        return product

    def delete(self, product_id: uuid.UUID) -> bool:
        product = self.get(product_id)
        if not product:
            return False
        self.session.delete(product)
        self.session.commit()
        logger.info("Product deleted: %s", product_id)
        return True

    def assign_tags(self, product_id: uuid.UUID, tag_ids: List[uuid.UUID]) -> Optional[Product]:
        product = self.get(product_id)
        if not product:
            return None
        product.tags = TagService(self.session).resolve(tag_ids)
        self.session.add(product)
        self.session.commit()
        self.session.refresh(product)
        return product

    def record_view(self, product_id: uuid.UUID, user_id: Optional[str] = None, session_id: Optional[str] = None) -> bool:
        if not self.get(product_id):
            return False
        self.session.add(ProductView(product_id=product_id, user_id=user_id, session_id=session_id))
        self.session.commit()
        return True

    def top_sold(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None, limit: int = 10) -> List[TopProduct]:
        """Products ranked by units ordered; names come from the order snapshots."""
        sold = func.sum(OrderItem.quantity).label("sold")
        query = (
            select(OrderItem.product_id, func.max(OrderItem.product_name), sold)
            .join(Order, Order.id == OrderItem.order_id)
            .group_by(OrderItem.product_id)
        )
        if date_from:
            query = query.where(Order.created_at >= date_from)
        if date_to:
            query = query.where(Order.created_at <= date_to)

        rows = self.session.exec(query.order_by(desc(sold)).limit(limit)).all()
        return [
            TopProduct(product_id=product_id, product_name=name, count=int(count or 0))
            for product_id, name, count in rows
        ]

    def top_viewed(self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None, limit: int = 10) -> List[TopProduct]:
        views = func.count(ProductView.id).label("views")
        query = (
            select(ProductView.product_id, Product.name, views)
            .join(Product, Product.id == ProductView.product_id)
            .group_by(ProductView.product_id, Product.name)
        )
        if date_from:
            query = query.where(ProductView.viewed_at >= date_from)
        if date_to:
            query = query.where(ProductView.viewed_at <= date_to)

        rows = self.session.exec(query.order_by(desc(views)).limit(limit)).all()
        return [
            TopProduct(product_id=product_id, product_name=name, count=count)
            for product_id, name, count in rows
        ]
