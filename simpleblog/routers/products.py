import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Header, HTTPException, Query, Request, Response, UploadFile
from pydantic import Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from simpleblog.core.config import settings
from simpleblog.core.logging import mask_username
from simpleblog.db.session import get_session
from simpleblog.models.user import User
from simpleblog.routers.auth import check_admin, get_current_user, get_current_user_optional
from simpleblog.routers.common import parse_datetime, parse_uuid_list, product_view, read_body_and_files, validate_model
from simpleblog.schemas import (
    ApiModel,
    AssignTagsRequest,
    Page,
    ProductRead,
    TopProduct,
    limit_text,
    require_text,
)
from simpleblog.services.product import ProductFilter, ProductService
from simpleblog.services.storage import ImageStorage, get_image_storage, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_price(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is not None and v <= 0:
        raise ValueError("Product price must be greater than zero")
    return v


def _check_present_text(v: Optional[str], label: str, max_length: int) -> Optional[str]:
    # Absent keeps the stored value; present must not be blank
    if v is None:
        return v
    return require_text(v, label, max_length)


def _check_stock(v: Optional[int]) -> Optional[int]:
    if v is not None and v < 0:
        raise ValueError("Product stock cannot be negative")
    return v


class ProductCreate(ApiModel):
    name: Optional[str] = Field(None, validate_default=True)
    description: Optional[str] = Field(None, validate_default=True)
    price: Optional[Decimal] = Field(None, validate_default=True)
    image_url: Optional[str] = None
    category: Optional[str] = Field(None, validate_default=True)
    stock: int = 0
    colors: List[str] = []

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return require_text(v, "Product name", 200)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return require_text(v, "Product description", 2000)

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        if v is None:
            raise ValueError("Product price must be greater than zero")
        return _check_price(v)

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return require_text(v, "Product category", 100)

    @field_validator("stock")
    @classmethod
    def check_stock(cls, v):
        return _check_stock(v)

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, v):
        return limit_text(v, "Image URL", 500)


class ProductUpdate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    stock: Optional[int] = None
    colors: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _check_present_text(v, "Product name", 200)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return _check_present_text(v, "Product description", 2000)

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        return _check_price(v)

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return _check_present_text(v, "Product category", 100)

    @field_validator("stock")
    @classmethod
    def check_stock(cls, v):
        return _check_stock(v)

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, v):
        return limit_text(v, "Image URL", 500)


def get_product_service(session: Session = Depends(get_session)) -> ProductService:
    return ProductService(session)


def _viewer(current_user: Optional[User], header_session_id: Optional[str], query_session_id: Optional[str]):
    return (current_user.username if current_user else None), (header_session_id or query_session_id)


@router.get("", response_model=Page[ProductRead])
def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    tag_ids: List[str] = Query([], alias="tagIds"),
    category: Optional[str] = None,
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    service: ProductService = Depends(get_product_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    filter = ProductFilter(
        tag_ids=parse_uuid_list(tag_ids),
        category=(category or "").strip() or None,
        search_term=(search_term or "").strip() or None,
    )
    products, total = service.list_products(filter, page, page_size)
    return Page[ProductRead].build([product_view(p, storage) for p in products], total, page, page_size)


@router.get("/analytics/top-sold", response_model=List[TopProduct])
def top_sold(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
):
    return service.top_sold(parse_datetime(date_from), parse_datetime(date_to), limit)


@router.get("/analytics/top-viewed", response_model=List[TopProduct])
def top_viewed(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
):
    return service.top_viewed(parse_datetime(date_from), parse_datetime(date_to), limit)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session_id: Optional[str] = Query(None, alias="sessionId"),
    x_session_id: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_current_user_optional),
    service: ProductService = Depends(get_product_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    product = service.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    # Analytics must never break the product page
    user_id, viewer_session = _viewer(current_user, x_session_id, session_id)
    try:
        service.record_view(product_id, user_id, viewer_session)
    except SQLAlchemyError:
        service.session.rollback()
        logger.warning("Failed to record view for product %s", product_id, exc_info=True)

    return product_view(product, storage)


@router.post("/{product_id}/view", status_code=202)
def record_product_view(
    product_id: uuid.UUID,
    session_id: Optional[str] = Query(None, alias="sessionId"),
    x_session_id: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_current_user_optional),
    service: ProductService = Depends(get_product_service),
):
    user_id, viewer_session = _viewer(current_user, x_session_id, session_id)
    if not service.record_view(product_id, user_id, viewer_session):
        raise HTTPException(status_code=404, detail="Product not found")
    return {"message": "View recorded"}


@router.post("", response_model=ProductRead, status_code=201)
async def create_product(
    request: Request,
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    """JSON body, or multipart form with product fields plus images; the first image becomes the thumbnail."""
    check_admin(current_user, "create a product", settings.REQUIRE_ADMIN_FOR_PRODUCT_CREATE)

    payload, files = await read_body_and_files(
        request, ("name", "description", "price", "imageUrl", "category", "stock")
    )
    uploads = [(f, await read_image_upload(f)) for f in files]
    data = validate_model(ProductCreate, payload)

    product = service.create(
        name=data.name,
        description=data.description,
        price=data.price,
        category=data.category,
        stock=data.stock,
        image_url=data.image_url,
        colors=data.colors,
    )

    for file, content in uploads:
        try:
            ref = storage.upload_image(content, file.filename, "products", file.content_type)
        except Exception:
            logger.exception("Failed to upload image %s for product %s", file.filename, product.id)
            continue
        if ref:
            product = service.set_image(product.id, ref)
            break

    logger.info("Product %s created by %s", product.id, mask_username(current_user.username))
    return product_view(product, storage)


@router.put("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: uuid.UUID,
    data: ProductUpdate,
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    check_admin(current_user, "update a product", settings.REQUIRE_ADMIN_FOR_PRODUCT_UPDATE)
    product = service.update(product_id, **data.model_dump(exclude_unset=True))
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product_view(product, storage)


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
):
    check_admin(current_user, "delete a product", settings.REQUIRE_ADMIN_FOR_PRODUCT_DELETE)
    if not service.delete(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return Response(status_code=204)


@router.put("/{product_id}/tags", response_model=ProductRead)
def assign_product_tags(
    product_id: uuid.UUID,
    data: AssignTagsRequest,
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    check_admin(current_user, "assign tags to a product")
    product = service.assign_tags(product_id, data.tag_ids)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product_view(product, storage)


@router.post("/{product_id}/images", response_model=ProductRead)
async def set_product_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    check_admin(current_user, "add an image to a product", settings.REQUIRE_ADMIN_FOR_PRODUCT_UPDATE)
    content = await read_image_upload(file)

    product = service.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    # One image slot per product
    if product.image_url:
        storage.delete_image(product.image_url)

    ref = storage.upload_image(content, file.filename, "products", file.content_type)
    product = service.set_image(product_id, ref)
    logger.info("Image set on product %s by %s", product_id, mask_username(current_user.username))
    return product_view(product, storage)
