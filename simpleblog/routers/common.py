import json
import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Type, TypeVar
from urllib.parse import urlparse

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from simpleblog.models.blog import AboutMe, Post, SiteSettings
from simpleblog.models.product import Product
from simpleblog.schemas import AboutMeRead, PostRead, ProductRead, SiteSettingsRead
from simpleblog.services.storage import ImageStorage, sign_url

M = TypeVar("M", bound=BaseModel)


def parse_uuid_list(values: Optional[Iterable[str]]) -> List[uuid.UUID]:
    """Valid UUIDs from a repeated query parameter; anything else is skipped."""
    ids = []
    for value in values or []:
        try:
            ids.append(uuid.UUID(value))
        except (TypeError, ValueError):
            continue
    return ids


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """ISO date or datetime from a query string; unparseable values mean no bound."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


async def read_body_and_files(request: Request, fields: Iterable[str]) -> Tuple[dict, List[UploadFile]]:
    """
    Accept either a JSON body or multipart/form-data.

    For forms, the named text fields become the payload and every file part,
    whatever its field name, is returned alongside.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data") or content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        payload = {name: form.get(name) for name in fields if form.get(name) not in (None, "")}
        files = [value for _, value in form.multi_items() if isinstance(value, UploadFile) and value.filename]
        return payload, files

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestValidationError([{"loc": ("body",), "msg": "Invalid request body", "type": "json_invalid"}])
    if not isinstance(payload, dict):
        raise RequestValidationError([{"loc": ("body",), "msg": "Invalid request body", "type": "model_type"}])
    return payload, []


def validate_model(model: Type[M], payload: dict) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError([{**err, "loc": ("body", *err["loc"])} for err in e.errors()])


def resolve_image_ref(refs: Iterable[str], image_url: str) -> str:
    """Map a URL the client got back (possibly signed) to the stored reference."""
    refs = list(refs)
    if image_url in refs:
        return image_url
    path = urlparse(image_url).path.lstrip("/")
    for ref in refs:
        if path and path.endswith(ref):
            return ref
    return image_url


# Response views: stored references are swapped for signed URLs, entities are never touched

def post_view(post: Post, storage: ImageStorage) -> PostRead:
    view = PostRead.model_validate(post)
    return view.model_copy(update={"image_urls": [sign_url(storage, ref) for ref in post.image_urls]})


def product_view(product: Product, storage: ImageStorage) -> ProductRead:
    view = ProductRead.model_validate(product)
    return view.model_copy(update={"image_url": sign_url(storage, product.image_url)})


def about_view(about: AboutMe, storage: ImageStorage) -> AboutMeRead:
    view = AboutMeRead.model_validate(about)
    return view.model_copy(update={"image_url": sign_url(storage, about.image_url)})


def site_settings_view(site: SiteSettings, storage: ImageStorage) -> SiteSettingsRead:
    view = SiteSettingsRead.model_validate(site)
    return view.model_copy(update={"logo_url": sign_url(storage, site.logo_url)})
