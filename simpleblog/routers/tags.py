import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import Field, field_validator
from sqlmodel import Session

from simpleblog.db.session import get_session
from simpleblog.models.user import User
from simpleblog.routers.auth import get_admin_user
from simpleblog.routers.common import post_view
from simpleblog.schemas import ApiModel, PostRead, TagRead, limit_text, require_text
from simpleblog.services.post import PostService
from simpleblog.services.storage import ImageStorage, get_image_storage
from simpleblog.services.tag import TagService

logger = logging.getLogger(__name__)

router = APIRouter()


class TagCreate(ApiModel):
    name: Optional[str] = Field(None, validate_default=True)
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return require_text(v, "Tag name", 100)

    @field_validator("color")
    @classmethod
    def check_color(cls, v):
        return limit_text(v, "Tag color", 20)


class TagUpdate(ApiModel):
    name: Optional[str] = None
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return limit_text(v, "Tag name", 100)

    @field_validator("color")
    @classmethod
    def check_color(cls, v):
        return limit_text(v, "Tag color", 20)


class TagPosts(ApiModel):
    tag: TagRead
    posts: List[PostRead]


def get_tag_service(session: Session = Depends(get_session)) -> TagService:
    return TagService(session)


@router.get("", response_model=List[TagRead])
def list_tags(service: TagService = Depends(get_tag_service)):
    return service.list_tags()


@router.get("/by-slug/{slug}", response_model=TagRead)
def get_tag_by_slug(slug: str, service: TagService = Depends(get_tag_service)):
    tag = service.get_by_slug(slug)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.get("/{tag_id}", response_model=TagRead)
def get_tag(tag_id: uuid.UUID, service: TagService = Depends(get_tag_service)):
    tag = service.get(tag_id)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.get("/{tag_id}/posts", response_model=TagPosts)
def get_posts_by_tag(
    tag_id: uuid.UUID,
    service: TagService = Depends(get_tag_service),
    session: Session = Depends(get_session),
    storage: ImageStorage = Depends(get_image_storage),
):
    tag = service.get(tag_id)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    posts = PostService(session).posts_by_tag(tag_id)
    return TagPosts(tag=TagRead.model_validate(tag), posts=[post_view(p, storage) for p in posts])


@router.post("", response_model=TagRead, status_code=201)
def create_tag(
    data: TagCreate,
    admin: User = Depends(get_admin_user),
    service: TagService = Depends(get_tag_service),
):
    return service.create(data.name, data.color)


@router.put("/{tag_id}", response_model=TagRead)
def update_tag(
    tag_id: uuid.UUID,
    data: TagUpdate,
    admin: User = Depends(get_admin_user),
    service: TagService = Depends(get_tag_service),
):
    tag = service.update(tag_id, data.name, data.color)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.delete("/{tag_id}", status_code=204)
def delete_tag(
    tag_id: uuid.UUID,
    admin: User = Depends(get_admin_user),
    service: TagService = Depends(get_tag_service),
):
    if not service.delete(tag_id):
        raise HTTPException(status_code=404, detail="Tag not found")
    return Response(status_code=204)
