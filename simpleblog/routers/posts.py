import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile
from pydantic import Field, field_validator, model_validator
from sqlmodel import Session

from simpleblog.core.config import settings
from simpleblog.core.logging import mask_username
from simpleblog.db.session import get_session
from simpleblog.models.user import User
from simpleblog.routers.auth import check_admin, get_current_user
from simpleblog.routers.common import (
    parse_uuid_list,
    post_view,
    read_body_and_files,
    resolve_image_ref,
    validate_model,
)
from simpleblog.schemas import (
    ApiModel,
    AssignTagsRequest,
    CommentRead,
    Page,
    PostRead,
    limit_text,
    require_text,
)
from simpleblog.services.post import PostFilter, PostService
from simpleblog.services.storage import ImageStorage, get_image_storage, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter()


class PostCreate(ApiModel):
    title: Optional[str] = Field(None, validate_default=True)
    content: Optional[str] = Field(None, validate_default=True)
    author: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return require_text(v, "Post title", 200)

    @field_validator("content")
    @classmethod
    def check_content(cls, v):
        return require_text(v, "Post content", 10000)

    @field_validator("author")
    @classmethod
    def check_author(cls, v):
        return limit_text(v, "Author name", 100)


class PostUpdate(ApiModel):
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return limit_text(v, "Post title", 200)

    @field_validator("content")
    @classmethod
    def check_content(cls, v):
        return limit_text(v, "Post content", 10000)

    @field_validator("author")
    @classmethod
    def check_author(cls, v):
        return limit_text(v, "Author name", 100)

    @model_validator(mode="after")
    def check_any_field(self):
        if not (self.title or self.content or self.author):
            raise ValueError("At least one field (Title, Content, or Author) must be provided for update")
        return self


class CommentCreate(ApiModel):
    author: Optional[str] = Field(None, validate_default=True)
    content: Optional[str] = Field(None, validate_default=True)

    @field_validator("author")
    @classmethod
    def check_author(cls, v):
        return require_text(v, "Author name", 100)

    @field_validator("content")
    @classmethod
    def check_content(cls, v):
        return require_text(v, "Comment content", 1000)


def get_post_service(session: Session = Depends(get_session)) -> PostService:
    return PostService(session)


def _get_post_or_404(service: PostService, post_id: uuid.UUID):
    post = service.get(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.get("", response_model=Page[PostRead])
def list_posts(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    tag_ids: List[str] = Query([], alias="tagIds"),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    service: PostService = Depends(get_post_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    filter = PostFilter(tag_ids=parse_uuid_list(tag_ids), search_term=(search_term or "").strip() or None)
    posts, total = service.list_posts(filter, page, page_size)
    return Page[PostRead].build([post_view(p, storage) for p in posts], total, page, page_size)


@router.get("/{post_id}", response_model=PostRead)
def get_post(
    post_id: uuid.UUID,
    service: PostService = Depends(get_post_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    return post_view(_get_post_or_404(service, post_id), storage)


@router.post("", response_model=PostRead, status_code=201)
async def create_post(
    request: Request,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    """JSON body, or multipart form with title/content/author plus any number of image files."""
    check_admin(current_user, "create a post", settings.REQUIRE_ADMIN_FOR_POST_CREATE)

    payload, files = await read_body_and_files(request, ("title", "content", "author"))
    uploads = [(f, await read_image_upload(f)) for f in files]
    data = validate_model(PostCreate, payload)

    post = service.create(data.title, data.content, data.author)

    for file, content in uploads:
        try:
            ref = storage.upload_image(content, file.filename, "posts", file.content_type)
        except Exception:
            logger.exception("Failed to upload image %s for post %s", file.filename, post.id)
            continue
        post = service.add_image(post.id, ref)

    logger.info("Post %s created by %s", post.id, mask_username(current_user.username))
    return post_view(post, storage)


@router.put("/{post_id}", response_model=PostRead)
def update_post(
    post_id: uuid.UUID,
    data: PostUpdate,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    check_admin(current_user, "update a post", settings.REQUIRE_ADMIN_FOR_POST_UPDATE)
    post = service.update(post_id, title=data.title, content=data.content, author=data.author)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post_view(post, storage)


@router.delete("/{post_id}", status_code=204)
def delete_post(
    post_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    check_admin(current_user, "delete a post", settings.REQUIRE_ADMIN_FOR_POST_DELETE)
    if not service.delete(post_id):
        raise HTTPException(status_code=404, detail="Post not found")
    return Response(status_code=204)


@router.put("/{post_id}/pin", response_model=PostRead)
def pin_post(
    post_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    check_admin(current_user, "pin a post")
    post = service.set_pinned(post_id, True)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post_view(post, storage)


@router.put("/{post_id}/unpin", response_model=PostRead)
def unpin_post(
    post_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    check_admin(current_user, "unpin a post")
    post = service.set_pinned(post_id, False)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post_view(post, storage)


@router.get("/{post_id}/comments", response_model=List[CommentRead])
def list_comments(post_id: uuid.UUID, service: PostService = Depends(get_post_service)):
    comments = service.list_comments(post_id)
    if comments is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return comments


@router.post("/{post_id}/comments", response_model=CommentRead, status_code=201)
def add_comment(post_id: uuid.UUID, data: CommentCreate, service: PostService = Depends(get_post_service)):
    comment = service.add_comment(post_id, data.author, data.content)
    if not comment:
        raise HTTPException(status_code=404, detail="Post not found")
    return comment


@router.post("/{post_id}/images", response_model=PostRead)
async def add_post_image(
    post_id: uuid.UUID,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    check_admin(current_user, "add an image to a post")
    content = await read_image_upload(file)
    _get_post_or_404(service, post_id)

    ref = storage.upload_image(content, file.filename, "posts", file.content_type)
    post = service.add_image(post_id, ref)
    logger.info("Image added to post %s by %s", post_id, mask_username(current_user.username))
    return post_view(post, storage)


@router.delete("/{post_id}/images", response_model=PostRead)
def remove_post_image(
    post_id: uuid.UUID,
    image_url: str = Query(..., alias="imageUrl"),
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    check_admin(current_user, "remove an image from a post")
    post = _get_post_or_404(service, post_id)

    ref = resolve_image_ref(post.image_urls, image_url)
    if ref in post.image_urls:
        post = service.remove_image(post_id, ref)
        storage.delete_image(ref)
    logger.info("Image removed from post %s by %s", post_id, mask_username(current_user.username))
    return post_view(post, storage)


@router.put("/{post_id}/tags", response_model=PostRead)
def assign_post_tags(
    post_id: uuid.UUID,
    data: AssignTagsRequest,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    check_admin(current_user, "assign tags to a post")
    post = service.assign_tags(post_id, data.tag_ids)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post_view(post, storage)
