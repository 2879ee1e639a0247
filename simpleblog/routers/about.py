import logging
import os
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import Field, field_validator
from sqlmodel import Session

from simpleblog.core.logging import mask_username
from simpleblog.db.session import get_session
from simpleblog.models.user import User
from simpleblog.routers.auth import get_admin_user
from simpleblog.routers.common import about_view
from simpleblog.schemas import AboutMeRead, ApiModel, require_text
from simpleblog.services.content import AboutMeService
from simpleblog.services.storage import MAX_IMAGE_BYTES, ImageStorage, get_image_storage, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter()


class AboutMeUpdate(ApiModel):
    content: Optional[str] = Field(None, validate_default=True)

    @field_validator("content")
    @classmethod
    def check_content(cls, v):
        return require_text(v, "Content", 10000)


def get_about_service(session: Session = Depends(get_session)) -> AboutMeService:
    return AboutMeService(session)


@router.get("", response_model=AboutMeRead)
def get_about(
    service: AboutMeService = Depends(get_about_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    about = service.get()
    if not about:
        raise HTTPException(status_code=404, detail="About section not found")
    return about_view(about, storage)


@router.put("", response_model=AboutMeRead)
def update_about(
    data: AboutMeUpdate,
    admin: User = Depends(get_admin_user),
    service: AboutMeService = Depends(get_about_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    about = service.update(data.content, admin.username)
    logger.info("About section updated by %s", mask_username(admin.username))
    return about_view(about, storage)


@router.post("/image", response_model=AboutMeRead)
async def upload_about_image(
    file: UploadFile = File(...),
    admin: User = Depends(get_admin_user),
    service: AboutMeService = Depends(get_about_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    content = await read_image_upload(file, MAX_IMAGE_BYTES)

    current = service.get()
    if current and current.image_url:
        storage.delete_image(current.image_url)
        logger.info("Deleted old about image: %s", current.image_url)

    extension = os.path.splitext(file.filename or "")[1]
    ref = storage.upload_image(content, f"about-{uuid.uuid4().hex}{extension}", "about", file.content_type)
    about = service.update_image(ref, admin.username)
    logger.info("About image uploaded by %s: %s", mask_username(admin.username), ref)
    return about_view(about, storage)


@router.delete("/image", response_model=AboutMeRead)
def delete_about_image(
    admin: User = Depends(get_admin_user),
    service: AboutMeService = Depends(get_about_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    current = service.get()
    if not current or not current.image_url:
        raise HTTPException(status_code=404, detail="No about image to delete")

    storage.delete_image(current.image_url)
    about = service.update_image(None, admin.username)
    logger.info("About image deleted by %s", mask_username(admin.username))
    return about_view(about, storage)
