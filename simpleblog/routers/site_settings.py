import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import field_validator
from sqlmodel import Session

from simpleblog.core.clock import utcnow
from simpleblog.core.logging import mask_username
from simpleblog.db.session import get_session
from simpleblog.models.blog import THEMES
from simpleblog.models.user import User
from simpleblog.routers.auth import get_admin_user
from simpleblog.routers.common import site_settings_view
from simpleblog.schemas import ApiModel, SiteSettingsRead, limit_text
from simpleblog.services.content import SiteSettingsService
from simpleblog.services.storage import MAX_LOGO_BYTES, ImageStorage, get_image_storage, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter()


class SiteSettingsUpdate(ApiModel):
    theme: str
    contact_text: Optional[str] = None

    @field_validator("theme")
    @classmethod
    def check_theme(cls, v):
        if not v or not v.strip():
            raise ValueError("Theme is required")
        if v not in THEMES:
            raise ValueError(f"Theme must be one of: {', '.join(THEMES)}")
        return v

    @field_validator("contact_text")
    @classmethod
    def check_contact_text(cls, v):
        return limit_text(v, "ContactText", 5000)


def get_site_settings_service(session: Session = Depends(get_session)) -> SiteSettingsService:
    return SiteSettingsService(session)


@router.get("", response_model=SiteSettingsRead)
def get_site_settings(
    service: SiteSettingsService = Depends(get_site_settings_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    site = service.get()
    if not site:
        # Defaults until an admin saves something
        return SiteSettingsRead(
            id=uuid.UUID(int=0),
            theme="light",
            logo_url=None,
            updated_at=utcnow(),
            updated_by="System",
        )
    return site_settings_view(site, storage)


@router.put("", response_model=SiteSettingsRead)
def update_site_settings(
    data: SiteSettingsUpdate,
    admin: User = Depends(get_admin_user),
    service: SiteSettingsService = Depends(get_site_settings_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    site = service.update(data.theme, admin.username, data.contact_text)
    logger.info("Site settings updated to theme '%s' by %s", data.theme, mask_username(admin.username))
    return site_settings_view(site, storage)


@router.get("/themes", response_model=List[str])
def get_themes():
    return list(THEMES)


@router.post("/logo", response_model=SiteSettingsRead)
async def upload_logo(
    file: UploadFile = File(...),
    admin: User = Depends(get_admin_user),
    service: SiteSettingsService = Depends(get_site_settings_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    content = await read_image_upload(file, MAX_LOGO_BYTES)

    current = service.get()
    if current and current.logo_url:
        storage.delete_image(current.logo_url)
        logger.info("Deleted old logo: %s", current.logo_url)

    ref = storage.upload_image(content, file.filename or "logo", "logos", file.content_type)
    site = service.update_logo(ref, admin.username)
    logger.info("Logo uploaded by %s: %s", mask_username(admin.username), ref)
    return site_settings_view(site, storage)


@router.delete("/logo", response_model=SiteSettingsRead)
def delete_logo(
    admin: User = Depends(get_admin_user),
    service: SiteSettingsService = Depends(get_site_settings_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    current = service.get()
    if not current or not current.logo_url:
        raise HTTPException(status_code=404, detail="No logo to delete")

    storage.delete_image(current.logo_url)
    site = service.update_logo(None, admin.username)
    logger.info("Logo deleted by %s", mask_username(admin.username))
    return site_settings_view(site, storage)
