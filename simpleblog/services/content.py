import logging
from typing import Optional

from sqlmodel import Session, select

from simpleblog.core.clock import utcnow
from simpleblog.models.blog import AboutMe, SiteSettings

logger = logging.getLogger(__name__)


class AboutMeService:
    """Single-row store; the first row wins if more than one ever exists."""

    def __init__(self, session: Session):
        self.session = session

    def get(self) -> Optional[AboutMe]:
        return self.session.exec(select(AboutMe)).first()

    def _get_or_create(self) -> AboutMe:
        return self.get() or AboutMe()

    def _save(self, about: AboutMe, updated_by: str) -> AboutMe:
        about.updated_at = utcnow()
        about.updated_by = updated_by
        self.session.add(about)
        self.session.commit()
        self.session.refresh(about)
        return about

    def update(self, content: str, updated_by: str) -> AboutMe:
        about = self._get_or_create()
        about.content = content
        return self._save(about, updated_by)

    def update_image(self, image_ref: Optional[str], updated_by: str) -> AboutMe:
        about = self._get_or_create()
        about.image_url = image_ref or None
        return self._save(about, updated_by)


class SiteSettingsService:
    def __init__(self, session: Session):
        self.session = session

    def get(self) -> Optional[SiteSettings]:
        return self.session.exec(select(SiteSettings)).first()

    def _get_or_create(self) -> SiteSettings:
        return self.get() or SiteSettings()

    def _save(self, site: SiteSettings, updated_by: str) -> SiteSettings:
        site.updated_at = utcnow()
        site.updated_by = updated_by
        self.session.add(site)
        self.session.commit()
        self.session.refresh(site)
        return site

    def update(self, theme: str, updated_by: str, contact_text: Optional[str] = None) -> SiteSettings:
        site = self._get_or_create()
        site.theme = theme
        if contact_text is not None:
            site.contact_text = contact_text or None
        logger.info("Site theme set to %s", theme)
        return self._save(site, updated_by)

    def update_logo(self, logo_ref: Optional[str], updated_by: str) -> SiteSettings:
        site = self._get_or_create()
        site.logo_url = logo_ref or None
        return self._save(site, updated_by)
