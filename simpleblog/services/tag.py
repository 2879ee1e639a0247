import logging
import re
import unicodedata
import uuid
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from sqlmodel import Session, select

from simpleblog.core.errors import DomainConflictError
from simpleblog.models.tag import Tag

logger = logging.getLogger(__name__)

# Letters NFD cannot split into base + mark
_TRANSLITERATE = str.maketrans({"ł": "l", "đ": "d", "ø": "o", "ß": "ss", "æ": "ae", "œ": "oe"})
_INVALID_CHARS = re.compile(r"[^a-z0-9\s-]")
_SEPARATORS = re.compile(r"[\s-]+")


def slugify(name: str) -> str:
    """
    "Letnia Rosa" -> "letnia-rosa", "  Żółć!! " -> "zolc".

    Output only contains [a-z0-9-], so slugify(slugify(x)) == slugify(x).
    """
    text = (name or "").lower().translate(_TRANSLITERATE)
    text = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in text if unicodedata.category(ch) != "Mn")
    text = _INVALID_CHARS.sub("-", text)
    text = _SEPARATORS.sub("-", text)
    return text.strip("-")


class TagService:
    def __init__(self, session: Session):
        self.session = session

    def list_tags(self) -> List[Tag]:
        return self.session.exec(select(Tag).order_by(Tag.name)).all()

    def get(self, tag_id: uuid.UUID) -> Optional[Tag]:
        return self.session.get(Tag, tag_id)

    def get_by_slug(self, slug: str) -> Optional[Tag]:
        return self.session.exec(select(Tag).where(Tag.slug == slug)).first()

    def _ensure_unique(self, name: str, slug: str, exclude_id: Optional[uuid.UUID] = None):
        query = select(Tag).where(or_(Tag.name == name, Tag.slug == slug))
        if exclude_id is not None:
            query = query.where(Tag.id != exclude_id)
        if self.session.exec(query).first():
            raise DomainConflictError(f"Tag '{name}' already exists")

    def _commit(self, tag: Tag) -> Tag:
        try:
            self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same slug
            self.session.rollback()
            raise DomainConflictError(f"Tag '{tag.name}' already exists")
        self.session.refresh(tag)
        return tag

    def create(self, name: str, color: Optional[str] = None) -> Tag:
        name = name.strip()
        slug = slugify(name)
        self._ensure_unique(name, slug)

        tag = Tag(name=name, slug=slug, color=color)
        self.session.add(tag)
        tag = self._commit(tag)
        logger.info("Tag created: %s (%s)", tag.slug, tag.id)
        return tag

    def update(self, tag_id: uuid.UUID, name: Optional[str] = None, color: Optional[str] = None) -> Optional[Tag]:
        tag = self.get(tag_id)
        if not tag:
            return None

        if name and name.strip() and name.strip() != tag.name:
            new_name = name.strip()
            new_slug = slugify(new_name)
            self._ensure_unique(new_name, new_slug, exclude_id=tag.id)
            tag.name = new_name
            tag.slug = new_slug
        if color is not None:
            tag.color = color or None

        self.session.add(tag)
        return self._commit(tag)

    def delete(self, tag_id: uuid.UUID) -> bool:
        tag = self.get(tag_id)
        if not tag:
            return False
        self.session.delete(tag)
        self.session.commit()
        logger.info("Tag deleted: %s", tag_id)
        return True

    def resolve(self, tag_ids: Iterable[uuid.UUID]) -> List[Tag]:
        """Existing tags for the given ids; unknown ids are ignored."""
        ids = list(dict.fromkeys(tag_ids))
        if not ids:
            return []
        return self.session.exec(select(Tag).where(Tag.id.in_(ids)).order_by(Tag.name)).all()
