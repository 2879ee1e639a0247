import uuid
from typing import Optional, List
from datetime import datetime
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import JSON, Text

from simpleblog.core.clock import utcnow
from simpleblog.models.tag import PostTagLink, Tag


class Comment(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    post_id: uuid.UUID = Field(foreign_key="post.id", index=True)

    author: str
    content: str = Field(sa_column=Column(Text, nullable=False))

    created_at: datetime = Field(default_factory=utcnow)

    post: Optional["Post"] = Relationship(back_populates="comments")


class Post(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Content
    title: str = Field(index=True)
    content: str = Field(sa_column=Column(Text, nullable=False))
    author: str = Field(default="Anon")

    # Storage references (not public URLs), signed per response
    image_urls: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    is_pinned: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utcnow, index=True)

    # Relationships
    comments: List[Comment] = Relationship(
        back_populates="post",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Comment.created_at"},
    )
    tags: List[Tag] = Relationship(back_populates="posts", link_model=PostTagLink)


class AboutMe(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    content: str = Field(default="", sa_column=Column(Text, nullable=False))
    image_url: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)
    updated_by: str = Field(default="System")


THEMES = ("light", "dark", "ocean", "forest", "sunset", "purple", "marjan")


class SiteSettings(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    theme: str = Field(default="light")
    logo_url: Optional[str] = None
    contact_text: Optional[str] = Field(default=None, sa_column=Column(Text))
    updated_at: datetime = Field(default_factory=utcnow)
    updated_by: str = Field(default="System")
