import uuid
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import Field, Relationship, SQLModel

from simpleblog.core.clock import utcnow

if TYPE_CHECKING:
    from simpleblog.models.blog import Post
    from simpleblog.models.product import Product


class PostTagLink(SQLModel, table=True):
    post_id: uuid.UUID = Field(foreign_key="post.id", primary_key=True)
    tag_id: uuid.UUID = Field(foreign_key="tag.id", primary_key=True)


class ProductTagLink(SQLModel, table=True):
    product_id: uuid.UUID = Field(foreign_key="product.id", primary_key=True)
    tag_id: uuid.UUID = Field(foreign_key="tag.id", primary_key=True)


class Tag(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str = Field(unique=True, index=True)
    slug: str = Field(unique=True, index=True)  # derived from name, see services.tag.slugify
    color: Optional[str] = None  # hex, e.g. "#ff8800"

    created_at: datetime = Field(default_factory=utcnow)

    # Non-owning; deleting a tag only removes link rows
    posts: List["Post"] = Relationship(back_populates="tags", link_model=PostTagLink)
    products: List["Product"] = Relationship(back_populates="tags", link_model=ProductTagLink)
