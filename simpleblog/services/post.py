import logging
import uuid
from typing import List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy.orm import selectinload
from sqlalchemy import func, desc, or_
from sqlmodel import Session, select

from simpleblog.models.blog import Comment, Post
from simpleblog.models.tag import PostTagLink
from simpleblog.services.tag import TagService

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "Anon"


class PostFilter(BaseModel):
    tag_ids: List[uuid.UUID] = []
    search_term: Optional[str] = None


class PostService:
    def __init__(self, session: Session):
        self.session = session

    def list_posts(self, filter: Optional[PostFilter] = None, page: int = 1, page_size: int = 10) -> Tuple[List[Post], int]:
        """Newest first. Tags match on ANY requested id; all given filters are ANDed."""
        filter = filter or PostFilter()
        offset = (page - 1) * page_size

        query = select(Post)

        if filter.tag_ids:
            tagged = select(PostTagLink.post_id).where(PostTagLink.tag_id.in_(filter.tag_ids))
            query = query.where(Post.id.in_(tagged))

        if filter.search_term:
            term = filter.search_term.strip()
            query = query.where(
                or_(
                    Post.title.icontains(term, autoescape=True),
                    Post.content.icontains(term, autoescape=True)
                )
            )

        # Get total count
        total_query = query.with_only_columns(func.count(Post.id))
        total = self.session.exec(total_query).first() or 0

        posts = self.session.exec(
            query.options(selectinload(Post.comments), selectinload(Post.tags))
            .order_by(desc(Post.created_at))
            .offset(offset)
            .limit(page_size)
        ).all()
        return posts, total

    def get(self, post_id: uuid.UUID) -> Optional[Post]:
        return self.session.get(Post, post_id)

    def create(self, title: str, content: str, author: Optional[str] = None) -> Post:
        post = Post(title=title, content=content, author=(author or "").strip() or DEFAULT_AUTHOR)
        self.session.add(post)
        self.session.commit()
        self.session.refresh(post)
        logger.info("Post created: %s", post.id)
        return post

    def update(
        self,
        post_id: uuid.UUID,
        title: Optional[str] = None,
        content: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Optional[Post]:
        post = self.get(post_id)
        if not post:
            return None

        # Missing or blank values keep what is stored
        if title:
            post.title = title
        if content:
            post.content = content
        if author:
            post.author = author

        self.session.add(post)
        self.session.commit()
        self.session.refresh(post)
        return post

    def delete(self, post_id: uuid.UUID) -> bool:
        post = self.get(post_id)
        if not post:
            return False
        self.session.delete(post)
        self.session.commit()
        logger.info("Post deleted: %s", post_id)
        return True

    def list_comments(self, post_id: uuid.UUID) -> Optional[List[Comment]]:
        post = self.get(post_id)
        if not post:
            return None
        return list(post.comments)

    def add_comment(self, post_id: uuid.UUID, author: Optional[str], content: str) -> Optional[Comment]:
        if not self.get(post_id):
            return None
        comment = Comment(post_id=post_id, author=(author or "").strip() or DEFAULT_AUTHOR, content=content)
        self.session.add(comment)
        self.session.commit()
        self.session.refresh(comment)
        return comment

    def set_pinned(self, post_id: uuid.UUID, pinned: bool) -> Optional[Post]:
        post = self.get(post_id)
        if not post:
            return None
        post.is_pinned = pinned
        self.session.add(post)
        self.session.commit()
        self.session.refresh(post)
        return post

    def add_image(self, post_id: uuid.UUID, image_ref: str) -> Optional[Post]:
        post = self.get(post_id)
        if not post:
            return None
        # Empty reference means storage is disabled, nothing to remember
        if image_ref:
            # JSON column: assign a new list so the change is flushed
            post.image_urls = [*post.image_urls, image_ref]
            self.session.add(post)
            self.session.commit()
            self.session.refresh(post)
        return post

    def remove_image(self, post_id: uuid.UUID, image_ref: str) -> Optional[Post]:
        post = self.get(post_id)
        if not post:
            return None
        if image_ref in post.image_urls:
            post.image_urls = [url for url in post.image_urls if url != image_ref]
            self.session.add(post)
            self.session.commit()
            self.session.refresh(post)
        return post

    def assign_tags(self, post_id: uuid.UUID, tag_ids: List[uuid.UUID]) -> Optional[Post]:
        post = self.get(post_id)
        if not post:
            return None
        post.tags = TagService(self.session).resolve(tag_ids)
        self.session.add(post)
        self.session.commit()
        self.session.refresh(post)
        return post

    def posts_by_tag(self, tag_id: uuid.UUID) -> List[Post]:
        tagged = select(PostTagLink.post_id).where(PostTagLink.tag_id == tag_id)
        return self.session.exec(
            select(Post).where(Post.id.in_(tagged)).order_by(desc(Post.created_at))
        ).all()
