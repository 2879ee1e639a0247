# Import all models to register them with SQLModel
from simpleblog.models.tag import Tag, PostTagLink, ProductTagLink
from simpleblog.models.blog import Post, Comment, AboutMe, SiteSettings, THEMES
from simpleblog.models.product import Product, ProductView
from simpleblog.models.order import Order, OrderItem, ORDER_STATUSES, ORDER_STATUS_NEW
from simpleblog.models.user import User, RefreshToken, ADMIN_ROLE, USER_ROLE

__all__ = [
    "Tag",
    "PostTagLink",
    "ProductTagLink",
    "Post",
    "Comment",
    "AboutMe",
    "SiteSettings",
    "THEMES",
    "Product",
    "ProductView",
    "Order",
    "OrderItem",
    "ORDER_STATUSES",
    "ORDER_STATUS_NEW",
    "User",
    "RefreshToken",
    "ADMIN_ROLE",
    "USER_ROLE",
]
