from decimal import Decimal

from sqlmodel import Session, select

from simpleblog.core.config import settings
from simpleblog.db.session import engine, create_db_and_tables
from simpleblog.models.blog import Post
from simpleblog.models.product import Product
from simpleblog.models.tag import Tag
from simpleblog.services.auth import AuthService
from simpleblog.services.tag import TagService

DEFAULT_TAGS = [
    ("Nowości", "#2563eb"),
    ("Promocje", "#dc2626"),
    ("Poradniki", "#16a34a"),
]


def seed_admin(session: Session):
    admin = AuthService(session).ensure_admin(settings.ADMIN_USERNAME, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    print(f"Admin user ready: {admin.username}")


def seed_tags(session: Session):
    if session.exec(select(Tag)).first():
        print("Tags already present. Skipping.")
        return
    service = TagService(session)
    for name, color in DEFAULT_TAGS:
        tag = service.create(name, color)
        print(f"Created tag {tag.name} ({tag.slug})")


def seed_products(session: Session):
    existing_products = session.exec(select(Product)).all()
    if existing_products:
        print(f"Database already contains {len(existing_products)} products. Skipping seed.")
        return

    print("Seeding initial products...")
    products = [
        Product(
            name="Letnia Rosa",
            description="Lekka sukienka na lato z przewiewnej bawełny.",
            category="Sukienki",
            price=Decimal("149.99"),
            stock=20,
            colors=["white", "pink"],
        ),
        Product(
            name="Marjan Classic",
            description="Klasyczna koszula z lnu, krój regularny.",
            category="Koszule",
            price=Decimal("119.00"),
            stock=35,
            colors=["navy", "sand"],
        ),
        Product(
            name="Jesienny Szal",
            description="Ciepły szal z wełny merino.",
            category="Akcesoria",
            price=Decimal("89.50"),
            stock=50,
            colors=["burgundy"],
        ),
    ]
    for product in products:
        session.add(product)
    session.commit()
    print(f"Successfully seeded {len(products)} products!")


def seed_posts(session: Session):
    if session.exec(select(Post)).first():
        print("Posts already present. Skipping.")
        return
    session.add(
        Post(
            title="Witamy w SimpleBlog",
            content="Pierwszy wpis na blogu. Zajrzyj też do sklepu!",
            author=settings.ADMIN_USERNAME,
            is_pinned=True,
        )
    )
    session.commit()
    print("Created welcome post")


def seed():
    print("Creating database and tables...")
    create_db_and_tables()

    with Session(engine) as session:
        seed_admin(session)
        seed_tags(session)
        seed_products(session)
        seed_posts(session)


if __name__ == "__main__":
    seed()
