from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import simpleblog.models  # noqa: F401
from simpleblog.core.clock import utcnow
from simpleblog.core.security import create_access_token
from simpleblog.db.session import get_session
from simpleblog.main import app
from simpleblog.models.order import Order
from simpleblog.models.product import Product
from simpleblog.models.user import ADMIN_ROLE, USER_ROLE
from simpleblog.services.auth import AuthService
from simpleblog.services.storage import get_image_storage

PASSWORD = "Secret123!"


class FakeStorage:
    """Records calls instead of talking to S3; signed URLs are recognisable."""

    def __init__(self):
        self.uploads = []
        self.deleted = []

    def upload_image(self, content, file_name, folder, content_type="image/jpeg"):
        ref = f"simpleblog/{folder}/{len(self.uploads)}-{file_name}"
        self.uploads.append(ref)
        return ref

    def delete_image(self, ref):
        self.deleted.append(ref)
        return True

    def generate_signed_url(self, ref, expiration_minutes=60):
        return f"https://signed.example/{ref}?sig=test"


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="storage")
def storage_fixture():
    return FakeStorage()


@pytest.fixture(name="client")
def client_fixture(session: Session, storage: FakeStorage):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_image_storage] = lambda: storage
    client = TestClient(app, raise_server_exceptions=False)
    yield client
    app.dependency_overrides.clear()


def _make_user(session: Session, username: str, email: str, role: str):
    user, _ = AuthService(session).register(username, email, PASSWORD, role=role)
    return user


@pytest.fixture(name="admin_user")
def admin_user_fixture(session: Session):
    return _make_user(session, "admin", "admin@example.com", ADMIN_ROLE)


@pytest.fixture(name="regular_user")
def regular_user_fixture(session: Session):
    return _make_user(session, "reader", "reader@example.com", USER_ROLE)


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.username, admin_user.role)}"}


@pytest.fixture(name="user_headers")
def user_headers_fixture(regular_user):
    return {"Authorization": f"Bearer {create_access_token(regular_user.username, regular_user.role)}"}


@pytest.fixture(name="make_product")
def make_product_fixture(session: Session):
    def make(name="Letnia Rosa", price="10.00", category="Sukienki", **kwargs):
        product = Product(
            name=name,
            description=kwargs.pop("description", f"{name} description"),
            category=category,
            price=Decimal(price),
            stock=kwargs.pop("stock", 5),
            **kwargs,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return make


@pytest.fixture(name="make_order")
def make_order_fixture(session: Session):
    def make(total="100.00", created_at=None, status="New"):
        order = Order(
            customer_name="Jan Kowalski",
            customer_email="jan@example.com",
            customer_phone="600100200",
            shipping_address="ul. Polna 1",
            shipping_city="Krakow",
            shipping_postal_code="30-001",
            status=status,
            total_amount=Decimal(total),
            created_at=created_at or utcnow(),
        )
        session.add(order)
        session.commit()
        session.refresh(order)
        return order

    return make
