import smtplib
import uuid
from decimal import Decimal

from simpleblog.core.config import settings
from simpleblog.models.order import Order, OrderItem
from simpleblog.services import email


def test_disabled_mail_is_not_sent(monkeypatch):
    monkeypatch.setattr(settings, "MAIL_ENABLED", False)

    def fail(*args, **kwargs):
        raise AssertionError("SMTP must not be used")

    monkeypatch.setattr(smtplib, "SMTP", fail)
    assert email.send_email("jan@example.com", "Hi", "<p>Hi</p>") is False


def test_smtp_errors_are_reported_not_raised(monkeypatch):
    monkeypatch.setattr(settings, "MAIL_ENABLED", True)
    monkeypatch.setattr(settings, "MAIL_SSL", False)

    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("no server")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    assert email.send_email("jan@example.com", "Hi", "<p>Hi</p>") is False


def test_order_confirmation_lists_the_snapshot(monkeypatch):
    sent = {}
    monkeypatch.setattr(email, "send_email", lambda to, subject, body: sent.update(to=to, body=body) or True)

    order = Order(
        customer_name="Jan",
        customer_email="jan@example.com",
        customer_phone="1",
        shipping_address="ul. Polna 1",
        shipping_city="Krakow",
        shipping_postal_code="30-001",
        total_amount=Decimal("20.00"),
    )
    order.items = [OrderItem(product_id=uuid.uuid4(), product_name="Shirt", price=Decimal("5.00"), quantity=4)]

    assert email.send_order_confirmation_email(order) is True
    assert sent["to"] == "jan@example.com"
    assert "Shirt" in sent["body"]
    assert "20.00" in sent["body"]


def test_reset_link_carries_user_and_token(monkeypatch):
    sent = {}
    monkeypatch.setattr(email, "send_email", lambda to, subject, body: sent.update(body=body) or True)
    user_id = uuid.uuid4()

    email.send_password_reset_email("jan@example.com", user_id, "tok-123")

    assert f"{settings.FRONTEND_URL}/reset-password?userId={user_id}&token=tok-123" in sent["body"]


def test_order_confirmation_escapes_customer_input(monkeypatch):
    sent = {}
    monkeypatch.setattr(email, "send_email", lambda to, subject, body: sent.update(body=body) or True)

    order = Order(
        customer_name="<b>Jan</b>",
        customer_email="jan@example.com",
        customer_phone="1",
        shipping_address='<a href="https://evil.example">ul. Polna 1</a>',
        shipping_city="Krakow & okolice",
        shipping_postal_code="30-001",
        total_amount=Decimal("5.00"),
    )
    order.items = [
        OrderItem(product_id=uuid.uuid4(), product_name="<script>x</script>", price=Decimal("5.00"), quantity=1)
    ]

    email.send_order_confirmation_email(order)

    body = sent["body"]
    assert "<b>Jan</b>" not in body
    assert "&lt;b&gt;Jan&lt;/b&gt;" in body
    assert "<script>" not in body
    assert 'href="https://evil.example"' not in body
    assert "Krakow &amp; okolice" in body
