from datetime import datetime, timedelta, timezone

from simpleblog.core.clock import utcnow
from simpleblog.models.user import RefreshToken


def test_utcnow_is_naive_utc():
    now = utcnow()
    assert now.tzinfo is None
    assert abs(datetime.now(timezone.utc).replace(tzinfo=None) - now) < timedelta(seconds=5)


def test_model_timestamps_are_naive_utc(session, make_order):
    order = make_order()
    assert order.created_at.tzinfo is None

    token = RefreshToken(token="t", user_id=order.id, expires_at=utcnow() - timedelta(seconds=1))
    assert token.created_at.tzinfo is None
    assert token.is_active is False
