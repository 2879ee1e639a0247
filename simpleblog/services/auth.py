import logging
import secrets
import uuid
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy import func, update
from sqlmodel import Session, select

from simpleblog.core.clock import utcnow
from simpleblog.core.config import settings
from simpleblog.core.logging import mask_email, mask_username
from simpleblog.core.security import (
    create_access_token,
    generate_refresh_token,
    generate_reset_token,
    get_password_hash,
    verify_password,
)
from simpleblog.models.user import RefreshToken, User, ADMIN_ROLE, USER_ROLE
from simpleblog.services.email import send_password_reset_email

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, session: Session):
        self.session = session

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.username == username)).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(func.lower(User.email) == email.lower())).first()

    def register(self, username: str, email: str, password: str, role: str = USER_ROLE) -> Tuple[Optional[User], Optional[str]]:
        if self.get_user_by_username(username):
            return None, f"Username '{username}' is already taken"
        if self.get_user_by_email(email):
            return None, "Email is already registered"

        user = User(
            username=username,
            email=email,
            password_hash=get_password_hash(password),
            role=role,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info("User registered: %s", mask_username(username))
        return user, None

    def ensure_admin(self, username: str, email: str, password: str) -> User:
        user = self.get_user_by_username(username)
        if user:
            if user.role != ADMIN_ROLE:
                user.role = ADMIN_ROLE
                self.session.add(user)
                self.session.commit()
            return user
        user, _ = self.register(username, email, password, role=ADMIN_ROLE)
        return user

    def authenticate(self, username: str, password: str) -> Optional[User]:
        user = self.get_user_by_username(username)
        if not user or not verify_password(password, user.password_hash):
            return None
        return user

    def _issue_tokens(self, user: User) -> dict:
        """New access/refresh pair; the refresh row is added but not committed."""
        refresh_token = generate_refresh_token()
        self.session.add(
            RefreshToken(
                token=refresh_token,
                user_id=user.id,
                expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            )
        )
        return {
            "token": create_access_token(user.username, user.role),
            "refresh_token": refresh_token,
            "username": user.username,
            "role": user.role,
        }

    def login(self, username: str, password: str) -> Optional[dict]:
        user = self.authenticate(username, password)
        if not user:
            logger.warning("Failed login attempt for user: %s", mask_username(username))
            return None

        tokens = self._issue_tokens(user)
        self.session.commit()
        logger.info("Successful login for user: %s", mask_username(user.username))
        return tokens

    def _claim_refresh_token(self, token: str, unexpired: bool = True) -> bool:
        """Revoke the token if nobody revoked it first; concurrent callers cannot both win."""
        if not token:
            return False
        now = utcnow()
        conditions = [RefreshToken.token == token, RefreshToken.revoked_at.is_(None)]
        if unexpired:
            conditions.append(RefreshToken.expires_at > now)
        result = self.session.execute(
            update(RefreshToken)
            .where(*conditions)
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.session.rollback()
            return False
        return True

    def refresh(self, token: str) -> Optional[dict]:
        """
        Rotate a refresh token.

        The presented token is revoked by a conditional update and the
        replacement inserted in the same commit, so a token can be
        exchanged at most once even under concurrent requests.
        """
        if not self._claim_refresh_token(token):
            logger.warning("Invalid or expired refresh token provided")
            return None

        user_id = self.session.exec(select(RefreshToken.user_id).where(RefreshToken.token == token)).first()
        user = self.session.get(User, user_id) if user_id else None
        if not user:
            self.session.rollback()
            return None

        tokens = self._issue_tokens(user)
        self.session.commit()
        logger.info("Refresh token rotated for user %s", mask_username(user.username))
        return tokens

    def revoke(self, token: str) -> bool:
        if not self._claim_refresh_token(token, unexpired=False):
            return False
        self.session.commit()
        return True

    def request_password_reset(self, email: str) -> None:
        """Stores a reset token and mails it. Says nothing about whether the account exists."""
        user = self.get_user_by_email(email)
        if not user:
            logger.info("Password reset requested for unknown address %s", mask_email(email))
            return

        token = generate_reset_token()
        user.reset_token = token
        user.reset_token_expires_at = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        self.session.add(user)
        self.session.commit()

        send_password_reset_email(user.email, user.id, token)

    def reset_password(self, user_id: uuid.UUID, token: str, new_password: str) -> bool:
        user = self.session.get(User, user_id)
        if not user or not user.reset_token or not token:
            return False
        if not secrets.compare_digest(user.reset_token, token):
            return False
        if not user.reset_token_expires_at or user.reset_token_expires_at < utcnow():
            return False

        user.password_hash = get_password_hash(new_password)
        user.reset_token = None
        user.reset_token_expires_at = None
        self.session.add(user)

        # Existing sessions end with the old password
        active = self.session.exec(
            select(RefreshToken).where(RefreshToken.user_id == user.id, RefreshToken.revoked_at == None)  # noqa: E711
        ).all()
        now = utcnow()
        for refresh_token in active:
            refresh_token.revoked_at = now
            self.session.add(refresh_token)

        self.session.commit()
        logger.info("Password reset for user %s", mask_username(user.username))
        return True
