import logging
import re
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from pydantic import EmailStr, field_validator
from sqlmodel import Session, select

from simpleblog.core.logging import mask_username
from simpleblog.core.security import decode_access_token
from simpleblog.db.session import get_session
from simpleblog.models.user import User
from simpleblog.schemas import ApiModel, require_text
from simpleblog.services.auth import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login")
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)


def check_password_strength(v: str) -> str:
    v = require_text(v, "Password", 200)
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", v):
        raise ValueError("Password must contain at least one digit")
    if not re.search(r"[^a-zA-Z0-9]", v):
        raise ValueError("Password must contain at least one special character")
    return v


class LoginRequest(ApiModel):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def username_required(cls, v):
        return require_text(v, "Username", 100)

    @field_validator("password")
    @classmethod
    def password_required(cls, v):
        return require_text(v, "Password", 200)


class TokenPair(ApiModel):
    token: str
    refresh_token: str
    username: str
    role: str


class RefreshRequest(ApiModel):
    refresh_token: str


class RegisterRequest(ApiModel):
    username: str
    email: EmailStr
    password: str

    @field_validator("username")
    @classmethod
    def check_username(cls, v):
        v = require_text(v, "Username", 100)
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters long")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if len(v) > 256:
            raise ValueError("Email cannot exceed 256 characters")
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return check_password_strength(v)


class RegisterResponse(ApiModel):
    success: bool
    message: Optional[str] = None


class PasswordResetRequest(ApiModel):
    email: str


class PasswordResetConfirm(ApiModel):
    user_id: uuid.UUID
    token: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def check_new_password(cls, v):
        return check_password_strength(v)


def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(session)


@router.post("/login", response_model=TokenPair)
def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    tokens = service.login(data.username, data.password)
    if not tokens:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return tokens


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(data: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    tokens = service.refresh(data.refresh_token)
    if not tokens:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return tokens


@router.post("/auth/revoke")
def revoke(data: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    service.revoke(data.refresh_token)
    logger.info("Refresh token revoked")
    return {"message": "Token revoked"}


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    user, error_message = service.register(data.username, data.email, data.password)
    if not user:
        logger.warning("Failed registration attempt for user: %s", mask_username(data.username))
        return JSONResponse(
            status_code=400,
            content=RegisterResponse(success=False, message=error_message).model_dump(by_alias=True),
        )
    return RegisterResponse(success=True, message="Registration successful")


@router.post("/auth/request-password-reset")
def request_password_reset(data: PasswordResetRequest, service: AuthService = Depends(get_auth_service)):
    service.request_password_reset(data.email)
    # Always return success to prevent email enumeration
    return {"message": "If the email exists, a reset instruction has been sent."}


@router.post("/auth/reset-password")
def reset_password(data: PasswordResetConfirm, service: AuthService = Depends(get_auth_service)):
    if not service.reset_password(data.user_id, data.token, data.new_password):
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    return {"message": "Password updated successfully"}


def _user_from_token(token: Optional[str], session: Session) -> Optional[User]:
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    return session.exec(select(User).where(User.username == payload["sub"])).first()


async def get_current_user(token: str = Depends(oauth2_scheme), session: Session = Depends(get_session)) -> User:
    user = _user_from_token(token, session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    session: Session = Depends(get_session),
) -> Optional[User]:
    return _user_from_token(token, session)


def check_admin(user: User, action: str, required: bool = True) -> None:
    """403 unless the user is an Admin; `required` carries the per-operation config flag."""
    if required and not user.is_admin:
        logger.warning("User %s attempted to %s without Admin role", mask_username(user.username), action)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


async def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    check_admin(current_user, "perform an admin operation")
    return current_user
