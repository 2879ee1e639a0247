import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if any(getattr(h, "_simpleblog", False) for h in root.handlers):
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._simpleblog = True
    root.addHandler(handler)
    root.setLevel(level.upper())


def mask_email(email: Optional[str]) -> str:
    """j***@example.com; 'unknown' when the address cannot be split."""
    if not email or not email.strip():
        return "unknown"
    at = email.find("@")
    if at <= 0 or at == len(email) - 1:
        return "unknown"
    return f"{email[0]}***@{email[at + 1:]}"


def mask_username(username: Optional[str]) -> str:
    if not username or not username.strip():
        return "unknown"
    if len(username) <= 2:
        return f"{username[0]}*"
    return f"{username[0]}***"
