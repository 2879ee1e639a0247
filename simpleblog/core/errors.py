import logging
from typing import Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainConflictError(Exception):
    """A uniqueness rule was violated (duplicate tag slug, username...)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ImageValidationError(Exception):
    """Upload rejected before it reached storage."""

    def __init__(self, message: str, field: str = "file"):
        super().__init__(message)
        self.message = message
        self.field = field


def validation_problem(errors: Dict[str, List[str]]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "title": "One or more validation errors occurred.",
            "status": 400,
            "errors": errors,
        },
    )


def _error_field(loc) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI puts in front
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts) or "request"


def _clean_message(message: str) -> str:
    # pydantic prefixes custom ValueError messages
    return message.removeprefix("Value error, ")


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        errors.setdefault(_error_field(error["loc"]), []).append(_clean_message(error["msg"]))
    return validation_problem(errors)


async def domain_conflict_handler(request: Request, exc: DomainConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


async def image_validation_handler(request: Request, exc: ImageValidationError):
    return validation_problem({exc.field: [exc.message]})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"title": "An unexpected error occurred.", "status": 500},
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(DomainConflictError, domain_conflict_handler)
    app.add_exception_handler(ImageValidationError, image_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
