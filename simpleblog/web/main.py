import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from simpleblog.core.config import settings
from simpleblog.core.logging import configure_logging

logger = logging.getLogger(__name__)

FORWARDED_HEADERS = ("content-type", "authorization")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    logger.info("Forwarding /api to %s", settings.API_BASE_URL)
    yield


app = FastAPI(
    title="SimpleBlog Web",
    version="1.0.0",
    lifespan=lifespan,
    description="Forwards /api/* to the SimpleBlog API",
)


def build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=settings.API_BASE_URL, timeout=settings.PROXY_TIMEOUT_SECONDS)


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.api_route("/api/{path:path}", methods=["GET", "POST", "PUT", "DELETE"])
async def proxy(path: str, request: Request):
    """Relay the call to the API tier and hand its answer back untouched."""
    headers = {name: request.headers[name] for name in FORWARDED_HEADERS if name in request.headers}
    body = await request.body()

    try:
        async with build_client() as client:
            upstream = await client.request(
                request.method,
                f"/{path}",
                params=request.query_params.multi_items(),
                content=body or None,
                headers=headers,
            )
    except httpx.RequestError as e:
        logger.error("Proxy %s /%s failed: %s", request.method, path, e)
        return JSONResponse(status_code=502, content={"title": "Unable to connect to API service"})

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type"),
    )
