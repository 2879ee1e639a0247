import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from simpleblog.core.config import settings
from simpleblog.core.errors import install_exception_handlers
from simpleblog.core.logging import configure_logging
from simpleblog.db.session import create_db_and_tables
from simpleblog.routers import about, auth, orders, posts, products, site_settings, tags

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    create_db_and_tables()
    logger.info("%s started", settings.PROJECT_NAME)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
    description="API for the SimpleBlog blog and shop",
)

install_exception_handlers(app)


@app.get("/")
def read_root():
    return {"message": "Welcome to SimpleBlog API. Visit /docs for Swagger UI."}


@app.get("/health")
def health():
    return {"status": "healthy"}


app.include_router(auth.router, tags=["auth"])
app.include_router(posts.router, prefix="/posts", tags=["posts"])
app.include_router(products.router, prefix="/products", tags=["products"])
app.include_router(orders.router, prefix="/orders", tags=["orders"])
app.include_router(tags.router, prefix="/tags", tags=["tags"])
app.include_router(about.router, prefix="/about", tags=["about"])
app.include_router(site_settings.router, prefix="/site-settings", tags=["site-settings"])

# Add CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
