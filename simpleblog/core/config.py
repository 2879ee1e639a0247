from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    PROJECT_NAME: str = "SimpleBlog API"
    DATABASE_URL: str = "sqlite:///./simpleblog.db"
    LOG_LEVEL: str = "INFO"

    # JWT
    SECRET_KEY: str = "supersecretkey_change_me_in_production"
    ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "SimpleBlog"
    JWT_AUDIENCE: str = "SimpleBlog"
    ACCESS_TOKEN_EXPIRE_HOURS: int = 8
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # Role gates
    REQUIRE_ADMIN_FOR_POST_CREATE: bool = True
    REQUIRE_ADMIN_FOR_POST_UPDATE: bool = True
    REQUIRE_ADMIN_FOR_POST_DELETE: bool = True
    REQUIRE_ADMIN_FOR_PRODUCT_CREATE: bool = True
    REQUIRE_ADMIN_FOR_PRODUCT_UPDATE: bool = True
    REQUIRE_ADMIN_FOR_PRODUCT_DELETE: bool = True
    REQUIRE_ADMIN_FOR_ORDER_VIEW: bool = True

    # SMTP (mapped from .env)
    MAIL_ENABLED: bool = False
    MAIL_USERNAME: str = Field("noreply@simpleblog.local", validation_alias="MAIL_USERNAME")
    MAIL_PASSWORD: str = Field("", validation_alias="MAIL_PASSWORD")
    MAIL_FROM: str = Field("noreply@simpleblog.local", validation_alias="MAIL_FROM")
    MAIL_PORT: int = Field(587, validation_alias="MAIL_PORT")
    MAIL_SERVER: str = Field("localhost", validation_alias="MAIL_SERVER")
    MAIL_SSL: bool = Field(False, validation_alias="MAIL_SSL")
    FRONTEND_URL: str = "http://localhost:5173"

    # AWS S3
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "eu-central-1"
    S3_BUCKET: str = ""
    S3_ROOT_FOLDER: str = "simpleblog"

    # Seed admin
    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@simpleblog.local"
    ADMIN_PASSWORD: str = "Admin123!"

    # Web proxy tier
    API_BASE_URL: str = "http://localhost:8000"
    PROXY_TIMEOUT_SECONDS: float = 30.0

    @property
    def S3_CONFIGURED(self) -> bool:
        return bool(self.S3_BUCKET and self.AWS_ACCESS_KEY_ID and self.AWS_SECRET_ACCESS_KEY)

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
