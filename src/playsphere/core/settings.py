"""Application settings and configuration.

This module defines all configuration options for the PlaySphere application.
Settings are loaded from environment variables with sensible defaults.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="PlaySphere", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    bcrypt_rounds: int = Field(default=10, alias="BCRYPT_ROUNDS")

    # Database configuration
    database_url: str = Field(default="sqlite:///./playsphere.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    access_token_cookie_name: str = Field(default="access_token", alias="ACCESS_TOKEN_COOKIE")
    cookie_secure: bool = Field(default=False, alias="COOKIE_SECURE")

    # Realtime relay
    websocket_path: str = Field(default="/ws", alias="WEBSOCKET_PATH")
    superseded_close_code: int = Field(default=4000, alias="SUPERSEDED_CLOSE_CODE")

    # Image uploads
    upload_dir: Path = Field(default=Path("uploads"), alias="UPLOAD_DIR")
    max_upload_bytes: int = Field(default=2 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    allowed_image_types: list[str] = Field(
        default=["image/jpeg", "image/png", "image/gif"],
        alias="ALLOWED_IMAGE_TYPES",
    )

    # Game videos (YouTube Data API v3)
    youtube_api_key: str | None = Field(default=None, alias="YOUTUBE_API_KEY")
    video_search_timeout_seconds: float = Field(default=5.0, alias="VIDEO_SEARCH_TIMEOUT_SECONDS")

    # Ideas pagination
    ideas_default_page_size: int = Field(default=10, alias="IDEAS_PAGE_SIZE")
    ideas_max_page_size: int = Field(default=100, alias="IDEAS_MAX_PAGE_SIZE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["http://localhost:5000"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the SQLAlchemy URL to connect with.

        Honours the testing override and pins bare PostgreSQL URLs
        (``postgres://``, ``postgresql://``) to the psycopg 3 driver.
        """
        url = self.database_url
        if self.use_testing_database and self.test_database_url:
            url = self.test_database_url
        scheme, sep, rest = url.partition("://")
        if sep and scheme in {"postgres", "postgresql"}:
            return f"postgresql+psycopg://{rest}"
        return url


settings = Settings()
