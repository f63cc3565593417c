"""Application settings and configuration.

This module defines all configuration options for the ReelTalk discussion
service. Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="ReelTalk", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Identity tokens are issued elsewhere; we only verify them.
    secret_key: str = Field(default="reeltalk-dev-secret", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./reeltalk.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Discussion limits
    reply_max_depth: int = Field(default=5, ge=0, alias="REPLY_MAX_DEPTH")
    post_max_tags: int = Field(default=5, ge=0, alias="POST_MAX_TAGS")
    post_title_max_length: int = Field(default=200, alias="POST_TITLE_MAX_LENGTH")
    post_content_max_length: int = Field(default=10_000, alias="POST_CONTENT_MAX_LENGTH")
    reply_content_max_length: int = Field(default=5_000, alias="REPLY_CONTENT_MAX_LENGTH")
    tag_max_length: int = Field(default=30, alias="TAG_MAX_LENGTH")

    # Pagination
    feed_page_size: int = Field(default=20, ge=1, alias="FEED_PAGE_SIZE")
    feed_max_page_size: int = Field(default=100, ge=1, alias="FEED_MAX_PAGE_SIZE")
    bookmark_page_size: int = Field(default=20, ge=1, alias="BOOKMARK_PAGE_SIZE")
    bookmark_max_page_size: int = Field(default=100, ge=1, alias="BOOKMARK_MAX_PAGE_SIZE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
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
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
