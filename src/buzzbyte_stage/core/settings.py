"""Application settings and configuration.

This module defines all configuration options for the BuzzByte Stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from datetime import timedelta
from typing import Literal

from nacl import pwhash
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="BuzzByte Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./buzzbyte.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis configuration, used by the redis sweep lock backend
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Argon2id cost parameters for password hashing
    password_opslimit: int = Field(
        default=pwhash.argon2id.OPSLIMIT_INTERACTIVE,
        alias="PASSWORD_OPSLIMIT",
    )
    password_memlimit: int = Field(
        default=pwhash.argon2id.MEMLIMIT_INTERACTIVE,
        alias="PASSWORD_MEMLIMIT",
    )

    # Post lifecycle
    post_ttl_hours: float = Field(default=24.0, gt=0, alias="POST_TTL_HOURS")
    expiring_soon_hours: float = Field(default=2.0, ge=0, alias="EXPIRING_SOON_HOURS")

    # Expiration sweeper
    sweeper_enabled: bool = Field(default=True, alias="SWEEPER_ENABLED")
    sweep_interval_seconds: float = Field(default=3600.0, gt=0, alias="SWEEP_INTERVAL_SECONDS")
    sweep_batch_size: int = Field(default=100, gt=0, alias="SWEEP_BATCH_SIZE")
    sweep_max_runtime_seconds: float = Field(
        default=300.0,
        gt=0,
        alias="SWEEP_MAX_RUNTIME_SECONDS",
    )
    sweep_max_attempts: int = Field(default=3, ge=1, alias="SWEEP_MAX_ATTEMPTS")
    sweep_retry_delay_seconds: float = Field(
        default=30.0,
        ge=0,
        alias="SWEEP_RETRY_DELAY_SECONDS",
    )
    sweep_lock_backend: Literal["database", "redis"] = Field(
        default="database",
        alias="SWEEP_LOCK_BACKEND",
    )
    # Must exceed the max runtime so a live sweep never loses its lease.
    sweep_lock_ttl_seconds: float = Field(default=600.0, gt=0, alias="SWEEP_LOCK_TTL_SECONDS")

    # Binary asset storage
    asset_storage_backend: Literal["local", "minio"] = Field(
        default="local",
        alias="ASSET_STORAGE_BACKEND",
    )
    media_root: str = Field(default="./media", alias="MEDIA_ROOT")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    minio_endpoint: str = Field(default="localhost:9000", alias="MINIO_ENDPOINT")
    minio_access_key: str = Field(default="minioadmin", alias="MINIO_ACCESS_KEY")
    minio_secret_key: str = Field(default="minioadmin", alias="MINIO_SECRET_KEY")
    minio_bucket: str = Field(default="buzzbyte", alias="MINIO_BUCKET")
    minio_secure: bool = Field(default=False, alias="MINIO_SECURE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
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
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg so Alembic and the synchronous
        engine share one driver family.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def post_ttl(self) -> timedelta:
        """Lifetime of a post before it becomes eligible for purge."""
        return timedelta(hours=self.post_ttl_hours)

    @property
    def expiring_soon_window(self) -> timedelta:
        """Window before expiry during which a post is flagged as expiring soon."""
        return timedelta(hours=self.expiring_soon_hours)


settings = Settings()  # type: ignore[call-arg]
