"""Application settings and configuration.

This module defines all configuration options for the Orion mint authorization
service. Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Orion Mint Authorization API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./orion_mint.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    store_timeout_seconds: float = Field(default=5.0, alias="STORE_TIMEOUT_SECONDS")

    # Signing identity; the verifying contract knows only the derived address.
    signer_private_key: SecretStr | None = Field(
        default=None,
        alias="BACKEND_VERIFIER_PRIVATE_KEY",
    )
    signing_convention: Literal["personal", "raw"] = Field(
        default="personal",
        alias="SIGNING_CONVENTION",
    )

    # Mint token lifecycle
    mint_token_ttl_seconds: int = Field(default=900, alias="MINT_TOKEN_TTL_SECONDS")
    retention_seconds: int = Field(default=86_400, alias="RETENTION_SECONDS")

    # Admin authentication (revocation)
    secret_key: str | None = Field(default=None, alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    admin_token_expire_minutes: int = Field(default=60, alias="ADMIN_TOKEN_EXPIRE_MINUTES")

    # Similarity screening (disabled unless a service URL is configured)
    similarity_service_url: str | None = Field(default=None, alias="SIMILARITY_SERVICE_URL")
    similarity_timeout_seconds: float = Field(default=10.0, alias="SIMILARITY_TIMEOUT_SECONDS")
    similarity_warn_threshold: float = Field(default=40.0, alias="SIMILARITY_WARN_THRESHOLD")
    similarity_block_threshold: float = Field(default=70.0, alias="SIMILARITY_BLOCK_THRESHOLD")

    # CORS configuration for the web frontend
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:5173",
            "http://localhost:3000",
            "http://localhost:4173",
        ],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "OPTIONS"],
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

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
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


settings = Settings()
