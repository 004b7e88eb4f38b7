from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SCRIBE_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "scribe"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 8080

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./scribe.db",
        validation_alias="DATABASE_URL",
    )
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, validation_alias="DB_MAX_OVERFLOW")

    # Blog
    blog_title: str = "Scribe"
    blog_description: str = "Notes and articles"
    blog_url: str = "http://localhost:8080"
    blog_route_prefix: str = "/blog"
    page_size: int = 10
    rss_item_count: int = 10

    # Comments
    comments_noreply_email: str | None = None
    recaptcha_site_key: str | None = Field(default=None, validation_alias="RECAPTCHA_SITE_KEY")
    recaptcha_secret_key: str | None = Field(
        default=None, validation_alias="RECAPTCHA_SECRET_KEY"
    )
    akismet_api_key: str | None = Field(default=None, validation_alias="AKISMET_API_KEY")
    integration_timeout: float = 10.0

    # SMTP
    smtp_host: str | None = Field(default=None, validation_alias="SMTP_HOST")
    smtp_port: int = Field(default=587, validation_alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, validation_alias="SMTP_USERNAME")
    smtp_password: str | None = Field(default=None, validation_alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=True, validation_alias="SMTP_TLS")

    # Admin API
    admin_token: str | None = Field(default=None, validation_alias="ADMIN_TOKEN")

    # Page cache
    enable_page_cache: bool = True

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"

    @property
    def route_prefix(self) -> str:
        """Blog route prefix without a trailing slash ("" mounts at root)."""
        return self.blog_route_prefix.rstrip("/")


settings = Settings()
