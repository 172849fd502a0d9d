"""Settings for the Redmine gateway, loaded from the environment or a .env file."""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings. Frozen once constructed."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "Redmine Gateway"
    log_level: str = "INFO"
    port: int = 3000

    # Upstream tracker
    redmine_url: str = ""
    redmine_api_key: str = ""
    default_project_id: Optional[str] = None
    request_timeout: float = 30.0

    # Self-hosted trackers often run with self-signed certificates
    tls_insecure: bool = True

    # Attachment limits
    max_attachment_size: int = 10 * 1024 * 1024
    max_attachments: int = 5

    # CORS
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "https://redmine-ticket.vercel.app",
    ]
    cors_origin_regex: Optional[str] = r"https://redmine-ticket-.*\.vercel\.app"

    # Behaviour flags
    require_requester_identity: bool = True
    shape_project_hierarchy: bool = True
    restrict_attachments_to_images: bool = False

    @property
    def has_credentials(self) -> bool:
        return bool(self.redmine_url and self.redmine_api_key)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
