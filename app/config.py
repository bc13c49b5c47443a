from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models import RepoCoordinates

# Load environment variables from a .env file if present (local dev only)
load_dotenv()


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file.

    Nothing here is required at startup: missing GitHub settings are reported
    per request by the upload handler so a misconfigured deployment still
    answers with a useful error.
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Inbound protection
    upload_secret: Optional[str] = Field(default=None, description="Expected X-Upload-Secret header value.")
    cors_allow_origin: str = Field("*", description="Access-Control-Allow-Origin for every response.")

    # GitHub contents API
    github_token: Optional[str] = Field(default=None)
    github_repo: Optional[str] = Field(default=None, description='Target repository as "owner/repo".')
    github_branch: str = Field("main")
    github_api_url: str = Field("https://api.github.com")
    github_timeout: Optional[float] = Field(default=None, description="Seconds; unset means no local timeout.")
    github_strict_lookup: bool = Field(
        False,
        description="If true, lookup failures other than 404 abort the upload instead of meaning 'absent'.",
    )

    # Image processing
    image_compress: bool = Field(False, description="Re-encode uploaded images as JPEG before committing.")
    image_max_dim: int = Field(1024, ge=1, description="Maximum width or height for compressed images (pixels).")
    image_quality: int = Field(85, ge=1, le=100, description="JPEG quality for compressed images (1-100).")

    # Logging
    log_level: str = Field("INFO")

    def is_github_configured(self) -> bool:
        return bool(self.github_token) and bool(self.github_repo)

    def repo_coordinates(self) -> RepoCoordinates:
        """Split GITHUB_REPO into owner/repo; raises ValueError if malformed."""

        owner, _, repo = (self.github_repo or "").partition("/")
        if not owner or not repo or "/" in repo:
            raise ValueError("Invalid GITHUB_REPO")
        return RepoCoordinates(owner=owner, repo=repo, branch=self.github_branch or "main")


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
