"""Environment-backed settings for the cycle digest."""
from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

DEFAULT_REPO = "secret-mars/drx4"
DEFAULT_DAYS = 7
DEFAULT_MAX_PAGES = 10
HEALTH_URL_TEMPLATE = "https://raw.githubusercontent.com/{repo}/main/daemon/health.json"


class Settings(BaseSettings):
    """Environment-backed settings for the digest."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    cycle_repo: str = Field(default=DEFAULT_REPO, alias="CYCLE_REPO")
    cycle_days: int = Field(default=DEFAULT_DAYS, alias="CYCLE_DAYS")
    cycle_max_pages: int = Field(default=DEFAULT_MAX_PAGES, alias="CYCLE_MAX_PAGES")
    cycle_health_url: str | None = Field(default=None, alias="CYCLE_HEALTH_URL")

    github_token: str | None = Field(default=None, alias="GITHUB_TOKEN")
    gh_token: str | None = Field(default=None, alias="GH_TOKEN")
    slack_webhook_url: str | None = Field(default=None, alias="SLACK_WEBHOOK_URL")

    def health_url(self) -> str:
        """Return the health document URL, derived from the repo by default."""
        if self.cycle_health_url:
            return self.cycle_health_url
        return HEALTH_URL_TEMPLATE.format(repo=self.cycle_repo)


def get_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings.model_validate({})
