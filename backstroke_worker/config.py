"""Pydantic Settings model for application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from backstroke_worker.configuration.models import OptOutPolicy


class Settings(BaseSettings):
    """Environment variable settings for the worker."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_GIT_HOST: str = "github.com"

    # Bot user settings. The token belongs to the bot user and is used for
    # everything that is not done on behalf of a link owner.
    GITHUB_TOKEN: str | None = None
    GITHUB_BOT_USERNAME: str = "backstroke-bot"

    # Queue and status store settings
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_QUEUE_NAME: str = "webhookQueue"

    # Worker behavior
    THROTTLE: float = 0.0
    WORKER_POLL_INTERVAL: float = 5.0
    PR_DRY_RUN: bool = False

    # Opt-out policy
    OPT_OUT_POLICY: OptOutPolicy = OptOutPolicy.DISABLED
    OPT_OUT_LABEL: str = "backstroke-optout"
    OPT_IN_LABEL: str = "backstroke-sync"


settings = Settings()
