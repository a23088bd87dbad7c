"""Reconciles worker configuration between CLI arguments and environment variables."""

from backstroke_worker.config import settings
from backstroke_worker.configuration.exceptions import (
    InvalidConfigurationElementError,
    RequiredConfigurationElementError,
)
from backstroke_worker.configuration.models import OptOutPolicy, WorkerConfig


async def reconcile_worker_configuration(
    cli_debug: bool = False,
    cli_github_api_url: str | None = None,
    cli_github_token: str | None = None,
    cli_bot_username: str | None = None,
    cli_redis_url: str | None = None,
    cli_queue_name: str | None = None,
    cli_throttle: float | None = None,
    cli_poll_interval: float | None = None,
    cli_dry_run: bool = False,
    cli_opt_out_policy: OptOutPolicy | None = None,
) -> WorkerConfig:
    """Reconcile the worker configuration.

    Values passed on the command line take precedence over values read from
    the environment (or the .env file).

    Raises:
        RequiredConfigurationElementError: If no bot token is available.
        InvalidConfigurationElementError: If a numeric setting is negative.

    Returns:
        WorkerConfig: The reconciled configuration.
    """
    github_token = cli_github_token or settings.GITHUB_TOKEN
    if not github_token:
        raise RequiredConfigurationElementError(
            name="GitHub bot token",
            cli_name="github_token",
            env_name="GITHUB_TOKEN",
        )

    throttle = cli_throttle if cli_throttle is not None else settings.THROTTLE
    poll_interval = cli_poll_interval if cli_poll_interval is not None else settings.WORKER_POLL_INTERVAL
    if throttle < 0:
        raise InvalidConfigurationElementError(f"Throttle must not be negative, got {throttle}")
    if poll_interval < 0:
        raise InvalidConfigurationElementError(f"Poll interval must not be negative, got {poll_interval}")

    return WorkerConfig(
        debug=cli_debug or settings.DEBUG,
        github_api_url=cli_github_api_url or settings.GITHUB_API_URL,
        github_token=github_token,
        bot_username=cli_bot_username or settings.GITHUB_BOT_USERNAME,
        redis_url=cli_redis_url or settings.REDIS_URL,
        queue_name=cli_queue_name or settings.REDIS_QUEUE_NAME,
        git_host=settings.GITHUB_GIT_HOST,
        throttle=throttle,
        poll_interval=poll_interval,
        dry_run=cli_dry_run or settings.PR_DRY_RUN,
        opt_out_policy=cli_opt_out_policy or settings.OPT_OUT_POLICY,
        opt_out_label=settings.OPT_OUT_LABEL,
        opt_in_label=settings.OPT_IN_LABEL,
    )
