"""Synchronous driver for configuration reconciliation for the CLI entry point."""

import asyncio

from backstroke_worker.configuration import reconcile
from backstroke_worker.configuration.models import OptOutPolicy, WorkerConfig


def get_worker_config(
    debug: bool = False,
    github_api_url: str | None = None,
    github_token: str | None = None,
    bot_username: str | None = None,
    redis_url: str | None = None,
    queue_name: str | None = None,
    throttle: float | None = None,
    poll_interval: float | None = None,
    dry_run: bool = False,
    opt_out_policy: OptOutPolicy | None = None,
) -> WorkerConfig:
    """Synchronously get the reconciled worker configuration."""
    return asyncio.run(
        reconcile.reconcile_worker_configuration(
            cli_debug=debug,
            cli_github_api_url=github_api_url,
            cli_github_token=github_token,
            cli_bot_username=bot_username,
            cli_redis_url=redis_url,
            cli_queue_name=queue_name,
            cli_throttle=throttle,
            cli_poll_interval=poll_interval,
            cli_dry_run=dry_run,
            cli_opt_out_policy=opt_out_policy,
        )
    )
