"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from redis.asyncio import Redis
from typer import Argument, Option
from typing_extensions import Annotated

from backstroke_worker.config import settings
from backstroke_worker.configuration.driver import get_worker_config
from backstroke_worker.configuration.exceptions import InvalidConfigurationElementError, RequiredConfigurationElementError
from backstroke_worker.configuration.models import OptOutPolicy
from backstroke_worker.utils.logging import configure_logging
from backstroke_worker.worker.driver import run_worker
from backstroke_worker.worker.queue import RedisOperationQueue
from backstroke_worker.worker.status import RedisStatusStore

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Keep forks in sync with their upstreams.")


@typer_app.command(name="run")
def run_cli(
    once: Annotated[bool, Option("--once", help="Drain the queue a single time and exit.")] = False,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug logging.")] = False,
    github_api_url: Annotated[str | None, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = None,
    github_token: Annotated[str | None, Option(envvar="GITHUB_TOKEN", help="Access token of the bot user.")] = None,
    bot_username: Annotated[str | None, Option(envvar="GITHUB_BOT_USERNAME", help="Username of the bot user.")] = None,
    redis_url: Annotated[str | None, Option(envvar="REDIS_URL", help="Redis URL of the queue and status store.")] = None,
    queue_name: Annotated[str | None, Option(envvar="REDIS_QUEUE_NAME", help="Name of the operation queue.")] = None,
    throttle: Annotated[float | None, Option(envvar="THROTTLE", help="Seconds to wait before each operation contacts GitHub.")] = None,
    poll_interval: Annotated[float | None, Option(envvar="WORKER_POLL_INTERVAL", help="Seconds to wait between queue drains.")] = None,
    dry_run: Annotated[bool, Option("--dry-run", envvar="PR_DRY_RUN", help="Log pull requests instead of creating them.")] = False,
    opt_out_policy: Annotated[
        OptOutPolicy | None, Option(envvar="OPT_OUT_POLICY", help="Check made before proposing changes to a repository.")
    ] = None,
) -> None:
    """Process link sync operations from the queue."""
    try:
        config = get_worker_config(
            debug=debug,
            github_api_url=github_api_url,
            github_token=github_token,
            bot_username=bot_username,
            redis_url=redis_url,
            queue_name=queue_name,
            throttle=throttle,
            poll_interval=poll_interval,
            dry_run=dry_run,
            opt_out_policy=opt_out_policy,
        )
    except (RequiredConfigurationElementError, InvalidConfigurationElementError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    configure_logging(debug=config.debug)
    if config.dry_run:
        typer.echo("Using pull request dry run, no pull requests will be created")
    processed = asyncio.run(run_worker(config, once=once))
    typer.echo(f"Processed {processed} operations")


@typer_app.command(name="enqueue")
def enqueue_cli(
    payload_path: Annotated[Path, Argument(help="Path to a JSON file holding an operation payload ({type, user, link}).")],
    redis_url: Annotated[str | None, Option(envvar="REDIS_URL", help="Redis URL of the queue.")] = None,
    queue_name: Annotated[str | None, Option(envvar="REDIS_QUEUE_NAME", help="Name of the operation queue.")] = None,
) -> None:
    """Manually enqueue a link sync operation."""
    if not payload_path.exists():
        error = f"Payload file not found: {payload_path.absolute()}"
        typer.echo(error, err=True)
        raise typer.Exit(code=1)
    payload = json.loads(payload_path.read_text(encoding="utf-8"))

    async def enqueue() -> str:
        redis = Redis.from_url(redis_url or settings.REDIS_URL)
        try:
            return await RedisOperationQueue(redis, queue_name or settings.REDIS_QUEUE_NAME).push(payload)
        finally:
            await redis.aclose()

    operation_id = asyncio.run(enqueue())
    typer.echo(operation_id)


@typer_app.command(name="status")
def status_cli(
    operation_id: Annotated[str, Argument(help="Id of the operation.")],
    redis_url: Annotated[str | None, Option(envvar="REDIS_URL", help="Redis URL of the status store.")] = None,
) -> None:
    """Print the status record of an operation."""

    async def fetch() -> dict[str, Any] | None:
        redis = Redis.from_url(redis_url or settings.REDIS_URL)
        try:
            return await RedisStatusStore(redis).get(operation_id)
        finally:
            await redis.aclose()

    record = asyncio.run(fetch())
    if record is None:
        typer.echo(f"No status found for operation {operation_id}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(record, indent=2))


@typer_app.command(name="history")
def history_cli(
    link_id: Annotated[str, Argument(help="Id of the link.")],
    redis_url: Annotated[str | None, Option(envvar="REDIS_URL", help="Redis URL of the status store.")] = None,
) -> None:
    """Print the ids of a link's operations from the last 24 hours, oldest first."""

    async def fetch() -> list[str]:
        redis = Redis.from_url(redis_url or settings.REDIS_URL)
        try:
            return await RedisStatusStore(redis).list_link_operations(link_id)
        finally:
            await redis.aclose()

    for operation_id in asyncio.run(fetch()):
        typer.echo(operation_id)


if __name__ == "__main__":
    typer_app()
