"""Wires the worker together from its configuration and runs it."""

import asyncio
import time

import structlog
from redis.asyncio import Redis

from backstroke_worker.configuration.models import WorkerConfig
from backstroke_worker.github.adapter import GitHubKitAdapter
from backstroke_worker.worker.engine import SyncStrategyEngine
from backstroke_worker.worker.loop import OperationQueueLoop
from backstroke_worker.worker.mirror import GitMirror
from backstroke_worker.worker.queue import OperationQueue, RedisOperationQueue
from backstroke_worker.worker.rate_limit import RateLimitGate
from backstroke_worker.worker.status import RedisStatusStore, StatusReporter, StatusStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def build_operation_loop(config: WorkerConfig, queue: OperationQueue, store: StatusStore) -> OperationQueueLoop:
    """Build the operation loop and everything it depends on."""
    bot_client = GitHubKitAdapter.create(config.github_token, config.github_api_url, dry_run=config.dry_run)
    rate_limit_gate = RateLimitGate(bot_client.get_remaining_quota)

    def user_client_factory(token: str) -> GitHubKitAdapter:
        return GitHubKitAdapter.create(token, config.github_api_url, dry_run=config.dry_run)

    engine = SyncStrategyEngine(
        config,
        bot_client=bot_client,
        rate_limit_gate=rate_limit_gate,
        client_factory=user_client_factory,
        mirror=GitMirror(),
    )
    return OperationQueueLoop(queue, StatusReporter(store), engine, rate_limit_gate)


async def run_worker(config: WorkerConfig, once: bool = False) -> int:
    """Drain the queue once, or forever with a pause between drains.

    Returns:
        int: The number of operations processed.
    """
    redis = Redis.from_url(config.redis_url)
    try:
        loop = build_operation_loop(config, RedisOperationQueue(redis, config.queue_name), RedisStatusStore(redis))
        total = 0
        while True:
            start_time = time.time()
            try:
                processed = await loop.run()
            except Exception:
                # Queue or status store failures end the drain, not the worker.
                logger.exception("Draining the operation queue failed")
                if once:
                    raise
            else:
                total += processed
                logger.info("Drained operation queue", processed=processed, duration=round(time.time() - start_time, 2))
            if once:
                return total
            await asyncio.sleep(config.poll_interval)
    finally:
        await redis.aclose()
