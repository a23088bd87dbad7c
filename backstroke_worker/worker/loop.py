"""Drains the operation queue one operation at a time."""

import structlog
from pydantic import ValidationError
from structlog.contextvars import bound_contextvars

from backstroke_worker.worker.engine import SyncStrategyEngine
from backstroke_worker.worker.models import ForkType, Link, OperationPayload
from backstroke_worker.worker.queue import OperationQueue, QueuedOperation
from backstroke_worker.worker.rate_limit import RateLimitGate
from backstroke_worker.worker.status import StatusReporter, utc_timestamp

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class OperationQueueLoop:
    """Pops operations, runs them through the engine and records their status.

    Operations never overlap: the next pop happens only after the previous
    operation's final status has been written. Every error raised while
    processing an operation ends up in that operation's ERROR record.
    """

    def __init__(
        self,
        queue: OperationQueue,
        reporter: StatusReporter,
        engine: SyncStrategyEngine,
        rate_limit_gate: RateLimitGate,
    ) -> None:
        self.queue = queue
        self.reporter = reporter
        self.engine = engine
        self.rate_limit_gate = rate_limit_gate

    async def run(self, max_operations: int | None = None) -> int:
        """Process operations until the queue is empty or `max_operations` is reached.

        Returns:
            int: The number of operations processed.
        """
        processed = 0
        while max_operations is None or processed < max_operations:
            await self.rate_limit_gate.await_quota()
            operation = await self.queue.pop()
            if operation is None:
                logger.debug("Operation queue is empty")
                break
            await self.process(operation)
            processed += 1
        return processed

    async def process(self, operation: QueuedOperation) -> None:
        """Process a single popped operation."""
        started_at = utc_timestamp()
        raw_from_request = operation.payload.get("fromRequest") if isinstance(operation.payload, dict) else None
        from_request = str(raw_from_request) if raw_from_request is not None else None
        with bound_contextvars(operation_id=operation.id):
            await self.reporter.mark_running(operation.id, started_at, from_request=from_request)

            try:
                payload = OperationPayload.model_validate(operation.payload)
            except ValidationError as exc:
                logger.error("Operation payload is invalid", error=str(exc))
                raw_link = operation.payload.get("link") if isinstance(operation.payload, dict) else None
                if isinstance(raw_link, dict) and raw_link.get("id") is not None:
                    await self.reporter.attach_to_link(raw_link["id"], operation.id)
                await self.reporter.mark_error(operation.id, started_at, exc, link=None, from_request=from_request)
                return

            link: Link = payload.link
            await self.reporter.attach_to_link(link.id, operation.id)

            logger.info(
                "Handling operation",
                link_id=link.id,
                upstream=f"{link.upstream_owner}/{link.upstream_repo}@{link.upstream_branch}",
                fork=(
                    f"all forks @ {link.upstream_branch}"
                    if link.fork_type == ForkType.FORK_ALL
                    else f"{link.fork_owner}/{link.fork_repo}@{link.fork_branch}"
                ),
            )

            try:
                result = await self.engine.execute(link, payload.user)
            except Exception as exc:
                logger.warning("Operation failed", link_id=link.id, error=str(exc), error_type=type(exc).__name__)
                await self.reporter.mark_error(operation.id, started_at, exc, link=link, from_request=from_request)
                return

            logger.info("Operation succeeded", link_id=link.id, output=result.to_wire())
            await self.reporter.mark_ok(operation.id, started_at, result, link=link, from_request=from_request)
