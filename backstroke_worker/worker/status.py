"""Stores and reports operation status records."""

import json
import socket
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog
from redis.asyncio import Redis

from backstroke_worker.utils.constants import (
    ERROR_COUNTER_KEY,
    LINK_OPERATIONS_KEY_TEMPLATE,
    OPERATION_EXPIRY_TIME_IN_SECONDS,
    STATUS_KEY_TEMPLATE,
    SUCCESS_COUNTER_KEY,
)
from backstroke_worker.worker.models import Link, OperationStatus, StatusValue, SyncResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class StatusStore(Protocol):
    """Key-value store for operation status records with a per-link index."""

    async def set(self, operation_id: str, record: dict[str, Any], ttl: int = OPERATION_EXPIRY_TIME_IN_SECONDS) -> None: ...

    async def get(self, operation_id: str) -> dict[str, Any] | None: ...

    async def attach_to_link(self, link_id: str | int, operation_id: str) -> None: ...

    async def list_link_operations(self, link_id: str | int) -> list[str]: ...

    async def increment(self, counter: str) -> int: ...


class RedisStatusStore:
    """Status store backed by Redis.

    Records are JSON strings with a TTL. The per-link index is a sorted set
    scored by unix timestamp, because members of a set cannot expire on
    their own; stale members are pruned on every write.
    """

    def __init__(self, redis: Redis, retention: int = OPERATION_EXPIRY_TIME_IN_SECONDS) -> None:
        self.redis = redis
        self.retention = retention

    async def set(self, operation_id: str, record: dict[str, Any], ttl: int = OPERATION_EXPIRY_TIME_IN_SECONDS) -> None:
        """Overwrite the record for an operation and reset its expiry."""
        await self.redis.set(STATUS_KEY_TEMPLATE.format(operation_id=operation_id), json.dumps(record), ex=ttl)

    async def get(self, operation_id: str) -> dict[str, Any] | None:
        """Read the record for an operation, or None once it has expired."""
        data = await self.redis.get(STATUS_KEY_TEMPLATE.format(operation_id=operation_id))
        if data is None:
            return None
        return json.loads(data)

    async def attach_to_link(self, link_id: str | int, operation_id: str) -> None:
        """Prune expired entries from a link's index, then add the operation."""
        # TODO: use the Redis server clock (TIME) so worker clock drift can't skew pruning.
        timestamp = int(time.time())
        key = LINK_OPERATIONS_KEY_TEMPLATE.format(link_id=link_id)
        await self.redis.zremrangebyscore(key, 0, timestamp - self.retention)
        await self.redis.zadd(key, {operation_id: timestamp})

    async def list_link_operations(self, link_id: str | int) -> list[str]:
        """List a link's recent operation ids, oldest first."""
        members = await self.redis.zrange(LINK_OPERATIONS_KEY_TEMPLATE.format(link_id=link_id), 0, -1)
        return [member.decode("utf-8") if isinstance(member, bytes) else member for member in members]

    async def increment(self, counter: str) -> int:
        """Increment a statistics counter."""
        return await self.redis.incr(counter)


class InMemoryStatusStore:
    """Status store kept in process memory, for tests and local runs.

    Records are serialized to JSON like the Redis store so callers always get
    back a fresh copy.
    """

    def __init__(self, retention: int = OPERATION_EXPIRY_TIME_IN_SECONDS) -> None:
        self.retention = retention
        self.records: dict[str, tuple[str, float]] = {}
        self.links: dict[str, dict[str, int]] = {}
        self.counters: dict[str, int] = {}

    async def set(self, operation_id: str, record: dict[str, Any], ttl: int = OPERATION_EXPIRY_TIME_IN_SECONDS) -> None:
        """Overwrite the record for an operation and reset its expiry."""
        self.records[str(operation_id)] = (json.dumps(record), time.time() + ttl)

    async def get(self, operation_id: str) -> dict[str, Any] | None:
        """Read the record for an operation, or None once it has expired."""
        entry = self.records.get(str(operation_id))
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at <= time.time():
            del self.records[str(operation_id)]
            return None
        return json.loads(data)

    async def attach_to_link(self, link_id: str | int, operation_id: str) -> None:
        """Prune expired entries from a link's index, then add the operation."""
        timestamp = int(time.time())
        index = self.links.setdefault(str(link_id), {})
        for member, score in list(index.items()):
            if score <= timestamp - self.retention:
                del index[member]
        index[str(operation_id)] = timestamp

    async def list_link_operations(self, link_id: str | int) -> list[str]:
        """List a link's recent operation ids, oldest first."""
        index = self.links.get(str(link_id), {})
        return [member for member, _ in sorted(index.items(), key=lambda item: (item[1], item[0]))]

    async def increment(self, counter: str) -> int:
        """Increment a statistics counter."""
        self.counters[counter] = self.counters.get(counter, 0) + 1
        return self.counters[counter]


def utc_timestamp() -> str:
    """Current time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class StatusReporter:
    """Formats RUNNING, OK and ERROR records and persists them."""

    def __init__(self, store: StatusStore, handled_by: str | None = None, ttl: int = OPERATION_EXPIRY_TIME_IN_SECONDS) -> None:
        self.store = store
        self.handled_by = handled_by or socket.gethostname()
        self.ttl = ttl

    async def set(self, operation_id: str, status: OperationStatus, ttl: int | None = None) -> None:
        """Persist a status record, replacing any earlier one."""
        await self.store.set(operation_id, status.to_wire(), self.ttl if ttl is None else ttl)

    async def get(self, operation_id: str) -> dict[str, Any] | None:
        """Read back the status record of an operation."""
        return await self.store.get(operation_id)

    async def attach_to_link(self, link_id: str | int, operation_id: str) -> None:
        """Record the operation in the link's operation history."""
        await self.store.attach_to_link(link_id, operation_id)

    async def mark_running(self, operation_id: str, started_at: str, from_request: str | None = None) -> None:
        """Record that an operation has started."""
        await self.set(
            operation_id,
            OperationStatus(status=StatusValue.RUNNING, started_at=started_at, from_request=from_request),
        )

    async def mark_ok(
        self,
        operation_id: str,
        started_at: str,
        result: SyncResult,
        link: Link | None,
        from_request: str | None = None,
    ) -> None:
        """Record that an operation finished successfully."""
        await self.set(
            operation_id,
            OperationStatus(
                status=StatusValue.OK,
                started_at=started_at,
                finished_at=utc_timestamp(),
                output=result.to_wire(),
                link=link.redacted() if link else None,
                handled_by=self.handled_by,
                from_request=from_request,
            ),
        )
        await self._count(SUCCESS_COUNTER_KEY)

    async def mark_error(
        self,
        operation_id: str,
        started_at: str,
        error: BaseException,
        link: Link | None,
        from_request: str | None = None,
    ) -> None:
        """Record that an operation failed."""
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        await self.set(
            operation_id,
            OperationStatus(
                status=StatusValue.ERROR,
                started_at=started_at,
                finished_at=utc_timestamp(),
                output={"error": str(error), "stack": stack},
                link=link.redacted() if link else None,
                handled_by=self.handled_by,
                from_request=from_request,
            ),
        )
        await self._count(ERROR_COUNTER_KEY)

    async def _count(self, counter: str) -> None:
        """Bump a statistics counter; a failure here must not fail the operation."""
        try:
            await self.store.increment(counter)
        except Exception as exc:
            logger.warning("Couldn't increment statistics counter", counter=counter, error=str(exc))
