"""FIFO queues of link sync operations."""

import json
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from redis.asyncio import Redis

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class QueuedOperation:
    """An operation popped off the queue."""

    id: str
    payload: dict[str, Any]


class OperationQueue(Protocol):
    """Queue of operation payloads. Popping removes an item for good."""

    async def push(self, payload: dict[str, Any]) -> str: ...

    async def pop(self) -> QueuedOperation | None: ...


def generate_operation_id() -> str:
    """Generate a unique operation id."""
    return uuid.uuid4().hex


class RedisOperationQueue:
    """Queue stored as a Redis list; pushes append to the tail, pops take the head."""

    def __init__(self, redis: Redis, queue_name: str) -> None:
        self.redis = redis
        self.queue_name = queue_name

    @property
    def key(self) -> str:
        return f"queue:{self.queue_name}"

    async def push(self, payload: dict[str, Any]) -> str:
        """Append a payload and return its operation id."""
        operation_id = generate_operation_id()
        await self.redis.rpush(self.key, json.dumps({"id": operation_id, "payload": payload}))
        logger.debug("Pushed operation", operation_id=operation_id, queue=self.queue_name)
        return operation_id

    async def pop(self) -> QueuedOperation | None:
        """Remove and return the oldest operation, or None if the queue is empty."""
        message = await self.redis.lpop(self.key)
        if message is None:
            return None
        data = json.loads(message)
        return QueuedOperation(id=data["id"], payload=data["payload"])


class InMemoryOperationQueue:
    """Queue kept in process memory, for tests and local runs."""

    def __init__(self) -> None:
        self.items: deque[QueuedOperation] = deque()

    async def push(self, payload: dict[str, Any]) -> str:
        """Append a payload and return its operation id."""
        operation_id = generate_operation_id()
        self.items.append(QueuedOperation(id=operation_id, payload=json.loads(json.dumps(payload))))
        return operation_id

    async def pop(self) -> QueuedOperation | None:
        """Remove and return the oldest operation, or None if the queue is empty."""
        if not self.items:
            return None
        return self.items.popleft()
