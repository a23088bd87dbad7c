"""Fixtures for unit tests."""

from typing import Any, Generator
from unittest.mock import MagicMock

import pytest
import structlog

from backstroke_worker.configuration.models import WorkerConfig
from backstroke_worker.worker.rate_limit import RateLimitGate
from tests.unit.utils import make_client


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def worker_config() -> WorkerConfig:
    """A worker configuration with no throttle and no opt-out check."""
    return WorkerConfig(
        debug=False,
        github_api_url="https://api.github.com",
        github_token="BOT TOKEN",
        bot_username="backstroke-bot",
        redis_url="redis://localhost:6379/0",
        queue_name="webhookQueue",
    )


@pytest.fixture
def bot_client() -> MagicMock:
    """The hosting client acting as the bot user."""
    return make_client()


@pytest.fixture
def user_client() -> MagicMock:
    """The hosting client acting as the link owner."""
    return make_client()


@pytest.fixture
def rate_limit_gate() -> RateLimitGate:
    """A gate that never blocks."""
    return RateLimitGate(check_quota=None)


@pytest.fixture
def user_payload() -> dict[str, Any]:
    """The link owner as enqueued by the producer."""
    return {
        "id": 1,
        "username": "1egoman",
        "email": None,
        "githubId": "1704236",
        "accessToken": "ACCESS TOKEN",
        "publicScope": False,
        "createdAt": "2017-08-09T12:00:36.000Z",
    }


@pytest.fixture
def repo_link_payload(user_payload: dict[str, Any]) -> dict[str, Any]:
    """A link to a single fork as enqueued by the producer."""
    return {
        "id": 8,
        "name": "My Link",
        "enabled": True,
        "webhookId": "37948270678a440a97db01ebe71ddda2",
        "upstreamType": "repo",
        "upstreamOwner": "1egoman",
        "upstreamRepo": "backstroke",
        "upstreamBranches": '["inject","master"]',
        "upstreamBranch": "master",
        "forkType": "repo",
        "forkOwner": "rgaus",
        "forkRepo": "backstroke",
        "forkBranches": '["master"]',
        "forkBranch": "master",
        "ownerId": 1,
        "owner": user_payload,
    }


@pytest.fixture
def fork_all_link_payload(repo_link_payload: dict[str, Any]) -> dict[str, Any]:
    """A link to every fork of an upstream as enqueued by the producer."""
    return {
        **repo_link_payload,
        "upstreamRepo": "biome",
        "forkType": "fork-all",
        "forkOwner": None,
        "forkRepo": None,
        "forkBranches": None,
        "forkBranch": None,
    }


@pytest.fixture
def unrelated_link_payload(repo_link_payload: dict[str, Any]) -> dict[str, Any]:
    """A link to a repository outside the upstream's network."""
    return {**repo_link_payload, "forkType": "unrelated-repo", "forkRepo": "stroke", "forkBranch": "main"}
