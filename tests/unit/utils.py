"""Helpers shared by unit tests."""

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from githubkit.exception import RequestFailed

from backstroke_worker.github.abc import HostingClientBase
from backstroke_worker.github.results import Ok


def make_request_failed(status_code: int, body: Any = None) -> RequestFailed:
    """Build a githubkit RequestFailed carrying a fake response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body if body is not None else {}
    return RequestFailed(response)


def make_fork(owner: str, name: str, private: bool = False) -> SimpleNamespace:
    """Build a fork as returned by the fork listing API."""
    return SimpleNamespace(owner=SimpleNamespace(login=owner), name=name, private=private)


def make_client() -> MagicMock:
    """Build a hosting client whose calls all succeed."""
    client = MagicMock(spec=HostingClientBase)
    client.create_pull_request = AsyncMock(return_value=Ok(None))
    client.list_forks = AsyncMock(return_value=[])
    client.fork_repository = AsyncMock(return_value=make_fork("backstroke-bot", "backstroke"))
    client.add_collaborator = AsyncMock(return_value=None)
    client.has_label = AsyncMock(return_value=False)
    client.get_remaining_quota = AsyncMock(return_value=5000)
    return client
