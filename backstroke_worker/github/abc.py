"""Base ABC for hosting platform clients."""

from abc import ABC, abstractmethod
from typing import Any

from .results import ApiResult


class HostingClientBase(ABC):
    """Base ABC for the hosting platform capabilities the worker consumes."""

    # Pull Requests
    @abstractmethod
    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        head: str,
        base: str,
        body: str | None = None,
        maintainer_can_modify: bool | None = None,
    ) -> ApiResult:
        """Create a pull request, returning Ok or Err instead of raising."""
        pass

    # Repositories
    @abstractmethod
    async def list_forks(self, owner: str, repo: str, page: int = 0, per_page: int = 100) -> list[Any]:
        """List a single page of forks of a repository."""
        pass

    @abstractmethod
    async def fork_repository(self, owner: str, repo: str) -> Any:
        """Fork a repository into the authenticated user's account."""
        pass

    @abstractmethod
    async def add_collaborator(self, owner: str, repo: str, username: str, permission: str = "pull") -> None:
        """Add a user as a collaborator on a repository."""
        pass

    @abstractmethod
    async def has_label(self, owner: str, repo: str, name: str) -> bool:
        """Check whether a repository defines a label."""
        pass

    # Rate Limit
    @abstractmethod
    async def get_remaining_quota(self) -> int:
        """Get the number of core API calls left before the rate limit resets."""
        pass
