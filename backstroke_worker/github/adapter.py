"""GitHub client adapter for the githubkit library."""

from typing import Any, Self

import structlog
from githubkit import Response
from githubkit.exception import RequestFailed
from githubkit.versions.latest.models import FullRepository, MinimalRepository, PullRequest, RateLimitOverview

from .abc import HostingClientBase
from .client import GitHubClient, get_github_token_client
from .results import ApiResult, Err, Ok, classify_status_code

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def extract_error_message(exc: RequestFailed) -> str | None:
    """Pull the most specific message out of a failed GitHub response.

    Validation failures carry their detail in the first entry of `errors`;
    everything else only has a top-level `message`.
    """
    try:
        error_data = exc.response.json()
    except Exception:
        return None
    if not isinstance(error_data, dict):
        return None
    errors = error_data.get("errors") or []
    if errors and isinstance(errors[0], dict) and errors[0].get("message"):
        return errors[0]["message"]
    return error_data.get("message")


class GitHubKitAdapter(HostingClientBase):
    """GitHub client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, dry_run: bool = False) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.dry_run = dry_run

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    @classmethod
    def create(cls, github_token: str, github_api_url: str = "https://api.github.com", dry_run: bool = False) -> Self:
        """Create a new GitHub client adapter authenticated with the given token.

        Args:
            github_token: OAuth or personal access token
            github_api_url: GitHub API URL (defaults to https://api.github.com)
            dry_run: Log pull requests instead of creating them

        Returns:
            Configured GitHubKitAdapter instance
        """
        client = get_github_token_client(github_token=github_token, github_api_url=github_api_url)
        return cls(client, dry_run=dry_run)

    # Pull Requests
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
        """Create a pull request on a repository."""
        params = self._omit_null_parameters(
            title=title,
            head=head,
            base=base,
            body=body,
            maintainer_can_modify=maintainer_can_modify,
        )
        if self.dry_run:
            logger.info("Dry run, not creating pull request", owner=owner, repo=repo, head=head, base=base, title=title)
            return Ok(None)
        try:
            response: Response[PullRequest] = await self.client.rest.pulls.async_create(owner=owner, repo=repo, **params)
        except RequestFailed as exc:
            status_code = exc.response.status_code
            message = extract_error_message(exc)
            logger.warning(
                "GitHub rejected pull request",
                owner=owner,
                repo=repo,
                head=head,
                base=base,
                status_code=status_code,
                message=message,
            )
            return Err(kind=classify_status_code(status_code), message=message, status_code=status_code)
        return Ok(response.parsed_data)

    # Repositories
    async def list_forks(self, owner: str, repo: str, page: int = 0, per_page: int = 100) -> list[MinimalRepository]:
        """List a single page of forks of a repository.

        Pages are counted from zero here; GitHub counts them from one.
        """
        response: Response[list[MinimalRepository]] = await self.client.rest.repos.async_list_forks(
            owner=owner,
            repo=repo,
            per_page=per_page,
            page=page + 1,
        )
        return response.parsed_data

    async def fork_repository(self, owner: str, repo: str) -> FullRepository:
        """Fork a repository into the authenticated user's account.

        GitHub answers with the existing fork when one is already present, so
        this is safe to call repeatedly.
        """
        response: Response[FullRepository] = await self.client.rest.repos.async_create_fork(owner=owner, repo=repo)
        logger.info("Forked repository", owner=owner, repo=repo, fork=response.parsed_data.full_name)
        return response.parsed_data

    async def add_collaborator(self, owner: str, repo: str, username: str, permission: str = "pull") -> None:
        """Add a user as a collaborator on a repository."""
        await self.client.rest.repos.async_add_collaborator(owner=owner, repo=repo, username=username, permission=permission)
        logger.info("Added collaborator", owner=owner, repo=repo, username=username, permission=permission)

    async def has_label(self, owner: str, repo: str, name: str) -> bool:
        """Check whether a repository defines a label."""
        try:
            await self.client.rest.issues.async_get_label(owner=owner, repo=repo, name=name)
        except RequestFailed as exc:
            if exc.response.status_code == 404:
                return False
            raise
        return True

    # Rate Limit
    async def get_remaining_quota(self) -> int:
        """Get the number of core API calls left before the rate limit resets."""
        response: Response[RateLimitOverview] = await self.client.rest.rate_limit.async_get()
        return response.parsed_data.resources.core.remaining
