"""Decides how to propagate upstream changes for a link and carries it out."""

import asyncio
from typing import Any, Awaitable, Callable

import jinja2
import structlog
from githubkit.exception import RequestFailed

from backstroke_worker.configuration.models import WorkerConfig
from backstroke_worker.github.abc import HostingClientBase
from backstroke_worker.github.adapter import extract_error_message
from backstroke_worker.utils.constants import PULL_REQUEST_BODY_TEMPLATE, UNRELATED_PULL_REQUEST_BODY_TEMPLATE
from backstroke_worker.utils.github import build_remote_url
from backstroke_worker.utils.templates import construct_jinja2_template_from_file, render_template
from backstroke_worker.worker.exceptions import (
    HostingApiError,
    LinkDisabled,
    LinkMisconfigured,
    RepositoryNotFound,
    UnknownForkType,
)
from backstroke_worker.worker.mirror import GitMirror
from backstroke_worker.worker.models import (
    FanOutMetrics,
    ForkOutcome,
    ForkType,
    Link,
    RepositoryDescriptor,
    StatusValue,
    SyncResult,
    User,
)
from backstroke_worker.worker.pagination import paginate
from backstroke_worker.worker.pull_requests import create_pull_request, generate_pull_request_title
from backstroke_worker.worker.rate_limit import RateLimitGate

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

ClientFactory = Callable[[str], HostingClientBase]


class SyncStrategyEngine:
    """Executes one link sync request with the strategy its fork type selects.

    `repo` links get a single pull request. `fork-all` links get a pull request
    on every fork of the upstream, each attempted independently. For
    `unrelated-repo` links the upstream is first mirrored into a bot-owned fork
    of the target, because a pull request cannot cross repository networks.
    """

    def __init__(
        self,
        config: WorkerConfig,
        bot_client: HostingClientBase,
        rate_limit_gate: RateLimitGate,
        client_factory: ClientFactory | None = None,
        mirror: GitMirror | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.bot_client = bot_client
        self.rate_limit_gate = rate_limit_gate
        self.client_factory = client_factory
        self.mirror = mirror or GitMirror()
        self._sleep = sleep
        self.pull_request_body_template: jinja2.Template = construct_jinja2_template_from_file(PULL_REQUEST_BODY_TEMPLATE)
        self.unrelated_pull_request_body_template: jinja2.Template = construct_jinja2_template_from_file(UNRELATED_PULL_REQUEST_BODY_TEMPLATE)

    def _user_token(self, link: Link, user: User | None) -> str | None:
        """Token of the requesting user, else of the link owner."""
        for candidate in (user, link.owner):
            if candidate is not None and candidate.token:
                return candidate.token
        return None

    def _client_for(self, token: str | None) -> HostingClientBase:
        """Client acting as the link owner, or the bot when no token is known."""
        if token is None or self.client_factory is None:
            return self.bot_client
        return self.client_factory(token)

    async def execute(self, link: Link, user: User | None) -> SyncResult:
        """Execute the sync strategy for `link` on behalf of `user`."""
        if not link.enabled:
            raise LinkDisabled()
        if not link.upstream_type or not link.fork_type:
            raise LinkMisconfigured()
        try:
            fork_type = ForkType(link.fork_type)
        except ValueError:
            raise UnknownForkType(link.fork_type) from None

        if self.config.throttle > 0:
            logger.debug("Throttling before contacting GitHub", throttle=self.config.throttle)
            await self._sleep(self.config.throttle)

        user_token = self._user_token(link, user)
        user_client = self._client_for(user_token)
        upstream = self._require_upstream(link)

        if fork_type == ForkType.REPO:
            return await self._sync_single_fork(link, upstream, user_client)
        elif fork_type == ForkType.FORK_ALL:
            return await self._sync_all_forks(link, upstream, user_client)
        elif fork_type == ForkType.UNRELATED_REPO:
            return await self._sync_unrelated_fork(link, upstream, user_token, user_client)
        raise UnknownForkType(link.fork_type)

    def _require_upstream(self, link: Link) -> RepositoryDescriptor:
        upstream = link.upstream
        if not (upstream.owner and upstream.repo and upstream.branch):
            raise LinkMisconfigured()
        return upstream

    def _require_fork(self, link: Link, upstream: RepositoryDescriptor) -> RepositoryDescriptor:
        fork = link.fork
        if not (fork.owner and fork.repo):
            raise LinkMisconfigured()
        # Same branch name as the upstream unless the link names one.
        return fork.model_copy(update={"branch": fork.branch or upstream.branch})

    def _title(self, upstream: RepositoryDescriptor) -> str:
        return generate_pull_request_title(str(upstream.owner), str(upstream.repo), str(upstream.branch))

    def _body(self, upstream: RepositoryDescriptor) -> str:
        return render_template(
            self.pull_request_body_template,
            upstream_owner=upstream.owner,
            upstream_repo=upstream.repo,
            upstream_branch=upstream.branch,
        )

    async def _sync_single_fork(self, link: Link, upstream: RepositoryDescriptor, user_client: HostingClientBase) -> SyncResult:
        fork = self._require_fork(link, upstream)
        logger.info("Making a pull request to the single fork repository", upstream=upstream.full_name, fork=fork.full_name)
        await self.rate_limit_gate.await_quota()
        response = await create_pull_request(
            self.bot_client,
            user_client,
            self.config,
            fork=fork,
            title=self._title(upstream),
            head=f"{upstream.owner}:{upstream.branch}",
            body=self._body(upstream),
        )
        return SyncResult(is_enabled=True, many=False, fork_count=1, response=response)

    async def _sync_all_forks(self, link: Link, upstream: RepositoryDescriptor, user_client: HostingClientBase) -> SyncResult:
        logger.info("Aggregating all forks of the upstream", upstream=upstream.full_name)
        try:
            forks = await paginate(user_client.list_forks, {"owner": upstream.owner, "repo": upstream.repo})
        except RequestFailed as exc:
            message = extract_error_message(exc) or str(exc)
            raise HostingApiError(f"Couldn't get forks for repository {upstream.full_name}: {message}") from exc
        logger.info("Found forks of the upstream", upstream=upstream.full_name, fork_count=len(forks))

        title = self._title(upstream)
        body = self._body(upstream)
        outcomes = await asyncio.gather(
            *(self._propose_to_fork(link, upstream, fork, user_client, title, body) for fork in forks),
        )
        errors = [outcome for outcome in outcomes if outcome.status == StatusValue.ERROR]
        return SyncResult(
            is_enabled=True,
            many=True,
            metrics=FanOutMetrics(total=len(outcomes), successes=len(outcomes) - len(errors)),
            errors=errors,
        )

    async def _propose_to_fork(
        self,
        link: Link,
        upstream: RepositoryDescriptor,
        fork: Any,
        user_client: HostingClientBase,
        title: str,
        body: str,
    ) -> ForkOutcome:
        """Attempt a pull request on one fork, capturing any failure as an outcome."""
        target = RepositoryDescriptor(
            owner=fork.owner.login,
            repo=fork.name,
            branch=link.fork_branch or upstream.branch,
            private=bool(getattr(fork, "private", False)),
        )
        try:
            await self.rate_limit_gate.await_quota()
            response = await create_pull_request(
                self.bot_client,
                user_client,
                self.config,
                fork=target,
                title=title,
                head=f"{upstream.owner}:{upstream.branch}",
                body=body,
            )
        except Exception as exc:
            logger.warning("Couldn't propose changes to fork", fork=target.full_name, error=str(exc), error_type=type(exc).__name__)
            return ForkOutcome(status=StatusValue.ERROR, error=str(exc))
        return ForkOutcome(status=StatusValue.OK, data=response)

    async def _ensure_intermediate_fork(self, fork: RepositoryDescriptor) -> tuple[str, str]:
        """Fork the target into the bot account and return the fork's owner and name."""
        try:
            intermediate = await self.bot_client.fork_repository(str(fork.owner), str(fork.repo))
        except RequestFailed as exc:
            if exc.response.status_code == 404:
                raise RepositoryNotFound(str(fork.owner), str(fork.repo)) from exc
            message = extract_error_message(exc) or str(exc)
            raise HostingApiError(f"Couldn't fork {fork.full_name} to {self.config.bot_username}/{fork.repo}: {message}") from exc
        return intermediate.owner.login, intermediate.name

    async def _sync_unrelated_fork(
        self,
        link: Link,
        upstream: RepositoryDescriptor,
        user_token: str | None,
        user_client: HostingClientBase,
    ) -> SyncResult:
        fork = self._require_fork(link, upstream)
        mirror_branch = str(fork.owner)
        logger.info(
            "Upstream is out of network, mirroring through an intermediate repository",
            upstream=upstream.full_name,
            fork=fork.full_name,
            mirror_branch=mirror_branch,
        )

        await self.rate_limit_gate.await_quota()
        intermediate_owner, intermediate_repo = await self._ensure_intermediate_fork(fork)

        with self.mirror.scratch_directory() as scratch:
            await self.mirror.clone(
                build_remote_url(self.config.git_host, str(upstream.owner), str(upstream.repo), token=user_token),
                scratch,
                branch=upstream.branch,
            )
            await self.mirror.force_push(
                scratch,
                build_remote_url(self.config.git_host, intermediate_owner, intermediate_repo, token=self.config.github_token),
                mirror_branch,
            )

        body = render_template(
            self.unrelated_pull_request_body_template,
            upstream_owner=upstream.owner,
            upstream_repo=upstream.repo,
            upstream_branch=upstream.branch,
            mirror_branch=mirror_branch,
            git_host=self.config.git_host,
            intermediate_owner=intermediate_owner,
            intermediate_repo=intermediate_repo,
        )
        await self.rate_limit_gate.await_quota()
        response = await create_pull_request(
            self.bot_client,
            user_client,
            self.config,
            fork=fork,
            title=self._title(upstream),
            head=f"{intermediate_owner}:{mirror_branch}",
            body=body,
        )
        return SyncResult(is_enabled=True, many=False, unrelated_forks=True, fork_count=1, response=response)
