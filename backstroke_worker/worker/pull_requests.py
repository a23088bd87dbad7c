"""Contains logic for proposing upstream changes to a fork as a pull request."""

import structlog
from githubkit.exception import RequestFailed

from backstroke_worker.configuration.models import OptOutPolicy, WorkerConfig
from backstroke_worker.github.abc import HostingClientBase
from backstroke_worker.github.adapter import extract_error_message
from backstroke_worker.github.results import ApiErrorKind, ApiResult, Ok
from backstroke_worker.utils.constants import (
    ALREADY_OPEN_MESSAGE,
    NO_COMMITS_BETWEEN_PREFIX,
    PULL_REQUEST_ALREADY_EXISTS_PREFIX,
    UP_TO_DATE_MESSAGE,
)
from backstroke_worker.worker.exceptions import HostingApiError, LinkMisconfigured, RepositoryNotFound, RepositoryOptedOut
from backstroke_worker.worker.models import RepositoryDescriptor

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def generate_pull_request_title(owner: str, repo: str, branch: str) -> str:
    """Generate the title of a sync pull request."""
    return f"Update from upstream repo {owner}/{repo}@{branch}"


def interpret_pull_request_result(result: ApiResult, owner: str, repo: str) -> str:
    """Turn the result of a pull request creation call into a message.

    Pull requests that already exist, or that would carry no commits, are not
    failures: the fork simply needs nothing. Every other failure raises.
    """
    if isinstance(result, Ok):
        return f"Successfully created pull request on {owner}/{repo}"

    if result.kind == ApiErrorKind.UNPROCESSABLE:
        message = result.message
        if message is None:
            logger.debug("Pull request already exists", owner=owner, repo=repo)
            return f"There's already a pull request on {owner}/{repo}"
        if message.startswith(NO_COMMITS_BETWEEN_PREFIX):
            logger.debug("Fork is already up to date", owner=owner, repo=repo)
            return UP_TO_DATE_MESSAGE
        if message.startswith(PULL_REQUEST_ALREADY_EXISTS_PREFIX):
            logger.debug("Pull request already exists", owner=owner, repo=repo)
            return ALREADY_OPEN_MESSAGE
        raise HostingApiError(f"Couldn't create pull request on repository {owner}/{repo}: {message}")

    if result.kind == ApiErrorKind.NOT_FOUND:
        raise RepositoryNotFound(owner, repo)

    if result.kind == ApiErrorKind.SERVER_ERROR:
        raise HostingApiError(
            f"Couldn't create pull request on repository {owner}/{repo}: "
            f"A Github api call returned a 500-class status code ({result.status_code}). Please try again."
        )

    raise HostingApiError(f"Couldn't create pull request on repository {owner}/{repo}: {result.message or 'Unknown error'}")


async def ensure_repository_accepts_pull_requests(
    client: HostingClientBase,
    config: WorkerConfig,
    owner: str,
    repo: str,
) -> None:
    """Raise RepositoryOptedOut if the opt-out policy refuses this repository."""
    if config.opt_out_policy == OptOutPolicy.DISABLED:
        return
    label = config.opt_out_label if config.opt_out_policy == OptOutPolicy.OPT_OUT else config.opt_in_label
    try:
        labelled = await client.has_label(owner, repo, label)
    except RequestFailed as exc:
        message = extract_error_message(exc) or str(exc)
        raise HostingApiError(f"Couldn't check labels on {owner}/{repo}: {message}") from exc
    refused = labelled if config.opt_out_policy == OptOutPolicy.OPT_OUT else not labelled
    if refused:
        logger.info("Repository refused automated pull requests", owner=owner, repo=repo, policy=config.opt_out_policy.value)
        raise RepositoryOptedOut(owner, repo)


async def add_bot_as_collaborator(client: HostingClientBase, bot_username: str, owner: str, repo: str) -> None:
    """Give the bot user pull access to a private repository."""
    logger.info("Fork is private, adding bot user as a collaborator", owner=owner, repo=repo, bot_username=bot_username)
    try:
        await client.add_collaborator(owner, repo, bot_username, permission="pull")
    except RequestFailed as exc:
        if exc.response.status_code in (404, 422):
            raise RepositoryNotFound(owner, repo) from exc
        message = extract_error_message(exc) or str(exc)
        raise HostingApiError(f"Couldn't make the {bot_username} bot user a collaborator on {owner}/{repo}: {message}") from exc


async def create_pull_request(
    bot_client: HostingClientBase,
    user_client: HostingClientBase,
    config: WorkerConfig,
    fork: RepositoryDescriptor,
    title: str,
    head: str,
    body: str,
) -> str:
    """Propose the changes at `head` to `fork` and return a human readable outcome.

    `fork` must carry the branch the pull request targets. Checks that need the
    link owner's permissions go through `user_client`; the pull request itself
    is opened by the bot user.
    """
    if fork.owner is None or fork.repo is None or fork.branch is None:
        raise LinkMisconfigured("A fork owner, repository and branch are required to create a pull request.")

    await ensure_repository_accepts_pull_requests(user_client, config, fork.owner, fork.repo)

    if fork.private:
        await add_bot_as_collaborator(user_client, config.bot_username, fork.owner, fork.repo)

    logger.info("Creating pull request", owner=fork.owner, repo=fork.repo, head=head, base=fork.branch)
    result = await bot_client.create_pull_request(
        owner=fork.owner,
        repo=fork.repo,
        title=title,
        head=head,
        base=fork.branch,
        body=body,
        maintainer_can_modify=False,
    )
    return interpret_pull_request_result(result, fork.owner, fork.repo)
