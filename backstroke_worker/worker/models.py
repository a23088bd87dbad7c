"""Pydantic models for queued operations, links, results and status records."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, SecretStr
from pydantic.alias_generators import to_camel

from backstroke_worker.utils.constants import REDACTED


class ForkType(str, Enum):
    """The sync strategy selected by a link's fork type."""

    REPO = "repo"
    FORK_ALL = "fork-all"
    UNRELATED_REPO = "unrelated-repo"


class StatusValue(str, Enum):
    """Lifecycle state of an operation."""

    RUNNING = "RUNNING"
    OK = "OK"
    ERROR = "ERROR"


class WireModel(BaseModel):
    """Base model accepting and emitting the producer's camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using camelCase keys, dropping unset values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class User(WireModel):
    """The owner of a link, whose token is used for calls made on their behalf."""

    id: int | str | None = None
    username: str | None = None
    access_token: SecretStr | None = None

    @property
    def token(self) -> str | None:
        """The raw access token, if the user has one."""
        return self.access_token.get_secret_value() if self.access_token else None


class RepositoryDescriptor(BaseModel):
    """One side of a link, or a fork discovered while fanning out."""

    owner: str | None = None
    repo: str | None = None
    branch: str | None = None
    type: str | None = None
    private: bool = False

    @property
    def full_name(self) -> str:
        """The 'owner/repo' name of the repository."""
        return f"{self.owner}/{self.repo}"


class Link(WireModel):
    """A configured upstream to fork sync relationship."""

    id: int | str
    name: str | None = None
    enabled: bool = False
    upstream_type: str | None = None
    upstream_owner: str | None = None
    upstream_repo: str | None = None
    upstream_branch: str | None = None
    fork_type: str | None = None
    fork_owner: str | None = None
    fork_repo: str | None = None
    fork_branch: str | None = None
    fork_private: bool = False
    owner_id: int | str | None = None
    owner: User | None = None

    @property
    def upstream(self) -> RepositoryDescriptor:
        """The upstream side of the link."""
        return RepositoryDescriptor(
            owner=self.upstream_owner,
            repo=self.upstream_repo,
            branch=self.upstream_branch,
            type=self.upstream_type,
        )

    @property
    def fork(self) -> RepositoryDescriptor:
        """The fork side of the link."""
        return RepositoryDescriptor(
            owner=self.fork_owner,
            repo=self.fork_repo,
            branch=self.fork_branch,
            type=self.fork_type,
            private=self.fork_private,
        )

    def redacted(self) -> dict[str, Any]:
        """Dump the link for storage with its owner's credentials removed."""
        data = self.to_wire()
        if "owner" in data:
            data["owner"] = REDACTED
        return data


class OperationPayload(WireModel):
    """The data a producer enqueues for one link sync operation."""

    type: str | None = None
    user: User | None = None
    link: Link
    from_request: int | str | None = None


class ForkOutcome(WireModel):
    """The outcome of proposing changes to one fork during a fan-out."""

    status: StatusValue
    data: Any | None = None
    error: str | None = None


class FanOutMetrics(WireModel):
    """Counts for a fan-out operation."""

    total: int
    successes: int


class SyncResult(WireModel):
    """The output of one successfully executed link sync operation."""

    is_enabled: bool = True
    many: bool
    fork_count: int | None = None
    unrelated_forks: bool | None = None
    response: str | None = None
    metrics: FanOutMetrics | None = None
    errors: list[ForkOutcome] | None = None


class OperationStatus(WireModel):
    """The status record stored for an operation."""

    status: StatusValue
    started_at: str
    finished_at: str | None = None
    output: dict[str, Any] | None = None
    link: dict[str, Any] | None = None
    handled_by: str | None = None
    from_request: str | None = None
