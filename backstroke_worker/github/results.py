"""Result values returned by hosting client calls that do not raise."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeAlias, TypeVar

T = TypeVar("T")


class ApiErrorKind(str, Enum):
    """Classification of a failed GitHub API call."""

    UNPROCESSABLE = "unprocessable"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    OTHER = "other"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful API call and its parsed data."""

    data: T


@dataclass(frozen=True)
class Err:
    """A failed API call.

    `message` is the most specific message the platform gave; for validation
    failures that is the first entry of the `errors` list.
    """

    kind: ApiErrorKind
    message: str | None
    status_code: int | None = None


ApiResult: TypeAlias = Ok[Any] | Err


def classify_status_code(status_code: int | None) -> ApiErrorKind:
    """Map an HTTP status code onto an ApiErrorKind."""
    if status_code == 422:
        return ApiErrorKind.UNPROCESSABLE
    if status_code == 404:
        return ApiErrorKind.NOT_FOUND
    if status_code is not None and status_code >= 500:
        return ApiErrorKind.SERVER_ERROR
    return ApiErrorKind.OTHER
