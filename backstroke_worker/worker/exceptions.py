"""Custom exceptions raised while processing link sync operations."""


class OperationError(Exception):
    """Base class for errors that end a single operation."""

    pass


class LinkDisabled(OperationError):
    """Raised when a link is not enabled."""

    def __init__(self) -> None:
        super().__init__("Link is not enabled.")


class LinkMisconfigured(OperationError):
    """Raised when a link is missing its upstream or fork."""

    def __init__(self, message: str = "Please define both an upstream and fork on this link.") -> None:
        super().__init__(message)


class UnknownForkType(OperationError):
    """Raised when a link's fork type is not one the engine knows."""

    def __init__(self, fork_type: str) -> None:
        super().__init__(f"No such 'fork' type: {fork_type}")
        self.fork_type = fork_type


class RepositoryNotFound(OperationError):
    """Raised when a target repository does not exist on GitHub."""

    def __init__(self, owner: str, repo: str) -> None:
        super().__init__(f"Repository {owner}/{repo} doesn't exist.")
        self.owner = owner
        self.repo = repo


class RepositoryOptedOut(OperationError):
    """Raised when a repository refuses automated pull requests."""

    def __init__(self, owner: str, repo: str) -> None:
        super().__init__("This repo opted out of backstroke pull requests")
        self.owner = owner
        self.repo = repo


class HostingApiError(OperationError):
    """Raised for any other failure reported by GitHub."""

    pass


class MirrorError(OperationError):
    """Raised when cloning or pushing an out-of-network mirror fails."""

    pass
