"""Contains utility functions for GitHub interactions."""

from backstroke_worker.utils.constants import URL_CREDENTIALS_PATTERN


def build_remote_url(git_host: str, owner: str, repo: str, token: str | None = None) -> str:
    """Build an HTTPS git remote URL, optionally carrying a token."""
    if token:
        return f"https://x-access-token:{token}@{git_host}/{owner}/{repo}.git"
    return f"https://{git_host}/{owner}/{repo}.git"


def mask_credentials(text: str) -> str:
    """Replace credentials embedded in git remote URLs with ***."""
    if not text:
        return text
    return URL_CREDENTIALS_PATTERN.sub(r"\1:***@", text)
