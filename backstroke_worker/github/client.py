# This file is intended to hold the setup for the authenticated githubkit client.

"""Sets up authenticated githubkit clients."""

from typing import TypeAlias

from githubkit import GitHub
from githubkit.auth import TokenAuthStrategy

GitHubClient: TypeAlias = GitHub[TokenAuthStrategy]


def get_github_token_client(github_token: str, github_api_url: str) -> GitHubClient:
    """Returns a GitHub client authenticated with an OAuth or personal access token."""
    if not github_token:
        raise RuntimeError("GitHub token authentication requires a token.")
    # Disable HTTP caching to always get fresh data
    return GitHub(auth=TokenAuthStrategy(github_token), base_url=github_api_url, http_cache=False)
