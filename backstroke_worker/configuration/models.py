"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass
from enum import Enum


class OptOutPolicy(str, Enum):
    """Enum for the check made before proposing changes to a repository."""

    DISABLED = "disabled"
    OPT_OUT = "opt-out"
    OPT_IN = "opt-in"


@dataclass
class WorkerConfig:
    """Configuration handed to the worker and its sync strategy engine."""

    debug: bool
    github_api_url: str
    github_token: str
    bot_username: str
    redis_url: str
    queue_name: str
    git_host: str = "github.com"
    throttle: float = 0.0
    poll_interval: float = 5.0
    dry_run: bool = False
    opt_out_policy: OptOutPolicy = OptOutPolicy.DISABLED
    opt_out_label: str = "backstroke-optout"
    opt_in_label: str = "backstroke-sync"
