"""Mirrors an upstream repository into a branch of another repository with git."""

import asyncio
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

from backstroke_worker.utils.github import mask_credentials
from backstroke_worker.worker.exceptions import MirrorError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class GitMirror:
    """Clones and force-pushes repositories using the git executable."""

    def __init__(self, git_executable: str = "git") -> None:
        self.git_executable = git_executable

    @contextmanager
    def scratch_directory(self) -> Iterator[Path]:
        """Yield a fresh directory that is removed on every exit path."""
        with tempfile.TemporaryDirectory(prefix="backstroke-mirror-") as directory:
            logger.debug("Created scratch directory", path=directory)
            try:
                yield Path(directory)
            finally:
                logger.debug("Removing scratch directory", path=directory)

    async def _run(self, *args: str, cwd: Path | None = None) -> str:
        """Run a git command, raising MirrorError when it fails."""
        command = mask_credentials(" ".join(args))
        logger.debug("Running git command", command=command, cwd=str(cwd) if cwd else None)
        try:
            process = await asyncio.create_subprocess_exec(
                self.git_executable,
                *args,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise MirrorError(f"Couldn't run git: {exc}") from exc
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            error_output = mask_credentials(stderr.decode("utf-8", errors="replace").strip())
            raise MirrorError(f"`git {command}` failed with exit code {process.returncode}: {error_output}")
        return stdout.decode("utf-8", errors="replace")

    async def clone(self, remote_url: str, path: Path, branch: str | None = None) -> None:
        """Clone a remote repository into `path`."""
        args = ["clone", "--quiet"]
        if branch:
            args += ["--branch", branch, "--single-branch"]
        await self._run(*args, remote_url, str(path))
        logger.info("Cloned repository", remote=mask_credentials(remote_url), branch=branch)

    async def force_push(self, path: Path, remote_url: str, branch: str) -> None:
        """Force-push the clone's HEAD to `branch` on a remote."""
        await self._run("push", "--quiet", "--force", remote_url, f"HEAD:refs/heads/{branch}", cwd=path)
        logger.info("Force-pushed mirror", remote=mask_credentials(remote_url), branch=branch)
