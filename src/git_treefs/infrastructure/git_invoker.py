"""Thin synchronous wrapper around the git command line."""

from __future__ import annotations

import io
import logging
import os
import subprocess
from pathlib import Path

from git_treefs.domain.errors import ExternalToolError, InvocationError

logger = logging.getLogger(__name__)


class GitOutput(io.BytesIO):
    """Captured stdout of one git command."""

    @property
    def data(self) -> bytes:
        return self.getvalue()

    def first(self) -> str:
        """Read the next line, without its trailing newline."""
        return self.readline().rstrip(b"\n").decode("utf-8")

    def split(self, sep: bytes) -> list[bytes]:
        return self.getvalue().split(sep)

    def text(self) -> str:
        return self.getvalue().decode("utf-8")


class GitInvoker:
    def __init__(
        self,
        git_dir: str | None = None,
        binary: str = "git",
        cwd: str | None = None,
    ) -> None:
        self.git_dir = git_dir
        self.binary = binary
        self.cwd = cwd

    def __repr__(self) -> str:
        return f"GitInvoker(git_dir={self.git_dir!r}, binary={self.binary!r})"

    def command(self, *args: str) -> list[str]:
        location = [f"--git-dir={self.git_dir}"] if self.git_dir else []
        return [self.binary, *location, *args]

    def run(self, *args: str) -> GitOutput:
        cmd = self.command(*args)
        logger.debug("running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, cwd=self.cwd)
        except OSError as exc:
            raise InvocationError(cmd, exc) from exc
        if result.returncode != 0:
            raise ExternalToolError(
                cmd, result.returncode, result.stderr.decode("utf-8", errors="replace"),
            )
        return GitOutput(result.stdout)


def discover_git_dir(cwd: str | None = None, binary: str = "git") -> str:
    """Ask git for the repository enclosing *cwd* and return its absolute git dir."""
    out = GitInvoker(binary=binary, cwd=cwd).run("rev-parse", "--git-dir")
    git_dir = Path(out.first())
    if not git_dir.is_absolute():
        git_dir = Path(cwd or os.getcwd()) / git_dir
    return str(git_dir.resolve())
