"""Error taxonomy shared by every git-treefs layer."""

from __future__ import annotations

import errno
from collections.abc import Sequence

from git_treefs.domain.models import ObjectKind


class TreeFsError(Exception):
    """Base class for everything git-treefs raises on purpose."""


class InvocationError(TreeFsError):
    """The git binary could not be started or failed with an I/O error."""

    def __init__(self, args: Sequence[str], cause: OSError) -> None:
        self.args_ = list(args)
        self.cause = cause
        super().__init__(f"cannot run {' '.join(self.args_)!r}: {cause}")


class ExternalToolError(TreeFsError):
    """git ran and exited with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.args_ = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"{' '.join(self.args_)!r} exited with status {returncode}: {stderr.strip()!r}"
        )


class ParseError(TreeFsError):
    """A line of git output did not match the expected grammar."""

    def __init__(self, record: str) -> None:
        self.record = record
        super().__init__(f"could not parse line: {record!r}")


class NotFoundError(TreeFsError, FileNotFoundError):
    """The path does not exist in the tree at the handle's revision."""

    def __init__(self, path: str) -> None:
        self.path = path
        TreeFsError.__init__(self, f"file not found: {path}")
        self.errno = errno.ENOENT
        self.strerror = f"file not found: {path}"
        self.filename = path

    def __str__(self) -> str:
        return f"file not found: {self.path}"


class NotRegularFileError(TreeFsError):
    """Attempted to read a non-blob object (directory, symlink, submodule)."""

    def __init__(self, path: str, kind: ObjectKind) -> None:
        self.path = path
        self.kind = kind
        super().__init__(f"not a regular blob: {path} ({kind.name.lower()})")
