from __future__ import annotations

from datetime import datetime
from typing import BinaryIO, Protocol

from git_treefs.domain.models import TreeEntry


class ObjectStore(Protocol):
    """Capability handed to tree entries for follow-up lookups."""

    def read_blob(self, object_id: str) -> bytes: ...

    def last_modified(self, path: str) -> datetime: ...


class RevisionFileSystem(Protocol):
    """Read-only filesystem view of one revision.

    stat and lstat are identical: symbolic links are never followed.
    """

    def stat(self, path: str) -> TreeEntry: ...

    def lstat(self, path: str) -> TreeEntry: ...

    def read_dir(self, path: str) -> list[TreeEntry]: ...

    def open(self, path: str) -> BinaryIO: ...
