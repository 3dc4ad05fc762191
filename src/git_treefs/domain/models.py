from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from git_treefs.domain.ports import ObjectStore


class ObjectKind(IntEnum):
    """Object type encoded in the first three octal digits of a tree mode."""

    DIRECTORY = 0o040
    REGULAR = 0o100
    SYMLINK = 0o120
    GITLINK = 0o160  # submodule commit


def normalize_path(path: str) -> str:
    """Normalize a tree path; the root is the empty string."""
    path = path.strip("/")
    while path.startswith("./"):
        path = path[2:].lstrip("/")
    return "" if path == "." else path


@dataclass(frozen=True)
class TreeEntry:
    """One named object inside a directory listing at a fixed revision."""

    parent: str
    name: str
    kind: ObjectKind
    mode: int  # permission bits only, e.g. 0o644
    object_id: str
    size: int = 0  # only meaningful for ObjectKind.REGULAR
    store: ObjectStore | None = field(default=None, compare=False, repr=False)

    @property
    def path(self) -> str:
        return posixpath.join(self.parent, self.name)

    @property
    def is_dir(self) -> bool:
        return self.kind == ObjectKind.DIRECTORY

    @property
    def is_regular(self) -> bool:
        return self.kind == ObjectKind.REGULAR

    @property
    def is_symlink(self) -> bool:
        return self.kind == ObjectKind.SYMLINK

    @property
    def is_submodule(self) -> bool:
        return self.kind == ObjectKind.GITLINK

    @property
    def st_mode(self) -> int:
        # 0o040 << 9 == stat.S_IFDIR, 0o100 << 9 == stat.S_IFREG, ...
        return (int(self.kind) << 9) | self.mode

    def mod_time(self) -> datetime:
        if self.store is None:
            raise ValueError(f"Entry has no object store: {self.path!r}")
        return self.store.last_modified(self.path)


@dataclass(frozen=True)
class TreeSummary:
    """Aggregate counts for a subtree at one revision."""

    root: str
    directory_count: int
    file_count: int
    symlink_count: int
    submodule_count: int
    total_size: int  # sum of regular-file sizes in bytes
    largest_file: str | None
