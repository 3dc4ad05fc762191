"""Read-only filesystem view of one git revision, built on git ls-tree."""

from __future__ import annotations

import io
import logging
import posixpath
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from git_treefs.domain.errors import (
    NotFoundError,
    NotRegularFileError,
    ParseError,
    TreeFsError,
)
from git_treefs.domain.models import ObjectKind, TreeEntry, normalize_path
from git_treefs.domain.ports import ObjectStore
from git_treefs.infrastructure.git_invoker import GitInvoker, discover_git_dir

logger = logging.getLogger(__name__)

DEFAULT_REVISION = "HEAD"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ROOT_MODE = 0o755

# example records (one per NUL-terminated chunk with -z):
#   040000 tree d564d0bc3dd917926892c55e3706cc116d5b165e       -\tdirectory
#   100755 blob e69de29bb2d1d6434b8b29ae775ad8c2e48c5391       0\texecutable
#   100644 blob 78981922613b2afb6025042ff6bd878ac1994e85    1234\tfile
#   160000 commit 5499f342043544dcc4c437c0eb10b4d721f30dd3     -\tsubmodule
#   120000 blob 8d14cbf983b3fad683171c9418998d9f68340823      10\tsymlink
_LS_TREE_RECORD = re.compile(
    r"(?P<mode>[0-7]{6}) +(?P<type>\S+) +(?P<object_id>[0-9a-f]{40}) +"
    r"(?P<size>[0-9]+|-)\t(?P<name>.+)",
    re.DOTALL,
)


def parse_ls_tree_record(
    record: str, parent: str, store: ObjectStore | None = None,
) -> TreeEntry:
    match = _LS_TREE_RECORD.fullmatch(record)
    if match is None:
        raise ParseError(record)

    mode = match.group("mode")
    try:
        kind = ObjectKind(int(mode[:3], 8))
    except ValueError:
        raise ParseError(record) from None

    size_field = match.group("size")
    return TreeEntry(
        parent=parent,
        name=match.group("name"),
        kind=kind,
        mode=int(mode[3:], 8),
        object_id=match.group("object_id"),
        size=0 if size_field == "-" else int(size_field),
        store=store,
    )


def parse_ls_tree(
    output: bytes, parent: str, store: ObjectStore | None = None,
) -> dict[str, TreeEntry]:
    """Parse `git ls-tree -z -l` output into a name -> entry mapping.

    A single malformed record fails the whole listing.
    """
    tree: dict[str, TreeEntry] = {}
    for raw in output.split(b"\0"):
        if not raw:
            continue
        record = raw.decode("utf-8", errors="surrogateescape")
        entry = parse_ls_tree_record(record, parent, store)
        tree[entry.name] = entry
    return tree


class GitTreeRepository:
    """Filesystem view of *revision*, listing directories lazily.

    Each directory is listed at most once per handle; listings are never
    invalidated because the revision is fixed. Not thread-safe.
    """

    def __init__(self, invoker: GitInvoker, revision: str = DEFAULT_REVISION) -> None:
        self._git = invoker
        self._revision = revision or DEFAULT_REVISION
        self._tree_cache: dict[str, dict[str, TreeEntry]] = {}
        self._mtime_cache: dict[str, datetime] = {}

    @property
    def revision(self) -> str:
        return self._revision

    @property
    def git_dir(self) -> str | None:
        return self._git.git_dir

    def __str__(self) -> str:
        return f"git[rev={self._revision}]"

    def __repr__(self) -> str:
        return f"GitTreeRepository(revision={self._revision!r}, git_dir={self.git_dir!r})"

    def list_directory(self, path: str) -> dict[str, TreeEntry]:
        key = normalize_path(path)
        cached = self._tree_cache.get(key)
        if cached is not None:
            logger.debug("tree cache hit for %r", key)
            return cached

        logger.debug("tree cache miss for %r", key)
        out = self._git.run("ls-tree", "--full-tree", "-z", "-l", f"{self._revision}:{key}")
        tree = parse_ls_tree(out.data, key, self)
        self._tree_cache[key] = tree
        return tree

    def resolve(self, path: str) -> TreeEntry:
        name = normalize_path(path)
        if not name:
            return self._root_entry()

        parent, base = posixpath.split(name)
        if parent and parent not in self._tree_cache:
            # Check ancestors first so a missing directory reads as "not found"
            # instead of a git failure on `<rev>:<missing>`.
            try:
                parent_entry = self.resolve(parent)
            except NotFoundError:
                raise NotFoundError(name) from None
            if not parent_entry.is_dir:
                raise NotFoundError(name)

        entries = self.list_directory(parent)
        try:
            return entries[base]
        except KeyError:
            raise NotFoundError(name) from None

    # TODO: follow symlinks once a target-resolution policy for links that
    # leave the tree is settled; until then lstat and stat agree.
    def stat(self, path: str) -> TreeEntry:
        return self.resolve(path)

    def lstat(self, path: str) -> TreeEntry:
        return self.resolve(path)

    def read_dir(self, path: str) -> list[TreeEntry]:
        """Entries of the directory at *path*, sorted by name."""
        entries = self.list_directory(path)
        return sorted(entries.values(), key=lambda e: e.name)

    def open(self, path: str) -> io.BytesIO:
        entry = self.resolve(path)
        if entry.kind != ObjectKind.REGULAR:
            raise NotRegularFileError(entry.path or normalize_path(path), entry.kind)
        return io.BytesIO(self.read_blob(entry.object_id))

    def read_blob(self, object_id: str) -> bytes:
        return self._git.run("cat-file", "blob", object_id).data

    def last_modified(self, path: str) -> datetime:
        """Author date of the newest commit touching *path*, or the epoch.

        Best effort: any git or parse failure yields the epoch.
        """
        key = normalize_path(path)
        if key in self._mtime_cache:
            return self._mtime_cache[key]

        args = ["log", "-1", "--pretty=format:%aD", self._revision]
        if key:
            args += ["--", key]
        try:
            mtime = parsedate_to_datetime(self._git.run(*args).first())
        except (TreeFsError, ValueError, TypeError) as exc:
            logger.warning("cannot determine modification time of %r: %s", key, exc)
            mtime = EPOCH

        self._mtime_cache[key] = mtime
        return mtime

    def _root_entry(self) -> TreeEntry:
        out = self._git.run("rev-parse", f"{self._revision}^{{tree}}")
        return TreeEntry(
            parent="",
            name="",
            kind=ObjectKind.DIRECTORY,
            mode=ROOT_MODE,
            object_id=out.first(),
            store=self,
        )


def open_repository(
    revision: str | None = None,
    git_dir: str | None = None,
    binary: str = "git",
    cwd: str | None = None,
) -> GitTreeRepository:
    """Build a handle, resolving the default revision and git dir once."""
    if not git_dir:
        git_dir = discover_git_dir(cwd=cwd, binary=binary)
    invoker = GitInvoker(git_dir=git_dir, binary=binary, cwd=cwd)
    return GitTreeRepository(invoker, revision or DEFAULT_REVISION)
