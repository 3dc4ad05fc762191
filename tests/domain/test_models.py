import dataclasses
import errno
import stat
from datetime import datetime, timezone

import pytest

from git_treefs.domain.errors import (
    ExternalToolError,
    InvocationError,
    NotFoundError,
    NotRegularFileError,
    ParseError,
    TreeFsError,
)
from git_treefs.domain.models import ObjectKind, TreeEntry, TreeSummary, normalize_path

OID = "78981922613b2afb6025042ff6bd878ac1994e85"


class _Store:
    def __init__(self):
        self.paths = []

    def read_blob(self, object_id):
        return b""

    def last_modified(self, path):
        self.paths.append(path)
        return datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestObjectKind:
    def test_values(self):
        assert ObjectKind.DIRECTORY == 0o040
        assert ObjectKind.REGULAR == 0o100
        assert ObjectKind.SYMLINK == 0o120
        assert ObjectKind.GITLINK == 0o160

    def test_from_mode_prefix(self):
        assert ObjectKind(int("100644"[:3], 8)) is ObjectKind.REGULAR


class TestTreeEntry:
    def test_path_joins_parent_and_name(self):
        entry = TreeEntry("src/pkg", "mod.py", ObjectKind.REGULAR, 0o644, OID, 10)
        assert entry.path == "src/pkg/mod.py"

    def test_top_level_path(self):
        entry = TreeEntry("", "README.md", ObjectKind.REGULAR, 0o644, OID, 10)
        assert entry.path == "README.md"

    def test_kind_predicates(self):
        d = TreeEntry("", "d", ObjectKind.DIRECTORY, 0o755, OID)
        f = TreeEntry("", "f", ObjectKind.REGULAR, 0o644, OID)
        ln = TreeEntry("", "l", ObjectKind.SYMLINK, 0, OID)
        sub = TreeEntry("", "s", ObjectKind.GITLINK, 0, OID)
        assert d.is_dir and not d.is_regular
        assert f.is_regular and not f.is_dir
        assert ln.is_symlink and not ln.is_regular
        assert sub.is_submodule and not sub.is_dir

    def test_st_mode_matches_stat_module(self):
        d = TreeEntry("", "d", ObjectKind.DIRECTORY, 0o755, OID)
        f = TreeEntry("", "f", ObjectKind.REGULAR, 0o644, OID)
        ln = TreeEntry("", "l", ObjectKind.SYMLINK, 0, OID)
        assert stat.S_ISDIR(d.st_mode)
        assert stat.S_ISREG(f.st_mode)
        assert stat.S_ISLNK(ln.st_mode)
        assert stat.S_IMODE(f.st_mode) == 0o644

    def test_size_defaults_to_zero(self):
        assert TreeEntry("", "d", ObjectKind.DIRECTORY, 0o755, OID).size == 0

    def test_frozen(self):
        entry = TreeEntry("", "f", ObjectKind.REGULAR, 0o644, OID)
        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.kind = ObjectKind.DIRECTORY

    def test_store_excluded_from_equality(self):
        a = TreeEntry("", "f", ObjectKind.REGULAR, 0o644, OID, store=_Store())
        b = TreeEntry("", "f", ObjectKind.REGULAR, 0o644, OID, store=_Store())
        assert a == b

    def test_mod_time_delegates_to_store(self):
        store = _Store()
        entry = TreeEntry("src", "f", ObjectKind.REGULAR, 0o644, OID, store=store)
        assert entry.mod_time() == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert store.paths == ["src/f"]

    def test_mod_time_without_store_raises(self):
        entry = TreeEntry("", "f", ObjectKind.REGULAR, 0o644, OID)
        with pytest.raises(ValueError):
            entry.mod_time()


class TestNormalizePath:
    @pytest.mark.parametrize("raw, expected", [
        ("", ""),
        (".", ""),
        ("/", ""),
        ("./", ""),
        ("src", "src"),
        ("src/", "src"),
        ("src//", "src"),
        ("/src", "src"),
        ("./src/main.py", "src/main.py"),
        ("a/b/c/", "a/b/c"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected


class TestTreeSummary:
    def test_creation(self):
        s = TreeSummary("", 2, 3, 1, 0, 100, "a.txt")
        assert s.file_count == 3
        assert s.largest_file == "a.txt"


class TestErrors:
    def test_all_share_base(self):
        errors = [
            InvocationError(["git"], OSError("boom")),
            ExternalToolError(["git", "log"], 128, "fatal"),
            ParseError("x"),
            NotFoundError("a/b"),
            NotRegularFileError("a", ObjectKind.DIRECTORY),
        ]
        assert all(isinstance(e, TreeFsError) for e in errors)

    def test_not_found_is_enoent(self):
        err = NotFoundError("a/b")
        assert isinstance(err, FileNotFoundError)
        assert err.errno == errno.ENOENT
        assert err.path == "a/b"
        assert str(err) == "file not found: a/b"

    def test_external_tool_error_message(self):
        err = ExternalToolError(["git", "ls-tree", "HEAD:x"], 128, "fatal: not a tree\n")
        assert err.returncode == 128
        assert err.stderr == "fatal: not a tree\n"
        assert "128" in str(err)
        assert "fatal: not a tree" in str(err)

    def test_not_regular_message_names_kind(self):
        err = NotRegularFileError("vendor", ObjectKind.GITLINK)
        assert "gitlink" in str(err)
        assert err.path == "vendor"
