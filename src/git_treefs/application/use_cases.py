from __future__ import annotations

from collections.abc import Iterator

from git_treefs.domain.models import ObjectKind, TreeEntry, TreeSummary, normalize_path
from git_treefs.domain.ports import RevisionFileSystem


_KIND_CHARS = {
    ObjectKind.DIRECTORY: "d",
    ObjectKind.REGULAR: "-",
    ObjectKind.SYMLINK: "l",
    ObjectKind.GITLINK: "m",
}


def walk(
    fs: RevisionFileSystem, path: str = "",
) -> Iterator[tuple[str, list[TreeEntry], list[TreeEntry]]]:
    """Pre-order walk yielding (dirpath, dirs, non_dirs), like os.walk.

    Symlinks and submodules are reported as non-directories and never entered.
    """
    dirpath = normalize_path(path)
    entries = fs.read_dir(dirpath)
    dirs = [e for e in entries if e.is_dir]
    others = [e for e in entries if not e.is_dir]
    yield dirpath, dirs, others
    for d in dirs:
        yield from walk(fs, d.path)


def summarize_tree(fs: RevisionFileSystem, path: str = "") -> TreeSummary:
    dir_count = 0
    file_count = 0
    symlink_count = 0
    submodule_count = 0
    total_size = 0
    largest: TreeEntry | None = None

    for _dirpath, dirs, others in walk(fs, path):
        dir_count += len(dirs)
        for e in others:
            if e.is_regular:
                file_count += 1
                total_size += e.size
                if largest is None or e.size > largest.size:
                    largest = e
            elif e.is_symlink:
                symlink_count += 1
            elif e.is_submodule:
                submodule_count += 1

    return TreeSummary(
        root=normalize_path(path),
        directory_count=dir_count,
        file_count=file_count,
        symlink_count=symlink_count,
        submodule_count=submodule_count,
        total_size=total_size,
        largest_file=largest.path if largest else None,
    )


def read_text(fs: RevisionFileSystem, path: str, encoding: str = "utf-8") -> str:
    with fs.open(path) as f:
        return f.read().decode(encoding)


def describe_entry(entry: TreeEntry) -> str:
    """Render kind and permission bits the way `ls -l` does, e.g. drwxr-xr-x."""
    # git records symlinks as 120000; show them like a filesystem would
    mode = 0o777 if entry.is_symlink else entry.mode
    bits = "".join(
        ch if mode & (1 << (8 - i)) else "-"
        for i, ch in enumerate("rwxrwxrwx")
    )
    return _KIND_CHARS[entry.kind] + bits
