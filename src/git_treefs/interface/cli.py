import argparse
import logging
import posixpath
import sys

from git_treefs.application.config import TreeFsConfig
from git_treefs.application.use_cases import describe_entry, summarize_tree, walk
from git_treefs.domain.errors import TreeFsError
from git_treefs.domain.models import normalize_path
from git_treefs.infrastructure.git_invoker import discover_git_dir
from git_treefs.infrastructure.git_tree import GitTreeRepository, open_repository


def _error_exit(msg: str) -> None:
    """Print error message to stderr and exit with code 1."""
    print(f"Error: {msg}", file=sys.stderr)
    sys.exit(1)


def _header_fmt(fmt_spec: str) -> str:
    """Extract header-safe format from a value format spec.

    E.g. ">10d" → ">10", "<25" → "<25".
    """
    stripped = fmt_spec.rstrip("ds")
    dot = stripped.find(".")
    if dot != -1:
        stripped = stripped[:dot]
    return stripped


def _print_table(rows, columns, name_attr="name", max_name=60) -> None:
    """Generic table printer.

    Args:
        rows: list of objects to print.
        columns: list of (header, format_spec, value_fn) tuples. A format_spec
            of None marks the name column, whose width is computed from rows.
        name_attr: attribute holding the name shown in the name column.
        max_name: max name column width.
    """
    if not rows:
        return

    name_width = min(max(len(getattr(r, name_attr)) for r in rows), max_name)

    parts = []
    for header, fmt_spec, _value_fn in columns:
        if fmt_spec is None:
            parts.append(f"{header:<{name_width}}")
        else:
            parts.append(f"{header:{_header_fmt(fmt_spec)}}")
    header_line = "  ".join(parts).rstrip()
    print(header_line)
    print("-" * len(header_line))

    for r in rows:
        parts = []
        for _header, fmt_spec, value_fn in columns:
            if fmt_spec is None:
                name = getattr(r, name_attr)
                if len(name) > name_width:
                    name = "..." + name[-(name_width - 3):]
                parts.append(f"{name:<{name_width}}")
            else:
                parts.append(f"{value_fn(r):{fmt_spec}}")
        print("  ".join(parts).rstrip())


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-treefs",
        description="Browse a git revision as a read-only filesystem",
    )
    parser.add_argument(
        "-C", dest="repo_path", metavar="PATH", default=None,
        help="Run as if started in PATH (used to discover the repository)",
    )
    parser.add_argument(
        "--git-dir", metavar="DIR", default=None,
        help="Path to the repository's git directory (default: discovered)",
    )
    parser.add_argument(
        "--rev", metavar="REV", default=None,
        help="Revision to expose (default: HEAD)",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p_stat = sub.add_parser("stat", help="Show metadata for a path")
    p_stat.add_argument("path")

    p_ls = sub.add_parser("ls", help="List a directory")
    p_ls.add_argument("path", nargs="?", default="")

    p_cat = sub.add_parser("cat", help="Write a file's contents to stdout")
    p_cat.add_argument("path")

    p_tree = sub.add_parser("tree", help="Print a directory tree with totals")
    p_tree.add_argument("path", nargs="?", default="")

    p_serve = sub.add_parser("serve", help="Launch the HTTP API and dashboard")
    p_serve.add_argument(
        "--port", type=int, default=None, metavar="PORT",
        help="API port (Streamlit uses PORT+1, default: 8000)",
    )
    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    config = TreeFsConfig.from_env().override(
        revision=args.rev,
        git_dir=args.git_dir,
        log_level="DEBUG" if args.debug else None,
        api_port=getattr(args, "port", None),
    )
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        try:
            from git_treefs.web.server import launch
        except ImportError:
            _error_exit(
                "web dependencies not installed. "
                "Run: pip install git-treefs[web]"
            )
        launch(
            revision=config.revision,
            git_dir=_git_dir_or_exit(config, args.repo_path),
            api_port=config.api_port,
            git_binary=config.git_binary,
        )
        return

    try:
        repo = open_repository(
            revision=config.revision,
            git_dir=config.git_dir,
            binary=config.git_binary,
            cwd=args.repo_path,
        )
    except TreeFsError as e:
        _error_exit(f"opening repository: {e}")

    handlers = {
        "stat": _cmd_stat,
        "ls": _cmd_ls,
        "cat": _cmd_cat,
        "tree": _cmd_tree,
    }
    try:
        handlers[args.command](repo, args.path)
    except TreeFsError as e:
        _error_exit(str(e))


def _git_dir_or_exit(config: TreeFsConfig, repo_path: str | None) -> str:
    if config.git_dir:
        return config.git_dir
    try:
        return discover_git_dir(cwd=repo_path, binary=config.git_binary)
    except TreeFsError as e:
        _error_exit(f"opening repository: {e}")


def _cmd_stat(repo: GitTreeRepository, path: str) -> None:
    entry = repo.stat(path)
    print(f"Path:       {entry.path or '/'}")
    print(f"Kind:       {entry.kind.name.lower()}")
    print(f"Mode:       {describe_entry(entry)} ({entry.st_mode:06o})")
    if entry.is_regular:
        print(f"Size:       {entry.size}")
    print(f"Object:     {entry.object_id}")
    print(f"Modified:   {entry.mod_time().strftime('%Y-%m-%d %H:%M:%S %z')}")
    print(f"Revision:   {repo}")


def _cmd_ls(repo: GitTreeRepository, path: str) -> None:
    entries = repo.read_dir(path)
    if not entries:
        print("Empty directory.")
        return
    _print_table(
        entries,
        [
            ("Mode", "<10", describe_entry),
            ("Size", ">10", lambda e: str(e.size) if e.is_regular else "-"),
            ("Name", None, None),
        ],
    )


def _cmd_cat(repo: GitTreeRepository, path: str) -> None:
    with repo.open(path) as f:
        sys.stdout.buffer.write(f.read())
    sys.stdout.flush()


def _cmd_tree(repo: GitTreeRepository, path: str) -> None:
    for dirpath, dirs, others in walk(repo, path):
        depth = _depth(dirpath, path)
        indent = "    " * depth
        print(f"{indent}{posixpath.basename(dirpath) or '.'}/")
        for e in others:
            suffix = "@" if e.is_symlink else ""
            print(f"{indent}    {e.name}{suffix}")

    summary = summarize_tree(repo, path)
    print()
    print(f"Directories:  {summary.directory_count}")
    print(f"Files:        {summary.file_count}")
    if summary.symlink_count:
        print(f"Symlinks:     {summary.symlink_count}")
    if summary.submodule_count:
        print(f"Submodules:   {summary.submodule_count}")
    print(f"Total size:   {summary.total_size} bytes")
    if summary.largest_file:
        print(f"Largest file: {summary.largest_file}")


def _depth(dirpath: str, top: str) -> int:
    top = normalize_path(top)
    rel = dirpath[len(top):].lstrip("/") if top else dirpath
    return rel.count("/") + 1 if rel else 0
