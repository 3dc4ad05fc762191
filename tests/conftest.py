import os
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-C", str(repo), *args],
        capture_output=True, check=True, text=True,
    )
    return result.stdout.strip()


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository."""
    subprocess.run(
        ["git", "init", str(tmp_path)],
        capture_output=True, check=True,
    )
    git(tmp_path, "config", "user.name", "Test User")
    git(tmp_path, "config", "user.email", "test@example.com")
    git(tmp_path, "config", "commit.gpgsign", "false")
    git(tmp_path, "config", "core.fileMode", "true")
    git(tmp_path, "config", "core.symlinks", "true")
    return tmp_path


def _commit(repo: Path, message: str, days_ago: int) -> None:
    date = datetime.now(timezone.utc) - timedelta(days=days_ago)
    date_str = date.strftime("%Y-%m-%dT%H:%M:%S %z")
    env = {
        **os.environ,
        "GIT_AUTHOR_DATE": date_str,
        "GIT_COMMITTER_DATE": date_str,
        "GIT_AUTHOR_NAME": "Test User",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test User",
        "GIT_COMMITTER_EMAIL": "test@example.com",
    }
    subprocess.run(
        ["git", "-C", str(repo), "commit", "-m", message],
        capture_output=True, check=True,
        env=env,
    )


def commit_file(
    repo: Path,
    file_path: str,
    content: str | bytes,
    message: str,
    days_ago: int = 0,
    executable: bool = False,
) -> None:
    """Create a commit adding or updating one file at a known relative date."""
    full_path = repo / file_path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        full_path.write_bytes(content)
    else:
        full_path.write_text(content)
    if executable:
        full_path.chmod(0o755)

    git(repo, "add", file_path)
    _commit(repo, message, days_ago)


def commit_symlink(repo: Path, link_path: str, target: str, message: str, days_ago: int = 0) -> None:
    full_path = repo / link_path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(target, full_path)
    git(repo, "add", link_path)
    _commit(repo, message, days_ago)


def commit_gitlink(repo: Path, path: str, commit_sha: str, message: str, days_ago: int = 0) -> None:
    """Record a submodule entry pointing at *commit_sha* without cloning anything."""
    git(repo, "update-index", "--add", "--cacheinfo", f"160000,{commit_sha},{path}")
    _commit(repo, message, days_ago)


@pytest.fixture
def tree_repo(tmp_git_repo: Path) -> Path:
    """Create a repo covering every object kind.

    Layout at HEAD:
        README.md           regular, 19 bytes, last touched 5 days ago
        bin/run.sh          executable
        docs/guide/intro.md nested regular file
        link                symlink -> README.md
        src/main.py         regular
        src/utils.py        regular
        vendor/lib          submodule (gitlink)
    """
    commit_file(tmp_git_repo, "README.md", "# Project\n", "Initial commit", days_ago=60)
    commit_file(tmp_git_repo, "src/main.py", "print('hello')\n", "Add main", days_ago=45)
    commit_file(tmp_git_repo, "src/utils.py", "def helper(): pass\n", "Add utils", days_ago=30)
    commit_file(tmp_git_repo, "bin/run.sh", "#!/bin/sh\necho run\n", "Add script",
                days_ago=25, executable=True)
    commit_file(tmp_git_repo, "docs/guide/intro.md", "Intro\n", "Add docs", days_ago=20)
    commit_symlink(tmp_git_repo, "link", "README.md", "Add link", days_ago=15)
    commit_gitlink(tmp_git_repo, "vendor/lib", git(tmp_git_repo, "rev-parse", "HEAD"),
                   "Add submodule", days_ago=10)
    commit_file(tmp_git_repo, "README.md", "# Project\nUpdated.\n", "Update README", days_ago=5)
    return tmp_git_repo


@pytest.fixture
def tree_repo_git_dir(tree_repo: Path) -> str:
    return str(tree_repo / ".git")
