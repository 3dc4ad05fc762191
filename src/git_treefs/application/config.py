"""Centralized configuration for git-treefs."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class TreeFsConfig:
    """Settings shared by the CLI and the web layer.

    Environment variables (all optional):
        GIT_TREEFS_REVISION:    Revision to expose. Default "HEAD".
        GIT_TREEFS_GIT_DIR:     Git directory. Default: discovered from the
                                working directory.
        GIT_TREEFS_GIT_BINARY:  git executable. Default "git".
        GIT_TREEFS_LOG_LEVEL:   Logging level. Default "WARNING".
        GIT_TREEFS_API_PORT:    Port for `git-treefs serve`. Default 8000.
    """

    revision: str | None = None
    git_dir: str | None = None
    git_binary: str = "git"
    log_level: str = "WARNING"
    api_port: int = 8000

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> TreeFsConfig:
        env = os.environ if environ is None else environ
        return cls(
            revision=env.get("GIT_TREEFS_REVISION") or None,
            git_dir=env.get("GIT_TREEFS_GIT_DIR") or None,
            git_binary=env.get("GIT_TREEFS_GIT_BINARY", "git"),
            log_level=env.get("GIT_TREEFS_LOG_LEVEL", "WARNING").upper(),
            api_port=int(env.get("GIT_TREEFS_API_PORT", "8000")),
        )

    def override(self, **values) -> TreeFsConfig:
        """Return a copy with every non-None value in *values* applied."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})
