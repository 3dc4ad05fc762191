from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class RepositoryIdentity(BaseModel):
    identity: str
    revision: str | None


class EntryInfo(BaseModel):
    name: str
    path: str
    kind: str
    is_dir: bool
    mode: str  # octal st_mode, e.g. "100644"
    size: int
    object_id: str
    mod_time: datetime | None = None


class TreeSummaryModel(BaseModel):
    root: str
    directory_count: int
    file_count: int
    symlink_count: int
    submodule_count: int
    total_size: int
    largest_file: str | None
