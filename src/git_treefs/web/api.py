from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response

from git_treefs.application.use_cases import summarize_tree
from git_treefs.domain.errors import NotFoundError, NotRegularFileError, TreeFsError
from git_treefs.domain.models import TreeEntry, normalize_path
from git_treefs.domain.ports import RevisionFileSystem
from git_treefs.infrastructure.git_tree import open_repository
from git_treefs.web.models import (
    EntryInfo,
    RepositoryIdentity,
    TreeSummaryModel,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    fs = getattr(app.state, "filesystem", None)
    if fs is None:
        fs = open_repository(
            revision=getattr(app.state, "revision", None),
            git_dir=getattr(app.state, "git_dir", None),
            binary=getattr(app.state, "git_binary", None) or "git",
        )
    app.state.fs = fs
    yield
    app.state.fs = None


app = FastAPI(title="git-treefs", lifespan=lifespan)

# The tree caches are plain dicts; sync endpoints run in a threadpool.
_fs_lock = threading.Lock()


def _fs() -> RevisionFileSystem:
    return app.state.fs


def _translate(exc: TreeFsError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, NotRegularFileError):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


def _require_directory(fs: RevisionFileSystem, path: str) -> None:
    """Map a missing or non-directory path to 404/400 before listing it."""
    path = normalize_path(path)
    if path and not fs.stat(path).is_dir:
        raise HTTPException(status_code=400, detail=f"not a directory: {path}")


def _entry_info(entry: TreeEntry, with_mtime: bool = False) -> EntryInfo:
    return EntryInfo(
        name=entry.name,
        path=entry.path,
        kind=entry.kind.name.lower(),
        is_dir=entry.is_dir,
        mode=f"{entry.st_mode:06o}",
        size=entry.size,
        object_id=entry.object_id,
        mod_time=entry.mod_time() if with_mtime else None,
    )


@app.get("/api/identity", response_model=RepositoryIdentity)
def identity():
    fs = _fs()
    return RepositoryIdentity(identity=str(fs), revision=getattr(fs, "revision", None))


@app.get("/api/stat", response_model=EntryInfo)
def stat_path(
    path: str = Query("", description="Path inside the revision"),
    mtime: bool = Query(False, description="Include the modification time"),
):
    with _fs_lock:
        try:
            return _entry_info(_fs().stat(path), with_mtime=mtime)
        except TreeFsError as e:
            raise _translate(e)


@app.get("/api/dir", response_model=list[EntryInfo])
def read_dir(
    path: str = Query("", description="Directory path inside the revision"),
    mtime: bool = Query(False, description="Include modification times"),
):
    with _fs_lock:
        try:
            _require_directory(_fs(), path)
            return [_entry_info(e, with_mtime=mtime) for e in _fs().read_dir(path)]
        except TreeFsError as e:
            raise _translate(e)


@app.get("/api/file")
def read_file(path: str = Query(..., description="File path inside the revision")):
    with _fs_lock:
        try:
            with _fs().open(path) as f:
                data = f.read()
        except TreeFsError as e:
            raise _translate(e)
    return Response(content=data, media_type="application/octet-stream")


@app.get("/api/summary", response_model=TreeSummaryModel)
def summary(path: str = Query("", description="Subtree to summarize")):
    with _fs_lock:
        try:
            _require_directory(_fs(), path)
            return TreeSummaryModel(**asdict(summarize_tree(_fs(), path)))
        except TreeFsError as e:
            raise _translate(e)
