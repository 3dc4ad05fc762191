"""Streamlit tree browser for git-treefs — connects to the FastAPI backend."""
from __future__ import annotations

import posixpath
import sys

import httpx
import plotly.graph_objects as go
import streamlit as st

# ── Configuration ───────────────────────────────────────────────────

API_URL = "http://localhost:8000"
for arg in sys.argv:
    if arg.startswith("--api-url="):
        API_URL = arg.split("=", 1)[1]

PREVIEW_LIMIT = 200_000

st.set_page_config(page_title="git-treefs", layout="wide")


# ── Data Fetching ───────────────────────────────────────────────────

@st.cache_data(ttl=300)
def fetch(endpoint: str, params: dict | None = None) -> list | dict | None:
    try:
        resp = httpx.get(f"{API_URL}{endpoint}", params=params, timeout=30)
        if resp.status_code in (400, 404):
            return None
        if resp.is_error:
            st.error(f"API error {resp.status_code} on {endpoint}: {resp.text}")
            st.stop()
        return resp.json()
    except httpx.ConnectError:
        st.error(f"Cannot connect to API at {API_URL}. Is the server running?")
        st.stop()


@st.cache_data(ttl=300)
def fetch_bytes(path: str) -> bytes | None:
    resp = httpx.get(f"{API_URL}/api/file", params={"path": path}, timeout=30)
    if resp.status_code != 200:
        return None
    return resp.content


# ── Sidebar ─────────────────────────────────────────────────────────

identity = fetch("/api/identity") or {}
st.sidebar.title("git-treefs")
st.sidebar.caption(identity.get("identity", ""))

if "cwd" not in st.session_state:
    st.session_state.cwd = ""

cwd = st.sidebar.text_input("Directory", value=st.session_state.cwd)
if cwd != st.session_state.cwd:
    st.session_state.cwd = cwd.strip("/")

if st.session_state.cwd and st.sidebar.button("Up one level"):
    st.session_state.cwd = posixpath.dirname(st.session_state.cwd)
    st.rerun()

entries = fetch("/api/dir", params={"path": st.session_state.cwd})
if entries is None:
    st.error(f"Not a directory: /{st.session_state.cwd}")
    st.stop()

# ── Directory Listing ───────────────────────────────────────────────

st.header(f"/{st.session_state.cwd}")

summary = fetch("/api/summary", params={"path": st.session_state.cwd}) or {}
if summary:
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Directories", summary["directory_count"])
    m2.metric("Files", summary["file_count"])
    m3.metric("Total Size", f"{summary['total_size']:,} B")
    m4.metric("Symlinks / Submodules",
              f"{summary['symlink_count']} / {summary['submodule_count']}")

st.dataframe(
    [{k: e[k] for k in ("name", "kind", "mode", "size", "object_id")} for e in entries],
    use_container_width=True,
)

subdirs = [e["name"] for e in entries if e["is_dir"]]
if subdirs:
    target = st.selectbox("Open directory", [""] + subdirs)
    if target:
        st.session_state.cwd = posixpath.join(st.session_state.cwd, target)
        st.rerun()

files = [e for e in entries if e["kind"] == "regular"]
if files:
    top = sorted(files, key=lambda e: e["size"], reverse=True)[:20]
    fig = go.Figure(go.Bar(
        x=[e["size"] for e in top],
        y=[e["name"] for e in top],
        orientation="h",
        marker_color="#1f77b4",
    ))
    fig.update_layout(
        title="Largest Files",
        xaxis_title="Bytes",
        yaxis=dict(autorange="reversed"),
        height=max(300, len(top) * 25),
        margin=dict(l=200),
    )
    st.plotly_chart(fig, use_container_width=True)

# ── File Preview ────────────────────────────────────────────────────

if files:
    selected = st.selectbox("Preview file", [""] + [e["name"] for e in files])
    if selected:
        path = posixpath.join(st.session_state.cwd, selected)
        data = fetch_bytes(path)
        if data is None:
            st.error(f"Cannot read {path}")
        elif len(data) > PREVIEW_LIMIT:
            st.info(f"{path} is {len(data):,} bytes; too large to preview.")
        else:
            try:
                st.code(data.decode("utf-8"))
            except UnicodeDecodeError:
                st.info("Binary file.")
            st.download_button("Download", data, file_name=selected)
