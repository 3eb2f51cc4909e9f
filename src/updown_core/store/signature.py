"""Stat-based signatures used to detect stale cached results."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Mapping

if TYPE_CHECKING:
    from updown_core.models.window import Window


def file_signature(path: Path) -> str | None:
    """``"<size>:<mtime_ns>"`` for a regular file, None when it is absent."""
    try:
        st = path.stat()
    except OSError:
        return None
    if not path.is_file():
        return None
    return f"{st.st_size}:{st.st_mtime_ns}"


def day_signature(paths: Iterable[Path]) -> str:
    """Hash over the stat signatures of every source file of one date."""
    h = hashlib.sha256()
    for p in sorted(paths, key=str):
        h.update(f"{p}|{file_signature(p)}\n".encode("utf-8"))
    return h.hexdigest()


def window_source_signature(files: Mapping[str, Path], window: Window) -> dict[str, Any]:
    """Per-window signature: file stats plus the coverage they produced."""
    return {
        "files": {name: file_signature(path) for name, path in sorted(files.items())},
        "coverage": window.coverage.to_dict(),
        "isComplete": window.is_complete,
    }
