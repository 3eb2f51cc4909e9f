"""Line-by-line JSONL reading with warning accounting."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

from updown_core.windows.warnings import WarningTracker


def iter_jsonl(path: Path, warnings: WarningTracker) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield ``(line_no, row)`` for each JSON object line in *path*.

    A missing file is reported as ``missing_file`` and contributes no rows.
    Lines that are not JSON objects are reported as ``bad_json_line`` and
    skipped. Order within the file is preserved.
    """
    if not path.is_file():
        warnings.add("missing_file", f"missing: {path}")
        return

    with path.open("r", encoding="utf-8", errors="replace") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except ValueError:
                warnings.add("bad_json_line", f"{path}:{line_no}")
                continue
            if not isinstance(row, dict):
                warnings.add("bad_json_line", f"{path}:{line_no}")
                continue
            yield line_no, row
