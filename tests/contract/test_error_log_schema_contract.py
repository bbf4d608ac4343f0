from __future__ import annotations

import json
import re
from pathlib import Path

from resort_import.files.reader import read_csv_text, read_json_text
from resort_import.logging.error_log import ErrorLogBuffer

"""Error log JSON Lines contract.

Each line has exactly: timestamp, file, row, error_type, message.
row is the 1-based data row, or -1 for file-level errors.
"""

REQUIRED_KEYS = {"timestamp", "file", "row", "error_type", "message"}
TS_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$")
TYPE_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")


def test_error_lines_follow_schema(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.extend(read_csv_text("name,country\nA\n", "a.csv").errors)
    buf.extend(read_json_text("{bad", "b.json").errors)
    buf.extend(read_json_text('["x"]', "c.json").errors)
    path = buf.flush()
    assert path is not None

    lines = [json.loads(l) for l in path.read_text(encoding="utf-8").splitlines()]
    assert len(lines) == 3
    for entry in lines:
        assert set(entry) == REQUIRED_KEYS
        assert TS_PATTERN.match(entry["timestamp"])
        assert TYPE_PATTERN.match(entry["error_type"])
        assert isinstance(entry["row"], int)
        assert entry["row"] == -1 or entry["row"] >= 1
    assert [e["row"] for e in lines] == [1, -1, 1]
