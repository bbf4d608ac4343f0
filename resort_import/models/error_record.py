from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""Parse-error records.

An ErrorRecord describes one input row the reader had to drop, or, with
row == FILE_LEVEL_ROW, a problem with the whole file (bad JSON, no header,
unreadable workbook). Records are serialized as single JSON lines with the
keys timestamp, file, row, error_type and message.
"""

__all__ = [
    "FILE_LEVEL_ROW",
    "ErrorRecord",
    "utc_timestamp",
]

FILE_LEVEL_ROW = -1


def utc_timestamp() -> str:
    """Current UTC time, ISO8601 with a 'Z' suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str
    file: str  # 入力ファイル名
    row: int  # 1 始まりのデータ行 (ヘッダ除く)
    error_type: str  # UPPER_SNAKE
    message: str

    @classmethod
    def create(cls, file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        return cls(utc_timestamp(), file, row, error_type, message)

    @property
    def is_file_level(self) -> bool:
        return self.row == FILE_LEVEL_ROW

    def describe(self) -> str:
        """Short human-readable form used in WARN lines."""
        where = self.file if self.is_file_level else f"{self.file} row {self.row}"
        return f"{where}: {self.message}"

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
