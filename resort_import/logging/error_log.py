from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Parse-error log.

Errors collected while reading an import file are appended, one JSON object
per line, to logs/errors-YYYYMMDD-HHMMSS.log. The file name is fixed on the
first flush, so one run writes one file. Nothing is created when the run had
no parse errors.
"""

__all__ = [
    "ErrorLogBuffer",
    "log_file_name",
]

DEFAULT_LOGS_DIR = Path("logs")
LOG_NAME_FMT = "errors-%Y%m%d-%H%M%S.log"


def log_file_name(moment: datetime | None = None) -> str:
    return (moment or datetime.now(UTC)).strftime(LOG_NAME_FMT)


class ErrorLogBuffer:
    """Collects ErrorRecords for one run; flush() appends them as JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = logs_dir if logs_dir is not None else DEFAULT_LOGS_DIR
        self.pending: list[ErrorRecord] = []
        self.path: Path | None = None

    def __len__(self) -> int:
        return len(self.pending)

    def append(self, record: ErrorRecord) -> None:
        self.pending.append(record)

    def extend(self, records: Iterable[ErrorRecord]) -> None:
        self.pending.extend(records)

    @property
    def file_path(self) -> Path:
        if self.path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            self.path = self.logs_dir / log_file_name()
        return self.path

    def flush(self) -> Path | None:
        """Write pending records; returns the log path, or None if there was nothing to write."""
        if not self.pending:
            return None
        target = self.file_path
        payload = "".join(f"{record.to_json_line()}\n" for record in self.pending)
        with target.open("a", encoding="utf-8") as fh:
            fh.write(payload)
        self.pending = []
        return target
