from __future__ import annotations

import csv
import io
import json
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.error_record import FILE_LEVEL_ROW, ErrorRecord
from ..models.resort_record import RawValue

"""Import file readers (CSV / JSON / XLSX).

Readers only tokenize; they return raw rows (column name -> RawValue) and
per-row ErrorRecords. Type coercion happens later in the normalizer.

- CSV:  comma-delimited, quoted fields with doubled-quote escaping, header row
        required. Rows whose field count differs from the header are reported
        and dropped; blank lines are ignored.
- JSON: a top-level array of objects, or an object with a "resorts" or "data"
        array. Non-object entries are reported and dropped.
- XLSX: first sheet, first row is the header (read with pandas).

Malformed input never raises: it is reported as a file-level ErrorRecord
(row=-1) and yields no rows.
"""

__all__ = [
    "ParsedFile",
    "UnsupportedFileError",
    "read_csv_text",
    "read_json_text",
    "read_excel_rows",
    "read_import_file",
]

RawRow = dict[str, RawValue]


class UnsupportedFileError(Exception):
    """Raised when the file cannot be opened at all."""


@dataclass
class ParsedFile:
    file_name: str
    rows: list[RawRow] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)


def read_csv_text(text: str, file_name: str = "<csv>") -> ParsedFile:
    result = ParsedFile(file_name=file_name)
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    header: list[str] | None = None
    data_row = 0
    for fields in reader:
        if not fields or all(not f.strip() for f in fields):
            continue  # 空行
        if header is None:
            header = [h.strip() for h in fields]
            continue
        data_row += 1
        if len(fields) != len(header):
            result.errors.append(
                ErrorRecord.create(
                    file=file_name,
                    row=data_row,
                    error_type="FIELD_COUNT_MISMATCH",
                    message=f"expected {len(header)} fields, got {len(fields)}",
                )
            )
            continue
        result.rows.append({h: v.strip() for h, v in zip(header, fields, strict=True)})
    if header is None:
        result.errors.append(
            ErrorRecord.create(file_name, FILE_LEVEL_ROW, "MISSING_HEADER", "file has no header row")
        )
    return result


def _records_from_json(parsed: Any) -> list[Any] | None:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        for key in ("resorts", "data"):
            if isinstance(parsed.get(key), list):
                return parsed[key]
    return None


def read_json_text(text: str, file_name: str = "<json>") -> ParsedFile:
    result = ParsedFile(file_name=file_name)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        result.errors.append(
            ErrorRecord.create(file_name, FILE_LEVEL_ROW, "INVALID_JSON", f"invalid JSON: {e}")
        )
        return result
    records = _records_from_json(parsed)
    if records is None:
        result.errors.append(
            ErrorRecord.create(
                file_name,
                FILE_LEVEL_ROW,
                "UNRECOGNIZED_SHAPE",
                "expected an array or an object with a 'resorts' or 'data' array",
            )
        )
        return result
    for i, entry in enumerate(records, start=1):
        if not isinstance(entry, dict):
            result.errors.append(
                ErrorRecord.create(file_name, i, "NOT_AN_OBJECT", f"expected an object, got {type(entry).__name__}")
            )
            continue
        result.rows.append({str(k): _json_scalar(v) for k, v in entry.items()})
    return result


def _json_scalar(value: Any) -> RawValue:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    # ネスト値は文字列化して正規化側に委ねる
    return json.dumps(value, ensure_ascii=False)


def read_excel_rows(path: Path) -> ParsedFile:
    """Read the first sheet of an XLSX workbook; header on the first row."""
    result = ParsedFile(file_name=path.name)
    try:
        df = pd.read_excel(path, sheet_name=0, dtype=object)
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        result.errors.append(
            ErrorRecord.create(path.name, FILE_LEVEL_ROW, "INVALID_WORKBOOK", str(e))
        )
        return result
    df.columns = [str(c).strip() for c in df.columns]
    for _, raw in df.iterrows():
        if raw.isna().all():
            continue
        row: RawRow = {}
        for col, val in raw.items():
            row[str(col)] = None if pd.isna(val) else _excel_scalar(val)
        result.rows.append(row)
    return result


def _excel_scalar(value: Any) -> RawValue:
    if isinstance(value, (str, bool, int, float)):
        return value
    if hasattr(value, "item"):  # numpy scalar
        return value.item()
    return str(value)


def read_import_file(path: Path) -> ParsedFile:
    """Read an import file, choosing the reader by suffix (.csv / .xlsx / else JSON).

    Raises:
        UnsupportedFileError: the file does not exist or cannot be decoded as text
    """
    if not path.exists():
        raise UnsupportedFileError(f"file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm"):
        return read_excel_rows(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise UnsupportedFileError(f"cannot read {path}: {e}") from e
    if suffix == ".csv":
        return read_csv_text(text, path.name)
    return read_json_text(text, path.name)
