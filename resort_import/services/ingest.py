from __future__ import annotations

import logging
from pathlib import Path

from ..files.reader import ParsedFile, read_import_file
from ..models.config_models import DEFAULT_TERRAIN_TOLERANCE
from .normalizer import normalize_record
from .workbench import Workbench

"""File -> Workbench: read, normalize, and seed row state."""

logger = logging.getLogger(__name__)

__all__ = [
    "ingest_file",
    "ingest_parsed",
]


def ingest_parsed(parsed: ParsedFile, terrain_tolerance: float = DEFAULT_TERRAIN_TOLERANCE) -> Workbench:
    records = [normalize_record(raw) for raw in parsed.rows]
    return Workbench.from_records(records, terrain_tolerance)


def ingest_file(path: Path, terrain_tolerance: float = DEFAULT_TERRAIN_TOLERANCE) -> tuple[Workbench, ParsedFile]:
    """Read an import file into a fresh workbench.

    Parse errors are returned on the ParsedFile, not raised; the rows that did
    parse are loaded.

    Raises:
        UnsupportedFileError: the file cannot be opened
    """
    parsed = read_import_file(path)
    for err in parsed.errors:
        logger.warning(f"parse: {err.describe()}")
    workbench = ingest_parsed(parsed, terrain_tolerance)
    logger.info(f"parsed {len(workbench)} rows from {parsed.file_name} ({len(parsed.errors)} parse errors)")
    return workbench, parsed
