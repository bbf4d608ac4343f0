from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.resort_record import FIELD_NAMES
from ..models.workbench_row import WorkbenchRow, similarity_band

"""Workbench export (CSV / JSON).

One flat record per row: reconciliation columns first, then every canonical
data field. The format is picked from the output suffix (.json -> JSON,
anything else -> CSV).
"""

__all__ = [
    "row_to_export",
    "export_rows",
]


def _issues_text(row: WorkbenchRow) -> str:
    parts = [f"{i.field}: {i.message}" for i in row.errors]
    parts += [f"{i.field}: {i.message}" for i in row.warnings]
    return "; ".join(parts)


def row_to_export(row: WorkbenchRow) -> dict[str, Any]:
    record: dict[str, Any] = {
        "index": row.index,
        "status": row.status.value,
        "action": row.action.value if row.action else None,
        "checked": row.checked,
        "match_type": row.match_type.value if row.match_type else None,
        "matched_resort_id": row.matched_resort_id,
        "matched_resort_name": row.matched_resort_name,
        "match_similarity": row.match_similarity,
        "similarity_band": similarity_band(row.match_similarity) or None,
        "completeness": f"{row.completeness.filled}/{row.completeness.total}",
        "edited": ",".join(row.edited_fields) or None,
        "issues": _issues_text(row) or None,
    }
    data = row.data.to_dict()
    for name in FIELD_NAMES:
        record[name] = data[name]
    return record


def export_rows(rows: Iterable[WorkbenchRow], path: Path) -> int:
    """Write rows to `path`; returns the number of rows written."""
    records = [row_to_export(r) for r in rows]
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".json":
        # NaN は JSON 非対応なので null に落とす
        cleaned = [
            {k: (None if isinstance(v, float) and v != v else v) for k, v in rec.items()}
            for rec in records
        ]
        path.write_text(json.dumps(cleaned, indent=2, ensure_ascii=False), encoding="utf-8")
    else:
        columns = list(records[0].keys()) if records else ["index", "status", *FIELD_NAMES]
        pd.DataFrame(records, columns=columns).to_csv(path, index=False)
    return len(records)
