from __future__ import annotations

import json
import math
from pathlib import Path

import pandas as pd

from resort_import.models.workbench_row import MatchResult, MatchType
from resort_import.services.export import export_rows, row_to_export
from resort_import.services.workbench import Workbench


def _workbench(make_record) -> Workbench:
    wb = Workbench.from_records([make_record(region="BC"), make_record(name="", runs=math.nan)])
    wb.apply_match(MatchResult(0, MatchType.SIMILAR, "r-7", "Whistler Blackcomb", 0.86))
    return wb


def test_row_to_export_columns(make_record):
    record = row_to_export(_workbench(make_record).row(0))
    assert record["status"] == "warning"
    assert record["match_type"] == "similar"
    assert record["similarity_band"] == "high"
    assert record["completeness"] == "1/13"
    assert record["region"] == "BC"
    assert record["action"] is None


def test_export_json_writes_null_for_nan(make_record, tmp_path: Path):
    path = tmp_path / "out" / "rows.json"
    assert export_rows(_workbench(make_record).rows, path) == 2
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data[1]["runs"] is None
    assert "name: Name is required" in data[1]["issues"]


def test_export_csv(make_record, tmp_path: Path):
    path = tmp_path / "rows.csv"
    export_rows(_workbench(make_record).rows, path)
    df = pd.read_csv(path)
    assert list(df["index"]) == [0, 1]
    assert list(df["status"]) == ["warning", "error"]
    assert "has_night_skiing" in df.columns


def test_export_empty_csv(tmp_path: Path):
    path = tmp_path / "empty.csv"
    assert export_rows([], path) == 0
    assert path.read_text(encoding="utf-8").startswith("index,status,name")
