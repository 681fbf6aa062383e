import csv

import pytest

from src.routeplanner.persistence.filesystem import ROUTE_SHEET_FILE, RunStorage


def test_save_run_writes_summary_and_route_sheet(tmp_path):
    storage = RunStorage(root=tmp_path)
    sheet = "vehicle,sequence,stop_id\r\nBusje 1,1,DEPOT\r\n"

    run_dir = storage.save_run("fleet", {"vehicles": [{"name": "Busje 1"}], "note": "Zuid-Holland é"}, sheet)

    assert run_dir.parent == (tmp_path / "runs").resolve()
    assert run_dir.name.startswith("fleet-")
    assert storage.load_summary(run_dir) == {"vehicles": [{"name": "Busje 1"}], "note": "Zuid-Holland é"}
    with (run_dir / ROUTE_SHEET_FILE).open(encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows == [["vehicle", "sequence", "stop_id"], ["Busje 1", "1", "DEPOT"]]


def test_runs_get_distinct_directories(tmp_path):
    storage = RunStorage(root=tmp_path)
    first = storage.save_run("route", {}, "")
    second = storage.save_run("route", {}, "")
    assert first != second
    assert sorted(p.name for p in (tmp_path / "runs").iterdir()) == sorted([first.name, second.name])


def test_load_summary_of_missing_run_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        RunStorage(root=tmp_path).load_summary(tmp_path / "runs" / "route-nope")
