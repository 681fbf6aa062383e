"""Run directories holding the outputs of persisted planning requests."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from ..config import settings

logger = logging.getLogger(__name__)

SUMMARY_FILE = "summary.json"
ROUTE_SHEET_FILE = "route_sheet.csv"


class RunStorage:
    """One directory per planning run under ``<data_root>/runs``.

    Run ids look like ``fleet-20250101-120000-1a2b3c4d`` so that listing the
    directory sorts runs of the same kind chronologically.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.runs_root = (root or settings.data_root).resolve() / "runs"

    def _new_run_id(self, kind: str) -> str:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        return f"{kind}-{stamp}-{uuid4().hex[:8]}"

    def save_run(self, kind: str, summary: dict[str, Any], route_sheet: str) -> Path:
        run_dir = self.runs_root / self._new_run_id(kind)
        run_dir.mkdir(parents=True)

        (run_dir / SUMMARY_FILE).write_text(json.dumps(summary, ensure_ascii=False, indent=2), encoding="utf-8")
        # csv.writer already emits \r\n row endings
        with (run_dir / ROUTE_SHEET_FILE).open("w", encoding="utf-8", newline="") as handle:
            handle.write(route_sheet)

        logger.info(f"Saved {kind} run to {run_dir}")
        return run_dir

    def load_summary(self, run_dir: Path) -> dict[str, Any]:
        summary_path = run_dir / SUMMARY_FILE
        if not summary_path.is_file():
            raise FileNotFoundError(f"No run summary at {summary_path}")
        return json.loads(summary_path.read_text(encoding="utf-8"))
