"""
Spreadsheet export for SELECT results.

Rows (a list of column -> value mappings) are turned into a pandas DataFrame
and written as `.xlsx` with the openpyxl engine.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from pg_ninja.errors import ExportError
from pg_ninja.utils.logging import get_logger

log = get_logger(__name__)


class ExcelExporter:
    """
    Write row sets to spreadsheet files under `output_dir`.
    """

    def __init__(self, output_dir: Path | str = "exports", sheet_name: str = "results") -> None:
        self.output_dir = Path(output_dir)
        self.sheet_name = sheet_name

    def _target(self, filename: Optional[str]) -> Path:
        if filename is None:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
            filename = f"export-{timestamp}.xlsx"
        elif not filename.endswith(".xlsx"):
            filename = f"{filename}.xlsx"
        return self.output_dir / filename

    def export(self, rows: List[Dict[str, Any]], filename: Optional[str] = None) -> Path:
        """
        Write `rows` to a new workbook and return its path.

        Raises
        ------
        ExportError
            If the directory cannot be created or the workbook cannot be written.
        """
        path = self._target(filename)
        frame = pd.DataFrame.from_records(rows)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            frame.to_excel(path, sheet_name=self.sheet_name, index=False, engine="openpyxl")
        except (OSError, ValueError) as exc:
            raise ExportError(f"could not write {path}: {exc}") from exc

        log.info("Rows exported", extra={"path": str(path), "rows": len(frame)})
        return path

    __call__ = export


__all__ = ["ExcelExporter"]
