"""
Mission Exporter

Writes parsed missions to CSV (through the tool base class) or to an Excel
workbook with a missions sheet and a per-phase sheet.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from openpyxl.utils import get_column_letter
import pandas as pd

from arbitration_log.base import FileBasedTool
from arbitration_log.log.models import MissionResult

logger = logging.getLogger(__name__)

PHASE_COLUMNS = ["mission", "node_id", "kind", "phase", "shield_drones"]


class MissionExporter(FileBasedTool):
    """Export parsed missions to tabular files."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(config)
        self.initialize_directories()

    @staticmethod
    def mission_rows(missions: Sequence[MissionResult],
                     node_lines: Optional[Dict[int, str]] = None,
                     economy_rows: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
        """
        Flatten missions into rows, adding the node label and economy columns when given.
        """
        economy_by_index = {row["index"]: row for row in (economy_rows or [])}
        rows = []
        for mission in missions:
            row = mission.to_row()
            row["node"] = (node_lines or {}).get(mission.index, "")
            for key, value in economy_by_index.get(mission.index, {}).items():
                if key != "index":
                    row[key] = value
            rows.append(row)
        return rows

    @staticmethod
    def phase_rows(missions: Sequence[MissionResult]) -> List[Dict[str, Any]]:
        return [
            {
                "mission": mission.index,
                "node_id": mission.node_id,
                "kind": phase.kind.value,
                "phase": phase.index,
                "shield_drones": phase.count,
            }
            for mission in missions
            for phase in mission.phases
        ]

    def export_csv(self, missions: Sequence[MissionResult], output_path: Optional[str] = None,
                   node_lines: Optional[Dict[int, str]] = None,
                   economy_rows: Optional[List[Dict[str, Any]]] = None) -> str:
        """
        Save missions to a CSV file.

        Returns:
            Path to the saved CSV file
        """
        output_path = output_path or self.generate_timestamped_filename("arbitration_missions", "csv")
        rows = self.mission_rows(missions, node_lines, economy_rows)
        headers = list(rows[0].keys()) if rows else None
        return self.write_csv(rows, output_path, headers=headers)

    def export_excel(self, missions: Sequence[MissionResult], output_path: Optional[str] = None,
                     node_lines: Optional[Dict[int, str]] = None,
                     economy_rows: Optional[List[Dict[str, Any]]] = None) -> str:
        """
        Save missions to an Excel workbook with "Missions" and "Phases" sheets.

        Returns:
            Path to the saved workbook
        """
        output_path = output_path or self.generate_timestamped_filename("arbitration_missions", "xlsx")
        excel_path = self.output_path_for(output_path)

        missions_df = pd.DataFrame(self.mission_rows(missions, node_lines, economy_rows))
        phases_df = pd.DataFrame(self.phase_rows(missions), columns=PHASE_COLUMNS)

        with pd.ExcelWriter(excel_path, engine='openpyxl') as writer:
            for sheet_name, df in (("Missions", missions_df), ("Phases", phases_df)):
                df.to_excel(writer, sheet_name=sheet_name, index=False)
                worksheet = writer.sheets[sheet_name]

                for idx, column in enumerate(df.columns, 1):
                    letter = get_column_letter(idx)
                    values = [str(column)] + [str(v) for v in df[column].tolist() if v is not None]
                    worksheet.column_dimensions[letter].width = min(60, max(len(v) for v in values) + 2)

        logger.info(f"Exported {len(missions)} missions to {excel_path}")
        return excel_path

    def run(self, missions: Sequence[MissionResult], output_format: str = "csv",
            output_path: Optional[str] = None, **kwargs) -> str:
        if output_format == "excel":
            return self.export_excel(missions, output_path, **kwargs)
        if output_format == "csv":
            return self.export_csv(missions, output_path, **kwargs)
        raise ValueError(f"Unknown export format: {output_format}")
