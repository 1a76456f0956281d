# roadmaster/services/report_service.py
import io
from typing import Any, Mapping, Optional

import pandas as pd

from roadmaster.logger import get_logger
from roadmaster.services.rollup import (
    calculate_boq_progress,
    calculate_component_progress,
    calculate_overall_progress,
    calculate_time_progress,
    classify_project_status,
)
from roadmaster.utils.values import num

logger = get_logger(__name__)

REPORT_SHEET = "Progress Report"


class ReportService:
    """
    Progress report for one project document.

    Reads only; nothing here is persisted.
    """

    def generate_df_report(self, project: Mapping[str, Any], now: Optional[str] = None) -> pd.DataFrame:
        """
        Build a human-readable progress report DataFrame:
        project header, structure / component progress, then the BOQ ledger.
        """
        rows = []

        # project info
        rows.append(["Project Progress Report"])
        rows.append(["Project", project.get("name")])
        rows.append(["Code", project.get("code")])
        rows.append(["Status", classify_project_status(project.get("startDate"), project.get("endDate"), now).value])
        rows.append(["Physical progress (%)", calculate_boq_progress(project.get("boq"))])
        rows.append(["Time progress (%)", calculate_time_progress(project.get("startDate"), project.get("endDate"), now)])
        rows.append(["", ""])

        # structures
        rows.append(["1. Structures"])
        rows.append(["Structure", "Component", "Unit", "Target", "Completed", "Progress (%)", "Work logs"])
        structure_count = 0
        for structure in project.get("structures") or []:
            if not isinstance(structure, Mapping):
                continue
            structure_count += 1
            rows.append([
                structure.get("name"), "", "", "", "",
                calculate_overall_progress(structure), "",
            ])
            for component in structure.get("components") or []:
                if not isinstance(component, Mapping):
                    continue
                rows.append([
                    "",
                    component.get("name"),
                    component.get("unit"),
                    num(component.get("totalQuantity")),
                    num(component.get("completedQuantity")),
                    round(calculate_component_progress(component), 2),
                    len(component.get("workLogs") or []),
                ])
        rows.append(["", ""])

        # BOQ
        rows.append(["2. Bill of Quantities"])
        rows.append(["Item No", "Description", "Unit", "Quantity", "Completed", "Rate", "Amount", "Completed value"])
        total_amount = 0
        total_done = 0
        for item in project.get("boq") or []:
            if not isinstance(item, Mapping):
                continue
            amount = num(item.get("quantity")) * num(item.get("rate"))
            done = num(item.get("completedQuantity")) * num(item.get("rate"))
            total_amount += amount
            total_done += done
            rows.append([
                item.get("itemNo"),
                item.get("description"),
                item.get("unit"),
                num(item.get("quantity")),
                num(item.get("completedQuantity")),
                num(item.get("rate")),
                amount,
                done,
            ])
        rows.append(["Total", "", "", "", "", "", total_amount, total_done])

        logger.info(
            "Project %s: progress report built (%d structures, %d rows)",
            project.get("id"), structure_count, len(rows),
        )
        return pd.DataFrame(rows)

    def export_xlsx(self, df: pd.DataFrame) -> io.BytesIO:
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, header=False, sheet_name=REPORT_SHEET)
        output.seek(0)
        return output
