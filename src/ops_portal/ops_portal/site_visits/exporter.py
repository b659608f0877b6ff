from __future__ import annotations

from io import BytesIO
from typing import Any, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from ..common.location import Location
from .model import SiteVisit

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

BASE_COLUMNS = {
    "Visit ID": 15,
    "Employee Name": 20,
    "Department": 12,
    "Customer Name": 25,
    "Customer Phone": 15,
    "Customer Source": 15,
    "Visit Purpose": 15,
    "Status": 12,
    "Visit Outcome": 12,
    "Check-in Time": 20,
    "Check-in Location": 30,
    "Check-out Time": 20,
    "Check-out Location": 30,
    "Notes": 40,
    "Photos Count": 12,
    "Created At": 20,
}

MARKETING_COLUMNS = {
    "Panel Watts": 12,
    "Panel Type": 12,
    "DCR Panel Count": 15,
    "NON DCR Panel Count": 18,
    "Total Panel Count": 15,
    "Inverter KW": 12,
    "Inverter Phase": 15,
    "Inverter Qty": 12,
    "Electrical Accessories": 20,
    "Electrical Count": 15,
    "Lightning Arrestor": 18,
    "Structure Type": 15,
    "Lower End Height": 15,
    "Higher End Height": 15,
    "Mono Rail Type": 15,
    "Project Value": 15,
}

_PANEL_TYPES = {"bifacial": "Bifacial", "topcon": "Topcon"}
_TIME_FORMAT = "%d/%m/%Y, %I:%M:%S %p"


def _cfg(config: dict, snake: str, camel: str) -> Any:
    value = config.get(snake)
    return config.get(camel) if value is None else value


def _location_text(location: Optional[Location]) -> str:
    if location is None:
        return "N/A"
    return location.address or f"{location.latitude}, {location.longitude}"


def _yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def marketing_columns(config: dict) -> dict[str, Any]:
    """Spreadsheet cells for one marketing project configuration."""

    panel_type = _cfg(config, "panel_type", "panelType")
    structure = _cfg(config, "structure_type", "structureType")
    row: dict[str, Any] = {
        "Panel Watts": _cfg(config, "panel_watts", "panelWatts") or "N/A",
        "Panel Type": _PANEL_TYPES.get(panel_type, "Mono-PERC") if panel_type else "N/A",
        "DCR Panel Count": _cfg(config, "dcr_panel_count", "dcrPanelCount") or 0,
        "NON DCR Panel Count": _cfg(config, "non_dcr_panel_count", "nonDcrPanelCount") or 0,
        "Total Panel Count": _cfg(config, "panel_count", "panelCount") or "N/A",
        "Inverter KW": _cfg(config, "inverter_kw", "inverterKW") or "N/A",
        "Inverter Phase": _cfg(config, "inverter_phase", "inverterPhase") or "N/A",
        "Inverter Qty": _cfg(config, "inverter_qty", "inverterQty") or "N/A",
        "Electrical Accessories": _yes_no(_cfg(config, "electrical_accessories", "electricalAccessories")),
        "Electrical Count": _cfg(config, "electrical_count", "electricalCount") or 0,
        "Lightning Arrestor": _yes_no(_cfg(config, "lightning_arrest", "lightningArrest")),
        "Structure Type": (
            ("GP Structure" if structure == "gp_structure" else "Mono Rail") if structure else "N/A"
        ),
        "Project Value": _cfg(config, "project_value", "projectValue") or "N/A",
    }
    gp = _cfg(config, "gp_structure", "gpStructure")
    if gp:
        row["Lower End Height"] = _cfg(gp, "lower_end_height", "lowerEndHeight") or "N/A"
        row["Higher End Height"] = _cfg(gp, "higher_end_height", "higherEndHeight") or "N/A"
    rail = _cfg(config, "mono_rail", "monoRail")
    if rail:
        row["Mono Rail Type"] = "Mini Rail" if rail.get("type") == "mini_rail" else "Long Rail"
    return row


def visit_row(visit: SiteVisit) -> dict[str, Any]:
    row: dict[str, Any] = {
        "Visit ID": visit.visit_id,
        "Employee Name": visit.employee_name or str(visit.user_id),
        "Department": visit.department.value,
        "Customer Name": visit.customer.name or "N/A",
        "Customer Phone": visit.customer.mobile or "N/A",
        "Customer Source": visit.customer.source or "N/A",
        "Visit Purpose": visit.visit_purpose.value,
        "Status": visit.status.value,
        "Visit Outcome": visit.visit_outcome.value if visit.visit_outcome else "N/A",
        "Check-in Time": visit.site_in_time.strftime(_TIME_FORMAT),
        "Check-in Location": _location_text(visit.site_in_location),
        "Check-out Time": visit.site_out_time.strftime(_TIME_FORMAT) if visit.site_out_time else "Not checked out",
        "Check-out Location": _location_text(visit.site_out_location),
        "Notes": visit.notes or "N/A",
        "Photos Count": len(visit.site_photos),
        "Created At": visit.activity_time.strftime(_TIME_FORMAT),
    }
    config = visit.marketing_data.active_config if visit.marketing_data else None
    if config:
        row.update(marketing_columns(config))
    return row


class SiteVisitExporter:
    sheet_title = "Site Visits"

    def to_xlsx(self, visits: Sequence[SiteVisit]) -> bytes:
        rows = [visit_row(v) for v in visits]
        widths = dict(BASE_COLUMNS)
        present = {key for row in rows for key in row}
        widths.update({k: w for k, w in MARKETING_COLUMNS.items() if k in present})
        headers = list(widths)

        wb = Workbook()
        ws = wb.active
        ws.title = self.sheet_title
        ws.append(headers)
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row in rows:
            ws.append([row.get(h, "") for h in headers])

        for idx, header in enumerate(headers, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = widths[header]

        output = BytesIO()
        wb.save(output)
        return output.getvalue()
