"""
Export formatter.

Serializes snapshot views (and optionally their history) as CSV, JSON or
XLSX. CSV carries only the main rows; JSON and XLSX carry one array / one
worksheet per section.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from io import BytesIO, StringIO
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
import csv
import enum
import json
import logging

from fastapi.encoders import jsonable_encoder
from openpyxl import Workbook

logger = logging.getLogger(__name__)

# (header, dict key or callable over the row)
Column = Tuple[str, Union[str, Callable[[Dict[str, Any]], Any]]]


class ExportFormat(str, enum.Enum):
    CSV = "csv"
    JSON = "json"
    XLSX = "xlsx"


MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def _alerts(row):
    return "; ".join(row.get("alerts") or [])


STOCK_COLUMNS: List[Column] = [
    ("ID", "id"),
    ("Tank Name", "name"),
    ("Fuel Type", "fuel_type_name"),
    ("Trading Point", "trading_point_name"),
    ("Current Volume", "current_volume"),
    ("Capacity", "capacity"),
    ("Fill Level %", "fill_level"),
    ("Status", "status"),
    ("Temperature", "temperature"),
    ("Density", "density"),
    ("Water Level", "water_level"),
    ("Last Measurement", "last_measurement"),
    ("Alerts", _alerts),
]

TANK_COLUMNS: List[Column] = [
    ("ID", "id"),
    ("Name", "name"),
    ("Code", "code"),
    ("Trading Point", "trading_point_name"),
    ("Fuel Type", "fuel_type_name"),
    ("Capacity", "capacity"),
    ("Min Volume", "min_volume"),
    ("Max Volume", "max_volume"),
    ("Current Volume", "current_volume"),
    ("Fill Level %", "fill_level"),
    ("Lifecycle Status", "lifecycle_status"),
    ("Status", "status"),
    ("Last Calibration", "last_calibration"),
    ("Alerts", _alerts),
]

MEASUREMENT_COLUMNS: List[Column] = [
    ("ID", "id"),
    ("Tank ID", "tank_id"),
    ("Tank Name", "tank_name"),
    ("Fuel Type", "fuel_type_name"),
    ("Volume", "volume"),
    ("Temperature", "temperature"),
    ("Density", "density"),
    ("Water Level", "water_level"),
    ("Method", "measurement_method"),
    ("Measured By", "measured_by"),
    ("Notes", "notes"),
    ("Created At", "created_at"),
]

EVENT_COLUMNS: List[Column] = [
    ("ID", "id"),
    ("Tank ID", "tank_id"),
    ("Tank Name", "tank_name"),
    ("Event Type", "event_type"),
    ("Title", "title"),
    ("Description", "description"),
    ("Severity", "severity"),
    ("Performed By", "performed_by"),
    ("Created At", "created_at"),
]


@dataclass
class ExportSection:
    key: str
    rows: List[Dict[str, Any]]
    columns: Sequence[Column] = field(default_factory=list)


@dataclass
class ExportResult:
    content: bytes
    media_type: str
    filename: str


def _cell(row: Dict[str, Any], source) -> Any:
    value = source(row) if callable(source) else row.get(source)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class ExportFormatter:
    def export(
        self,
        rows: List[Dict[str, Any]],
        columns: Sequence[Column],
        fmt: ExportFormat,
        root_key: str,
        extra: Optional[List[ExportSection]] = None,
        filename_prefix: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ExportResult:
        fmt = ExportFormat(fmt)
        sections = [ExportSection(root_key, rows, columns)] + list(extra or [])

        if fmt is ExportFormat.CSV:
            content = self.to_csv(rows, columns).encode("utf-8")
        elif fmt is ExportFormat.JSON:
            content = self.to_json(sections).encode("utf-8")
        else:
            content = self.to_xlsx(sections)

        filename = f"{filename_prefix or root_key}-{(today or date.today()).isoformat()}.{fmt.value}"
        logger.info(f"Exported {len(rows)} {root_key} rows as {fmt.value} ({len(content)} bytes)")
        return ExportResult(content=content, media_type=MEDIA_TYPES[fmt], filename=filename)

    @staticmethod
    def to_csv(rows: List[Dict[str, Any]], columns: Sequence[Column]) -> str:
        """Header row plus one line per row. Embedded quotes are doubled."""
        buffer = StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow([header for header, _ in columns])
        for row in rows:
            values = [_cell(row, source) for _, source in columns]
            writer.writerow(["" if v is None else v for v in values])
        return buffer.getvalue()

    @staticmethod
    def to_json(sections: List[ExportSection]) -> str:
        payload = {section.key: section.rows for section in sections}
        return json.dumps(jsonable_encoder(payload), indent=2, ensure_ascii=False)

    @staticmethod
    def to_xlsx(sections: List[ExportSection]) -> bytes:
        workbook = Workbook()
        workbook.remove(workbook.active)

        for section in sections:
            sheet = workbook.create_sheet(title=section.key[:31])
            sheet.append([header for header, _ in section.columns])
            for row in section.rows:
                sheet.append([_cell(row, source) for _, source in section.columns])

        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
