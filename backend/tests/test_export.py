import csv
import io
import json
from datetime import date, datetime

from fastapi.encoders import jsonable_encoder
from openpyxl import load_workbook

from app.schemas.filters import StockFilter
from app.services.export import (
    ExportFormatter, ExportSection, STOCK_COLUMNS, MEASUREMENT_COLUMNS,
)
from app.services.snapshots import SnapshotService

from conftest import fixed_clock

ROWS = [
    {
        "id": 1,
        "name": 'Tank "A"',
        "fuel_type_name": "Diesel",
        "trading_point_name": "Station North, Main road",
        "current_volume": 400.0,
        "capacity": 10000.0,
        "fill_level": 4.0,
        "status": "critical",
        "temperature": None,
        "density": 0.84,
        "water_level": 2.0,
        "last_measurement": datetime(2026, 10, 19, 12, 0),
        "alerts": ["Critical fuel level", "Calibration overdue"],
    },
    {
        "id": 2,
        "name": "Tank B",
        "fuel_type_name": None,
        "trading_point_name": "Station North",
        "current_volume": 5000.0,
        "capacity": 10000.0,
        "fill_level": 50.0,
        "status": "normal",
        "temperature": 12.5,
        "density": None,
        "water_level": None,
        "last_measurement": None,
        "alerts": [],
    },
]


class TestCsv:
    def test_header_and_rows(self):
        text = ExportFormatter.to_csv(ROWS, STOCK_COLUMNS)
        lines = text.split("\n")

        assert lines[0] == (
            "ID,Tank Name,Fuel Type,Trading Point,Current Volume,Capacity,Fill Level %,Status,"
            "Temperature,Density,Water Level,Last Measurement,Alerts"
        )
        assert len([line for line in lines if line]) == 3

    def test_embedded_quotes_are_doubled(self):
        text = ExportFormatter.to_csv(ROWS, STOCK_COLUMNS)
        assert '"Tank ""A"""' in text
        assert '"Station North, Main road"' in text

    def test_parses_back(self):
        reader = csv.DictReader(io.StringIO(ExportFormatter.to_csv(ROWS, STOCK_COLUMNS)))
        parsed = list(reader)

        assert parsed[0]["Tank Name"] == 'Tank "A"'
        assert parsed[0]["Alerts"] == "Critical fuel level; Calibration overdue"
        assert parsed[0]["Last Measurement"] == "2026-10-19T12:00:00"
        assert parsed[1]["Fuel Type"] == ""


class TestJson:
    def test_main_and_extra_sections(self):
        history = [{"id": 7, "tank_id": 1, "volume": 400.0, "created_at": datetime(2026, 10, 19, 12, 0)}]

        result = ExportFormatter().export(
            ROWS, STOCK_COLUMNS, "json", "stocks",
            extra=[ExportSection("measurement_history", history, MEASUREMENT_COLUMNS)],
            filename_prefix="fuel-stocks", today=date(2026, 10, 19),
        )
        payload = json.loads(result.content)

        assert result.filename == "fuel-stocks-2026-10-19.json"
        assert result.media_type == "application/json"
        assert len(payload["stocks"]) == 2
        assert payload["measurement_history"][0]["created_at"] == "2026-10-19T12:00:00"

    def test_round_trip_matches_snapshots(self, store, make_tank):
        for volume in (300.0, 5000.0, 9800.0):
            make_tank(current_volume=volume)
        snapshots = SnapshotService(store, fixed_clock).list_snapshots(StockFilter(), page=1, limit=50)["data"]

        result = ExportFormatter().export(snapshots, STOCK_COLUMNS, "json", "stocks")
        parsed = json.loads(result.content)["stocks"]

        assert len(parsed) == 3
        assert parsed == jsonable_encoder(snapshots)


class TestXlsx:
    def test_one_sheet_per_section(self):
        history = [{"id": 7, "tank_id": 1, "volume": 400.0, "created_at": datetime(2026, 10, 19, 12, 0)}]

        result = ExportFormatter().export(
            ROWS, STOCK_COLUMNS, "xlsx", "stocks",
            extra=[ExportSection("measurement_history", history, MEASUREMENT_COLUMNS)],
        )
        workbook = load_workbook(io.BytesIO(result.content))

        assert workbook.sheetnames == ["stocks", "measurement_history"]
        stocks = list(workbook["stocks"].iter_rows(values_only=True))
        assert stocks[0][0] == "ID"
        assert stocks[1][1] == 'Tank "A"'
        assert len(stocks) == 3
        assert result.filename.endswith(".xlsx")
