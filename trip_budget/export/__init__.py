"""Export package: CSV snapshot and daily report."""

from trip_budget.export.csv_export import CSV_FILENAME, build_csv, csv_headers
from trip_budget.export.daily_report import DailyReport, build_daily_report

__all__ = [
    "CSV_FILENAME",
    "DailyReport",
    "build_csv",
    "build_daily_report",
    "csv_headers",
]
