"""Export functionality for activities, records and reports."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import polars as pl
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from pydantic import TypeAdapter

from activity_tracker.analytics.records import latest_by_triple
from activity_tracker.analytics.statistics import (
    calculate_aggregate_statistics,
    calculate_calories,
    calculate_statistics,
    round_half_up,
)
from activity_tracker.analytics.trends import activities_frame, summary_frame
from activity_tracker.config import EXPORT_DIR
from activity_tracker.formatting import format_distance, format_duration, format_pace, format_speed
from activity_tracker.models.activity import Activity, as_naive_utc
from activity_tracker.models.records import RECORD_CATEGORY_LABELS, RECORD_TYPE_LABELS, PersonalRecord

logger = logging.getLogger(__name__)

ACTIVITY_LIST = TypeAdapter(list[Activity])

DISPLAY_TIME_FORMAT = "%d/%m/%Y %H:%M:%S"


def _optional(value, fmt: str) -> Optional[str]:
    return format(value, fmt) if value is not None else None


def activity_to_csv(activity: Activity) -> str:
    """Two-section CSV: general information, then one row per trackpoint."""
    stats = calculate_statistics(activity)

    lines = [
        "# General information",
        "Field,Value",
        f"Sport,{activity.sport}",
        f"Date,{activity.start_time.strftime(DISPLAY_TIME_FORMAT)}",
        f"Distance,{format_distance(stats.total_distance)}",
        f"Duration,{format_duration(stats.total_time)}",
        f"Average speed,{format_speed(stats.average_speed)}",
        f"Max speed,{format_speed(stats.max_speed)}",
    ]
    if stats.average_heart_rate:
        lines.append(f"Average HR,{round_half_up(stats.average_heart_rate)} bpm")
    if stats.max_heart_rate:
        lines.append(f"Max HR,{stats.max_heart_rate} bpm")
    if stats.elevation_gain:
        lines.append(f"Elevation gain,{round_half_up(stats.elevation_gain)} m")
    if stats.total_calories:
        lines.append(f"Calories,{stats.total_calories} kcal")

    trackpoints = pl.DataFrame(
        [
            {
                "Time": tp.time.strftime(DISPLAY_TIME_FORMAT),
                "Latitude": _optional(tp.latitude, ".6f"),
                "Longitude": _optional(tp.longitude, ".6f"),
                "Altitude (m)": _optional(tp.altitude, ".1f"),
                "Distance (m)": _optional(tp.distance, ".1f"),
                "Speed (km/h)": f"{tp.speed * 3.6:.2f}" if tp.speed else None,
                "HR (bpm)": str(tp.heart_rate) if tp.heart_rate else None,
                "Cadence (rpm)": str(tp.cadence) if tp.cadence else None,
            }
            for tp in activity.trackpoints()
        ],
        schema={
            column: pl.Utf8 for column in (
                "Time", "Latitude", "Longitude", "Altitude (m)", "Distance (m)",
                "Speed (km/h)", "HR (bpm)", "Cadence (rpm)",
            )
        },
    )

    lines.append("")
    lines.append("# Trackpoints")
    return "\n".join(lines) + "\n" + trackpoints.write_csv()


def activity_to_json(activity: Activity) -> str:
    return activity.model_dump_json(indent=2)


def activities_to_json(activities: list[Activity]) -> str:
    return ACTIVITY_LIST.dump_json(activities, indent=2).decode()


def activity_summary(activity: Activity) -> str:
    """Plain-text summary of one activity."""
    stats = calculate_statistics(activity)

    lines = [
        f"=== {activity.sport} ===",
        f"Date: {activity.start_time.strftime('%Y-%m-%d %H:%M')}",
        "",
        "Statistics:",
        f"- Distance: {format_distance(stats.total_distance)}",
        f"- Duration: {format_duration(stats.total_time)}",
        f"- Average speed: {format_speed(stats.average_speed)}",
        f"- Max speed: {format_speed(stats.max_speed)}",
    ]
    if stats.average_pace:
        lines.append(f"- Average pace: {format_pace(stats.average_pace)}")
    if stats.average_heart_rate:
        lines.append(f"- Average HR: {round_half_up(stats.average_heart_rate)} bpm")
    if stats.max_heart_rate:
        lines.append(f"- Max HR: {stats.max_heart_rate} bpm")
    if stats.elevation_gain:
        lines.append(f"- Elevation gain: {round_half_up(stats.elevation_gain)} m")
    if stats.elevation_loss:
        lines.append(f"- Elevation loss: {round_half_up(stats.elevation_loss)} m")
    if stats.total_calories:
        lines.append(f"- Calories: {stats.total_calories} kcal")
    elif stats.total_time > 0:
        estimate = calculate_calories(stats.total_time / 60, stats.average_heart_rate)
        lines.append(f"- Estimated calories: {estimate} kcal")

    if activity.notes:
        lines.extend(["", "Notes:", activity.notes])

    return "\n".join(lines)


class ReportExporter:
    """Export activity analytics as Excel, CSV and text reports."""

    def __init__(self, activities: list[Activity], records: Optional[list[PersonalRecord]] = None):
        """Initialize report exporter.

        Args:
            activities: Activities to report on
            records: Personal record history, current records are reported
        """
        self.activities = activities
        self.records = records or []
        self.df = activities_frame(activities)

    def records_frame(self) -> pl.DataFrame:
        current = sorted(
            latest_by_triple(self.records).values(),
            key=lambda r: (r.sport, r.type.value, r.category.value),
        )
        return pl.DataFrame(
            [
                {
                    "sport": r.sport,
                    "type": RECORD_TYPE_LABELS[r.type],
                    "category": RECORD_CATEGORY_LABELS[r.category],
                    "value": r.value,
                    "unit": r.unit,
                    "date": r.activity_date.strftime("%Y-%m-%d"),
                    "activity_id": r.activity_id,
                }
                for r in current
            ],
            schema={
                "sport": pl.Utf8,
                "type": pl.Utf8,
                "category": pl.Utf8,
                "value": pl.Float64,
                "unit": pl.Utf8,
                "date": pl.Utf8,
                "activity_id": pl.Utf8,
            },
        )

    def export_to_excel(self, output_path: str = None) -> str:
        """Export activities, summaries and records to Excel.

        Args:
            output_path: Output file path (generated if not provided)

        Returns:
            Path to exported file
        """
        if output_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_path = str(EXPORT_DIR / f"activity_report_{timestamp}.xlsx")

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        wb = Workbook()
        wb.remove(wb.active)

        self._add_frame_sheet(wb, "Activities", self.df)
        self._add_frame_sheet(wb, "Weekly Summary", summary_frame(self.activities, "1w"))
        self._add_frame_sheet(wb, "Monthly Summary", summary_frame(self.activities, "1mo"))
        self._add_frame_sheet(wb, "Records", self.records_frame())

        wb.save(output_path)
        logger.info(f"Excel report exported to {output_path}")

        return output_path

    def _add_frame_sheet(self, wb: Workbook, title: str, df: pl.DataFrame):
        """Write a DataFrame with a styled header row."""
        ws = wb.create_sheet(title)

        if df.is_empty():
            ws.append(["No data"])
            return

        df = df.with_columns(
            pl.col(pl.Datetime).dt.strftime("%Y-%m-%d %H:%M"),
            pl.col(pl.Float64).round(2),
        )

        ws.append(df.columns)
        for row in df.iter_rows():
            ws.append(list(row))

        self._format_header(ws)
        self._auto_adjust_columns(ws)

    def _format_header(self, ws):
        """Format header row with styling."""
        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True)

        for cell in ws[1]:
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal="center")

    def _auto_adjust_columns(self, ws):
        """Auto-adjust column widths based on content."""
        for column in ws.columns:
            column_letter = column[0].column_letter
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            ws.column_dimensions[column_letter].width = min(max_length + 2, 50)

    def export_to_csv(self, output_dir: str = None) -> Dict[str, str]:
        """Export data to CSV files.

        Args:
            output_dir: Output directory for CSV files

        Returns:
            Dictionary with exported file paths
        """
        output_path = Path(output_dir) if output_dir else EXPORT_DIR / "csv"
        output_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        exported_files = {}

        activities_file = output_path / f"activities_{timestamp}.csv"
        self.df.write_csv(activities_file)
        exported_files["activities"] = str(activities_file)

        weekly_df = summary_frame(self.activities, "1w")
        if not weekly_df.is_empty():
            weekly_file = output_path / f"weekly_summary_{timestamp}.csv"
            weekly_df.write_csv(weekly_file)
            exported_files["weekly_summary"] = str(weekly_file)

        records_df = self.records_frame()
        if not records_df.is_empty():
            records_file = output_path / f"records_{timestamp}.csv"
            records_df.write_csv(records_file)
            exported_files["records"] = str(records_file)

        logger.info(f"CSV files exported to {output_path}")

        return exported_files

    def generate_summary_report(self) -> str:
        """Generate a text summary report.

        Returns:
            Summary report as string
        """
        totals = calculate_aggregate_statistics(self.activities)

        report = []
        report.append("=" * 60)
        report.append("ACTIVITY SUMMARY REPORT")
        report.append("=" * 60)
        report.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        report.append("")

        report.append("OVERVIEW")
        report.append("-" * 40)
        report.append(f"Total Activities: {totals['total_activities']}")

        if self.activities:
            report.append(f"Total Distance: {totals['total_distance'] / 1000:,.0f} km")
            report.append(f"Total Time: {totals['total_time'] / 3600:,.1f} hours")
            report.append(f"Total Calories: {totals['total_calories']:,} kcal")
            report.append(f"Average Distance: {format_distance(totals['average_distance'])}")
            report.append(f"Average Speed: {format_speed(totals['average_speed'])}")

            starts = [a.start_time for a in self.activities]
            report.append(f"Date Range: {min(starts, key=as_naive_utc):%Y-%m-%d} to {max(starts, key=as_naive_utc):%Y-%m-%d}")

        report.append("")

        report.append("CURRENT RECORDS")
        report.append("-" * 40)
        records_df = self.records_frame()
        if records_df.is_empty():
            report.append("No records yet")
        for row in records_df.iter_rows(named=True):
            report.append(
                f"{row['sport']} - {row['type']} ({row['category']}): "
                f"{row['value']:.2f} {row['unit']} on {row['date']}"
            )

        report.append("")
        report.append("=" * 60)
        report.append("END OF REPORT")
        report.append("=" * 60)

        return "\n".join(report)
