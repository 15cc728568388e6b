"""Weekly results workbooks: what was actually done, per closed week."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import openpyxl
from openpyxl.utils import get_column_letter

from workout_tracker.excel.config import (
    HISTORY_INFO_DATE,
    INFO_SHEET,
    RESULT_DONE,
    RESULT_NOT_DONE,
    RESULTS_COLUMNS,
    RESULTS_INFO_DATE,
    RESULTS_INFO_PROGRAM,
    RESULTS_INFO_SESSIONS,
    RESULTS_INFO_WEEK,
    RESULTS_MERGED_FIELDS,
)
from workout_tracker.excel.tabular import MergeSpan
from workout_tracker.excel.writer import (
    HEADER_FONT,
    apply_merges,
    set_column_widths,
    workbook_bytes,
    write_header,
    write_record,
)
from workout_tracker.schemas.program import Program
from workout_tracker.schemas.session import BlockLog, SessionData, WeekData
from workout_tracker.schemas.settings import MaxWeights, resolve_charge
from workout_tracker.utils.date_helpers import get_weekday_label
from workout_tracker.utils.file_names import safe_sheet_title

logger = logging.getLogger(__name__)

DAY_SEPARATOR_ROWS = 2


def _block_rows(
    log: BlockLog,
    program: Program | None,
    max_weights: MaxWeights,
) -> list[dict[str, Any]]:
    block = program.find_block(log.block_id) if program else None
    rows = []
    for entry in log.exercises:
        exercise = program.find_exercise(entry.exercise_id) if program else None
        planned = resolve_charge(exercise, max_weights) if exercise else ""
        rows.append({
            "block_name": block.name if block else f"Bloc {log.block_id}",
            "exercise_name": exercise.name if exercise else f"Exercice {entry.exercise_id}",
            "block_description": block.description if block else "",
            "exercise_description": exercise.description if exercise else "",
            "series": f"{entry.completed_count}/{len(entry.completed_sets)}",
            "repetitions": exercise.repetitions if exercise else "",
            "charge": entry.charge or planned,
            "note": entry.note,
            "done": RESULT_DONE if entry.is_complete else RESULT_NOT_DONE,
        })
    return rows


def _write_session(
    ws: Any,
    row: int,
    session: SessionData,
    program: Program | None,
    max_weights: MaxWeights,
) -> int:
    """Write one day's section starting at ``row``. Returns the next free row."""
    title = ws.cell(
        row=row, column=1,
        value=f"=== {get_weekday_label(session.day_index).upper()} ===",
    )
    title.data_type = "s"  # literal text, not a formula
    title.font = HEADER_FONT
    row += 1

    day = program.day(session.day_index) if program else None
    if day is not None and day.description:
        ws.cell(row=row, column=1, value=day.description)
        row += 1

    write_header(ws, row, RESULTS_COLUMNS)
    row += 1

    first_data_row = row
    records: list[dict[str, Any]] = []
    spans: list[MergeSpan] = []
    for log in session.blocks:
        block_rows = _block_rows(log, program, max_weights)
        if len(block_rows) > 1:
            first = len(records)
            last = first + len(block_rows) - 1
            spans.extend(
                MergeSpan(first, last, column.field)
                for column in RESULTS_COLUMNS
                if column.field in RESULTS_MERGED_FIELDS
            )
        records.extend(block_rows)

    for offset, record in enumerate(records):
        write_record(ws, first_data_row + offset, RESULTS_COLUMNS, record)
    apply_merges(ws, first_data_row, RESULTS_COLUMNS, spans)
    return first_data_row + len(records)


def _write_week_sheet(
    ws: Any,
    week: WeekData,
    program: Program | None,
    max_weights: MaxWeights,
) -> None:
    row = 1
    for position, session in enumerate(week.sessions):
        if position:
            row += DAY_SEPARATOR_ROWS
        row = _write_session(ws, row, session, program, max_weights)
    set_column_widths(ws, RESULTS_COLUMNS)


def _write_info_rows(ws: Any, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    for col_idx, header in enumerate(headers, 1):
        ws.cell(row=1, column=col_idx, value=header).font = HEADER_FONT
        ws.column_dimensions[get_column_letter(col_idx)].width = 22
    for row_idx, values in enumerate(rows, 2):
        for col_idx, value in enumerate(values, 1):
            ws.cell(row=row_idx, column=col_idx, value=value)


class ResultsWriter:
    """Writes closed weeks of sessions as results workbooks."""

    @staticmethod
    def write_week(
        week: WeekData,
        program: Program | None,
        max_weights: MaxWeights,
        exported_at: datetime | None = None,
    ) -> bytes:
        """One week: an Informations sheet and one sheet for the whole week.

        ``program`` supplies names, descriptions and planned values; without
        it blocks and exercises are labelled by id.
        """
        exported_at = exported_at or datetime.now(timezone.utc)
        wb = openpyxl.Workbook()
        ws_info = wb.active
        ws_info.title = INFO_SHEET
        _write_info_rows(
            ws_info,
            [RESULTS_INFO_PROGRAM, RESULTS_INFO_WEEK, RESULTS_INFO_DATE, RESULTS_INFO_SESSIONS],
            [[week.program_name, week.week_name, exported_at.isoformat(), week.session_count]],
        )

        ws_week = wb.create_sheet(safe_sheet_title(week.week_name, {INFO_SHEET}))
        _write_week_sheet(ws_week, week, program, max_weights)

        logger.info(
            "Wrote results for '%s' / '%s': %d sessions",
            week.program_name, week.week_name, week.session_count,
        )
        return workbook_bytes(wb)

    @staticmethod
    def write_history(
        weeks: Sequence[WeekData],
        programs: dict[str, Program],
        max_weights: MaxWeights,
    ) -> bytes:
        """Every week in one workbook, one sheet per week in the given order."""
        wb = openpyxl.Workbook()
        ws_info = wb.active
        ws_info.title = INFO_SHEET
        _write_info_rows(
            ws_info,
            [RESULTS_INFO_WEEK, RESULTS_INFO_PROGRAM, HISTORY_INFO_DATE, RESULTS_INFO_SESSIONS],
            [
                [week.week_name, week.program_name, week.date.isoformat(), week.session_count]
                for week in weeks
            ],
        )

        taken = {INFO_SHEET}
        for week in weeks:
            title = safe_sheet_title(week.week_name, taken)
            taken.add(title)
            _write_week_sheet(
                wb.create_sheet(title), week, programs.get(week.program_id), max_weights,
            )

        logger.info("Wrote results history: %d weeks", len(weeks))
        return workbook_bytes(wb)
