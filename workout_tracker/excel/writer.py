"""Program workbook writing.

Every workbook gets an Informations sheet and one sheet per selected day in
the repeated layout. Block columns are merged over the rows of each block;
merges are display only and are not needed to read the file back.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from typing import Any

import openpyxl
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from workout_tracker.excel.config import (
    DAY_DESCRIPTION_PREFIX,
    EXPORT_TYPE_STANDARD,
    INFO_HEADERS,
    INFO_SHEET,
    INSTRUCTIONS_SHEET,
    PROGRAM_COLUMNS,
    ColumnSpec,
    get_day_sheet_name,
)
from workout_tracker.excel.tabular import MergeSpan, flatten_blocks
from workout_tracker.schemas.program import Program, TrainingDay
from workout_tracker.schemas.settings import MaxWeights

logger = logging.getLogger(__name__)

HEADER_FONT = Font(bold=True)
MERGED_ALIGNMENT = Alignment(vertical="center", wrap_text=True)


def write_header(ws: Any, row: int, columns: Sequence[ColumnSpec]) -> None:
    for col_idx, column in enumerate(columns, 1):
        cell = ws.cell(row=row, column=col_idx, value=column.header)
        cell.font = HEADER_FONT


def write_record(
    ws: Any,
    row: int,
    columns: Sequence[ColumnSpec],
    record: dict[str, Any],
) -> None:
    """Write one record; empty values leave the cell empty."""
    for col_idx, column in enumerate(columns, 1):
        value = record.get(column.field)
        if value is None or value == "":
            continue
        cell = ws.cell(row=row, column=col_idx, value=value)
        if isinstance(value, str) and value.startswith("="):
            cell.data_type = "s"  # literal text, not a formula


def apply_merges(
    ws: Any,
    first_data_row: int,
    columns: Sequence[ColumnSpec],
    spans: Sequence[MergeSpan],
) -> None:
    """Merge each span's cells vertically within its column."""
    col_of = {column.field: idx for idx, column in enumerate(columns, 1)}
    for span in spans:
        col = col_of[span.field]
        start_row = first_data_row + span.first_row
        ws.merge_cells(
            start_row=start_row,
            start_column=col,
            end_row=first_data_row + span.last_row,
            end_column=col,
        )
        ws.cell(row=start_row, column=col).alignment = MERGED_ALIGNMENT


def set_column_widths(ws: Any, columns: Sequence[ColumnSpec]) -> None:
    for col_idx, column in enumerate(columns, 1):
        ws.column_dimensions[get_column_letter(col_idx)].width = column.width


def workbook_bytes(wb: Any) -> bytes:
    buf = io.BytesIO()
    try:
        wb.save(buf)
    finally:
        wb.close()
    return buf.getvalue()


class ProgramWriter:
    """Writes program workbooks in memory."""

    @staticmethod
    def write_program(
        program: Program,
        max_weights: MaxWeights,
        export_type: str = EXPORT_TYPE_STANDARD,
        instructions: Sequence[str] | None = None,
    ) -> bytes:
        """Serialize a program to .xlsx bytes.

        Args:
            program: The program to write. Image references are written as
                they are.
            max_weights: One-rep maxes written to the Informations sheet for
                reference. They are never read back.
            export_type: Marker telling the reader whether images travel
                alongside the workbook.
            instructions: Optional lines for an Instructions sheet.

        Returns:
            The workbook as bytes.
        """
        wb = openpyxl.Workbook()
        ws_info = wb.active
        ws_info.title = INFO_SHEET
        ProgramWriter._write_info_sheet(ws_info, program, max_weights, export_type)

        for day in program.days:
            ws_day = wb.create_sheet(get_day_sheet_name(day.index))
            ProgramWriter._write_day_sheet(ws_day, day)

        if instructions:
            ws_help = wb.create_sheet(INSTRUCTIONS_SHEET)
            ws_help.cell(row=1, column=1, value=INSTRUCTIONS_SHEET).font = HEADER_FONT
            for offset, line in enumerate(instructions, 2):
                if line:
                    ws_help.cell(row=offset, column=1, value=line)
            ws_help.column_dimensions["A"].width = 110

        logger.info(
            "Wrote program '%s' (%s): %d day sheets",
            program.name, export_type, len(program.days),
        )
        return workbook_bytes(wb)

    @staticmethod
    def _write_info_sheet(
        ws: Any,
        program: Program,
        max_weights: MaxWeights,
        export_type: str,
    ) -> None:
        values = [
            program.name,
            program.description,
            ",".join(str(day) for day in program.selected_days),
            program.created_at.isoformat(),
            max_weights.dc,
            max_weights.sdt,
            max_weights.squat,
            export_type,
        ]
        for col_idx, (header, value) in enumerate(zip(INFO_HEADERS, values), 1):
            ws.cell(row=1, column=col_idx, value=header).font = HEADER_FONT
            if value != "":
                ws.cell(row=2, column=col_idx, value=value)
            ws.column_dimensions[get_column_letter(col_idx)].width = max(len(header) + 4, 16)

    @staticmethod
    def _write_day_sheet(ws: Any, day: TrainingDay) -> None:
        row = 1
        if day.description:
            ws.cell(row=row, column=1, value=DAY_DESCRIPTION_PREFIX + day.description)
            row += 2  # blank separator row

        write_header(ws, row, PROGRAM_COLUMNS)
        first_data_row = row + 1

        records, spans = flatten_blocks(day.blocks)
        for offset, record in enumerate(records):
            write_record(ws, first_data_row + offset, PROGRAM_COLUMNS, record)

        apply_merges(ws, first_data_row, PROGRAM_COLUMNS, spans)
        set_column_widths(ws, PROGRAM_COLUMNS)
