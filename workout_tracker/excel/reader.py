"""Program workbook reading.

Parses workbooks into ``Program`` objects. Tolerates hand-edited files:
header rows are found by keyword, unknown columns are ignored, missing day
sheets and unreadable rows are skipped.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any

import openpyxl

from workout_tracker.excel.config import (
    DAY_DESCRIPTION_MARKER,
    EXPORT_TYPE_STANDARD,
    HEADER_SYNONYMS,
    INFO_CREATED_AT,
    INFO_DESCRIPTION,
    INFO_EXPORT_TYPE,
    INFO_NAME,
    INFO_SELECTED_DAYS,
    INFO_SHEET,
    REPEATED_LAYOUT_KEYWORDS,
    TYPED_LAYOUT_KEYWORDS,
    get_day_sheet_name,
    normalize_header,
)
from workout_tracker.excel.errors import (
    MissingMetadataError,
    MissingProgramNameError,
    NoValidDaysError,
)
from workout_tracker.excel.tabular import (
    ParsedDay,
    detect_layout,
    make_interpreter,
    to_text,
)
from workout_tracker.schemas.program import WEEKDAY_COUNT, Program, TrainingDay, new_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgramMetadata:
    """Values of the Informations sheet that matter on import."""

    name: str
    description: str
    selected_days: list[int]
    created_at: str
    export_type: str


def _find_sheet(sheetnames: list[str], wanted: str) -> str | None:
    """Exact sheet name first, then case/accent-insensitive."""
    if wanted in sheetnames:
        return wanted
    target = normalize_header(wanted)
    for name in sheetnames:
        if normalize_header(name) == target:
            return name
    return None


def _is_blank(values: tuple[Any, ...] | list[Any]) -> bool:
    return all(to_text(v) == "" for v in values)


def parse_selected_days(value: Any) -> list[int]:
    """Parse '0,2,4' (or a bare number) into sorted weekday indices.

    Entries that are not integers in 0..6 are dropped.
    """
    days: set[int] = set()
    for part in to_text(value).split(","):
        try:
            day = int(part.strip())
        except ValueError:
            continue
        if 0 <= day < WEEKDAY_COUNT:
            days.add(day)
    return sorted(days)


def is_header_row(values: tuple[Any, ...] | list[Any]) -> bool:
    """A header row holds every keyword of the repeated or typed layout."""
    joined = "|".join(normalize_header(v) for v in values)
    return any(
        all(keyword in joined for keyword in keywords)
        for keywords in (REPEATED_LAYOUT_KEYWORDS, TYPED_LAYOUT_KEYWORDS)
    )


def build_column_map(values: tuple[Any, ...] | list[Any]) -> dict[str, int]:
    """Map record fields to column indexes. First duplicate header wins."""
    column_map: dict[str, int] = {}
    for index, header in enumerate(values):
        field = HEADER_SYNONYMS.get(normalize_header(header))
        if field is not None and field not in column_map:
            column_map[field] = index
    return column_map


class ProgramReader:
    """Reads program workbooks without modification."""

    @staticmethod
    def read_program(content: bytes, program_id: str | None = None) -> Program:
        """Parse a program workbook. See ``read_workbook``."""
        program, _ = ProgramReader.read_workbook(content, program_id)
        return program

    @staticmethod
    def read_workbook(
        content: bytes,
        program_id: str | None = None,
    ) -> tuple[Program, ProgramMetadata]:
        """Parse a program workbook into a Program plus its metadata.

        Block and exercise ids are freshly generated.

        Raises:
            MissingMetadataError: No Informations sheet or no value row.
            MissingProgramNameError: The program name cell is blank.
            NoValidDaysError: No weekday index in 0..6 was selected.
        """
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        try:
            metadata = ProgramReader._read_metadata(wb)

            days: list[TrainingDay] = []
            for day_index in metadata.selected_days:
                label = get_day_sheet_name(day_index)
                sheet_name = _find_sheet(wb.sheetnames, label)
                if sheet_name is None:
                    logger.warning("Sheet '%s' not found, day %d has no blocks", label, day_index)
                    days.append(TrainingDay(index=day_index))
                    continue

                parsed = ProgramReader._read_day_sheet(wb[sheet_name], sheet_name)
                days.append(TrainingDay(
                    index=day_index,
                    description=parsed.description,
                    blocks=parsed.blocks,
                ))

            program = Program(
                id=program_id or new_id(),
                name=metadata.name,
                description=metadata.description,
                days=days,
            )
            logger.info(
                "Read program '%s': %d days, %d blocks",
                program.name, len(program.days),
                sum(len(day.blocks) for day in program.days),
            )
            return program, metadata
        finally:
            wb.close()

    @staticmethod
    def _read_metadata(wb: Any) -> ProgramMetadata:
        sheet_name = _find_sheet(wb.sheetnames, INFO_SHEET)
        if sheet_name is None:
            raise MissingMetadataError(
                f"Sheet '{INFO_SHEET}' is missing. "
                f"Available: {wb.sheetnames}"
            )
        ws = wb[sheet_name]

        # First non-blank row = headers, next non-blank row = values
        rows = [row for row in ws.iter_rows(values_only=True) if not _is_blank(row)]
        if len(rows) < 2:
            raise MissingMetadataError(f"Sheet '{INFO_SHEET}' has no program data")
        headers = {normalize_header(h): i for i, h in reversed(list(enumerate(rows[0])))}
        values = rows[1]

        def value_of(header: str) -> Any:
            index = headers.get(normalize_header(header))
            if index is None or index >= len(values):
                return None
            return values[index]

        name = to_text(value_of(INFO_NAME))
        if not name:
            raise MissingProgramNameError("Program name is missing")

        selected_days = parse_selected_days(value_of(INFO_SELECTED_DAYS))
        if not selected_days:
            raise NoValidDaysError(
                f"No valid day selected (got {to_text(value_of(INFO_SELECTED_DAYS))!r}, "
                "expected indices 0-6 separated by commas)"
            )

        return ProgramMetadata(
            name=name,
            description=to_text(value_of(INFO_DESCRIPTION)),
            selected_days=selected_days,
            created_at=to_text(value_of(INFO_CREATED_AT)),
            export_type=to_text(value_of(INFO_EXPORT_TYPE)).upper() or EXPORT_TYPE_STANDARD,
        )

    @staticmethod
    def _read_day_sheet(ws: Any, sheet_name: str) -> ParsedDay:
        """Scan a day sheet top to bottom.

        Before the header row only the day description marker is looked at.
        After it, each non-blank row goes to the interpreter chosen from the
        header's columns.
        """
        description = ""
        column_map: dict[str, int] | None = None
        interpreter = None

        for row_number, values in enumerate(ws.iter_rows(values_only=True), start=1):
            if column_map is None:
                first = to_text(values[0]) if values else ""
                if first.startswith(DAY_DESCRIPTION_MARKER):
                    description = first[len(DAY_DESCRIPTION_MARKER):].strip()
                    continue
                if values and is_header_row(values):
                    column_map = build_column_map(values)
                    interpreter = make_interpreter(detect_layout(column_map), sheet_name)
                continue

            record = {
                field: values[index] if index < len(values) else None
                for field, index in column_map.items()
            }
            if _is_blank(list(record.values())):
                continue
            interpreter.feed(record, row_number)

        if interpreter is None:
            logger.warning("No header row found in sheet '%s'", sheet_name)
            return ParsedDay(description=description)

        parsed = interpreter.finish()
        if description and not parsed.description:
            parsed.description = description
        if parsed.skipped_rows:
            logger.warning(
                "Sheet '%s' (%s layout): %d rows skipped",
                sheet_name, interpreter.layout.value, parsed.skipped_rows,
            )
        return parsed
