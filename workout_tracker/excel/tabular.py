"""Row model for day sheets: flatten blocks into rows and rebuild them.

Writing always produces the repeated layout (see ``excel.config``). Reading
picks one of two row interpreters once the header row is known:
``RepeatedRowInterpreter`` or ``TypedRowInterpreter``.
"""

from __future__ import annotations

import datetime
import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from workout_tracker.excel.config import (
    DAY_DESCRIPTION_MARKER,
    DEFAULT_BLOCK_NAME,
    DEFAULT_EXERCISE_NAME,
    DEFAULT_REPETITIONS,
    DEFAULT_REST_SECONDS,
    DEFAULT_SERIES,
    IMAGE_SEPARATOR,
    MERGED_BLOCK_FIELDS,
    PROGRAM_COLUMNS,
    ROW_TAG_BLOCK,
    ROW_TAG_DAY_DESCRIPTION,
    ROW_TAG_EXERCISE,
)
from workout_tracker.schemas.program import Block, ChargeType, CTType, Exercise

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def to_text(value: Any) -> str:
    """Convert a cell value to stripped text ('' for empty cells)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value).strip()


def parse_int(value: Any, default: int, minimum: int = 0) -> int:
    """Permissive integer parse: 15, 15.0, '15', '15 reps' -> 15.

    Empty cells, unparseable text and values below ``minimum`` give
    ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            number = int(value)
        except (ValueError, OverflowError):
            return default
    else:
        text = str(value).strip()
        if not text:
            return default
        match = _LEADING_INT.match(text)
        if match is None:
            logger.warning("Unparseable number %r, using %d", text, default)
            return default
        number = int(match.group(1))
    if number < minimum:
        logger.warning("Out of range number %d, using %d", number, default)
        return default
    return number


def parse_charge_type(value: Any) -> ChargeType:
    """'CT' (any case) -> CT; anything else -> normal."""
    text = to_text(value)
    if text.upper() == ChargeType.CT.value:
        return ChargeType.CT
    if text and text.lower() != ChargeType.NORMAL.value:
        logger.warning("Unknown charge type %r, using normal", text)
    return ChargeType.NORMAL


def parse_ct_type(value: Any) -> CTType | None:
    text = to_text(value).lower()
    for lift in CTType:
        if lift.value.lower() == text:
            return lift
    return None


def split_images(value: Any) -> list[str]:
    return [ref.strip() for ref in to_text(value).split(IMAGE_SEPARATOR) if ref.strip()]


# --- Flattening ---

@dataclass(frozen=True)
class MergeSpan:
    """Cells of one column to merge, as row offsets into the data rows."""

    first_row: int
    last_row: int
    field: str


def block_cells(block: Block) -> dict[str, Any]:
    return {
        "block_name": block.name.strip() or DEFAULT_BLOCK_NAME,
        "block_description": block.description,
        "series": block.series,
    }


def exercise_cells(exercise: Exercise) -> dict[str, Any]:
    return {
        "exercise_name": exercise.name.strip() or DEFAULT_EXERCISE_NAME,
        "exercise_description": exercise.description,
        "repetitions": exercise.repetitions,
        "charge_type": exercise.charge_type.value,
        "charge": exercise.charge,
        "ct_type": exercise.ct_type.value if exercise.ct_type else "",
        "advice": exercise.advice,
        "rest": exercise.rest,
        "images": IMAGE_SEPARATOR.join(exercise.images),
    }


def flatten_blocks(blocks: list[Block]) -> tuple[list[dict[str, Any]], list[MergeSpan]]:
    """Flatten a day's blocks into one record per exercise.

    A block without exercises still gets one row so it survives a round
    trip. Blocks spanning several rows get a merge span for each of their
    block-level columns.
    """
    rows: list[dict[str, Any]] = []
    spans: list[MergeSpan] = []
    merged_fields = [c.field for c in PROGRAM_COLUMNS if c.field in MERGED_BLOCK_FIELDS]

    for block in blocks:
        first = len(rows)
        if not block.exercises:
            rows.append(block_cells(block))
        for exercise in block.exercises:
            rows.append({**block_cells(block), **exercise_cells(exercise)})
        last = len(rows) - 1
        if last > first:
            spans.extend(MergeSpan(first, last, name) for name in merged_fields)

    return rows, spans


# --- Unflattening ---

class RowLayout(str, enum.Enum):
    REPEATED = "repeated"
    TYPED = "typed"


def detect_layout(column_map: dict[str, int]) -> RowLayout:
    """A 'Type' tag column means the typed layout."""
    if "row_type" in column_map:
        return RowLayout.TYPED
    return RowLayout.REPEATED


@dataclass
class ParsedDay:
    blocks: list[Block] = field(default_factory=list)
    description: str = ""
    skipped_rows: int = 0


def build_exercise(
    name: str,
    description: str,
    record: dict[str, Any],
    where: str,
) -> Exercise:
    """Build an exercise from a row record, substituting defaults."""
    charge_type = parse_charge_type(record.get("charge_type"))
    ct_type = parse_ct_type(record.get("ct_type"))
    if charge_type is ChargeType.CT and ct_type is None:
        logger.warning(
            "%s: CT charge without a valid CT type (%r), using normal",
            where, to_text(record.get("ct_type")),
        )
        charge_type = ChargeType.NORMAL

    return Exercise(
        name=name or DEFAULT_EXERCISE_NAME,
        description=description,
        images=split_images(record.get("images")),
        repetitions=parse_int(record.get("repetitions"), DEFAULT_REPETITIONS, minimum=1),
        charge_type=charge_type,
        charge=to_text(record.get("charge")),
        ct_type=ct_type if charge_type is ChargeType.CT else None,
        advice=to_text(record.get("advice")),
        rest=parse_int(record.get("rest"), DEFAULT_REST_SECONDS, minimum=0),
    )


class RowInterpreter:
    """Consumes day-sheet records in order and rebuilds the block list."""

    layout: RowLayout

    def __init__(self, sheet_name: str) -> None:
        self.sheet_name = sheet_name
        self._day = ParsedDay()
        self._current: Block | None = None

    def feed(self, record: dict[str, Any], row_number: int) -> bool:
        """Interpret one non-blank record. Returns False if it was skipped."""
        raise NotImplementedError

    def finish(self) -> ParsedDay:
        return self._day

    def _open_block(self, name: str, description: str, series: Any) -> Block:
        block = Block(
            name=name or DEFAULT_BLOCK_NAME,
            description=description,
            series=parse_int(series, DEFAULT_SERIES, minimum=1),
        )
        self._day.blocks.append(block)
        self._current = block
        return block

    def _skip(self, row_number: int, reason: str) -> bool:
        logger.warning("%s row %d skipped: %s", self.sheet_name, row_number, reason)
        self._day.skipped_rows += 1
        return False

    def _where(self, row_number: int) -> str:
        return f"{self.sheet_name} row {row_number}"


class RepeatedRowInterpreter(RowInterpreter):
    """One row per exercise, block columns repeated or merged.

    An empty block cell continues the open block (merged cells read back
    empty). A filled block cell opens a new block when the name differs,
    when the open block was continued through empty cells, or when its
    series or description differ. An exercise before any block opens an
    unnamed block.
    """

    layout = RowLayout.REPEATED

    def __init__(self, sheet_name: str) -> None:
        super().__init__(sheet_name)
        self._continued = False

    def feed(self, record: dict[str, Any], row_number: int) -> bool:
        block_name = to_text(record.get("block_name"))
        exercise_name = to_text(record.get("exercise_name"))

        if block_name.startswith(DAY_DESCRIPTION_MARKER):
            self._day.description = block_name[len(DAY_DESCRIPTION_MARKER):].strip()
            return True
        if not block_name and not exercise_name:
            return self._skip(row_number, "no block or exercise name")

        if block_name and self._starts_block(block_name, record):
            self._open_block(
                block_name,
                to_text(record.get("block_description")),
                record.get("series"),
            )
            self._continued = False
        elif self._current is None:
            self._open_block("", "", None)
        elif not block_name:
            self._continued = True

        if exercise_name:
            self._current.exercises.append(
                build_exercise(
                    exercise_name,
                    to_text(record.get("exercise_description")),
                    record,
                    self._where(row_number),
                )
            )
        return True

    def _starts_block(self, block_name: str, record: dict[str, Any]) -> bool:
        current = self._current
        if current is None or current.name != block_name or self._continued:
            return True
        # Same name repeated on every row: only differing block cells split it
        description = to_text(record.get("block_description"))
        if description and description != current.description:
            return True
        series = record.get("series")
        return (
            to_text(series) != ""
            and parse_int(series, DEFAULT_SERIES, minimum=1) != current.series
        )


class TypedRowInterpreter(RowInterpreter):
    """Rows tagged BLOC / EXERCICE / DESCRIPTION_JOUR in a 'Type' column."""

    layout = RowLayout.TYPED

    def feed(self, record: dict[str, Any], row_number: int) -> bool:
        tag = to_text(record.get("row_type")).upper()
        name = to_text(record.get("name"))
        description = to_text(record.get("description"))

        if tag == ROW_TAG_BLOCK:
            self._open_block(name, description, record.get("series"))
            return True
        if tag == ROW_TAG_EXERCISE:
            if self._current is None:
                self._open_block("", "", None)
            self._current.exercises.append(
                build_exercise(name, description, record, self._where(row_number))
            )
            return True
        if tag == ROW_TAG_DAY_DESCRIPTION:
            self._day.description = name
            return True
        return self._skip(row_number, f"unknown row type {tag!r}")


def make_interpreter(layout: RowLayout, sheet_name: str) -> RowInterpreter:
    if layout is RowLayout.TYPED:
        return TypedRowInterpreter(sheet_name)
    return RepeatedRowInterpreter(sheet_name)
