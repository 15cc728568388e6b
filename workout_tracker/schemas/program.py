"""Training program domain: program -> days -> blocks -> exercises."""

from __future__ import annotations

import enum
import uuid
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

WEEKDAY_COUNT = 7


def new_id() -> str:
    return uuid.uuid4().hex


class ChargeType(str, enum.Enum):
    NORMAL = "normal"
    CT = "CT"


class CTType(str, enum.Enum):
    """Compound lifts a CT charge can be a percentage of."""

    DC = "DC"        # Developpe couche (bench press)
    SDT = "SDT"      # Souleve de terre (deadlift)
    SQUAT = "Squat"


class Exercise(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    images: list[str] = Field(default_factory=list)
    repetitions: int = Field(10, ge=1)
    charge_type: ChargeType = ChargeType.NORMAL
    charge: str = ""
    ct_type: CTType | None = None
    advice: str = ""
    rest: int = Field(60, ge=0)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @field_validator("charge", mode="before")
    @classmethod
    def _charge_as_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @model_validator(mode="after")
    def _check_ct_type(self) -> "Exercise":
        if self.charge_type is ChargeType.NORMAL:
            self.ct_type = None
        elif self.ct_type is None:
            raise ValueError(
                f"Exercise '{self.name}' uses a CT charge but has no CT type"
            )
        return self


class Block(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    series: int = Field(1, ge=1)
    exercises: list[Exercise] = Field(default_factory=list)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class TrainingDay(BaseModel):
    index: int = Field(..., ge=0, lt=WEEKDAY_COUNT)
    description: str = ""
    blocks: list[Block] = Field(default_factory=list)


class Program(BaseModel):
    """A weekly training program.

    ``days`` holds one entry per selected weekday (0 = Monday), kept sorted
    by index. Blocks only exist inside a day, so a block can never belong to
    a weekday that is not selected.
    """

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    description: str = ""
    days: list[TrainingDay] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_shape(cls, data: Any) -> Any:
        """Convert the mobile app's record shape (sparse weekday maps).

        Days found in ``blocks`` or ``dayDescriptions`` but missing from
        ``selectedDays`` are dropped.
        """
        if not isinstance(data, dict) or "days" in data or "selectedDays" not in data:
            return data

        selected: list[int] = []
        for raw in data.get("selectedDays") or []:
            try:
                index = int(raw)
            except (TypeError, ValueError):
                continue
            if 0 <= index < WEEKDAY_COUNT and index not in selected:
                selected.append(index)

        descriptions = _int_keyed(data.get("dayDescriptions"))
        blocks = _int_keyed(data.get("blocks"))

        converted = {k: v for k, v in data.items()
                     if k not in ("selectedDays", "dayDescriptions", "blocks")}
        converted["days"] = [
            {
                "index": index,
                "description": descriptions.get(index) or "",
                "blocks": blocks.get(index) or [],
            }
            for index in sorted(selected)
        ]
        return converted

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Program name must not be blank")
        return value

    @model_validator(mode="after")
    def _sort_days(self) -> "Program":
        seen: set[int] = set()
        for day in self.days:
            if day.index in seen:
                raise ValueError(f"Day {day.index} appears more than once")
            seen.add(day.index)
        self.days.sort(key=lambda d: d.index)
        return self

    @property
    def selected_days(self) -> list[int]:
        return [day.index for day in self.days]

    @property
    def day_descriptions(self) -> dict[int, str]:
        return {day.index: day.description for day in self.days if day.description}

    def day(self, index: int) -> TrainingDay | None:
        for day in self.days:
            if day.index == index:
                return day
        return None

    def blocks_for(self, index: int) -> list[Block]:
        day = self.day(index)
        return day.blocks if day is not None else []

    def find_block(self, block_id: str) -> Block | None:
        for day in self.days:
            for block in day.blocks:
                if block.id == block_id:
                    return block
        return None

    def find_exercise(self, exercise_id: str) -> Exercise | None:
        for _, _, exercise in self.iter_exercises():
            if exercise.id == exercise_id:
                return exercise
        return None

    def iter_exercises(self) -> Iterator[tuple[TrainingDay, Block, Exercise]]:
        """Yield every exercise in day, block, exercise order."""
        for day in self.days:
            for block in day.blocks:
                for exercise in block.exercises:
                    yield day, block, exercise

    def image_references(self) -> list[str]:
        """Distinct image references in first-seen order."""
        refs: list[str] = []
        for _, _, exercise in self.iter_exercises():
            for ref in exercise.images:
                if ref not in refs:
                    refs.append(ref)
        return refs


def _int_keyed(mapping: Any) -> dict[int, Any]:
    """JSON object keys are strings; weekday maps want ints."""
    if not isinstance(mapping, dict):
        return {}
    result: dict[int, Any] = {}
    for key, value in mapping.items():
        try:
            result[int(key)] = value
        except (TypeError, ValueError):
            continue
    return result
