from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from workout_tracker.schemas.program import WEEKDAY_COUNT, new_id


class ExerciseLog(BaseModel):
    """What was done for one exercise during a session."""

    exercise_id: str
    completed_sets: list[bool] = Field(default_factory=list)
    note: str = ""
    charge: str = ""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @property
    def completed_count(self) -> int:
        return sum(1 for done in self.completed_sets if done)

    @property
    def is_complete(self) -> bool:
        return bool(self.completed_sets) and all(self.completed_sets)


class BlockLog(BaseModel):
    block_id: str
    exercises: list[ExerciseLog] = Field(default_factory=list)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class SessionData(BaseModel):
    """Live record of one weekday's session; last write wins."""

    program_id: str
    day_index: int = Field(..., ge=0, lt=WEEKDAY_COUNT)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    blocks: list[BlockLog] = Field(default_factory=list)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_shape(cls, data: Any) -> Any:
        """Fold ``completedSeries``/``notes``/``charges`` maps into block logs.

        Notes and charges of exercises that have no completed-series entry
        are dropped.
        """
        if not isinstance(data, dict) or "completedSeries" not in data:
            return data

        notes = data.get("notes") or {}
        charges = data.get("charges") or {}
        blocks = []
        for block_id, exercises in (data.get("completedSeries") or {}).items():
            blocks.append({
                "block_id": block_id,
                "exercises": [
                    {
                        "exercise_id": exercise_id,
                        "completed_sets": list(sets or []),
                        "note": notes.get(exercise_id) or "",
                        "charge": charges.get(exercise_id) or "",
                    }
                    for exercise_id, sets in (exercises or {}).items()
                ],
            })

        converted = {k: v for k, v in data.items()
                     if k not in ("completedSeries", "notes", "charges")}
        converted["blocks"] = blocks
        return converted

    def block_log(self, block_id: str) -> BlockLog | None:
        for block in self.blocks:
            if block.block_id == block_id:
                return block
        return None

    def exercise_log(self, exercise_id: str) -> ExerciseLog | None:
        for block in self.blocks:
            for log in block.exercises:
                if log.exercise_id == exercise_id:
                    return log
        return None


class WeekData(BaseModel):
    """Snapshot of a closed week of sessions for one program."""

    id: str = Field(default_factory=new_id)
    program_id: str
    program_name: str
    week_name: str
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    sessions: list[SessionData] = Field(default_factory=list)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _accept_session_map(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("sessions"), dict):
            data = {**data, "sessions": list(data["sessions"].values())}
        return data

    @model_validator(mode="after")
    def _sort_sessions(self) -> "WeekData":
        self.sessions.sort(key=lambda s: s.day_index)
        return self

    @property
    def session_count(self) -> int:
        return len(self.sessions)
