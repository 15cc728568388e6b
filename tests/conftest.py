from __future__ import annotations

import io
import os
import tempfile
from typing import Any

# Keep the app's data directory out of the source tree
os.environ.setdefault("WORKOUT_DATA_DIR", tempfile.mkdtemp(prefix="workout_tracker_tests_"))

import openpyxl
import pytest

from workout_tracker.excel.config import INFO_HEADERS, PROGRAM_COLUMNS
from workout_tracker.schemas.program import (
    Block,
    ChargeType,
    CTType,
    Exercise,
    Program,
    TrainingDay,
)
from workout_tracker.schemas.settings import MaxWeights
from workout_tracker.services.image_service import ImageManager
from workout_tracker.services.storage_service import (
    ProgramStorage,
    SessionStorage,
    SettingsStorage,
)

PROGRAM_HEADERS = [column.header for column in PROGRAM_COLUMNS]

# Ids are regenerated on import; everything else must survive a round trip
CONTENT_EXCLUDE = {
    "id": True,
    "created_at": True,
    "days": {"__all__": {"blocks": {"__all__": {
        "id": True,
        "exercises": {"__all__": {"id"}},
    }}}},
}


def program_content(program: Program) -> dict:
    return program.model_dump(exclude=CONTENT_EXCLUDE)


class MemoryStore:
    """In-memory KeyValueStore."""

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}

    async def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


def build_workbook(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Build an .xlsx in memory, one sheet per entry, rows written from A1."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def info_rows(
    name: Any = "Full Body",
    selected_days: Any = "0,2,4",
    export_type: str = "STANDARD",
    description: str = "",
) -> list[list[Any]]:
    return [
        list(INFO_HEADERS),
        [name, description, selected_days, "2025-01-06T10:00:00", 100, 120, 110, export_type],
    ]


def load_workbook(content: bytes) -> openpyxl.Workbook:
    return openpyxl.load_workbook(io.BytesIO(content))


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def image_manager(tmp_path) -> ImageManager:
    return ImageManager(base_dir=tmp_path / "program_images", timeout=1)


@pytest.fixture
def program_storage(store, image_manager) -> ProgramStorage:
    return ProgramStorage(store, image_manager)


@pytest.fixture
def settings_storage(store) -> SettingsStorage:
    return SettingsStorage(store)


@pytest.fixture
def session_storage(store) -> SessionStorage:
    return SessionStorage(store)


@pytest.fixture
def max_weights() -> MaxWeights:
    return MaxWeights(dc=100, sdt=140, squat=120)


@pytest.fixture
def sample_program() -> Program:
    return Program(
        name="Full Body",
        description="Trois séances par semaine",
        days=[
            TrainingDay(
                index=0,
                description="Haut du corps",
                blocks=[
                    Block(
                        name="Échauffement",
                        description="Mise en route",
                        series=2,
                        exercises=[
                            Exercise(name="Pompes", repetitions=15, charge="20kg", rest=60),
                            Exercise(
                                name="Gainage",
                                description="Planche",
                                repetitions=1,
                                advice="Respirer",
                                rest=0,
                            ),
                        ],
                    ),
                    Block(
                        name="Force",
                        series=4,
                        exercises=[
                            Exercise(
                                name="Développé Couché",
                                repetitions=6,
                                charge_type=ChargeType.CT,
                                charge="75",
                                ct_type=CTType.DC,
                                rest=150,
                            ),
                        ],
                    ),
                    Block(name="Retour au calme", description="A compléter", series=1),
                ],
            ),
            TrainingDay(
                index=2,
                blocks=[
                    Block(
                        name="Jambes",
                        series=3,
                        exercises=[
                            Exercise(
                                name="Squat",
                                repetitions=5,
                                charge_type=ChargeType.CT,
                                charge="80",
                                ct_type=CTType.SQUAT,
                                rest=180,
                            ),
                            Exercise(name="Fentes", repetitions=12, charge="2x10kg", rest=90),
                        ],
                    ),
                ],
            ),
            TrainingDay(index=4, description="Repos actif"),
        ],
    )
