import datetime

import pytest

from workout_tracker.excel.errors import ImportErrorCode, ProgramAlreadyExistsError
from workout_tracker.schemas.program import Program
from workout_tracker.schemas.session import BlockLog, ExerciseLog, SessionData
from workout_tracker.schemas.settings import AppSettings, MaxWeights
from workout_tracker.services.storage_service import session_key
from workout_tracker.utils.date_helpers import get_current_week_name


class TestProgramStorage:
    async def test_save_and_get(self, program_storage, sample_program):
        await program_storage.save_program(sample_program)

        loaded = await program_storage.get_program(sample_program.id)
        assert loaded == sample_program
        assert [p.id for p in await program_storage.get_programs()] == [sample_program.id]

    async def test_duplicate_name_ignores_case(self, program_storage, sample_program):
        await program_storage.save_program(sample_program)

        with pytest.raises(ProgramAlreadyExistsError) as exc:
            await program_storage.save_program(Program(name="FULL body"))
        assert exc.value.code is ImportErrorCode.ALREADY_EXISTS
        assert len(await program_storage.get_programs()) == 1

    async def test_update(self, program_storage, sample_program):
        await program_storage.save_program(sample_program)
        other = await program_storage.save_program(Program(name="Cardio"))

        renamed = sample_program.model_copy(update={"name": "Full Body v2"})
        updated = await program_storage.update_program(sample_program.id, renamed)
        assert updated.name == "Full Body v2"

        # Keeping its own name is fine, taking another program's is not
        assert await program_storage.update_program(other.id, other) is not None
        with pytest.raises(ProgramAlreadyExistsError):
            await program_storage.update_program(
                other.id, other.model_copy(update={"name": "full body V2"}),
            )
        assert await program_storage.update_program("unknown", other) is None

    async def test_delete_removes_images(self, program_storage, image_manager, sample_program):
        await program_storage.save_program(sample_program)
        await image_manager.write_to_program_storage(sample_program.id, "a.jpg", b"img")

        assert await program_storage.delete_program(sample_program.id)
        assert await program_storage.get_programs() == []
        assert not image_manager.program_dir(sample_program.id).exists()
        assert not await program_storage.delete_program(sample_program.id)

    async def test_reads_legacy_records(self, program_storage, store):
        store.data["programs"] = b"""[{
            "id": "p1", "name": "Ancien", "description": "",
            "selectedDays": [1], "dayDescriptions": {"1": "Dos", "5": "orphelin"},
            "blocks": {"1": [{"id": "b1", "name": "A", "description": "", "series": 2,
                              "exercises": []}],
                       "3": []},
            "createdAt": "2024-05-01T08:00:00Z"
        }]"""
        program = await program_storage.get_program("p1")

        assert program.selected_days == [1]
        assert program.day_descriptions == {1: "Dos"}
        assert program.blocks_for(1)[0].series == 2

    async def test_corrupt_record_reads_as_empty(self, program_storage, store):
        store.data["programs"] = b"not json"
        assert await program_storage.get_programs() == []


class TestSettingsStorage:
    async def test_defaults(self, settings_storage):
        assert (await settings_storage.get_settings()).max_weights == MaxWeights()

    async def test_round_trip_uses_lift_names(self, settings_storage, store):
        await settings_storage.save_settings(
            AppSettings(max_weights=MaxWeights(dc=100, sdt=150, squat=130))
        )
        assert b'"DC":100.0' in store.data["settings"]
        assert (await settings_storage.get_settings()).max_weights.squat == 130


class TestSessionStorage:
    @staticmethod
    def _session(program_id: str, day_index: int) -> SessionData:
        return SessionData(program_id=program_id, day_index=day_index, blocks=[
            BlockLog(block_id="b", exercises=[ExerciseLog(exercise_id="e", completed_sets=[True])]),
        ])

    async def test_save_get_clear(self, session_storage, store):
        await session_storage.save_session_data(self._session("p", 3))
        assert session_key("p", 3) in store.data

        loaded = await session_storage.get_session_data("p", 3)
        assert loaded.exercise_log("e").completed_sets == [True]

        await session_storage.clear_session_data("p", 3)
        assert await session_storage.get_session_data("p", 3) is None

    async def test_legacy_session_shape(self, session_storage, store):
        store.data[session_key("p", 0)] = b"""{
            "programId": "p", "dayIndex": 0, "date": "2025-01-06T09:00:00Z",
            "completedSeries": {"b1": {"e1": [true, false]}},
            "notes": {"e1": "dur"}, "charges": {"e1": "40kg"}
        }"""
        session = await session_storage.get_session_data("p", 0)
        log = session.exercise_log("e1")

        assert log.completed_sets == [True, False]
        assert log.note == "dur"
        assert log.charge == "40kg"

    async def test_close_week(self, session_storage, sample_program):
        await session_storage.save_session_data(self._session(sample_program.id, 4))
        await session_storage.save_session_data(self._session(sample_program.id, 0))
        await session_storage.save_session_data(self._session("other", 0))

        week = await session_storage.close_week(sample_program, "Semaine test")

        assert week.week_name == "Semaine test"
        assert [s.day_index for s in week.sessions] == [0, 4]
        assert await session_storage.get_all_sessions_for_program(sample_program.id) == []
        assert len(await session_storage.get_all_sessions_for_program("other")) == 1
        assert await session_storage.get_week_data(week.id) == week
        assert await session_storage.get_week_data_for_program(sample_program.id) == [week]

    async def test_close_week_default_name(self, session_storage, sample_program):
        await session_storage.save_session_data(self._session(sample_program.id, 1))
        week = await session_storage.close_week(sample_program, "  ")
        assert week.week_name == get_current_week_name()

    async def test_close_week_without_sessions(self, session_storage, sample_program):
        assert await session_storage.close_week(sample_program) is None
        assert await session_storage.get_all_week_data() == []


class TestWeekNames:
    def test_week_runs_monday_to_sunday(self):
        assert get_current_week_name(datetime.date(2025, 10, 13)) == "Semaine 13/10-19/10"
        assert get_current_week_name(datetime.date(2025, 10, 19)) == "Semaine 13/10-19/10"
