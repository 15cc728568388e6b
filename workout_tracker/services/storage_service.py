"""Persistence of programs, settings, sessions and closed weeks.

Everything is stored as JSON documents in a key/value store:

    programs                  list of every program
    settings                  app settings (max weights)
    session_<pid>_<day>       live session of one program weekday
    week_data                 list of every closed week
"""

import logging
from typing import Protocol

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.excel.errors import ProgramAlreadyExistsError
from workout_tracker.models.stored_record import StoredRecord
from workout_tracker.schemas.program import WEEKDAY_COUNT, Program
from workout_tracker.schemas.session import SessionData, WeekData
from workout_tracker.schemas.settings import AppSettings
from workout_tracker.services.image_service import ImageManager
from workout_tracker.utils.date_helpers import get_current_week_name

logger = logging.getLogger(__name__)

PROGRAMS_KEY = "programs"
SETTINGS_KEY = "settings"
WEEK_DATA_KEY = "week_data"
SESSION_KEY_PREFIX = "session_"

_programs_adapter = TypeAdapter(list[Program])
_weeks_adapter = TypeAdapter(list[WeekData])


def session_key(program_id: str, day_index: int) -> str:
    return f"{SESSION_KEY_PREFIX}{program_id}_{day_index}"


class KeyValueStore(Protocol):
    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...


class SqlKeyValueStore:
    """KeyValueStore over the stored_records table of an async session.

    Changes are flushed, not committed; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, key: str) -> bytes | None:
        result = await self._session.execute(
            select(StoredRecord.value).where(StoredRecord.key == key)
        )
        return result.scalar_one_or_none()

    async def set(self, key: str, value: bytes) -> None:
        record = await self._session.get(StoredRecord, key)
        if record is None:
            self._session.add(StoredRecord(key=key, value=value))
        else:
            record.value = value
        await self._session.flush()

    async def delete(self, key: str) -> None:
        await self._session.execute(delete(StoredRecord).where(StoredRecord.key == key))
        await self._session.flush()


class ProgramStorage:
    def __init__(self, store: KeyValueStore, images: ImageManager | None = None) -> None:
        self._store = store
        self._images = images

    async def get_programs(self) -> list[Program]:
        data = await self._store.get(PROGRAMS_KEY)
        if not data:
            return []
        try:
            return _programs_adapter.validate_json(data)
        except ValidationError:
            logger.exception("Stored programs are unreadable, treating as empty")
            return []

    async def get_program(self, program_id: str) -> Program | None:
        for program in await self.get_programs():
            if program.id == program_id:
                return program
        return None

    async def save_program(self, program: Program) -> Program:
        """Append a new program.

        Raises:
            ProgramAlreadyExistsError: Another program has the same name,
                ignoring case.
        """
        programs = await self.get_programs()
        _check_unique_name(programs, program)
        programs.append(program)
        await self._write(programs)
        logger.info("Saved program '%s' (%s)", program.name, program.id)
        return program

    async def update_program(self, program_id: str, program: Program) -> Program | None:
        """Replace a stored program. Returns None if the id is unknown.

        Raises:
            ProgramAlreadyExistsError: Another program has the same name.
        """
        programs = await self.get_programs()
        for index, existing in enumerate(programs):
            if existing.id == program_id:
                break
        else:
            return None

        updated = program.model_copy(update={"id": program_id})
        _check_unique_name(programs, updated)
        programs[index] = updated
        await self._write(programs)
        logger.info("Updated program '%s' (%s)", updated.name, program_id)
        return updated

    async def delete_program(self, program_id: str) -> bool:
        """Delete a program and its stored images. Returns False if unknown."""
        programs = await self.get_programs()
        remaining = [p for p in programs if p.id != program_id]
        if len(remaining) == len(programs):
            return False

        if self._images is not None:
            await self._images.cleanup(program_id)
        await self._write(remaining)
        logger.info("Deleted program %s", program_id)
        return True

    async def _write(self, programs: list[Program]) -> None:
        await self._store.set(PROGRAMS_KEY, _programs_adapter.dump_json(programs, by_alias=True))


def _check_unique_name(programs: list[Program], program: Program) -> None:
    wanted = program.name.lower()
    for existing in programs:
        if existing.id != program.id and existing.name.lower() == wanted:
            raise ProgramAlreadyExistsError(
                f"A program named '{existing.name}' already exists"
            )


class SettingsStorage:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get_settings(self) -> AppSettings:
        data = await self._store.get(SETTINGS_KEY)
        if not data:
            return AppSettings()
        try:
            return AppSettings.model_validate_json(data)
        except ValidationError:
            logger.exception("Stored settings are unreadable, using defaults")
            return AppSettings()

    async def save_settings(self, app_settings: AppSettings) -> AppSettings:
        await self._store.set(SETTINGS_KEY, app_settings.model_dump_json(by_alias=True).encode())
        return app_settings


class SessionStorage:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def save_session_data(self, session: SessionData) -> SessionData:
        await self._store.set(
            session_key(session.program_id, session.day_index),
            session.model_dump_json(by_alias=True).encode(),
        )
        return session

    async def get_session_data(self, program_id: str, day_index: int) -> SessionData | None:
        data = await self._store.get(session_key(program_id, day_index))
        if not data:
            return None
        try:
            return SessionData.model_validate_json(data)
        except ValidationError:
            logger.exception("Session %s/%d is unreadable", program_id, day_index)
            return None

    async def clear_session_data(self, program_id: str, day_index: int) -> None:
        await self._store.delete(session_key(program_id, day_index))

    async def get_all_sessions_for_program(self, program_id: str) -> list[SessionData]:
        """Stored sessions of a program in weekday order."""
        sessions = []
        for day_index in range(WEEKDAY_COUNT):
            session = await self.get_session_data(program_id, day_index)
            if session is not None:
                sessions.append(session)
        return sessions

    async def get_all_week_data(self) -> list[WeekData]:
        data = await self._store.get(WEEK_DATA_KEY)
        if not data:
            return []
        try:
            return _weeks_adapter.validate_json(data)
        except ValidationError:
            logger.exception("Stored weeks are unreadable, treating as empty")
            return []

    async def get_week_data_for_program(self, program_id: str) -> list[WeekData]:
        return [w for w in await self.get_all_week_data() if w.program_id == program_id]

    async def get_week_data(self, week_id: str) -> WeekData | None:
        for week in await self.get_all_week_data():
            if week.id == week_id:
                return week
        return None

    async def save_week_data(self, week: WeekData) -> WeekData:
        weeks = await self.get_all_week_data()
        weeks.append(week)
        await self._store.set(WEEK_DATA_KEY, _weeks_adapter.dump_json(weeks, by_alias=True))
        return week

    async def close_week(self, program: Program, week_name: str | None = None) -> WeekData | None:
        """Snapshot the program's live sessions into a week and clear them.

        Returns None when no session is stored for the program.
        """
        sessions = await self.get_all_sessions_for_program(program.id)
        if not sessions:
            return None

        week = WeekData(
            program_id=program.id,
            program_name=program.name,
            week_name=(week_name or "").strip() or get_current_week_name(),
            sessions=sessions,
        )
        await self.save_week_data(week)
        for session in sessions:
            await self.clear_session_data(program.id, session.day_index)

        logger.info(
            "Closed week '%s' of program '%s': %d sessions",
            week.week_name, program.name, week.session_count,
        )
        return week
