"""FastAPI dependencies wiring storage and services to a request."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workout_tracker.database import get_db
from workout_tracker.services.image_service import ImageManager
from workout_tracker.services.interchange_service import InterchangeService
from workout_tracker.services.storage_service import (
    KeyValueStore,
    ProgramStorage,
    SessionStorage,
    SettingsStorage,
    SqlKeyValueStore,
)


def get_store(db: AsyncSession = Depends(get_db)) -> KeyValueStore:
    return SqlKeyValueStore(db)


def get_image_manager() -> ImageManager:
    return ImageManager()


def get_program_storage(
    store: KeyValueStore = Depends(get_store),
    images: ImageManager = Depends(get_image_manager),
) -> ProgramStorage:
    return ProgramStorage(store, images)


def get_settings_storage(store: KeyValueStore = Depends(get_store)) -> SettingsStorage:
    return SettingsStorage(store)


def get_session_storage(store: KeyValueStore = Depends(get_store)) -> SessionStorage:
    return SessionStorage(store)


def get_interchange_service(
    programs: ProgramStorage = Depends(get_program_storage),
    settings_storage: SettingsStorage = Depends(get_settings_storage),
    sessions: SessionStorage = Depends(get_session_storage),
    images: ImageManager = Depends(get_image_manager),
) -> InterchangeService:
    return InterchangeService(programs, settings_storage, sessions, images)
