from fastapi import APIRouter, Depends

from workout_tracker.dependencies import get_settings_storage
from workout_tracker.schemas.common import ApiResponse
from workout_tracker.schemas.settings import AppSettings, MaxWeights
from workout_tracker.services.storage_service import SettingsStorage

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
async def get_settings(
    storage: SettingsStorage = Depends(get_settings_storage),
) -> ApiResponse[AppSettings]:
    return ApiResponse.ok(await storage.get_settings())


@router.put("/max-weights")
async def update_max_weights(
    body: MaxWeights,
    storage: SettingsStorage = Depends(get_settings_storage),
) -> ApiResponse[AppSettings]:
    """Replace the one-rep maxes used to resolve CT charges."""
    app_settings = await storage.get_settings()
    app_settings.max_weights = body
    return ApiResponse.ok(await storage.save_settings(app_settings))
