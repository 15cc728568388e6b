"""Live sessions, closed weeks and performance over weeks."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from workout_tracker.dependencies import get_program_storage, get_session_storage
from workout_tracker.schemas.common import ApiResponse
from workout_tracker.schemas.performance import PerformanceMetric, PerformanceReport
from workout_tracker.schemas.session import BlockLog, SessionData, WeekData
from workout_tracker.services import performance_service
from workout_tracker.services.storage_service import ProgramStorage, SessionStorage

router = APIRouter(tags=["sessions"])


class SessionUpdate(BaseModel):
    blocks: list[BlockLog] = Field(default_factory=list)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class CloseWeekRequest(BaseModel):
    week_name: str | None = Field(None, max_length=100)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


@router.get("/sessions/{program_id}/{day_index}")
async def get_session(
    program_id: str,
    day_index: int = Path(..., ge=0, le=6),
    sessions: SessionStorage = Depends(get_session_storage),
) -> ApiResponse[SessionData | None]:
    return ApiResponse.ok(await sessions.get_session_data(program_id, day_index))


@router.put("/sessions/{program_id}/{day_index}")
async def save_session(
    body: SessionUpdate,
    program_id: str,
    day_index: int = Path(..., ge=0, le=6),
    sessions: SessionStorage = Depends(get_session_storage),
) -> ApiResponse[SessionData]:
    session = SessionData(
        program_id=program_id,
        day_index=day_index,
        date=datetime.now(timezone.utc),
        blocks=body.blocks,
    )
    return ApiResponse.ok(await sessions.save_session_data(session))


@router.delete("/sessions/{program_id}/{day_index}")
async def clear_session(
    program_id: str,
    day_index: int = Path(..., ge=0, le=6),
    sessions: SessionStorage = Depends(get_session_storage),
) -> ApiResponse[None]:
    await sessions.clear_session_data(program_id, day_index)
    return ApiResponse.ok(None)


@router.post("/sessions/{program_id}/close-week")
async def close_week(
    program_id: str,
    body: CloseWeekRequest,
    programs: ProgramStorage = Depends(get_program_storage),
    sessions: SessionStorage = Depends(get_session_storage),
) -> ApiResponse[WeekData]:
    program = await programs.get_program(program_id)
    if program is None:
        return ApiResponse.fail(f"Program with id {program_id} not found")

    week = await sessions.close_week(program, body.week_name)
    if week is None:
        return ApiResponse.fail("No session recorded for this program")
    return ApiResponse.ok(week)


@router.get("/weeks")
async def list_weeks(
    program_id: str | None = Query(default=None),
    sessions: SessionStorage = Depends(get_session_storage),
) -> ApiResponse[list[WeekData]]:
    if program_id:
        return ApiResponse.ok(await sessions.get_week_data_for_program(program_id))
    return ApiResponse.ok(await sessions.get_all_week_data())


@router.get("/performance/{program_id}")
async def get_performance(
    program_id: str,
    exercise_id: str | None = Query(default=None),
    metric: PerformanceMetric = Query(default=PerformanceMetric.CHARGE),
    programs: ProgramStorage = Depends(get_program_storage),
    sessions: SessionStorage = Depends(get_session_storage),
) -> ApiResponse[PerformanceReport]:
    program = await programs.get_program(program_id)
    if program is None:
        return ApiResponse.fail(f"Program with id {program_id} not found")

    weeks = await sessions.get_week_data_for_program(program_id)
    points = performance_service.get_performance_data(weeks, program, exercise_id, metric)
    return ApiResponse.ok(PerformanceReport(
        points=points,
        trend=performance_service.get_performance_trend(points),
    ))
