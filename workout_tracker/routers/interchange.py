"""Interchange router - program workbooks, archives and weekly results."""

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from workout_tracker.dependencies import (
    get_image_manager,
    get_interchange_service,
    get_program_storage,
    get_session_storage,
)
from workout_tracker.excel.errors import ProgramAlreadyExistsError
from workout_tracker.schemas.common import ApiResponse
from workout_tracker.schemas.program import Program
from workout_tracker.services.image_service import ImageManager
from workout_tracker.services.interchange_service import ExportResult, InterchangeService
from workout_tracker.services.storage_service import ProgramStorage, SessionStorage

router = APIRouter(prefix="/interchange", tags=["interchange"])


def _download(result: ExportResult) -> Response:
    if not result.success or result.file is None:
        raise HTTPException(status_code=500, detail=result.error or "Export failed")
    return Response(
        content=result.file.content,
        media_type=result.file.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.file.filename}"'},
    )


@router.get("/template")
async def download_template(
    service: InterchangeService = Depends(get_interchange_service),
) -> Response:
    return _download(await service.generate_template())


@router.get("/programs/{program_id}/export")
async def export_program(
    program_id: str,
    with_images: bool = Query(default=False),
    programs: ProgramStorage = Depends(get_program_storage),
    service: InterchangeService = Depends(get_interchange_service),
) -> Response:
    program = await programs.get_program(program_id)
    if program is None:
        raise HTTPException(status_code=404, detail=f"Program with id {program_id} not found")

    if with_images:
        return _download(await service.export_program_with_images(program))
    return _download(await service.export_program(program))


@router.post("/import")
async def import_program(
    file: UploadFile = File(...),
    programs: ProgramStorage = Depends(get_program_storage),
    images: ImageManager = Depends(get_image_manager),
    service: InterchangeService = Depends(get_interchange_service),
) -> ApiResponse[Program]:
    """Import a workbook or image archive and save the program."""
    content = await file.read()
    result = await service.import_program(file.filename or "", content, file.content_type)
    if not result.success:
        return ApiResponse.fail(result.error, code=result.code.value if result.code else None)

    try:
        program = await programs.save_program(result.program)
    except ProgramAlreadyExistsError as e:
        await images.cleanup(result.program.id)
        return ApiResponse.fail(e.message, code=e.code.value)
    return ApiResponse.ok(program)


@router.get("/weeks/{week_id}/export")
async def export_week(
    week_id: str,
    sessions: SessionStorage = Depends(get_session_storage),
    service: InterchangeService = Depends(get_interchange_service),
) -> Response:
    week = await sessions.get_week_data(week_id)
    if week is None:
        raise HTTPException(status_code=404, detail=f"Week with id {week_id} not found")
    return _download(await service.export_week_data(week))


@router.get("/programs/{program_id}/weeks/export")
async def export_program_weeks(
    program_id: str,
    sessions: SessionStorage = Depends(get_session_storage),
    service: InterchangeService = Depends(get_interchange_service),
) -> Response:
    weeks = await sessions.get_week_data_for_program(program_id)
    if not weeks:
        raise HTTPException(status_code=404, detail="No closed week for this program")
    return _download(await service.export_all_weeks_data(weeks))
