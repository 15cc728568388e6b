from fastapi import APIRouter, Depends

from workout_tracker.dependencies import get_program_storage
from workout_tracker.excel.errors import ProgramAlreadyExistsError
from workout_tracker.schemas.common import ApiResponse
from workout_tracker.schemas.program import Program
from workout_tracker.services.storage_service import ProgramStorage

router = APIRouter(prefix="/programs", tags=["programs"])


@router.get("")
async def list_programs(
    storage: ProgramStorage = Depends(get_program_storage),
) -> ApiResponse[list[Program]]:
    return ApiResponse.ok(await storage.get_programs())


@router.get("/{program_id}")
async def get_program(
    program_id: str,
    storage: ProgramStorage = Depends(get_program_storage),
) -> ApiResponse[Program]:
    program = await storage.get_program(program_id)
    if program is None:
        return ApiResponse.fail(f"Program with id {program_id} not found")
    return ApiResponse.ok(program)


@router.post("")
async def create_program(
    body: Program,
    storage: ProgramStorage = Depends(get_program_storage),
) -> ApiResponse[Program]:
    try:
        program = await storage.save_program(body)
    except ProgramAlreadyExistsError as e:
        return ApiResponse.fail(e.message, code=e.code.value)
    return ApiResponse.ok(program)


@router.put("/{program_id}")
async def update_program(
    program_id: str,
    body: Program,
    storage: ProgramStorage = Depends(get_program_storage),
) -> ApiResponse[Program]:
    try:
        program = await storage.update_program(program_id, body)
    except ProgramAlreadyExistsError as e:
        return ApiResponse.fail(e.message, code=e.code.value)
    if program is None:
        return ApiResponse.fail(f"Program with id {program_id} not found")
    return ApiResponse.ok(program)


@router.delete("/{program_id}")
async def delete_program(
    program_id: str,
    storage: ProgramStorage = Depends(get_program_storage),
) -> ApiResponse[None]:
    if not await storage.delete_program(program_id):
        return ApiResponse.fail(f"Program with id {program_id} not found")
    return ApiResponse.ok(None)
