"""Import and export of programs and weekly results.

Every public method returns a result object and never raises: structural
problems in a file come back with their ``ImportErrorCode``, anything else
(corrupt zip, unreadable workbook, OS errors) as a generic failure code.
"""

import io
import logging
import zipfile
from dataclasses import dataclass
from pathlib import PurePath

from openpyxl.utils.exceptions import InvalidFileException

from workout_tracker.excel.archive import ProgramArchive
from workout_tracker.excel.config import (
    ARCHIVE_EXTENSION,
    SPREADSHEET_EXTENSION,
    TEMPLATE_FILE_PREFIX,
    TEMPLATE_INSTRUCTIONS,
    XLSX_MEDIA_TYPE,
    ZIP_MEDIA_TYPE,
)
from workout_tracker.excel.errors import (
    ImportErrorCode,
    InterchangeError,
    UnsupportedFileError,
)
from workout_tracker.excel.reader import ProgramReader
from workout_tracker.excel.results import ResultsWriter
from workout_tracker.excel.writer import ProgramWriter
from workout_tracker.schemas.program import (
    Block,
    ChargeType,
    CTType,
    Exercise,
    Program,
    TrainingDay,
    new_id,
)
from workout_tracker.schemas.session import WeekData
from workout_tracker.schemas.settings import MaxWeights
from workout_tracker.services.image_service import ImageManager
from workout_tracker.services.storage_service import (
    ProgramStorage,
    SessionStorage,
    SettingsStorage,
)
from workout_tracker.utils.date_helpers import get_date_stamp
from workout_tracker.utils.file_names import safe_file_stem, safe_token

logger = logging.getLogger(__name__)

ZIP_MAGIC = b"PK\x03\x04"
XLSX_CONTENT_TYPES_ENTRY = "[Content_Types].xml"
SPREADSHEET_EXTENSIONS = (".xlsx", ".xlsm")

TEMPLATE_MAX_WEIGHTS = MaxWeights(dc=100, sdt=120, squat=110)

# Failures of the file itself rather than of its content
_TRANSPORT_ERRORS = (zipfile.BadZipFile, InvalidFileException, OSError, KeyError, EOFError)


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    content: bytes
    media_type: str


@dataclass(frozen=True)
class ExportResult:
    """Result of an export operation."""

    success: bool
    file: ExportedFile | None = None
    error: str | None = None
    code: ImportErrorCode | None = None


@dataclass(frozen=True)
class ImportResult:
    """Result of an import operation. The program is not persisted."""

    success: bool
    program: Program | None = None
    error: str | None = None
    code: ImportErrorCode | None = None


def build_template_program() -> Program:
    """The documented example program shipped as the import template."""
    return Program(
        name="Programme Exemple",
        description="Description du programme exemple",
        days=[
            TrainingDay(
                index=0,
                description="Séance du haut du corps",
                blocks=[
                    Block(
                        name="Échauffement",
                        description="Préparation musculaire",
                        series=2,
                        exercises=[
                            Exercise(
                                name="Pompes",
                                description="Pompes classiques",
                                repetitions=15,
                                charge="Poids du corps",
                                advice="Garder le dos droit",
                                rest=60,
                            ),
                            Exercise(
                                name="Développé Couché",
                                description="Exercice principal pectoraux",
                                repetitions=8,
                                charge_type=ChargeType.CT,
                                charge="70",
                                ct_type=CTType.DC,
                                advice="Contrôler la descente",
                                rest=120,
                            ),
                        ],
                    ),
                ],
            ),
            TrainingDay(
                index=2,
                description="Séance du bas du corps",
                blocks=[
                    Block(
                        name="Force",
                        description="Travail lourd",
                        series=4,
                        exercises=[
                            Exercise(
                                name="Squat",
                                repetitions=5,
                                charge_type=ChargeType.CT,
                                charge="80",
                                ct_type=CTType.SQUAT,
                                rest=180,
                            ),
                        ],
                    ),
                ],
            ),
            TrainingDay(
                index=4,
                blocks=[
                    Block(
                        name="Tirage",
                        series=3,
                        exercises=[
                            Exercise(
                                name="Soulevé de terre",
                                repetitions=5,
                                charge_type=ChargeType.CT,
                                charge="75",
                                ct_type=CTType.SDT,
                                rest=180,
                            ),
                            Exercise(
                                name="Rowing haltère",
                                repetitions=12,
                                charge="20kg",
                                rest=90,
                            ),
                        ],
                    ),
                ],
            ),
        ],
    )


def _extension(filename: str) -> str:
    return PurePath(filename or "").suffix.lower()


def _is_xlsx_package(content: bytes) -> bool:
    """Both .xlsx and .zip files are zip containers; only xlsx has a content types part."""
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            return XLSX_CONTENT_TYPES_ENTRY in zf.namelist()
    except zipfile.BadZipFile:
        return False


class InterchangeService:
    """Entry point for program and results interchange."""

    def __init__(
        self,
        program_storage: ProgramStorage,
        settings_storage: SettingsStorage,
        session_storage: SessionStorage,
        image_manager: ImageManager,
    ) -> None:
        self.programs = program_storage
        self.settings = settings_storage
        self.sessions = session_storage
        self.archive = ProgramArchive(image_manager)

    async def _max_weights(self) -> MaxWeights:
        return (await self.settings.get_settings()).max_weights

    # --- Programs ---

    async def generate_template(self) -> ExportResult:
        try:
            content = ProgramWriter.write_program(
                build_template_program(),
                TEMPLATE_MAX_WEIGHTS,
                instructions=TEMPLATE_INSTRUCTIONS,
            )
        except Exception as e:
            logger.exception("Template generation failed")
            return _export_failure(e)

        return ExportResult(
            success=True,
            file=ExportedFile(
                filename=f"{TEMPLATE_FILE_PREFIX}_{get_date_stamp()}{SPREADSHEET_EXTENSION}",
                content=content,
                media_type=XLSX_MEDIA_TYPE,
            ),
        )

    async def export_program(self, program: Program) -> ExportResult:
        try:
            content = ProgramWriter.write_program(program, await self._max_weights())
        except Exception as e:
            logger.exception("Export of program '%s' failed", program.name)
            return _export_failure(e)

        return ExportResult(
            success=True,
            file=ExportedFile(
                filename=f"{safe_file_stem(program.name)}_{get_date_stamp()}{SPREADSHEET_EXTENSION}",
                content=content,
                media_type=XLSX_MEDIA_TYPE,
            ),
        )

    async def export_program_with_images(self, program: Program) -> ExportResult:
        try:
            content = await self.archive.export_program(program, await self._max_weights())
        except Exception as e:
            logger.exception("Archive export of program '%s' failed", program.name)
            return _export_failure(e)

        stem = safe_file_stem(program.name)
        return ExportResult(
            success=True,
            file=ExportedFile(
                filename=f"{stem}_with_images_{get_date_stamp()}{ARCHIVE_EXTENSION}",
                content=content,
                media_type=ZIP_MEDIA_TYPE,
            ),
        )

    async def import_program(
        self,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> ImportResult:
        """Import a workbook or an archive, chosen by extension then by content.

        Images from an archive are stored under the new program's id; the
        caller persists the program and removes those images if it rejects it.
        """
        program_id = new_id()
        try:
            if self._is_archive(filename, content, content_type):
                program = await self.archive.import_program(content, program_id)
            else:
                program = ProgramReader.read_program(content, program_id)
        except InterchangeError as e:
            logger.warning("Import of '%s' rejected: %s", filename, e.message)
            return ImportResult(success=False, error=e.message, code=e.code)
        except _TRANSPORT_ERRORS as e:
            logger.warning("Import of '%s' failed, unreadable file: %s", filename, e)
            return ImportResult(
                success=False,
                error=f"Unreadable file: {e}",
                code=ImportErrorCode.UNREADABLE_FILE,
            )
        except Exception as e:
            logger.exception("Import of '%s' failed", filename)
            return ImportResult(
                success=False,
                error=f"Import failed: {e}",
                code=ImportErrorCode.UNREADABLE_FILE,
            )

        logger.info("Imported program '%s' from '%s'", program.name, filename)
        return ImportResult(success=True, program=program)

    @staticmethod
    def _is_archive(filename: str, content: bytes, content_type: str | None) -> bool:
        """Raises UnsupportedFileError for anything that is not a zip container."""
        extension = _extension(filename)
        if extension == ARCHIVE_EXTENSION:
            return True
        if extension in SPREADSHEET_EXTENSIONS:
            return False
        if content_type == ZIP_MEDIA_TYPE:
            return True
        if content_type == XLSX_MEDIA_TYPE:
            return False
        if content.startswith(ZIP_MAGIC):
            return not _is_xlsx_package(content)
        raise UnsupportedFileError(
            f"Unsupported file '{filename}': expected {SPREADSHEET_EXTENSION} "
            f"or {ARCHIVE_EXTENSION}"
        )

    # --- Weekly results ---

    async def export_week_data(self, week: WeekData) -> ExportResult:
        try:
            program = await self.programs.get_program(week.program_id)
            content = ResultsWriter.write_week(week, program, await self._max_weights())
        except Exception as e:
            logger.exception("Export of week '%s' failed", week.week_name)
            return _export_failure(e)

        return ExportResult(
            success=True,
            file=ExportedFile(
                filename=(
                    f"{safe_token(week.week_name)}_{safe_token(week.program_name)}"
                    f"{SPREADSHEET_EXTENSION}"
                ),
                content=content,
                media_type=XLSX_MEDIA_TYPE,
            ),
        )

    async def export_all_weeks_data(
        self,
        weeks: list[WeekData],
        name: str | None = None,
    ) -> ExportResult:
        """History of several weeks. ``name`` defaults to the first week's program."""
        if not weeks:
            return ExportResult(
                success=False,
                error="No week to export",
                code=ImportErrorCode.EXPORT_FAILED,
            )

        try:
            programs: dict[str, Program] = {}
            for week in weeks:
                if week.program_id not in programs:
                    program = await self.programs.get_program(week.program_id)
                    if program is not None:
                        programs[week.program_id] = program
            content = ResultsWriter.write_history(weeks, programs, await self._max_weights())
        except Exception as e:
            logger.exception("Export of %d weeks failed", len(weeks))
            return _export_failure(e)

        label = name or weeks[0].program_name
        return ExportResult(
            success=True,
            file=ExportedFile(
                filename=(
                    f"historique_{safe_token(label)}_{get_date_stamp()}"
                    f"{SPREADSHEET_EXTENSION}"
                ),
                content=content,
                media_type=XLSX_MEDIA_TYPE,
            ),
        )


def _export_failure(error: Exception) -> ExportResult:
    return ExportResult(
        success=False,
        error=f"Export failed: {error}",
        code=ImportErrorCode.EXPORT_FAILED,
    )
