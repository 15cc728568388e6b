import io
import zipfile

import pytest

from conftest import PROGRAM_HEADERS, build_workbook, info_rows, load_workbook, program_content
from workout_tracker.excel.config import XLSX_MEDIA_TYPE, ZIP_MEDIA_TYPE
from workout_tracker.excel.errors import ImportErrorCode
from workout_tracker.schemas.program import CTType
from workout_tracker.schemas.session import BlockLog, ExerciseLog, SessionData, WeekData
from workout_tracker.schemas.settings import AppSettings
from workout_tracker.services.interchange_service import InterchangeService


@pytest.fixture
def service(program_storage, settings_storage, session_storage, image_manager):
    return InterchangeService(program_storage, settings_storage, session_storage, image_manager)


@pytest.fixture
def full_body_xlsx() -> bytes:
    return build_workbook({
        "Informations": info_rows(),
        "Lundi": [PROGRAM_HEADERS, ["Échauffement", "Pompes", None, None, 2, 15]],
    })


class TestTemplate:
    async def test_template_imports(self, service):
        exported = await service.generate_template()
        assert exported.success
        assert exported.file.filename.startswith("format_programme_sportif_")
        assert exported.file.media_type == XLSX_MEDIA_TYPE

        result = await service.import_program(exported.file.filename, exported.file.content)
        assert result.success
        program = result.program
        assert program.selected_days == [0, 2, 4]
        bench = program.blocks_for(0)[0].exercises[1]
        assert bench.ct_type is CTType.DC
        assert bench.charge == "70"

    async def test_template_is_idempotent(self, service):
        first = await service.generate_template()
        second = await service.generate_template()
        a = await service.import_program("a.xlsx", first.file.content)
        b = await service.import_program("b.xlsx", second.file.content)

        assert program_content(a.program) == program_content(b.program)

    async def test_template_has_instructions(self, service):
        wb = load_workbook((await service.generate_template()).file.content)
        assert "Instructions" in wb.sheetnames
        assert wb["Informations"]["E2"].value == 100


class TestExport:
    async def test_export_uses_stored_max_weights(self, service, settings_storage, sample_program):
        await settings_storage.save_settings(
            AppSettings.model_validate({"maxWeights": {"DC": 95, "SDT": 150, "Squat": 130}})
        )
        exported = await service.export_program(sample_program)

        assert exported.success
        assert exported.file.filename.startswith("Full_Body_")
        assert exported.file.filename.endswith(".xlsx")
        info = load_workbook(exported.file.content)["Informations"]
        assert [info["E2"].value, info["F2"].value, info["G2"].value] == [95, 150, 130]

    async def test_export_with_images(self, service, sample_program):
        exported = await service.export_program_with_images(sample_program)

        assert exported.success
        assert exported.file.media_type == ZIP_MEDIA_TYPE
        assert "_with_images_" in exported.file.filename
        with zipfile.ZipFile(io.BytesIO(exported.file.content)) as zf:
            assert zf.namelist() == ["Full_Body.xlsx"]

    async def test_export_then_import_with_images(self, service, sample_program, tmp_path):
        image = tmp_path / "pompes.png"
        image.write_bytes(b"png-bytes")
        sample_program.days[0].blocks[0].exercises[0].images = [str(image)]

        exported = await service.export_program_with_images(sample_program)
        result = await service.import_program(exported.file.filename, exported.file.content)

        local = result.program.days[0].blocks[0].exercises[0].images[0]
        assert local != str(image)
        with open(local, "rb") as f:
            assert f.read() == b"png-bytes"


class TestImportDispatch:
    async def test_spreadsheet_by_extension(self, service, full_body_xlsx):
        result = await service.import_program("programme.XLSX", full_body_xlsx)
        assert result.success
        assert result.program.blocks_for(0)[0].exercises[0].repetitions == 15

    async def test_spreadsheet_sniffed_without_extension(self, service, full_body_xlsx):
        result = await service.import_program("upload", full_body_xlsx)
        assert result.success

    async def test_archive_sniffed_without_extension(self, service, full_body_xlsx):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("programme.xlsx", full_body_xlsx)
        result = await service.import_program("upload", buf.getvalue())
        assert result.success
        assert result.program.name == "Full Body"

    async def test_unsupported_file(self, service):
        result = await service.import_program("notes.txt", b"hello")
        assert not result.success
        assert result.code is ImportErrorCode.UNSUPPORTED_FILE

    async def test_corrupt_spreadsheet(self, service):
        result = await service.import_program("broken.xlsx", b"PK\x03\x04 not really")
        assert not result.success
        assert result.code is ImportErrorCode.UNREADABLE_FILE

    async def test_archive_without_spreadsheet(self, service):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("readme.txt", "rien")
        result = await service.import_program("programme.zip", buf.getvalue())
        assert result.code is ImportErrorCode.NO_SPREADSHEET_IN_ARCHIVE

    async def test_missing_metadata_is_reported(self, service):
        content = build_workbook({"Lundi": [PROGRAM_HEADERS]})
        result = await service.import_program("programme.xlsx", content)

        assert not result.success
        assert result.program is None
        assert result.code is ImportErrorCode.MISSING_METADATA
        assert "Informations" in result.error

    async def test_import_does_not_persist(self, service, program_storage, full_body_xlsx):
        await service.import_program("programme.xlsx", full_body_xlsx)
        assert await program_storage.get_programs() == []


class TestWeekExport:
    @pytest.fixture
    async def week(self, program_storage, sample_program) -> WeekData:
        await program_storage.save_program(sample_program)
        warmup = sample_program.days[0].blocks[0]
        return WeekData(
            program_id=sample_program.id,
            program_name=sample_program.name,
            week_name="Semaine 06/01-12/01",
            sessions=[
                SessionData(
                    program_id=sample_program.id,
                    day_index=0,
                    blocks=[BlockLog(block_id=warmup.id, exercises=[
                        ExerciseLog(exercise_id=warmup.exercises[0].id, completed_sets=[True, True]),
                    ])],
                ),
            ],
        )

    async def test_export_week(self, service, week):
        exported = await service.export_week_data(week)

        assert exported.success
        assert exported.file.filename == "Semaine_06_01_12_01_Full_Body.xlsx"
        wb = load_workbook(exported.file.content)
        assert wb.sheetnames == ["Informations", "Semaine 06_01-12_01"]

    async def test_export_history(self, service, week):
        exported = await service.export_all_weeks_data([week, week])

        assert exported.success
        assert exported.file.filename.startswith("historique_Full_Body_")
        wb = load_workbook(exported.file.content)
        assert wb.sheetnames == ["Informations", "Semaine 06_01-12_01", "Semaine 06_01-12_01 (2)"]

    async def test_export_history_without_weeks(self, service):
        exported = await service.export_all_weeks_data([])
        assert not exported.success
        assert exported.code is ImportErrorCode.EXPORT_FAILED
