from datetime import datetime, timezone

import pytest

from conftest import load_workbook
from workout_tracker.excel.results import ResultsWriter
from workout_tracker.schemas.session import BlockLog, ExerciseLog, SessionData, WeekData


@pytest.fixture
def week(sample_program) -> WeekData:
    monday, wednesday = sample_program.days[0], sample_program.days[1]
    warmup, strength = monday.blocks[0], monday.blocks[1]
    legs = wednesday.blocks[0]
    return WeekData(
        program_id=sample_program.id,
        program_name=sample_program.name,
        week_name="Semaine 1",
        date=datetime(2025, 1, 12, tzinfo=timezone.utc),
        sessions=[
            # Stored out of order on purpose
            SessionData(program_id=sample_program.id, day_index=2, blocks=[
                BlockLog(block_id=legs.id, exercises=[
                    ExerciseLog(exercise_id=legs.exercises[0].id,
                                completed_sets=[True, False, False], charge="85kg"),
                ]),
            ]),
            SessionData(program_id=sample_program.id, day_index=0, blocks=[
                BlockLog(block_id=warmup.id, exercises=[
                    ExerciseLog(exercise_id=warmup.exercises[0].id,
                                completed_sets=[True, True], note="facile"),
                    ExerciseLog(exercise_id=warmup.exercises[1].id,
                                completed_sets=[True, False]),
                ]),
                BlockLog(block_id=strength.id, exercises=[
                    ExerciseLog(exercise_id=strength.exercises[0].id,
                                completed_sets=[True] * 4),
                ]),
                BlockLog(block_id="gone", exercises=[
                    ExerciseLog(exercise_id="old", completed_sets=[]),
                ]),
            ]),
        ],
    )


class TestWeekWorkbook:
    def test_informations(self, week, sample_program, max_weights):
        content = ResultsWriter.write_week(
            week, sample_program, max_weights,
            exported_at=datetime(2025, 1, 13, tzinfo=timezone.utc),
        )
        info = load_workbook(content)["Informations"]

        assert [c.value for c in info[1]] == [
            "Programme", "Semaine", "Date Export", "Nombre de Sessions",
        ]
        assert [c.value for c in info[2]] == [
            "Full Body", "Semaine 1", "2025-01-13T00:00:00+00:00", 2,
        ]

    def test_week_sheet_rows(self, week, sample_program, max_weights):
        ws = load_workbook(ResultsWriter.write_week(week, sample_program, max_weights))["Semaine 1"]

        assert ws["A1"].value == "=== LUNDI ==="
        assert ws["A2"].value == "Haut du corps"
        assert ws["A3"].value == "Bloc"
        assert ws["I3"].value == "Termine"
        # Pompes: all sets done, note kept, planned charge shown
        assert [c.value for c in ws[4]] == [
            "Échauffement", "Pompes", "Mise en route", None, "2/2", 15, "20kg", "facile", "OUI",
        ]
        assert ws["E5"].value == "1/2"
        assert ws["I5"].value == "NON"
        # CT charge resolved against the max weights: 75% of 100
        assert ws["G6"].value == "75kg"
        assert ws["A7"].value == "Bloc gone"
        assert ws["B7"].value == "Exercice old"
        assert ws["E7"].value == "0/0"

    def test_days_are_separated_and_ordered(self, week, sample_program, max_weights):
        ws = load_workbook(ResultsWriter.write_week(week, sample_program, max_weights))["Semaine 1"]

        assert ws["A8"].value is None
        assert ws["A9"].value is None
        assert ws["A10"].value == "=== MERCREDI ==="
        # No day description for Wednesday: header follows the title
        assert ws["A11"].value == "Bloc"
        assert ws["G12"].value == "85kg"
        assert ws["E12"].value == "1/3"

    def test_multi_exercise_blocks_are_merged(self, week, sample_program, max_weights):
        ws = load_workbook(ResultsWriter.write_week(week, sample_program, max_weights))["Semaine 1"]
        assert {str(r) for r in ws.merged_cells.ranges} == {"A4:A5", "C4:C5"}

    def test_without_program_uses_ids(self, week, max_weights):
        ws = load_workbook(ResultsWriter.write_week(week, None, max_weights))["Semaine 1"]

        assert ws["A1"].value == "=== LUNDI ==="
        assert ws["A2"].value == "Bloc"
        assert ws["A3"].value.startswith("Bloc ")
        assert ws["B3"].value.startswith("Exercice ")


class TestHistoryWorkbook:
    def test_one_sheet_per_week(self, week, sample_program, max_weights):
        other = week.model_copy(update={"week_name": "Semaine: 2/3 [bis]"})
        content = ResultsWriter.write_history(
            [week, other, week], {sample_program.id: sample_program}, max_weights,
        )
        wb = load_workbook(content)

        assert wb.sheetnames == ["Informations", "Semaine 1", "Semaine_ 2_3 _bis_", "Semaine 1 (2)"]
        info = wb["Informations"]
        assert [c.value for c in info[1]] == ["Semaine", "Programme", "Date", "Nombre de Sessions"]
        assert info["A3"].value == "Semaine: 2/3 [bis]"
        assert info["C2"].value == "2025-01-12T00:00:00+00:00"
        assert info["D4"].value == 2

    def test_long_week_names_are_truncated(self, week, sample_program, max_weights):
        long_week = week.model_copy(update={"week_name": "x" * 40})
        wb = load_workbook(ResultsWriter.write_history([long_week], {}, max_weights))
        assert wb.sheetnames[1] == "x" * 31
