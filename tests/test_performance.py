from datetime import datetime, timezone

import pytest

from workout_tracker.schemas.performance import PerformanceMetric, PerformancePoint
from workout_tracker.schemas.session import BlockLog, ExerciseLog, SessionData, WeekData
from workout_tracker.services.performance_service import (
    extract_numeric_value,
    get_performance_data,
    get_performance_trend,
)


def _week(program, name, day, charges, sets, date):
    """One session on ``day`` logging every exercise of its first block."""
    block = program.blocks_for(day)[0]
    return WeekData(
        program_id=program.id,
        program_name=program.name,
        week_name=name,
        date=date,
        sessions=[SessionData(program_id=program.id, day_index=day, blocks=[
            BlockLog(block_id=block.id, exercises=[
                ExerciseLog(exercise_id=ex.id, completed_sets=s, charge=c)
                for ex, c, s in zip(block.exercises, charges, sets)
            ]),
        ])],
    )


@pytest.fixture
def weeks(sample_program):
    # Wednesday: Squat (5 reps) and Fentes (12 reps)
    return [
        _week(sample_program, "S2", 2, ["90kg", "2x12kg"], [[True] * 3, [True, False, False]],
              datetime(2025, 1, 13, tzinfo=timezone.utc)),
        _week(sample_program, "S1", 2, ["85kg", ""], [[True, True, False], []],
              datetime(2025, 1, 6, tzinfo=timezone.utc)),
    ]


def test_extract_numeric_value():
    assert extract_numeric_value("62.5kg") == 62.5
    assert extract_numeric_value("2x10kg") == 2
    assert extract_numeric_value("") == 0
    assert extract_numeric_value("poids du corps") == 0


def test_charge_average_in_date_order(weeks, sample_program):
    points = get_performance_data(weeks, sample_program)

    assert [p.week for p in points] == ["S1", "S2"]
    # S1: only the squat has a charge; S2: (90 + 2) / 2
    assert [p.value for p in points] == [85, 46]


def test_single_exercise(weeks, sample_program):
    squat = sample_program.blocks_for(2)[0].exercises[0]
    points = get_performance_data(weeks, sample_program, exercise_id=squat.id)
    assert [p.value for p in points] == [85, 90]


def test_repetitions(weeks, sample_program):
    points = get_performance_data(
        weeks, sample_program, metric=PerformanceMetric.REPETITIONS,
    )
    # S1: squat 2 sets x 5; S2: squat 3 x 5 and fentes 1 x 12 -> (15 + 12) / 2
    assert [p.value for p in points] == [10, 13.5]


def test_weeks_without_values_are_skipped(sample_program):
    empty = _week(sample_program, "S0", 0, ["", ""], [[], []],
                  datetime(2025, 1, 1, tzinfo=timezone.utc))
    assert get_performance_data([empty], sample_program) == []


def test_trend():
    def point(value):
        return PerformancePoint(week="w", value=value, date=datetime(2025, 1, 1))

    up = get_performance_trend([point(80), point(85)])
    assert (up.trend, up.change, up.change_percent) == ("up", 5, 6.25)

    down = get_performance_trend([point(80), point(85), point(68)])
    assert (down.trend, down.change, down.change_percent) == ("down", -17, -20)

    assert get_performance_trend([point(80)]).trend == "stable"
    assert get_performance_trend([point(0), point(0)]).change_percent == 0
