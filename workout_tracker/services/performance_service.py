import re
from collections.abc import Sequence

from workout_tracker.schemas.performance import (
    PerformanceMetric,
    PerformancePoint,
    PerformanceTrend,
)
from workout_tracker.schemas.program import Program
from workout_tracker.schemas.session import SessionData, WeekData

_FIRST_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")


def extract_numeric_value(charge: str) -> float:
    """First number found in a charge string. E.g. '62.5kg' -> 62.5, '' -> 0."""
    match = _FIRST_NUMBER.search(charge or "")
    return float(match.group(1)) if match else 0.0


def _session_values(
    session: SessionData,
    program: Program,
    exercise_id: str | None,
    metric: PerformanceMetric,
) -> list[float]:
    values = []
    for block in program.blocks_for(session.day_index):
        block_log = session.block_log(block.id)
        for exercise in block.exercises:
            if exercise_id and exercise.id != exercise_id:
                continue
            log = session.exercise_log(exercise.id)

            if metric is PerformanceMetric.CHARGE:
                value = extract_numeric_value(log.charge) if log else 0.0
            else:
                entry = next(
                    (e for e in block_log.exercises if e.exercise_id == exercise.id),
                    None,
                ) if block_log else None
                value = (entry.completed_count if entry else 0) * exercise.repetitions

            if value > 0:
                values.append(value)
    return values


def get_performance_data(
    weeks: Sequence[WeekData],
    program: Program,
    exercise_id: str | None = None,
    metric: PerformanceMetric = PerformanceMetric.CHARGE,
) -> list[PerformancePoint]:
    """One point per closed week, oldest first.

    Charge points use the first number of each logged charge. Repetition
    points use completed sets x planned repetitions. Values are averaged
    over exercises unless a single exercise is requested; weeks without
    any positive value are left out.
    """
    points = []
    for week in sorted(weeks, key=lambda w: w.date):
        values: list[float] = []
        for session in week.sessions:
            values.extend(_session_values(session, program, exercise_id, metric))
        if not values:
            continue

        total = sum(values)
        value = total if exercise_id else total / len(values)
        points.append(PerformancePoint(week=week.week_name, value=round(value, 2), date=week.date))
    return points


def get_performance_trend(points: Sequence[PerformancePoint]) -> PerformanceTrend:
    """Change between the last two points."""
    if len(points) < 2:
        return PerformanceTrend(trend="stable", change=0, change_percent=0)

    latest = points[-1].value
    previous = points[-2].value
    change = latest - previous
    change_percent = change / previous * 100 if previous > 0 else 0.0

    if change > 0:
        trend = "up"
    elif change < 0:
        trend = "down"
    else:
        trend = "stable"
    return PerformanceTrend(
        trend=trend,
        change=round(change, 2),
        change_percent=round(change_percent, 2),
    )
