from workout_tracker.schemas.common import ApiResponse
from workout_tracker.schemas.program import Block, ChargeType, CTType, Exercise, Program, TrainingDay
from workout_tracker.schemas.session import BlockLog, ExerciseLog, SessionData, WeekData
from workout_tracker.schemas.settings import AppSettings, MaxWeights, resolve_charge
from workout_tracker.schemas.performance import (
    PerformanceMetric,
    PerformancePoint,
    PerformanceReport,
    PerformanceTrend,
)

__all__ = [
    "ApiResponse",
    "Block",
    "ChargeType",
    "CTType",
    "Exercise",
    "Program",
    "TrainingDay",
    "BlockLog",
    "ExerciseLog",
    "SessionData",
    "WeekData",
    "AppSettings",
    "MaxWeights",
    "resolve_charge",
    "PerformanceMetric",
    "PerformancePoint",
    "PerformanceReport",
    "PerformanceTrend",
]
