import enum
from datetime import datetime

from pydantic import BaseModel


class PerformanceMetric(str, enum.Enum):
    CHARGE = "charge"
    REPETITIONS = "repetitions"


class PerformancePoint(BaseModel):
    week: str
    value: float
    date: datetime


class PerformanceTrend(BaseModel):
    trend: str  # up / down / stable
    change: float
    change_percent: float


class PerformanceReport(BaseModel):
    points: list[PerformancePoint]
    trend: PerformanceTrend
