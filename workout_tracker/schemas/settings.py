from __future__ import annotations

import re

from pydantic import BaseModel, Field

from workout_tracker.schemas.program import ChargeType, CTType, Exercise

_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)?")


class MaxWeights(BaseModel):
    """One-rep maxes in kg for the lifts CT charges refer to."""

    dc: float = Field(0.0, ge=0, alias="DC")
    sdt: float = Field(0.0, ge=0, alias="SDT")
    squat: float = Field(0.0, ge=0, alias="Squat")

    model_config = {"populate_by_name": True}

    def for_lift(self, lift: CTType) -> float:
        if lift is CTType.DC:
            return self.dc
        if lift is CTType.SDT:
            return self.sdt
        return self.squat


class AppSettings(BaseModel):
    max_weights: MaxWeights = Field(default_factory=MaxWeights, alias="maxWeights")

    model_config = {"populate_by_name": True}


def resolve_charge(exercise: Exercise, max_weights: MaxWeights) -> str:
    """Return the charge to display for an exercise.

    CT charges are a percentage of the lift's max and resolve to an absolute
    weight rounded to 0.5 kg. Nothing is written back into the exercise.
    """
    if exercise.charge_type is not ChargeType.CT or exercise.ct_type is None:
        return exercise.charge

    match = _NUMBER_RE.search(exercise.charge)
    max_weight = max_weights.for_lift(exercise.ct_type)
    if match is None or max_weight <= 0:
        return exercise.charge

    percentage = float(match.group(0).replace(",", "."))
    weight = round(percentage * max_weight / 100 * 2) / 2
    return f"{weight:g}kg"
