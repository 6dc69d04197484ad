"""Domain models for the user profile."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from nutritrack.domain.nutrition import NutritionTargets


class Gender(StrEnum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class ActivityLevel(StrEnum):
    SEDENTARY = "Sedentary"
    LIGHT = "Light"
    MODERATE = "Moderate"
    ACTIVE = "Active"
    VERY_ACTIVE = "Very Active"


class Goal(StrEnum):
    LOSE_WEIGHT = "Lose Weight"
    MAINTAIN = "Maintain"
    GAIN_MUSCLE = "Gain Muscle"


@dataclass(frozen=True)
class UserProfile:
    """Represents the single local user and their active targets."""

    name: str
    gender: Gender
    age: int
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel
    goal: Goal
    targets: NutritionTargets
    created_at: datetime
    dietary_preference: str = "Vegetarian"
    medical_conditions: str = ""
    plan_explanation: str = ""
