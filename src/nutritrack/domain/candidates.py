"""Validated shapes for untrusted meal candidates from AI or manual entry."""

import math
import re

from pydantic import BaseModel, Field, field_validator

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def _to_number(value: object) -> float | None:
    """Parse a loosely typed number.

    Strings have every character except digits, dots and the sign stripped
    first, so "150gg" and "~150 g" both become 150.0 while "-50" stays negative.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_quantity(value: object) -> float | None:
    """Return a positive weight, or None when the value is unusable."""
    number = _to_number(value)
    if number is None or number <= 0:
        return None
    return number


def coerce_amount(value: object) -> float | None:
    """Return a non-negative nutrient amount, or None."""
    number = _to_number(value)
    if number is None or number < 0:
        return None
    return number


class MealCandidate(BaseModel):
    """Single food guess produced outside the engine."""

    name: str = Field(min_length=1)
    grams: float | None = None
    portion: str | None = None
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    micros: list[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("grams", mode="before")
    @classmethod
    def _coerce_grams(cls, value: object) -> float | None:
        return coerce_quantity(value)

    @field_validator("calories", "protein", "carbs", "fat", "fiber", mode="before")
    @classmethod
    def _coerce_nutrient(cls, value: object) -> float | None:
        return coerce_amount(value)

    @field_validator("micros", mode="before")
    @classmethod
    def _clean_micros(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        cleaned: list[str] = []
        for entry in value:
            if not isinstance(entry, str):
                continue
            text = entry.strip()
            if text and text not in cleaned:
                cleaned.append(text)
        return cleaned

    def has_nutrients(self) -> bool:
        """Return True when calories and all macros were supplied."""
        return all(
            value is not None
            for value in (self.calories, self.protein, self.carbs, self.fat)
        )
