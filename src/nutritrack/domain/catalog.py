"""Domain models for the static food catalog."""

from dataclasses import dataclass

from nutritrack.domain.nutrition import NutrientCoefficients, SourceDatabase


@dataclass(frozen=True)
class PortionPreset:
    """Named preset weight for a food, e.g. "1 katori" -> 150 g."""

    id: str
    label: str
    grams: float
    unit: str


@dataclass(frozen=True)
class FoodItem:
    """Catalog entry with per-gram coefficients."""

    id: str
    name: str
    name_aliases: tuple[str, ...]
    category: str
    nutrients_per_gram: NutrientCoefficients
    default_portion_grams: float
    portions: tuple[PortionPreset, ...]
    source: SourceDatabase
    version: str
