"""Static food catalog loading and lookup."""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path

from nutritrack.domain.catalog import FoodItem, PortionPreset
from nutritrack.domain.nutrition import NutrientCoefficients, SourceDatabase
from nutritrack.errors import CatalogError, NotFoundError

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "catalog.json"

_NUTRIENT_KEYS = ("calories", "protein", "carbs", "fat", "fiber")


@dataclass(frozen=True)
class FoodCatalog:
    """Read-only set of known foods indexed by id."""

    foods: tuple[FoodItem, ...]
    version: str = ""
    _by_id: dict[str, FoodItem] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[str, FoodItem] = {}
        for food in self.foods:
            if food.id in index:
                raise CatalogError(f"Duplicate catalog id: {food.id}")
            _validate_food(food)
            index[food.id] = food
        object.__setattr__(self, "_by_id", index)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "FoodCatalog":
        """Load and validate a catalog JSON file (the bundled one by default)."""
        resolved = Path(path) if path else DEFAULT_CATALOG_PATH
        try:
            payload = json.loads(resolved.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CatalogError(f"Cannot read catalog {resolved}: {exc}") from exc
        return cls.from_payload(payload)

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "FoodCatalog":
        """Build a catalog from an already decoded payload."""
        version = str(payload.get("version") or "")
        rows = payload.get("foods")
        if not isinstance(rows, list):
            raise CatalogError("Catalog payload has no 'foods' list")
        foods = tuple(_parse_food(row, version) for row in rows)
        return cls(foods=foods, version=version)

    def get(self, food_id: str) -> FoodItem | None:
        """Return a food by id, if present."""
        return self._by_id.get(food_id)

    def require(self, food_id: str) -> FoodItem:
        """Return a food by id or raise NotFoundError."""
        food = self._by_id.get(food_id)
        if food is None:
            raise NotFoundError(f"Food ID {food_id} not found in catalog")
        return food

    def __len__(self) -> int:
        return len(self.foods)

    def __contains__(self, food_id: object) -> bool:
        return food_id in self._by_id


def find_portion(food: FoodItem, label: str | None) -> PortionPreset | None:
    """Find a preset portion by label or preset id, case-insensitively."""
    if not label:
        return None
    wanted = label.strip().lower()
    for portion in food.portions:
        if wanted in {portion.label.lower(), portion.id.lower()}:
            return portion
    return None


def _parse_food(row: object, catalog_version: str) -> FoodItem:
    if not isinstance(row, dict):
        raise CatalogError(f"Catalog row is not an object: {row!r}")
    food_id = row.get("id")
    if not isinstance(food_id, str) or not food_id:
        raise CatalogError(f"Catalog row has no id: {row!r}")
    coefficients = row.get("nutrients_per_gram")
    if not isinstance(coefficients, dict):
        raise CatalogError(f"{food_id}: missing nutrients_per_gram")
    try:
        per_gram = NutrientCoefficients(
            **{key: float(coefficients.get(key, 0.0)) for key in _NUTRIENT_KEYS}
        )
        portions = tuple(
            PortionPreset(
                id=str(portion["id"]),
                label=str(portion["label"]),
                grams=float(portion["grams"]),
                unit=str(portion.get("unit", "grams")),
            )
            for portion in row.get("portions", [])
        )
        return FoodItem(
            id=food_id,
            name=str(row["name"]),
            name_aliases=tuple(str(alias) for alias in row.get("name_aliases", [])),
            category=str(row.get("category", "Mixed")),
            nutrients_per_gram=per_gram,
            default_portion_grams=float(row["default_portion_grams"]),
            portions=portions,
            source=SourceDatabase(row.get("source", SourceDatabase.CATALOG)),
            version=str(row.get("version") or catalog_version),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise CatalogError(f"{food_id}: malformed catalog row ({exc})") from exc


def _validate_food(food: FoodItem) -> None:
    for key in _NUTRIENT_KEYS:
        value = getattr(food.nutrients_per_gram, key)
        if not math.isfinite(value) or value < 0:
            raise CatalogError(f"{food.id}: {key} per gram must be >= 0, got {value}")
    if not math.isfinite(food.default_portion_grams) or food.default_portion_grams <= 0:
        raise CatalogError(f"{food.id}: default portion must be > 0")
    for portion in food.portions:
        if not math.isfinite(portion.grams) or portion.grams <= 0:
            raise CatalogError(f"{food.id}: portion {portion.id} must be > 0 g")
