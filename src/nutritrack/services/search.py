"""Token-substring food search over catalog names and aliases."""

from dataclasses import dataclass

from nutritrack.domain.catalog import FoodItem
from nutritrack.services.catalog import FoodCatalog

MAX_RESULTS = 10


@dataclass
class FoodSearch:
    """Matches free text, including AI-guessed names, against the catalog."""

    catalog: FoodCatalog

    def search_foods(self, query: str | None, limit: int = MAX_RESULTS) -> list[FoodItem]:
        """Return matching foods in catalog order, at most ten."""
        tokens = _tokenize(query)
        if not tokens:
            return []
        limit = min(max(limit, 0), MAX_RESULTS)
        results: list[FoodItem] = []
        for food in self.catalog.foods:
            if len(results) >= limit:
                break
            if _matches(food, tokens):
                results.append(food)
        return results

    def best_match(self, query: str | None) -> FoodItem | None:
        """Return the most relevant match, if any."""
        results = self.search_foods(query, limit=1)
        return results[0] if results else None


def _tokenize(query: str | None) -> list[str]:
    if not query:
        return []
    return query.lower().split()


def _matches(food: FoodItem, tokens: list[str]) -> bool:
    if _contains_all(food.name.lower(), tokens):
        return True
    return any(_contains_all(alias.lower(), tokens) for alias in food.name_aliases)


def _contains_all(text: str, tokens: list[str]) -> bool:
    return all(token in text for token in tokens)
