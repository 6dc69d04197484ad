"""Error types raised by the nutrition engine."""


class NutritionError(Exception):
    """Base class for engine errors."""


class NotFoundError(NutritionError):
    """Raised when a food or record identifier does not resolve."""


class InvalidPortionError(NutritionError):
    """Raised for non-positive or non-numeric gram quantities."""


class DataIntegrityError(NutritionError):
    """Raised when computed nutrients grossly violate the Atwater model.

    Signals a corrupt catalog row or a calculation bug; callers should not
    swallow it.
    """


class CatalogError(NutritionError):
    """Raised when catalog data fails validation at load time."""


class CandidateParseError(NutritionError):
    """Raised when an upstream payload cannot be parsed at all."""


class StoreError(NutritionError):
    """Raised for misuse of the persistence contract."""
