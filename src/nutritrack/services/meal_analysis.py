"""Meal analysis: asking an LLM for candidate foods in a photo or description."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from nutritrack.domain.candidates import MealCandidate
from nutritrack.services.entries import parse_candidates

_NULLABLE_NUMBER = {"anyOf": [{"type": "number", "minimum": 0}, {"type": "null"}]}

CANDIDATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "grams": _NULLABLE_NUMBER,
                    "portion": {"anyOf": [{"type": "string"}, {"type": "null"}]},
                    "calories": _NULLABLE_NUMBER,
                    "protein": _NULLABLE_NUMBER,
                    "carbs": _NULLABLE_NUMBER,
                    "fat": _NULLABLE_NUMBER,
                    "fiber": _NULLABLE_NUMBER,
                    "micros": {"type": "array", "items": {"type": "string"}},
                },
                "required": [
                    "name",
                    "grams",
                    "portion",
                    "calories",
                    "protein",
                    "carbs",
                    "fat",
                    "fiber",
                    "micros",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

_PROMPT = (
    "Identify every food item in this meal. "
    "For each item give a short name, the estimated weight in grams "
    "(a number without units), and a household portion such as '1 katori' "
    "if one applies. Also estimate calories, protein, carbs, fat and fiber "
    "for that weight, and list key micronutrients as strings such as "
    "'Iron: 2mg'."
)

_logger = logging.getLogger(__name__)


class AnalysisClient(Protocol):
    """Interface for the LLM that proposes meal candidates."""

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        image_data_url: str | None,
        schema: dict[str, object],
    ) -> object:
        """Return the decoded JSON payload produced by the model."""


@dataclass
class MealAnalysisService:
    """Prepares analysis prompts and validates what comes back.

    The result is only ever a list of candidates; nutrient values for
    catalog foods are recomputed later during entry resolution.
    """

    client: AnalysisClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def analyze(
        self, description: str | None = None, image_bytes: bytes | None = None
    ) -> list[MealCandidate]:
        """Ask the model for candidates from a description, a photo or both."""
        description = (description or "").strip()
        if not description and not image_bytes:
            raise ValueError("A description or an image is required")
        prompt = _PROMPT
        if description:
            prompt = f'{prompt} Text description: "{description}".'
        raw = await self.client.analyze(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=prompt,
            image_data_url=_to_data_url(image_bytes) if image_bytes else None,
            schema=CANDIDATE_SCHEMA,
        )
        candidates = parse_candidates(raw)
        _logger.info("Model proposed %d meal candidates", len(candidates))
        return candidates


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
