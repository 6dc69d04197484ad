"""OpenAI Responses API client for meal analysis."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from nutritrack.errors import CandidateParseError
from nutritrack.services.entries import parse_ai_json
from nutritrack.services.meal_analysis import AnalysisClient


@dataclass
class OpenAIMealClient(AnalysisClient):
    """Analysis client backed by the OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIMealClient":
        """Create an OpenAI meal analysis client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

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
        """Call the Responses API with structured outputs."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "meal_candidates",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise CandidateParseError("OpenAI returned an empty response")
        return parse_ai_json(output_text)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
