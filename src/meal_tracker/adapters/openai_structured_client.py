"""OpenAI Responses API client for structured outputs."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from meal_tracker.domain.errors import ServiceFailure
from meal_tracker.services.recognition import StructuredOutputClient


@dataclass
class OpenAIStructuredClient(StructuredOutputClient):
    """Structured output client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, timeout_seconds: float = 60.0
    ) -> "OpenAIStructuredClient":
        """Create an OpenAI client with its own request timeout."""
        return cls(client=AsyncOpenAI(api_key=api_key, timeout=timeout_seconds))

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with a strict JSON schema."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise ServiceFailure(f"OpenAI request failed: {exc}") from exc
        output_text = response.output_text
        if not output_text:
            raise ServiceFailure("OpenAI returned an empty response")
        try:
            payload = json.loads(output_text)
        except json.JSONDecodeError as exc:
            raise ServiceFailure("OpenAI returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise ServiceFailure("OpenAI returned a non-object payload")
        return payload

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
