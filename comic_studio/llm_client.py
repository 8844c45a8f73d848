"""
Comic Studio: Claude client.

Thin wrapper over the Anthropic Messages API with two calls:

- generate_text(): system + prompt → plain text
- generate_object(): system + prompt → instance of a pydantic model

Structured output uses tool use: the model's JSON schema is offered as the
only tool and Claude is forced to call it. The tool input is validated here,
so callers only ever see a valid model or a StoryValidationError.
"""

import logging
from typing import Optional, TypeVar

import anthropic
from pydantic import BaseModel, ValidationError

from comic_studio.errors import ServiceError, StoryValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MAX_TOKENS = 8192


class ClaudeClient:
    """Language-model collaborator for the story and panel stages."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key)

    async def close(self):
        await self._client.close()

    async def generate_text(self, system: str, prompt: str) -> str:
        """Free-text generation. Returns the concatenated text blocks."""
        response = await self._create(
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(
            block.text for block in response.content if block.type == "text"
        ).strip()
        if not text:
            raise ServiceError("Claude returned an empty text response")
        return text

    async def generate_object(
        self,
        system: str,
        prompt: str,
        schema: type[T],
        tool_name: str = "submit",
        tool_description: str = "Submit the structured result.",
    ) -> T:
        """Structured generation validated against a pydantic model."""
        tool = {
            "name": tool_name,
            "description": tool_description,
            "input_schema": schema.model_json_schema(by_alias=True),
        }
        response = await self._create(
            system=system,
            messages=[{"role": "user", "content": prompt}],
            tools=[tool],
            tool_choice={"type": "tool", "name": tool_name},
        )

        payload = None
        for block in response.content:
            if block.type == "tool_use" and block.name == tool_name:
                payload = block.input
                break
        if payload is None:
            raise StoryValidationError(
                f"Claude did not return a {schema.__name__} "
                f"(stop_reason={response.stop_reason})"
            )

        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            logger.error(f"{schema.__name__} failed validation: {e}")
            raise StoryValidationError(
                f"Response did not match the {schema.__name__} schema: {e}"
            ) from e

    async def _create(self, **kwargs):
        """Call messages.create, mapping SDK errors to ServiceError."""
        try:
            return await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                **kwargs,
            )
        except anthropic.APIStatusError as e:
            raise ServiceError(
                f"Claude API error ({e.status_code}): {e.message}",
                status_code=e.status_code,
            ) from e
        except anthropic.APIConnectionError as e:
            raise ServiceError(f"Claude API connection failed: {e}") from e
