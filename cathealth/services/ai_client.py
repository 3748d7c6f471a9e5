# services/ai_client.py
"""
Thin wrapper around the OpenAI chat completions API.

Two kinds of calls are made by CatHealth: free-form markdown (diagnosis and
wellness narratives) and JSON summaries of that markdown.  The JSON summaries
are never trusted: ``parse_structured`` validates them against a pydantic model
and substitutes fixed fallback data when they do not fit.
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Type, TypeVar, Union

from openai import OpenAI
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from cathealth.core.exceptions import SchemaError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

T = TypeVar("T", bound=BaseModel)

MessageContent = Union[str, List[dict]]


@dataclass
class ParseOutcome(Generic[T]):
    """Either the parsed model, or the fallback with ``used_fallback`` set."""
    data: T
    used_fallback: bool = False


class AIClient:
    """Chat-completion calls with a single failure mode: ``UpstreamError``."""

    def __init__(self, client: Optional[Any] = None, model: Optional[str] = None):
        if client is None:
            # Fail fast if the API key isn't configured
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                logger.error("Missing OPENAI_API_KEY environment variable.")
                raise EnvironmentError("Missing OPENAI_API_KEY environment variable.")
            client = OpenAI(api_key=api_key)
        self.client = client
        self.model = model or os.getenv("OPENAI_MODEL", DEFAULT_MODEL)

    def complete(
        self,
        system_prompt: str,
        user_content: MessageContent,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> str:
        """Run one chat completion and return the assistant text ('' if the model sent none)."""
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                max_tokens=max_tokens,
                **kwargs,
            )
            return response.choices[0].message.content or ""
        except Exception as e:
            logger.error(f"AI completion failed: {str(e)}")
            raise UpstreamError("The AI service could not complete the request") from e


def _strip_code_fence(raw: str) -> str:
    raw = raw.strip()
    # Clean up any potential markdown formatting
    if raw.startswith("```"):
        raw = raw[3:]
        if raw.lower().startswith("json"):
            raw = raw[4:]
    if raw.endswith("```"):
        raw = raw[:-3]
    return raw.strip()


def load_structured(raw: str, model: Type[T]) -> T:
    """Parse and validate AI JSON output; ``SchemaError`` on any mismatch."""
    try:
        payload = json.loads(_strip_code_fence(raw or ""))
    except json.JSONDecodeError as e:
        raise SchemaError(f"AI returned invalid JSON: {e}") from e
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise SchemaError(f"AI JSON does not match {model.__name__}: {e.error_count()} error(s)") from e


def parse_structured(raw: str, model: Type[T], fallback: Callable[[], T]) -> ParseOutcome[T]:
    try:
        return ParseOutcome(load_structured(raw, model))
    except SchemaError as e:
        logger.warning(f"{e.message} - using fallback {model.__name__}")
        return ParseOutcome(fallback(), used_fallback=True)
