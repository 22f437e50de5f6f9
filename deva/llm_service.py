import json
import logging
import os
from typing import Optional

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from deva.schemas import Priority, WorkType

logger = logging.getLogger(__name__)

DEFAULT_LLM_TIMEOUT = 10.0


class LLMClassification(BaseModel):
    """
    Classification returned by an LLM provider.

    Validated against the same enums the heuristic classifier uses, so an
    out-of-vocabulary work type or priority is rejected rather than trusted.
    """

    work_type: WorkType
    priority: Priority
    labels: list[str] = Field(default_factory=list)
    title: Optional[str] = Field(None, max_length=255)

    @field_validator("work_type", "priority", mode="before")
    @classmethod
    def lower(cls, v):
        return v.lower().strip() if isinstance(v, str) else v


class LLMServiceError(Exception):
    """Custom exception for LLM service errors."""

    pass


SYSTEM_PROMPT = """You are a software work-item classifier. Classify the user's request.

DO NOT use markdown formatting. Return ONLY a raw JSON object with no code blocks, no backticks, and no additional text."""


def build_user_prompt(text: str) -> str:
    return f"""Classify this request and respond with ONLY valid JSON (no markdown):

Request: {text}

Respond with this exact JSON format:
{{
  "work_type": "bug|documentation|testing|feature|infrastructure|research",
  "priority": "critical|high|medium|low",
  "labels": ["label1", "label2"],
  "title": "A short imperative title"
}}

Common labels: frontend, backend, performance, security, mobile"""


def parse_classification(content: Optional[str]) -> LLMClassification:
    """Parse and validate raw model output, tolerating a markdown code fence."""
    if not content:
        raise LLMServiceError("Empty content returned from LLM")

    content = content.strip()
    if content.startswith("```"):
        content = content.split("```")[1]
        if content.startswith("json"):
            content = content[4:]
        content = content.strip()

    try:
        return LLMClassification.model_validate(json.loads(content))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse LLM response: {str(e)}")
        raise LLMServiceError(f"Invalid JSON response from LLM: {str(e)}")
    except ValidationError as e:
        logger.error(f"LLM response does not match classification schema: {str(e)}")
        raise LLMServiceError(f"Invalid classification from LLM: {str(e)}")


class LLMService:
    """Abstract base for LLM services."""

    timeout: float = DEFAULT_LLM_TIMEOUT

    async def classify(self, text: str) -> LLMClassification:
        """
        Classify a natural-language request into a work item.

        Args:
            text: The user's request

        Returns:
            LLMClassification with work type, priority and labels

        Raises:
            LLMServiceError: If classification fails
        """
        raise NotImplementedError


class OpenAIService(LLMService):
    """
    Implementation of LLMService using OpenAI API.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        timeout: float = DEFAULT_LLM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = "https://api.openai.com/v1"
        self._transport = transport

    async def classify(self, text: str) -> LLMClassification:
        """Call OpenAI to classify the request"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": build_user_prompt(text)},
                        ],
                        "temperature": 0.1,
                        "max_tokens": 250,
                    },
                )
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"OpenAI API request failed: {str(e)}")
            raise LLMServiceError(f"OpenAI API error: {str(e)}")

        if not result.get("choices") or not result["choices"][0].get("message"):
            logger.error("Unexpected OpenAI response structure")
            raise LLMServiceError("Invalid response structure from OpenAI")

        return parse_classification(result["choices"][0]["message"].get("content"))


class AnthropicService(LLMService):
    """
    Implementation of LLMService using the Anthropic Messages API.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-latest",
        timeout: float = DEFAULT_LLM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = "https://api.anthropic.com/v1"
        self._transport = transport

    async def classify(self, text: str) -> LLMClassification:
        """Call Anthropic to classify the request"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    headers={
                        "x-api-key": self.api_key,
                        "anthropic-version": "2023-06-01",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "system": SYSTEM_PROMPT,
                        "messages": [{"role": "user", "content": build_user_prompt(text)}],
                        "max_tokens": 250,
                        "temperature": 0.1,
                    },
                )
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Anthropic API request failed: {str(e)}")
            raise LLMServiceError(f"Anthropic API error: {str(e)}")

        blocks = result.get("content") or []
        text_blocks = [block.get("text", "") for block in blocks if block.get("type") == "text"]
        if not text_blocks:
            logger.error("Unexpected Anthropic response structure")
            raise LLMServiceError("Invalid response structure from Anthropic")

        return parse_classification("".join(text_blocks))


def get_llm_service() -> Optional[LLMService]:
    """
    Factory function to get configured LLM service.

    Reads configuration from environment variables:
    - LLM_PROVIDER: "openai" or "anthropic"
    - OPENAI_API_KEY: API key for OpenAI
    - ANTHROPIC_API_KEY: API key for Anthropic
    - LLM_MODEL: optional model override
    - LLM_TIMEOUT_SECONDS: per-call timeout (default 10)

    Returns:
        LLMService instance or None if not configured
    """
    provider = os.getenv("LLM_PROVIDER", "").lower().strip()
    model = os.getenv("LLM_MODEL")
    timeout = float(os.getenv("LLM_TIMEOUT_SECONDS", DEFAULT_LLM_TIMEOUT))

    if provider == "openai":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            logger.warning("LLM_PROVIDER=openai but OPENAI_API_KEY not set")
            return None
        logger.info("Using OpenAI LLM service")
        if model:
            return OpenAIService(api_key, model=model, timeout=timeout)
        return OpenAIService(api_key, timeout=timeout)

    elif provider == "anthropic":
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            logger.warning("LLM_PROVIDER=anthropic but ANTHROPIC_API_KEY not set")
            return None
        logger.info("Using Anthropic LLM service")
        if model:
            return AnthropicService(api_key, model=model, timeout=timeout)
        return AnthropicService(api_key, timeout=timeout)

    elif provider:
        logger.warning(f"Unknown LLM_PROVIDER: {provider}")
        return None
    else:
        logger.info("LLM_PROVIDER not set, LLM classification disabled")
        return None
