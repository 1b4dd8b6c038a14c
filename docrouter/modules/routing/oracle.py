"""Oracle — the schema-constrained LLM capability behind every agent.

Agents never build prompts or talk to a provider SDK. They hand an
``OracleRequest`` (task + content + hint + response schema) to an ``Oracle``
and get a JSON object back. ``LLMOracle`` is the production adapter; tests
plug in a scripted oracle.

Providers supported:
  - google (Gemini Flash / Pro)
  - anthropic (Claude Sonnet / Haiku via direct API)
"""

from __future__ import annotations

import asyncio
import json
import time
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field

from docrouter.core.config import settings
from docrouter.modules.routing.errors import (
    OracleConfigurationError,
    OracleError,
    OracleResponseError,
    OracleTimeoutError,
)

logger = structlog.get_logger()

# Default models per provider
DEFAULT_MODELS: dict[str, str] = {
    "google": "gemini-2.5-flash",
    "anthropic": "claude-sonnet-4-20250514",
}

_PROVIDER_LABELS: dict[str, str] = {
    "google": "Gemini",
    "anthropic": "Anthropic",
}

# Directory where prompt templates live
_PROMPTS_DIR = Path(__file__).parent / "agents" / "prompts"


class OracleTask(str, Enum):
    CLASSIFY = "classify"
    EXTRACT_EMAIL = "extract_email"
    EXTRACT_JSON = "extract_json"
    SUMMARIZE = "summarize"


class OracleRequest(BaseModel):
    """Structured request handed to an oracle. Phrasing is the adapter's job."""

    task: OracleTask
    content: str
    hint: str | None = None
    response_schema: dict[str, Any] = Field(default_factory=dict)
    context: dict[str, str] = Field(default_factory=dict)


def response_schema_for(model: type[BaseModel]) -> dict[str, Any]:
    """JSON schema (camelCase keys) the oracle must answer with."""
    return model.model_json_schema(by_alias=True)


def strip_code_fences(raw_text: str) -> str:
    """Strip markdown code fences (```json ... ```) from LLM response."""
    text = raw_text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        text = text[first_newline + 1:] if first_newline != -1 else ""
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """Parse LLM output as a JSON object, stripping code fences if present."""
    try:
        data = json.loads(strip_code_fences(raw_text))
    except json.JSONDecodeError as e:
        raise OracleResponseError(f"Oracle returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise OracleResponseError(
            f"Oracle returned {type(data).__name__}, expected a JSON object"
        )
    return data


class Oracle(ABC):
    """Black-box capability mapping unstructured text to a structured result."""

    def check_configured(self) -> None:
        """Raise OracleConfigurationError when the oracle cannot be used."""

    @abstractmethod
    async def generate(self, request: OracleRequest) -> dict[str, Any]:
        raise NotImplementedError

    async def classify(
        self,
        content: str,
        hint: str | None,
        response_schema: dict[str, Any],
    ) -> dict[str, Any]:
        return await self.generate(OracleRequest(
            task=OracleTask.CLASSIFY,
            content=content,
            hint=hint,
            response_schema=response_schema,
        ))

    async def extract_structured(
        self,
        task: OracleTask,
        content: str,
        response_schema: dict[str, Any],
        **context: str,
    ) -> dict[str, Any]:
        return await self.generate(OracleRequest(
            task=task,
            content=content,
            response_schema=response_schema,
            context=context,
        ))


class LLMOracle(Oracle):
    """Oracle backed by a hosted LLM.

    Provides:
      - LLM client initialization (Gemini / Anthropic), lazily
      - Prompt loading from the agents' prompts/ directory
      - Bounded timeout per call (timeout is an OracleError)
      - JSON parsing with code-fence stripping
    """

    def __init__(
        self,
        provider: str | None = None,
        model: str | None = None,
        timeout_seconds: float | None = None,
        temperature: float | None = None,
    ) -> None:
        self.provider = provider or settings.llm_provider
        self.model = model or settings.llm_model or DEFAULT_MODELS.get(self.provider, "")
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.oracle_timeout_seconds
        )
        self.temperature = temperature if temperature is not None else settings.oracle_temperature

        # Lazy-initialized clients
        self._gemini_client: Any = None
        self._anthropic_client: Any = None
        self._prompts: dict[OracleTask, str] = {}

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _api_key(self) -> str:
        if self.provider == "anthropic":
            return settings.anthropic_api_key
        return settings.google_ai_api_key

    def check_configured(self) -> None:
        if self.provider not in DEFAULT_MODELS:
            raise OracleConfigurationError(f"Unsupported provider: {self.provider}")
        if not self._api_key():
            raise OracleConfigurationError(
                f"{_PROVIDER_LABELS[self.provider]} API key not configured"
            )

    # ------------------------------------------------------------------
    # Prompt loading
    # ------------------------------------------------------------------

    @staticmethod
    def load_prompt(filename: str) -> str:
        """Load a prompt template from the prompts/ directory."""
        path = _PROMPTS_DIR / filename
        if not path.exists():
            raise FileNotFoundError(f"Prompt file not found: {path}")
        return path.read_text(encoding="utf-8").strip()

    def _system_prompt(self, request: OracleRequest) -> str:
        if request.task not in self._prompts:
            self._prompts[request.task] = self.load_prompt(f"{request.task.value}.txt")
        schema = json.dumps(request.response_schema, indent=2)
        return (
            f"{self._prompts[request.task]}\n\n"
            f"Respond with a single JSON object matching this JSON Schema. "
            f"No markdown, no commentary.\n{schema}"
        )

    @staticmethod
    def _user_content(request: OracleRequest) -> str:
        if request.task is OracleTask.CLASSIFY:
            return f"Input Type Hint: {request.hint or 'unknown'}\nContent: {request.content}"
        if request.task is OracleTask.SUMMARIZE:
            intent = request.context.get("intent", "general")
            return f"Extract key information from this {intent} content:\n\n{request.content}"
        return request.content

    # ------------------------------------------------------------------
    # LLM client builders (lazy)
    # ------------------------------------------------------------------

    def _get_gemini_client(self) -> Any:
        """Get or create the Gemini client."""
        if self._gemini_client is None:
            from google import genai

            self._gemini_client = genai.Client(api_key=settings.google_ai_api_key)
        return self._gemini_client

    def _get_anthropic_client(self) -> Any:
        """Get or create the Anthropic client."""
        if self._anthropic_client is None:
            import anthropic

            self._anthropic_client = anthropic.Anthropic(api_key=settings.anthropic_api_key)
        return self._anthropic_client

    # ------------------------------------------------------------------
    # Unified call
    # ------------------------------------------------------------------

    async def generate(self, request: OracleRequest) -> dict[str, Any]:
        self.check_configured()
        call = self._call_gemini if self.provider == "google" else self._call_anthropic
        try:
            system_prompt = self._system_prompt(request)
            user_content = self._user_content(request)
            raw_text = await asyncio.wait_for(
                asyncio.to_thread(call, system_prompt, user_content, request.task.value),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Oracle call timed out",
                task=request.task.value,
                provider=self.provider,
                timeout_seconds=self.timeout_seconds,
            )
            raise OracleTimeoutError(
                f"{self.provider} did not answer within {self.timeout_seconds:g}s"
            ) from e
        except OracleError:
            raise
        except Exception as e:
            raise OracleError(f"{self.provider} call failed: {e}") from e

        return parse_json_object(raw_text)

    def _call_gemini(self, system_prompt: str, user_content: str, task: str) -> str:
        """Call Gemini and return the raw response text."""
        from google.genai import types

        client = self._get_gemini_client()
        start = time.time()

        response = client.models.generate_content(
            model=self.model,
            contents=user_content,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=self.temperature,
                response_mime_type="application/json",
            ),
        )

        duration_ms = int((time.time() - start) * 1000)
        usage = response.usage_metadata
        logger.info(
            "Oracle Gemini call",
            task=task,
            model=self.model,
            input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
            duration_ms=duration_ms,
        )

        if not response.text:
            raise OracleResponseError("Gemini returned an empty response")
        return response.text

    def _call_anthropic(self, system_prompt: str, user_content: str, task: str) -> str:
        """Call Anthropic and return the raw response text."""
        client = self._get_anthropic_client()
        start = time.time()

        response = client.messages.create(
            model=self.model,
            max_tokens=4096,
            temperature=self.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_content}],
        )

        duration_ms = int((time.time() - start) * 1000)
        usage = response.usage
        logger.info(
            "Oracle Anthropic call",
            task=task,
            model=self.model,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            duration_ms=duration_ms,
        )

        if not response.content:
            raise OracleResponseError("Anthropic returned an empty response")
        return response.content[0].text
