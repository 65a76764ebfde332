"""Multi-backend LLM summarization with ordered fallback.

Backends are tried in priority order (Gemini tiers first, then an
OpenAI-compatible endpoint when configured); the first non-empty answer wins.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from nemory.config import Settings, get_settings
from nemory.constants import (
    GEMINI_API_URL,
    GEMINI_SAFETY_CATEGORIES,
    GEMINI_SAFETY_THRESHOLD,
    MAX_OUTPUT_TOKENS,
)
from nemory.fallback import Strategy, first_success
from nemory.prompts import CONTEXT_INSTRUCTIONS, LENGTH_INSTRUCTIONS, SUMMARY_USER_PROMPT, get_system_prompt
from nemory.services.content_discovery import ContentContext

logger = logging.getLogger(__name__)


class SummaryGenerationError(Exception):
    """Raised when no backend could produce a summary."""


class BackendError(Exception):
    """One backend attempt failed. ``kind`` is quota, safety_block, transport or empty."""

    def __init__(self, backend: str, kind: str, message: str):
        self.backend = backend
        self.kind = kind
        super().__init__(f"{kind}: {message}")


@dataclass
class SummaryOptions:
    style: str = "executive"
    length: str = "medium"
    focus: list[str] = field(default_factory=lambda: ["tasks", "decisions"])
    include_action_items: bool = True
    include_priority: bool = False

    @classmethod
    def from_schedule(cls, schedule: Any) -> "SummaryOptions":
        return cls(
            style=schedule.summary_style or "executive",
            length=schedule.summary_length or "medium",
            focus=list(schedule.focus_areas or ["tasks", "decisions"]),
            include_action_items=bool(schedule.include_action_items),
            include_priority=bool(schedule.include_priority),
        )

    @property
    def max_output_tokens(self) -> int:
        return MAX_OUTPUT_TOKENS.get(self.length, MAX_OUTPUT_TOKENS["medium"])


@dataclass
class Prompt:
    system: str
    user: str
    max_output_tokens: int


def build_prompt(
    content: str,
    options: SummaryOptions,
    context: ContentContext = ContentContext.NORMAL,
    window_days: int | None = None,
) -> Prompt:
    """Assemble the system and user prompt for one summary request."""
    extra = []
    if options.include_action_items:
        extra.append("- End with an **Action Items** section listing open to-dos and follow-ups.")
    if options.include_priority:
        extra.append("- Mark each action item with a priority (high/medium/low).")

    context_instruction = CONTEXT_INSTRUCTIONS[ContentContext(context).value].format(
        window_days=window_days or "recent"
    )
    user = SUMMARY_USER_PROMPT.format(
        context_instruction=context_instruction,
        style=options.style,
        length_instruction=LENGTH_INSTRUCTIONS.get(options.length, LENGTH_INSTRUCTIONS["medium"]),
        focus=", ".join(options.focus) or "key points",
        extra_requirements="\n".join(extra) + ("\n" if extra else ""),
        content=content or "(no content)",
    )
    return Prompt(
        system=get_system_prompt(options.style),
        user=user,
        max_output_tokens=options.max_output_tokens,
    )


class SummaryBackend(Protocol):
    name: str

    async def generate(self, prompt: Prompt) -> str:
        ...


class GeminiBackend:
    """Google Generative Language REST API (``generateContent``)."""

    def __init__(self, client: httpx.AsyncClient, api_key: str, model: str, settings: Settings | None = None):
        self.client = client
        self.api_key = api_key
        self.model = model
        self.name = model
        self.settings = settings or get_settings()

    def _payload(self, prompt: Prompt) -> dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": prompt.system}]},
            "contents": [{"role": "user", "parts": [{"text": prompt.user}]}],
            "generationConfig": {
                "temperature": self.settings.llm_temperature,
                "topK": self.settings.llm_top_k,
                "topP": self.settings.llm_top_p,
                "maxOutputTokens": prompt.max_output_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": GEMINI_SAFETY_THRESHOLD}
                for category in GEMINI_SAFETY_CATEGORIES
            ],
        }

    async def generate(self, prompt: Prompt) -> str:
        url = GEMINI_API_URL.format(model=self.model)
        try:
            resp = await self.client.post(
                url,
                params={"key": self.api_key},
                json=self._payload(prompt),
                timeout=self.settings.llm_timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Gemini %s HTTP error: %s - %s", self.model, status, e.response.text[:500])
            kind = "quota" if status == 429 or "quota" in e.response.text.lower() else "transport"
            raise BackendError(self.name, kind, f"HTTP {status}") from e
        except httpx.HTTPError as e:
            logger.error("Gemini %s connection error: %s", self.model, type(e).__name__)
            raise BackendError(self.name, "transport", type(e).__name__) from e
        except ValueError as e:
            raise BackendError(self.name, "transport", "invalid JSON response") from e

        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise BackendError(self.name, "safety_block", block_reason)

        candidates = data.get("candidates") or []
        if not candidates:
            raise BackendError(self.name, "empty", "no candidates")

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts).strip()
        if not text:
            if candidate.get("finishReason") == "SAFETY":
                raise BackendError(self.name, "safety_block", "finishReason SAFETY")
            raise BackendError(self.name, "empty", "empty response")
        return text


class OpenAICompatibleBackend:
    """OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str,
        model: str,
        settings: Settings | None = None,
    ):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.name = f"openai:{model}"
        self.settings = settings or get_settings()

    async def generate(self, prompt: Prompt) -> str:
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            "temperature": self.settings.llm_temperature,
            "top_p": self.settings.llm_top_p,
            "max_tokens": prompt.max_output_tokens,
            "stream": False,
        }
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"}

        try:
            resp = await self.client.post(url, json=payload, headers=headers, timeout=self.settings.llm_timeout)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("LLM HTTP error: %s - %s", status, e.response.text[:500])
            raise BackendError(self.name, "quota" if status == 429 else "transport", f"HTTP {status}") from e
        except httpx.HTTPError as e:
            logger.error("LLM error: %s", e)
            raise BackendError(self.name, "transport", str(e) or type(e).__name__) from e
        except ValueError as e:
            raise BackendError(self.name, "transport", "invalid JSON response") from e

        choices = data.get("choices") or []
        if choices:
            choice = choices[0]
            content = (choice.get("message") or {}).get("content") or ""
            if content.strip():
                return content.strip()
            if choice.get("finish_reason") == "content_filter":
                raise BackendError(self.name, "safety_block", "content_filter")
        raise BackendError(self.name, "empty", "empty response")


class SummaryEngine:
    """Runs a prompt through the backend chain and returns the first usable summary."""

    def __init__(self, backends: list[SummaryBackend]):
        self.backends = backends

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: Settings | None = None) -> "SummaryEngine":
        settings = settings or get_settings()
        backends: list[SummaryBackend] = []
        if settings.gemini_api_key:
            backends.extend(
                GeminiBackend(client, settings.gemini_api_key, model, settings) for model in settings.gemini_models
            )
        if settings.openai_api_key:
            backends.append(
                OpenAICompatibleBackend(
                    client, settings.openai_api_key, settings.openai_base_url, settings.openai_model, settings
                )
            )
        return cls(backends)

    async def summarize(
        self,
        content: str,
        options: SummaryOptions,
        context: ContentContext = ContentContext.NORMAL,
        window_days: int | None = None,
    ) -> str:
        """Return summary text, or raise SummaryGenerationError once every backend failed."""
        if not self.backends:
            raise SummaryGenerationError("Summarization failed: no AI backend configured (missing model API key)")

        prompt = build_prompt(content, options, context, window_days)

        def attempt(backend: SummaryBackend) -> Strategy[str]:
            async def run() -> str:
                logger.info("Generating summary with %s", backend.name)
                return await backend.generate(prompt)

            return Strategy(backend.name, run)

        outcome = await first_success(
            [attempt(backend) for backend in self.backends],
            accept=lambda text: bool(text and text.strip()),
            catch=(BackendError,),
        )
        if outcome.succeeded:
            if outcome.attempts:
                logger.info("Summary generated by fallback backend %s", outcome.strategy)
            return outcome.value.strip()

        detail = "; ".join(f"{a.name}: {a.reason}" for a in outcome.attempts)
        raise SummaryGenerationError(f"Summarization failed: all AI backends failed ({detail})")
