# app/agent/completion.py

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import OpenAI

from app.config import Settings, settings
from app.core.exceptions import ConfigurationError, InvalidProviderResponse

logger = logging.getLogger(__name__)

TEST_REPLY_TEMPLATE = 'AI Response: I received your message "{content}". This is a test response.'
FALLBACK_REPLY_TEMPLATE = 'AI Response: I received your message "{content}". (Fallback response due to API error)'

# internal role -> provider role
PROVIDER_ROLES = {
    "user": "user",
    "assistant": "assistant",
}


def _role_value(role: Any) -> str:
    return getattr(role, "value", role)


def _last_user_content(history: Sequence[Dict[str, Any]]) -> str:
    for turn in reversed(history):
        if _role_value(turn["role"]) == "user":
            return turn["content"]
    return ""


def token_param_for(model: str) -> str:
    """Reasoning-style models take `max_completion_tokens` instead of `max_tokens`."""
    return "max_completion_tokens" if model.startswith("o") or "gpt-5" in model else "max_tokens"


class CompletionOrchestrator:
    """
    Turns a conversation history into exactly one assistant reply.

    Transport and provider failures degrade to a deterministic fallback reply.
    A missing API key outside test mode is a ConfigurationError, and a
    response without a completion is an InvalidProviderResponse; both propagate.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-3.5-turbo",
        temperature: float = 0.7,
        max_tokens: int = 500,
        timeout: float = 30.0,
        test_mode: bool = False,
        system_prompt: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Any = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.test_mode = test_mode
        self.system_prompt = system_prompt
        self.base_url = base_url
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings = settings, **overrides) -> "CompletionOrchestrator":
        options = dict(
            api_key=config.OPENAI_API_KEY,
            model=config.OPENAI_MODEL,
            temperature=config.OPENAI_TEMPERATURE,
            max_tokens=config.OPENAI_MAX_TOKENS,
            timeout=config.OPENAI_TIMEOUT_SECONDS,
            test_mode=config.CHAT_TEST_MODE,
            system_prompt=config.CHAT_SYSTEM_PROMPT,
            base_url=config.OPENAI_BASE_URL,
        )
        options.update(overrides)
        return cls(**options)

    def ensure_configured(self) -> None:
        if self.test_mode:
            return
        if not self.api_key:
            logger.error("Completion provider is not configured: OPENAI_API_KEY is not set")
            raise ConfigurationError("OPENAI_API_KEY environment variable is not set")

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            # Retries are disabled: one failure goes straight to the fallback reply
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def build_messages(self, history: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
        provider_messages = []

        if self.system_prompt:
            provider_messages.append({"role": "system", "content": self.system_prompt})

        for turn in history:
            provider_messages.append({
                "role": PROVIDER_ROLES[_role_value(turn["role"])],
                "content": turn["content"],
            })
        return provider_messages

    def complete(self, history: Sequence[Dict[str, Any]]) -> str:
        """Return one reply for `history` (oldest first, ending with the user turn)."""
        self.ensure_configured()

        last_content = _last_user_content(history)
        if self.test_mode:
            return TEST_REPLY_TEMPLATE.format(content=last_content)

        completion_args = {
            "model": self.model,
            "messages": self.build_messages(history),
            "temperature": self.temperature,
            token_param_for(self.model): self.max_tokens,
        }

        logger.info("Calling completion provider: model=%s history=%d", self.model, len(history))
        try:
            response = self.client.chat.completions.create(**completion_args)
        except (openai.APIError, ValueError) as e:
            # ValueError: a 2xx body that is not valid JSON (e.g. a gateway HTML page)
            logger.warning(
                "Completion provider failed, using fallback reply: kind=%s status=%s history=%d",
                type(e).__name__,
                getattr(e, "status_code", None),
                len(history),
            )
            return FALLBACK_REPLY_TEMPLATE.format(content=last_content)

        return self._extract_content(response)

    def _extract_content(self, response: Any) -> str:
        choices = getattr(response, "choices", None)
        if not choices:
            logger.error("Completion provider returned no choices")
            raise InvalidProviderResponse("Invalid response format from completion provider: no choices")

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            logger.error("Completion provider returned a choice without message content")
            raise InvalidProviderResponse("Invalid response format from completion provider: no message content")
        return content


@lru_cache(maxsize=1)
def get_orchestrator() -> CompletionOrchestrator:
    """FastAPI dependency; one shared orchestrator so the OpenAI client pools connections."""
    return CompletionOrchestrator.from_settings(settings)
