import logging

import anthropic
from anthropic import AsyncAnthropic

from vegscout.exceptions.custom import AIErrorKind, AIProviderError
from vegscout.mappers.json_extract import parse_json_payload
from vegscout.strategy import attempt_in_order

logger = logging.getLogger(__name__)

DEFAULT_MODELS = (
    "claude-3-5-haiku-latest",
    "claude-sonnet-4-20250514",
    "claude-3-7-sonnet-latest",
)


def classify_error(exc: Exception) -> AIProviderError:
    """Map an Anthropic SDK exception onto the provider error taxonomy."""
    if isinstance(exc, AIProviderError):
        return exc
    if isinstance(exc, anthropic.APITimeoutError):
        return AIProviderError(AIErrorKind.timeout, str(exc))
    if isinstance(exc, anthropic.RateLimitError):
        return AIProviderError(AIErrorKind.rate_limited, str(exc), status_code=429)
    if isinstance(exc, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        return AIProviderError(AIErrorKind.invalid_credentials, str(exc), status_code=exc.status_code)
    if isinstance(exc, anthropic.APIStatusError):
        text = str(exc).lower()
        if exc.status_code == 413 or "too long" in text or "too many tokens" in text:
            return AIProviderError(AIErrorKind.payload_too_large, str(exc), status_code=exc.status_code)
        return AIProviderError(AIErrorKind.unavailable, str(exc), status_code=exc.status_code)
    if isinstance(exc, anthropic.APIConnectionError):
        return AIProviderError(AIErrorKind.unavailable, str(exc))
    return AIProviderError(AIErrorKind.unavailable, str(exc) or type(exc).__name__)


def _is_terminal(exc: Exception) -> bool:
    return isinstance(exc, AIProviderError) and exc.kind in (
        AIErrorKind.payload_too_large,
        AIErrorKind.invalid_credentials,
    )


class ClaudeService:
    def __init__(
        self,
        api_key: str,
        models: list[str] | tuple[str, ...] = DEFAULT_MODELS,
        timeout: float = 30.0,
    ):
        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._models = tuple(models) or DEFAULT_MODELS

    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float | None = None,
    ) -> str:
        """Return the reply text from the first model that answers.

        Raises AIProviderError once the model list is exhausted, or right away
        for payload-too-large and credential errors.
        """

        async def _call(model: str) -> str:
            kwargs = {
                "model": model,
                "max_tokens": max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            }
            if system:
                kwargs["system"] = system
            if temperature is not None:
                kwargs["temperature"] = temperature
            try:
                response = await self._client.messages.create(**kwargs)
            except Exception as exc:
                raise classify_error(exc) from exc

            text = "".join(
                getattr(block, "text", "") for block in (response.content or [])
            ).strip()
            if not text:
                raise AIProviderError(AIErrorKind.malformed_response, f"Empty reply from {model}")
            return text

        return await attempt_in_order(self._models, _call, is_terminal=_is_terminal)

    async def analyze(
        self,
        system_prompt: str | None,
        user_prompt: str,
        *,
        max_tokens: int = 4096,
        temperature: float | None = None,
    ) -> dict | list | None:
        """Complete and parse the JSON payload. Best-effort, never raises."""
        try:
            text = await self.complete(
                user_prompt,
                system=system_prompt,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except AIProviderError as exc:
            logger.warning("Claude call failed (%s): %s", exc.kind, exc.message)
            return None
        return self._try_parse_json(text)

    async def analyze_strict(
        self,
        system_prompt: str | None,
        user_prompt: str,
        *,
        max_tokens: int = 4096,
        temperature: float | None = None,
    ) -> dict | list:
        """Like ``analyze`` but raises AIProviderError, including on malformed JSON."""
        text = await self.complete(
            user_prompt, system=system_prompt, max_tokens=max_tokens, temperature=temperature,
        )
        parsed = self._try_parse_json(text)
        if parsed is None:
            raise AIProviderError(AIErrorKind.malformed_response, "Reply contained no JSON")
        return parsed

    @staticmethod
    def _try_parse_json(text: str) -> dict | list | None:
        return parse_json_payload(text)
