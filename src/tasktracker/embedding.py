"""Embedding provider boundary.

The tracker depends only on the Embedder protocol. LiteLLMEmbedder is the
production implementation: every call routes through litellm.embedding()
with LiteLLM's built-in retry (num_retries, exponential backoff) and a
per-call timeout. Any provider failure — missing key, network error,
timeout, malformed response — surfaces as ProviderError.
"""

from __future__ import annotations

import logging
import os
from typing import Protocol

import litellm

from tasktracker.errors import ProviderError

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    def embed(self, text: str, *, timeout: float | None = None) -> list[float]:
        """Return the embedding of *text*; raise ProviderError on failure."""
        ...


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "huggingface": None,
}


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format. A bare model
            name is treated as an OpenAI model.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


class LiteLLMEmbedder:
    """Embed text with any LiteLLM-supported embedding model.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        timeout: Default per-call timeout in seconds (None = provider default).
        num_retries: Retries on transient provider errors, handled by LiteLLM.
        api_base: Optional endpoint override (e.g. a remote Ollama host).
    """

    def __init__(
        self,
        model: str,
        *,
        timeout: float | None = None,
        num_retries: int = 3,
        api_base: str | None = None,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self.num_retries = num_retries
        self.api_base = api_base

    def embed(self, text: str, *, timeout: float | None = None) -> list[float]:
        try:
            validate_api_key(self.model)
        except EnvironmentError as exc:
            raise ProviderError(str(exc)) from exc

        kwargs: dict = {
            "model": self.model,
            "input": [text],
            "num_retries": self.num_retries,
        }
        effective_timeout = timeout if timeout is not None else self.timeout
        if effective_timeout is not None:
            kwargs["timeout"] = effective_timeout
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = litellm.embedding(**kwargs)
        except Exception as exc:
            raise ProviderError(f"embedding model '{self.model}' failed: {exc}") from exc

        try:
            vector = [float(v) for v in response.data[0]["embedding"]]
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
            raise ProviderError(
                f"embedding model '{self.model}' returned a malformed response: {exc}"
            ) from exc

        if not vector:
            raise ProviderError(f"embedding model '{self.model}' returned an empty vector")

        logger.debug("embedded %d chars with %s -> %d dims", len(text), self.model, len(vector))
        return vector
