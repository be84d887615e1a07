# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""LLM client OpenAI implementation."""

import logging

import httpx
from openai import OpenAI, OpenAIError

from rspecgen import template
from rspecgen.llm_client import SynthesisError

logger = logging.getLogger(__name__)

OPENAI_DEFAULT_MODEL: str = "gpt-4.1-mini"
OPENAI_HOSTS = frozenset({"openai", "openai.com", "www.openai.com", "api.openai.com"})

_COMPLETION_INSTRUCTIONS = (
    "Complete the response section of the prompt with RSpec code "
    "inside a ```ruby fenced block."
)


class OpenAIClient:
    """Complete the instruction template with OpenAI's Responses API.

    ``provider_url`` may name OpenAI itself (``openai``, ``api.openai.com``),
    in which case the SDK default base URL is used, or any OpenAI-compatible
    server such as a local vLLM instance.
    """

    def __init__(self, provider_url: str, model: str = OPENAI_DEFAULT_MODEL) -> None:
        self._provider_url = provider_url
        self._model = model
        self._client: OpenAI | None = None

    def generate_test(self, code: str) -> str:
        """Return the rendered prompt followed by the model's completion.

        Raises:
            SynthesisError: If the client cannot be built, the request fails,
                or the reply carries no output text.
        """
        prompt = template.render(code)
        try:
            client = self._client or self._connect()
            response = client.responses.create(
                model=self._model,
                instructions=_COMPLETION_INSTRUCTIONS,
                input=prompt,
            )
        except (OpenAIError, OSError, ValueError) as exc:
            logger.warning(
                f"OpenAI request failed (provider_url={self._provider_url} "
                f"model={self._model} error={exc})"
            )
            raise SynthesisError(str(exc)) from exc

        completion = (getattr(response, "output_text", None) or "").strip()
        if not completion:
            logger.warning(
                f"OpenAI reply had no output text (model={self._model} response={response!r})"
            )
            raise SynthesisError("OpenAI response does not contain generation content.")
        return f"{prompt}{completion}"

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _connect(self) -> OpenAI:
        self._client = OpenAI(base_url=_base_url(self._provider_url))
        return self._client


def _base_url(provider_url: str) -> str | None:
    """Map a provider URL onto an SDK base URL.

    Args:
        provider_url: Host, URL, or OpenAI alias typed by the user.

    Returns:
        Base URL with scheme, or ``None`` to keep the SDK default for OpenAI.

    Raises:
        ValueError: If the value is empty or has no host.
    """
    raw = provider_url.strip().rstrip("/")
    if not raw:
        raise ValueError("Invalid OpenAI provider URL: value is empty.")
    try:
        url = httpx.URL(raw if "://" in raw else f"https://{raw}")
    except httpx.InvalidURL as exc:
        raise ValueError(f"Invalid OpenAI provider URL: {provider_url}") from exc
    if not url.host:
        raise ValueError(f"Invalid OpenAI provider URL: {provider_url}")
    if url.host in OPENAI_HOSTS:
        return None
    return str(url)
