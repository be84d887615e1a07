# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""LLM client Ollama implementation."""

import logging
import ollama

from rspecgen import template
from rspecgen.llm_client import SynthesisError

logger = logging.getLogger(__name__)


class OllamaClient:
    """Generate tests using an Ollama provider endpoint."""

    def __init__(self, provider_url: str, model: str) -> None:
        """Initialize client configuration.

        Args:
            provider_url: Ollama endpoint base URL.
            model: Model identifier passed to Ollama.
        """
        self._provider_url = provider_url
        self._model = model
        self._client = ollama.Client(host=provider_url)

    def generate_test(self, code: str) -> str:
        """Generate a templated reply with Ollama generate API.

        The instruction template is sent raw so a model fine-tuned on it
        continues the response section; the prompt is prepended to the
        completion to restore the full transcript.

        Args:
            code: Method source text.

        Returns:
            Prompt followed by the generated completion.

        Raises:
            SynthesisError: If request fails or response has no content.
        """
        prompt = template.render(code)
        try:
            response = self._client.generate(
                model=self._model,
                prompt=prompt,
                raw=True,
                stream=False,
            )
        except (ollama.RequestError, ollama.ResponseError, OSError, ValueError) as exc:
            logger.warning(
                f"Ollama request failed (provider_url={self._provider_url} "
                f"model={self._model} error={exc})"
            )
            raise SynthesisError(str(exc)) from exc

        content = _extract_response_content(response)
        if not content:
            logger.warning(
                f"Ollama response did not contain generated content "
                f"(provider_url={self._provider_url} model={self._model} response={response!r})"
            )
            raise SynthesisError("Ollama response does not contain generation content.")
        return f"{prompt}{content}"

    def close(self) -> None:
        self._client.close()


def _extract_response_content(response: object) -> str:
    """Extract generation content from Ollama response object.

    Args:
        response: Ollama response object, typically mapping-like.

    Returns:
        Response content string, or empty string if unavailable.
    """
    if isinstance(response, dict):
        content = response.get("response")
        if isinstance(content, str):
            return content.strip()
    content_obj = getattr(response, "response", None)
    if isinstance(content_obj, str):
        return content_obj.strip()
    return ""
