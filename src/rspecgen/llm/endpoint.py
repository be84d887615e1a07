# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""LLM client for a hosted inference endpoint."""

import logging

import httpx

from rspecgen.llm_client import SynthesisError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS: float = 120.0


class EndpointClient:
    """Generate tests by posting method bodies to an inference endpoint.

    The endpoint accepts ``{"input": <method body>}`` and answers with
    ``{"result": <templated transcript>}``.
    """

    def __init__(
        self,
        provider_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize client configuration.

        Args:
            provider_url: Endpoint URL receiving the POST request.
            timeout: Request timeout in seconds.
            client: Optional preconfigured HTTP client.
        """
        self._provider_url = provider_url
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def __enter__(self) -> "EndpointClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client unless it was supplied by the caller."""
        if self._owns_client:
            self._client.close()

    def generate_test(self, code: str) -> str:
        """Generate a templated reply via the inference endpoint.

        Args:
            code: Method source text.

        Returns:
            Templated transcript returned by the endpoint.

        Raises:
            SynthesisError: If the request fails or the reply has no result.
        """
        try:
            response = self._client.post(
                self._provider_url, json={"input": code}, timeout=self._timeout
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                f"Endpoint request failed (provider_url={self._provider_url} error={exc})"
            )
            raise SynthesisError(str(exc)) from exc

        content = _extract_response_content(payload)
        if not content:
            logger.warning(
                f"Endpoint response did not contain a result "
                f"(provider_url={self._provider_url} response={payload!r})"
            )
            raise SynthesisError("Endpoint response does not contain a result.")
        return content


def _extract_response_content(payload: object) -> str:
    """Extract the transcript from a decoded endpoint reply.

    Args:
        payload: Decoded JSON body.

    Returns:
        Transcript string, or empty string if unavailable.
    """
    if isinstance(payload, dict):
        content = payload.get("result")
        if isinstance(content, str):
            return content
    return ""
