# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""LLM client abstractions."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class SynthesisError(RuntimeError):
    """Represent a transport or protocol failure of the inference collaborator."""


class LLMClient(Protocol):
    """Define test generation behavior for a provider client."""

    def generate_test(self, code: str) -> str:
        """Generate a templated reply for a method body.

        Args:
            code: Method source text, sent verbatim.

        Returns:
            Templated transcript whose ``### Response:`` section holds the test.

        Raises:
            SynthesisError: If the request fails or the reply is malformed.
        """

    def close(self) -> None:
        """Release network resources held by the client."""
