# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Turn method bodies into RSpec text through an inference collaborator."""

import logging
import re

from rspecgen.llm_client import LLMClient, SynthesisError
from rspecgen.notifier import LoggingNotifier, Notifier
from rspecgen.template import RESPONSE_MARKER

logger = logging.getLogger(__name__)

END_OF_SEQUENCE_MARKER = "<|end_of_text|>"
SUBJECT_PLACEHOLDER = "described_class"
SUBJECT_INSTANCE = "described_class.new"

_FENCED_RESPONSE = re.compile(
    rf"{re.escape(RESPONSE_MARKER)}\s*```(?:ruby)?[ \t]*\n?(?P<content>.*?)```",
    re.DOTALL,
)
_OPEN_RESPONSE = re.compile(
    rf"{re.escape(RESPONSE_MARKER)}\s*(?P<content>.*?)"
    rf"(?:{re.escape(END_OF_SEQUENCE_MARKER)}|###|\Z)",
    re.DOTALL,
)
_PLACEHOLDER = re.compile(rf"\b{SUBJECT_PLACEHOLDER}\b(?!\.new\b)")


class SynthesisClient:
    """Request test text for one method and post-process the reply."""

    def __init__(self, llm_client: LLMClient, notifier: Notifier | None = None) -> None:
        """Initialize synthesis client.

        Args:
            llm_client: Provider client returning templated transcripts.
            notifier: Channel for transport failures.
        """
        self._llm_client = llm_client
        self._notifier = notifier or LoggingNotifier()

    def synthesize(self, method_body: str) -> str | None:
        """Generate RSpec text for a method body.

        Args:
            method_body: Method source text, sent verbatim.

        Returns:
            Normalized test text, or ``None`` when the collaborator failed or
            its reply had no usable response section.
        """
        try:
            reply = self._llm_client.generate_test(method_body)
        except SynthesisError as exc:
            self._notifier.error(f"Error fetching RSpec from inference service: {exc}")
            return None
        content = extract_response(reply)
        if content is None:
            logger.warning(f"Reply had no response section (reply_length={len(reply)})")
            return None
        return normalize_subject(content)


def extract_response(reply: str) -> str | None:
    """Extract test text from a templated reply.

    A fenced block right after the response marker is preferred; otherwise
    everything after the marker up to the end-of-sequence marker, the next
    ``###`` section, or the end of the reply is taken.

    Args:
        reply: Templated transcript.

    Returns:
        Stripped test text, or ``None`` when nothing usable follows the marker.
    """
    match = _FENCED_RESPONSE.search(reply) or _OPEN_RESPONSE.search(reply)
    if match is None:
        return None
    content = match.group("content").strip()
    return content or None


def normalize_subject(test_text: str) -> str:
    """Rewrite bare ``described_class`` references into instance construction.

    References already followed by ``.new`` are left alone.
    """
    return _PLACEHOLDER.sub(SUBJECT_INSTANCE, test_text)
