# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Domain models for training dataset artifacts."""

from dataclasses import dataclass

from rspecgen import template


@dataclass(frozen=True)
class DatasetEntry:
    """Represent one (method, spec block) training example.

    Attributes:
        instruction: Fixed task description.
        input: Method source text.
        output: Matching ``describe`` block text.
        text: Four-section template joining instruction, input and output.
    """

    instruction: str
    input: str
    output: str
    text: str

    @classmethod
    def from_pair(cls, method_code: str, test_block: str) -> "DatasetEntry":
        """Build an entry from copies of a method body and its spec block."""
        return cls(
            instruction=template.INSTRUCTION,
            input=method_code,
            output=test_block,
            text=template.render(method_code, response=test_block),
        )
