"""Extractor interfaces and DTOs for source and spec text."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class SourceUnit:
    """Represent one source file read for a single invocation.

    Attributes:
        path: Absolute source file path.
        text: Raw file text.
        role: Classified role (``controller``, ``model``...), or ``None``.
    """

    path: Path
    text: str
    role: str | None


@dataclass(frozen=True)
class MethodRecord:
    """Represent one method extracted from source text.

    Attributes:
        name: Method identifier, without any ``self.`` receiver.
        body: Text from the ``def`` token through the end of the method.
        singleton: Whether the method was declared as ``def self.name``.
    """

    name: str
    body: str
    singleton: bool = False


@dataclass(frozen=True)
class TestBlockRecord:
    """Represent one recognized ``describe`` block in a spec file.

    Attributes:
        label: Quoted describe argument as written, e.g. ``#charge``.
        identity: Label with any selector prefix removed, e.g. ``charge``.
        text: Block text from ``describe`` through its matching ``end``.
    """

    __test__ = False

    label: str
    identity: str
    text: str


@dataclass(frozen=True)
class TestArtifact:
    """Represent a spec file and its recognized blocks in file order."""

    __test__ = False

    path: Path
    text: str
    blocks: tuple[TestBlockRecord, ...] = field(default_factory=tuple)


class MethodNotFoundError(LookupError):
    """Represent a method name that does not occur in source text."""

    def __init__(self, method_name: str, suggestions: list[str] | None = None) -> None:
        self.method_name = method_name
        self.suggestions = suggestions or []
        message = f"Method '{method_name}' not found"
        if self.suggestions:
            message += f" (did you mean: {', '.join(self.suggestions)}?)"
        super().__init__(message)


class MethodExtractor(Protocol):
    """Language-specific method boundary extraction contract."""

    def extract(self, method_name: str, source_text: str) -> MethodRecord:
        """Return the first method named ``method_name``.

        Raises:
            MethodNotFoundError: If no definition of the method exists.
        """

    def extract_all(self, source_text: str) -> dict[str, MethodRecord]:
        """Return every method in declaration order, keyed by name."""


class TestBlockExtractor(Protocol):
    """Test-framework-specific block indexing contract."""

    __test__ = False

    def index(self, test_text: str) -> dict[str, TestBlockRecord]:
        """Return recognized blocks keyed by their claimed identity."""
