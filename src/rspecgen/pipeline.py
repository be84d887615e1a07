# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Generate specs for the method or class under a text selection."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from rspecgen.config import DEFAULT_CONVENTIONS, Conventions
from rspecgen.coverage import IDENTITY_PATTERN, is_covered
from rspecgen.extractor import (
    MethodExtractor,
    MethodNotFoundError,
    MethodRecord,
    SourceUnit,
    TestBlockExtractor,
)
from rspecgen.extractors import RSpecBlockExtractor, RubyMethodExtractor
from rspecgen.insertion import InsertionEngine, InsertionError
from rspecgen.notifier import LoggingNotifier, Notifier
from rspecgen.resolver import ResolutionError, classify, resolve_test_path, title_header
from rspecgen.synthesis import SynthesisClient

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["inserted", "covered", "no_synthesis", "failed", "not_found"]

_CONTAINER_SELECTION = re.compile(r"(?:(?:class|module)\s+)?[A-Z]")
_METHOD_SELECTION = re.compile(rf"(?:def\s+)?(?:self\.)?(?P<name>{IDENTITY_PATTERN})")


class ValidationError(ValueError):
    """Represent input rejected before any side effect."""


@dataclass(frozen=True)
class Selection:
    """Represent the caller's active document and selected span.

    Attributes:
        path: Source file path.
        text: Full document text.
        start: Selection start offset into ``text``.
        end: Selection end offset into ``text`` (exclusive).
    """

    path: Path
    text: str
    start: int
    end: int

    @property
    def selected_text(self) -> str:
        return self.text[self.start : self.end].strip()


@dataclass(frozen=True)
class MethodOutcome:
    """Represent what happened to one method."""

    name: str
    status: OutcomeStatus
    detail: str | None = None


@dataclass(frozen=True)
class GenerationReport:
    """Summarize one generation run.

    Attributes:
        source_path: Source file of the selection.
        test_path: Resolved spec file, ``None`` when resolution failed.
        scaffolded: Whether the spec file was created by this run.
        outcomes: Per-method outcomes in processing order.
        error: Message of the error that stopped the run before any method.
    """

    source_path: Path
    test_path: Path | None = None
    scaffolded: bool = False
    outcomes: list[MethodOutcome] = field(default_factory=list)
    error: str | None = None

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)


class GenerationPipeline:
    """Drive resolve, extract, match, synthesize and insert for a selection."""

    def __init__(
        self,
        synthesis_client: SynthesisClient,
        notifier: Notifier | None = None,
        conventions: Conventions = DEFAULT_CONVENTIONS,
        method_extractor: MethodExtractor | None = None,
        block_extractor: TestBlockExtractor | None = None,
        insertion_engine: InsertionEngine | None = None,
    ) -> None:
        """Initialize pipeline collaborators.

        Args:
            synthesis_client: Client producing test text for uncovered methods.
            notifier: User-visible notification channel.
            conventions: Tree conventions and policies.
            method_extractor: Source method extractor.
            block_extractor: Spec block extractor.
            insertion_engine: Spec file writer.
        """
        self._synthesis_client = synthesis_client
        self._notifier = notifier or LoggingNotifier()
        self._conventions = conventions
        self._method_extractor = method_extractor or RubyMethodExtractor()
        self._block_extractor = block_extractor or RSpecBlockExtractor(
            duplicate_policy=conventions.duplicate_policy
        )
        self._insertion_engine = insertion_engine or InsertionEngine(conventions)

    def run(self, selection: Selection) -> GenerationReport:
        """Generate specs for the selected method, or every method of a class.

        Methods are handled one at a time in declaration order, so inserted
        blocks appear in the spec file in the same order.

        Args:
            selection: Active document and selected span.

        Returns:
            Run report. Errors are notified and recorded, never raised.
        """
        try:
            selected = _validate(selection)
        except ValidationError as exc:
            self._notifier.error(str(exc))
            return GenerationReport(source_path=selection.path, error=str(exc))

        try:
            unit = SourceUnit(
                path=selection.path,
                text=selection.text,
                role=classify(selection.path, self._conventions),
            )
            test_path = resolve_test_path(unit.path, self._conventions)
            header = title_header(unit.path, self._conventions)
        except ResolutionError as exc:
            self._notifier.error(str(exc))
            return GenerationReport(source_path=selection.path, error=str(exc))

        try:
            scaffolded = self._insertion_engine.scaffold(test_path, header)
        except InsertionError as exc:
            self._notifier.error(str(exc))
            return GenerationReport(
                source_path=unit.path, test_path=test_path, error=str(exc)
            )
        if scaffolded:
            self._notifier.info(f"RSpec file created: {test_path}")

        report = GenerationReport(
            source_path=unit.path, test_path=test_path, scaffolded=scaffolded
        )
        if _CONTAINER_SELECTION.match(selected):
            methods = list(self._method_extractor.extract_all(unit.text).values())
            if not methods:
                self._notifier.info(f"No methods found in {unit.path}")
        else:
            method_name = _METHOD_SELECTION.match(selected).group("name")  # type: ignore[union-attr]
            try:
                methods = [self._method_extractor.extract(method_name, unit.text)]
            except MethodNotFoundError as exc:
                self._notifier.error(f"{exc} in {unit.path}")
                report.outcomes.append(
                    MethodOutcome(name=method_name, status="not_found", detail=str(exc))
                )
                return report

        for method in methods:
            report.outcomes.append(self._process_method(method, test_path))
        logger.info(
            f"Generation completed (source_path={unit.path} "
            f"inserted={report.count('inserted')} covered={report.count('covered')} "
            f"failed={report.count('failed')})"
        )
        return report

    def _process_method(self, method: MethodRecord, test_path: Path) -> MethodOutcome:
        """Run one check, synthesize and insert cycle.

        The spec file is re-read for every method so blocks inserted earlier in
        the same run count as coverage.
        """
        try:
            artifact = self._insertion_engine.load(test_path, self._block_extractor)
        except InsertionError as exc:
            self._notifier.error(f"Error processing method '{method.name}': {exc}")
            return MethodOutcome(name=method.name, status="failed", detail=str(exc))

        index = {block.identity: block for block in artifact.blocks}
        if is_covered(index, method.name):
            self._notifier.info(f"RSpec for method '{method.name}' already exists.")
            return MethodOutcome(name=method.name, status="covered")

        test_text = self._synthesis_client.synthesize(method.body)
        if test_text is None:
            return MethodOutcome(name=method.name, status="no_synthesis")

        try:
            self._insertion_engine.insert(test_path, test_text)
        except InsertionError as exc:
            self._notifier.error(f"Error processing method '{method.name}': {exc}")
            return MethodOutcome(name=method.name, status="failed", detail=str(exc))
        self._notifier.info(f"RSpec added for method '{method.name}'")
        return MethodOutcome(name=method.name, status="inserted")


def _validate(selection: Selection) -> str:
    """Return the stripped selection text.

    Raises:
        ValidationError: If the span is out of range or selects nothing usable.
    """
    if not 0 <= selection.start <= selection.end <= len(selection.text):
        raise ValidationError(
            f"Selection span is out of range: {selection.start}:{selection.end}"
        )
    selected = selection.selected_text
    if not selected:
        raise ValidationError("No method or class selected.")
    if not _CONTAINER_SELECTION.match(selected) and not _METHOD_SELECTION.match(selected):
        raise ValidationError(f"Selection is not a method or class name: {selected}")
    return selected
