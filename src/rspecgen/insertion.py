# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Scaffold spec files and splice generated blocks into them."""

import contextlib
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from rspecgen.config import DEFAULT_CONVENTIONS, Conventions
from rspecgen.extractor import TestArtifact, TestBlockExtractor

logger = logging.getLogger(__name__)

_CLOSING_TOKEN = re.compile(r"(?<![\w.:])end\s*\Z")


class InsertionError(RuntimeError):
    """Represent a spec file that could not be read, scaffolded or updated."""


@dataclass(frozen=True)
class InsertionResult:
    """Describe one successful splice.

    Attributes:
        test_path: Updated spec file.
        offset: Character offset where the block was spliced in.
        content: Full file content after the splice.
    """

    test_path: Path
    offset: int
    content: str


class InsertionEngine:
    """Create spec files and insert blocks before their final ``end``."""

    def __init__(self, conventions: Conventions = DEFAULT_CONVENTIONS) -> None:
        self._conventions = conventions

    def scaffold(self, test_path: Path, title_header: str) -> bool:
        """Write a minimal spec file when needed.

        With the ``first_wins`` scaffold policy an existing file is left
        untouched; with ``replace`` it is overwritten.

        Args:
            test_path: Spec file path.
            title_header: Opening ``RSpec.describe ... do`` line.

        Returns:
            True when a file was written.

        Raises:
            InsertionError: If directories or the file cannot be created.
        """
        if test_path.exists() and self._conventions.scaffold_policy == "first_wins":
            return False
        content = f"{self._conventions.preamble}\n\n{title_header}\nend\n"
        try:
            test_path.parent.mkdir(parents=True, exist_ok=True)
            _write_atomic(test_path, content)
        except OSError as exc:
            logger.warning(f"Failed to create spec file (test_path={test_path} error={exc})")
            raise InsertionError(f"Failed to create RSpec file: {exc}") from exc
        logger.info(f"Spec file scaffolded (test_path={test_path})")
        return True

    def load(self, test_path: Path, extractor: TestBlockExtractor) -> TestArtifact:
        """Read a spec file and index its blocks.

        Raises:
            InsertionError: If the file is missing or unreadable.
        """
        text = _read(test_path)
        return TestArtifact(
            path=test_path,
            text=text,
            blocks=tuple(extractor.index(text).values()),
        )

    def insert(self, test_path: Path, new_block_text: str) -> InsertionResult:
        """Splice a block immediately before the file's final ``end``.

        Everything before the final ``end`` is kept byte for byte and the
        closing token is re-appended after the block. The file is replaced
        atomically, so a failed write leaves the previous content in place.

        Args:
            test_path: Existing spec file.
            new_block_text: Block text to insert.

        Returns:
            Insertion summary.

        Raises:
            InsertionError: If the file is missing, has no closing ``end``, or
                cannot be written.
        """
        text = _read(test_path)
        match = _CLOSING_TOKEN.search(text)
        if match is None:
            logger.warning(f"Spec file has no closing end (test_path={test_path})")
            raise InsertionError(f"Spec file has no closing 'end': {test_path}")
        prefix = text[: match.start()]
        separator = "" if not prefix or prefix.endswith("\n") else "\n"
        block = new_block_text.rstrip("\n")
        updated = f"{prefix}{separator}{block}\n{match.group(0)}"
        try:
            _write_atomic(test_path, updated)
        except OSError as exc:
            logger.warning(f"Failed to update spec file (test_path={test_path} error={exc})")
            raise InsertionError(f"Failed to update RSpec file: {exc}") from exc
        return InsertionResult(
            test_path=test_path, offset=len(prefix) + len(separator), content=updated
        )


def _read(test_path: Path) -> str:
    if not test_path.exists():
        raise InsertionError(f"Spec file not found: {test_path}")
    try:
        return test_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(f"Failed to read spec file (test_path={test_path} error={exc})")
        raise InsertionError(f"Failed to read RSpec file: {exc}") from exc


def _write_atomic(path: Path, content: str) -> None:
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    try:
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(path)
    except OSError:
        with contextlib.suppress(OSError):
            tmp_path.unlink(missing_ok=True)
        raise
