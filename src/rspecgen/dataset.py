# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Harvest (method, spec block) pairs from a Rails project."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from rspecgen.config import DEFAULT_CONVENTIONS, Conventions
from rspecgen.coverage import find_block
from rspecgen.extractor import MethodExtractor, TestBlockExtractor
from rspecgen.extractors import RSpecBlockExtractor, RubyMethodExtractor
from rspecgen.ignore import IgnoreMatcher
from rspecgen.model import DatasetEntry
from rspecgen.resolver import ResolutionError, resolve_test_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatasetError:
    """Represent a recoverable failure for one file."""

    file_path: str
    message: str


@dataclass(frozen=True)
class DatasetResult:
    """Represent the outcome of one dataset walk.

    Attributes:
        entries: Harvested entries in traversal order.
        errors: Recoverable per-file failures.
        files_scanned: Eligible source files that were processed.
        limit_reached: Whether the walk stopped at the entry limit.
    """

    entries: list[DatasetEntry] = field(default_factory=list)
    errors: list[DatasetError] = field(default_factory=list)
    files_scanned: int = 0
    limit_reached: bool = False


class DatasetBuilder:
    """Walk a source tree and pair methods with their covering spec blocks."""

    def __init__(
        self,
        conventions: Conventions = DEFAULT_CONVENTIONS,
        method_extractor: MethodExtractor | None = None,
        block_extractor: TestBlockExtractor | None = None,
        progress_batch_size: int = 50,
    ) -> None:
        """Initialize dataset builder.

        Args:
            conventions: Tree conventions and policies.
            method_extractor: Source method extractor.
            block_extractor: Spec block extractor.
            progress_batch_size: Emit a progress log line every N files.

        Raises:
            ValueError: If ``progress_batch_size`` is not greater than zero.
        """
        if progress_batch_size <= 0:
            raise ValueError("progress_batch_size must be > 0")
        self._conventions = conventions
        self._method_extractor = method_extractor or RubyMethodExtractor()
        self._block_extractor = block_extractor or RSpecBlockExtractor(
            duplicate_policy=conventions.duplicate_policy
        )
        self._progress_batch_size = progress_batch_size

    def build(self, project_root: Path, limit: int | None = None) -> DatasetResult:
        """Collect dataset entries beneath ``<project_root>/<source_root>``.

        Files are visited in sorted order. The walk stops as soon as ``limit``
        entries exist, checked after every entry and after every file.

        Args:
            project_root: Project root holding the source and test trees.
            limit: Maximum number of entries, or ``None`` for no limit.

        Returns:
            Harvested entries and recoverable errors.

        Raises:
            ValueError: If ``limit`` is not greater than zero.
        """
        if limit is not None and limit <= 0:
            raise ValueError("limit must be > 0")
        result = DatasetResult()
        source_root = project_root / self._conventions.source_root
        if not source_root.is_dir():
            logger.warning(f"Source root does not exist (source_root={source_root})")
            result.errors.append(
                DatasetError(file_path=str(source_root), message="Source root not found")
            )
            return result

        try:
            matcher = IgnoreMatcher.from_project_root(project_root)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Failed to read .gitignore files (error={exc})")
            result.errors.append(DatasetError(file_path=".gitignore", message=str(exc)))
            matcher = IgnoreMatcher.empty()

        files_scanned = 0
        limit_reached = False
        for file_path in sorted(source_root.rglob(f"*{self._conventions.source_suffix}")):
            if _limit_reached(result.entries, limit):
                limit_reached = True
                break
            relative_path = file_path.relative_to(project_root).as_posix()
            if not file_path.is_file() or matcher.matches(relative_path):
                continue
            self._collect(file_path, relative_path, result, limit)
            files_scanned += 1
            if files_scanned % self._progress_batch_size == 0:
                logger.info(
                    f"Dataset walk progress (files={files_scanned} "
                    f"entries={len(result.entries)} limit={limit})"
                )
        limit_reached = limit_reached or _limit_reached(result.entries, limit)

        logger.info(
            f"Dataset walk completed (project_root={project_root} files={files_scanned} "
            f"entries={len(result.entries)} errors={len(result.errors)})"
        )
        return DatasetResult(
            entries=result.entries,
            errors=result.errors,
            files_scanned=files_scanned,
            limit_reached=limit_reached,
        )

    def _collect(
        self,
        file_path: Path,
        relative_path: str,
        result: DatasetResult,
        limit: int | None,
    ) -> None:
        """Append entries for every covered method of one source file."""
        try:
            source_text = file_path.read_text(encoding="utf-8")
            test_path = resolve_test_path(file_path, self._conventions)
        except (OSError, UnicodeDecodeError, ResolutionError) as exc:
            logger.warning(
                f"Skipping file due to read/resolve failure (file_path={relative_path} error={exc})"
            )
            result.errors.append(DatasetError(file_path=relative_path, message=str(exc)))
            return
        if not test_path.is_file():
            return
        try:
            test_text = test_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                f"Skipping spec file due to read failure (test_path={test_path} error={exc})"
            )
            result.errors.append(DatasetError(file_path=str(test_path), message=str(exc)))
            return

        index = self._block_extractor.index(test_text)
        for name, method in self._method_extractor.extract_all(source_text).items():
            block = find_block(index, name)
            if block is not None:
                result.entries.append(DatasetEntry.from_pair(method.body, block.text))
            if _limit_reached(result.entries, limit):
                return


def _limit_reached(entries: list[DatasetEntry], limit: int | None) -> bool:
    return limit is not None and len(entries) >= limit
