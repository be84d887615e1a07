# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Persistence for harvested training datasets."""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Protocol

from rspecgen.model import DatasetEntry

logger = logging.getLogger(__name__)

DEFAULT_DATASET_PATH = Path(__file__).resolve().parent / "datasets" / "dataset.json"


class DatasetPersistenceError(RuntimeError):
    """Represent a fatal dataset write failure."""


class DatasetWriter(Protocol):
    """Define the contract for persisting one dataset snapshot."""

    def write(self, entries: list[DatasetEntry]) -> Path:
        """Persist entries and return the written location."""


class JsonDatasetWriter:
    """Write datasets as a pretty-printed JSON array."""

    def __init__(self, output_path: Path = DEFAULT_DATASET_PATH) -> None:
        """Initialize writer.

        Args:
            output_path: Target JSON file; its directory is created on demand.
        """
        self._output_path = output_path

    def write(self, entries: list[DatasetEntry]) -> Path:
        """Write all entries, replacing any previous dataset.

        Args:
            entries: Entries in harvest order.

        Returns:
            Path of the written file.

        Raises:
            DatasetPersistenceError: If the directory or file cannot be written.
        """
        payload = [asdict(entry) for entry in entries]
        try:
            self._output_path.parent.mkdir(parents=True, exist_ok=True)
            self._output_path.write_text(
                json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as exc:
            logger.warning(
                f"Dataset write failed (output_path={self._output_path} error={exc})"
            )
            raise DatasetPersistenceError(str(exc)) from exc
        logger.info(
            f"Dataset saved (output_path={self._output_path} entries={len(entries)})"
        )
        return self._output_path
