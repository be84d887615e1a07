# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Naming conventions and policy switches shared across the pipeline."""

from dataclasses import dataclass
from typing import Literal

DuplicatePolicy = Literal["last_wins", "first_wins"]
ScaffoldPolicy = Literal["first_wins", "replace"]

DEFAULT_ROLE_MARKERS: tuple[tuple[str, str], ...] = (
    ("controllers", "controller"),
    ("models", "model"),
    ("services", "service"),
)


@dataclass(frozen=True)
class Conventions:
    """Describe how a source tree mirrors onto its test tree.

    Attributes:
        source_root: Path segment that roots the source tree.
        test_root: Path segment that roots the mirrored test tree.
        source_suffix: File suffix of source files.
        test_suffix: Replacement suffix of test artifacts.
        role_markers: Ordered ``(directory segment, role)`` pairs; first match wins.
        preamble: First line written to a freshly scaffolded artifact.
        duplicate_policy: Which test block wins when two claim one identity.
        scaffold_policy: Whether an existing artifact is kept or re-scaffolded.
    """

    source_root: str = "app"
    test_root: str = "spec"
    source_suffix: str = ".rb"
    test_suffix: str = "_spec.rb"
    role_markers: tuple[tuple[str, str], ...] = DEFAULT_ROLE_MARKERS
    preamble: str = "require 'rails_helper'"
    duplicate_policy: DuplicatePolicy = "last_wins"
    scaffold_policy: ScaffoldPolicy = "first_wins"

    def __post_init__(self) -> None:
        if not self.source_root or not self.test_root:
            raise ValueError("source_root and test_root must be non-empty.")
        if self.source_root == self.test_root:
            raise ValueError("source_root and test_root must differ.")
        if not self.source_suffix or not self.test_suffix:
            raise ValueError("source_suffix and test_suffix must be non-empty.")
        if self.duplicate_policy not in ("last_wins", "first_wins"):
            raise ValueError(f"Unsupported duplicate_policy: {self.duplicate_policy}")
        if self.scaffold_policy not in ("first_wins", "replace"):
            raise ValueError(f"Unsupported scaffold_policy: {self.scaffold_policy}")


DEFAULT_CONVENTIONS = Conventions()
