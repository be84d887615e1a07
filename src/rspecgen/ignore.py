# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Exclude files matched by a project's .gitignore rules from the dataset walk."""

import logging
from pathlib import Path, PurePosixPath

import pathspec

logger = logging.getLogger(__name__)


class IgnoreMatcher:
    """Match project-relative files against every ``.gitignore`` in the tree.

    Each ``.gitignore`` is compiled on its own and applied to paths relative to
    its directory. Files deeper in the tree are consulted later, so their rules,
    negations included, take precedence over their ancestors'.
    """

    def __init__(self, scopes: list[tuple[PurePosixPath, pathspec.GitIgnoreSpec]]) -> None:
        self._scopes = scopes

    @classmethod
    def empty(cls) -> "IgnoreMatcher":
        return cls(scopes=[])

    @classmethod
    def from_project_root(cls, project_root: Path) -> "IgnoreMatcher":
        """Compile every ``.gitignore`` found beneath ``project_root``.

        Raises:
            OSError: If a .gitignore file cannot be read.
            UnicodeDecodeError: If a .gitignore file is not valid UTF-8.
        """
        ignore_files = sorted(
            project_root.rglob(".gitignore"), key=lambda path: (len(path.parts), path)
        )
        scopes = [
            (
                PurePosixPath(ignore_file.parent.relative_to(project_root).as_posix()),
                pathspec.GitIgnoreSpec.from_lines(
                    ignore_file.read_text(encoding="utf-8").splitlines()
                ),
            )
            for ignore_file in ignore_files
        ]
        logger.debug(f"Loaded .gitignore rules (project_root={project_root} files={len(scopes)})")
        return cls(scopes=scopes)

    def matches(self, relative_path: str) -> bool:
        """Tell whether a project-relative POSIX file path is ignored."""
        path = PurePosixPath(relative_path)
        ignored = False
        for base, spec in self._scopes:
            if base not in path.parents:
                continue
            verdict = spec.check_file(path.relative_to(base).as_posix()).include
            if verdict is not None:
                ignored = verdict
        return ignored
