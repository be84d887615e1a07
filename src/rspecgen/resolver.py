# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Map source files onto their mirrored spec files and RSpec titles."""

import logging
import re
from pathlib import Path

from rspecgen.config import DEFAULT_CONVENTIONS, Conventions

logger = logging.getLogger(__name__)

_WORD_DELIMITERS = re.compile(r"[_\-]")
NAMESPACE_SEPARATOR = "::"


class ResolutionError(RuntimeError):
    """Represent a source path that cannot be mapped to a spec artifact."""


def resolve_test_path(
    source_path: Path, conventions: Conventions = DEFAULT_CONVENTIONS
) -> Path:
    """Map a source file path to its mirrored test artifact path.

    The last source-root segment is replaced with the test-root segment and the
    source suffix with the test suffix, e.g. ``app/services/billing.rb`` becomes
    ``spec/services/billing_spec.rb``. Everything before the source root is kept.

    Args:
        source_path: Source file path, absolute or relative.
        conventions: Tree and suffix conventions.

    Returns:
        Mirrored test artifact path.

    Raises:
        ResolutionError: If the path lacks the source root or the source suffix.
    """
    prefix, relative = _split(
        path=source_path, root=conventions.source_root, suffix=conventions.source_suffix
    )
    stem = relative[-1][: -len(conventions.source_suffix)]
    return prefix.joinpath(
        conventions.test_root, *relative[:-1], f"{stem}{conventions.test_suffix}"
    )


def resolve_source_path(
    test_path: Path, conventions: Conventions = DEFAULT_CONVENTIONS
) -> Path:
    """Map a test artifact path back to the source file it mirrors.

    Args:
        test_path: Test artifact path.
        conventions: Tree and suffix conventions.

    Returns:
        Source file path.

    Raises:
        ResolutionError: If the path lacks the test root or the test suffix.
    """
    prefix, relative = _split(
        path=test_path, root=conventions.test_root, suffix=conventions.test_suffix
    )
    stem = relative[-1][: -len(conventions.test_suffix)]
    return prefix.joinpath(
        conventions.source_root, *relative[:-1], f"{stem}{conventions.source_suffix}"
    )


def classify(
    source_path: Path, conventions: Conventions = DEFAULT_CONVENTIONS
) -> str | None:
    """Return the role of a source file from its directory segments.

    Only directories beneath the source root are inspected when the root is
    present, so a project living under e.g. ``/home/models`` is not misread.

    Args:
        source_path: Source file path.
        conventions: Ordered role markers.

    Returns:
        First matching role, or ``None`` when no marker is present.
    """
    parts = source_path.parts
    if conventions.source_root in parts:
        root_index = len(parts) - 1 - parts[::-1].index(conventions.source_root)
        directories = parts[root_index + 1 : -1]
    else:
        directories = parts[:-1]
    for marker, role in conventions.role_markers:
        if marker in directories:
            return role
    return None


def derive_title(
    source_path: Path, conventions: Conventions = DEFAULT_CONVENTIONS
) -> str:
    """Derive the namespaced constant name described by a spec file.

    ``app/controllers/admin/user_sessions_controller.rb`` becomes
    ``Admin::UserSessionsController``; the leading role directory is dropped so
    the marker does not appear both as path segment and namespace.

    Args:
        source_path: Source file path.
        conventions: Tree conventions and role markers.

    Returns:
        Namespaced constant name.

    Raises:
        ResolutionError: If the path lacks the source root or the source suffix.
    """
    _, relative = _split(
        path=source_path,
        root=conventions.source_root,
        suffix=conventions.source_suffix,
    )
    segments = [*relative[:-1], relative[-1][: -len(conventions.source_suffix)]]
    title = NAMESPACE_SEPARATOR.join(_camelize(segment) for segment in segments)
    for marker, _role in conventions.role_markers:
        duplicated = f"{_camelize(marker)}{NAMESPACE_SEPARATOR}"
        if title.startswith(duplicated):
            return title[len(duplicated) :]
    return title


def title_header(
    source_path: Path, conventions: Conventions = DEFAULT_CONVENTIONS
) -> str:
    """Build the opening ``RSpec.describe`` line for a source file.

    Args:
        source_path: Source file path.
        conventions: Tree conventions and role markers.

    Returns:
        Opening block declaration, without trailing newline.

    Raises:
        ResolutionError: If the path cannot be resolved or has no known role.
    """
    role = classify(source_path, conventions)
    if role is None:
        logger.warning(f"Unsupported file role (source_path={source_path})")
        raise ResolutionError(
            f"RSpec generation is not supported for this file type: {source_path}"
        )
    return f"RSpec.describe {derive_title(source_path, conventions)}, type: :{role} do"


def _split(path: Path, root: str, suffix: str) -> tuple[Path, tuple[str, ...]]:
    """Split a path around its last ``root`` segment.

    Returns:
        Prefix before the root and the parts after it.
    """
    parts = path.parts
    if root not in parts:
        raise ResolutionError(f"Path is not inside a '{root}' directory: {path}")
    root_index = len(parts) - 1 - parts[::-1].index(root)
    relative = parts[root_index + 1 :]
    if not relative:
        raise ResolutionError(f"Path has no file below '{root}': {path}")
    file_name = relative[-1]
    if not file_name.endswith(suffix) or file_name == suffix:
        raise ResolutionError(f"Path does not end with '{suffix}': {path}")
    return Path(*parts[:root_index]), relative


def _camelize(segment: str) -> str:
    return "".join(
        word[:1].upper() + word[1:] for word in _WORD_DELIMITERS.split(segment) if word
    )
