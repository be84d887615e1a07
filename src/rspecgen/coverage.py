# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Identity normalization and coverage matching for spec blocks.

Both the generation flow (skip covered methods) and the dataset builder
(harvest covered methods) go through :func:`find_block`, so "what was skipped"
and "what was harvested" can never disagree.
"""

import logging
import re
from collections.abc import Mapping

from rspecgen.extractor import TestBlockRecord

logger = logging.getLogger(__name__)

SELECTOR_PREFIX_PATTERN = r"(?:#|\.|(?:POST|GET|PUT|PATCH|DELETE) )"
IDENTITY_PATTERN = r"[A-Za-z_]\w*[?!=]?"

_LABEL = re.compile(
    rf"(?P<prefix>{SELECTOR_PREFIX_PATTERN})?(?P<identity>{IDENTITY_PATTERN})",
    re.IGNORECASE,
)


def normalize_identity(label: str) -> str | None:
    """Normalize a describe label or method name to its identity.

    Args:
        label: Label such as ``#charge``, ``.build``, ``POST create`` or ``charge``.

    Returns:
        Lower-cased identity without selector prefix, or ``None`` when the label
        does not follow the recognized convention.
    """
    match = _LABEL.fullmatch(label.strip())
    if match is None:
        return None
    return match.group("identity").lower()


def find_block(
    index: Mapping[str, TestBlockRecord], method_name: str
) -> TestBlockRecord | None:
    """Return the block covering ``method_name``, if any.

    Keys are compared after normalization, so an index keyed by ``#foo`` covers
    a query for ``foo`` and vice versa.

    Args:
        index: Claimed-identity index of a spec file.
        method_name: Method identity to look up.

    Returns:
        Matching block, or ``None`` when the method is not covered.
    """
    wanted = normalize_identity(method_name)
    if wanted is None:
        return None
    block = index.get(wanted)
    if block is not None:
        return block
    for key, candidate in index.items():
        if normalize_identity(key) == wanted:
            return candidate
    return None


def is_covered(index: Mapping[str, TestBlockRecord], method_name: str) -> bool:
    """Check whether a spec block already claims ``method_name``."""
    return find_block(index, method_name) is not None
