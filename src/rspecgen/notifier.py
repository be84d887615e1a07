# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""User-visible notification channel."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Report progress and non-fatal failures to the user."""

    def info(self, message: str) -> None:
        """Report an informational message."""

    def error(self, message: str) -> None:
        """Report a failure the user should see."""


class LoggingNotifier:
    """Route notifications to the module logger."""

    def info(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.error(message)
