"""Logging event notifier.

ONLY event logging - writes committed domain events to the application log.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from typing import Sequence

from ...core.events import FileEvent

logger = logging.getLogger(__name__)


class LoggingEventNotifier:
    """Event notifier that logs each event at INFO level."""

    def __init__(self, level: int = logging.INFO):
        self._level = level

    async def notify(self, events: Sequence[FileEvent]) -> None:
        for event in events:
            logger.log(
                self._level,
                f"{event.event_type} file_id={event.file_id} at={event.occurred_at.isoformat()}"
            )
