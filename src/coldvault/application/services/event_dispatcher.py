"""Event dispatcher service.

ONLY event forwarding - hands committed domain events to the configured
notifier; notifier failures are logged and never fail the operation.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from typing import Optional, Sequence

from ...core.events import FileEvent
from ...core.protocols import EventNotifier

logger = logging.getLogger(__name__)


async def dispatch_events(notifier: Optional[EventNotifier], events: Sequence[FileEvent]) -> None:
    """Forward events to ``notifier`` if one is configured."""
    if notifier is None or not events:
        return
    try:
        await notifier.notify(list(events))
    except Exception as e:
        logger.error(f"Event notifier failed for {len(events)} event(s): {e}")
