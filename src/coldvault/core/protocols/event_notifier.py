"""Event notifier protocol.

ONLY outbound event contract - receives the domain events collected by a
command once its work is committed.

Following maximum separation architecture - one file = one purpose.
"""

from typing import Sequence
from typing_extensions import Protocol, runtime_checkable

from ..events import FileEvent


@runtime_checkable
class EventNotifier(Protocol):

    async def notify(self, events: Sequence[FileEvent]) -> None:
        ...
