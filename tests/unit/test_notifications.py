"""Unit tests for event notification."""

import logging
import pytest
from unittest.mock import AsyncMock, MagicMock

from coldvault.application.services import dispatch_events
from coldvault.core.events import FileCreated
from coldvault.core.value_objects import FileId
from coldvault.infrastructure.notifications import LoggingEventNotifier


def created_event():
    return FileCreated(FileId.generate(), owner_id="o", file_name="a.jpg", mime_type="image/jpeg", size_bytes=1)


class TestLoggingEventNotifier:
    """Test LoggingEventNotifier."""

    @pytest.mark.asyncio
    async def test_logs_each_event(self, caplog):
        event = created_event()
        with caplog.at_level(logging.INFO, logger="coldvault"):
            await LoggingEventNotifier().notify([event])
        assert f"FileCreated file_id={event.file_id}" in caplog.text


class TestDispatchEvents:
    """Test dispatch_events."""

    @pytest.mark.asyncio
    async def test_skips_without_notifier_or_events(self, mock_notifier):
        await dispatch_events(None, [created_event()])
        await dispatch_events(mock_notifier, [])
        mock_notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_notifier_failure_is_logged(self, caplog):
        notifier = MagicMock()
        notifier.notify = AsyncMock(side_effect=RuntimeError("webhook down"))
        await dispatch_events(notifier, [created_event()])
        assert "webhook down" in caplog.text
