"""Tests for notifiers."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from lextrust.services.notifier import LoggingNotifier, NoopNotifier, WebhookNotifier, build_notifier


class TestNotifiers:
    """Tests for notifier implementations."""

    @pytest.mark.asyncio
    async def test_webhook_posts_event(self):
        """Test that the webhook receives the event and payload as JSON."""
        notifier = WebhookNotifier("https://alerts.example.test/hook", timeout=5)
        with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=MagicMock(status_code=204))) as mock_post:
            await notifier.notify("ingestion.quarantined", {"reason": "domain_not_allowlisted"})

        assert mock_post.await_args.kwargs["json"] == {
            "event": "ingestion.quarantined",
            "payload": {"reason": "domain_not_allowlisted"},
        }

    @pytest.mark.asyncio
    async def test_webhook_failure_is_swallowed(self):
        """Test that a broken alert channel never raises."""
        notifier = WebhookNotifier("https://alerts.example.test/hook", timeout=5)
        with patch("httpx.AsyncClient.post", new=AsyncMock(side_effect=httpx.ConnectError("refused"))):
            await notifier.notify("learning.policy_rolled_back", {})

    @pytest.mark.asyncio
    async def test_noop_and_logging(self):
        """Test that the local notifiers accept any event."""
        assert await NoopNotifier().notify("x", {}) is None
        assert await LoggingNotifier().notify("x", {"a": 1}) is None

    def test_build_notifier(self):
        """Test that the webhook is used only when configured."""
        with patch("lextrust.services.notifier.settings") as mock_settings:
            mock_settings.notifier.webhook_url = "https://alerts.example.test/hook"
            mock_settings.http_timeout = 60
            assert isinstance(build_notifier(), WebhookNotifier)
            mock_settings.notifier.webhook_url = ""
            assert isinstance(build_notifier(), LoggingNotifier)
