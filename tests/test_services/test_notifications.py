"""
Tests for notification sinks and message templates.
"""

import pytest


class TestNotificationMessage:
    """Tests for notification_message function."""

    @pytest.mark.parametrize(
        "state, expected",
        [
            ("scheduled", "main is scheduled"),
            ("running", "main started running"),
            ("passed", "main passed"),
            ("failed", "main failed"),
            ("blocked", "main is blocked"),
            ("canceled", "main canceled"),
            ("skipped", "main was skipped"),
            ("not_run", "main did not run"),
            ("waiting_failed", "main waiting failed"),
        ],
    )
    def test_state_templates(self, make_build, state, expected):
        from kitewatch.services.notifications import notification_message

        assert notification_message(make_build(state=state)) == expected

    def test_fallback_uses_display_name(self, make_build):
        """Test the generic message for states without a template."""
        from kitewatch.services.notifications import notification_message

        assert notification_message(make_build(state="canceling")) == "main - Canceling"
        assert notification_message(make_build(state="on_hold")) == "main - On Hold"


class TestShouldNotify:
    """Tests for should_notify function."""

    def test_same_state_never_notifies(self, make_build):
        from kitewatch.services.notifications import should_notify

        build = make_build(state="running")
        assert should_notify(build.state, build) is False

    def test_any_change_notifies_by_default(self, make_build):
        from kitewatch.services.notifications import should_notify
        from kitewatch.models import BuildState

        assert should_notify(BuildState.parse("scheduled"), make_build(state="running")) is True

    def test_completed_only(self, make_build):
        """Test that completed_only ignores transitions into active states."""
        from kitewatch.services.notifications import should_notify
        from kitewatch.models import BuildState

        scheduled = BuildState.parse("scheduled")
        running = BuildState.parse("running")

        assert should_notify(scheduled, make_build(state="running"), completed_only=True) is False
        assert should_notify(running, make_build(state="failed"), completed_only=True) is True


class TestTelegramNotificationSink:
    """Tests for TelegramNotificationSink class."""

    @pytest.mark.asyncio
    async def test_sends_message_to_topic(self, mock_bot):
        from kitewatch.services.notifications import TelegramNotificationSink

        sink = TelegramNotificationSink(mock_bot, chat_id=-100123, message_thread_id=42)
        await sink.notify("Deploy", "main", "main passed")

        mock_bot.send_message.assert_awaited_once()
        kwargs = mock_bot.send_message.call_args.kwargs
        assert kwargs["chat_id"] == -100123
        assert kwargs["message_thread_id"] == 42
        assert kwargs["text"] == "Deploy\nmain\n\nmain passed"

    @pytest.mark.asyncio
    async def test_no_thread_id_omitted(self, mock_bot):
        from kitewatch.services.notifications import TelegramNotificationSink

        sink = TelegramNotificationSink(mock_bot, chat_id=555)
        await sink.notify("Deploy", "main", "main failed")

        assert "message_thread_id" not in mock_bot.send_message.call_args.kwargs

    @pytest.mark.asyncio
    async def test_errors_propagate(self, mock_bot):
        """Test that delivery errors reach the caller."""
        from kitewatch.services.notifications import TelegramNotificationSink

        mock_bot.send_message.side_effect = RuntimeError("Forbidden")
        sink = TelegramNotificationSink(mock_bot, chat_id=555)

        with pytest.raises(RuntimeError):
            await sink.notify("Deploy", "main", "main failed")


class TestLogNotificationSink:

    @pytest.mark.asyncio
    async def test_logs_notification(self, caplog):
        import logging
        from kitewatch.services.notifications import LogNotificationSink

        with caplog.at_level(logging.INFO, logger="kitewatch.services.notifications"):
            await LogNotificationSink().notify("Deploy", "main", "main passed")

        assert "main passed" in caplog.text
