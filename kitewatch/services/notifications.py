"""
Notification sinks for build state transitions.
"""

from typing import Protocol

from telegram import Bot

from kitewatch.core.logging import get_logger
from kitewatch.models import Build, BuildState, StateKind

logger = get_logger(__name__)


class NotificationSink(Protocol):
    """Anything that can show the user a notification."""

    async def notify(self, title: str, subtitle: str, body: str) -> None:
        ...


_MESSAGE_TEMPLATES = {
    StateKind.SCHEDULED: "{branch} is scheduled",
    StateKind.RUNNING: "{branch} started running",
    StateKind.PASSED: "{branch} passed",
    StateKind.FAILED: "{branch} failed",
    StateKind.BLOCKED: "{branch} is blocked",
    StateKind.CANCELED: "{branch} canceled",
    StateKind.SKIPPED: "{branch} was skipped",
    StateKind.NOT_RUN: "{branch} did not run",
    StateKind.WAITING_FAILED: "{branch} waiting failed",
}


def notification_message(build: Build) -> str:
    """Body text for a build that just entered its current state."""
    template = _MESSAGE_TEMPLATES.get(build.state.kind)
    if template is None:
        return f"{build.branch} - {build.state.display_name}"
    return template.format(branch=build.branch)


def should_notify(old_state: BuildState, build: Build, completed_only: bool = False) -> bool:
    if old_state == build.state:
        return False
    if completed_only:
        return build.is_completed
    return True


class LogNotificationSink:
    """Writes notifications to the application log."""

    async def notify(self, title: str, subtitle: str, body: str) -> None:
        logger.info("Notification: %s (%s) - %s", title, subtitle, body)


class TelegramNotificationSink:
    """Sends notifications to a Telegram chat."""

    def __init__(self, bot: Bot, chat_id: int, message_thread_id: int | None = None):
        self._bot = bot
        self._chat_id = chat_id
        self._message_thread_id = message_thread_id

    @classmethod
    def from_token(cls, token: str, chat_id: int, message_thread_id: int | None = None) -> "TelegramNotificationSink":
        return cls(Bot(token), chat_id, message_thread_id)

    async def notify(self, title: str, subtitle: str, body: str) -> None:
        kwargs = {
            "chat_id": self._chat_id,
            "text": f"{title}\n{subtitle}\n\n{body}",
        }
        if self._message_thread_id:
            kwargs["message_thread_id"] = self._message_thread_id

        await self._bot.send_message(**kwargs)
