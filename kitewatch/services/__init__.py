# Services module - external API integrations
from .buildkite import BuildkiteClient
from .notifications import LogNotificationSink, NotificationSink, TelegramNotificationSink
from .urls import parse_build_url

__all__ = [
    "BuildkiteClient",
    "LogNotificationSink",
    "NotificationSink",
    "TelegramNotificationSink",
    "parse_build_url",
]
