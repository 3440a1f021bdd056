"""
Application factory and main entry point.
"""

import sys
import asyncio

from kitewatch.core.config import Settings, settings
from kitewatch.core.logging import setup_logging, get_logger
from kitewatch.monitor import BuildMonitor
from kitewatch.services.buildkite import BuildkiteClient
from kitewatch.services.notifications import (
    LogNotificationSink,
    NotificationSink,
    TelegramNotificationSink,
)
from kitewatch.state.diagnostics import DiagnosticLog
from kitewatch.web.server import start_web_server

logger = get_logger(__name__)


def create_notifier(config: Settings) -> NotificationSink:
    """Telegram when a bot token and chat are configured, otherwise the log."""
    if config.telegram_enabled:
        return TelegramNotificationSink.from_token(config.tg_token, config.notify_chat, config.notify_topic)
    return LogNotificationSink()


def create_monitor(config: Settings) -> BuildMonitor:
    """Create and configure the BuildMonitor."""
    monitor = BuildMonitor(
        BuildkiteClient(timeout=config.request_timeout),
        create_notifier(config),
        DiagnosticLog(max_entries=config.diagnostic_log_size),
        polling_interval=config.polling_interval,
        page_size=config.page_size,
        completed_cap=config.completed_cap,
        manual_fetch_concurrency=config.manual_fetch_concurrency,
        notify_completed_only=config.notify_completed_only,
    )
    monitor.configure(config.buildkite_api_token, config.buildkite_org)
    return monitor


async def main() -> None:
    """Main application entry point."""
    setup_logging(settings.log_level)

    if not settings.has_credentials:
        logger.error("BUILDKITE_API_TOKEN and BUILDKITE_ORG must be set!")
        sys.exit(1)

    logger.info("Starting kitewatch for organization %s...", settings.buildkite_org)
    monitor = create_monitor(settings)

    runner = await start_web_server(monitor, settings, settings.http_host, settings.http_port)
    started = await monitor.start_monitoring()
    if not started:
        logger.warning("Monitoring did not start: %s", monitor.error_state)

    # Keep running until cancelled
    stop_signal = asyncio.Event()
    try:
        await stop_signal.wait()
    except asyncio.CancelledError:
        pass
    finally:
        # Graceful shutdown
        if monitor.is_polling:
            monitor.stop_monitoring()
        await monitor.flush_notifications()
        await runner.cleanup()
