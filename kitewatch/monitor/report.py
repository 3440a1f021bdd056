"""
Plain-text diagnostic report for support requests.
"""

import platform
import time
from datetime import datetime, timezone

from kitewatch import __version__
from kitewatch.core.config import Settings
from .engine import BuildMonitor

_DIVIDER = "-" * 40
_STARTED_AT = time.monotonic()


def _uptime() -> str:
    minutes = int(time.monotonic() - _STARTED_AT) // 60
    return f"{minutes // 60}h {minutes % 60}m"


def generate_report(monitor: BuildMonitor, settings: Settings | None = None) -> str:
    """Summarize configuration, tracked builds and recent diagnostics. Never includes secrets."""
    lines = [
        "kitewatch Diagnostic Report",
        _DIVIDER,
        f"Version: {__version__}",
        f"Python: {platform.python_version()}",
        f"Platform: {platform.platform()}",
        f"Architecture: {platform.machine() or 'unknown'}",
        f"Process Uptime: {_uptime()}",
        "",
        "Configuration",
        _DIVIDER,
    ]

    if settings is not None:
        lines.append(f"API Token Configured: {'yes' if settings.buildkite_api_token else 'no'}")
        lines.append(f"Organization Configured: {'yes' if settings.buildkite_org else 'no'}")
        lines.append(f"Telegram Notifications: {'yes' if settings.telegram_enabled else 'no'}")
    lines.append(f"Polling Interval: {monitor.polling_interval}s")
    lines.append(f"Polling Active: {'yes' if monitor.is_polling else 'no'}")

    builds = monitor.builds
    lines += [
        "",
        "Build State",
        _DIVIDER,
        f"Total Tracked: {len(builds)}",
        f"Active: {len(monitor.active_builds)}",
        f"Completed: {len(monitor.completed_builds)}",
        f"Manually Added: {len(monitor.manual_refs)}",
    ]
    if monitor.last_update_time is not None:
        lines.append(f"Last Update: {monitor.last_update_time.isoformat()}")
    else:
        lines.append("Last Update: never")
    if monitor.error_state:
        lines.append(f"Current Error: {monitor.error_state}")

    lines += ["", "Recent Log (last 20)", _DIVIDER]
    entries = monitor.diagnostic_log.entries[-20:]
    if not entries:
        lines.append("(none)")
    else:
        lines.extend(entry.format_line() for entry in entries)

    lines += [
        "",
        _DIVIDER,
        f"Generated: {datetime.now(timezone.utc).isoformat()}",
    ]
    return "\n".join(lines)
