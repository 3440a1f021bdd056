"""
HTTP handlers exposing the tracked builds and user actions.
"""

from aiohttp import web

from kitewatch.core.config import Settings
from kitewatch.core.exceptions import DuplicateBuildError, InvalidBuildURLError
from kitewatch.core.logging import get_logger
from kitewatch.monitor import BuildMonitor
from kitewatch.monitor.report import generate_report

logger = get_logger(__name__)

MONITOR_KEY = web.AppKey("monitor", BuildMonitor)
SETTINGS_KEY = web.AppKey("settings", Settings)


def _status(monitor: BuildMonitor) -> dict:
    return {
        "polling": monitor.is_polling,
        "polling_interval": monitor.polling_interval,
        "has_completed_first_fetch": monitor.has_completed_first_fetch,
        "last_update_time": monitor.last_update_time.isoformat() if monitor.last_update_time else None,
        "error_state": monitor.error_state,
        "badge_count": monitor.badge_count,
    }


async def list_builds(request: web.Request) -> web.Response:
    """Return the tracked builds snapshot."""
    monitor = request.app[MONITOR_KEY]
    payload = _status(monitor)
    payload["builds"] = [build.to_dict() for build in monitor.builds]
    return web.json_response(payload)


async def add_build(request: web.Request) -> web.Response:
    """Track a build by URL: ``{"url": "https://buildkite.com/org/pipeline/builds/1"}``."""
    monitor = request.app[MONITOR_KEY]
    try:
        body = await request.json()
    except ValueError:
        return web.json_response({"error": "Request body must be JSON"}, status=400)

    url = body.get("url") if isinstance(body, dict) else None
    if not isinstance(url, str):
        return web.json_response({"error": "Missing 'url'"}, status=400)

    try:
        build = await monitor.add_build(url)
    except InvalidBuildURLError:
        return web.json_response({"error": monitor.error_state}, status=400)
    except DuplicateBuildError:
        return web.json_response({"error": monitor.error_state}, status=409)

    if build is None:
        return web.json_response({"error": monitor.error_state}, status=502)
    return web.json_response(build.to_dict(), status=201)


async def remove_build(request: web.Request) -> web.Response:
    monitor = request.app[MONITOR_KEY]
    await monitor.remove_build(request.match_info["build_id"])
    return web.Response(status=204)


async def clear_completed(request: web.Request) -> web.Response:
    monitor = request.app[MONITOR_KEY]
    removed = await monitor.clear_completed()
    return web.json_response({"removed": removed})


async def start_monitoring(request: web.Request) -> web.Response:
    monitor = request.app[MONITOR_KEY]
    await monitor.start_monitoring()
    return web.json_response(_status(monitor))


async def stop_monitoring(request: web.Request) -> web.Response:
    monitor = request.app[MONITOR_KEY]
    monitor.stop_monitoring()
    return web.json_response(_status(monitor))


async def diagnostics(request: web.Request) -> web.Response:
    monitor = request.app[MONITOR_KEY]
    settings = request.app.get(SETTINGS_KEY)
    return web.Response(text=generate_report(monitor, settings))
