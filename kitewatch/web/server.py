"""
Status server setup.
"""

from aiohttp import web

from kitewatch.core.config import Settings
from kitewatch.core.logging import get_logger
from kitewatch.monitor import BuildMonitor
from kitewatch.web import routes

logger = get_logger(__name__)


def create_web_app(monitor: BuildMonitor, settings: Settings | None = None) -> web.Application:
    """Build the aiohttp application serving the monitor."""
    app = web.Application()
    app[routes.MONITOR_KEY] = monitor
    if settings is not None:
        app[routes.SETTINGS_KEY] = settings

    app.router.add_get("/builds", routes.list_builds)
    app.router.add_post("/builds", routes.add_build)
    app.router.add_post("/builds/clear-completed", routes.clear_completed)
    app.router.add_delete("/builds/{build_id}", routes.remove_build)
    app.router.add_post("/monitoring/start", routes.start_monitoring)
    app.router.add_post("/monitoring/stop", routes.stop_monitoring)
    app.router.add_get("/diagnostics", routes.diagnostics)
    return app


async def start_web_server(
    monitor: BuildMonitor,
    settings: Settings | None = None,
    host: str = "127.0.0.1",
    port: int = 8081,
) -> web.AppRunner:
    """
    Start the status server.

    Args:
        monitor: Monitor whose state is served
        settings: Settings shown (without secrets) in the diagnostic report
        host: Host to bind to
        port: Port to bind to

    Returns:
        The runner, for cleanup on shutdown
    """
    app = create_web_app(monitor, settings)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Status server started on {host}:{port}")
    return runner
