"""
Tests for the status HTTP server.
"""

import pytest
from aiohttp.test_utils import TestClient, TestServer


URL_42 = "https://buildkite.com/acme/deploy/builds/42"


@pytest.fixture
def web_app(monitor):
    from kitewatch.web.server import create_web_app
    return create_web_app(monitor)


class TestBuildRoutes:
    """Tests for /builds endpoints."""

    @pytest.mark.asyncio
    async def test_list_builds(self, web_app, monitor, api_client, make_build):
        api_client.fetch_user_builds.return_value = [make_build("b1", "running")]
        await monitor.start_monitoring()

        async with TestClient(TestServer(web_app)) as client:
            resp = await client.get("/builds")
            data = await resp.json()

        assert resp.status == 200
        assert data["polling"] is True
        assert data["badge_count"] == 1
        assert [b["id"] for b in data["builds"]] == ["b1"]
        assert data["error_state"] is None
        monitor.stop_monitoring()

    @pytest.mark.asyncio
    async def test_add_build(self, web_app, api_client, make_build):
        api_client.fetch_build.return_value = make_build("b42", "running", number=42)

        async with TestClient(TestServer(web_app)) as client:
            resp = await client.post("/builds", json={"url": URL_42})
            data = await resp.json()

        assert resp.status == 201
        assert data["id"] == "b42"
        assert data["added_manually"] is True

    @pytest.mark.asyncio
    async def test_add_duplicate(self, web_app, api_client, make_build):
        api_client.fetch_build.return_value = make_build("b42", "running", number=42)

        async with TestClient(TestServer(web_app)) as client:
            await client.post("/builds", json={"url": URL_42})
            resp = await client.post("/builds", json={"url": URL_42})
            data = await resp.json()

        assert resp.status == 409
        assert data["error"].startswith("[BN-DUP]")

    @pytest.mark.asyncio
    async def test_add_invalid_url(self, web_app):
        async with TestClient(TestServer(web_app)) as client:
            resp = await client.post("/builds", json={"url": "https://buildkite.com/acme"})
            data = await resp.json()

        assert resp.status == 400
        assert data["error"].startswith("[BN-URL]")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["not json", '{"link": "x"}', "[1, 2]"])
    async def test_add_bad_body(self, web_app, body):
        async with TestClient(TestServer(web_app)) as client:
            resp = await client.post("/builds", data=body)

        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_add_fetch_failure(self, web_app, api_client):
        from kitewatch.core.exceptions import BuildNotFoundError

        api_client.fetch_build.side_effect = BuildNotFoundError("404")

        async with TestClient(TestServer(web_app)) as client:
            resp = await client.post("/builds", json={"url": URL_42})
            data = await resp.json()

        assert resp.status == 502
        assert data["error"].startswith("[BK-404B]")

    @pytest.mark.asyncio
    async def test_remove_and_clear(self, web_app, monitor, api_client, make_build):
        api_client.fetch_user_builds.return_value = [
            make_build("b1", "running"),
            make_build("b2", "passed"),
            make_build("b3", "failed"),
        ]
        await monitor.start_monitoring()

        async with TestClient(TestServer(web_app)) as client:
            resp = await client.delete("/builds/b1")
            assert resp.status == 204

            resp = await client.post("/builds/clear-completed")
            data = await resp.json()

        assert data == {"removed": 2}
        assert monitor.builds == ()
        monitor.stop_monitoring()


class TestMonitoringRoutes:
    """Tests for /monitoring and /diagnostics endpoints."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, web_app, monitor):
        async with TestClient(TestServer(web_app)) as client:
            resp = await client.post("/monitoring/start")
            started = await resp.json()

            resp = await client.post("/monitoring/stop")
            stopped = await resp.json()

        assert started["polling"] is True
        assert started["has_completed_first_fetch"] is True
        assert stopped["polling"] is False
        assert not monitor.is_polling

    @pytest.mark.asyncio
    async def test_start_reports_error(self, web_app, api_client):
        from kitewatch.core.exceptions import UnauthorizedError

        api_client.fetch_current_user.side_effect = UnauthorizedError("401")

        async with TestClient(TestServer(web_app)) as client:
            resp = await client.post("/monitoring/start")
            data = await resp.json()

        assert data["polling"] is False
        assert data["error_state"].startswith("[BK-401]")

    @pytest.mark.asyncio
    async def test_diagnostics_report(self, monitor):
        from kitewatch.core.config import Settings
        from kitewatch.web.server import create_web_app

        web_app = create_web_app(monitor, Settings())
        await monitor.start_monitoring()
        monitor.stop_monitoring()

        async with TestClient(TestServer(web_app)) as client:
            resp = await client.get("/diagnostics")
            text = await resp.text()

        assert resp.status == 200
        assert "API Token Configured: yes" in text
        assert "[BN-MON] Monitoring started" in text
        assert "bk_test_token" not in text
