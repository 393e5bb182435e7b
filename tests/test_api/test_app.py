import asyncio

from gitlab_remote.api.health import liveness
from gitlab_remote.core.metrics import PrometheusMiddleware, metrics_endpoint
from gitlab_remote.main import app


class TestApp:
    def test_routes(self):
        paths = {route.path for route in app.routes}
        assert "/api/v1/hook" in paths
        assert "/api/v1/authorize" in paths
        assert "/health/live" in paths
        assert "/metrics" in paths

    def test_liveness(self):
        assert asyncio.run(liveness()) == {"status": "alive"}

    def test_metrics(self):
        response = asyncio.run(metrics_endpoint(None))
        assert b"gitlab_remote_hooks_received_total" in response.body
        assert b"gitlab_remote_external_api_requests_total" in response.body


class TestPrometheusMiddleware:
    def test_normalize_path(self):
        middleware = PrometheusMiddleware(app=None)
        assert middleware._normalize_path("/api/v1/projects/123/hooks/7") == "/api/v1/projects/{id}/hooks/{id}"


class TestDeps:
    def test_remote_from_settings(self):
        from gitlab_remote.api.deps import get_remote

        remote = get_remote()
        assert remote.base_url == "https://gitlab.test.com"
        assert remote.config.client_id == "test-client-id"
