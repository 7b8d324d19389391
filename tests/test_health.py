"""
Tests for the health, metrics and greeting routes.
"""

from demo.storage import Base, engine


class TestHealth:
    """Test liveness and readiness probes."""

    def test_live(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_ready(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_schema(self, client):
        Base.metadata.drop_all(bind=engine)

        response = client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not_ready"
        assert data["reason"]


class TestMetrics:
    """Test the Prometheus endpoint."""

    def test_metrics_exposition(self, client):
        client.post("/", json={"text": "Hello!"})
        client.post("/", json={})
        client.get("/some-id")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        body = response.text
        assert "http_requests_total" in body
        assert "request_latency_seconds" in body
        assert 'message_writes_total{result="created"}' in body
        assert 'message_writes_total{result="validation_error"}' in body

    def test_route_template_used_as_path_label(self, client):
        client.get("/a-very-specific-id")

        body = client.get("/metrics").text

        assert 'path="/{message_id}"' in body
        assert "a-very-specific-id" not in body


class TestHello:
    """Test the greeting route."""

    def test_greeting(self, client):
        response = client.get("/hello", params={"name": "World"})

        assert response.status_code == 200
        assert response.text == "Hello, World!"
        assert response.headers["content-type"].startswith("text/plain")

    def test_name_is_required(self, client):
        assert client.get("/hello").status_code == 422
