from datetime import timedelta

from fastapi.testclient import TestClient

from main import app
from linksprint.cache.strategies import InMemoryCache
from linksprint.clock import utcnow
from linksprint.dependencies import get_cache, get_click_recorder, get_queue
from linksprint.queue.strategies import InMemoryQueue
from linksprint.services.click_recorder import ClickRecorder


class TestURLShortener:
    """Test URL shortener functionality"""

    def test_create_short_url(self, client: TestClient):
        """Test creating a short URL"""
        url_data = {"original_url": "https://www.google.com/"}

        response = client.post("/api/v1/urls/shorten", json=url_data)
        assert response.status_code == 201

        data = response.json()
        assert len(data["short_code"]) == 6
        assert data["short_url"] == f"http://sho.rt/{data['short_code']}"
        assert data["original_url"] == url_data["original_url"]
        assert data["created_at"]

    def test_create_with_custom_code(self, client: TestClient):
        """Test creating a short URL with a custom code and metadata"""
        url_data = {
            "original_url": "https://example.com/a",
            "custom_code": "promo1",
            "title": "Promo",
        }

        response = client.post("/api/v1/urls/shorten", json=url_data)
        assert response.status_code == 201

        data = response.json()
        assert data["short_code"] == "promo1"
        assert data["short_url"] == "http://sho.rt/promo1"
        assert data["title"] == "Promo"

    def test_duplicate_custom_code(self, client: TestClient):
        """Test that a taken custom code is rejected with 409"""
        client.post("/api/v1/urls/shorten", json={"original_url": "https://example.com/a", "custom_code": "promo1"})

        response = client.post(
            "/api/v1/urls/shorten",
            json={"original_url": "https://example.com/b", "custom_code": "promo1"},
        )
        assert response.status_code == 409
        assert "promo1" in response.json()["error"]

    def test_invalid_url(self, client: TestClient):
        """Test creating URL with invalid URL"""
        url_data = {"original_url": "not-a-valid-url"}

        response = client.post("/api/v1/urls/shorten", json=url_data)
        assert response.status_code == 400
        assert "error" in response.json()

    def test_invalid_custom_code(self, client: TestClient):
        response = client.post(
            "/api/v1/urls/shorten",
            json={"original_url": "https://example.com", "custom_code": "no way"},
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_missing_body_field(self, client: TestClient):
        """Framework validation errors also answer 400"""
        response = client.post("/api/v1/urls/shorten", json={"title": "no url"})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_redirect_url(self, client: TestClient):
        """Test URL redirection"""
        url_data = {"original_url": "https://www.github.com/"}
        create_response = client.post("/api/v1/urls/shorten", json=url_data)
        short_code = create_response.json()["short_code"]

        response = client.get(f"/{short_code}", follow_redirects=False)
        assert response.status_code == 301
        assert response.headers["location"] == "https://www.github.com/"

    def test_redirect_nonexistent_url(self, client: TestClient):
        """Test redirecting non-existent URL"""
        response = client.get("/nonexistent", follow_redirects=False)
        assert response.status_code == 404
        assert response.json() == {"error": "URL not found or expired"}

    def test_redirect_expired_url(self, client: TestClient):
        expired = (utcnow() - timedelta(hours=1)).isoformat()
        client.post(
            "/api/v1/urls/shorten",
            json={"original_url": "https://example.com/old", "custom_code": "gone", "expires_at": expired},
        )

        response = client.get("/gone", follow_redirects=False)
        assert response.status_code == 404

    def test_list_urls(self, client: TestClient):
        """Test listing URLs newest first"""
        for i in range(3):
            client.post("/api/v1/urls/shorten", json={"original_url": f"https://example.com/{i}", "custom_code": f"list{i}"})

        response = client.get("/api/v1/urls", params={"page": 1, "per_page": 2})
        assert response.status_code == 200

        data = response.json()
        assert data["total"] == 3
        assert data["page"] == 1
        assert data["per_page"] == 2
        assert data["total_pages"] == 2
        assert [u["short_code"] for u in data["urls"]] == ["list2", "list1"]
        assert data["urls"][0]["is_active"] is True

    def test_list_urls_clamps_per_page(self, client: TestClient):
        response = client.get("/api/v1/urls", params={"per_page": 500})
        assert response.status_code == 200
        assert response.json()["per_page"] == 100

    def test_url_stats(self, client: TestClient):
        """Test getting URL statistics"""
        url_data = {"original_url": "https://www.stackoverflow.com/"}
        create_response = client.post("/api/v1/urls/shorten", json=url_data)
        short_code = create_response.json()["short_code"]

        # Access the URL to count a click
        client.get(f"/{short_code}", follow_redirects=False)

        response = client.get(f"/api/v1/urls/{short_code}/stats")
        assert response.status_code == 200

        data = response.json()
        assert data["short_code"] == short_code
        assert data["original_url"] == "https://www.stackoverflow.com/"
        assert data["total_clicks"] >= 0  # Counted in the background

    def test_stats_nonexistent_url(self, client: TestClient):
        response = client.get("/api/v1/urls/nonexistent/stats")
        assert response.status_code == 404

    def test_delete_url(self, client: TestClient):
        """Test deleting a URL"""
        url_data = {"original_url": "https://www.python.org"}
        create_response = client.post("/api/v1/urls/shorten", json=url_data)
        short_code = create_response.json()["short_code"]

        # Redirect once so the mapping is cached
        assert client.get(f"/{short_code}", follow_redirects=False).status_code == 301

        response = client.delete(f"/api/v1/urls/{short_code}")
        assert response.status_code == 200
        assert response.json() == {"message": "URL deleted successfully", "short_code": short_code}

        # Deleted URL no longer redirects, cached or not
        response = client.get(f"/{short_code}", follow_redirects=False)
        assert response.status_code == 404

        # Deleting again is a 404
        assert client.delete(f"/api/v1/urls/{short_code}").status_code == 404


class TestServiceEndpoints:
    """Test health, index and cross-cutting headers"""

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "LinkSprint"
        assert "version" in data

    def test_api_index(self, client: TestClient):
        response = client.get("/api/v1/")
        assert response.status_code == 200
        assert "POST /api/v1/urls/shorten" in response.json()["endpoints"]["urls"]

    def test_request_id_is_generated(self, client: TestClient):
        response = client.get("/health")
        assert response.headers["X-Request-ID"]
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_request_id_is_propagated(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_error_responses_carry_request_id(self, client: TestClient):
        response = client.get("/nonexistent", follow_redirects=False)
        assert response.status_code == 404
        assert response.headers["X-Request-ID"]


class ClosingCache(InMemoryCache):
    def __init__(self):
        super().__init__()
        self.closed = False

    async def close(self):
        self.closed = True


class ClosingQueue(InMemoryQueue):
    def __init__(self):
        super().__init__()
        self.closed = False

    async def close(self):
        self.closed = True


class TestLifespan:
    """Test application startup and shutdown"""

    def test_shutdown_drains_clicks_and_closes_connections(self, db_session):
        cache = ClosingCache()
        queue = ClosingQueue()
        recorder = ClickRecorder(cache=cache, queue=queue)
        app.dependency_overrides[get_cache] = lambda: cache
        app.dependency_overrides[get_queue] = lambda: queue
        app.dependency_overrides[get_click_recorder] = lambda: recorder

        try:
            with TestClient(app):
                assert cache.closed is False
                assert queue.closed is False
        finally:
            app.dependency_overrides.clear()

        assert recorder.pending == 0
        assert cache.closed is True
        assert queue.closed is True
