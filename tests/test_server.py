"""App-level behaviour: root endpoint, probes, metrics, CORS, docs and degraded startup."""

from fastapi.testclient import TestClient

from products_api.config import Settings
from products_api.main import create_app

from .conftest import FRONTEND


def test_api_root_sends_json(client):
    res = client.get("/api")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("application/json")
    assert res.json()["msg"] == "Desde la API"


def test_health_is_plain_ok(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.text == "ok"


def test_ready_when_database_reachable(client):
    res = client.get("/health/ready")
    assert res.status_code == 200
    assert res.json() == {"status": "ready"}


def test_metrics_label_requests_by_route_template(client, product):
    client.get(f"/api/products/{product['id']}")
    res = client.get("/metrics")
    assert res.status_code == 200
    assert 'path="/api/products/{id}"' in res.text
    assert "http_request_duration_seconds" in res.text


class TestCors:
    def test_frontend_origin_is_allowed(self, client):
        res = client.get("/api", headers={"Origin": FRONTEND})
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] == FRONTEND

    def test_other_origins_are_rejected(self, client):
        res = client.get("/api", headers={"Origin": "http://evil.test"})
        assert res.status_code == 403
        assert res.json() == {"error": "Error de cors"}

    def test_same_origin_requests_are_allowed(self, client):
        # Swagger UI served by this app sends its own origin on writes
        res = client.post(
            "/api/products",
            json={"name": "Mouse", "price": 50},
            headers={"Origin": "http://testserver"},
        )
        assert res.status_code == 201

    def test_preflight_from_frontend(self, client):
        res = client.options(
            "/api/products",
            headers={"Origin": FRONTEND, "Access-Control-Request-Method": "POST"},
        )
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] == FRONTEND

    def test_no_frontend_configured_rejects_every_origin(self):
        settings = Settings(database_url="sqlite://", frontend_url="", log_level="WARNING")
        with TestClient(create_app(settings)) as client:
            assert client.get("/api").status_code == 200
            assert client.get("/api", headers={"Origin": FRONTEND}).status_code == 403


class TestDocs:
    def test_swagger_ui_is_served(self, client):
        res = client.get("/docs")
        assert res.status_code == 200
        assert "swagger" in res.text.lower()

    def test_openapi_documents_product_routes(self, client):
        doc = client.get("/openapi.json").json()
        paths = doc["paths"]
        assert set(paths["/api/products"]) == {"get", "post"}
        assert set(paths["/api/products/{id}"]) == {"get", "put", "patch", "delete"}

        create_body = paths["/api/products"]["post"]["requestBody"]
        schema = create_body["content"]["application/json"]["schema"]
        assert set(schema["properties"]) == {"name", "price"}
        assert "404" in paths["/api/products/{id}"]["delete"]["responses"]


class TestDatabaseUnavailable:
    """The API keeps serving when the database cannot be reached at startup."""

    def make_client(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'missing-dir' / 'products.db'}"
        settings = Settings(database_url=url, frontend_url=FRONTEND, log_level="WARNING")
        return TestClient(create_app(settings))

    def test_startup_survives_and_root_answers(self, tmp_path):
        with self.make_client(tmp_path) as client:
            assert client.get("/api").status_code == 200

    def test_store_errors_become_503(self, tmp_path):
        with self.make_client(tmp_path) as client:
            res = client.get("/api/products")
            assert res.status_code == 503
            assert res.json() == {"error": "Error de base de datos"}

    def test_not_ready(self, tmp_path):
        with self.make_client(tmp_path) as client:
            res = client.get("/health/ready")
            assert res.status_code == 503
            assert res.json()["reason"] == "database_unavailable"

    def test_store_recovers_once_database_is_reachable(self, tmp_path):
        with self.make_client(tmp_path) as client:
            assert client.get("/api/products").status_code == 503

            (tmp_path / "missing-dir").mkdir()
            res = client.get("/api/products")
            assert res.status_code == 200
            assert res.json() == {"data": []}

            res = client.post("/api/products", json={"name": "Mouse", "price": 50})
            assert res.status_code == 201
