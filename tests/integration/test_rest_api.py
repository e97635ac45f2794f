"""Integration tests for the REST API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from author_store.adapters.inbound.rest_api import HEALTHCHECK_BODY, create_app
from author_store.application import ARTICLE_TABLE, build_schema
from author_store.domain.services import IndexedStore
from author_store.domain.value_objects import DBSchema
from author_store.infrastructure.metrics import MetricsRegistry

ADA = {"id": 1, "name": "Ada", "subjects": ["math", "cs"]}
GRACE = {"id": 2, "name": "Grace", "subjects": ["cs"]}


@pytest.fixture
def client(store: IndexedStore, metrics_registry: MetricsRegistry) -> TestClient:
    return TestClient(create_app(store, metrics_registry))


@pytest.mark.integration
class TestHealthcheck:
    def test_plain_text_body(self, client: TestClient) -> None:
        response = client.get("/healthcheck")

        assert response.status_code == 200
        assert response.text == HEALTHCHECK_BODY
        assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.integration
class TestCreateAuthor:
    """POST /authors."""

    def test_echoes_stored_author(self, client: TestClient) -> None:
        response = client.post("/authors", json=ADA)

        assert response.status_code == 200
        assert response.json() == ADA

    def test_subjects_default_to_empty(self, client: TestClient) -> None:
        response = client.post("/authors", json={"id": 3, "name": "Alan"})

        assert response.status_code == 200
        assert response.json() == {"id": 3, "name": "Alan", "subjects": []}

    def test_replaces_existing_id(self, client: TestClient) -> None:
        client.post("/authors", json=ADA)
        client.post("/authors", json={"id": 1, "name": "Augusta", "subjects": []})

        assert client.get("/authors").json() == [
            {"id": 1, "name": "Augusta", "subjects": []}
        ]

    def test_malformed_json(self, client: TestClient) -> None:
        response = client.post(
            "/authors",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Malformed request body"}

    @pytest.mark.parametrize(
        "body",
        [
            {"name": "NoId"},
            {"id": 1},
            {"id": "1", "name": "Ada"},
            {"id": -1, "name": "Ada"},
            {"id": 1, "name": "Ada", "subjects": "cs"},
            {"id": 1, "name": "Ada", "subjects": [1, 2]},
            [1, 2, 3],
        ],
    )
    def test_invalid_body(self, client: TestClient, body: object) -> None:
        response = client.post("/authors", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "Malformed request body"

    def test_id_beyond_64_bits_rejected(self, client: TestClient) -> None:
        response = client.post("/authors", json={"id": 2**70, "name": "x"})

        assert response.status_code == 400
        assert client.get("/authors").json() == []

    def test_largest_64_bit_id_accepted(self, client: TestClient) -> None:
        response = client.post("/authors", json={"id": 2**64 - 1, "name": "x"})

        assert response.status_code == 200
        assert response.json()["id"] == 2**64 - 1

    def test_rejected_body_stores_nothing(self, client: TestClient) -> None:
        client.post("/authors", json={"id": "x"})

        assert client.get("/authors").json() == []


@pytest.mark.integration
class TestListAuthors:
    """GET /authors."""

    def test_empty_store_returns_empty_array(self, client: TestClient) -> None:
        response = client.get("/authors")

        assert response.status_code == 200
        assert response.json() == []

    def test_ordered_by_id(self, client: TestClient) -> None:
        client.post("/authors", json=GRACE)
        client.post("/authors", json=ADA)

        assert client.get("/authors").json() == [ADA, GRACE]

    def test_subject_filter(self, client: TestClient) -> None:
        client.post("/authors", json=ADA)
        client.post("/authors", json=GRACE)

        assert client.get("/authors", params={"subject": "cs"}).json() == [ADA, GRACE]
        assert client.get("/authors", params={"subject": "math"}).json() == [ADA]
        assert client.get("/authors", params={"subject": "art"}).json() == []


@pytest.mark.integration
class TestStoreFailures:
    """Store errors surface as 500 responses."""

    @pytest.fixture
    def broken_client(self, schema: DBSchema) -> TestClient:
        # A store with no author table fails every author operation
        articles_only = DBSchema(tables=(schema.table(ARTICLE_TABLE),))
        return TestClient(create_app(IndexedStore(articles_only)))

    def test_create_fails(self, broken_client: TestClient) -> None:
        response = broken_client.post("/authors", json=ADA)

        assert response.status_code == 500
        assert "unknown table" in response.json()["detail"]

    def test_list_fails(self, broken_client: TestClient) -> None:
        response = broken_client.get("/authors")

        assert response.status_code == 500

    def test_healthcheck_unaffected(self, broken_client: TestClient) -> None:
        assert broken_client.get("/healthcheck").status_code == 200


@pytest.mark.integration
class TestMetricsAndState:
    def test_request_counter(self, client: TestClient, metrics_registry: MetricsRegistry) -> None:
        client.get("/healthcheck")
        client.post("/authors", json={"id": "bad"})

        registry = metrics_registry._registry
        assert registry.get_sample_value(
            "http_requests_total", {"route": "/healthcheck", "status_code": "200"}
        ) == 1
        assert registry.get_sample_value(
            "http_requests_total", {"route": "/authors", "status_code": "400"}
        ) == 1

    def test_unknown_paths_share_one_series(
        self, client: TestClient, metrics_registry: MetricsRegistry
    ) -> None:
        client.get("/nope/0")
        client.get("/nope/1")

        series = [
            sample.labels
            for metric in metrics_registry._registry.collect()
            if metric.name == "http_requests"
            for sample in metric.samples
            if sample.name == "http_requests_total"
        ]
        assert series == [{"route": "unmatched", "status_code": "404"}]

    def test_app_holds_store(self, store: IndexedStore) -> None:
        app = create_app(store)

        assert app.state.store is store

    def test_apps_do_not_share_state(self) -> None:
        first = TestClient(create_app(IndexedStore(build_schema())))
        second = TestClient(create_app(IndexedStore(build_schema())))

        first.post("/authors", json=ADA)

        assert second.get("/authors").json() == []
