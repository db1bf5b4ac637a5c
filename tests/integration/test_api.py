import pytest
from fastapi.testclient import TestClient

from querygate import QueryGate
from querygate_api.main import create_app

pytestmark = pytest.mark.integration


@pytest.fixture
def client(gate):
    with TestClient(create_app(gate)) as client:
        yield client


def test_query_returns_rows(client):
    response = client.post("/api/v1/query", json={"sql": "SELECT id, name FROM users ORDER BY id LIMIT 3"})

    assert response.status_code == 200
    body = response.json()
    assert body["columns"] == ["id", "name"]
    assert body["rows"] == [[1, "user1"], [2, "user2"], [3, "user3"]]
    assert body["row_count"] == 3
    assert body["query_id"]
    assert body["performance"]["rows_returned"] == 3


def test_query_with_paging(client):
    response = client.post(
        "/api/v1/query",
        json={"sql": "SELECT id FROM users", "connection_id": "local", "page": 2, "page_size": 10},
    )

    body = response.json()
    assert body["page"] == 2
    assert body["total_rows"] == 200
    assert body["has_more"] is True


def test_injection_returns_400(client):
    response = client.post("/api/v1/query", json={"sql": "SELECT * FROM users; DELETE FROM users"})

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "INJECTION_DETECTED"
    assert body["details"] == {"reason": "multiple statements"}


def test_page_size_above_max_returns_400(client):
    response = client.post("/api/v1/query", json={"sql": "SELECT id FROM users", "page_size": 2000})

    assert response.status_code == 400
    assert response.json()["error_code"] == "TOO_MANY_ROWS_REQUESTED"


def test_unknown_connection_returns_404(client):
    response = client.post("/api/v1/query", json={"sql": "SELECT 1", "connection_id": 42})

    assert response.status_code == 404
    assert response.json()["details"] == {"connection_id": "42"}


def test_empty_sql_is_a_validation_error(client):
    assert client.post("/api/v1/query", json={"sql": ""}).status_code == 422


def test_explain(client):
    response = client.post("/api/v1/query/explain", json={"sql": "SELECT * FROM users WHERE id = 1"})

    assert response.status_code == 200
    plan = response.json()["plan"]
    assert plan[0]["id"] == 0
    assert plan[0]["parent"] is None
    assert plan[0]["table"] == "users"


def test_batch_is_not_implemented(client):
    response = client.post("/api/v1/query/batch", json={"statements": ["SELECT 1"]})

    assert response.status_code == 501
    assert response.json()["error_code"] == "NOT_IMPLEMENTED"


def test_cancel_unknown_query(client):
    response = client.post("/api/v1/query/not-running/cancel")

    assert response.status_code == 404
    assert response.json()["error_code"] == "QUERY_NOT_FOUND"


def test_database_info(client):
    response = client.get("/api/v1/database/info")

    assert response.json() == {"connection_id": "local", "database_type": "sqlite", "tables": ["users"]}


def test_table_indexes(client):
    response = client.get("/api/v1/database/tables/users/indexes")

    indexes = {index["name"]: index for index in response.json()["indexes"]}
    assert indexes["idx_users_email"] == {"name": "idx_users_email", "columns": ["email"], "is_unique": True}


def test_health_and_readiness(client):
    assert client.get("/api/v1/health").json()["data"] == {"status": "ok"}

    ready = client.get("/api/v1/ready").json()
    assert ready["success"] is True
    assert ready["data"] == {"active_connections": 1, "by_db_type": {"sqlite": 1}}


def test_readiness_without_active_connections(sqlite_connection):
    idle = QueryGate(connections=[sqlite_connection.model_copy(update={"is_active": False})])
    with TestClient(create_app(idle)) as client:
        response = client.get("/api/v1/ready")

    assert response.status_code == 503
    assert response.json()["data"]["active_connections"] == 0
