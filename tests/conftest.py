import pytest
from sqlalchemy import create_engine, text

from querygate import ConnectionConfig, QueryGate
from querygate.common.resilience import _BREAKERS

USER_COUNT = 1600


@pytest.fixture
def sqlite_db(tmp_path):
    """A file-backed SQLite database with a seeded ``users`` table."""
    path = tmp_path / "app.db"
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, "
            "email TEXT, score REAL, age INTEGER)"
        ))
        conn.execute(text("CREATE UNIQUE INDEX idx_users_email ON users (email)"))
        conn.execute(
            text("INSERT INTO users (id, name, email, score, age) VALUES (:id, :name, :email, :score, :age)"),
            [
                {
                    "id": i,
                    "name": f"user{i}",
                    "email": f"user{i}@example.com",
                    "score": i / 2,
                    "age": None if i % 50 == 0 else 18 + i % 40,
                }
                for i in range(1, USER_COUNT + 1)
            ],
        )
    engine.dispose()
    return path


@pytest.fixture
def sqlite_connection(sqlite_db):
    return ConnectionConfig(id="local", name="Local SQLite", db_type="sqlite", file_path=str(sqlite_db))


@pytest.fixture
def gate(sqlite_connection):
    gate = QueryGate(connections=[sqlite_connection])
    yield gate
    gate.close()


@pytest.fixture(autouse=True)
def reset_breakers():
    """Breakers are process-wide; keep failures from leaking between tests."""
    yield
    for breaker in _BREAKERS.values():
        breaker.close()
