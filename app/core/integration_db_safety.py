from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy.engine import URL, make_url

TEST_DB_NAME_RE = re.compile(r"test", re.IGNORECASE)
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
ALLOWED_LOCAL_HOSTS = frozenset(
    {
        "localhost",
        "127.0.0.1",
        "::1",
        "postgres",
        "cards_postgres",
        "cards_postgres_test",
    }
)


@dataclass(frozen=True, slots=True)
class IntegrationDbSafetyResult:
    is_safe: bool
    reason: str
    database_name: str
    host: str


def _first_violation(url: URL, *, db_name: str, host: str) -> str | None:
    if url.get_backend_name() != "postgresql":
        return "Integration tests run only against PostgreSQL (ON CONFLICT, RLS and views are required)."
    if not db_name:
        return "Database name is empty."
    if TEST_DB_NAME_RE.search(db_name) is None:
        return "Database name must contain 'test'."
    if IDENTIFIER_RE.fullmatch(db_name) is None:
        return "Database name must be a plain [A-Za-z0-9_] identifier."
    if host not in ALLOWED_LOCAL_HOSTS:
        return f"Host '{host}' is not an allowed local integration-test host."
    return None


def assess_integration_db_safety(database_url: str) -> IntegrationDbSafetyResult:
    url = make_url(database_url)
    db_name = (url.database or "").strip()
    host = (url.host or "").strip().lower()
    violation = _first_violation(url, db_name=db_name, host=host)
    return IntegrationDbSafetyResult(
        is_safe=violation is None,
        reason=violation or "ok",
        database_name=db_name,
        host=host,
    )


def assert_safe_integration_db(database_url: str) -> None:
    result = assess_integration_db_safety(database_url)
    if result.is_safe:
        return

    raise RuntimeError(
        "Refusing to run integration tests with destructive TRUNCATE.\n"
        f"Reason: {result.reason}\n"
        f"Resolved DB: name='{result.database_name}' host='{result.host}'\n"
        "Use a dedicated local PostgreSQL test database such as 'cards_test'."
    )
