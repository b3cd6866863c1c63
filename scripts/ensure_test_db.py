from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

import asyncpg
from alembic import command
from alembic.config import Config
from sqlalchemy.engine import make_url

from app.core.config import get_settings
from app.core.integration_db_safety import assess_integration_db_safety

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


async def _ensure_database_exists(database_url: str) -> bool:
    safety = assess_integration_db_safety(database_url)
    if not safety.is_safe:
        raise RuntimeError(f"Refusing to prepare database '{safety.database_name}': {safety.reason}")

    parsed = make_url(database_url)
    if parsed.username is None:
        raise RuntimeError("DATABASE_URL username is required.")

    conn = await asyncpg.connect(
        host=parsed.host or "localhost",
        port=int(parsed.port or 5432),
        user=parsed.username,
        password=parsed.password,
        database="postgres",
    )
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", safety.database_name)
        if exists:
            return False
        await conn.execute(f'CREATE DATABASE "{safety.database_name}"')
        return True
    finally:
        await conn.close()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the integration-test database and migrate it")
    parser.add_argument("--skip-migrations", action="store_true")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    database_url = get_settings().database_url
    created = asyncio.run(_ensure_database_exists(database_url))
    if not args.skip_migrations:
        command.upgrade(Config(str(ALEMBIC_INI)), "head")
    print(  # noqa: T201
        f"ensure_test_db: db={make_url(database_url).database} "
        f"created={created} migrated={not args.skip_migrations}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
