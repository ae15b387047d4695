"""
Alembic env.py — Migration runner for the bet ledger.

Target metadata is betledger.models.Base, so revisions are diffed against the
same tables ensure_schema() builds. DATABASE_URL, normalised to asyncpg,
takes precedence over sqlalchemy.url in alembic.ini.

  alembic upgrade head           apply against the live database
  alembic upgrade head --sql     print the DDL instead (offline)
"""

import asyncio
import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from betledger.config import normalize_database_url
from betledger.database import ssl_context_for
from betledger.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_db_url = os.environ.get("DATABASE_URL")
if _db_url:
    config.set_main_option("sqlalchemy.url", normalize_database_url(_db_url))

target_metadata = Base.metadata


def _migrate(**opts) -> None:
    context.configure(target_metadata=target_metadata, **opts)
    with context.begin_transaction():
        context.run_migrations()


def _ledger_connect_args(url: str) -> dict:
    if url.startswith("postgresql"):
        return {"ssl": ssl_context_for(url)}
    return {}


async def _migrate_live() -> None:
    url = config.get_main_option("sqlalchemy.url")
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        connect_args=_ledger_connect_args(url),
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(lambda conn: _migrate(connection=conn))
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _migrate(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    asyncio.run(_migrate_live())
