"""
database.py — Connection pool handle, sessions, and schema bootstrap.

The pool is an explicit object, not module state:

    db = Database.from_settings(load_settings())
    await db.open()          # process start
    ...
    await db.close()         # shutdown

Every ledger component takes the handle in its constructor.

Transport encryption follows the deployment convention: loopback URLs
connect in the clear; any other PostgreSQL host gets TLS with certificate
checks relaxed (managed hosts present certs the default store can't verify).
"""

import logging
import ssl
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from betledger.config import LedgerSettings, is_local_url, normalize_database_url
from betledger.errors import SchemaBootstrapError, StorageError
from betledger.models import Base

logger = logging.getLogger("database")

DEFAULT_SCHEMA_FILE = "schema.sql"


def ssl_context_for(url: str) -> "ssl.SSLContext | bool":
    """False for loopback endpoints, otherwise TLS without certificate verification."""
    if is_local_url(url):
        return False
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def split_sql(script: str) -> list[str]:
    """Split a DDL script into statements. Drops ``--`` comment lines."""
    lines = [
        line for line in script.splitlines()
        if not line.strip().startswith("--")
    ]
    return [stmt.strip() for stmt in "\n".join(lines).split(";") if stmt.strip()]


class Database:
    """Owns the async engine (the bounded connection pool) and hands out sessions."""

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 5,
        echo: bool = False,
    ):
        self.url = normalize_database_url(url)
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            echo=settings.echo,
        )

    @property
    def safe_url(self) -> str:
        return make_url(self.url).render_as_string(hide_password=True)

    @property
    def backend(self) -> str:
        return make_url(self.url).get_backend_name()

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not open. Call open() at startup.")
        return self._engine

    def engine_options(self) -> dict:
        options: dict = {"echo": self.echo}
        if self.backend == "postgresql":
            options["pool_size"] = self.pool_size
            options["max_overflow"] = self.max_overflow
            options["pool_pre_ping"] = True
            options["connect_args"] = {"ssl": ssl_context_for(self.url)}
        return options

    async def open(self) -> None:
        """Create the pool and fail fast if the database is unreachable."""
        if self._engine is not None:
            return

        logger.info("Connecting to %s...", self.safe_url)
        self._engine = create_async_engine(self.url, **self.engine_options())
        self._session_maker = async_sessionmaker(self._engine, expire_on_commit=False)

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.critical("Database connection failed: %s", exc)
            await self.close()
            raise StorageError(f"Cannot connect to {self.safe_url}") from exc
        logger.info("Database pool active.")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None
            logger.info("Database pool closed.")

    async def __aenter__(self) -> "Database":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_maker is None:
            raise RuntimeError("Database is not open. Call open() at startup.")
        async with self._session_maker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """One atomic unit of work. Commits on exit, rolls back on error.

        Driver and SQL failures surface as StorageError, chained to the cause.
        """
        async with self.session() as session:
            try:
                async with session.begin():
                    yield session
            except (SQLAlchemyError, OSError) as exc:
                logger.error("Ledger transaction failed: %s", exc)
                raise StorageError(str(exc)) from exc

    async def ensure_schema(self, schema_path: "str | Path | None" = None) -> None:
        """Apply the DDL before any ledger operation runs.

        Uses ``schema_path`` (or ``./schema.sql`` when present); falls back to
        the ORM metadata. Any failure is fatal: SchemaBootstrapError.
        """
        path = Path(schema_path) if schema_path else Path.cwd() / DEFAULT_SCHEMA_FILE
        if schema_path and not path.is_file():
            raise SchemaBootstrapError(f"Schema file not found: {path}")

        try:
            async with self.engine.begin() as conn:
                if path.is_file():
                    logger.info("Ensuring schema from %s...", path)
                    for statement in split_sql(path.read_text(encoding="utf-8")):
                        await conn.exec_driver_sql(statement)
                else:
                    logger.info("Ensuring schema from ORM metadata...")
                    await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            logger.critical("Schema bootstrap failed: %s", exc)
            raise SchemaBootstrapError(str(exc)) from exc
        logger.info("Schema ready.")

    async def table_names(self) -> list[str]:
        async with self.engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
