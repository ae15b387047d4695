"""Shared fixtures: isolated SQLite ledgers, one per test.

In-memory ``sqlite+aiosqlite://`` for ordinary tests. Tests that need real
concurrent connections use a file database under ``tmp_path``.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from betledger.database import Database
from betledger.models import Base
from betledger.services.bet_service import BetRecorder, BetResolver
from betledger.services.dashboard_service import DashboardAggregator
from betledger.services.ledger_store import LedgerStore
from betledger.services.rules_service import RulesProvider

# SQLite flavour of schema.sql, used by bootstrap tests.
SQLITE_SCHEMA = """
-- bets ledger
CREATE TABLE IF NOT EXISTS bets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    player TEXT NOT NULL,
    bet_amount_lamports INTEGER NOT NULL,
    bet_type INTEGER NOT NULL,
    target INTEGER NOT NULL,
    roll INTEGER NOT NULL DEFAULT 0,
    payout_lamports INTEGER NOT NULL DEFAULT 0,
    nonce INTEGER NOT NULL,
    expiry_unix INTEGER NOT NULL,
    signature_base58 TEXT NOT NULL DEFAULT '',
    status VARCHAR(32) NOT NULL DEFAULT 'prepared_lock',
    game VARCHAR(64) NOT NULL DEFAULT 'dice',
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS game_rules (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    game VARCHAR(64) NOT NULL DEFAULT 'dice',
    house_edge_bps INTEGER NOT NULL DEFAULT 0
);
"""


async def _open_with_tables(url: str) -> Database:
    database = Database(url)
    await database.open()
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return database


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[Database, None]:
    database = await _open_with_tables("sqlite+aiosqlite://")
    yield database
    await database.close()


@pytest_asyncio.fixture
async def file_db(tmp_path) -> AsyncGenerator[Database, None]:
    database = await _open_with_tables(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    yield database
    await database.close()


@pytest.fixture
def store(db) -> LedgerStore:
    return LedgerStore(db, default_game="dice")


@pytest.fixture
def recorder(store) -> BetRecorder:
    return BetRecorder(store)


@pytest.fixture
def resolver(store) -> BetResolver:
    return BetResolver(store)


@pytest.fixture
def dashboard(db) -> DashboardAggregator:
    return DashboardAggregator(db)


@pytest.fixture
def rules(db) -> RulesProvider:
    return RulesProvider(db)


@pytest.fixture
def sqlite_schema_file(tmp_path):
    path = tmp_path / "schema.sql"
    path.write_text(SQLITE_SCHEMA, encoding="utf-8")
    return path


def make_bet(nonce: int = 1001, **overrides) -> dict:
    """A valid bet request with overridable fields."""
    bet = {
        "player": "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU",
        "amount": 1_000_000_000,
        "bet_type": 0,
        "target": 50,
        "nonce": nonce,
        "expiry": 1_900_000_000,
        "signature_base58": "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW",
    }
    bet.update(overrides)
    return bet
