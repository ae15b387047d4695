"""
ledger.py — Wires the ledger components around one Database handle.

Typical process lifecycle::

    ledger = Ledger.from_settings(load_settings())
    await ledger.start()        # open pool + apply schema (fatal on failure)
    bet = await ledger.recorder.record_bet({...})
    await ledger.resolver.resolve(bet.nonce, roll=37, payout=0)
    await ledger.stop()
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from betledger.config import LedgerSettings
from betledger.database import Database
from betledger.services.bet_service import BetRecorder, BetResolver
from betledger.services.dashboard_service import DashboardAggregator
from betledger.services.ledger_store import LedgerStore
from betledger.services.rules_service import RulesProvider

logger = logging.getLogger("ledger")


@dataclass
class Ledger:
    db: Database
    store: LedgerStore
    rules: RulesProvider
    recorder: BetRecorder
    resolver: BetResolver
    dashboard: DashboardAggregator

    @classmethod
    def from_settings(
        cls, settings: LedgerSettings, db: Optional[Database] = None
    ) -> "Ledger":
        db = db or Database.from_settings(settings)
        store = LedgerStore(db, default_game=settings.default_game)
        return cls(
            db=db,
            store=store,
            rules=RulesProvider(db),
            recorder=BetRecorder(store),
            resolver=BetResolver(store),
            dashboard=DashboardAggregator(
                db,
                display_scale=settings.display_scale,
                display_decimals=settings.display_decimals,
                window=timedelta(hours=settings.dashboard_window_hours),
            ),
        )

    async def start(self, schema_path: "str | Path | None" = None) -> None:
        logger.info(">> LEDGER BOOT: opening pool and ensuring schema")
        await self.db.open()
        try:
            await self.db.ensure_schema(schema_path)
        except Exception:
            await self.db.close()
            raise

    async def stop(self) -> None:
        logger.info(">> LEDGER SHUTDOWN: closing pool")
        await self.db.close()
