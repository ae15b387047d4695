"""
dashboard_service.py — Read-only aggregates for the operations dashboard.

Every figure is computed from ``bets`` at query time: no cache, no
materialised totals. Under concurrent writes a figure may trail the ledger
by a few rows.

Sums are integers from the database (NUMERIC on PostgreSQL, INTEGER on
SQLite) and stay integers. Revenue is allowed to go negative.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import distinct, func, select

from betledger.database import Database
from betledger.errors import StorageError
from betledger.models import ActivityItem, Bet, DashboardSummary
from betledger.utils.units import signed_amount

logger = logging.getLogger("dashboard_service")

DEFAULT_WINDOW = timedelta(hours=24)


def _as_int(raw: Any) -> int:
    if raw is None:
        return 0
    if isinstance(raw, float):
        raise StorageError(f"Aggregate returned a float ({raw!r}); refusing lossy value")
    return int(raw)


def _cutoff(window: timedelta) -> datetime:
    return datetime.now(timezone.utc) - window


class DashboardAggregator:
    def __init__(
        self,
        db: Database,
        *,
        display_scale: int = 10**9,
        display_decimals: int = 4,
        window: timedelta = DEFAULT_WINDOW,
    ):
        self.db = db
        self.display_scale = display_scale
        self.display_decimals = display_decimals
        self.window = window

    async def _scalar(self, stmt) -> int:
        async with self.db.transaction() as session:
            result = await session.execute(stmt)
            return _as_int(result.scalar_one_or_none())

    async def total_users(self) -> int:
        return await self._scalar(select(func.count(distinct(Bet.player))))

    async def active_games(self, window: Optional[timedelta] = None) -> int:
        """Bets created inside the trailing window."""
        cutoff = _cutoff(window if window is not None else self.window)
        return await self._scalar(
            select(func.count(Bet.id)).where(Bet.created_at > cutoff)
        )

    async def total_volume(self) -> int:
        return await self._scalar(select(func.coalesce(func.sum(Bet.amount), 0)))

    async def windowed_revenue(self, window: Optional[timedelta] = None) -> int:
        """Wagered minus paid out inside the window. Negative when the house lost."""
        cutoff = _cutoff(window if window is not None else self.window)
        return await self._scalar(
            select(func.coalesce(func.sum(Bet.amount - Bet.payout), 0))
            .where(Bet.created_at > cutoff)
        )

    async def recent_activity(self, limit: int = 5) -> list[ActivityItem]:
        """The ``limit`` newest bets, newest first, projected for the activity feed."""
        if limit <= 0:
            return []
        async with self.db.transaction() as session:
            result = await session.execute(
                select(Bet).order_by(Bet.id.desc()).limit(limit)
            )
            bets = result.scalars().all()
        return [self._to_activity(bet) for bet in bets]

    async def summary(
        self,
        window: Optional[timedelta] = None,
        activity_limit: int = 5,
    ) -> DashboardSummary:
        return DashboardSummary(
            total_users=await self.total_users(),
            active_games=await self.active_games(window),
            total_volume=await self.total_volume(),
            windowed_revenue=await self.windowed_revenue(window),
            recent_activity=await self.recent_activity(activity_limit),
        )

    def _to_activity(self, bet: Bet) -> ActivityItem:
        won = bet.payout > 0
        return ActivityItem(
            player=bet.player,
            game=bet.game,
            outcome_label="won" if won else "lost",
            signed_amount_text=signed_amount(
                bet.payout, won, self.display_scale, self.display_decimals
            ),
            time_of_day=bet.created_at.strftime("%H:%M:%S") if bet.created_at else "",
        )
