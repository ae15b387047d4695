"""
ledger_store.py — Durable storage of bet rows.

Exactly three primitives, nothing general-purpose:
  - insert: append a row, applying the status/game defaults
  - find_latest_by_nonce: the authoritative row for a nonce
  - apply_resolution: conditional UPDATE that moves one row forward

Invariants enforced here:
  - Rows are never deleted or rewritten wholesale.
  - Among rows sharing a nonce, the highest id wins. Nonce is NOT unique.
  - A status change is one conditional statement (UPDATE ... WHERE
    status = :from_status), so concurrent resolvers get exactly one winner
    without any in-process lock.
"""

import logging
from typing import Optional

from sqlalchemy import func, select, update

from betledger.database import Database
from betledger.errors import ValidationError
from betledger.models import (
    INITIAL_STATUS,
    Bet,
    BetCreate,
    BetStatus,
    can_transition,
)

logger = logging.getLogger("ledger_store")


class LedgerStore:
    def __init__(self, db: Database, *, default_game: str = "dice"):
        self.db = db
        self.default_game = default_game

    async def insert(self, bet: BetCreate) -> Bet:
        """Append a new bet row and return it with id and created_at populated."""
        status = bet.status or INITIAL_STATUS
        row = Bet(
            player=bet.player,
            amount=bet.amount,
            bet_type=bet.bet_type,
            target=bet.target,
            roll=bet.roll,
            payout=bet.payout,
            nonce=bet.nonce,
            expiry=bet.expiry,
            signature_ref=bet.signature_ref,
            status=BetStatus(status).value,
            game=bet.game or self.default_game,
        )

        async with self.db.transaction() as session:
            session.add(row)
            await session.flush()
            # created_at is server-assigned
            await session.refresh(row)

        logger.info(
            "Bet recorded: id=%d nonce=%d player=%s amount=%d game=%s",
            row.id, row.nonce, row.player, row.amount, row.game,
        )
        return row

    async def find_latest_by_nonce(self, nonce: int) -> Optional[Bet]:
        """Most recently created row for ``nonce``, or None."""
        async with self.db.transaction() as session:
            result = await session.execute(
                select(Bet)
                .where(Bet.nonce == nonce)
                .order_by(Bet.id.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def apply_resolution(
        self,
        nonce: int,
        roll: int,
        payout: int,
        *,
        from_status: BetStatus = BetStatus.PREPARED_LOCK,
        to_status: BetStatus = BetStatus.PREPARED_RESOLVE,
    ) -> int:
        """Record the outcome on the latest row for ``nonce``.

        Only touches that row, and only while it is still in ``from_status``.
        Returns the affected row count: 1 applied, 0 no-op.
        """
        if not can_transition(from_status, to_status):
            raise ValidationError(
                f"Transition {from_status.value} -> {to_status.value} is not allowed",
                fields=["status"],
            )

        latest_id = (
            select(func.max(Bet.id))
            .where(Bet.nonce == nonce)
            .scalar_subquery()
        )
        stmt = (
            update(Bet)
            .where(Bet.id == latest_id, Bet.status == from_status.value)
            .values(roll=roll, payout=payout, status=to_status.value)
            .execution_options(synchronize_session=False)
        )

        async with self.db.transaction() as session:
            result = await session.execute(stmt)
            affected = result.rowcount

        logger.debug("apply_resolution nonce=%d affected=%d", nonce, affected)
        return affected
