"""
bet_service.py — Recording and resolving bets.

Follows the same split as the storage layer: these classes validate and
decide, LedgerStore owns every SQL statement.

Neither class holds locks or opens cross-call transactions. Recording and
resolving are each a single atomic write; exactly-once resolution is the
conditional UPDATE in LedgerStore.apply_resolution.
"""

import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from betledger.errors import ValidationError
from betledger.models import (
    INITIAL_STATUS,
    Bet,
    BetCreate,
    BetResolution,
    BetStatus,
    ResolveOutcome,
)
from betledger.services.ledger_store import LedgerStore

logger = logging.getLogger("bet_service")


def _invalid(exc: PydanticValidationError, what: str) -> ValidationError:
    fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
    return ValidationError(f"Invalid {what}: {', '.join(fields)}", fields=fields)


class BetRecorder:
    """Creates bets in their initial lifecycle state."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def record_bet(self, request: Union[BetCreate, Mapping[str, Any]]) -> Bet:
        """Validate ``request`` and append it to the ledger.

        Nonce uniqueness is not checked here: two submissions with the
        same nonce both land, and readers take the newest.

        A new bet always starts in the initial state with roll and payout at
        zero; only the Resolver moves it on. Requests that carry any other
        status, roll or payout are rejected.

        Raises ValidationError before touching storage, StorageError on write failure.
        """
        if isinstance(request, BetCreate):
            bet = request
        else:
            try:
                bet = BetCreate.model_validate(request)
            except PydanticValidationError as exc:
                raise _invalid(exc, "bet") from exc

        preset = []
        if bet.status not in (None, INITIAL_STATUS):
            preset.append("status")
        if bet.roll != 0:
            preset.append("roll")
        if bet.payout != 0:
            preset.append("payout")
        if preset:
            raise ValidationError(
                f"Invalid bet: {', '.join(preset)} set by the resolver only",
                fields=preset,
            )

        return await self.store.insert(bet.model_copy(update={"status": INITIAL_STATUS}))


class BetResolver:
    """Moves a bet from prepared_lock to prepared_resolve, at most once."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def resolve(self, nonce: Any, roll: Any, payout: Any) -> ResolveOutcome:
        """Record ``roll`` and ``payout`` against the latest bet for ``nonce``.

        Returns APPLIED when exactly one row moved, otherwise NOOP (already
        resolved, or no such nonce). NOOP is safe to treat as success on retry.
        Expiry is not checked here; callers that enforce it use Bet.is_expired.
        """
        try:
            resolution = BetResolution(nonce=nonce, roll=roll, payout=payout)
        except PydanticValidationError as exc:
            raise _invalid(exc, "resolution") from exc

        affected = await self.store.apply_resolution(
            resolution.nonce,
            resolution.roll,
            resolution.payout,
            from_status=BetStatus.PREPARED_LOCK,
            to_status=BetStatus.PREPARED_RESOLVE,
        )

        if affected == 1:
            logger.info(
                "Bet resolved: nonce=%d roll=%d payout=%d",
                resolution.nonce, resolution.roll, resolution.payout,
            )
            return ResolveOutcome.APPLIED

        logger.info(
            "Resolution no-op: nonce=%d already resolved or not found",
            resolution.nonce,
        )
        return ResolveOutcome.NOOP
