"""
models.py — Single source of truth for ledger tables and schemas.

This file contains ONLY:
  1. SQLAlchemy ORM models (DeclarativeBase subclasses) and column types
  2. The bet lifecycle enum and its transition table
  3. Pydantic request/response schemas

Money and nonces are Python ``int`` end to end. ``Lamports`` stores them as
NUMERIC(20, 0) on PostgreSQL, because BIGINT tops out at 2**63 - 1, and as a
64-bit INTEGER everywhere else. No float ever touches these columns.
"""

import enum
import re
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    Integer,
    Numeric,
    String,
    TypeDecorator,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

U64_MAX = 2**64 - 1
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1

_INT_TEXT = re.compile(r"^[+-]?[0-9]+$")


# ============================================================================
# BASE + TYPES
# ============================================================================

class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""
    pass


class Lamports(TypeDecorator):
    """Unsigned 64-bit integer column, exact on every backend."""

    impl = BigInteger
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Numeric(20, 0))
        return dialect.type_descriptor(BigInteger())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, float):
            raise TypeError(f"float is not a valid lamport value: {value!r}")
        if dialect.name == "postgresql":
            return Decimal(int(value))
        return int(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


# Autoincrement only works on SQLite for a plain INTEGER primary key.
BigIntId = BigInteger().with_variant(Integer(), "sqlite")


# ============================================================================
# LIFECYCLE
# ============================================================================

class BetStatus(str, enum.Enum):
    PREPARED_LOCK = "prepared_lock"
    PREPARED_RESOLVE = "prepared_resolve"


INITIAL_STATUS = BetStatus.PREPARED_LOCK

# from_state -> states it may move to. Rows never move backwards.
ALLOWED_TRANSITIONS: dict[BetStatus, frozenset[BetStatus]] = {
    BetStatus.PREPARED_LOCK: frozenset({BetStatus.PREPARED_RESOLVE}),
    BetStatus.PREPARED_RESOLVE: frozenset(),
}


def can_transition(from_status: BetStatus, to_status: BetStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())


class ResolveOutcome(str, enum.Enum):
    APPLIED = "applied"
    # already resolved, or no bet with that nonce
    NOOP = "noop"


# ============================================================================
# TABLES
# ============================================================================

class Bet(Base):
    """
    One wager and its outcome.

    Lifecycle:
      - created once by the recorder in ``prepared_lock``
      - updated at most once by the resolver (roll, payout, status)
      - never deleted

    ``nonce`` is NOT unique at the storage level. When duplicates exist the
    row with the highest ``id`` is the authoritative one.
    """
    __tablename__ = "bets"
    __table_args__ = (
        CheckConstraint("bet_amount_lamports >= 0", name="ck_bets_amount_nonneg"),
        CheckConstraint("payout_lamports >= 0", name="ck_bets_payout_nonneg"),
        CheckConstraint("nonce >= 0", name="ck_bets_nonce_nonneg"),
        CheckConstraint("expiry_unix >= 0", name="ck_bets_expiry_nonneg"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    player: Mapped[str] = mapped_column(String, nullable=False, index=True)
    amount: Mapped[int] = mapped_column("bet_amount_lamports", Lamports, nullable=False)
    bet_type: Mapped[int] = mapped_column(Integer, nullable=False)
    target: Mapped[int] = mapped_column(Integer, nullable=False)
    roll: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    payout: Mapped[int] = mapped_column("payout_lamports", Lamports, nullable=False, default=0)
    nonce: Mapped[int] = mapped_column(Lamports, nullable=False, index=True)
    expiry: Mapped[int] = mapped_column("expiry_unix", Lamports, nullable=False)
    signature_ref: Mapped[str] = mapped_column(
        "signature_base58", String, nullable=False, default=""
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=INITIAL_STATUS.value
    )
    game: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    def is_expired(self, now: Optional[int] = None) -> bool:
        """True once ``expiry_unix`` has passed. Advisory; the store never enforces it."""
        if now is None:
            now = int(time.time())
        return now > self.expiry

    def __repr__(self) -> str:
        return f"<Bet id={self.id} nonce={self.nonce} status={self.status}>"


class GameRule(Base):
    """
    One version of the game configuration. Highest ``id`` is active.

    Readers treat every column except ``id`` as opaque.
    """
    __tablename__ = "game_rules"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    game: Mapped[str] = mapped_column(String(64), nullable=False, default="dice")
    min_bet_lamports: Mapped[int] = mapped_column(Lamports, nullable=False, default=0)
    max_bet_lamports: Mapped[int] = mapped_column(Lamports, nullable=False, default=0)
    house_edge_bps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    params: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


# ============================================================================
# PYDANTIC SCHEMAS
# ============================================================================

def _coerce_int(value: Any) -> Any:
    """Accept ints and base-10 digit strings. Floats and bools never pass."""
    if isinstance(value, bool):
        raise ValueError("boolean is not an integer")
    if isinstance(value, float):
        raise ValueError("floating point values are not accepted")
    if isinstance(value, str):
        text = value.strip()
        if not _INT_TEXT.match(text):
            raise ValueError("must be a base-10 integer")
        return int(text)
    return value


class BetCreate(BaseModel):
    """A bet as submitted by a caller. Also accepts the camelCase keys the game client sends."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    player: str = Field(..., min_length=1, max_length=128)
    amount: int = Field(..., ge=0, le=U64_MAX)
    bet_type: int = Field(
        ..., ge=0, le=I32_MAX, validation_alias=AliasChoices("bet_type", "betType")
    )
    target: int = Field(..., ge=I32_MIN, le=I32_MAX)
    roll: int = Field(default=0, ge=I32_MIN, le=I32_MAX)
    payout: int = Field(default=0, ge=0, le=U64_MAX)
    nonce: int = Field(..., ge=0, le=U64_MAX)
    expiry: int = Field(..., ge=0, le=U64_MAX)
    signature_ref: str = Field(
        default="",
        max_length=256,
        validation_alias=AliasChoices("signature_ref", "signature_base58", "signatureRef"),
    )
    status: Optional[BetStatus] = None
    game: Optional[str] = Field(default=None, max_length=64)

    @field_validator(
        "amount", "bet_type", "target", "roll", "payout", "nonce", "expiry",
        mode="before",
    )
    @classmethod
    def _integers_only(cls, value: Any) -> Any:
        return _coerce_int(value)

    @field_validator("game", mode="before")
    @classmethod
    def _blank_game_is_default(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class BetResolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    nonce: int = Field(..., ge=0, le=U64_MAX)
    roll: int = Field(..., ge=I32_MIN, le=I32_MAX)
    payout: int = Field(..., ge=0, le=U64_MAX)

    @field_validator("nonce", "roll", "payout", mode="before")
    @classmethod
    def _integers_only(cls, value: Any) -> Any:
        return _coerce_int(value)


class RuleSet(BaseModel):
    """Active rules row. Every column besides ``id`` is kept as an extra attribute."""
    model_config = ConfigDict(extra="allow", frozen=True)

    id: int


class ActivityItem(BaseModel):
    player: str
    game: str
    outcome_label: str
    signed_amount_text: str
    time_of_day: str


class DashboardSummary(BaseModel):
    total_users: int
    active_games: int
    total_volume: int
    windowed_revenue: int
    recent_activity: list[ActivityItem]
