"""betledger — persistence and bookkeeping for a wager game.

Records each bet by nonce, resolves it exactly once, and serves read-only
dashboard aggregates. Amounts are integer lamports end to end.

Quick start::

    from betledger import Ledger, load_settings

    ledger = Ledger.from_settings(load_settings())
    await ledger.start()
    await ledger.recorder.record_bet({
        "player": "7xKX...", "amount": 1_000_000_000, "bet_type": 0,
        "target": 50, "nonce": 1001, "expiry": 1767225600,
    })
    outcome = await ledger.resolver.resolve(1001, roll=37, payout=2_000_000_000)
"""

from betledger.config import LedgerSettings, load_settings
from betledger.database import Database
from betledger.errors import (
    LedgerError,
    RulesNotConfiguredError,
    SchemaBootstrapError,
    StorageError,
    ValidationError,
)
from betledger.ledger import Ledger
from betledger.models import (
    ActivityItem,
    Bet,
    BetCreate,
    BetStatus,
    DashboardSummary,
    ResolveOutcome,
    RuleSet,
)
from betledger.services.bet_service import BetRecorder, BetResolver
from betledger.services.dashboard_service import DashboardAggregator
from betledger.services.ledger_store import LedgerStore
from betledger.services.rules_service import RulesProvider

__version__ = "1.0.0"
__all__ = [
    "ActivityItem",
    "Bet",
    "BetCreate",
    "BetRecorder",
    "BetResolver",
    "BetStatus",
    "DashboardAggregator",
    "DashboardSummary",
    "Database",
    "Ledger",
    "LedgerError",
    "LedgerSettings",
    "LedgerStore",
    "ResolveOutcome",
    "RuleSet",
    "RulesNotConfiguredError",
    "RulesProvider",
    "SchemaBootstrapError",
    "StorageError",
    "ValidationError",
    "load_settings",
]
