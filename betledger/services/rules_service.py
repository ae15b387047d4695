"""
rules_service.py — Active game rules lookup.

Rules are versioned rows in ``game_rules``; the highest id is the active
version. Columns other than ``id`` are opaque here and passed through as-is.
"""

import logging
from typing import Optional

from sqlalchemy import text

from betledger.database import Database
from betledger.errors import RulesNotConfiguredError
from betledger.models import RuleSet

logger = logging.getLogger("rules_service")

_LATEST_RULES = text("SELECT * FROM game_rules ORDER BY id DESC LIMIT 1")


class RulesProvider:
    def __init__(self, db: Database):
        self.db = db

    async def get_active_rules(self) -> Optional[RuleSet]:
        """Latest ruleset, or None when the table is empty. Never invents defaults."""
        async with self.db.transaction() as session:
            result = await session.execute(_LATEST_RULES)
            row = result.mappings().first()

        if row is None:
            return None
        return RuleSet.model_validate(dict(row))

    async def require_active_rules(self) -> RuleSet:
        """Startup guard for callers that cannot run without rules."""
        rules = await self.get_active_rules()
        if rules is None:
            logger.critical("No game rules configured (game_rules is empty)")
            raise RulesNotConfiguredError("game_rules table is empty")
        return rules
