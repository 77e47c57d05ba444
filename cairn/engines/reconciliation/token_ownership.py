"""
Token ownership resolver - current holder and size of each certificate fraction.

A token that cannot be resolved is reported as a zero-address placeholder
with zero units. That never affects its sibling tokens or the project.
"""

import asyncio
from typing import Iterable, Tuple

from cairn.engines.reconciliation.limits import CallLimiter, log_leaf_failure
from cairn.kernel.ledger.gateway import LedgerGateway
from cairn.logging_config import get_logger
from cairn.schemas.project import TokenOwnership

logger = get_logger(__name__)


class TokenOwnershipResolver:
    """Resolve (owner, units) per token, one independent lookup pair each."""

    def __init__(self, ledger: LedgerGateway, limiter: CallLimiter):
        self.ledger = ledger
        self.limiter = limiter

    async def resolve_token(self, token_id: int) -> TokenOwnership:
        key = str(token_id)
        owner, units = await asyncio.gather(
            self.limiter.run(self.ledger.get_token_owner(token_id), what="ownerOf", address=key),
            self.limiter.run(self.ledger.get_token_units(token_id), what="unitsOf", address=key),
            return_exceptions=True,
        )
        for result in (owner, units):
            if isinstance(result, BaseException):
                log_leaf_failure(logger, "Token ownership unavailable", result, token_id=token_id)
                return TokenOwnership.placeholder(token_id)
        return TokenOwnership(token_id=token_id, owner=owner, units=units)

    async def resolve(self, token_ids: Iterable[int]) -> Tuple[TokenOwnership, ...]:
        """Resolve all tokens concurrently, keeping the ledger's order."""
        results = await asyncio.gather(*(self.resolve_token(t) for t in token_ids))
        return tuple(results)
