"""
Error taxonomy shared by the ledger gateway, the content resolver and the
reconciliation engine.

- NotFound: the ledger has no record (a legitimate empty result, never retried)
- Unreachable: endpoint unavailable or timed out (retryable by the caller)
- Malformed: a response resolved but does not match the expected shape
- WriteRejected: a transaction reverted, timed out or could not be signed
"""

from typing import Optional


class CairnError(Exception):
    """Base class for all service errors."""

    def __init__(self, message: str, *, address: Optional[str] = None):
        super().__init__(message)
        self.address = address


class NotFound(CairnError):
    pass


class Unreachable(CairnError):
    pass


class Malformed(CairnError):
    pass


class WriteRejected(CairnError):
    """A ledger write did not produce a successful receipt."""

    def __init__(
        self,
        message: str,
        *,
        address: Optional[str] = None,
        tx_hash: Optional[str] = None,
    ):
        super().__init__(message, address=address)
        self.tx_hash = tx_hash


class LedgerNotFound(NotFound):
    pass


class LedgerUnreachable(Unreachable):
    pass


class LedgerMalformed(Malformed):
    pass


class ContentUnreachable(Unreachable):
    pass


class ContentMalformed(Malformed):
    pass
