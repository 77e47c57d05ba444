"""Ledger access - registry, proofs, funding and certificate tokens."""

from cairn.kernel.ledger.gateway import LedgerGateway
from cairn.kernel.ledger.records import (
    ZERO_ADDRESS,
    ProjectSummary,
    ProofRecord,
    TransactionReceipt,
)

__all__ = [
    "LedgerGateway",
    "ZERO_ADDRESS",
    "ProjectSummary",
    "ProofRecord",
    "TransactionReceipt",
]
