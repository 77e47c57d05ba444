"""
Reconciliation Engine - merges ledger summaries with off-chain documents into
the published Project collection.
"""

from cairn.engines.reconciliation.driver import ReconciliationDriver
from cairn.engines.reconciliation.limits import CallLimiter
from cairn.engines.reconciliation.project_assembler import ProjectAssembler
from cairn.engines.reconciliation.proof_assembler import ProofAssembler
from cairn.engines.reconciliation.token_ownership import TokenOwnershipResolver

__all__ = [
    "CallLimiter",
    "ProjectAssembler",
    "ProofAssembler",
    "ReconciliationDriver",
    "TokenOwnershipResolver",
]
