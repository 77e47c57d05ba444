"""
Kernel Layer

Boundary components the reconciliation engine is built on:
- Ledger gateway (registry, proofs, funding, certificate tokens)
- Content resolver (off-chain documents by content address)
- Application state (published project snapshots, session)
"""
