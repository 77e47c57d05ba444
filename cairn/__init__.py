"""
Cairn - project and reproducibility reconciliation for a proof-of-reproducibility
research funding ledger.
"""

__version__ = "0.1.0"
