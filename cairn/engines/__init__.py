"""
Engines - reconciliation (read path) and ledger workflows (write path).
"""
