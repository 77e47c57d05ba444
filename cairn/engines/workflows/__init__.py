"""Write-path workflows - upload, transact, reconcile."""

from cairn.engines.workflows.ledger_workflows import LedgerWorkflows, WriteOutcome

__all__ = ["LedgerWorkflows", "WriteOutcome"]
