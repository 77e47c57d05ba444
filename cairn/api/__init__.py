"""HTTP API for the reconciled project collection."""
