"""
Common schema types used across the API.
"""

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    snapshot_version: int = 0
    writes_enabled: bool = False
    last_error: Optional[str] = None
