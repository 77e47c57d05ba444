"""
Request and response bodies for the session and write endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from cairn.schemas.documents import ResearchDomain
from cairn.schemas.project import ImpactLevel


class SessionStart(BaseModel):
    wallet_address: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    wallet_address: Optional[str] = None
    started_at: Optional[datetime] = None
    snapshot_version: int = 0
    project_count: int = 0
    available_proofs: Optional[int] = None
    can_write: bool = False


class ProjectCreate(BaseModel):
    """Create request. Metadata fields are uploaded as the project document."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    organization: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    domain: Optional[ResearchDomain] = None
    unit_price: int = Field(default=0, ge=0)


class ProofSubmission(BaseModel):
    description: str = Field(..., min_length=1)
    code_url: str = Field(..., min_length=1)
    output_url: str = Field(..., min_length=1)
    video_url: Optional[str] = None


class DisputeRequest(BaseModel):
    description: str = Field(..., min_length=1)


class FundRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Minor currency units")


class ImpactUpdate(BaseModel):
    impact: ImpactLevel


class WriteResponse(BaseModel):
    """Result of a write workflow and the snapshot it led to."""

    address: str
    tx_hashes: List[str] = Field(default_factory=list)
    snapshot_version: Optional[int] = None
    last_error: Optional[str] = None
