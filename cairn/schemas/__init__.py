"""
Pydantic schemas: off-chain documents, the reconciled Project aggregate and
API bodies.
"""

from cairn.schemas.common import HealthResponse
from cairn.schemas.documents import (
    DisputeDocument,
    OutputResources,
    OutputTools,
    ProjectMetadata,
    ProjectOutput,
    ProofDocument,
    ResearchDomain,
    Tool,
)
from cairn.schemas.project import (
    FundingEvent,
    ImpactLevel,
    Project,
    ProjectSnapshotResponse,
    Reproducibility,
    TokenOwnership,
)

__all__ = [
    "DisputeDocument",
    "FundingEvent",
    "HealthResponse",
    "ImpactLevel",
    "OutputResources",
    "OutputTools",
    "Project",
    "ProjectMetadata",
    "ProjectOutput",
    "ProjectSnapshotResponse",
    "ProofDocument",
    "Reproducibility",
    "ResearchDomain",
    "TokenOwnership",
    "Tool",
]
