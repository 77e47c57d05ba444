"""
Project aggregate and its parts.

A Project is the merge of one ledger summary with the documents it points at.
Instances are immutable; a reconciliation pass builds new ones instead of
patching published ones.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

from cairn.kernel.ledger.records import ZERO_ADDRESS, same_address
from cairn.orchestration.state_machine import ReproducibilityState, derive_state
from cairn.schemas.documents import ProjectOutput, ResearchDomain


class ImpactLevel(str, Enum):
    """Impact recognized for a project, stored on the ledger as an ordinal 0-3."""
    NONE = "None"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def from_ordinal(cls, value: int) -> "ImpactLevel":
        levels = list(cls)
        if not 0 <= value < len(levels):
            raise ValueError(f"Impact ordinal out of range: {value}")
        return levels[value]


class Reproducibility(BaseModel):
    """A recorded proof-of-reproducibility joined with its evidence document."""

    model_config = ConfigDict(frozen=True)

    proof_id: str
    project_id: str
    recorder: str
    timestamp: int  # ledger recording time, seconds since epoch
    description: str
    code_url: str
    output_url: str
    video_url: Optional[str] = None
    dispute: bool = False
    valid: bool = False
    dispute_address: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def state(self) -> ReproducibilityState:
        return derive_state(self.valid, self.dispute)


class TokenOwnership(BaseModel):
    """Current holder of one fraction of a project's impact certificate."""

    model_config = ConfigDict(frozen=True)

    token_id: int
    owner: str = ZERO_ADDRESS
    units: int = 0

    @property
    def is_placeholder(self) -> bool:
        return self.owner == ZERO_ADDRESS and self.units == 0

    @classmethod
    def placeholder(cls, token_id: int) -> "TokenOwnership":
        """Stand-in used when the token could not be resolved."""
        return cls(token_id=token_id)


class Project(BaseModel):
    """Reconciled view of one registered project."""

    model_config = ConfigDict(frozen=True)

    id: str  # project content address
    owner_id: str
    type_id: int

    # Metadata document
    title: str
    description: str
    created_at: Optional[str] = None
    organization: Optional[str] = None
    info_url: Optional[str] = None
    image_url: Optional[str] = None
    tags: Tuple[str, ...] = ()
    domain: Optional[ResearchDomain] = None

    # Outputs document
    outputs_address: Optional[str] = None
    output: Optional[ProjectOutput] = None

    reproducibilities: Tuple[Reproducibility, ...] = ()

    # Impact certificate
    tokens: Tuple[TokenOwnership, ...] = ()
    total_units: int

    # Funding
    funder: str = ZERO_ADDRESS
    funding_goal: int = 0
    impact: ImpactLevel = ImpactLevel.NONE

    @computed_field  # type: ignore[prop-decorator]
    @property
    def verified_count(self) -> int:
        return sum(1 for r in self.reproducibilities if r.state == ReproducibilityState.SUCCESS)

    def is_owned_by(self, wallet_address: Optional[str]) -> bool:
        return same_address(self.owner_id, wallet_address)

    def ownership_fraction(self, token_id: int) -> float:
        """Share of the certificate held by token_id, 0.0 when unknown."""
        if self.total_units <= 0:
            return 0.0
        for token in self.tokens:
            if token.token_id == token_id:
                return token.units / self.total_units
        return 0.0

    def holdings_of(self, wallet_address: Optional[str]) -> float:
        """Combined certificate share held by a wallet across all fractions."""
        if self.total_units <= 0:
            return 0.0
        units = sum(t.units for t in self.tokens if same_address(t.owner, wallet_address))
        return units / self.total_units

    def reproducibilities_by(self, wallet_address: Optional[str]) -> List[Reproducibility]:
        return [r for r in self.reproducibilities if same_address(r.recorder, wallet_address)]


class FundingEvent(BaseModel):
    """One contribution to a project's funding pool."""

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    project_title: str  # kept so history renders even if the project drops out
    funder: str
    amount: int  # minor currency units
    timestamp: datetime
    tx_hash: Optional[str] = None


class ProjectSnapshotResponse(BaseModel):
    """Published project collection as returned by the API."""

    version: int
    published_at: Optional[datetime] = None
    last_error: Optional[str] = None
    projects: List[Project] = Field(default_factory=list)
