"""
Off-chain document schemas.

Every document stored on the content network is validated against one of
these models when it is resolved; a mismatch surfaces as ContentMalformed
rather than as a missing attribute somewhere downstream.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResearchDomain(str, Enum):
    """Research domains a project can declare."""
    ROBOTICS = "Robotics"
    SIMULATION = "Simulation"
    HARDWARE = "Hardware"


class Tool(str, Enum):
    """Known tools an output can declare. Anything else goes in other_tools."""
    PYTHON = "Python"
    R = "R"
    JAVASCRIPT = "JavaScript"
    SQL = "SQL"
    JAVA = "Java"
    CPP = "C++"
    GO = "Go"
    RUST = "Rust"
    ROS = "ROS"
    MUJOCO = "MuJoCo"
    AWS = "AWS"
    BITROBOT = "BitRobot"


class _Document(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class ProjectMetadata(_Document):
    """Project registration document referenced by the project's content address."""

    title: str = Field(..., min_length=1)
    description: str
    created_at: Optional[str] = None
    owner_address: Optional[str] = None
    organization: Optional[str] = None
    info_url: Optional[str] = Field(None, alias="url")
    image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    domain: Optional[ResearchDomain] = None


class OutputResources(_Document):
    dataset_url: str = ""
    code_url: str = ""
    code_output_url: str = ""


class OutputTools(_Document):
    tools: List[Tool] = Field(default_factory=list)
    other_tools: List[str] = Field(default_factory=list)


class ProjectOutput(_Document):
    """Research output document recorded once per project."""

    paper_url: str
    description: str
    resources: OutputResources = Field(default_factory=OutputResources)
    tools: OutputTools = Field(default_factory=OutputTools)


class ProofDocument(_Document):
    """
    Evidence backing a proof-of-reproducibility claim.

    The timestamp here is whatever the submitter wrote; the assembled record
    always uses the ledger's recording time instead.
    """

    project_id: str
    timestamp: Optional[str] = None
    description: str
    code_url: str
    output_url: str
    video_url: Optional[str] = None


class DisputeDocument(_Document):
    """Reason given when disputing a recorded proof."""

    proof_id: str = Field(..., alias="proofId")
    description: str = Field(..., min_length=1)
