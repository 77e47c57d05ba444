"""
Ledger workflows - the write path.

Each workflow is a fixed sequence: upload the off-chain document, submit the
ledger transaction(s), then run a full reconciliation pass. Nothing here edits
published projects directly; the new state becomes visible only through the
next pass.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from cairn.engines.reconciliation.driver import ReconciliationDriver
from cairn.errors import NotFound, WriteRejected
from cairn.kernel.ledger.gateway import LedgerGateway
from cairn.kernel.ledger.records import first_fraction_id
from cairn.kernel.state.project_store import ProjectSnapshot, ProjectStore
from cairn.kernel.storage.content_resolver import IPFS_SCHEME, ContentResolver
from cairn.logging_config import get_logger
from cairn.schemas.documents import (
    DisputeDocument,
    ProjectMetadata,
    ProjectOutput,
    ProofDocument,
)
from cairn.schemas.project import FundingEvent, ImpactLevel, Project

logger = get_logger(__name__)


@dataclass
class WriteOutcome:
    """What a workflow wrote and the snapshot published afterwards."""
    address: str
    tx_hashes: List[str] = field(default_factory=list)
    snapshot: Optional[ProjectSnapshot] = None


class LedgerWorkflows:
    """
    Write-path workflows.

    Usage:
        workflows = LedgerWorkflows(ledger, content, store, driver)
        outcome = await workflows.submit_proof(project_id, description=..., code_url=..., output_url=...)
    """

    def __init__(
        self,
        ledger: LedgerGateway,
        content: ContentResolver,
        store: ProjectStore,
        driver: ReconciliationDriver,
        *,
        certificate_units: int = 1000,
    ):
        self.ledger = ledger
        self.content = content
        self.store = store
        self.driver = driver
        self.certificate_units = certificate_units

    def _require_project(self, project_id: str) -> Project:
        project = self.store.get(project_id)
        if project is None:
            raise NotFound("Project is not in the published collection", address=project_id)
        return project

    async def _refresh(self, outcome: WriteOutcome) -> WriteOutcome:
        outcome.snapshot = await self.driver.reconcile_all()
        return outcome

    async def create_project(self, metadata: ProjectMetadata, *, unit_price: int = 0) -> WriteOutcome:
        """Upload metadata, mint its impact certificate and register the project."""
        now = datetime.now(timezone.utc)
        if metadata.created_at is None:
            metadata = metadata.model_copy(update={"created_at": now.isoformat()})
        stamp = int(now.timestamp())
        project_address = await self.content.publish(metadata, filename=f"project_{stamp}.json")

        mint = await self.ledger.mint_certificate(
            self.certificate_units, f"{IPFS_SCHEME}{project_address}"
        )
        if mint.claim_id is None:
            raise WriteRejected("Certificate mint returned no claim id", address=project_address)
        approval = await self.ledger.set_approval_for_all()
        registration = await self.ledger.register_project(
            project_address, first_fraction_id(mint.claim_id), unit_price
        )
        logger.info(
            "Project registered",
            extra={"project_id": project_address, "claim_id": str(mint.claim_id)},
        )
        return await self._refresh(WriteOutcome(
            address=project_address,
            tx_hashes=[mint.tx_hash, approval.tx_hash, registration.tx_hash],
        ))

    async def add_outputs(self, project_id: str, output: ProjectOutput) -> WriteOutcome:
        """Record the project's output document. Outputs are recorded once."""
        project = self._require_project(project_id)
        if project.outputs_address:
            raise WriteRejected("Outputs already recorded for this project", address=project_id)

        stamp = int(datetime.now(timezone.utc).timestamp())
        outputs_address = await self.content.publish(output, filename=f"project_{stamp}.json")
        receipt = await self.ledger.record_outputs(project_id, outputs_address)
        return await self._refresh(WriteOutcome(address=outputs_address, tx_hashes=[receipt.tx_hash]))

    async def submit_proof(
        self,
        project_id: str,
        *,
        description: str,
        code_url: str,
        output_url: str,
        video_url: Optional[str] = None,
    ) -> WriteOutcome:
        """Upload evidence and record a proof-of-reproducibility for a project."""
        self._require_project(project_id)
        now = datetime.now(timezone.utc)
        document = ProofDocument(
            project_id=project_id,
            timestamp=now.isoformat(),
            description=description,
            code_url=code_url,
            output_url=output_url,
            video_url=video_url,
        )
        proof_address = await self.content.publish(
            document, filename=f"proof_{int(now.timestamp())}.json"
        )
        receipt = await self.ledger.record_proof(project_id, proof_address)
        return await self._refresh(WriteOutcome(address=proof_address, tx_hashes=[receipt.tx_hash]))

    async def dispute_proof(self, proof_id: str, description: str) -> WriteOutcome:
        """Open a dispute on a recorded proof."""
        document = DisputeDocument(proof_id=proof_id, description=description)
        stamp = int(datetime.now(timezone.utc).timestamp())
        dispute_address = await self.content.publish(document, filename=f"dispute_{stamp}.json")
        receipt = await self.ledger.dispute_proof(proof_id, dispute_address)
        return await self._refresh(WriteOutcome(address=dispute_address, tx_hashes=[receipt.tx_hash]))

    async def fund_project(self, project_id: str, amount: int) -> WriteOutcome:
        """
        Approve and transfer `amount` minor units to a project's funding pool.

        The funding event is recorded under the signing wallet, the same
        address the ledger stores as the project's funder.
        """
        if amount <= 0:
            raise ValueError("Funding amount must be positive")
        project = self._require_project(project_id)

        approval = await self.ledger.approve_funding_token(amount)
        receipt = await self.ledger.fund_project(amount, project_id)

        event = FundingEvent(
            id=f"fh-{uuid.uuid4().hex[:12]}",
            project_id=project_id,
            project_title=project.title,
            funder=self.ledger.signer_address,
            amount=amount,
            timestamp=datetime.now(timezone.utc),
            tx_hash=receipt.tx_hash,
        )
        self.store.record_funding(event)
        logger.info(
            "Project funded",
            extra={"project_id": project_id, "amount": amount, "tx_hash": receipt.tx_hash},
        )
        return await self._refresh(WriteOutcome(
            address=project_id, tx_hashes=[approval.tx_hash, receipt.tx_hash]
        ))

    async def set_impact(self, project_id: str, impact: ImpactLevel) -> WriteOutcome:
        self._require_project(project_id)
        ordinal = list(ImpactLevel).index(impact)
        receipt = await self.ledger.set_project_impact(project_id, ordinal)
        return await self._refresh(WriteOutcome(address=project_id, tx_hashes=[receipt.tx_hash]))
