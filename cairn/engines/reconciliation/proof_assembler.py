"""
Proof assembler - joins a proof's ledger record with its evidence document.

The three lookups for a proof (record, validity, document) run concurrently.
A proof is skipped when either the ledger has no record of it or the evidence
document cannot be read; a failed validity read counts as "not yet valid".
"""

import asyncio
from typing import Iterable, Optional, Tuple

from cairn.engines.reconciliation.limits import CallLimiter, log_leaf_failure
from cairn.kernel.ledger.gateway import LedgerGateway
from cairn.kernel.storage.content_resolver import ContentResolver
from cairn.logging_config import get_logger
from cairn.schemas.documents import ProofDocument
from cairn.schemas.project import Reproducibility

logger = get_logger(__name__)


class ProofAssembler:
    """Build Reproducibility records for the proofs a project references."""

    def __init__(self, ledger: LedgerGateway, content: ContentResolver, limiter: CallLimiter):
        self.ledger = ledger
        self.content = content
        self.limiter = limiter

    async def assemble(self, project_id: str, proof_address: str) -> Optional[Reproducibility]:
        """Return the assembled proof, or None when it has to be skipped."""
        record, valid, document = await asyncio.gather(
            self.limiter.run(
                self.ledger.get_proof(proof_address), what="getProof", address=proof_address
            ),
            self.limiter.run(
                self.ledger.is_proof_valid(proof_address), what="isProofValid", address=proof_address
            ),
            self.limiter.run(
                self.content.resolve(proof_address, ProofDocument),
                what="resolve proof",
                address=proof_address,
            ),
            return_exceptions=True,
        )

        if isinstance(document, BaseException):
            log_leaf_failure(
                logger, "Proof skipped: evidence unavailable", document,
                project_id=project_id, proof_id=proof_address,
            )
            return None
        if isinstance(record, BaseException):
            log_leaf_failure(
                logger, "Proof skipped: no ledger record", record,
                project_id=project_id, proof_id=proof_address,
            )
            return None
        if isinstance(valid, BaseException):
            log_leaf_failure(
                logger, "Proof validity unavailable, treating as not valid", valid,
                project_id=project_id, proof_id=proof_address,
            )
            valid = False

        if document.project_id != project_id:
            logger.debug(
                "Proof document names another project",
                extra={"project_id": project_id, "proof_id": proof_address,
                       "document_project_id": document.project_id},
            )

        return Reproducibility(
            proof_id=proof_address,
            project_id=project_id,
            recorder=record.recorder,
            timestamp=record.recorded_at,
            description=document.description,
            code_url=document.code_url,
            output_url=document.output_url,
            video_url=document.video_url,
            dispute=record.dispute,
            valid=valid,
            dispute_address=record.dispute_address,
        )

    async def assemble_all(
        self, project_id: str, proof_addresses: Iterable[str]
    ) -> Tuple[Reproducibility, ...]:
        """Assemble every proof in parallel; successes only, in ledger order."""
        unique = list(dict.fromkeys(proof_addresses))
        results = await asyncio.gather(*(self.assemble(project_id, a) for a in unique))
        return tuple(r for r in results if r is not None)
