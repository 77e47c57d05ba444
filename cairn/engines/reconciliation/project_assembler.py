"""
Project assembler - turns one ledger summary into one Project.

Metadata is the only mandatory piece: without it there is no project. Once it
is resolved, outputs, proofs, token ownership and the certificate total are
fetched concurrently, and each of them falls back to an empty or default
value on its own.
"""

import asyncio
from typing import Optional

from cairn.engines.reconciliation.limits import CallLimiter, log_leaf_failure
from cairn.engines.reconciliation.proof_assembler import ProofAssembler
from cairn.engines.reconciliation.token_ownership import TokenOwnershipResolver
from cairn.kernel.ledger.gateway import LedgerGateway
from cairn.kernel.ledger.records import ProjectSummary
from cairn.kernel.storage.content_resolver import ContentResolver
from cairn.logging_config import get_logger
from cairn.schemas.documents import ProjectMetadata, ProjectOutput
from cairn.schemas.project import ImpactLevel, Project, TokenOwnership

logger = get_logger(__name__)

DEFAULT_TOTAL_UNITS = 1000


class ProjectAssembler:
    """
    Resolve everything a project summary points at and merge it.

    Usage:
        assembler = ProjectAssembler(ledger, content, CallLimiter(16, 20.0))
        project = await assembler.assemble(summary)  # None if metadata is missing
    """

    def __init__(
        self,
        ledger: LedgerGateway,
        content: ContentResolver,
        limiter: CallLimiter,
        *,
        default_total_units: int = DEFAULT_TOTAL_UNITS,
        proofs: Optional[ProofAssembler] = None,
        tokens: Optional[TokenOwnershipResolver] = None,
    ):
        self.ledger = ledger
        self.content = content
        self.limiter = limiter
        self.default_total_units = default_total_units
        self.proofs = proofs or ProofAssembler(ledger, content, limiter)
        self.tokens = tokens or TokenOwnershipResolver(ledger, limiter)

    async def assemble(self, summary: ProjectSummary) -> Optional[Project]:
        project_id = summary.project_id
        try:
            metadata = await self.limiter.run(
                self.content.resolve(project_id, ProjectMetadata),
                what="resolve metadata",
                address=project_id,
            )
        except Exception as exc:
            log_leaf_failure(logger, "Project dropped: metadata unavailable", exc, project_id=project_id)
            return None

        output, reproducibilities, tokens, total_units = await asyncio.gather(
            self._resolve_output(summary),
            self.proofs.assemble_all(project_id, summary.proof_addresses),
            self.tokens.resolve(summary.token_ids),
            self._resolve_total_units(summary),
            return_exceptions=True,
        )
        if isinstance(output, BaseException):
            log_leaf_failure(logger, "Outputs failed", output, project_id=project_id)
            output = None
        if isinstance(reproducibilities, BaseException):
            log_leaf_failure(logger, "Proofs failed", reproducibilities, project_id=project_id)
            reproducibilities = ()
        if isinstance(tokens, BaseException):
            log_leaf_failure(logger, "Token ownership failed", tokens, project_id=project_id)
            tokens = tuple(TokenOwnership.placeholder(t) for t in summary.token_ids)
        if isinstance(total_units, BaseException):
            log_leaf_failure(logger, "Certificate total failed", total_units, project_id=project_id)
            total_units = self.default_total_units

        return Project(
            id=project_id,
            owner_id=summary.creator,
            type_id=summary.type_id,
            title=metadata.title,
            description=metadata.description,
            created_at=metadata.created_at,
            organization=metadata.organization,
            info_url=metadata.info_url,
            image_url=metadata.image_url,
            tags=tuple(metadata.tags),
            domain=metadata.domain,
            outputs_address=summary.outputs_address,
            output=output,
            reproducibilities=reproducibilities,
            tokens=tokens,
            total_units=total_units,
            funder=summary.funder,
            funding_goal=summary.funding_goal,
            impact=self._impact(summary),
        )

    async def _resolve_output(self, summary: ProjectSummary) -> Optional[ProjectOutput]:
        if not summary.outputs_address:
            return None
        try:
            return await self.limiter.run(
                self.content.resolve(summary.outputs_address, ProjectOutput),
                what="resolve outputs",
                address=summary.outputs_address,
            )
        except Exception as exc:
            log_leaf_failure(
                logger, "Outputs unavailable", exc,
                project_id=summary.project_id, outputs_address=summary.outputs_address,
            )
            return None

    async def _resolve_total_units(self, summary: ProjectSummary) -> int:
        try:
            total = await self.limiter.run(
                self.ledger.get_total_units(summary.type_id),
                what="unitsOf(type)",
                address=str(summary.type_id),
            )
        except Exception as exc:
            log_leaf_failure(
                logger, "Certificate total unavailable, using default", exc,
                project_id=summary.project_id, type_id=summary.type_id,
            )
            return self.default_total_units
        return total if total > 0 else self.default_total_units

    @staticmethod
    def _impact(summary: ProjectSummary) -> ImpactLevel:
        try:
            return ImpactLevel.from_ordinal(summary.impact)
        except ValueError:
            logger.warning(
                "Unknown impact level",
                extra={"project_id": summary.project_id, "impact": summary.impact},
            )
            return ImpactLevel.NONE
