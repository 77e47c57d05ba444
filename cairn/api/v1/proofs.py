"""
Proof endpoints - disputes and the session wallet's contributions.
"""

from typing import List

from fastapi import APIRouter, status

from cairn.api.deps import ActiveSession, SigningSession, Store, Workflows, to_http_exception
from cairn.api.v1.projects import write_response
from cairn.errors import CairnError
from cairn.schemas.project import Reproducibility
from cairn.schemas.requests import DisputeRequest, WriteResponse

router = APIRouter()


@router.post("/proofs/{proof_id}/dispute", response_model=WriteResponse, status_code=status.HTTP_201_CREATED)
async def dispute_proof(proof_id: str, data: DisputeRequest, session: SigningSession, workflows: Workflows):
    try:
        outcome = await workflows.dispute_proof(proof_id, data.description)
    except CairnError as exc:
        raise to_http_exception(exc) from exc
    return write_response(outcome)


@router.get("/contributions", response_model=List[Reproducibility])
async def list_contributions(session: ActiveSession, store: Store):
    """Reproducibilities recorded by the session wallet, across all projects."""
    return store.contributions_of(session.wallet_address)
