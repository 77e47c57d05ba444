"""
Funding endpoints.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from cairn.api.deps import ActiveSession, SigningSession, Store, Workflows, to_http_exception
from cairn.api.v1.projects import write_response
from cairn.errors import CairnError
from cairn.schemas.project import FundingEvent
from cairn.schemas.requests import FundRequest, WriteResponse

router = APIRouter()


@router.post("/projects/{project_id}/fund", response_model=WriteResponse, status_code=status.HTTP_201_CREATED)
async def fund_project(project_id: str, data: FundRequest, session: SigningSession, workflows: Workflows):
    """Approve and transfer funds to a project, then re-reconcile."""
    try:
        outcome = await workflows.fund_project(project_id, data.amount)
    except CairnError as exc:
        raise to_http_exception(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return write_response(outcome)


@router.get("/funding", response_model=List[FundingEvent])
async def list_funding(session: ActiveSession, store: Store):
    """Funding history of the session wallet, newest first."""
    return store.funding_events(session.wallet_address)
