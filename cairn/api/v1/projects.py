"""
Project endpoints.

Reads come straight from the published snapshot. Writes go through
LedgerWorkflows and answer with the version of the snapshot that followed.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from cairn.api.deps import Session, SigningSession, Store, Workflows, to_http_exception
from cairn.engines.workflows.ledger_workflows import WriteOutcome
from cairn.errors import CairnError
from cairn.schemas.documents import ProjectMetadata, ProjectOutput, ResearchDomain
from cairn.schemas.project import Project, ProjectSnapshotResponse, Reproducibility
from cairn.schemas.requests import ImpactUpdate, ProjectCreate, ProofSubmission, WriteResponse

router = APIRouter()


def write_response(outcome: WriteOutcome) -> WriteResponse:
    snapshot = outcome.snapshot
    return WriteResponse(
        address=outcome.address,
        tx_hashes=outcome.tx_hashes,
        snapshot_version=snapshot.version if snapshot else None,
        last_error=snapshot.last_error if snapshot else None,
    )


@router.get("", response_model=ProjectSnapshotResponse)
async def list_projects(
    store: Store,
    session: Session,
    owner: Optional[str] = Query(None, description="'me' or a wallet address"),
    discover: bool = Query(False, description="Only projects the session wallet does not own"),
    domain: Optional[ResearchDomain] = None,
):
    """List reconciled projects."""
    if owner is not None and discover:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="owner and discover cannot be combined",
        )

    snapshot = store.snapshot
    projects: List[Project] = list(snapshot.projects)
    if owner is not None or discover:
        wallet = owner if owner not in (None, "me") else session.wallet_address
        if wallet is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="owner=me and discover need an active session",
            )
        projects = store.owned_by(wallet) if owner is not None else store.discover(wallet)

    if domain is not None:
        projects = [p for p in projects if p.domain == domain]

    return ProjectSnapshotResponse(
        version=snapshot.version,
        published_at=snapshot.published_at,
        last_error=snapshot.last_error,
        projects=projects,
    )


@router.post("", response_model=WriteResponse, status_code=status.HTTP_201_CREATED)
async def create_project(data: ProjectCreate, session: SigningSession, workflows: Workflows):
    """Upload project metadata, mint its certificate and register it."""
    metadata = ProjectMetadata(
        title=data.title,
        description=data.description,
        owner_address=session.wallet_address,
        organization=data.organization,
        info_url=data.url,
        image_url=data.image_url,
        tags=data.tags,
        domain=data.domain,
    )
    try:
        outcome = await workflows.create_project(metadata, unit_price=data.unit_price)
    except CairnError as exc:
        raise to_http_exception(exc) from exc
    return write_response(outcome)


@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: str, store: Store):
    project = store.get(project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


@router.get("/{project_id}/reproducibilities", response_model=List[Reproducibility])
async def list_reproducibilities(project_id: str, store: Store):
    project = store.get(project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return list(project.reproducibilities)


@router.post("/{project_id}/outputs", response_model=WriteResponse, status_code=status.HTTP_201_CREATED)
async def add_outputs(project_id: str, data: ProjectOutput, session: SigningSession, workflows: Workflows):
    """Record the research output document. Only the owner may do this, once."""
    project = workflows.store.get(project_id)
    if project is not None and not project.is_owned_by(session.wallet_address):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the project owner can add outputs")
    try:
        outcome = await workflows.add_outputs(project_id, data)
    except CairnError as exc:
        raise to_http_exception(exc) from exc
    return write_response(outcome)


@router.post("/{project_id}/proofs", response_model=WriteResponse, status_code=status.HTTP_201_CREATED)
async def submit_proof(project_id: str, data: ProofSubmission, session: SigningSession, workflows: Workflows):
    """Record a proof-of-reproducibility for someone else's project."""
    project = workflows.store.get(project_id)
    if project is not None and project.is_owned_by(session.wallet_address):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owners cannot reproduce their own project",
        )
    try:
        outcome = await workflows.submit_proof(
            project_id,
            description=data.description,
            code_url=data.code_url,
            output_url=data.output_url,
            video_url=data.video_url,
        )
    except CairnError as exc:
        raise to_http_exception(exc) from exc
    return write_response(outcome)


@router.put("/{project_id}/impact", response_model=WriteResponse)
async def set_impact(project_id: str, data: ImpactUpdate, session: SigningSession, workflows: Workflows):
    try:
        outcome = await workflows.set_impact(project_id, data.impact)
    except CairnError as exc:
        raise to_http_exception(exc) from exc
    return write_response(outcome)
