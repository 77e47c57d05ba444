"""
Session endpoints - start a wallet session and re-run reconciliation.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, status

from cairn.api.deps import Driver, Ledger, Session, Store
from cairn.errors import CairnError
from cairn.kernel.ledger.records import same_address
from cairn.kernel.state.project_store import ProjectStore
from cairn.kernel.state.session import SessionState
from cairn.logging_config import get_logger
from cairn.schemas.requests import SessionResponse, SessionStart

logger = get_logger(__name__)

router = APIRouter()


async def _available_proofs(ledger, wallet_address: Optional[str]) -> Optional[int]:
    if wallet_address is None:
        return None
    try:
        return await ledger.get_user_por_count(wallet_address)
    except CairnError as exc:
        logger.warning(
            "Available proof count unavailable",
            extra={"wallet": wallet_address, "error": str(exc)},
        )
        return None


async def _session_response(ledger, session: SessionState, store: ProjectStore) -> SessionResponse:
    snapshot = store.snapshot
    return SessionResponse(
        wallet_address=session.wallet_address,
        started_at=session.started_at,
        snapshot_version=snapshot.version,
        project_count=len(snapshot.projects),
        available_proofs=await _available_proofs(ledger, session.wallet_address),
        can_write=same_address(session.wallet_address, ledger.signer_address),
    )


@router.post("/session", response_model=SessionResponse)
async def start_session(data: SessionStart, session: Session, store: Store, driver: Driver, ledger: Ledger):
    """Start a session for a wallet and reconcile the project collection."""
    try:
        session.start(data.wallet_address)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    logger.info("Session started", extra={"wallet": session.wallet_address})
    await driver.reconcile_all()
    return await _session_response(ledger, session, store)


@router.get("/session", response_model=SessionResponse)
async def get_session(session: Session, store: Store, ledger: Ledger):
    return await _session_response(ledger, session, store)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def end_session(session: Session):
    session.end()


@router.post("/reconcile", response_model=SessionResponse)
async def reconcile(session: Session, store: Store, driver: Driver, ledger: Ledger):
    """Re-run the full reconciliation pipeline."""
    await driver.reconcile_all()
    return await _session_response(ledger, session, store)
