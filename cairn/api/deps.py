"""
FastAPI dependencies for the objects wired up in the application lifespan.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from cairn.engines.reconciliation.driver import ReconciliationDriver
from cairn.engines.workflows.ledger_workflows import LedgerWorkflows
from cairn.errors import CairnError, Malformed, NotFound, Unreachable, WriteRejected
from cairn.kernel.ledger.gateway import LedgerGateway
from cairn.kernel.ledger.records import same_address
from cairn.kernel.state.project_store import ProjectStore
from cairn.kernel.state.session import SessionState


def get_ledger(request: Request) -> LedgerGateway:
    return request.app.state.ledger


def get_store(request: Request) -> ProjectStore:
    return request.app.state.store


def get_session(request: Request) -> SessionState:
    return request.app.state.session


def get_driver(request: Request) -> ReconciliationDriver:
    return request.app.state.driver


def get_workflows(request: Request) -> LedgerWorkflows:
    return request.app.state.workflows


Ledger = Annotated[LedgerGateway, Depends(get_ledger)]
Store = Annotated[ProjectStore, Depends(get_store)]
Session = Annotated[SessionState, Depends(get_session)]
Driver = Annotated[ReconciliationDriver, Depends(get_driver)]
Workflows = Annotated[LedgerWorkflows, Depends(get_workflows)]


async def get_active_session(session: Session) -> SessionState:
    """Require a started session. Raises 401 otherwise."""
    if not session.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No active session. POST /session with a wallet address first.",
        )
    return session


ActiveSession = Annotated[SessionState, Depends(get_active_session)]


async def get_signing_session(session: ActiveSession, ledger: Ledger) -> SessionState:
    """
    Require a session whose wallet is the one that signs ledger writes.

    The ledger credits every write to the signing key.
    """
    signer = ledger.signer_address
    if signer is None:
        raise to_http_exception(WriteRejected("No signing key configured; writes are disabled"))
    if not same_address(session.wallet_address, signer):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Writes are signed by {signer}; start a session for that wallet to write",
        )
    return session


SigningSession = Annotated[SessionState, Depends(get_signing_session)]


def to_http_exception(exc: CairnError) -> HTTPException:
    """Map a domain failure onto the HTTP status the client should see."""
    if isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, WriteRejected):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, (Unreachable, Malformed)):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))
