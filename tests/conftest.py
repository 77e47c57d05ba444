"""
Pytest fixtures for Cairn tests.

The ledger and the content network are replaced by in-memory fakes with the
same async surface as LedgerGateway and ContentResolver. Each lookup table
maps an address (or token id) to either a value or an exception instance; an
exception is raised when that entry is read.
"""

import asyncio
import itertools
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

import pytest

from cairn.engines.reconciliation.driver import ReconciliationDriver
from cairn.engines.reconciliation.limits import CallLimiter
from cairn.engines.reconciliation.project_assembler import ProjectAssembler
from cairn.errors import ContentUnreachable, LedgerNotFound, WriteRejected
from cairn.kernel.ledger.records import ProjectSummary, ProofRecord, TransactionReceipt
from cairn.kernel.state.project_store import ProjectStore

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
SIGNER = "0x" + "d4" * 20


def make_summary(
    project_address: str,
    *,
    creator: str = ALICE,
    type_id: int = 100,
    token_ids: Sequence[int] = (101,),
    outputs_address: Optional[str] = None,
    proof_addresses: Sequence[str] = (),
    impact: int = 0,
    funder: str = "0x" + "00" * 20,
    funding_goal: int = 0,
) -> ProjectSummary:
    return ProjectSummary(
        creator=creator,
        type_id=type_id,
        token_ids=tuple(token_ids),
        project_address=project_address,
        outputs_address=outputs_address,
        proof_addresses=tuple(proof_addresses),
        impact=impact,
        funder=funder,
        funding_goal=funding_goal,
    )


def metadata_doc(title: str = "Grasping benchmark", **overrides: Any) -> Dict[str, Any]:
    doc = {
        "title": title,
        "description": "Reproduce the grasp success rates",
        "created_at": "2025-03-01T12:00:00Z",
        "organization": "Open Robotics Lab",
        "url": "https://example.org/grasp",
        "tags": ["manipulation"],
        "domain": "Robotics",
    }
    doc.update(overrides)
    return doc


def proof_doc(project_id: str, **overrides: Any) -> Dict[str, Any]:
    doc = {
        "project_id": project_id,
        "timestamp": "2025-03-02T09:00:00Z",
        "description": "Ran the published notebook on fresh hardware",
        "code_url": "https://github.com/example/repro",
        "output_url": "https://example.org/results.csv",
    }
    doc.update(overrides)
    return doc


class FakeLedger:
    """In-memory stand-in for LedgerGateway."""

    def __init__(self, signer_address: Optional[str] = SIGNER):
        self.summaries: List[ProjectSummary] = []
        self.proofs: Dict[str, Any] = {}
        self.validity: Dict[str, Any] = {}
        self.owners: Dict[int, Any] = {}
        self.units: Dict[int, Any] = {}
        self.totals: Dict[int, Any] = {}
        self.por_counts: Dict[str, Any] = {}
        self.list_error: Optional[Exception] = None
        self.list_calls: List[tuple] = []
        self.writes: List[tuple] = []
        self.signer_address = signer_address
        self._blocks = itertools.count(1)
        self._claims = itertools.count(1000, 1000)

    @staticmethod
    def _lookup(table: Dict[Any, Any], key: Any, default: Any = None) -> Any:
        value = table.get(key, default)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise LedgerNotFound("No record", address=str(key))
        return value

    async def list_projects(self, offset: int, limit: int) -> List[ProjectSummary]:
        self.list_calls.append((offset, limit))
        if self.list_error is not None:
            raise self.list_error
        return self.summaries[offset:offset + limit]

    async def get_proof(self, proof_address: str) -> ProofRecord:
        return self._lookup(self.proofs, proof_address)

    async def is_proof_valid(self, proof_address: str) -> bool:
        return self._lookup(self.validity, proof_address, False)

    async def get_token_owner(self, token_id: int) -> str:
        return self._lookup(self.owners, token_id)

    async def get_token_units(self, token_id: int) -> int:
        return self._lookup(self.units, token_id)

    async def get_total_units(self, type_id: int) -> int:
        return self._lookup(self.totals, type_id, 1000)

    async def get_user_por_count(self, wallet_address: str) -> int:
        return self._lookup(self.por_counts, wallet_address.lower(), 0)

    def _receipt(self, what: str, *args: Any, claim_id: Optional[int] = None) -> TransactionReceipt:
        if self.signer_address is None:
            raise WriteRejected(f"{what}: no signing key configured")
        self.writes.append((what,) + args)
        block = next(self._blocks)
        return TransactionReceipt(tx_hash=f"0x{block:064x}", block_number=block, claim_id=claim_id)

    async def mint_certificate(self, units: int, uri: str, restrictions: int = 0) -> TransactionReceipt:
        claim_id = next(self._claims)
        self.totals[claim_id] = units
        return self._receipt("mintClaim", units, uri, claim_id=claim_id)

    async def set_approval_for_all(self, operator: Optional[str] = None, approved: bool = True):
        return self._receipt("setApprovalForAll", operator, approved)

    async def register_project(self, project_address: str, token_id: int, unit_price: int):
        receipt = self._receipt("registerProject", project_address, token_id, unit_price)
        self.summaries.append(make_summary(
            project_address, creator=self.signer_address, type_id=token_id - 1, token_ids=(token_id,),
        ))
        self.owners[token_id] = self.signer_address
        self.units[token_id] = self.totals.get(token_id - 1, 1000)
        return receipt

    def _replace_summary(self, project_address: str, **changes: Any) -> None:
        for i, summary in enumerate(self.summaries):
            if summary.project_address == project_address:
                self.summaries[i] = replace(summary, **changes)

    async def record_outputs(self, project_address: str, outputs_address: str):
        receipt = self._receipt("recordOutputs", project_address, outputs_address)
        self._replace_summary(project_address, outputs_address=outputs_address)
        return receipt

    async def record_proof(self, project_address: str, proof_address: str):
        receipt = self._receipt("recordProof", project_address, proof_address)
        for i, summary in enumerate(self.summaries):
            if summary.project_address == project_address:
                self.summaries[i] = replace(
                    summary, proof_addresses=summary.proof_addresses + (proof_address,)
                )
        self.proofs[proof_address] = ProofRecord(
            proof_address=proof_address, recorder=self.signer_address, recorded_at=1_740_000_000, dispute=False,
        )
        return receipt

    async def dispute_proof(self, proof_address: str, dispute_address: str):
        receipt = self._receipt("disputeProof", proof_address, dispute_address)
        record = self.proofs[proof_address]
        self.proofs[proof_address] = ProofRecord(
            proof_address=proof_address,
            recorder=record.recorder,
            recorded_at=record.recorded_at,
            dispute=True,
            dispute_address=dispute_address,
        )
        return receipt

    async def approve_funding_token(self, amount: int):
        return self._receipt("approve", amount)

    async def fund_project(self, amount: int, project_address: str):
        receipt = self._receipt("fundProject", amount, project_address)
        self._replace_summary(project_address, funder=self.signer_address)
        return receipt

    async def set_project_impact(self, project_address: str, impact: int):
        receipt = self._receipt("setProjectImpact", project_address, impact)
        self._replace_summary(project_address, impact=impact)
        return receipt


class FakeContent:
    """In-memory stand-in for ContentResolver."""

    def __init__(self):
        self.documents: Dict[str, Any] = {}
        self.resolve_calls: List[str] = []
        self.delays: Dict[str, float] = {}
        self.published: List[tuple] = []
        self._cids = itertools.count(1)

    async def resolve(self, address: str, schema):
        self.resolve_calls.append(address)
        if address in self.delays:
            await asyncio.sleep(self.delays[address])
        doc = self.documents.get(address)
        if isinstance(doc, Exception):
            raise doc
        if doc is None:
            raise ContentUnreachable("Gateway returned HTTP 504", address=address)
        return schema.model_validate(doc)

    async def publish(self, document, *, filename: str = "document.json") -> str:
        cid = f"bafy{next(self._cids):06d}"
        self.documents[cid] = document.model_dump(by_alias=True, mode="json", exclude_none=True)
        self.published.append((cid, filename))
        return cid


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def content() -> FakeContent:
    return FakeContent()


@pytest.fixture
def limiter() -> CallLimiter:
    return CallLimiter(max_concurrency=4, timeout=2.0)


@pytest.fixture
def store() -> ProjectStore:
    return ProjectStore()


@pytest.fixture
def assembler(ledger, content, limiter) -> ProjectAssembler:
    return ProjectAssembler(ledger, content, limiter)


@pytest.fixture
def driver(ledger, assembler, store, limiter) -> ReconciliationDriver:
    return ReconciliationDriver(ledger, assembler, store, limiter, page_size=10, max_pages=5)


def add_project(
    ledger: FakeLedger,
    content: FakeContent,
    project_address: str,
    *,
    owner: str = ALICE,
    token_ids: Sequence[int] = (101,),
    **summary_fields: Any,
) -> ProjectSummary:
    """Register a fully resolvable project in both fakes."""
    summary = make_summary(project_address, creator=owner, token_ids=token_ids, **summary_fields)
    ledger.summaries.append(summary)
    content.documents[project_address] = metadata_doc(title=f"Project {project_address}")
    for token_id in token_ids:
        ledger.owners.setdefault(token_id, owner)
        ledger.units.setdefault(token_id, 1000 // len(token_ids))
    return summary


def add_proof(
    ledger: FakeLedger,
    content: FakeContent,
    project_address: str,
    proof_address: str,
    *,
    recorder: str = BOB,
    valid: bool = False,
    dispute: bool = False,
    recorded_at: int = 1_740_000_000,
) -> None:
    """Record a resolvable proof in both fakes (the summary must list it)."""
    ledger.proofs[proof_address] = ProofRecord(
        proof_address=proof_address,
        recorder=recorder,
        recorded_at=recorded_at,
        dispute=dispute,
        dispute_address="bafydispute" if dispute else None,
    )
    ledger.validity[proof_address] = valid
    content.documents[proof_address] = proof_doc(project_address)
