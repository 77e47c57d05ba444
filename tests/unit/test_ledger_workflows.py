"""Unit tests for the write-path workflows against in-memory fakes."""

from datetime import datetime

import pytest

from cairn.engines.workflows.ledger_workflows import LedgerWorkflows
from cairn.errors import NotFound, WriteRejected
from cairn.orchestration.state_machine import ReproducibilityState
from cairn.schemas.documents import ProjectMetadata, ProjectOutput
from cairn.schemas.project import ImpactLevel
from tests.conftest import ALICE, SIGNER, FakeLedger, add_project


@pytest.fixture
def workflows(ledger, content, store, driver) -> LedgerWorkflows:
    return LedgerWorkflows(ledger, content, store, driver, certificate_units=1000)


class TestCreateProject:

    @pytest.mark.asyncio
    async def test_uploads_mints_registers_and_reconciles(self, ledger, content, store, workflows):
        metadata = ProjectMetadata(title="Sim-to-real transfer", description="", domain="Simulation")

        outcome = await workflows.create_project(metadata, unit_price=10)

        assert [w[0] for w in ledger.writes] == ["mintClaim", "setApprovalForAll", "registerProject"]
        mint, _, register = ledger.writes
        assert mint[2] == f"ipfs://{outcome.address}"
        assert register == ("registerProject", outcome.address, 1001, 10)
        assert len(outcome.tx_hashes) == 3

        project = store.get(outcome.address)
        assert project is not None
        assert project.title == "Sim-to-real transfer"
        assert project.is_owned_by(SIGNER)
        assert project.tokens[0].token_id == 1001
        assert project.holdings_of(SIGNER) == 1.0
        assert outcome.snapshot.version == store.snapshot.version

    @pytest.mark.asyncio
    async def test_stamps_creation_time(self, content, store, workflows):
        outcome = await workflows.create_project(ProjectMetadata(title="Dexterous hands", description=""))

        created_at = store.get(outcome.address).created_at
        assert created_at is not None
        assert datetime.fromisoformat(created_at).tzinfo is not None
        assert content.documents[outcome.address]["created_at"] == created_at

    @pytest.mark.asyncio
    async def test_keeps_given_creation_time(self, store, workflows):
        metadata = ProjectMetadata(title="Legged robots", description="", created_at="2025-01-05T08:00:00Z")

        outcome = await workflows.create_project(metadata)

        assert store.get(outcome.address).created_at == "2025-01-05T08:00:00Z"

    @pytest.mark.asyncio
    async def test_read_only_gateway_rejects(self, content, store, driver):
        ledger = FakeLedger(signer_address=None)
        workflows = LedgerWorkflows(ledger, content, store, driver)

        with pytest.raises(WriteRejected):
            await workflows.create_project(ProjectMetadata(title="x", description=""))
        assert store.snapshot.version == 0


class TestProofWorkflows:

    @pytest.mark.asyncio
    async def test_submit_then_dispute(self, ledger, content, store, driver, workflows):
        add_project(ledger, content, "bafyP", owner=ALICE)
        await driver.reconcile_all()

        submitted = await workflows.submit_proof(
            "bafyP",
            description="Reproduced on a second robot",
            code_url="https://github.com/example/repro",
            output_url="https://example.org/out",
        )
        proof = store.get("bafyP").reproducibilities[0]
        assert proof.proof_id == submitted.address
        assert proof.state == ReproducibilityState.WAITING

        disputed = await workflows.dispute_proof(submitted.address, "Output does not match the paper")
        proof = store.get("bafyP").reproducibilities[0]
        assert proof.state == ReproducibilityState.DISPUTED
        assert proof.dispute_address == disputed.address
        assert content.documents[disputed.address] == {
            "proofId": submitted.address,
            "description": "Output does not match the paper",
        }

    @pytest.mark.asyncio
    async def test_unknown_project_is_not_found(self, workflows):
        with pytest.raises(NotFound):
            await workflows.submit_proof("bafyNope", description="d", code_url="c", output_url="o")


class TestOutputsAndImpact:

    @pytest.mark.asyncio
    async def test_outputs_recorded_once(self, ledger, content, store, driver, workflows):
        add_project(ledger, content, "bafyP")
        await driver.reconcile_all()
        output = ProjectOutput(paper_url="https://arxiv.org/abs/1", description="Paper")

        await workflows.add_outputs("bafyP", output)

        assert store.get("bafyP").output.paper_url == "https://arxiv.org/abs/1"
        with pytest.raises(WriteRejected):
            await workflows.add_outputs("bafyP", output)

    @pytest.mark.asyncio
    async def test_set_impact_writes_ordinal(self, ledger, content, store, driver, workflows):
        add_project(ledger, content, "bafyP")
        await driver.reconcile_all()

        await workflows.set_impact("bafyP", ImpactLevel.HIGH)

        assert ledger.writes[-1] == ("setProjectImpact", "bafyP", 3)
        assert store.get("bafyP").impact == ImpactLevel.HIGH


class TestFundProject:

    @pytest.mark.asyncio
    async def test_approves_funds_and_records_event(self, ledger, content, store, driver, workflows):
        add_project(ledger, content, "bafyP")
        await driver.reconcile_all()

        outcome = await workflows.fund_project("bafyP", 2500)

        assert [w[0] for w in ledger.writes] == ["approve", "fundProject"]
        events = store.funding_events(SIGNER)
        assert len(events) == 1
        assert events[0].amount == 2500
        assert events[0].project_title == "Project bafyP"
        assert events[0].tx_hash == outcome.tx_hashes[-1]
        assert store.get("bafyP").funder == events[0].funder

    @pytest.mark.asyncio
    async def test_non_positive_amount_rejected(self, ledger, content, driver, workflows):
        add_project(ledger, content, "bafyP")
        await driver.reconcile_all()
        with pytest.raises(ValueError):
            await workflows.fund_project("bafyP", 0)
        assert ledger.writes == []
