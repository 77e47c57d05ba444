"""Unit tests for proof assembly."""

import pytest

from cairn.engines.reconciliation.proof_assembler import ProofAssembler
from cairn.errors import ContentMalformed, LedgerUnreachable
from cairn.orchestration.state_machine import ReproducibilityState
from tests.conftest import BOB, add_proof, proof_doc


class TestProofAssembler:

    @pytest.mark.asyncio
    async def test_malformed_proof_is_skipped_and_sibling_kept(self, ledger, content, limiter):
        add_proof(ledger, content, "bafyP", "bafyA", valid=False, dispute=False)
        add_proof(ledger, content, "bafyP", "bafyB")
        content.documents["bafyB"] = ContentMalformed("not a proof document", address="bafyB")
        assembler = ProofAssembler(ledger, content, limiter)

        proofs = await assembler.assemble_all("bafyP", ["bafyA", "bafyB"])

        assert len(proofs) == 1
        assert proofs[0].proof_id == "bafyA"
        assert proofs[0].state == ReproducibilityState.WAITING

    @pytest.mark.asyncio
    async def test_joins_ledger_and_document_fields(self, ledger, content, limiter):
        add_proof(ledger, content, "bafyP", "bafyA", recorder=BOB, dispute=True, recorded_at=1_750_000_000)
        content.documents["bafyA"] = proof_doc("bafyP", timestamp="1999-01-01", video_url="https://v.example/1")
        assembler = ProofAssembler(ledger, content, limiter)

        proof = await assembler.assemble("bafyP", "bafyA")

        assert proof.recorder == BOB
        assert proof.timestamp == 1_750_000_000
        assert proof.video_url == "https://v.example/1"
        assert proof.dispute_address == "bafydispute"
        assert proof.state == ReproducibilityState.DISPUTED

    @pytest.mark.asyncio
    async def test_valid_wins_over_dispute(self, ledger, content, limiter):
        add_proof(ledger, content, "bafyP", "bafyA", valid=True, dispute=True)
        proof = await ProofAssembler(ledger, content, limiter).assemble("bafyP", "bafyA")
        assert proof.state == ReproducibilityState.SUCCESS

    @pytest.mark.asyncio
    async def test_unrecorded_proof_is_skipped(self, ledger, content, limiter):
        content.documents["bafyA"] = proof_doc("bafyP")
        assert await ProofAssembler(ledger, content, limiter).assemble("bafyP", "bafyA") is None

    @pytest.mark.asyncio
    async def test_validity_failure_counts_as_not_valid(self, ledger, content, limiter):
        add_proof(ledger, content, "bafyP", "bafyA")
        ledger.validity["bafyA"] = LedgerUnreachable("rpc timeout")

        proof = await ProofAssembler(ledger, content, limiter).assemble("bafyP", "bafyA")

        assert proof.valid is False
        assert proof.state == ReproducibilityState.WAITING

    @pytest.mark.asyncio
    async def test_duplicate_addresses_assembled_once(self, ledger, content, limiter):
        add_proof(ledger, content, "bafyP", "bafyA")

        proofs = await ProofAssembler(ledger, content, limiter).assemble_all("bafyP", ["bafyA", "bafyA"])

        assert len(proofs) == 1
        assert content.resolve_calls.count("bafyA") == 1

    @pytest.mark.asyncio
    async def test_no_proofs(self, ledger, content, limiter):
        assert await ProofAssembler(ledger, content, limiter).assemble_all("bafyP", []) == ()
