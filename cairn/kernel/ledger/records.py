"""
Typed records read from the ledger.

Values come back from the contracts as positional tuples; parsing them here
keeps tuple indices out of the rest of the code base.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from cairn.errors import LedgerMalformed

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two EVM addresses ignoring checksum casing."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


@dataclass(frozen=True)
class ProjectSummary:
    """Registry entry for one project, in ledger registration order."""
    creator: str
    type_id: int
    token_ids: Tuple[int, ...]
    project_address: str
    outputs_address: Optional[str]
    proof_addresses: Tuple[str, ...]
    impact: int
    funder: str
    funding_goal: int

    @property
    def project_id(self) -> str:
        return self.project_address


@dataclass(frozen=True)
class ProofRecord:
    """On-chain side of a proof-of-reproducibility."""
    proof_address: str
    recorder: str
    recorded_at: int
    dispute: bool
    dispute_address: Optional[str] = None


@dataclass(frozen=True)
class TransactionReceipt:
    """Outcome of a mined transaction."""
    tx_hash: str
    block_number: int
    status: int = 1
    claim_id: Optional[int] = None  # set by certificate mints


def first_fraction_id(claim_id: int) -> int:
    """Token id of the fraction minted together with a new claim."""
    return claim_id + 1


def _optional_address(value: Any) -> Optional[str]:
    text = str(value or "").strip()
    return text or None


def parse_project_summary(raw: Sequence[Any]) -> ProjectSummary:
    """Parse one element of getAllProjects()."""
    try:
        creator, type_id, token_ids, project_uri, outputs_uri, proofs, impact, funder, goal = raw
        return ProjectSummary(
            creator=str(creator),
            type_id=int(type_id),
            token_ids=tuple(int(t) for t in token_ids),
            project_address=str(project_uri),
            outputs_address=_optional_address(outputs_uri),
            proof_addresses=tuple(str(p) for p in proofs if p),
            impact=int(impact),
            funder=str(funder),
            funding_goal=int(goal),
        )
    except (TypeError, ValueError) as exc:
        raise LedgerMalformed(f"Unexpected project tuple: {exc}") from exc


def parse_proof_record(proof_address: str, raw: Sequence[Any]) -> ProofRecord:
    """Parse the result of getProof(cid): (recorder, timestamp, dispute, disputeURI)."""
    try:
        recorder, recorded_at, dispute, dispute_uri = raw
        return ProofRecord(
            proof_address=proof_address,
            recorder=str(recorder),
            recorded_at=int(recorded_at),
            dispute=bool(dispute),
            dispute_address=_optional_address(dispute_uri),
        )
    except (TypeError, ValueError) as exc:
        raise LedgerMalformed(
            f"Unexpected proof tuple: {exc}", address=proof_address
        ) from exc
