"""
Lifecycle state for proof-of-reproducibility submissions.

The state is never stored: it is derived from the two ledger flags every time
it is read. Status badges, dashboards and the API all go through
derive_state so they cannot disagree.
"""

from enum import Enum
from typing import Dict, List, Set, Tuple


class ReproducibilityState(str, Enum):
    """Derived lifecycle state of a recorded proof."""
    WAITING = "Waiting"
    DISPUTED = "Disputed"
    SUCCESS = "Success"


# (valid, dispute) -> state. Validity wins over an open dispute.
_STATE_TABLE: Dict[Tuple[bool, bool], ReproducibilityState] = {
    (True, True): ReproducibilityState.SUCCESS,
    (True, False): ReproducibilityState.SUCCESS,
    (False, True): ReproducibilityState.DISPUTED,
    (False, False): ReproducibilityState.WAITING,
}

# Changes a proof can go through between two reconciliation passes.
# Driven entirely by the ledger; listed here only so observers can tell an
# expected change from an inconsistent read.
_TRANSITIONS: Set[Tuple[ReproducibilityState, ReproducibilityState]] = {
    (ReproducibilityState.WAITING, ReproducibilityState.DISPUTED),
    (ReproducibilityState.WAITING, ReproducibilityState.SUCCESS),
    (ReproducibilityState.DISPUTED, ReproducibilityState.SUCCESS),
}

INITIAL_STATE = ReproducibilityState.WAITING
TERMINAL_STATES = frozenset((ReproducibilityState.SUCCESS, ReproducibilityState.DISPUTED))


def derive_state(valid: bool, dispute: bool) -> ReproducibilityState:
    """Derive the lifecycle state from the ledger's validity and dispute flags."""
    return _STATE_TABLE[(bool(valid), bool(dispute))]


def valid_transitions(from_state: ReproducibilityState) -> List[ReproducibilityState]:
    """Return the states a proof may move to from from_state."""
    return sorted(
        (t for f, t in _TRANSITIONS if f == from_state),
        key=lambda s: s.value,
    )


def is_expected_transition(
    from_state: ReproducibilityState,
    to_state: ReproducibilityState,
) -> bool:
    """True when from_state -> to_state is a change the ledger can produce (or no change)."""
    return from_state == to_state or (from_state, to_state) in _TRANSITIONS


def is_terminal(state: ReproducibilityState) -> bool:
    """
    True for the states that close a proof's lifecycle: Success and Disputed.

    Nothing the client does moves a proof out of either. A disputed proof can
    still show up as Success on a later pass if the ledger's validity check
    flips, which is_expected_transition accepts.
    """
    return state in TERMINAL_STATES
