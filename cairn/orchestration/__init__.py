"""Orchestration layer - reproducibility lifecycle derivation."""

from cairn.orchestration.state_machine import (
    INITIAL_STATE,
    ReproducibilityState,
    derive_state,
    is_expected_transition,
    valid_transitions,
)

__all__ = [
    "INITIAL_STATE",
    "ReproducibilityState",
    "derive_state",
    "is_expected_transition",
    "valid_transitions",
]
