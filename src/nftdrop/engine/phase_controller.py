"""Drop phase controller — manages the one-way PRE_MINTING→WHITELIST→PUBLIC_MINTING progression.

Rules:
- PRE_MINTING: only the privileged minter may mint.
- WHITELIST: committed addresses may each claim one item.
- PUBLIC_MINTING: anyone may mint up to the per-address cap. Terminal.

Phase progression is one-way and one step per call. No regression,
no skipping. Who may request a transition is decided by the mint
authority; this controller only owns the phase itself.
"""

from __future__ import annotations

from typing import Any

from nftdrop.errors import InvalidTransition
from nftdrop.models.drop import PHASE_ORDER, Phase


class PhaseController:
    """Controls drop phase transitions.

    Invariants:
    1. Phase progression is one-way.
    2. Every transition advances exactly one step.
    3. PUBLIC_MINTING has no outgoing transition.
    """

    def __init__(self, phase: Phase = Phase.PRE_MINTING) -> None:
        self._phase = phase

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def is_terminal(self) -> bool:
        return self._phase == PHASE_ORDER[-1]

    def next_phase(self) -> Phase | None:
        if self.is_terminal:
            return None
        return PHASE_ORDER[self._phase.ordinal + 1]

    def can_transition(self, target: Phase) -> tuple[bool, str]:
        """Check if a phase transition is valid.

        Returns (allowed, reason).
        """
        current_ord = self._phase.ordinal
        target_ord = target.ordinal

        if target_ord <= current_ord:
            return False, f"Cannot regress from {self._phase.value} to {target.value}"
        if target_ord != current_ord + 1:
            return False, f"Cannot skip phases: {self._phase.value} → {target.value}"
        return True, f"{self._phase.value} → {target.value} transition allowed"

    def execute_transition(self, target: Phase) -> Phase:
        """Advance to ``target``. Raises InvalidTransition if invalid.

        Returns the phase that was left.
        """
        allowed, reason = self.can_transition(target)
        if not allowed:
            raise InvalidTransition(f"NFTDrop: {reason}")
        previous = self._phase
        self._phase = target
        return previous

    def snapshot(self) -> dict[str, Any]:
        return {"phase": self._phase.value}

    def restore(self, data: dict[str, Any]) -> None:
        self._phase = Phase(data["phase"])
