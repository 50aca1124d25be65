# docindex/core/registry/state_machine.py
from __future__ import annotations

from typing import Set, Tuple

from .errors import RegistryStateError
from .models import RegistryState


_ALLOWED: Set[Tuple[RegistryState, RegistryState]] = {
    (RegistryState.UNINITIALIZED, RegistryState.INITIALIZING),
    (RegistryState.INITIALIZING, RegistryState.READY),
}


def can_transition(src: RegistryState, dst: RegistryState) -> bool:
    return (src, dst) in _ALLOWED


def ensure_transition(src: RegistryState, dst: RegistryState) -> None:
    if not can_transition(src, dst):
        raise RegistryStateError(f"Illegal transition: {src.value} -> {dst.value}")


def accepts_merge(state: RegistryState) -> bool:
    # merges happen while draining the pending queue and once ready
    return state in (RegistryState.INITIALIZING, RegistryState.READY)
