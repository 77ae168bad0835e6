"""Immutable generation lifecycle state and its pure transitions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence, Tuple

from models.generation import GeneratedOutfit


class GenerationStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class GenerationState:
    """Snapshot of the orchestrator's ephemeral recommendations."""

    status: GenerationStatus = GenerationStatus.IDLE
    outfits: Tuple[GeneratedOutfit, ...] = ()
    current_index: int = 0
    progress: float = 0.0
    error: Optional[str] = None

    @property
    def is_generating(self) -> bool:
        return self.status is GenerationStatus.GENERATING


def begin_generation(state: GenerationState) -> GenerationState:
    """Enter GENERATING; a state that is already generating is returned unchanged."""

    if state.is_generating:
        return state
    return replace(state, status=GenerationStatus.GENERATING, progress=0.0, error=None)


def report_progress(state: GenerationState, progress: float) -> GenerationState:
    if not state.is_generating:
        return state
    return replace(state, progress=max(state.progress, min(1.0, max(0.0, progress))))


def complete_generation(state: GenerationState, outfits: Sequence[GeneratedOutfit]) -> GenerationState:
    return replace(
        state,
        status=GenerationStatus.READY,
        outfits=tuple(outfits),
        current_index=0,
        progress=1.0,
        error=None,
    )


def fail_generation(state: GenerationState, message: str) -> GenerationState:
    return replace(
        state,
        status=GenerationStatus.ERROR,
        outfits=(),
        current_index=0,
        progress=0.0,
        error=message,
    )


def clear_outfits(state: GenerationState) -> GenerationState:
    """Drop ephemeral outfits; ignored while a pass is in flight."""

    if state.is_generating:
        return state
    return GenerationState()


def select_index(state: GenerationState, index: int) -> GenerationState:
    """Select an outfit, wrapping modulo the list length; an empty list stays at 0."""

    if not state.outfits:
        return replace(state, current_index=0)
    return replace(state, current_index=index % len(state.outfits))


def next_index(state: GenerationState) -> GenerationState:
    return select_index(state, state.current_index + 1)


def previous_index(state: GenerationState) -> GenerationState:
    return select_index(state, state.current_index - 1)


def current_outfit(state: GenerationState) -> Optional[GeneratedOutfit]:
    if not state.outfits:
        return None
    return state.outfits[state.current_index]


__all__ = [
    "GenerationStatus",
    "GenerationState",
    "begin_generation",
    "report_progress",
    "complete_generation",
    "fail_generation",
    "clear_outfits",
    "select_index",
    "next_index",
    "previous_index",
    "current_outfit",
]
