# nexthours/interaction.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .model import Layout


@dataclass(frozen=True)
class InteractionState:
    """Hover/selection state for the timeline.

    States:
      Idle            hovered_id=None, selected_id=None
      Hovering(id)    hovered_id=id
      Selected(id)    selected_id=id (hover is suppressed while selected)
    """

    hovered_id: Optional[str] = None
    selected_id: Optional[str] = None

    @property
    def mode(self) -> str:
        if self.selected_id is not None:
            return "selected"
        if self.hovered_id is not None:
            return "hovering"
        return "idle"

    @property
    def active_id(self) -> Optional[str]:
        """Id driving the detail panel (selection) or tooltip (hover)."""
        return self.selected_id if self.selected_id is not None else self.hovered_id


IDLE = InteractionState()


def hover(state: InteractionState, interval_id: str) -> InteractionState:
    # Selection has priority; only clear_selection()/select(None) leaves it.
    if state.selected_id is not None:
        return state
    return InteractionState(hovered_id=interval_id)


def unhover(state: InteractionState, interval_id: str) -> InteractionState:
    # A late unhover for some other box must not clear the current hover.
    if state.selected_id is None and state.hovered_id == interval_id:
        return IDLE
    return state


def select(state: InteractionState, interval_id: Optional[str]) -> InteractionState:
    if interval_id is None:
        return IDLE
    return InteractionState(selected_id=interval_id)


def clear_selection(state: InteractionState) -> InteractionState:
    return IDLE


def reconcile(state: InteractionState, layout: Layout) -> InteractionState:
    """Reset to Idle when the referenced interval is no longer on the grid."""
    ref = state.active_id
    if ref is None:
        return state
    if ref in layout.positioned_ids():
        return state
    return IDLE
