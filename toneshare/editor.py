"""ToneShare editor session - the coordinator for one editing context.

Owns the undo/redo history, the parameter-panel selection, any in-progress
knob gesture and the transient notices shown to the user.  Every command
builds a new chain through :mod:`toneshare.chain` and commits it, so an
invalid command leaves both the chain and the history untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, TYPE_CHECKING

from toneshare import catalog, records
from toneshare import chain as ops
from toneshare.errors import ExternalServiceFailure, UnknownParameterKey
from toneshare.history import History
from toneshare.models import AMPLIFIER, Chain, Target, User, clamp_value
from toneshare.selection import Selection

if TYPE_CHECKING:
    from toneshare.ai import Blueprint, ToneAdvisor
    from toneshare.client import SetupClient

# Knob travel: value change per pixel of vertical drag.
KNOB_SENSITIVITY = 0.5

CRITIQUE_FALLBACK = "Failed to get AI recommendation."


logger = logging.getLogger(__name__)


@dataclass
class _Gesture:
    target: Target
    key: str
    start_value: float
    start_chain: Chain


class EditorSession:
    def __init__(self, chain: Optional[Chain] = None):
        if chain is None:
            chain = ops.default_chain()
        elif chain.amplifier is None:
            chain = replace(chain, amplifier=ops.default_amplifier())
        self.history = History(chain)
        self.selection = Selection()
        self.notices: list[str] = []
        self.pending_blueprint: Optional[Blueprint] = None
        self._gesture: Optional[_Gesture] = None
        self._working: Optional[Chain] = None
        if self.history.current.pedals:
            self.selection.select_pedal(0)

    @classmethod
    def blank(cls) -> EditorSession:
        return cls(ops.default_chain(blank=True))

    @classmethod
    def from_record(cls, record: dict) -> EditorSession:
        """Start a session from a fetched setup record."""
        return cls(records.chain_from_record(record))

    # -- state ---------------------------------------------------------------

    @property
    def chain(self) -> Chain:
        """The chain as the user currently sees it (including a live gesture)."""
        if self._working is not None:
            return self._working
        return self.history.current

    @property
    def adjusting(self) -> bool:
        return self._gesture is not None

    @property
    def gesture(self) -> Optional[tuple]:
        """(target, key) of the knob gesture in progress, if any."""
        if self._gesture is None:
            return None
        return self._gesture.target, self._gesture.key

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def notify(self, message: str):
        self.notices.append(message)

    def drain_notices(self) -> list[str]:
        out, self.notices = self.notices, []
        return out

    def _commit(self, new_chain: Chain) -> Chain:
        return self.history.commit(new_chain)

    # -- structure -----------------------------------------------------------

    def add_pedal(self, template_id: str) -> Chain:
        template = catalog.get_pedal(template_id)
        self.finish_adjust()
        result = self._commit(ops.add_pedal(self.chain, template))
        self.selection.select_pedal(len(result.pedals) - 1)
        return result

    def insert_pedal(self, template_id: str, position: int) -> Chain:
        template = catalog.get_pedal(template_id)
        self.finish_adjust()
        result = self._commit(ops.insert_pedal(self.chain, template, position))
        self.selection.select_pedal(position)
        return result

    def remove_pedal(self, position: int) -> Chain:
        self.finish_adjust()
        result = self._commit(ops.remove_pedal(self.chain, position))
        self.selection.clear()
        return result

    def move_pedal(self, position: int, direction: int) -> Chain:
        self.finish_adjust()
        moved = ops.move_pedal(self.chain, position, direction)
        if moved is self.chain:
            return moved
        self.selection.clear()
        return self._commit(moved)

    def drop_pedal(self, source: int, destination: int) -> Chain:
        """Finish a drag-and-drop reorder."""
        self.finish_adjust()
        moved = ops.reposition_pedal(self.chain, source, destination)
        if moved is self.chain:
            return moved
        self.selection.clear()
        return self._commit(moved)

    def auto_arrange(self) -> Chain:
        self.finish_adjust()
        self.selection.clear()
        return self._commit(ops.auto_arrange(self.chain))

    def clear(self) -> Chain:
        self.finish_adjust()
        self.selection.clear()
        return self._commit(ops.clear(self.chain))

    # -- components ----------------------------------------------------------

    def toggle_bypass(self, target: Target) -> Chain:
        self.finish_adjust()
        return self._commit(ops.toggle_bypass(self.chain, target))

    def set_parameter(self, target: Target, key: str, value) -> Chain:
        """Direct (typed) parameter input; commits immediately."""
        self.finish_adjust()
        return self._commit(ops.update_parameter(self.chain, target, key, value))

    def set_note(self, target: Target, text: Optional[str]) -> Chain:
        self.finish_adjust()
        return self._commit(ops.set_note(self.chain, target, text))

    def set_amplifier(self, template_id: str) -> Chain:
        template = catalog.get_amplifier(template_id)
        self.finish_adjust()
        result = self._commit(ops.set_amplifier(self.chain, template))
        self.selection.select_amplifier()
        return result

    def set_channel(self, name: str) -> Chain:
        self.finish_adjust()
        return self._commit(ops.set_channel(self.chain, name))

    def set_variant(self, name: str) -> Chain:
        self.finish_adjust()
        return self._commit(ops.set_variant(self.chain, name))

    # -- knob gestures -------------------------------------------------------

    def begin_adjust(self, target: Target, key: str):
        """Start a continuous edit; intermediate values are not committed."""
        self.finish_adjust()
        current = ops.component(self.chain, target)
        if key not in current.settings:
            raise UnknownParameterKey(f"'{current.name}' has no parameter '{key}'")
        self._gesture = _Gesture(target, key, current.settings[key], self.chain)
        self._working = self.chain
        if target == AMPLIFIER:
            self.selection.select_amplifier()
        else:
            self.selection.select_pedal(target)

    def adjust(self, value) -> Chain:
        """Set the gesture's parameter on the working copy."""
        if self._gesture is None:
            raise RuntimeError("no parameter gesture in progress")
        g = self._gesture
        self._working = ops.update_parameter(g.start_chain, g.target, g.key, value)
        return self._working

    def drag(self, delta_pixels: float) -> Chain:
        """Knob drag: upward motion (positive delta) raises the value."""
        if self._gesture is None:
            raise RuntimeError("no parameter gesture in progress")
        value = clamp_value(self._gesture.start_value + delta_pixels * KNOB_SENSITIVITY)
        return self.adjust(round(value))

    def end_adjust(self) -> Chain:
        """Release: commit the final value as one snapshot."""
        return self.finish_adjust()

    def cancel_adjust(self) -> Chain:
        """Forced termination (e.g. pointer left the window) still commits."""
        if self._gesture is not None:
            logger.info("[Editor] gesture on '%s' cancelled; keeping last value",
                        self._gesture.key)
        return self.finish_adjust()

    def finish_adjust(self) -> Chain:
        if self._gesture is None:
            return self.chain
        working, start = self._working, self._gesture.start_chain
        self._gesture = None
        self._working = None
        if working is not None and working != start:
            return self.history.commit(working)
        return self.history.current

    # -- history -------------------------------------------------------------

    def undo(self) -> Chain:
        self.finish_adjust()
        self.selection.clear()
        return self.history.undo()

    def redo(self) -> Chain:
        self.finish_adjust()
        self.selection.clear()
        return self.history.redo()

    # -- selection -----------------------------------------------------------

    def select(self, target: Optional[Target]):
        if target is None:
            self.selection.clear()
        elif target == AMPLIFIER:
            self.selection.select_amplifier()
        else:
            ops.component(self.chain, target)
            self.selection.select_pedal(target)

    @property
    def selected(self):
        return self.selection.resolve(self.chain)

    # -- external services ---------------------------------------------------

    def critique(self, advisor: ToneAdvisor) -> str:
        try:
            return advisor.critique(self.chain)
        except ExternalServiceFailure as e:
            logger.warning("[AI] critique failed: %s", e)
            self.notify(CRITIQUE_FALLBACK)
            return CRITIQUE_FALLBACK

    def request_blueprint(self, advisor: ToneAdvisor, goal: str = "") -> Optional[Blueprint]:
        try:
            self.pending_blueprint = advisor.blueprint(self.chain, goal)
        except ExternalServiceFailure as e:
            logger.warning("[AI] blueprint failed: %s", e)
            self.notify("Could not generate a blueprint right now.")
            return None
        return self.pending_blueprint

    def apply_blueprint(self, blueprint: Optional[Blueprint] = None) -> Chain:
        """Replace the chain with a blueprint's suggestion as one commit."""
        bp = blueprint or self.pending_blueprint
        if bp is None:
            raise ValueError("no blueprint to apply")
        self.finish_adjust()
        self.selection.clear()
        self.pending_blueprint = None
        return self._commit(ops.apply_blueprint(self.chain, bp.categories, bp.amp_brand))

    def to_record(self, user: User, title: str, artist: str, **meta) -> dict:
        self.finish_adjust()
        return records.setup_record(self.chain, user, title, artist, **meta)

    def publish(self, client: SetupClient, user: User, title: str, artist: str,
                **meta) -> Optional[str]:
        """Send the current chain to the persistence API; returns the setup id."""
        record = self.to_record(user, title, artist, **meta)
        try:
            client.publish(record)
        except ExternalServiceFailure as e:
            logger.warning("[Editor] publish failed: %s", e)
            self.notify(f"Could not publish '{title}': {e}")
            return None
        self.notify(f"Setup for \"{title}\" saved!")
        return record["id"]
