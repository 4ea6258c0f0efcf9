"""Signal chain transformations.

Every function takes a :class:`Chain` and returns a new one; nothing is
mutated in place, so any returned value can be stored as a history
snapshot.  Pedal positions are 0-based, position 0 is closest to the input.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional

from toneshare import catalog
from toneshare.errors import IndexOutOfRange, UnknownOption, UnknownParameterKey
from toneshare.models import (
    AMPLIFIER, CATEGORY_ORDER, Amplifier, Chain, Pedal, Target, clamp_value,
)

UP = -1
DOWN = 1


def default_amplifier() -> Amplifier:
    return catalog.instantiate_amplifier(catalog.get_amplifier(catalog.DEFAULT_AMPLIFIER_ID))


def default_chain(blank: bool = False) -> Chain:
    """Entry-flow chain: one compressor into the default amp, or no pedals."""
    amp = default_amplifier()
    if blank:
        return Chain((), amp)
    pedal = catalog.instantiate_pedal(catalog.get_pedal(catalog.DEFAULT_PEDAL_ID))
    return Chain((pedal,), amp)


def _check_position(chain: Chain, position: int):
    if isinstance(position, bool) or not isinstance(position, int):
        raise IndexOutOfRange(f"position must be an integer, got {position!r}")
    if not 0 <= position < len(chain.pedals):
        raise IndexOutOfRange(
            f"position {position} out of range (chain has {len(chain.pedals)} pedals)")


def _replace_component(chain: Chain, target: Target, component) -> Chain:
    if target == AMPLIFIER:
        return replace(chain, amplifier=component)
    pedals = list(chain.pedals)
    pedals[target] = component
    return replace(chain, pedals=tuple(pedals))


def component(chain: Chain, target: Target):
    """Return the pedal at a position, or the amplifier."""
    if target == AMPLIFIER:
        return chain.amplifier
    _check_position(chain, target)
    return chain.pedals[target]


# -- structure ---------------------------------------------------------------

def add_pedal(chain: Chain, template: Pedal) -> Chain:
    """Append a fresh instance of a catalog pedal."""
    pedal = catalog.instantiate_pedal(template)
    return replace(chain, pedals=chain.pedals + (pedal,))


def insert_pedal(chain: Chain, template: Pedal, position: int) -> Chain:
    if not 0 <= position <= len(chain.pedals):
        raise IndexOutOfRange(
            f"insert position {position} out of range (0-{len(chain.pedals)})")
    pedals = list(chain.pedals)
    pedals.insert(position, catalog.instantiate_pedal(template))
    return replace(chain, pedals=tuple(pedals))


def remove_pedal(chain: Chain, position: int) -> Chain:
    _check_position(chain, position)
    pedals = chain.pedals[:position] + chain.pedals[position + 1:]
    return replace(chain, pedals=pedals)


def move_pedal(chain: Chain, position: int, direction: int) -> Chain:
    """Swap a pedal with its neighbour; out-of-bounds moves are no-ops."""
    _check_position(chain, position)
    if direction not in (UP, DOWN):
        raise ValueError("direction must be UP (-1) or DOWN (1)")
    other = position + direction
    if not 0 <= other < len(chain.pedals):
        return chain
    pedals = list(chain.pedals)
    pedals[position], pedals[other] = pedals[other], pedals[position]
    return replace(chain, pedals=tuple(pedals))


def reposition_pedal(chain: Chain, source: int, destination: int) -> Chain:
    """Drag-and-drop move.

    The pedal is removed from ``source`` first; ``destination`` indexes the
    shortened sequence, so it may equal ``len(chain) - 1`` to move a pedal
    to the end.
    """
    _check_position(chain, source)
    _check_position(chain, destination)
    if source == destination:
        return chain
    pedals = list(chain.pedals)
    moved = pedals.pop(source)
    pedals.insert(destination, moved)
    return replace(chain, pedals=tuple(pedals))


def auto_arrange(chain: Chain) -> Chain:
    """Stable sort of the pedals into canonical category order."""
    def rank(pedal: Pedal) -> int:
        try:
            return CATEGORY_ORDER.index(pedal.type)
        except ValueError:
            return len(CATEGORY_ORDER)

    return replace(chain, pedals=tuple(sorted(chain.pedals, key=rank)))


def clear(chain: Chain) -> Chain:
    return replace(chain, pedals=())


# -- component state ---------------------------------------------------------

def toggle_bypass(chain: Chain, target: Target) -> Chain:
    current = component(chain, target)
    return _replace_component(chain, target, replace(current, bypassed=not current.bypassed))


def update_parameter(chain: Chain, target: Target, key: str, value) -> Chain:
    """Set one existing parameter, clamping the value into range."""
    current = component(chain, target)
    if key not in current.settings:
        raise UnknownParameterKey(f"'{current.name}' has no parameter '{key}'")
    settings = dict(current.settings)
    settings[key] = clamp_value(value)
    return _replace_component(chain, target, replace(current, settings=settings))


def set_note(chain: Chain, target: Target, text: Optional[str]) -> Chain:
    current = component(chain, target)
    return _replace_component(chain, target, replace(current, notes=text or None))


# -- amplifier ---------------------------------------------------------------

def set_amplifier(chain: Chain, template: Amplifier) -> Chain:
    return replace(chain, amplifier=catalog.instantiate_amplifier(template))


def set_channel(chain: Chain, name: str) -> Chain:
    amp = chain.amplifier
    if name not in amp.channels:
        raise UnknownOption(f"'{amp.name}' has no channel '{name}'")
    return replace(chain, amplifier=replace(amp, active_channel=name))


def set_variant(chain: Chain, name: str) -> Chain:
    amp = chain.amplifier
    if name not in amp.variants:
        raise UnknownOption(f"'{amp.name}' has no variant '{name}'")
    return replace(chain, amplifier=replace(amp, active_variant=name))


# -- AI blueprint ------------------------------------------------------------

def apply_blueprint(chain: Chain, categories: Iterable[str],
                    amp_brand: Optional[str] = None) -> Chain:
    """Build a chain from suggested categories through the normal operations."""
    result = clear(chain)
    for category in categories:
        template = catalog.first_pedal_of(category)
        if template is not None:
            result = add_pedal(result, template)
    if amp_brand:
        amp = catalog.find_amplifier_by_brand(amp_brand)
        if amp is not None:
            result = set_amplifier(result, amp)
    return result
