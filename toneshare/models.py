"""Shared data models and constants."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Union

from toneshare.errors import InvalidParameterValue

MIN_VALUE = 0
MAX_VALUE = 100

# Signal-flow order used by auto-arrange.
CATEGORY_ORDER = ("Dynamics", "Drive", "Modulation", "Delay", "Reverb", "Utility")

# Amp settings shown in the EQ group; everything else is gain/volume.
TONAL_KEYS = frozenset({"Bass", "Mid", "Middle", "Treble", "Presence", "Cut"})

INSTRUMENTS = ("Electric Guitar", "Bass Guitar", "Synth", "Acoustic Guitar")

# Target sentinel for the amplifier; pedals are addressed by position.
AMPLIFIER = "amp"

Target = Union[int, str]


def clamp_value(value) -> Union[int, float]:
    """Clamp a parameter value into [MIN_VALUE, MAX_VALUE]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameterValue(f"parameter value must be a number, got {value!r}")
    if isinstance(value, float) and math.isnan(value):
        raise InvalidParameterValue("parameter value must not be NaN")
    return max(MIN_VALUE, min(MAX_VALUE, value))


def _freeze_settings(component):
    # Snapshots share components; settings are a read-only view of a private copy.
    object.__setattr__(component, "settings", MappingProxyType(dict(component.settings)))


@dataclass(frozen=True)
class Pedal:
    """One pedal instance on the board."""

    id: str
    name: str
    brand: str
    type: str
    color: str
    icon: str
    settings: Mapping[str, float] = field(default_factory=dict)
    notes: Optional[str] = None
    bypassed: bool = False

    def __post_init__(self):
        _freeze_settings(self)


@dataclass(frozen=True)
class Amplifier:
    """The amplifier at the end of the chain."""

    id: str
    name: str
    brand: str
    color: str
    settings: Mapping[str, float] = field(default_factory=dict)
    notes: Optional[str] = None
    bypassed: bool = False
    channels: tuple = ()
    active_channel: Optional[str] = None
    variants: tuple = ()
    active_variant: Optional[str] = None

    def __post_init__(self):
        _freeze_settings(self)


@dataclass(frozen=True)
class Chain:
    """Ordered pedals (input first) feeding one amplifier.

    ``amplifier`` may be None only while a value is being built;
    :class:`~toneshare.editor.EditorSession` fills in the default amp.
    """

    pedals: tuple = ()
    amplifier: Optional[Amplifier] = None

    def __len__(self) -> int:
        return len(self.pedals)

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.pedals]


@dataclass(frozen=True)
class User:
    """Display identity attached to published setups."""

    id: str
    name: str
    avatar: str = ""
