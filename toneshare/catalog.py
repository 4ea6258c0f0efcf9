"""Static pedal and amplifier catalog.

Templates are the cloning sources for chain members: adding a pedal copies
the template's default settings onto a fresh instance with its own id.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Optional

from toneshare.errors import UnknownCatalogItem
from toneshare.models import Amplifier, Pedal


def _fresh_id(template_id: str) -> str:
    return f"{template_id}-{uuid.uuid4().hex[:8]}"


PEDALS: tuple[Pedal, ...] = (
    Pedal("1", "Dyna Comp", "MXR", "Dynamics", "from-orange-500 to-orange-700", "compress",
          {"Sensitivity": 60, "Output": 40}),
    Pedal("2", "Tube Screamer", "Ibanez", "Drive", "from-green-600 to-green-800", "bolt",
          {"Overdrive": 75, "Tone": 50, "Level": 80}),
    Pedal("3", "Big Muff Pi", "EHX", "Drive", "from-red-600 to-red-800", "blur_on",
          {"Sustain": 70, "Tone": 40, "Volume": 60}),
    Pedal("4", "Neo Chorus", "Boss", "Modulation", "from-blue-400 to-blue-600", "waves",
          {"Rate": 30, "Depth": 70}),
    Pedal("5", "Carbon Copy", "MXR", "Delay", "from-emerald-700 to-emerald-900", "timer",
          {"Delay": 40, "Regen": 30, "Mix": 50}),
    Pedal("6", "BigSky", "Strymon", "Reverb", "from-cyan-500 to-cyan-700", "cloud",
          {"Decay": 65, "Mix": 45, "Tone": 50}),
    Pedal("7", "NS-2 Noise Suppressor", "Boss", "Utility", "from-slate-500 to-slate-700", "tune",
          {"Threshold": 35, "Decay": 50}),
)

AMPLIFIERS: tuple[Amplifier, ...] = (
    Amplifier("amp-1", "JCM800", "Marshall", "from-yellow-700 to-amber-900",
              {"Preamp": 70, "Master": 40, "Bass": 50, "Middle": 60, "Treble": 70, "Presence": 40}),
    Amplifier("amp-2", "Twin Reverb", "Fender", "from-gray-300 to-gray-500",
              {"Volume": 40, "Treble": 60, "Middle": 50, "Bass": 40, "Reverb": 30, "Speed": 20},
              channels=("Normal", "Vibrato")),
    Amplifier("amp-3", "AC30 Top Boost", "Vox", "from-red-800 to-stone-900",
              {"Volume": 50, "Treble": 75, "Bass": 45, "Cut": 30, "Gain": 60},
              variants=("Top Boost", "Normal")),
    Amplifier("amp-4", "Dual Rectifier", "Mesa Boogie", "from-zinc-700 to-zinc-900",
              {"Gain": 85, "Treble": 60, "Mid": 40, "Bass": 70, "Presence": 50, "Master": 30},
              channels=("Clean", "Vintage", "Modern"), variants=("Tube", "Diode")),
    Amplifier("amp-5", "Rockerverb", "Orange", "from-orange-500 to-orange-700",
              {"Gain": 65, "Bass": 55, "Mid": 50, "Treble": 60, "Reverb": 40}),
)

DEFAULT_PEDAL_ID = "1"
DEFAULT_AMPLIFIER_ID = "amp-1"


# -- lookup ------------------------------------------------------------------

def get_pedal(template_id: str) -> Pedal:
    for pedal in PEDALS:
        if pedal.id == template_id:
            return pedal
    raise UnknownCatalogItem(f"no pedal template '{template_id}'")


def get_amplifier(template_id: str) -> Amplifier:
    for amp in AMPLIFIERS:
        if amp.id == template_id:
            return amp
    raise UnknownCatalogItem(f"no amplifier template '{template_id}'")


def first_pedal_of(category: str) -> Optional[Pedal]:
    """Return the first catalog pedal in a category (case-insensitive)."""
    wanted = category.strip().lower()
    for pedal in PEDALS:
        if pedal.type.lower() == wanted:
            return pedal
    return None


def find_amplifier_by_brand(brand: str) -> Optional[Amplifier]:
    wanted = brand.strip().lower()
    for amp in AMPLIFIERS:
        if amp.brand.lower() == wanted:
            return amp
    return None


# -- instantiation -----------------------------------------------------------

def instantiate_pedal(template: Pedal) -> Pedal:
    """Clone a catalog pedal into a new chain member."""
    return replace(template, id=_fresh_id(template.id),
                   settings=dict(template.settings), bypassed=False)


def instantiate_amplifier(template: Amplifier) -> Amplifier:
    """Clone a catalog amplifier, selecting its first channel and variant."""
    return replace(
        template,
        id=_fresh_id(template.id),
        settings=dict(template.settings),
        bypassed=False,
        active_channel=template.channels[0] if template.channels else None,
        active_variant=template.variants[0] if template.variants else None,
    )


# -- library filtering -------------------------------------------------------

def _matches(query: str, *fields: str) -> bool:
    q = query.lower()
    return any(q in f.lower() for f in fields)


def filter_pedals(query: str = "", brand: Optional[str] = None,
                  color: Optional[str] = None) -> list[Pedal]:
    return [
        p for p in PEDALS
        if _matches(query, p.name, p.brand)
        and (brand is None or p.brand == brand)
        and (color is None or p.color == color)
    ]


def filter_amplifiers(query: str = "", brand: Optional[str] = None) -> list[Amplifier]:
    return [
        a for a in AMPLIFIERS
        if _matches(query, a.name, a.brand)
        and (brand is None or a.brand == brand)
    ]


def pedal_brands() -> list[str]:
    return sorted({p.brand for p in PEDALS})


def pedal_colors() -> list[str]:
    seen: list[str] = []
    for p in PEDALS:
        if p.color not in seen:
            seen.append(p.color)
    return seen


def amplifier_brands() -> list[str]:
    return sorted({a.brand for a in AMPLIFIERS})
