"""Parameter-panel selection and the views derived from it."""

from __future__ import annotations

from typing import Optional

from toneshare.models import AMPLIFIER, TONAL_KEYS, Amplifier, Chain, Target


class Selection:
    """At most one of {pedal position, amplifier} is selected."""

    def __init__(self):
        self.pedal: Optional[int] = None
        self.amplifier = False

    def select_pedal(self, position: int):
        self.pedal = position
        self.amplifier = False

    def select_amplifier(self):
        self.pedal = None
        self.amplifier = True

    def clear(self):
        self.pedal = None
        self.amplifier = False

    @property
    def target(self) -> Optional[Target]:
        if self.amplifier:
            return AMPLIFIER
        return self.pedal

    def resolve(self, chain: Chain):
        """Return the selected component, or None if nothing (valid) is selected."""
        if self.amplifier:
            return chain.amplifier
        if self.pedal is not None and 0 <= self.pedal < len(chain.pedals):
            return chain.pedals[self.pedal]
        return None


def amp_parameter_groups(amp: Amplifier) -> tuple[list, list]:
    """Split amp settings into (gain/volume, tonal EQ) in definition order."""
    main = [(k, v) for k, v in amp.settings.items() if k not in TONAL_KEYS]
    eq = [(k, v) for k, v in amp.settings.items() if k in TONAL_KEYS]
    return main, eq
