"""Flood and mist coolant outputs."""

from __future__ import annotations

import enum

from carvecore.modes import Condition


class CoolantState(enum.IntFlag):
    """Coolant outputs that are currently on."""

    DISABLE = 0
    FLOOD = 1 << 0
    MIST = 1 << 1


class CoolantControl:
    """Drives the flood and optional mist output pins.

    ``flood_pin`` and ``mist_pin`` hold the output levels. Setting ``abort``
    blocks state changes. ``report_pending`` is raised whenever a state change
    should be reported.
    """

    def __init__(self, mist_enabled: bool = False, invert_flood: bool = False,
                 invert_mist: bool = False) -> None:
        self.mist_enabled = mist_enabled
        self.invert_flood = invert_flood
        self.invert_mist = invert_mist
        self.flood_pin = False
        self.mist_pin = False
        self.abort = False
        self.report_pending = False
        self.stop()

    def stop(self) -> None:
        """Turn all coolant outputs off immediately."""
        self.flood_pin = self.invert_flood
        if self.mist_enabled:
            self.mist_pin = self.invert_mist

    def get_state(self) -> CoolantState:
        """Return which outputs are on, taking pin inversion into account."""
        state = CoolantState.DISABLE
        if self.flood_pin != self.invert_flood:
            state |= CoolantState.FLOOD
        if self.mist_enabled and self.mist_pin != self.invert_mist:
            state |= CoolantState.MIST
        return state

    def set_state(self, mode: int) -> None:
        """Apply a coolant mode built from the COOLANT_FLOOD/COOLANT_MIST condition bits."""
        if self.abort:
            return
        if mode == 0:
            self.stop()
        else:
            if mode & Condition.COOLANT_FLOOD:
                self.flood_pin = not self.invert_flood
            if self.mist_enabled and mode & Condition.COOLANT_MIST:
                self.mist_pin = not self.invert_mist
        self.report_pending = True