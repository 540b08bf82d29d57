"""Register words for TMC26x stepper drivers and the three-axis driver chain."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

DRIVER_CONTROL_REGISTER = 0x00000
CHOPPER_CONFIG_REGISTER = 0x80000
COOL_STEP_REGISTER = 0xA0000
STALL_GUARD2_LOAD_MEASURE_REGISTER = 0xC0000
DRIVER_CONFIG_REGISTER = 0xE0000

STEP_INTERPOLATION = 0x200
DOUBLE_EDGE_STEP = 0x100

CHOPPER_MODE_T_OFF_FAST_DECAY = 0x4000
RANDOM_TOFF_TIME = 0x2000
BLANK_TIMING_SHIFT = 15
HYSTERESIS_DECREMENT_SHIFT = 11
HYSTERESIS_LOW_SHIFT = 7
HYSTERESIS_START_VALUE_SHIFT = 4

MIN_COOL_CURRENT_HALF = 0
MIN_COOL_CURRENT_QUARTER = 1
MIN_COOL_CURRENT_SHIFT = 15
CURRENT_DECREMENT_SPEED_SHIFT = 12
COOLSTEP_UPPER_THRESHOLD_SHIFT = 8
CURRENT_INC_SHIFT = 4
COOLSTEP_LOWER_THRESHOLD_SHIFT = 8

STEP_DIR_ENABLE = 0
STEP_DIR_SHIFT = 7
VSENSE_165MV = 1
VSENSE_305MV = 0
VSENSE_SHIFT = 6
READOUT_VALUE_MS_POS = 0
READOUT_VALUE_SG2 = 1
READOUT_VALUE_SG2_COOLSTEP = 2
READOUT_VALUE_SHIFT = 4

SG2_FILTER_DISABLE = 0
SG2_FILTER_ENABLE = 1

# Fixed chopper tuning.
_HYSTERESIS_DECREMENT = 16
_HYSTERESIS_LOW = 6
_HYSTERESIS_MIN_VALUE = -3
_HYSTERESIS_START = 8
_OFF_TIME = 2

# Fixed coolStep tuning.
_CURRENT_DECREMENT_SPEED = 32
_COOLSTEP_UPPER_THRESHOLD = 0
_CURRENT_INC_SIZE = 1
_COOLSTEP_LOWER_THRESHOLD = 0

_BLANKING_CODES = {16: 0, 24: 1, 36: 2, 54: 3}
_HYSTERESIS_DECREMENT_CODES = {16: 0, 32: 1, 48: 2, 64: 3}
_CURRENT_DECREMENT_CODES = {32: 0, 8: 1, 2: 2, 1: 3}
_CURRENT_INC_CODES = {1: 0, 2: 1, 4: 2, 8: 3}
_MICROSTEP_CODES = {1: 8, 2: 7, 4: 6, 8: 5, 16: 4, 32: 3, 64: 2, 128: 1, 256: 0}

STALL_GUARD_MASK = 0x7FC00
STALL_GUARD_SHIFT = 10

CHOPPER_BLANKING_TIME = 16
CHOPPER_RANDOM_TIME_OFF = 0
STALL_GUARD_THRESHOLD = 10
STARTUP_DELAY = 0.02


def chopconf(blanking_time: int, chop_mode_std: bool, random_time_off: int) -> int:
    """Build a CHOPCONF word. Unknown blanking times fall back to 24 clocks."""
    value = CHOPPER_CONFIG_REGISTER
    value |= _BLANKING_CODES.get(blanking_time, 1) << BLANK_TIMING_SHIFT
    if not chop_mode_std:
        value |= CHOPPER_MODE_T_OFF_FAST_DECAY
    if random_time_off == 1:
        value |= RANDOM_TOFF_TIME
    if chop_mode_std:
        value |= _HYSTERESIS_DECREMENT_CODES.get(_HYSTERESIS_DECREMENT, 0) << HYSTERESIS_DECREMENT_SHIFT
        value |= (_HYSTERESIS_LOW - _HYSTERESIS_MIN_VALUE) << HYSTERESIS_LOW_SHIFT
        value |= (_HYSTERESIS_START - 1) << HYSTERESIS_START_VALUE_SHIFT
    value |= _OFF_TIME
    return value


def smarten(min_cool_current: int) -> int:
    """Build a SMARTEN (coolStep) word with the given minimum current selection."""
    value = COOL_STEP_REGISTER
    value |= (min_cool_current & 1) << MIN_COOL_CURRENT_SHIFT
    value |= _CURRENT_DECREMENT_CODES.get(_CURRENT_DECREMENT_SPEED, 0) << CURRENT_DECREMENT_SPEED_SHIFT
    value |= _COOLSTEP_UPPER_THRESHOLD << COOLSTEP_UPPER_THRESHOLD_SHIFT
    value |= _CURRENT_INC_CODES.get(_CURRENT_INC_SIZE, 0) << CURRENT_INC_SHIFT
    value |= _COOLSTEP_LOWER_THRESHOLD << COOLSTEP_LOWER_THRESHOLD_SHIFT
    return value


def sgsconf(filter_enable: int, stall_guard_threshold: int, current_scale: int) -> int:
    """Build a SGCSCONF word; the threshold is a signed 7-bit field."""
    value = STALL_GUARD2_LOAD_MEASURE_REGISTER
    value |= (filter_enable & 1) << 16
    value |= (stall_guard_threshold & 0x7F) << 8
    value |= current_scale & 0xFF
    return value


def drvconf(read_item: int) -> int:
    """Build a DRVCONF word. The readout selection is always stallGuard2."""
    if read_item > READOUT_VALUE_SG2_COOLSTEP:
        read_item = READOUT_VALUE_SG2
    value = DRIVER_CONFIG_REGISTER
    value |= STEP_DIR_ENABLE << STEP_DIR_SHIFT
    value |= VSENSE_165MV << VSENSE_SHIFT
    value |= READOUT_VALUE_SG2 << READOUT_VALUE_SHIFT
    return value


def drvctrl(interpol: bool, double_edge: bool, microstep_mode: int) -> int:
    """Build a DRVCTRL word for STEP/DIR mode. Unknown microstep modes give code 1."""
    value = DRIVER_CONTROL_REGISTER
    if interpol:
        value |= STEP_INTERPOLATION
    if double_edge:
        value |= DOUBLE_EDGE_STEP
    value |= _MICROSTEP_CODES.get(microstep_mode, 1)
    return value


@dataclass(frozen=True)
class AxisDriver:
    """Chip-select bit and current/microstep settings of one axis driver."""

    cs_bit: int
    run_current: int
    idle_current: int
    microsteps: int


AXES: tuple[AxisDriver, ...] = (
    AxisDriver(cs_bit=0, run_current=22, idle_current=20, microsteps=16),
    AxisDriver(cs_bit=1, run_current=20, idle_current=20, microsteps=16),
    AxisDriver(cs_bit=2, run_current=20, idle_current=20, microsteps=2),
)


class DriverChain:
    """The X, Y and Z drivers reached through a 20-bit SPI send function.

    ``send(word, cs_bit)`` transmits one word to the selected chip and returns
    the 20-bit response.
    """

    def __init__(self, send: Callable[[int, int], int]) -> None:
        self._send = send

    def _current_word(self, current: int) -> int:
        return sgsconf(SG2_FILTER_ENABLE, STALL_GUARD_THRESHOLD, current)

    def init(self) -> None:
        """Program every driver with the machine's chopper, coolStep and step settings."""
        for axis in AXES:
            time.sleep(STARTUP_DELAY)
            for word in (
                chopconf(CHOPPER_BLANKING_TIME, True, CHOPPER_RANDOM_TIME_OFF),
                smarten(MIN_COOL_CURRENT_HALF),
                self._current_word(axis.run_current),
                drvconf(READOUT_VALUE_SG2),
                drvctrl(False, False, axis.microsteps),
            ):
                self._send(word, axis.cs_bit)

    def set_run_current(self, running: bool) -> None:
        """Switch all drivers to their run current, or to their idle current."""
        for axis in AXES:
            current = axis.run_current if running else axis.idle_current
            self._send(self._current_word(current), axis.cs_bit)

    def read_value(self, read_item: int) -> int:
        """Return the raw response of the X driver to a DRVCONF write."""
        return self._send(drvconf(read_item), AXES[0].cs_bit)

    def read_stall_guard(self) -> int:
        """Return the stallGuard2 load reading of the X driver."""
        response = self._send(drvconf(READOUT_VALUE_SG2), AXES[0].cs_bit)
        return (response & STALL_GUARD_MASK) >> STALL_GUARD_SHIFT