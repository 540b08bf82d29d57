"""Fading and throbbing PWM channels, hardware revision and switch reports."""

from __future__ import annotations

from dataclasses import dataclass

LED_FULL_ON = 255
LED_FULL_OFF = 0

DOOR_LED_LEVEL_IDLE = 255
DOOR_LED_LEVEL_RUN = 100
DOOR_LED_THROB_MIN = 60
DOOR_LED_RISE_TIME = 3
DOOR_SLEEP_THROB_RATE = 4
DOOR_SLEEP_THROB_MIN = 5

SPINDLE_LED_LEVEL_IDLE = 0
SPINDLE_LED_LEVEL_RUN = 255
SPINDLE_LED_THROB_MIN = 60
SPINDLE_LED_RISE_TIME = 3
SPINDLE_LED_THROB_RATE = 2

BUTTON_LED_LEVEL_ON = 255
BUTTON_LED_LEVEL_OFF = 0
BUTTON_LED_THROB_MIN = 60
BUTTON_LED_THROB_RATE = 1
BUTTON_LED_RISE_TIME = 3

CARVIN_TIMING_CTC = 120
CONTROL_DEBOUNCE_COUNT = 8
BUTTON_UP_WAIT_TIME = 6000
OFF_BUTTON_COUNT = 1000

HARDWARE_ID_SHIFT = 3
HARDWARE_ID_MASK = 0b11111 << HARDWARE_ID_SHIFT


@dataclass
class PwmChannel:
    """An analog output that moves towards its target one level per timer tick.

    ``duration`` is the number of ticks between level changes; zero jumps
    straight to the target. A throbbing channel bounces between full on and
    ``throb_min``.
    """

    target: int = 0
    current_level: int = 0
    duration: int = 0
    dur_counter: int = 0
    throbbing: bool = False
    throb_min: int = 0

    def reset(self) -> None:
        """Return every field to zero."""
        self.current_level = 0
        self.duration = 0
        self.dur_counter = 0
        self.throbbing = False
        self.throb_min = 0
        self.target = 0

    def set(self, target_level: int, duration: int) -> None:
        """Fade to a new steady level."""
        self.duration = duration
        self.throbbing = False
        self.target = target_level

    def throb(self, min_throb: int, duration: int) -> None:
        """Start throbbing from off between full on and ``min_throb``."""
        self.current_level = 0
        self.duration = duration
        self.throbbing = True
        self.target = LED_FULL_ON
        self.throb_min = min_throb

    def step(self) -> bool:
        """Advance one timer tick; return True if the output level changed."""
        if self.target == self.current_level:
            return False
        if self.duration == 0:
            self.current_level = self.target
            return True
        if self.dur_counter > 1:
            self.dur_counter -= 1
            return False
        if self.current_level < self.target:
            self.current_level += 1
            if self.throbbing and self.current_level == LED_FULL_ON:
                self.target = self.throb_min
        else:
            self.current_level -= 1
            if self.throbbing and self.current_level <= self.throb_min:
                self.target = LED_FULL_ON
        self.dur_counter = self.duration
        return True


def hardware_rev(pin_value: int) -> int:
    """Decode the board revision from the hardware-ID port value (pins pulled up, active low)."""
    return ((pin_value & HARDWARE_ID_MASK) >> HARDWARE_ID_SHIFT) ^ 0b11111


def format_switch_states(control: int, limit: int, probe: int) -> str:
    """Format masked control, limit and probe port values as the switch-state report line."""
    return f"{{Sw:Ctl:{control & 0xFF:08b},Lim:{limit & 0xFF:08b},Prb:{probe & 0xFF:08b}}}\r\n"