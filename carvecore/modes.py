"""G-code modal states, word identifiers, parser flags and parser state records."""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field

N_AXIS = 3
X_AXIS = 0
Y_AXIS = 1
Z_AXIS = 2
TOOL_LENGTH_OFFSET_AXIS = Z_AXIS
MM_PER_INCH = 25.4
N_COORDINATE_SYSTEM = 6
SETTING_INDEX_G28 = N_COORDINATE_SYSTEM
SETTING_INDEX_G30 = N_COORDINATE_SYSTEM + 1


class MotionMode(enum.IntEnum):
    SEEK = 0
    LINEAR = 1
    CW_ARC = 2
    CCW_ARC = 3
    PROBE_TOWARD = 140
    PROBE_TOWARD_NO_ERROR = 141
    PROBE_AWAY = 142
    PROBE_AWAY_NO_ERROR = 143
    NONE = 80


class NonModal(enum.IntEnum):
    NO_ACTION = 0
    DWELL = 4
    SET_COORDINATE_DATA = 10
    GO_HOME_0 = 28
    SET_HOME_0 = 38
    GO_HOME_1 = 30
    SET_HOME_1 = 40
    ABSOLUTE_OVERRIDE = 53
    SET_COORDINATE_OFFSET = 92
    RESET_COORDINATE_OFFSET = 102


class Plane(enum.IntEnum):
    XY = 0
    ZX = 1
    YZ = 2


class Distance(enum.IntEnum):
    ABSOLUTE = 0
    INCREMENTAL = 1


class FeedRateMode(enum.IntEnum):
    UNITS_PER_MIN = 0
    INVERSE_TIME = 1


class Units(enum.IntEnum):
    MM = 0
    INCHES = 1


class ProgramFlow(enum.IntEnum):
    RUNNING = 0
    OPTIONAL_STOP = 1
    COMPLETED_M2 = 2
    PAUSED = 3
    COMPLETED_M30 = 30


class ToolLength(enum.IntEnum):
    CANCEL = 0
    ENABLE_DYNAMIC = 1


class ModalGroup(enum.IntEnum):
    """Modal groups; at most one command of each may appear in a block."""

    G0 = 0
    G1 = 1
    G2 = 2
    G3 = 3
    G4 = 4
    G5 = 5
    G6 = 6
    G7 = 7
    G8 = 8
    G12 = 9
    G13 = 10
    M4 = 11
    M7 = 12
    M8 = 13


class Word(enum.IntEnum):
    F = 0
    I = 1  # noqa: E741
    J = 2
    K = 3
    L = 4
    N = 5
    P = 6
    R = 7
    S = 8
    T = 9
    X = 10
    Y = 11
    Z = 12


class ParserFlag(enum.IntFlag):
    NONE = 0
    JOG_MOTION = 1 << 0
    CHECK_MANTISSA = 1 << 1
    ARC_IS_CLOCKWISE = 1 << 2
    PROBE_IS_AWAY = 1 << 3
    PROBE_IS_NO_ERROR = 1 << 4
    LASER_FORCE_SYNC = 1 << 5
    LASER_DISABLE = 1 << 6
    LASER_ISMOTION = 1 << 7


class Condition(enum.IntFlag):
    """Planner condition flags; spindle and coolant modes reuse these bits."""

    NONE = 0
    RAPID_MOTION = 1 << 0
    SYSTEM_MOTION = 1 << 1
    NO_FEED_OVERRIDE = 1 << 2
    INVERSE_TIME = 1 << 3
    SPINDLE_CW = 1 << 4
    SPINDLE_CCW = 1 << 5
    COOLANT_FLOOD = 1 << 6
    COOLANT_MIST = 1 << 7


SPINDLE_DISABLE = 0
SPINDLE_ENABLE_CW = int(Condition.SPINDLE_CW)
SPINDLE_ENABLE_CCW = int(Condition.SPINDLE_CCW)

COOLANT_DISABLE = 0
COOLANT_FLOOD_ENABLE = int(Condition.COOLANT_FLOOD)
COOLANT_MIST_ENABLE = int(Condition.COOLANT_MIST)

STATUS_OK = 0
STATUS_EXPECTED_COMMAND_LETTER = 1
STATUS_BAD_NUMBER_FORMAT = 2
STATUS_NEGATIVE_VALUE = 4
STATUS_SETTING_READ_FAIL = 7
STATUS_TRAVEL_EXCEEDED = 15
STATUS_INVALID_JOG_COMMAND = 16
STATUS_GCODE_UNSUPPORTED_COMMAND = 20
STATUS_GCODE_MODAL_GROUP_VIOLATION = 21
STATUS_GCODE_UNDEFINED_FEED_RATE = 22
STATUS_GCODE_COMMAND_VALUE_NOT_INTEGER = 23
STATUS_GCODE_AXIS_COMMAND_CONFLICT = 24
STATUS_GCODE_WORD_REPEATED = 25
STATUS_GCODE_NO_AXIS_WORDS = 26
STATUS_GCODE_INVALID_LINE_NUMBER = 27
STATUS_GCODE_VALUE_WORD_MISSING = 28
STATUS_GCODE_UNSUPPORTED_COORD_SYS = 29
STATUS_GCODE_G53_INVALID_MOTION_MODE = 30
STATUS_GCODE_AXIS_WORDS_EXIST = 31
STATUS_GCODE_NO_AXIS_WORDS_IN_PLANE = 32
STATUS_GCODE_INVALID_TARGET = 33
STATUS_GCODE_ARC_RADIUS_ERROR = 34
STATUS_GCODE_NO_OFFSETS_IN_PLANE = 35
STATUS_GCODE_UNUSED_WORDS = 36
STATUS_GCODE_G43_DYNAMIC_AXIS_ERROR = 37
STATUS_GCODE_MAX_VALUE_EXCEEDED = 38

_MESSAGES = {
    STATUS_EXPECTED_COMMAND_LETTER: "expected command letter",
    STATUS_BAD_NUMBER_FORMAT: "bad number format",
    STATUS_NEGATIVE_VALUE: "value cannot be negative",
    STATUS_SETTING_READ_FAIL: "setting read failed",
    STATUS_TRAVEL_EXCEEDED: "travel exceeded",
    STATUS_INVALID_JOG_COMMAND: "invalid jog command",
    STATUS_GCODE_UNSUPPORTED_COMMAND: "unsupported command",
    STATUS_GCODE_MODAL_GROUP_VIOLATION: "modal group violation",
    STATUS_GCODE_UNDEFINED_FEED_RATE: "undefined feed rate",
    STATUS_GCODE_COMMAND_VALUE_NOT_INTEGER: "command value not integer",
    STATUS_GCODE_AXIS_COMMAND_CONFLICT: "axis command conflict",
    STATUS_GCODE_WORD_REPEATED: "word repeated",
    STATUS_GCODE_NO_AXIS_WORDS: "no axis words",
    STATUS_GCODE_INVALID_LINE_NUMBER: "invalid line number",
    STATUS_GCODE_VALUE_WORD_MISSING: "value word missing",
    STATUS_GCODE_UNSUPPORTED_COORD_SYS: "unsupported coordinate system",
    STATUS_GCODE_G53_INVALID_MOTION_MODE: "G53 requires G0 or G1",
    STATUS_GCODE_AXIS_WORDS_EXIST: "axis words not allowed",
    STATUS_GCODE_NO_AXIS_WORDS_IN_PLANE: "no axis words in plane",
    STATUS_GCODE_INVALID_TARGET: "invalid target",
    STATUS_GCODE_ARC_RADIUS_ERROR: "arc radius error",
    STATUS_GCODE_NO_OFFSETS_IN_PLANE: "no offsets in plane",
    STATUS_GCODE_UNUSED_WORDS: "unused words",
    STATUS_GCODE_G43_DYNAMIC_AXIS_ERROR: "G43.1 dynamic axis error",
    STATUS_GCODE_MAX_VALUE_EXCEEDED: "max value exceeded",
}


class GCodeError(Exception):
    """A rejected block, carrying the numeric status code reported to the host."""

    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"error:{code} ({_MESSAGES.get(code, 'unknown error')})")


def _axes() -> list[float]:
    return [0.0] * N_AXIS


@dataclass
class Modal:
    """Active modal state; all-zero fields are the power-up defaults."""

    motion: int = MotionMode.SEEK
    feed_rate: int = FeedRateMode.UNITS_PER_MIN
    units: int = Units.MM
    distance: int = Distance.ABSOLUTE
    plane_select: int = Plane.XY
    tool_length: int = ToolLength.CANCEL
    coord_select: int = 0
    program_flow: int = ProgramFlow.RUNNING
    coolant: int = COOLANT_DISABLE
    spindle: int = SPINDLE_DISABLE

    def copy(self) -> Modal:
        """Return an independent copy."""
        return dataclasses.replace(self)


@dataclass
class Values:
    """Value words of one block."""

    f: float = 0.0
    ijk: list[float] = field(default_factory=_axes)
    l: int = 0  # noqa: E741
    n: int = 0
    p: float = 0.0
    r: float = 0.0
    s: float = 0.0
    t: int = 0
    xyz: list[float] = field(default_factory=_axes)


@dataclass
class ParserState:
    """Persistent interpreter state between blocks."""

    modal: Modal = field(default_factory=Modal)
    spindle_speed: float = 0.0
    feed_rate: float = 0.0
    tool: int = 0
    line_number: int = 0
    position: list[float] = field(default_factory=_axes)
    coord_system: list[float] = field(default_factory=_axes)
    coord_offset: list[float] = field(default_factory=_axes)
    tool_length_offset: float = 0.0


def plane_axes(plane: int) -> tuple[int, int, int]:
    """Return (axis_0, axis_1, axis_linear) for a plane selection."""
    if plane == Plane.XY:
        return X_AXIS, Y_AXIS, Z_AXIS
    if plane == Plane.ZX:
        return Z_AXIS, X_AXIS, Y_AXIS
    return Y_AXIS, Z_AXIS, X_AXIS