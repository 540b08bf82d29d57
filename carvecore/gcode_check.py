"""Error-checking a parsed block and converting its values to machine millimetres."""

from __future__ import annotations

import copy
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from carvecore.gcode_words import (
    AXIS_COMMAND_MOTION_MODE,
    AXIS_COMMAND_NONE,
    AXIS_COMMAND_TOOL_LENGTH_OFFSET,
    MAX_LINE_NUMBER,
    ParsedBlock,
)
from carvecore.modes import (
    MM_PER_INCH,
    N_AXIS,
    N_COORDINATE_SYSTEM,
    SETTING_INDEX_G28,
    SETTING_INDEX_G30,
    STATUS_GCODE_ARC_RADIUS_ERROR,
    STATUS_GCODE_AXIS_WORDS_EXIST,
    STATUS_GCODE_G43_DYNAMIC_AXIS_ERROR,
    STATUS_GCODE_G53_INVALID_MOTION_MODE,
    STATUS_GCODE_INVALID_LINE_NUMBER,
    STATUS_GCODE_INVALID_TARGET,
    STATUS_GCODE_NO_AXIS_WORDS,
    STATUS_GCODE_NO_AXIS_WORDS_IN_PLANE,
    STATUS_GCODE_NO_OFFSETS_IN_PLANE,
    STATUS_GCODE_UNDEFINED_FEED_RATE,
    STATUS_GCODE_UNSUPPORTED_COMMAND,
    STATUS_GCODE_UNSUPPORTED_COORD_SYS,
    STATUS_GCODE_UNUSED_WORDS,
    STATUS_GCODE_VALUE_WORD_MISSING,
    STATUS_SETTING_READ_FAIL,
    TOOL_LENGTH_OFFSET_AXIS,
    Distance,
    FeedRateMode,
    GCodeError,
    Modal,
    ModalGroup,
    MotionMode,
    NonModal,
    ParserFlag,
    ParserState,
    ToolLength,
    Units,
    Values,
    Word,
    plane_axes,
)

N_COORDINATE_SLOTS = SETTING_INDEX_G30 + 1


def _bit(word: Word) -> int:
    return 1 << word


_AXIS_VALUE_BITS = _bit(Word.X) | _bit(Word.Y) | _bit(Word.Z)
_IJK_VALUE_BITS = _bit(Word.I) | _bit(Word.J) | _bit(Word.K)


@dataclass
class CoordinateStore:
    """Stored work coordinate systems (G54..G59) and the G28/G30 home positions.

    Slots that were never written read as all zeros.
    """

    slots: dict[int, list[float]] = field(default_factory=dict)

    def read(self, index: int) -> list[float]:
        """Return a copy of a slot; raises GCodeError with the setting-read-fail status."""
        if not 0 <= index < N_COORDINATE_SLOTS:
            raise GCodeError(STATUS_SETTING_READ_FAIL)
        return list(self.slots.get(index, [0.0] * N_AXIS))

    def write(self, index: int, values: Sequence[float]) -> None:
        """Store one coordinate triple in a slot."""
        if not 0 <= index < N_COORDINATE_SLOTS:
            raise IndexError(f"coordinate slot {index} out of range")
        if len(values) != N_AXIS:
            raise ValueError(f"expected {N_AXIS} coordinates, got {len(values)}")
        self.slots[index] = [float(v) for v in values]


@dataclass
class CheckedBlock:
    """A block that passed every check, with values converted for execution."""

    modal: Modal
    values: Values
    non_modal_command: int
    axis_command: int
    axis_words: int
    command_words: int
    parser_flags: ParserFlag
    t_encountered: bool
    axis_0: int
    axis_1: int
    axis_linear: int
    coord_select: int
    block_coord_system: list[float]


def _axis_set(mask: int, idx: int) -> bool:
    return bool(mask & (1 << idx))


def _check_feed_rate(modal: Modal, values: Values, state: ParserState, value_words: int,
                     axis_command: int, jog: bool) -> None:
    has_f = bool(value_words & _bit(Word.F))
    if jog:
        if not has_f:
            raise GCodeError(STATUS_GCODE_UNDEFINED_FEED_RATE)
        if modal.units == Units.INCHES:
            values.f *= MM_PER_INCH
        return
    if modal.feed_rate == FeedRateMode.INVERSE_TIME:
        # Every motion block needs its own F word in inverse time mode.
        if axis_command == AXIS_COMMAND_MOTION_MODE and not has_f:
            raise GCodeError(STATUS_GCODE_UNDEFINED_FEED_RATE)
    elif state.modal.feed_rate == FeedRateMode.UNITS_PER_MIN:
        if has_f:
            if modal.units == Units.INCHES:
                values.f *= MM_PER_INCH
        else:
            values.f = state.feed_rate


def _check_set_coordinate_data(modal: Modal, values: Values, state: ParserState,
                               store: CoordinateStore, axis_words: int,
                               value_words: int) -> tuple[int, int]:
    if not axis_words:
        raise GCodeError(STATUS_GCODE_NO_AXIS_WORDS)
    if not value_words & (_bit(Word.P) | _bit(Word.L)):
        raise GCodeError(STATUS_GCODE_VALUE_WORD_MISSING)
    coord_select = math.trunc(values.p)
    if coord_select > N_COORDINATE_SYSTEM:
        raise GCodeError(STATUS_GCODE_UNSUPPORTED_COORD_SYS)
    if values.l != 20:
        if values.l != 2 or value_words & _bit(Word.R):
            raise GCodeError(STATUS_GCODE_UNSUPPORTED_COMMAND)
    value_words &= ~(_bit(Word.L) | _bit(Word.P))

    # P1..P6 select a stored system; P0 means the active one.
    coord_select = coord_select - 1 if coord_select > 0 else modal.coord_select
    values.ijk = store.read(coord_select)
    for idx in range(N_AXIS):
        if not _axis_set(axis_words, idx):
            continue
        if values.l == 20:
            values.ijk[idx] = state.position[idx] - state.coord_offset[idx] - values.xyz[idx]
            if idx == TOOL_LENGTH_OFFSET_AXIS:
                values.ijk[idx] -= state.tool_length_offset
        else:
            values.ijk[idx] = values.xyz[idx]
    return coord_select, value_words


def _check_arc(modal: Modal, values: Values, state: ParserState, axis_words: int,
               ijk_words: int, value_words: int, axis_0: int, axis_1: int) -> int:
    if not axis_words:
        raise GCodeError(STATUS_GCODE_NO_AXIS_WORDS)
    if not axis_words & ((1 << axis_0) | (1 << axis_1)):
        raise GCodeError(STATUS_GCODE_NO_AXIS_WORDS_IN_PLANE)

    x = values.xyz[axis_0] - state.position[axis_0]
    y = values.xyz[axis_1] - state.position[axis_1]

    if value_words & _bit(Word.R):
        value_words &= ~_bit(Word.R)
        if list(state.position) == list(values.xyz):
            raise GCodeError(STATUS_GCODE_INVALID_TARGET)
        if modal.units == Units.INCHES:
            values.r *= MM_PER_INCH
        h_x2_div_d = 4.0 * values.r * values.r - x * x - y * y
        if h_x2_div_d < 0:
            raise GCodeError(STATUS_GCODE_ARC_RADIUS_ERROR)
        chord = math.hypot(x, y)
        if chord == 0.0:
            raise GCodeError(STATUS_GCODE_INVALID_TARGET)
        h_x2_div_d = -math.sqrt(h_x2_div_d) / chord
        if modal.motion == MotionMode.CCW_ARC:
            h_x2_div_d = -h_x2_div_d
        # A negative radius asks for the arc of more than 180 degrees.
        if values.r < 0:
            h_x2_div_d = -h_x2_div_d
            values.r = -values.r
        values.ijk[axis_0] = 0.5 * (x - y * h_x2_div_d)
        values.ijk[axis_1] = 0.5 * (y + x * h_x2_div_d)
    else:
        if not ijk_words & ((1 << axis_0) | (1 << axis_1)):
            raise GCodeError(STATUS_GCODE_NO_OFFSETS_IN_PLANE)
        value_words &= ~_IJK_VALUE_BITS
        if modal.units == Units.INCHES:
            for idx in range(N_AXIS):
                if _axis_set(ijk_words, idx):
                    values.ijk[idx] *= MM_PER_INCH
        x -= values.ijk[axis_0]
        y -= values.ijk[axis_1]
        target_r = math.hypot(x, y)
        values.r = math.hypot(values.ijk[axis_0], values.ijk[axis_1])
        delta_r = abs(target_r - values.r)
        if delta_r > 0.005:
            if delta_r > 0.5 or delta_r > 0.001 * values.r:
                raise GCodeError(STATUS_GCODE_INVALID_TARGET)
    return value_words


def check_block(parsed: ParsedBlock, state: ParserState, store: CoordinateStore) -> CheckedBlock:
    """Check a parsed block against the parser state and pre-compute its targets.

    The parsed block is left unchanged. Raises GCodeError on the first failed check.
    """
    modal = parsed.modal.copy()
    values = copy.deepcopy(parsed.values)
    non_modal = parsed.non_modal_command
    axis_command = parsed.axis_command
    axis_words = parsed.axis_words
    ijk_words = parsed.ijk_words
    command_words = parsed.command_words
    value_words = parsed.value_words
    flags = parsed.parser_flags
    jog = bool(flags & ParserFlag.JOG_MOTION)
    coord_select = 0

    if axis_words and not axis_command:
        axis_command = AXIS_COMMAND_MOTION_MODE

    if value_words & _bit(Word.N) and values.n > MAX_LINE_NUMBER:
        raise GCodeError(STATUS_GCODE_INVALID_LINE_NUMBER)

    _check_feed_rate(modal, values, state, value_words, axis_command, jog)

    if not value_words & _bit(Word.S):
        values.s = state.spindle_speed

    if non_modal == NonModal.DWELL:
        if not value_words & _bit(Word.P):
            raise GCodeError(STATUS_GCODE_VALUE_WORD_MISSING)
        value_words &= ~_bit(Word.P)

    axis_0, axis_1, axis_linear = plane_axes(modal.plane_select)

    if modal.units == Units.INCHES:
        for idx in range(N_AXIS):
            if _axis_set(axis_words, idx):
                values.xyz[idx] *= MM_PER_INCH

    if (axis_command == AXIS_COMMAND_TOOL_LENGTH_OFFSET
            and modal.tool_length == ToolLength.ENABLE_DYNAMIC
            and axis_words ^ (1 << TOOL_LENGTH_OFFSET_AXIS)):
        raise GCodeError(STATUS_GCODE_G43_DYNAMIC_AXIS_ERROR)

    block_coord_system = list(state.coord_system)
    if command_words & (1 << ModalGroup.G12):
        if modal.coord_select > N_COORDINATE_SYSTEM:
            raise GCodeError(STATUS_GCODE_UNSUPPORTED_COORD_SYS)
        if state.modal.coord_select != modal.coord_select:
            block_coord_system = store.read(modal.coord_select)

    if non_modal == NonModal.SET_COORDINATE_DATA:
        coord_select, value_words = _check_set_coordinate_data(
            modal, values, state, store, axis_words, value_words)
    elif non_modal == NonModal.SET_COORDINATE_OFFSET:
        if not axis_words:
            raise GCodeError(STATUS_GCODE_NO_AXIS_WORDS)
        for idx in range(N_AXIS):
            if _axis_set(axis_words, idx):
                values.xyz[idx] = state.position[idx] - block_coord_system[idx] - values.xyz[idx]
                if idx == TOOL_LENGTH_OFFSET_AXIS:
                    values.xyz[idx] -= state.tool_length_offset
            else:
                values.xyz[idx] = state.coord_offset[idx]
    else:
        if axis_command != AXIS_COMMAND_TOOL_LENGTH_OFFSET and axis_words:
            for idx in range(N_AXIS):
                if not _axis_set(axis_words, idx):
                    values.xyz[idx] = state.position[idx]
                elif non_modal != NonModal.ABSOLUTE_OVERRIDE:
                    if modal.distance == Distance.ABSOLUTE:
                        values.xyz[idx] += block_coord_system[idx] + state.coord_offset[idx]
                        if idx == TOOL_LENGTH_OFFSET_AXIS:
                            values.xyz[idx] += state.tool_length_offset
                    else:
                        values.xyz[idx] += state.position[idx]

        if non_modal in (NonModal.GO_HOME_0, NonModal.GO_HOME_1):
            slot = SETTING_INDEX_G28 if non_modal == NonModal.GO_HOME_0 else SETTING_INDEX_G30
            values.ijk = store.read(slot)
            if axis_words:
                for idx in range(N_AXIS):
                    if not _axis_set(axis_words, idx):
                        values.ijk[idx] = state.position[idx]
            else:
                axis_command = AXIS_COMMAND_NONE
        elif non_modal == NonModal.ABSOLUTE_OVERRIDE:
            if modal.motion not in (MotionMode.SEEK, MotionMode.LINEAR):
                raise GCodeError(STATUS_GCODE_G53_INVALID_MOTION_MODE)

    if modal.motion == MotionMode.NONE:
        if axis_words:
            raise GCodeError(STATUS_GCODE_AXIS_WORDS_EXIST)
    elif axis_command == AXIS_COMMAND_MOTION_MODE:
        if modal.motion == MotionMode.SEEK:
            if not axis_words:
                axis_command = AXIS_COMMAND_NONE
        else:
            if values.f == 0.0:
                raise GCodeError(STATUS_GCODE_UNDEFINED_FEED_RATE)
            if modal.motion == MotionMode.LINEAR:
                if not axis_words:
                    axis_command = AXIS_COMMAND_NONE
            elif modal.motion in (MotionMode.CW_ARC, MotionMode.CCW_ARC):
                if modal.motion == MotionMode.CW_ARC:
                    flags |= ParserFlag.ARC_IS_CLOCKWISE
                value_words = _check_arc(modal, values, state, axis_words, ijk_words,
                                         value_words, axis_0, axis_1)
            else:
                if modal.motion in (MotionMode.PROBE_TOWARD_NO_ERROR,
                                    MotionMode.PROBE_AWAY_NO_ERROR):
                    flags |= ParserFlag.PROBE_IS_NO_ERROR
                if modal.motion in (MotionMode.PROBE_AWAY, MotionMode.PROBE_AWAY_NO_ERROR):
                    flags |= ParserFlag.PROBE_IS_AWAY
                if not axis_words:
                    raise GCodeError(STATUS_GCODE_NO_AXIS_WORDS)
                if list(state.position) == list(values.xyz):
                    raise GCodeError(STATUS_GCODE_INVALID_TARGET)

    if jog:
        value_words &= ~(_bit(Word.N) | _bit(Word.F))
    else:
        value_words &= ~(_bit(Word.N) | _bit(Word.F) | _bit(Word.S) | _bit(Word.T))
    if axis_command:
        value_words &= ~_AXIS_VALUE_BITS
    if value_words:
        raise GCodeError(STATUS_GCODE_UNUSED_WORDS)

    return CheckedBlock(
        modal=modal,
        values=values,
        non_modal_command=non_modal,
        axis_command=axis_command,
        axis_words=axis_words,
        command_words=command_words,
        parser_flags=flags,
        t_encountered=parsed.t_encountered,
        axis_0=axis_0,
        axis_1=axis_1,
        axis_linear=axis_linear,
        coord_select=coord_select,
        block_coord_system=block_coord_system,
    )