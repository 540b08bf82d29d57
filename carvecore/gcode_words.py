"""Reading g-code words from a block line into a parsed, not yet checked, block."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from carvecore.modes import (
    COOLANT_DISABLE,
    COOLANT_FLOOD_ENABLE,
    SPINDLE_DISABLE,
    SPINDLE_ENABLE_CCW,
    SPINDLE_ENABLE_CW,
    STATUS_BAD_NUMBER_FORMAT,
    STATUS_EXPECTED_COMMAND_LETTER,
    STATUS_GCODE_AXIS_COMMAND_CONFLICT,
    STATUS_GCODE_COMMAND_VALUE_NOT_INTEGER,
    STATUS_GCODE_MAX_VALUE_EXCEEDED,
    STATUS_GCODE_MODAL_GROUP_VIOLATION,
    STATUS_GCODE_UNSUPPORTED_COMMAND,
    STATUS_GCODE_WORD_REPEATED,
    STATUS_NEGATIVE_VALUE,
    X_AXIS,
    Y_AXIS,
    Z_AXIS,
    Distance,
    FeedRateMode,
    GCodeError,
    Modal,
    ModalGroup,
    MotionMode,
    NonModal,
    ParserFlag,
    Plane,
    ProgramFlow,
    ToolLength,
    Units,
    Values,
    Word,
)
from carvecore.motion import JOG_LINE_NUMBER

MAX_LINE_NUMBER = 10000000
MAX_TOOL_NUMBER = 255

AXIS_COMMAND_NONE = 0
AXIS_COMMAND_NON_MODAL = 1
AXIS_COMMAND_MOTION_MODE = 2
AXIS_COMMAND_TOOL_LENGTH_OFFSET = 3

_JOG_PREFIX_LENGTH = 3  # "$J="

_AXIS_LETTERS = {"X": X_AXIS, "Y": Y_AXIS, "Z": Z_AXIS}
_OFFSET_LETTERS = {"I": X_AXIS, "J": Y_AXIS, "K": Z_AXIS}
_NON_NEGATIVE_WORDS = frozenset({Word.F, Word.N, Word.P, Word.T, Word.S})


@dataclass
class ParsedBlock:
    """The words of one block, with the bit masks that track which words appeared.

    ``axis_words`` and ``ijk_words`` have one bit per axis; ``command_words``
    one bit per modal group; ``value_words`` one bit per value word.
    """

    modal: Modal
    values: Values = field(default_factory=Values)
    non_modal_command: int = NonModal.NO_ACTION
    axis_command: int = AXIS_COMMAND_NONE
    axis_words: int = 0
    ijk_words: int = 0
    command_words: int = 0
    value_words: int = 0
    parser_flags: ParserFlag = ParserFlag.NONE
    t_encountered: bool = False


def read_number(line: str, pos: int) -> tuple[float, int]:
    """Read a signed decimal number starting at ``pos``.

    Returns the value and the position just after it. Raises GCodeError with
    the bad-number-format status if no digit is found.
    """
    start = pos
    if pos < len(line) and line[pos] in "+-":
        pos += 1
    digits = 0
    seen_point = False
    while pos < len(line):
        char = line[pos]
        if char.isdigit() and char.isascii():
            digits += 1
        elif char == "." and not seen_point:
            seen_point = True
        else:
            break
        pos += 1
    if digits == 0:
        raise GCodeError(STATUS_BAD_NUMBER_FORMAT)
    return float(line[start:pos]), pos


def _round_half_away(number: float) -> int:
    magnitude = int(math.floor(abs(number) + 0.5))
    return -magnitude if number < 0 else magnitude


def _mark_group(block: ParsedBlock, group: ModalGroup) -> None:
    bit = 1 << group
    if block.command_words & bit:
        raise GCodeError(STATUS_GCODE_MODAL_GROUP_VIOLATION)
    block.command_words |= bit


def _claim_axis_command(block: ParsedBlock, kind: int) -> None:
    if block.axis_command:
        raise GCodeError(STATUS_GCODE_AXIS_COMMAND_CONFLICT)
    block.axis_command = kind


def _parse_g(block: ParsedBlock, int_value: int, mantissa: int) -> None:
    modal = block.modal
    if int_value in (10, 28, 30, 92, 4, 53):
        if int_value in (10, 28, 30, 92) and mantissa == 0:
            _claim_axis_command(block, AXIS_COMMAND_NON_MODAL)
        group = ModalGroup.G0
        command = int_value
        if int_value in (28, 30, 92):
            if mantissa not in (0, 10):
                raise GCodeError(STATUS_GCODE_UNSUPPORTED_COMMAND)
            command += mantissa
            mantissa = 0
        block.non_modal_command = NonModal(command)
    elif int_value in (0, 1, 2, 3, 38, 80):
        if int_value != 80:
            _claim_axis_command(block, AXIS_COMMAND_MOTION_MODE)
        group = ModalGroup.G1
        motion = int_value
        if int_value == 38:
            if mantissa not in (20, 30, 40, 50):
                raise GCodeError(STATUS_GCODE_UNSUPPORTED_COMMAND)
            motion += mantissa // 10 + 100
            mantissa = 0
        modal.motion = MotionMode(motion)
    elif int_value in (17, 18, 19):
        group = ModalGroup.G2
        modal.plane_select = Plane(int_value - 17)
    elif int_value in (90, 91):
        if mantissa == 0:
            group = ModalGroup.G3
            modal.distance = Distance(int_value - 90)
        else:
            group = ModalGroup.G4
            if mantissa != 10 or int_value == 90:
                raise GCodeError(STATUS_GCODE_UNSUPPORTED_COMMAND)
            mantissa = 0  # G91.1 is the only arc distance mode and changes nothing.
    elif int_value in (93, 94):
        group = ModalGroup.G5
        modal.feed_rate = FeedRateMode(94 - int_value)
    elif int_value in (20, 21):
        group = ModalGroup.G6
        modal.units = Units(21 - int_value)
    elif int_value == 40:
        group = ModalGroup.G7
    elif int_value in (43, 49):
        group = ModalGroup.G8
        _claim_axis_command(block, AXIS_COMMAND_TOOL_LENGTH_OFFSET)
        if int_value == 49:
            modal.tool_length = ToolLength.CANCEL
        elif mantissa == 10:
            modal.tool_length = ToolLength.ENABLE_DYNAMIC
        else:
            raise GCodeError(STATUS_GCODE_UNSUPPORTED_COMMAND)
        mantissa = 0
    elif 54 <= int_value <= 59:
        group = ModalGroup.G12
        modal.coord_select = int_value - 54
    elif int_value == 61:
        group = ModalGroup.G13
        if mantissa != 0:
            raise GCodeError(STATUS_GCODE_UNSUPPORTED_COMMAND)
    else:
        raise GCodeError(STATUS_GCODE_UNSUPPORTED_COMMAND)
    if mantissa != 0:
        raise GCodeError(STATUS_GCODE_COMMAND_VALUE_NOT_INTEGER)
    _mark_group(block, group)


def _parse_m(block: ParsedBlock, int_value: int, mantissa: int) -> None:
    if mantissa != 0:
        raise GCodeError(STATUS_GCODE_COMMAND_VALUE_NOT_INTEGER)
    modal = block.modal
    if int_value in (0, 1, 2, 30):
        group = ModalGroup.M4
        if int_value == 0:
            modal.program_flow = ProgramFlow.PAUSED
        elif int_value != 1:  # M1 optional stop is accepted and ignored.
            modal.program_flow = ProgramFlow(int_value)
    elif int_value in (3, 4, 5):
        group = ModalGroup.M7
        modal.spindle = {3: SPINDLE_ENABLE_CW, 4: SPINDLE_ENABLE_CCW, 5: SPINDLE_DISABLE}[int_value]
    elif int_value in (8, 9):
        group = ModalGroup.M8
        modal.coolant = COOLANT_FLOOD_ENABLE if int_value == 8 else COOLANT_DISABLE
    else:
        raise GCodeError(STATUS_GCODE_UNSUPPORTED_COMMAND)
    _mark_group(block, group)


def _parse_value_word(block: ParsedBlock, letter: str, value: float, int_value: int) -> None:
    values = block.values
    if letter == "F":
        word = Word.F
        values.f = value
    elif letter in _OFFSET_LETTERS:
        axis = _OFFSET_LETTERS[letter]
        word = Word[letter]
        values.ijk[axis] = value
        block.ijk_words |= 1 << axis
    elif letter == "L":
        word = Word.L
        values.l = int_value
    elif letter == "N":
        word = Word.N
        values.n = int_value
    elif letter == "P":
        word = Word.P
        values.p = value
    elif letter == "R":
        word = Word.R
        values.r = value
    elif letter == "S":
        word = Word.S
        values.s = value
    elif letter == "T":
        word = Word.T
        if value > MAX_TOOL_NUMBER:
            raise GCodeError(STATUS_GCODE_MAX_VALUE_EXCEEDED)
        values.t = int_value
        block.t_encountered = True
    elif letter in _AXIS_LETTERS:
        axis = _AXIS_LETTERS[letter]
        word = Word[letter]
        values.xyz[axis] = value
        block.axis_words |= 1 << axis
    else:
        raise GCodeError(STATUS_GCODE_UNSUPPORTED_COMMAND)

    bit = 1 << word
    if block.value_words & bit:
        raise GCodeError(STATUS_GCODE_WORD_REPEATED)
    if word in _NON_NEGATIVE_WORDS and value < 0.0:
        raise GCodeError(STATUS_NEGATIVE_VALUE)
    block.value_words |= bit


def parse_block(line: str, modal: Modal) -> ParsedBlock:
    """Read every word of a block line, starting from a copy of the active modes.

    The line holds upper-case letters and signed numbers only. A line starting
    with ``$`` is a jog (``$J=`` prefix). Raises GCodeError on malformed words,
    unsupported commands, modal group violations and repeated words.
    """
    block = ParsedBlock(modal=modal.copy())
    pos = 0
    if line.startswith("$"):
        block.parser_flags |= ParserFlag.JOG_MOTION
        block.modal.motion = MotionMode.LINEAR
        block.modal.feed_rate = FeedRateMode.UNITS_PER_MIN
        block.values.n = JOG_LINE_NUMBER
        pos = _JOG_PREFIX_LENGTH

    while pos < len(line):
        letter = line[pos]
        if not ("A" <= letter <= "Z"):
            raise GCodeError(STATUS_EXPECTED_COMMAND_LETTER)
        value, pos = read_number(line, pos + 1)
        int_value = math.trunc(value)
        # Hundredths catch non-integer command values such as G38.2.
        mantissa = _round_half_away(100 * (value - int_value))
        if letter == "G":
            _parse_g(block, int_value, mantissa)
        elif letter == "M":
            _parse_m(block, int_value, mantissa)
        else:
            _parse_value_word(block, letter, value, int_value)
    return block