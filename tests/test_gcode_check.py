import math

import pytest

from carvecore.gcode_check import CoordinateStore, check_block
from carvecore.gcode_words import (
    AXIS_COMMAND_MOTION_MODE,
    AXIS_COMMAND_NONE,
    parse_block,
)
from carvecore.modes import (
    MM_PER_INCH,
    SETTING_INDEX_G28,
    STATUS_GCODE_ARC_RADIUS_ERROR,
    STATUS_GCODE_AXIS_WORDS_EXIST,
    STATUS_GCODE_G43_DYNAMIC_AXIS_ERROR,
    STATUS_GCODE_G53_INVALID_MOTION_MODE,
    STATUS_GCODE_INVALID_LINE_NUMBER,
    STATUS_GCODE_INVALID_TARGET,
    STATUS_GCODE_NO_AXIS_WORDS_IN_PLANE,
    STATUS_GCODE_NO_OFFSETS_IN_PLANE,
    STATUS_GCODE_UNDEFINED_FEED_RATE,
    STATUS_GCODE_UNSUPPORTED_COMMAND,
    STATUS_GCODE_UNSUPPORTED_COORD_SYS,
    STATUS_GCODE_UNUSED_WORDS,
    STATUS_GCODE_VALUE_WORD_MISSING,
    STATUS_SETTING_READ_FAIL,
    GCodeError,
    Modal,
    ParserFlag,
    ParserState,
)


def run(line, state=None, store=None):
    state = state or ParserState()
    store = store or CoordinateStore()
    return check_block(parse_block(line, state.modal), state, store)


def expect_error(line, code, state=None, store=None):
    with pytest.raises(GCodeError) as info:
        run(line, state, store)
    assert info.value.code == code


def test_store_round_trip_and_default():
    store = CoordinateStore()
    assert store.read(2) == [0.0, 0.0, 0.0]
    store.write(2, [1, 2, 3])
    assert store.read(2) == [1.0, 2.0, 3.0]


def test_store_read_out_of_range():
    with pytest.raises(GCodeError) as info:
        CoordinateStore().read(99)
    assert info.value.code == STATUS_SETTING_READ_FAIL


def test_store_write_out_of_range():
    with pytest.raises(IndexError):
        CoordinateStore().write(-1, [0, 0, 0])


def test_linear_move_target():
    block = run("G1X10F100")
    assert block.values.xyz == [10.0, 0.0, 0.0]
    assert block.axis_command == AXIS_COMMAND_MOTION_MODE


def test_feed_rate_missing():
    expect_error("G1X10", STATUS_GCODE_UNDEFINED_FEED_RATE)


def test_feed_rate_inherited():
    state = ParserState(feed_rate=500.0)
    assert run("G1X10", state).values.f == 500.0


def test_inverse_time_requires_f():
    expect_error("G93G1X1", STATUS_GCODE_UNDEFINED_FEED_RATE)


def test_inches_converted():
    block = run("G20G0X1")
    assert block.values.xyz[0] == pytest.approx(MM_PER_INCH)


def test_incremental_adds_position():
    state = ParserState(position=[1.0, 2.0, 3.0])
    assert run("G91G0X5", state).values.xyz == [6.0, 2.0, 3.0]


def test_absolute_applies_offsets():
    state = ParserState(coord_system=[10.0, 0.0, 0.0], coord_offset=[1.0, 0.0, 0.0])
    block = run("G0X5", state)
    assert block.values.xyz[0] == 5.0 + 10.0 + 1.0


def test_absolute_override_ignores_offsets():
    state = ParserState(coord_system=[10.0, 0.0, 0.0])
    assert run("G53G0X5", state).values.xyz[0] == 5.0


def test_absolute_override_rejects_arc():
    expect_error("G53G2X1Y1I1F100", STATUS_GCODE_G53_INVALID_MOTION_MODE)


def test_dwell_needs_p():
    expect_error("G4", STATUS_GCODE_VALUE_WORD_MISSING)
    assert run("G4P1").values.p == 1.0


def test_axis_words_with_g80():
    expect_error("G80X1", STATUS_GCODE_AXIS_WORDS_EXIST)


def test_unused_words():
    expect_error("G0X1R5", STATUS_GCODE_UNUSED_WORDS)


def test_line_number_limit():
    expect_error("N10000001", STATUS_GCODE_INVALID_LINE_NUMBER)


def test_seek_without_axes_has_no_axis_command():
    assert run("G0").axis_command == AXIS_COMMAND_NONE


def test_arc_radius_mode_center_on_circle():
    block = run("G2X10Y0R5F100")
    i, j = block.values.ijk[0], block.values.ijk[1]
    assert math.hypot(i, j) == pytest.approx(5.0)
    assert math.hypot(10.0 - i, 0.0 - j) == pytest.approx(5.0)
    assert block.parser_flags & ParserFlag.ARC_IS_CLOCKWISE


def test_arc_radius_too_small():
    expect_error("G2X10R4F100", STATUS_GCODE_ARC_RADIUS_ERROR)


def test_arc_same_target_radius_mode():
    expect_error("G2X0Y0R4F100", STATUS_GCODE_INVALID_TARGET)


def test_arc_offset_mode_radius():
    block = run("G3X10Y0I5F100")
    assert block.values.r == pytest.approx(5.0)
    assert not block.parser_flags & ParserFlag.ARC_IS_CLOCKWISE


def test_arc_offset_mode_mismatch():
    expect_error("G2X10I3F100", STATUS_GCODE_INVALID_TARGET)


def test_arc_without_offsets():
    expect_error("G2X10F100", STATUS_GCODE_NO_OFFSETS_IN_PLANE)


def test_arc_without_plane_axes():
    expect_error("G2Z5I1F100", STATUS_GCODE_NO_AXIS_WORDS_IN_PLANE)


def test_g10_l2_updates_selected_axes():
    store = CoordinateStore()
    store.write(0, [1.0, 2.0, 3.0])
    block = run("G10L2P1X5", store=store)
    assert block.values.ijk == [5.0, 2.0, 3.0]
    assert block.coord_select == 0


def test_g10_l20_uses_position():
    state = ParserState(position=[10.0, 0.0, 0.0])
    block = run("G10L20P2X5", state)
    assert block.values.ijk[0] == 10.0 - 5.0
    assert block.coord_select == 1


def test_g10_unsupported_l():
    expect_error("G10L3P1X1", STATUS_GCODE_UNSUPPORTED_COMMAND)


def test_g10_bad_coordinate_system():
    expect_error("G10L2P9X1", STATUS_GCODE_UNSUPPORTED_COORD_SYS)


def test_g10_missing_p_and_l():
    expect_error("G10X1", STATUS_GCODE_VALUE_WORD_MISSING)


def test_g92_offset():
    state = ParserState(position=[7.0, 0.0, 0.0], coord_offset=[0.0, 4.0, 0.0])
    block = run("G92X0", state)
    assert block.values.xyz[0] == 7.0
    assert block.values.xyz[1] == 4.0


def test_g28_without_axes():
    store = CoordinateStore()
    store.write(SETTING_INDEX_G28, [1.0, 2.0, 3.0])
    block = run("G28", store=store)
    assert block.values.ijk == [1.0, 2.0, 3.0]
    assert block.axis_command == AXIS_COMMAND_NONE


def test_g28_with_axis_keeps_other_positions():
    store = CoordinateStore()
    store.write(SETTING_INDEX_G28, [1.0, 2.0, 3.0])
    state = ParserState(position=[0.0, 8.0, 9.0])
    block = run("G28X5", state, store)
    assert block.values.ijk == [1.0, 8.0, 9.0]


def test_coordinate_system_selection_reads_store():
    store = CoordinateStore()
    store.write(1, [4.0, 5.0, 6.0])
    assert run("G55", store=store).block_coord_system == [4.0, 5.0, 6.0]


def test_g43_dynamic_axis():
    assert run("G43.1Z2").values.xyz[2] == 2.0
    expect_error("G43.1X2", STATUS_GCODE_G43_DYNAMIC_AXIS_ERROR)


def test_jog_requires_feed():
    expect_error("$J=X10", STATUS_GCODE_UNDEFINED_FEED_RATE)


def test_jog_rejects_spindle_word():
    expect_error("$J=X10F100S5", STATUS_GCODE_UNUSED_WORDS)


def test_probe_flags():
    away = run("G38.4Z-5F100")
    assert (away.parser_flags & ParserFlag.PROBE_IS_AWAY) == ParserFlag.PROBE_IS_AWAY
    assert not (away.parser_flags & ParserFlag.PROBE_IS_NO_ERROR)
    assert away.values.xyz == [0.0, 0.0, -5.0]
    no_error = run("G38.3Z-5F100")
    assert (no_error.parser_flags & ParserFlag.PROBE_IS_NO_ERROR) == ParserFlag.PROBE_IS_NO_ERROR
    assert not (no_error.parser_flags & ParserFlag.PROBE_IS_AWAY)


def test_probe_same_target():
    expect_error("G38.2Z0F100", STATUS_GCODE_INVALID_TARGET)


def test_parsed_block_not_mutated():
    state = ParserState(position=[1.0, 2.0, 3.0])
    parsed = parse_block("G91G0X5", Modal())
    check_block(parsed, state, CoordinateStore())
    assert parsed.values.xyz == [5.0, 0.0, 0.0]