import pytest

from carvecore.modes import (
    GCodeError,
    Modal,
    MotionMode,
    ParserState,
    Plane,
    Values,
    plane_axes,
    STATUS_GCODE_WORD_REPEATED,
)


@pytest.mark.parametrize(
    "plane, expected",
    [(Plane.XY, (0, 1, 2)), (Plane.ZX, (2, 0, 1)), (Plane.YZ, (1, 2, 0))],
)
def test_plane_axes(plane, expected):
    assert plane_axes(plane) == expected


def test_plane_axes_are_a_permutation():
    for plane in Plane:
        assert sorted(plane_axes(plane)) == [0, 1, 2]


def test_modal_defaults_are_zero():
    modal = Modal()
    assert (modal.motion, modal.plane_select, modal.units, modal.coord_select) == (0, 0, 0, 0)


def test_modal_copy_is_independent():
    modal = Modal()
    clone = modal.copy()
    clone.motion = MotionMode.LINEAR
    assert modal.motion == MotionMode.SEEK
    assert clone == Modal(motion=MotionMode.LINEAR)


def test_values_lists_not_shared():
    a, b = Values(), Values()
    a.xyz[0] = 5.0
    assert b.xyz == [0.0, 0.0, 0.0]


def test_parser_state_vectors_not_shared():
    a, b = ParserState(), ParserState()
    a.position[2] = 1.5
    assert b.position[2] == 0.0


def test_gcode_error_carries_code():
    error = GCodeError(STATUS_GCODE_WORD_REPEATED)
    assert error.code == STATUS_GCODE_WORD_REPEATED
    assert f"error:{STATUS_GCODE_WORD_REPEATED}" in str(error)