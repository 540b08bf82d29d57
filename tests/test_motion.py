import math
from unittest import mock

import pytest

from carvecore.modes import STATUS_TRAVEL_EXCEEDED, Condition, GCodeError
from carvecore.motion import MotionControl, PlanLineData, arc_points


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, target, pl_data):
        self.calls.append((list(target), pl_data.feed_rate, pl_data.condition))


class _Slept(Exception):
    """Raised by the patched sleep so the dwell duration can be inspected."""


def _raise_slept(seconds):
    raise _Slept(seconds)


def _half_circle(is_clockwise, n_arc_correction=12):
    return list(arc_points([10.0, 0.0, 0.0], [0.0, 0.0, 0.0], [5.0, 0.0, 0.0], 5.0,
                           0, 1, 2, is_clockwise, 0.002, n_arc_correction))


@pytest.mark.parametrize("n_corr", [1, 12])
def test_arc_points_lie_on_circle(n_corr):
    points = _half_circle(False, n_corr)
    assert len(points) > 2
    for x, y, _ in points:
        assert math.hypot(x - 5.0, y) == pytest.approx(5.0, abs=1e-4)
    assert points[-1] == [10.0, 0.0, 0.0]


def test_arc_direction_sides():
    ccw = _half_circle(False)
    cw = _half_circle(True)
    assert all(y <= 1e-9 for _, y, _ in ccw)
    assert all(y >= -1e-9 for _, y, _ in cw)


def test_helical_arc_is_monotonic_in_linear_axis():
    points = list(arc_points([10.0, 0.0, 4.0], [0.0, 0.0, 0.0], [5.0, 0.0, 0.0], 5.0,
                             0, 1, 2, False))
    zs = [p[2] for p in points]
    assert zs == sorted(zs)
    assert zs[-1] == 4.0


def test_line_plans_target():
    rec = Recorder()
    mc = MotionControl(rec)
    assert mc.line([1.0, 2.0, 3.0], PlanLineData(feed_rate=100.0)) is True
    assert rec.calls[0][0] == [1.0, 2.0, 3.0]
    assert rec.calls[0][1] == 100.0


def test_line_in_check_mode_not_planned():
    rec = Recorder()
    mc = MotionControl(rec)
    mc.check_mode = True
    assert mc.line([1.0, 0.0, 0.0], PlanLineData()) is False
    assert rec.calls == []


def test_soft_limit_violation_raises():
    rec = Recorder()
    mc = MotionControl(rec, soft_limits=True, travel_exceeded=lambda t: t[0] > 100)
    with pytest.raises(GCodeError) as exc:
        mc.line([200.0, 0.0, 0.0], PlanLineData())
    assert exc.value.code == STATUS_TRAVEL_EXCEEDED
    assert mc.soft_limit is True
    assert rec.calls == []


def test_soft_limit_skipped_while_jogging():
    rec = Recorder()
    mc = MotionControl(rec, soft_limits=True, travel_exceeded=lambda t: True)
    mc.jogging = True
    assert mc.line([5.0, 0.0, 0.0], PlanLineData()) is True
    assert len(rec.calls) == 1


def test_arc_plans_to_target():
    rec = Recorder()
    mc = MotionControl(rec)
    mc.arc([10.0, 0.0, 0.0], PlanLineData(feed_rate=50.0), [0.0, 0.0, 0.0],
           [5.0, 0.0, 0.0], 5.0, 0, 1, 2, False)
    assert rec.calls[-1][0] == [10.0, 0.0, 0.0]
    assert len(rec.calls) == len(_half_circle(False))


def test_arc_inverse_time_feed_spread_over_segments():
    rec = Recorder()
    mc = MotionControl(rec)
    pl = PlanLineData(feed_rate=1.0, condition=Condition.INVERSE_TIME)
    mc.arc([10.0, 0.0, 0.0], pl, [0.0, 0.0, 0.0], [5.0, 0.0, 0.0], 5.0, 0, 1, 2, True)
    assert pl.feed_rate == len(rec.calls)
    assert not pl.condition & Condition.INVERSE_TIME
    assert all(feed == len(rec.calls) for _, feed, _ in rec.calls)


def test_arc_stops_on_abort():
    mc = None
    calls = []

    def planner(target, pl_data):
        calls.append(list(target))
        if len(calls) == 3:
            mc.abort = True

    mc = MotionControl(planner)
    mc.arc([10.0, 0.0, 0.0], PlanLineData(), [0.0, 0.0, 0.0], [5.0, 0.0, 0.0], 5.0,
           0, 1, 2, False)
    expected = _half_circle(False)[:3]
    assert len(calls) == len(expected) == 3
    for planned, point in zip(calls, expected):
        assert planned == pytest.approx(point)
    assert mc.abort is True


def test_arc_does_not_modify_position():
    position = [0.0, 0.0, 0.0]
    mc = MotionControl(Recorder())
    mc.arc([10.0, 0.0, 0.0], PlanLineData(), position, [5.0, 0.0, 0.0], 5.0, 0, 1, 2, False)
    assert position == [0.0, 0.0, 0.0]


def test_jog_sets_plan_data_and_state():
    rec = Recorder()
    mc = MotionControl(rec)
    pl = PlanLineData()
    mc.jog(pl, [3.0, 4.0, 0.0], 250.0, 7)
    assert pl.feed_rate == 250.0
    assert pl.line_number == 7
    assert pl.condition & Condition.NO_FEED_OVERRIDE
    assert mc.jogging is True
    assert rec.calls[0][0] == [3.0, 4.0, 0.0]


def test_jog_out_of_travel_raises():
    rec = Recorder()
    mc = MotionControl(rec, soft_limits=True, travel_exceeded=lambda t: t[1] < -50)
    with pytest.raises(GCodeError) as exc:
        mc.jog(PlanLineData(), [0.0, -60.0, 0.0], 100.0)
    assert exc.value.code == STATUS_TRAVEL_EXCEEDED
    assert rec.calls == []
    assert mc.jogging is False


def test_jog_in_check_mode_does_not_start():
    rec = Recorder()
    mc = MotionControl(rec)
    mc.check_mode = True
    mc.jog(PlanLineData(), [1.0, 0.0, 0.0], 100.0)
    assert mc.jogging is False
    assert rec.calls == []


def test_dwell_sleeps():
    mc = MotionControl(Recorder())
    with mock.patch("time.sleep", side_effect=_raise_slept):
        with pytest.raises(_Slept) as info:
            mc.dwell(1.5)
    assert info.value.args == (1.5,)


def test_dwell_skipped_in_check_mode():
    mc = MotionControl(Recorder())
    with mock.patch("time.sleep", side_effect=_raise_slept) as sleep:
        mc.check_mode = True
        mc.dwell(2.0)
        assert sleep.call_count == 0
        mc.check_mode = False
        with pytest.raises(_Slept) as info:
            mc.dwell(2.0)
    assert info.value.args == (2.0,)