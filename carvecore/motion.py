"""Line, arc, dwell and jog motions fed to a planner."""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass

from carvecore.modes import STATUS_TRAVEL_EXCEEDED, Condition, GCodeError

HOMING_CYCLE_LINE_NUMBER = 0
PARKING_MOTION_LINE_NUMBER = 0
JOG_LINE_NUMBER = 0

DEFAULT_ARC_TOLERANCE = 0.002
DEFAULT_N_ARC_CORRECTION = 12
ARC_ANGULAR_TRAVEL_EPSILON = 5e-7


@dataclass
class PlanLineData:
    """Motion parameters handed to the planner with each line."""

    feed_rate: float = 0.0
    spindle_speed: float = 0.0
    condition: Condition = Condition.NONE
    line_number: int = 0


def _angular_travel(position: Sequence[float], target: Sequence[float], offset: Sequence[float],
                    axis_0: int, axis_1: int, is_clockwise: bool) -> float:
    center_0 = position[axis_0] + offset[axis_0]
    center_1 = position[axis_1] + offset[axis_1]
    r_0 = -offset[axis_0]
    r_1 = -offset[axis_1]
    rt_0 = target[axis_0] - center_0
    rt_1 = target[axis_1] - center_1
    travel = math.atan2(r_0 * rt_1 - r_1 * rt_0, r_0 * rt_0 + r_1 * rt_1)
    if is_clockwise:
        if travel >= -ARC_ANGULAR_TRAVEL_EPSILON:
            travel -= 2 * math.pi
    elif travel <= ARC_ANGULAR_TRAVEL_EPSILON:
        travel += 2 * math.pi
    return travel


def _segment_count(angular_travel: float, radius: float, arc_tolerance: float) -> int:
    chord = math.sqrt(arc_tolerance * (2 * radius - arc_tolerance))
    return int(math.floor(abs(0.5 * angular_travel * radius) / chord))


def arc_points(target: Sequence[float], position: Sequence[float], offset: Sequence[float],
               radius: float, axis_0: int, axis_1: int, axis_linear: int, is_clockwise: bool,
               arc_tolerance: float = DEFAULT_ARC_TOLERANCE,
               n_arc_correction: int = DEFAULT_N_ARC_CORRECTION) -> Iterator[list[float]]:
    """Yield the end points of the line segments approximating an arc, ending at ``target``.

    ``offset`` is the vector from ``position`` to the arc centre. Segments are
    sized so that no chord strays more than ``arc_tolerance`` from the circle.
    """
    travel = _angular_travel(position, target, offset, axis_0, axis_1, is_clockwise)
    segments = _segment_count(travel, radius, arc_tolerance)
    if segments:
        center_0 = position[axis_0] + offset[axis_0]
        center_1 = position[axis_1] + offset[axis_1]
        r_0 = -offset[axis_0]
        r_1 = -offset[axis_1]
        theta = travel / segments
        linear = (target[axis_linear] - position[axis_linear]) / segments
        # Third-order small-angle approximation of cos/sin of theta.
        cos_t = 2.0 - theta * theta
        sin_t = theta * 0.16666667 * (cos_t + 4.0)
        cos_t *= 0.5
        point = list(position)
        count = 0
        for i in range(1, segments):
            if count < n_arc_correction:
                r_next = r_0 * sin_t + r_1 * cos_t
                r_0 = r_0 * cos_t - r_1 * sin_t
                r_1 = r_next
                count += 1
            else:
                cos_ti = math.cos(i * theta)
                sin_ti = math.sin(i * theta)
                r_0 = -offset[axis_0] * cos_ti + offset[axis_1] * sin_ti
                r_1 = -offset[axis_0] * sin_ti - offset[axis_1] * cos_ti
                count = 0
            point[axis_0] = center_0 + r_0
            point[axis_1] = center_1 + r_1
            point[axis_linear] += linear
            yield list(point)
    yield list(target)


class MotionControl:
    """Gateway from the interpreter to the planner.

    ``planner(target, pl_data)`` queues one line. ``travel_exceeded(target)``
    reports whether a target lies outside the soft-limit volume. The flags
    ``check_mode``, ``abort`` and ``jogging`` mirror the system state;
    ``soft_limit`` is raised when a soft-limit violation stops a motion.
    """

    def __init__(self, planner: Callable[[list[float], PlanLineData], object],
                 arc_tolerance: float = DEFAULT_ARC_TOLERANCE,
                 n_arc_correction: int = DEFAULT_N_ARC_CORRECTION,
                 soft_limits: bool = False,
                 travel_exceeded: Callable[[Sequence[float]], bool] | None = None) -> None:
        self.planner = planner
        self.arc_tolerance = arc_tolerance
        self.n_arc_correction = n_arc_correction
        self.soft_limits = soft_limits
        self.travel_exceeded = travel_exceeded or (lambda target: False)
        self.check_mode = False
        self.abort = False
        self.jogging = False
        self.soft_limit = False

    def line(self, target: Sequence[float], pl_data: PlanLineData) -> bool:
        """Queue a straight move; return True if it reached the planner.

        Raises GCodeError with the travel-exceeded status on a soft-limit violation.
        """
        if self.soft_limits and not self.jogging and self.travel_exceeded(target):
            self.soft_limit = True
            raise GCodeError(STATUS_TRAVEL_EXCEEDED)
        if self.check_mode or self.abort:
            return False
        self.planner(list(target), pl_data)
        return True

    def arc(self, target: Sequence[float], pl_data: PlanLineData, position: Sequence[float],
            offset: Sequence[float], radius: float, axis_0: int, axis_1: int, axis_linear: int,
            is_clockwise: bool) -> None:
        """Queue an arc as a series of short lines ending at ``target``."""
        travel = _angular_travel(position, target, offset, axis_0, axis_1, is_clockwise)
        segments = _segment_count(travel, radius, self.arc_tolerance)
        if segments and pl_data.condition & Condition.INVERSE_TIME:
            # The inverse-time feed applies to the whole arc, so spread it over the segments.
            pl_data.feed_rate *= segments
            pl_data.condition &= ~Condition.INVERSE_TIME
        for point in arc_points(target, position, offset, radius, axis_0, axis_1, axis_linear,
                                is_clockwise, self.arc_tolerance, self.n_arc_correction):
            if self.abort:
                return
            self.line(point, pl_data)

    def dwell(self, seconds: float) -> None:
        """Pause for ``seconds``; does nothing in check mode."""
        if self.check_mode:
            return
        time.sleep(seconds)

    def jog(self, pl_data: PlanLineData, target: Sequence[float], feed_rate: float,
            line_number: int = JOG_LINE_NUMBER) -> None:
        """Queue a jog move, checking soft limits first; raises GCodeError if out of travel."""
        pl_data.feed_rate = feed_rate
        pl_data.condition |= Condition.NO_FEED_OVERRIDE
        pl_data.line_number = line_number
        if self.soft_limits and self.travel_exceeded(target):
            raise GCodeError(STATUS_TRAVEL_EXCEEDED)
        if self.line(target, pl_data):
            self.jogging = True