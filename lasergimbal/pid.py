"""Positional and incremental PID controllers with dead bands and angle wrapping."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

SMOOTH_NEW = 0.7
SMOOTH_OLD = 0.3


class PidMode(Enum):
    """How the controller forms its output."""

    POSITION = 3  # output is P + I + D of the current error
    DELTA = 4  # output accumulates increments each step


def abs_limit(value: float, limit: float) -> float:
    """Clamp value to the range [-limit, limit]."""
    if value > limit:
        value = limit
    if value < -limit:
        value = -limit
    return value


@dataclass
class Pid:
    """A PID controller.

    ``max_out`` and ``integral_limit`` are whole, non-negative bounds on the
    output and on the integral term. A non-zero ``input_max_err`` makes the
    controller return 0 for errors beyond it; a non-zero ``output_deadband``
    reports 0 for outputs smaller than it; a non-zero ``input_deadband`` treats
    errors within it as zero and clears the integral term (``calc`` only).
    """

    mode: PidMode
    max_out: int
    integral_limit: int
    p: float = 0.0
    i: float = 0.0
    d: float = 0.0
    input_max_err: float = 0.0
    output_deadband: float = 0.0
    input_deadband: float = 0.0
    target: float = field(default=0.0, init=False)
    measured: float = field(default=0.0, init=False)
    err_now: float = field(default=0.0, init=False)
    err_last: float = field(default=0.0, init=False)
    err_llast: float = field(default=0.0, init=False)
    pout: float = field(default=0.0, init=False)
    iout: float = field(default=0.0, init=False)
    dout: float = field(default=0.0, init=False)
    out: float = field(default=0.0, init=False)

    def __post_init__(self) -> None:
        self.mode = PidMode(self.mode)
        for name in ("max_out", "integral_limit"):
            value = int(getattr(self, name))
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")
            setattr(self, name, value)

    def reset(self, kp: float, ki: float, kd: float) -> None:
        """Replace the gains and zero all output terms."""
        self.p = kp
        self.i = ki
        self.d = kd
        self.clear()

    def clear(self) -> None:
        """Zero all output terms, keeping the gains and error history."""
        self.pout = 0.0
        self.iout = 0.0
        self.dout = 0.0
        self.out = 0.0

    def _record(self, get: float, set: float) -> float:
        self.measured = get
        self.target = set
        return set - get

    def _smoothed(self, raw: float, smooth: bool) -> float:
        if smooth:
            return raw * SMOOTH_NEW + self.err_last * SMOOTH_OLD
        return raw

    def _over_input_limit(self) -> bool:
        return self.input_max_err != 0 and abs(self.err_now) > self.input_max_err

    def _position_step(self) -> None:
        self.pout = self.p * self.err_now
        self.iout = abs_limit(self.iout + self.i * self.err_now, self.integral_limit)
        self.dout = self.d * (self.err_now - self.err_last)
        self.out = abs_limit(self.pout + self.iout + self.dout, self.max_out)

    def _delta_step(self) -> None:
        self.pout = self.p * (self.err_now - self.err_last)
        self.iout = self.i * self.err_now
        self.dout = self.d * (self.err_now - 2 * self.err_last + self.err_llast)
        self.out = abs_limit(self.out + self.pout + self.iout + self.dout, self.max_out)

    def _finish(self) -> float:
        self.err_llast = self.err_last
        self.err_last = self.err_now
        if self.output_deadband != 0 and abs(self.out) < self.output_deadband:
            return 0.0
        return self.out

    def calc(self, get: float, set: float, smooth: bool = False) -> float:
        """Run one step towards ``set`` from the measurement ``get``."""
        raw = self._record(get, set)
        if self.input_deadband != 0 and abs(raw) <= self.input_deadband:
            self.err_now = 0.0
            self.iout = 0.0
        else:
            self.err_now = self._smoothed(raw, smooth)

        if self._over_input_limit():
            return 0.0

        if self.mode is PidMode.POSITION:
            self._position_step()
        else:
            self._delta_step()
        return self._finish()

    def calc_i_separation(
        self, get: float, set: float, smooth: bool, threshold: float
    ) -> float:
        """Run one step, using the integral term only while |error| < threshold."""
        self.err_now = self._smoothed(self._record(get, set), smooth)
        if self._over_input_limit():
            return 0.0

        integrate = abs(self.err_now) < threshold
        if self.mode is PidMode.POSITION:
            self.pout = self.p * self.err_now
            if integrate:
                self.iout += self.i * self.err_now
            self.iout = abs_limit(self.iout, self.integral_limit)
            self.dout = self.d * (self.err_now - self.err_last)
            integral = self.iout if integrate else 0.0
            self.out = abs_limit(self.pout + integral + self.dout, self.max_out)
        else:
            self.pout = self.p * (self.err_now - self.err_last)
            if integrate:
                self.iout = self.i * self.err_now
            self.dout = self.d * (self.err_now - 2 * self.err_last + self.err_llast)
            integral = self.iout if integrate else 0.0
            self.out = abs_limit(
                self.out + self.pout + integral + self.dout, self.max_out
            )
        return self._finish()

    def calc_d(
        self,
        get: float,
        set: float,
        actual: float,
        last_actual: float,
        smooth: bool = False,
    ) -> float:
        """Run one step differentiating the measurement instead of the error.

        Only positional controllers produce new output here.
        """
        self.err_now = self._smoothed(self._record(get, set), smooth)
        if self._over_input_limit():
            return 0.0

        if self.mode is PidMode.POSITION:
            self.pout = self.p * self.err_now
            self.iout = abs_limit(self.iout + self.i * self.err_now, self.integral_limit)
            self.dout = -self.d * (actual - last_actual)
            self.out = abs_limit(self.pout + self.iout + self.dout, self.max_out)
        return self._finish()

    def angle_calc(self, get: float, set: float, smooth: bool = False) -> float:
        """Run one step on angles in 0..360, taking the shorter way round.

        Only positional controllers produce new output here.
        """
        self.err_now = self._smoothed(self._record(get, set), smooth)
        if self._over_input_limit():
            return 0.0

        if self.mode is PidMode.POSITION:
            wrapped = math.fmod(self.err_now + 180.0, 360.0)
            if wrapped < 0:
                wrapped += 360.0
            self.err_now = wrapped - 180.0
            self._position_step()
        return self._finish()

    def yaw_calc(self, get: float, set: float, smooth: bool = False) -> float:
        """Run one step on yaw angles in -180..180, bridging the ±180 jump.

        Only positional controllers produce new output here.
        """
        self.err_now = self._smoothed(self._record(get, set), smooth)
        if self._over_input_limit():
            return 0.0

        if self.err_now > 180:
            self.err_now = -(360 - self.err_now)
        elif self.err_now < -180:
            self.err_now = 360 + self.err_now
        if self.mode is PidMode.POSITION:
            self._position_step()
        return self._finish()


def default_controllers() -> dict[str, Pid]:
    """The controllers the gimbal and chassis are tuned with."""
    return {
        "x": Pid(PidMode.POSITION, 3, 1, 0.02, 0.0, 0.0),
        "y": Pid(PidMode.POSITION, 3, 1, 0.02, 0.0, 0.0),
        "speed_left": Pid(PidMode.DELTA, 200, 50, 0.5, 0.2, 0.0),
        "speed_right": Pid(PidMode.DELTA, 200, 50, 0.5, 0.2, 0.0),
        "location_left": Pid(PidMode.POSITION, 40, 0, 0.1, 0.0, 0.0),
        "location_right": Pid(PidMode.POSITION, 40, 0, 0.1, 0.0, 0.0),
    }