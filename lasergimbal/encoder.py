"""Wheel encoder bookkeeping: counts per sampling period, speed and distance."""

from __future__ import annotations

from dataclasses import dataclass, field

ENCODER_PPR = 13 * 30 * 4  # lines per phase x gear ratio x quadrature
WHEEL_DIAMETER_CM = 6.5
PI = 3.14159265
WHEEL_CIRCUMFERENCE_CM = WHEEL_DIAMETER_CM * PI
SAMPLING_TIME_S = 0.02


def _int16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


@dataclass
class Encoder:
    """State of one quadrature wheel encoder.

    ``reverse`` flips the counting direction, as for a wheel mounted the other
    way round (the right wheel of the chassis is set up reversed).
    """

    reverse: bool = False
    count: int = field(default=0, init=False)
    total_count: int = field(default=0, init=False)
    speed_cm_s: float = field(default=0.0, init=False)
    distance_cm: float = field(default=0.0, init=False)

    def update(self, raw_count: int) -> float:
        """Take the counter value of the last sampling period; return the speed in cm/s.

        The counter is read as a signed 16-bit value and is assumed to be
        cleared after each read.
        """
        count = _int16(raw_count)
        if self.reverse:
            count = _int16(-count)
        self.count = count
        self.total_count = _int32(self.total_count + count)
        self.speed_cm_s = count * WHEEL_CIRCUMFERENCE_CM / ENCODER_PPR / SAMPLING_TIME_S
        self.distance_cm += self.speed_cm_s * SAMPLING_TIME_S
        return self.speed_cm_s