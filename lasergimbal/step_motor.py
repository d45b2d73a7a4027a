"""Two-axis stepper gimbal driven through Emm V5 serial commands."""

from __future__ import annotations

from typing import Callable

from .emm_v5 import enable_control, position_control, stop_now, velocity_control

MOTOR_X_ADDR = 0x01
MOTOR_Y_ADDR = 0x01
MOTOR_MAX_SPEED = 3  # RPM
MOTOR_ACCEL = 0  # 0 starts at full speed immediately
MOTOR_SYNC_FLAG = False
MOTOR_MAX_ANGLE = 50  # degrees either side of the reference

Writer = Callable[[bytes], object]


def _split_direction(value):
    """Return (direction, magnitude): direction 0 is CW, 1 is CCW."""
    if value >= 0:
        return 0, value
    return 1, -value


class StepMotorPair:
    """The X and Y stepper motors of the gimbal, each on its own serial line.

    ``x_write`` and ``y_write`` receive the command frames for each axis.
    Every motion method returns the pair of frames it sent.
    """

    def __init__(
        self,
        x_write: Writer,
        y_write: Writer,
        x_addr: int = MOTOR_X_ADDR,
        y_addr: int = MOTOR_Y_ADDR,
        max_speed: int = MOTOR_MAX_SPEED,
        accel: int = MOTOR_ACCEL,
        sync: bool = MOTOR_SYNC_FLAG,
    ) -> None:
        if max_speed < 0:
            raise ValueError(f"max_speed must not be negative, got {max_speed}")
        self.x_write = x_write
        self.y_write = y_write
        self.x_addr = x_addr
        self.y_addr = y_addr
        self.max_speed = max_speed
        self.accel = accel
        self.sync = sync

    def _send(self, x_frame: bytes, y_frame: bytes) -> tuple[bytes, bytes]:
        self.x_write(x_frame)
        self.y_write(y_frame)
        return x_frame, y_frame

    def init(self) -> None:
        """Enable both motors and bring them to a stop."""
        self._send(
            enable_control(self.x_addr, True, self.sync),
            enable_control(self.y_addr, True, self.sync),
        )
        self.stop()

    def set_speed_percent(self, x_percent: int, y_percent: int) -> tuple[bytes, bytes]:
        """Run both axes at a percentage (-100..100) of the maximum speed."""
        x_dir, x_pct = _split_direction(max(-100, min(100, int(x_percent))))
        y_dir, y_pct = _split_direction(max(-100, min(100, int(y_percent))))
        x_speed = x_pct * self.max_speed // 100
        y_speed = y_pct * self.max_speed // 100
        return self._send(
            velocity_control(self.x_addr, x_dir, x_speed, self.accel, self.sync),
            velocity_control(self.y_addr, y_dir, y_speed, self.accel, self.sync),
        )

    def set_speed_rpm(self, x_rpm: float, y_rpm: float) -> tuple[bytes, bytes]:
        """Run both axes at a signed speed in RPM, sent in steps of 0.1 RPM.

        Speeds are clamped to the maximum speed and rounded to the nearest
        0.1 RPM.
        """
        limit = float(self.max_speed)
        x_dir, x_abs = _split_direction(max(-limit, min(limit, float(x_rpm))))
        y_dir, y_abs = _split_direction(max(-limit, min(limit, float(y_rpm))))
        x_scaled = int(x_abs * 10 + 0.5)
        y_scaled = int(y_abs * 10 + 0.5)
        return self._send(
            velocity_control(self.x_addr, x_dir, x_scaled, self.accel, self.sync),
            velocity_control(self.y_addr, y_dir, y_scaled, self.accel, self.sync),
        )

    def move(self, x_distance: int, y_distance: int) -> tuple[bytes, bytes]:
        """Move both axes by a signed number of pulses at maximum speed."""
        x_dir, x_clk = _split_direction(int(x_distance))
        y_dir, y_clk = _split_direction(int(y_distance))
        return self._send(
            position_control(
                self.x_addr, x_dir, self.max_speed, self.accel, x_clk, False, self.sync
            ),
            position_control(
                self.y_addr, y_dir, self.max_speed, self.accel, y_clk, False, self.sync
            ),
        )

    def stop(self) -> tuple[bytes, bytes]:
        """Stop both motors immediately."""
        return self._send(
            stop_now(self.x_addr, self.sync),
            stop_now(self.y_addr, self.sync),
        )