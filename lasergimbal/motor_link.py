"""Serial traffic of the gimbal: stepper replies, camera lines and position bookkeeping."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable

from .emm_v5 import (
    Response,
    ResponseError,
    SysParam,
    parse_response,
    position_control,
    read_sys_params,
    stop_now,
)
from .laser import LaserParseError, LaserTracker
from .ringbuffer import RingBuffer
from .step_motor import MOTOR_MAX_ANGLE, StepMotorPair

BUFFER_SIZE = 64
LINE_LIMIT = 128  # one byte of the line buffer is kept free, as for a terminator
TURN = 65536
HALF_TURN = 32768

_SET_COMMAND = re.compile(r"set\(\s*([+-]?\d+),\s*([+-]?\d+)\)")

_ORIGIN_STATES = {
    0: "not homing",
    1: "homing",
    2: "homing finished",
    3: "homing failed",
}

_logger = logging.getLogger(__name__)


def calc_motor_angle(direction: int, position: int) -> float:
    """Angle in degrees of a position within one turn; negative when direction is set."""
    position = (position & 0xFFFFFFFF) % TURN
    angle = position * 360.0 / TURN
    return -angle if direction else angle


def calc_relative_angle(direction: int, current: int, reference: int) -> float:
    """Angle in degrees from reference to current, taking the shorter way round."""
    current = (current & 0xFFFFFFFF) % TURN
    reference = (reference & 0xFFFFFFFF) % TURN
    if current >= reference:
        relative = current - reference
    else:
        relative = TURN - reference + current
    if relative > HALF_TURN:
        relative -= TURN
    angle = relative * 360.0 / TURN
    return -angle if direction else angle


class InitialPositionError(RuntimeError):
    """Raised when returning to the initial position before it is known."""


@dataclass
class AxisState:
    """Position bookkeeping for one gimbal axis."""

    angle: float = 0.0
    relative_angle: float = 0.0
    reference_position: int = 0
    reference_initialized: bool = False
    limit_flag: bool = False
    initial_position: int = 0
    initial_direction: int = 0


class MotorLink:
    """Collects bytes from the two motor lines and the camera line and acts on them.

    Received bytes go into ``x_buffer``, ``y_buffer`` and ``pi_buffer``;
    ``process`` drains them. ``log`` receives each status line.
    """

    def __init__(
        self,
        motors: StepMotorPair,
        tracker: LaserTracker | None = None,
        log: Callable[[str], object] | None = None,
    ) -> None:
        self.motors = motors
        self.tracker = tracker if tracker is not None else LaserTracker()
        self._log = log if log is not None else _logger.info
        self.x_buffer = RingBuffer(BUFFER_SIZE)
        self.y_buffer = RingBuffer(BUFFER_SIZE)
        self.pi_buffer = RingBuffer(BUFFER_SIZE)
        self.x = AxisState()
        self.y = AxisState()
        self.initial_position_saved = False
        self.limit_check_enabled = False
        self._line = bytearray()

    def _axis(self, axis: str) -> tuple[AxisState, AxisState, str]:
        if axis == "x":
            return self.x, self.y, "X"
        if axis == "y":
            return self.y, self.x, "Y"
        raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")

    def handle_response(self, axis: str, response: Response) -> None:
        """Act on one decoded reply from the motor of the given axis."""
        state, other, name = self._axis(axis)
        addr = response.addr
        func = response.func
        if func == 0x35:
            self._log(f"{name} motor {addr}: speed {response.speed} RPM")
        elif func == 0x36:
            self._handle_position(state, other, name, response)
        elif func == 0x1F:
            self._log(f"{name} motor {addr}: firmware {response.version}")
        elif func == 0x24:
            self._log(f"{name} motor {addr}: bus voltage {response.voltage} V")
        elif func == 0x27:
            self._log(f"{name} motor {addr}: phase current {response.current} mA")
        elif func == 0x33:
            self._log(f"{name} motor {addr}: status 0x{response.status:02X}")
            if response.status & 0x01:
                self._log(f"  {name} motor enabled")
            if response.status & 0x02:
                self._log(f"  {name} motor in position")
            if response.status & 0x04:
                self._log(f"  {name} motor stall protection")
        elif func == 0x3B:
            self._log(f"{name} motor {addr}: origin state 0x{response.origin_state:02X}")
            text = _ORIGIN_STATES.get(response.origin_state)
            if text is not None:
                self._log(f"  {name} axis {text}")
        else:
            self._log(f"{name} motor {addr}: function 0x{func:02X} received, not handled")

    def _handle_position(
        self, state: AxisState, other: AxisState, name: str, response: Response
    ) -> None:
        state.angle = calc_motor_angle(response.dir, response.position)
        if not state.reference_initialized:
            state.reference_position = response.position & 0xFFFFFFFF
            state.reference_initialized = True
            state.relative_angle = 0.0
            self._log(f"{name} motor reference set: {state.reference_position} pulses")
        else:
            state.relative_angle = calc_relative_angle(
                response.dir, response.position, state.reference_position
            )
        if not self.initial_position_saved and other.reference_initialized:
            state.initial_position = response.position & 0xFFFFFFFF
            state.initial_direction = response.dir
            self.initial_position_saved = True
            self._log(
                f"initial position saved: X={self.x.initial_position} "
                f"Y={self.y.initial_position}"
            )
        self._log(
            f"{name} motor {response.addr}: position {response.position} pulses, "
            f"angle {state.angle:.2f}°, relative {state.relative_angle:.2f}°"
        )

    def check_angle_limits(self) -> list[bytes]:
        """Stop any axis that has left the allowed angle; return the stop frames sent."""
        sent: list[bytes] = []
        if not self.limit_check_enabled:
            return sent
        axes = (
            (self.x, "X", self.motors.x_write, self.motors.x_addr),
            (self.y, "Y", self.motors.y_write, self.motors.y_addr),
        )
        for state, name, write, addr in axes:
            if abs(state.relative_angle) > MOTOR_MAX_ANGLE:
                if not state.limit_flag:
                    self._log(
                        f"{name} motor beyond ±{MOTOR_MAX_ANGLE}° of reference, stopping"
                    )
                    state.limit_flag = True
                    frame = stop_now(addr, self.motors.sync)
                    write(frame)
                    sent.append(frame)
            else:
                state.limit_flag = False
        return sent

    def reset_to_initial(self) -> tuple[bytes, bytes]:
        """Drive both axes back to the saved initial position; return the frames sent."""
        if not self.initial_position_saved:
            raise InitialPositionError("initial position not saved, cannot reset")
        self._log("returning motors to initial position")
        motors = self.motors
        speed = motors.max_speed // 2
        x_frame = position_control(
            motors.x_addr, self.x.initial_direction, speed, motors.accel,
            self.x.initial_position, True, motors.sync,
        )
        y_frame = position_control(
            motors.y_addr, self.y.initial_direction, speed, motors.accel,
            self.y.initial_position, True, motors.sync,
        )
        motors.x_write(x_frame)
        motors.y_write(y_frame)
        return x_frame, y_frame

    def request_initial_position(self) -> bool:
        """Ask both motors for their position unless it is already saved."""
        if self.initial_position_saved:
            return False
        motors = self.motors
        motors.x_write(read_sys_params(motors.x_addr, SysParam.CPOS))
        motors.y_write(read_sys_params(motors.y_addr, SysParam.CPOS))
        self._log("reading initial position")
        return True

    def process_command(self, command: str):
        """Handle a text command: ``reset`` or ``set(x,y)``.

        ``reset`` returns the frames sent (None if no initial position is
        known); ``set(x,y)`` returns the target pair (None if malformed).
        """
        if command.startswith("reset"):
            try:
                return self.reset_to_initial()
            except InitialPositionError as exc:
                self._log(f"error: {exc}")
                return None
        if command.startswith("set("):
            match = _SET_COMMAND.match(command)
            if match is None:
                self._log("malformed set command, expected set(x,y)")
                return None
            return int(match.group(1)), int(match.group(2))
        return None

    def process(self) -> None:
        """Drain all receive buffers and act on what they held."""
        data = self.x_buffer.get(self.x_buffer.data_len())
        if data:
            try:
                response = parse_response(data)
            except ResponseError:
                self._log("X axis reply could not be parsed")
            else:
                self.handle_response("x", response)
                self._log(f"id:{response.addr}")

        data = self.y_buffer.get(self.y_buffer.data_len())
        if data:
            try:
                response = parse_response(data)
            except ResponseError:
                self._log("Y axis reply could not be parsed")
            else:
                self.handle_response("y", response)

        for byte in self.pi_buffer.get(self.pi_buffer.data_len()):
            if len(self._line) < LINE_LIMIT - 1:
                self._line.append(byte)
            else:
                self._log("line buffer overflow without newline, discarding line")
                self._line.clear()
                continue
            if byte == ord("\n"):
                line = self._line.decode("latin-1")
                self._line.clear()
                try:
                    self.tracker.parse_line(line)
                except LaserParseError as exc:
                    self._log(f"camera line error {exc.code} for line {line!r}")