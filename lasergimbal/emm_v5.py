"""Command frames and response parsing for Emm V5 closed-loop stepper drivers.

Every command builder returns the exact bytes to put on the serial line.
Frames start with the motor address, carry a function code and end with
the fixed check byte ``0x6B``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

CHECK_BYTE = 0x6B
UART_TIMEOUT_MS = 1000
RAW_LIMIT = 32
VERSION_LIMIT = 15


class SysParam(Enum):
    """System parameters that can be read back from a driver."""

    VER = 0  # firmware and hardware version
    RL = 1  # phase resistance and inductance
    PID = 2  # PID parameters
    VBUS = 3  # bus voltage
    CPHA = 5  # phase current
    ENCL = 7  # linearised encoder value
    TPOS = 8  # target position
    VEL = 9  # real-time speed
    CPOS = 10  # real-time position
    PERR = 11  # position error
    FLAG = 13  # enable / in-position / stall flags
    CONF = 14  # driver configuration
    STATE = 15  # system state
    ORG = 16  # homing / homing-failed flags


_READ_CODES: dict[SysParam, bytes] = {
    SysParam.VER: b"\x1F",
    SysParam.RL: b"\x20",
    SysParam.PID: b"\x21",
    SysParam.VBUS: b"\x24",
    SysParam.CPHA: b"\x27",
    SysParam.ENCL: b"\x31",
    SysParam.TPOS: b"\x33",
    SysParam.VEL: b"\x35",
    SysParam.CPOS: b"\x36",
    SysParam.PERR: b"\x37",
    SysParam.FLAG: b"\x3A",
    SysParam.ORG: b"\x3B",
    SysParam.CONF: b"\x42\x6C",
    SysParam.STATE: b"\x43\x7A",
}


class ResponseError(ValueError):
    """Raised when a reply from a driver cannot be parsed."""


def _field(value: int, width: int, name: str) -> bytes:
    value = int(value)
    limit = 1 << (8 * width)
    if not 0 <= value < limit:
        raise ValueError(f"{name} must be in 0..{limit - 1}, got {value}")
    return value.to_bytes(width, "big")


def _flags(*values: object) -> bytes:
    """Encode each value as one byte holding 0 or 1."""
    return bytes(bool(value) for value in values)


def _frame(addr: int, *parts: bytes) -> bytes:
    return _field(addr, 1, "addr") + b"".join(parts) + bytes([CHECK_BYTE])


def reset_position_to_zero(addr: int) -> bytes:
    """Clear the current position counter."""
    return _frame(addr, b"\x0A\x6D")


def reset_clog_protection(addr: int) -> bytes:
    """Release stall protection."""
    return _frame(addr, b"\x0E\x52")


def read_sys_params(addr: int, param: SysParam) -> bytes:
    """Request one system parameter."""
    return _frame(addr, _READ_CODES[SysParam(param)])


def modify_ctrl_mode(addr: int, store: bool, mode: int) -> bytes:
    """Switch the pulse-input control mode (0 off, 1 open loop, 2 closed loop, 3 limit-switch)."""
    return _frame(addr, b"\x46\x69", _flags(store), _field(mode, 1, "mode"))


def enable_control(addr: int, state: bool, sync: bool) -> bytes:
    """Enable or disable the motor."""
    return _frame(addr, b"\xF3\xAB", _flags(state, sync))


def velocity_control(
    addr: int, direction: int, velocity: int, acceleration: int, sync: bool
) -> bytes:
    """Run at a constant speed; direction 0 is CW, anything else CCW."""
    return _frame(
        addr,
        b"\xF6",
        _field(direction, 1, "direction"),
        _field(velocity, 2, "velocity"),
        _field(acceleration, 1, "acceleration"),
        _flags(sync),
    )


def position_control(
    addr: int,
    direction: int,
    velocity: int,
    acceleration: int,
    pulses: int,
    absolute: bool,
    sync: bool,
) -> bytes:
    """Move by (or to, when absolute) a number of pulses."""
    return _frame(
        addr,
        b"\xFD",
        _field(direction, 1, "direction"),
        _field(velocity, 2, "velocity"),
        _field(acceleration, 1, "acceleration"),
        _field(pulses, 4, "pulses"),
        _flags(absolute, sync),
    )


def stop_now(addr: int, sync: bool) -> bytes:
    """Stop immediately, in any control mode."""
    return _frame(addr, b"\xFE\x98", _flags(sync))


def synchronous_motion(addr: int) -> bytes:
    """Start all motors that were given a synchronised command."""
    return _frame(addr, b"\xFF\x66")


def origin_set_zero(addr: int, store: bool) -> bytes:
    """Make the current position the single-turn homing zero."""
    return _frame(addr, b"\x93\x88", _flags(store))


def origin_modify_params(
    addr: int,
    store: bool,
    mode: int,
    direction: int,
    velocity: int,
    timeout: int,
    collision_velocity: int,
    collision_current: int,
    collision_time: int,
    power_on_trigger: bool,
) -> bytes:
    """Change the homing parameters."""
    return _frame(
        addr,
        b"\x4C\xAE",
        _flags(store),
        _field(mode, 1, "mode"),
        _field(direction, 1, "direction"),
        _field(velocity, 2, "velocity"),
        _field(timeout, 4, "timeout"),
        _field(collision_velocity, 2, "collision_velocity"),
        _field(collision_current, 2, "collision_current"),
        _field(collision_time, 2, "collision_time"),
        _flags(power_on_trigger),
    )


def origin_trigger_return(addr: int, mode: int, sync: bool) -> bytes:
    """Start homing in the given mode."""
    return _frame(addr, b"\x9A", _field(mode, 1, "mode"), _flags(sync))


def origin_interrupt(addr: int) -> bytes:
    """Abort homing.

    The frame is sent with one trailing zero byte after the check byte.
    """
    return _frame(addr, b"\x9C\x48") + b"\x00"


@dataclass
class Response:
    """Fields decoded from one driver reply."""

    addr: int = 0
    func: int = 0
    dir: int = 0
    speed: int = 0
    position: int = 0
    status: int = 0
    error: int = 0
    encoder: int = 0
    temperature: int = 0
    voltage: int = 0
    current: int = 0
    target_pos: int = 0
    target_speed: int = 0
    acceleration: int = 0
    subdivision: int = 0
    ctrl_mode: int = 0
    protection: int = 0
    pwm_duty: int = 0
    closed_loop_state: int = 0
    encoder_state: int = 0
    sync_state: int = 0
    origin_state: int = 0
    version: str = ""
    raw: bytes = b""
    length: int = 0


def _u16(data: bytes, start: int) -> int:
    return int.from_bytes(data[start:start + 2], "big")


def _i16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _i32(data: bytes, start: int) -> int:
    return int.from_bytes(data[start:start + 4], "big", signed=True)


def _version(r: Response, d: bytes) -> None:
    text = d[2:2 + min(len(d) - 3, VERSION_LIMIT)].split(b"\x00", 1)[0]
    r.version = text.decode("latin-1")


def _resistance(r: Response, d: bytes) -> None:
    r.current = _u16(d, 2)
    r.voltage = _u16(d, 4)  # inductance shares the voltage field


def _speed(r: Response, d: bytes) -> None:
    r.dir = d[2]
    r.speed = _i16(_u16(d, 3))
    if r.dir:
        r.speed = _i16(-r.speed)


def _position(r: Response, d: bytes) -> None:
    r.dir = d[2]
    r.position = _u16(d, 5)  # position within one turn
    if r.dir:
        r.position = -r.position


def _set_byte(name: str) -> Callable[[Response, bytes], None]:
    def handler(r: Response, d: bytes) -> None:
        setattr(r, name, d[2])

    return handler


def _set_u16(name: str) -> Callable[[Response, bytes], None]:
    def handler(r: Response, d: bytes) -> None:
        setattr(r, name, _u16(d, 2))

    return handler


def _set_i32(name: str) -> Callable[[Response, bytes], None]:
    def handler(r: Response, d: bytes) -> None:
        setattr(r, name, _i32(d, 2))

    return handler


# Function code -> (minimum reply length, decoder). A missing decoder means
# the reply is only checked for length (PID parameters are not decoded).
_PARSERS: dict[int, tuple[int, Optional[Callable[[Response, bytes], None]]]] = {
    0x1F: (4, _version),
    0x20: (6, _resistance),
    0x21: (8, None),
    0x24: (4, _set_u16("voltage")),
    0x27: (4, _set_u16("current")),
    0x31: (6, _set_i32("encoder")),
    0x33: (3, _set_byte("status")),
    0x35: (5, _speed),
    0x36: (7, _position),
    0x37: (7, _set_i32("position")),
    0x39: (3, _set_byte("error")),
    0x3A: (3, _set_byte("status")),
    0x3B: (3, _set_byte("origin_state")),
    0x3D: (6, _set_i32("target_pos")),
    0x3E: (4, _set_u16("target_speed")),
    0x3F: (3, _set_byte("acceleration")),
    0x40: (3, _set_byte("subdivision")),
    0x41: (3, _set_byte("ctrl_mode")),
    0x42: (3, _set_byte("protection")),
    0x43: (4, _set_u16("pwm_duty")),
    0x44: (3, _set_byte("closed_loop_state")),
    0x45: (3, _set_byte("encoder_state")),
    0x46: (3, _set_byte("sync_state")),
    0x47: (3, _set_byte("origin_state")),
}


def parse_response(data: bytes) -> Response:
    """Decode a reply frame.

    Unknown function codes are accepted with only the raw bytes kept.
    Raises ResponseError when the frame is shorter than its function needs.
    """
    data = bytes(data)
    if len(data) < 3:
        raise ResponseError(f"reply too short: {len(data)} bytes")
    response = Response(
        addr=data[0], func=data[1], raw=data[:RAW_LIMIT], length=len(data)
    )
    entry = _PARSERS.get(response.func)
    if entry is not None:
        min_len, handler = entry
        if len(data) < min_len:
            raise ResponseError(
                f"reply for function 0x{response.func:02X} needs {min_len} bytes, "
                f"got {len(data)}"
            )
        if handler is not None:
            handler(response, data)
    return response