"""Laser spot coordinates reported by the camera, and tracking one spot with the other."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

FRAME_HEADER = "$"
FRAME_FOOTER = "\n"
RED_LASER_ID = "R"
GREEN_LASER_ID = "G"

_HEX = re.compile(rb"\s*([+-]?(?:0[xX])?[0-9a-fA-F]+)")
_COORD = re.compile(rb"\$(.),\s*([+-]?\d+),\s*([+-]?\d+)", re.DOTALL)
_LINE_FORMATS = {
    "red:": re.compile(r"red:\(\s*([+-]?\d+),\s*([+-]?\d+)"),
    "gre:": re.compile(r"gre:\(\s*([+-]?\d+),\s*([+-]?\d+)"),
}


@dataclass
class LaserCoord:
    """Position of one laser spot in camera pixels."""

    type: str
    x: int = 0
    y: int = 0
    valid: bool = False


class LaserParseError(ValueError):
    """Raised for a malformed coordinate message; ``code`` says what was wrong."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code


def parse_maixcam_frame(text: str | bytes) -> LaserCoord:
    """Parse a ``$<type>,<x>,<y>,<checksum>`` frame.

    The checksum is the low byte of the sum of all bytes before the last
    comma, written in hexadecimal.
    """
    raw = bytes(text) if isinstance(text, (bytes, bytearray)) else text.encode("utf-8")
    if raw[:1] != FRAME_HEADER.encode():
        raise LaserParseError(-1, "frame does not start with '$'")
    cut = raw.rfind(b",")
    if cut < 0:
        raise LaserParseError(-2, "frame has no checksum separator")
    calculated = sum(raw[:cut]) & 0xFF
    match = _HEX.match(raw, cut + 1)
    if match is None:
        raise LaserParseError(-3, "checksum is not hexadecimal")
    received = int(match.group(1).decode("ascii"), 16)
    if calculated != received:
        raise LaserParseError(
            -4, f"checksum mismatch: calculated {calculated:02X}, got {received:X}"
        )
    match = _COORD.match(raw)
    if match is None:
        raise LaserParseError(-5, "coordinates could not be parsed")
    kind = match.group(1).decode("latin-1")
    if kind not in (RED_LASER_ID, GREEN_LASER_ID):
        raise LaserParseError(-6, f"unknown laser type {kind!r}")
    return LaserCoord(kind, int(match.group(2)), int(match.group(3)), True)


@dataclass
class LaserTracker:
    """Latest red and green spot positions, driving the gimbal to bring them together."""

    red: LaserCoord = field(default_factory=lambda: LaserCoord(RED_LASER_ID))
    green: LaserCoord = field(default_factory=lambda: LaserCoord(GREEN_LASER_ID))

    def parse_line(self, line: str) -> LaserCoord:
        """Take a ``red:(x,y)`` or ``gre:(x,y)`` line and update that spot."""
        targets = {"red:": self.red, "gre:": self.green}
        for prefix, pattern in _LINE_FORMATS.items():
            if line.startswith(prefix):
                match = pattern.match(line)
                if match is None:
                    raise LaserParseError(-2, f"malformed coordinates in {line!r}")
                coord = targets[prefix]
                coord.x = int(match.group(1))
                coord.y = int(match.group(2))
                coord.valid = True
                return coord
        raise LaserParseError(-3, f"unknown message {line!r}")

    def step(self, pid_x, pid_y, motors) -> tuple[float, float]:
        """Run one control step moving the green spot towards the red one.

        Returns the X and Y controller outputs; the X output is applied
        with its sign inverted.
        """
        out_x = pid_x.calc(self.green.x, self.red.x, False)
        out_y = pid_y.calc(self.green.y, self.red.y, False)
        motors.set_speed_rpm(-out_x, out_y)
        return out_x, out_y