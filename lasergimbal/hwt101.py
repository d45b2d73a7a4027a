"""Driver for the HWT101 single-axis gyroscope: packet decoding and configuration commands."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

PACKET_SIZE = 11
DEFAULT_TIMEOUT_MS = 1000

HEADER = 0x55
TYPE_GYRO = 0x52
TYPE_ANGLE = 0x53

CMD_HEADER = b"\xFF\xAA"
UNLOCK_SEQUENCE = b"\xFF\xAA\x69\x88\xB5"

REG_SAVE = 0x00
REG_RRATE = 0x03
REG_BAUD = 0x04
REG_CALIYAW = 0x76
REG_MANUALCALI = 0xA6
REG_NOAUTOCALI = 0xA7

BAUD_CODES = range(1, 8)
OUTPUT_RATE_CODES = tuple(code for code in range(1, 14) if code != 10)

_COMMAND_DELAY_MS = 100
_CONFIG_DELAY_MS = 200
_CALIBRATION_DELAY_MS = 500


class Hwt101State(Enum):
    """Receiver state."""

    IDLE = 0
    RECEIVING = 1
    DATA_READY = 2
    ERROR = 3


class Hwt101Error(RuntimeError):
    """Raised when the sensor is used while disabled or given no data."""


@dataclass
class Hwt101Data:
    """Latest values decoded from the sensor."""

    gyro_z_raw: float = 0.0  # deg/s, uncalibrated
    gyro_z: float = 0.0  # deg/s, calibrated
    yaw: float = 0.0  # degrees
    version: int = 0
    timestamp: int = 0  # clock ticks (ms) of the last decoded packet
    valid: bool = False


def _int16(low: int, high: int) -> int:
    value = (high << 8) | low
    return value - 0x10000 if value & 0x8000 else value


def _gyro(low: int, high: int) -> float:
    return _int16(low, high) / 32768.0 * 2000.0


def _angle(low: int, high: int) -> float:
    return _int16(low, high) / 32768.0 * 180.0


def _default_clock() -> int:
    return int(time.monotonic() * 1000) & 0xFFFFFFFF


def _default_sleep(ms: int) -> None:
    time.sleep(ms / 1000.0)


class Hwt101:
    """One HWT101 sensor on a serial line.

    ``write`` receives the command bytes to send, ``clock`` returns the current
    time in milliseconds and ``sleep`` waits for a number of milliseconds.
    """

    def __init__(
        self,
        write: Callable[[bytes], object],
        timeout_ms: int = 0,
        clock: Callable[[], int] | None = None,
        sleep: Callable[[int], object] | None = None,
    ) -> None:
        self._write = write
        self.timeout_ms = timeout_ms if timeout_ms else DEFAULT_TIMEOUT_MS
        self._clock = clock or _default_clock
        self._sleep = sleep or _default_sleep
        self._data = Hwt101Data()
        self._state = Hwt101State.IDLE
        self._enabled = True
        self._packet = bytearray()

    @property
    def state(self) -> Hwt101State:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def data(self) -> Hwt101Data | None:
        """The decoded data, or None while disabled or before any valid packet."""
        if not self._enabled or not self._data.valid:
            return None
        return self._data

    @property
    def yaw(self) -> float:
        """Yaw in degrees, 0.0 when no valid data is available."""
        data = self.data
        return data.yaw if data else 0.0

    @property
    def gyro_z(self) -> float:
        """Calibrated angular rate in deg/s, 0.0 when no valid data is available."""
        data = self.data
        return data.gyro_z if data else 0.0

    def _require_enabled(self) -> None:
        if not self._enabled:
            raise Hwt101Error("sensor is disabled")

    def process(self, data: bytes) -> None:
        """Feed received bytes through the packet decoder."""
        data = bytes(data)
        if not data:
            raise Hwt101Error("no data to process")
        self._require_enabled()
        for byte in data:
            if self._state in (Hwt101State.DATA_READY, Hwt101State.ERROR):
                self._state = Hwt101State.IDLE
            if self._state is Hwt101State.IDLE:
                if byte == HEADER:
                    self._packet = bytearray([byte])
                    self._state = Hwt101State.RECEIVING
                continue
            self._packet.append(byte)
            if len(self._packet) >= PACKET_SIZE:
                self._finish_packet(bytes(self._packet))
                self._packet = bytearray()

    def _finish_packet(self, packet: bytes) -> None:
        if sum(packet[:-1]) & 0xFF != packet[-1]:
            self._state = Hwt101State.IDLE
            return
        kind = packet[1]
        if kind == TYPE_GYRO:
            self._data.gyro_z_raw = _gyro(packet[4], packet[5])
            self._data.gyro_z = _gyro(packet[6], packet[7])
            self._mark_valid()
        elif kind == TYPE_ANGLE:
            self._data.yaw = _angle(packet[6], packet[7])
            self._data.version = (packet[9] << 8) | packet[8]
            self._mark_valid()
        self._state = Hwt101State.DATA_READY

    def _mark_valid(self) -> None:
        self._data.timestamp = self._clock()
        self._data.valid = True

    def enable(self, flag: bool) -> None:
        """Enable or disable the sensor; disabling discards all data."""
        self._enabled = bool(flag)
        if not self._enabled:
            self._data = Hwt101Data()
            self._state = Hwt101State.IDLE
            self._packet = bytearray()

    def _send(self, payload: bytes) -> None:
        self._write(payload)
        self._sleep(_COMMAND_DELAY_MS)

    def _unlock(self) -> None:
        self._send(UNLOCK_SEQUENCE)

    def _command(self, register: int, value: int) -> None:
        self._send(CMD_HEADER + bytes([register]) + (value & 0xFFFF).to_bytes(2, "little"))

    def save_config(self) -> None:
        """Store the current configuration in the sensor."""
        self._require_enabled()
        self._command(REG_SAVE, 0)

    def _configure(self, register: int, value: int, settle_ms: int) -> None:
        self._require_enabled()
        self._unlock()
        self._command(register, value)
        self.save_config()
        self._sleep(settle_ms)

    def set_baud_rate(self, code: int) -> None:
        """Set the baud rate: 1=4800, 2=9600, 3=19200, 4=38400, 5=57600, 6=115200, 7=230400."""
        self._require_enabled()
        if code not in BAUD_CODES:
            raise ValueError(f"baud rate code must be in 1..7, got {code}")
        self._configure(REG_BAUD, code, _CONFIG_DELAY_MS)

    def set_output_rate(self, code: int) -> None:
        """Set the output rate code (1..13 except 10; 1=0.2 Hz up to 13=1000 Hz)."""
        self._require_enabled()
        if code not in OUTPUT_RATE_CODES:
            raise ValueError(f"output rate code must be in 1..13 except 10, got {code}")
        self._configure(REG_RRATE, code, _CONFIG_DELAY_MS)

    def start_manual_calibration(self) -> None:
        """Enter manual calibration; the sensor must be kept still."""
        self._configure(REG_MANUALCALI, 0x0001, _CALIBRATION_DELAY_MS)

    def stop_manual_calibration(self) -> None:
        """Leave manual calibration."""
        self._configure(REG_MANUALCALI, 0x0004, _CALIBRATION_DELAY_MS)

    def reset_yaw(self) -> None:
        """Make the current heading the zero yaw."""
        self._configure(REG_CALIYAW, 0x0000, _CALIBRATION_DELAY_MS)

    def summary(self) -> str | None:
        """A status line with yaw and angular rate, or None without valid data."""
        data = self.data
        if data is None:
            return None
        return f"Yaw: {data.yaw:.2f}°, GyroZ: {data.gyro_z:.2f}°/s"