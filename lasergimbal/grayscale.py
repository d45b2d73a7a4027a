"""Eight-channel I2C grayscale line sensor."""

from __future__ import annotations

from typing import Callable

GW_GRAY_ADDR_DEF = 0x4C
GW_GRAY_PING = 0xAA
GW_GRAY_PING_OK = 0x66
GW_GRAY_DIGITAL_MODE = 0xDD
GW_GRAY_ANALOG_BASE = 0xB0
GW_GRAY_ANALOG_MODE = GW_GRAY_ANALOG_BASE
GW_GRAY_ANALOG_NORMALIZE = 0xCF
GW_GRAY_CALIBRATION_BLACK = 0xD0
GW_GRAY_CALIBRATION_WHITE = 0xD1
GW_GRAY_ANALOG_CHANNEL_ENABLE = 0xCE
GW_GRAY_ANALOG_CH_EN_ALL = 0xFF
GW_GRAY_ERROR = 0xDE
GW_GRAY_REBOOT = 0xC0
GW_GRAY_FIRMWARE = 0xC1
GW_GRAY_CHANGE_ADDR = 0xAD
GW_GRAY_BROADCAST_RESET = b"\xB8\xD0\xCE\xAA\xBF\xC6\xBC\xBC"
GW_GRAY_OFFSET = 0x88

CHANNELS = 8

RegisterReader = Callable[[int, int, int], bytes]
RegisterWriter = Callable[[int, int, bytes], object]


def channel_enable_bit(n: int) -> int:
    """Bit mask selecting probe ``n`` (1..8) for analog output."""
    _check_channel(n)
    return 1 << (n - 1)


def _check_channel(n: int) -> None:
    if not 1 <= n <= CHANNELS:
        raise ValueError(f"channel must be in 1..{CHANNELS}, got {n}")


def nth_bit(value: int, n: int) -> int:
    """State of probe ``n`` (1..8) in a digital reading."""
    _check_channel(n)
    return (value >> (n - 1)) & 0x01


def split_bits(value: int) -> tuple[int, ...]:
    """States of probes 1..8 in a digital reading."""
    return tuple(nth_bit(value, n) for n in range(1, CHANNELS + 1))


def format_digital(value: int) -> str:
    """Status line listing the probe states of a digital reading."""
    return "Digtal " + "-".join(str(bit) for bit in split_bits(value))


class GrayscaleSensor:
    """A grayscale sensor reached through register reads and writes.

    ``read_register(address, register, length)`` returns bytes and
    ``write_register(address, register, data)`` stores bytes; addresses are
    7-bit I2C addresses.
    """

    def __init__(
        self,
        read_register: RegisterReader,
        write_register: RegisterWriter,
        address: int = GW_GRAY_ADDR_DEF,
    ) -> None:
        self._read_register = read_register
        self._write_register = write_register
        self.address = address

    def _read(self, register: int, length: int) -> bytes:
        data = bytes(self._read_register(self.address, register, length))
        if len(data) != length:
            raise OSError(
                f"short read from register 0x{register:02X}: "
                f"wanted {length} bytes, got {len(data)}"
            )
        return data

    def ping(self) -> bool:
        """True if the sensor answers the ping register correctly."""
        return self._read(GW_GRAY_PING, 1)[0] == GW_GRAY_PING_OK

    def digital(self) -> int:
        """One byte holding the on/off state of all eight probes."""
        return self._read(GW_GRAY_DIGITAL_MODE, 1)[0]

    def analog(self, length: int = CHANNELS) -> bytes:
        """Analog values of the enabled probes."""
        if not 1 <= length <= 0xFF:
            raise ValueError(f"length must be in 1..255, got {length}")
        return self._read(GW_GRAY_ANALOG_BASE, length)

    def single_analog(self, channel: int) -> int:
        """Analog value of one probe (1..8)."""
        _check_channel(channel)
        return self._read(GW_GRAY_ANALOG_BASE + channel, 1)[0]

    def normalize(self, channels: int) -> None:
        """Enable normalisation for the probes set in the ``channels`` mask."""
        if not 0 <= channels <= 0xFF:
            raise ValueError(f"channel mask must be in 0..255, got {channels}")
        self._write_register(self.address, GW_GRAY_ANALOG_NORMALIZE, bytes([channels]))

    def offset(self) -> int:
        """The sensor's 16-bit offset value."""
        return int.from_bytes(self._read(GW_GRAY_OFFSET, 2), "little")