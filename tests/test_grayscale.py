import pytest

from lasergimbal.grayscale import (
    GW_GRAY_ADDR_DEF,
    GW_GRAY_ANALOG_BASE,
    GW_GRAY_ANALOG_NORMALIZE,
    GW_GRAY_DIGITAL_MODE,
    GW_GRAY_OFFSET,
    GW_GRAY_PING,
    GW_GRAY_PING_OK,
    GrayscaleSensor,
    channel_enable_bit,
    format_digital,
    nth_bit,
    split_bits,
)


class FakeBus:
    def __init__(self, registers):
        self.registers = registers
        self.reads = []
        self.writes = []

    def read(self, address, register, length):
        self.reads.append((address, register, length))
        return self.registers[register][:length]

    def write(self, address, register, data):
        self.writes.append((address, register, data))


def make(registers):
    bus = FakeBus(registers)
    return bus, GrayscaleSensor(bus.read, bus.write)


def test_ping_ok_and_failure():
    bus, sensor = make({GW_GRAY_PING: bytes([GW_GRAY_PING_OK])})
    assert sensor.ping() is True
    assert bus.reads == [(GW_GRAY_ADDR_DEF, GW_GRAY_PING, 1)]
    bus.registers[GW_GRAY_PING] = b"\x00"
    assert sensor.ping() is False


def test_digital_reads_mode_register():
    bus, sensor = make({GW_GRAY_DIGITAL_MODE: b"\xA5"})
    assert sensor.digital() == 0xA5
    assert bus.reads[0][1] == GW_GRAY_DIGITAL_MODE


def test_analog_returns_all_bytes():
    values = bytes(range(10, 18))
    bus, sensor = make({GW_GRAY_ANALOG_BASE: values})
    assert sensor.analog(8) == values
    assert bus.reads == [(GW_GRAY_ADDR_DEF, GW_GRAY_ANALOG_BASE, 8)]


def test_short_read_raises():
    _, sensor = make({GW_GRAY_ANALOG_BASE: b"\x01\x02"})
    with pytest.raises(OSError):
        sensor.analog(8)


def test_single_analog_register():
    bus, sensor = make({GW_GRAY_ANALOG_BASE + 3: b"\x7F"})
    assert sensor.single_analog(3) == 0x7F
    assert bus.reads[0][1] == GW_GRAY_ANALOG_BASE + 3


@pytest.mark.parametrize("channel", [0, 9])
def test_single_analog_rejects_bad_channel(channel):
    _, sensor = make({})
    with pytest.raises(ValueError):
        sensor.single_analog(channel)


def test_normalize_writes_mask():
    bus, sensor = make({})
    sensor.normalize(0x0F)
    assert bus.writes == [(GW_GRAY_ADDR_DEF, GW_GRAY_ANALOG_NORMALIZE, b"\x0f")]


def test_offset_is_little_endian():
    _, sensor = make({GW_GRAY_OFFSET: b"\x34\x12"})
    assert sensor.offset() == 0x1234


def test_split_bits_round_trip():
    for value in range(256):
        bits = split_bits(value)
        assert len(bits) == 8
        assert sum(bit << i for i, bit in enumerate(bits)) == value


def test_nth_bit_and_enable_bit_agree():
    for n in range(1, 9):
        assert nth_bit(channel_enable_bit(n), n) == 1
        assert nth_bit(0xFF ^ channel_enable_bit(n), n) == 0


def test_nth_bit_rejects_zero():
    with pytest.raises(ValueError):
        nth_bit(1, 0)


def test_format_digital():
    assert format_digital(0b00000101) == "Digtal 1-0-1-0-0-0-0-0"