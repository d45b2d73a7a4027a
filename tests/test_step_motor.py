import pytest

from lasergimbal.emm_v5 import (
    enable_control,
    position_control,
    stop_now,
    velocity_control,
)
from lasergimbal.step_motor import MOTOR_MAX_SPEED, StepMotorPair


@pytest.fixture
def wires():
    return [], []


@pytest.fixture
def motors(wires):
    xs, ys = wires
    return StepMotorPair(xs.append, ys.append)


def test_init_enables_then_stops(motors, wires):
    xs, ys = wires
    motors.init()
    assert xs == [enable_control(1, True, False), stop_now(1, False)]
    assert ys == [enable_control(1, True, False), stop_now(1, False)]


def test_full_percent_wire_bytes(motors, wires):
    xs, ys = wires
    x_frame, y_frame = motors.set_speed_percent(100, -100)
    assert x_frame == b"\x01\xF6\x00\x00\x03\x00\x00\x6B"
    assert y_frame == velocity_control(1, 1, MOTOR_MAX_SPEED, 0, False)
    assert xs == [x_frame] and ys == [y_frame]


def test_percent_is_clamped(motors):
    assert motors.set_speed_percent(150, -150) == motors.set_speed_percent(100, -100)


def test_zero_percent_is_cw_zero(motors):
    x_frame, y_frame = motors.set_speed_percent(0, 0)
    assert x_frame == velocity_control(1, 0, 0, 0, False)
    assert y_frame == x_frame


def test_rpm_rounds_to_tenths(motors):
    x_frame, y_frame = motors.set_speed_rpm(1.5, -0.04)
    assert x_frame == velocity_control(1, 0, 15, 0, False)
    assert y_frame == velocity_control(1, 1, 0, 0, False)


def test_rpm_is_clamped_to_max(motors):
    assert motors.set_speed_rpm(10, -10) == motors.set_speed_rpm(
        MOTOR_MAX_SPEED, -MOTOR_MAX_SPEED
    )


def test_move_uses_relative_position_mode(motors):
    x_frame, y_frame = motors.move(1000, -2000)
    assert x_frame == position_control(1, 0, MOTOR_MAX_SPEED, 0, 1000, False, False)
    assert y_frame == position_control(1, 1, MOTOR_MAX_SPEED, 0, 2000, False, False)


def test_custom_addresses_used(wires):
    xs, ys = wires
    pair = StepMotorPair(xs.append, ys.append, x_addr=2, y_addr=3)
    pair.stop()
    assert xs == [stop_now(2, False)]
    assert ys == [stop_now(3, False)]


def test_negative_max_speed_rejected(wires):
    xs, ys = wires
    with pytest.raises(ValueError):
        StepMotorPair(xs.append, ys.append, max_speed=-1)