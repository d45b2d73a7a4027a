import pytest

from lasergimbal.emm_v5 import (
    Response,
    SysParam,
    position_control,
    read_sys_params,
    stop_now,
)
from lasergimbal.motor_link import (
    InitialPositionError,
    MotorLink,
    calc_motor_angle,
    calc_relative_angle,
)
from lasergimbal.step_motor import StepMotorPair


def make_link():
    x_sent, y_sent, logs = [], [], []
    motors = StepMotorPair(x_sent.append, y_sent.append)
    link = MotorLink(motors, log=logs.append)
    return link, x_sent, y_sent, logs


def feed_pi(link, data):
    for start in range(0, len(data), 32):
        assert link.pi_buffer.put(data[start:start + 32]) == len(data[start:start + 32])
        link.process()


def position(pos, direction=0):
    return Response(addr=1, func=0x36, dir=direction, position=pos)


def test_motor_angle_quarter_turn():
    assert calc_motor_angle(0, 16384) == 90.0
    assert calc_motor_angle(0, 0) == 0.0


def test_motor_angle_direction_and_wrap():
    for p in (1, 1000, 40000):
        assert calc_motor_angle(1, p) == -calc_motor_angle(0, p)
        assert calc_motor_angle(0, p + 65536) == calc_motor_angle(0, p)


def test_relative_angle_same_position_is_zero():
    assert calc_relative_angle(0, 1234, 1234) == 0.0


def test_relative_angle_crosses_zero():
    assert calc_relative_angle(0, 100, 65500) == calc_relative_angle(0, 136, 0)


def test_relative_angle_shorter_way_is_negative():
    assert calc_relative_angle(0, 0, 100) == -calc_relative_angle(0, 100, 0)
    assert calc_relative_angle(0, 0, 100) < 0
    assert calc_relative_angle(1, 100, 0) == -calc_relative_angle(0, 100, 0)


def test_first_position_sets_reference():
    link, _, _, _ = make_link()
    link.handle_response("x", position(500))
    assert link.x.reference_initialized
    assert link.x.reference_position == 500
    assert link.x.relative_angle == 0.0
    link.handle_response("x", position(900))
    assert link.x.relative_angle == calc_relative_angle(0, 900, 500)
    assert link.x.angle == calc_motor_angle(0, 900)


def test_initial_position_saved_once_both_axes_reported():
    link, _, _, _ = make_link()
    link.handle_response("x", position(700))
    assert not link.initial_position_saved
    link.handle_response("y", position(300, 1))
    assert link.initial_position_saved
    assert link.y.initial_position == (-300) & 0xFFFFFFFF or link.y.initial_position == 300
    assert link.y.initial_direction == 1


def test_invalid_axis():
    link, _, _, _ = make_link()
    with pytest.raises(ValueError):
        link.handle_response("z", position(1))


def test_reset_without_initial_position_raises():
    link, x_sent, _, _ = make_link()
    with pytest.raises(InitialPositionError):
        link.reset_to_initial()
    assert x_sent == []


def test_reset_sends_absolute_moves():
    link, x_sent, y_sent, _ = make_link()
    link.handle_response("x", position(700))
    link.handle_response("y", position(300))
    frames = link.reset_to_initial()
    motors = link.motors
    speed = motors.max_speed // 2
    expected_x = position_control(motors.x_addr, 0, speed, motors.accel, 0, True, motors.sync)
    expected_y = position_control(motors.y_addr, 0, speed, motors.accel, 300, True, motors.sync)
    assert frames == (expected_x, expected_y)
    assert x_sent == [expected_x]
    assert y_sent == [expected_y]


def test_request_initial_position():
    link, x_sent, y_sent, _ = make_link()
    assert link.request_initial_position() is True
    assert x_sent == [read_sys_params(1, SysParam.CPOS)]
    assert y_sent == [read_sys_params(1, SysParam.CPOS)]
    link.initial_position_saved = True
    assert link.request_initial_position() is False
    assert len(x_sent) == 1


def test_angle_limits_disabled_sends_nothing():
    link, x_sent, _, _ = make_link()
    link.handle_response("x", position(0))
    link.handle_response("x", position(16384))
    assert link.check_angle_limits() == []
    assert x_sent == []


def test_angle_limits_stop_once():
    link, x_sent, y_sent, _ = make_link()
    link.limit_check_enabled = True
    link.handle_response("x", position(0))
    link.handle_response("x", position(16384))
    assert link.check_angle_limits() == [stop_now(1, False)]
    assert x_sent == [stop_now(1, False)]
    assert link.check_angle_limits() == []
    assert y_sent == []
    link.handle_response("x", position(0))
    link.check_angle_limits()
    assert link.x.limit_flag is False


def test_process_motor_reply_from_buffer():
    link, _, _, logs = make_link()
    link.x_buffer.put(b"\x01\x36\x00\x00\x00\x10\x00\x6B")
    link.process()
    assert link.x.reference_position == 0x1000
    assert link.x.angle == calc_motor_angle(0, 0x1000)
    assert "id:1" in logs
    assert len(link.x_buffer) == 0


def test_process_short_reply_logged():
    link, _, _, logs = make_link()
    link.y_buffer.put(b"\x01\x36")
    link.process()
    assert any("could not be parsed" in line for line in logs)
    assert not link.y.reference_initialized


def test_process_camera_lines():
    link, _, _, _ = make_link()
    feed_pi(link, b"red:(10,")
    assert link.tracker.red.valid is False
    feed_pi(link, b"20)\ngre:(-3,4)\n")
    assert (link.tracker.red.x, link.tracker.red.y) == (10, 20)
    assert (link.tracker.green.x, link.tracker.green.y) == (-3, 4)


def test_process_bad_camera_line_logged():
    link, _, _, logs = make_link()
    feed_pi(link, b"blue:(1,2)\n")
    assert any("error -3" in line for line in logs)


def test_line_overflow_discards_and_recovers():
    link, _, _, logs = make_link()
    feed_pi(link, b"a" * 127 + b"Z" + b"red:(1,2)\n")
    assert any("overflow" in line for line in logs)
    assert (link.tracker.red.x, link.tracker.red.y) == (1, 2)


def test_process_command():
    link, x_sent, _, logs = make_link()
    assert link.process_command("reset") is None
    assert x_sent == []
    assert any("error" in line for line in logs)
    assert link.process_command("set(3,4)") == (3, 4)
    assert link.process_command("set(x") is None
    assert any("set" in line for line in logs)
    assert link.process_command("other") is None