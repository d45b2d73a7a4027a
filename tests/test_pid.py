import pytest

from lasergimbal.pid import Pid, PidMode, abs_limit, default_controllers


def make(mode=PidMode.POSITION, max_out=1000, integral_limit=1000, p=0.0, i=0.0, d=0.0, **kw):
    return Pid(mode, max_out, integral_limit, p, i, d, **kw)


def test_abs_limit_clamps_both_sides():
    assert abs_limit(150, 100) == 100
    assert abs_limit(-150, 100) == -100
    assert abs_limit(5, 100) == 5


def test_proportional_only_output():
    pid = make(p=2.0)
    assert pid.calc(0, 10) == pytest.approx(20.0)
    assert pid.target == 10
    assert pid.measured == 0


def test_output_clamped_to_max_out():
    pid = make(max_out=7, p=100.0)
    assert pid.calc(0, 50) == 7
    assert pid.calc(50, 0) == -7


def test_integral_clamped_to_limit():
    pid = make(integral_limit=5, i=1.0)
    for _ in range(10):
        pid.calc(0, 10)
    assert pid.iout == 5
    assert pid.out == 5


def test_input_deadband_zeroes_error_and_integral():
    pid = make(p=1.0, i=1.0, input_deadband=1.0)
    pid.calc(0, 10)
    assert pid.iout != 0
    result = pid.calc(0, 0.5)
    assert result == 0
    assert pid.err_now == 0
    assert pid.iout == 0


def test_input_max_err_returns_zero_and_keeps_output():
    pid = make(p=1.0, input_max_err=5.0)
    first = pid.calc(0, 3)
    assert pid.calc(0, 100) == 0
    assert pid.out == first
    assert pid.err_last == 3


def test_output_deadband_hides_small_output():
    pid = make(p=1.0, output_deadband=2.0)
    assert pid.calc(0, 1) == 0
    assert pid.out == pytest.approx(1.0)
    assert pid.calc(0, 3) == pytest.approx(3.0)


def test_delta_mode_accumulates():
    pid = make(mode=PidMode.DELTA, i=1.0)
    first = pid.calc(0, 2)
    for n in range(2, 5):
        assert pid.calc(0, 2) == pytest.approx(n * first)


def test_error_history_shifts():
    pid = make(p=1.0)
    pid.calc(0, 1)
    pid.calc(0, 2)
    pid.calc(0, 3)
    assert (pid.err_llast, pid.err_last) == (2, 3)


def test_smoothing_lies_between_raw_and_previous():
    pid = make(p=1.0)
    pid.calc(0, 10)
    pid.calc(0, 20, smooth=True)
    assert 10 < pid.err_now < 20


def test_angle_calc_takes_short_way():
    wrapped = make(p=1.0)
    straight = make(p=1.0)
    assert wrapped.angle_calc(350, 10) == pytest.approx(straight.calc(0, 20))
    assert -180 <= wrapped.err_now < 180


def test_yaw_calc_bridges_jump():
    wrapped = make(p=1.0)
    straight = make(p=1.0)
    assert wrapped.yaw_calc(170, -170) == pytest.approx(straight.calc(0, 20))
    assert wrapped.yaw_calc(-170, 170) == pytest.approx(straight.calc(0, -20))


def test_i_separation_skips_integral_for_large_error():
    separated = make(p=1.0, i=1.0)
    p_only = make(p=1.0)
    assert separated.calc_i_separation(0, 50, False, 10) == pytest.approx(p_only.calc(0, 50))
    assert separated.iout == 0


def test_i_separation_matches_plain_calc_for_small_error():
    separated = make(p=1.0, i=0.5)
    plain = make(p=1.0, i=0.5)
    for _ in range(3):
        assert separated.calc_i_separation(0, 2, False, 10) == pytest.approx(plain.calc(0, 2))


def test_i_separation_delta_mode_skips_integral():
    pid = make(mode=PidMode.DELTA, i=1.0)
    assert pid.calc_i_separation(0, 50, False, 10) == 0


def test_calc_d_is_antisymmetric_in_measurement_change():
    a = make(d=1.0)
    b = make(d=1.0)
    assert a.calc_d(0, 0, 5, 3) == pytest.approx(-b.calc_d(0, 0, 3, 5))
    assert a.calc_d(0, 0, 5, 3) != 0


def test_calc_d_without_change_matches_pi():
    a = make(p=1.0, i=0.5, d=3.0)
    b = make(p=1.0, i=0.5)
    assert a.calc_d(0, 4, 7, 7) == pytest.approx(b.calc(0, 4))


def test_reset_and_clear():
    pid = make(p=1.0, i=1.0)
    pid.calc(0, 5)
    pid.clear()
    assert (pid.pout, pid.iout, pid.dout, pid.out) == (0, 0, 0, 0)
    pid.calc(0, 5)
    pid.reset(4.0, 0.0, 2.0)
    assert (pid.p, pid.i, pid.d) == (4.0, 0.0, 2.0)
    assert pid.out == 0
    assert pid.err_last == 5


def test_negative_bounds_rejected():
    with pytest.raises(ValueError):
        Pid(PidMode.POSITION, -1, 0)


def test_default_controllers_use_tuned_values():
    pids = default_controllers()
    x = pids["x"]
    assert (x.mode, x.max_out, x.integral_limit, x.p) == (PidMode.POSITION, 3, 1, 0.02)
    speed = pids["speed_left"]
    assert (speed.mode, speed.max_out, speed.integral_limit, speed.p, speed.i) == (
        PidMode.DELTA, 200, 50, 0.5, 0.2
    )
    loc = pids["location_right"]
    assert (loc.max_out, loc.integral_limit, loc.p) == (40, 0, 0.1)
    assert pids["x"] is not pids["y"]