# lasergimbal

Control logic for a two-axis laser-tracking gimbal, in plain Python with no
runtime dependencies. The package covers the parts of such a system that do
not depend on particular hardware. It builds and parses serial frames, runs
the control loops and schedules periodic work. You supply the byte transport
as callables, such as the `write` method of a serial port or a list's
`append` in tests.

## Modules

| Module | Purpose |
| --- | --- |
| `lasergimbal.ringbuffer` | `RingBuffer`: a fixed-size byte FIFO (capacity rounded down to a multiple of four) with `put`, `put_force`, `putchar`, `putchar_force`, `get`, `peek`, `getchar`, `data_len`, `space_len` and `reset` |
| `lasergimbal.emm_v5` | Command frame builders for Emm V5 closed-loop stepper drivers (`velocity_control`, `position_control`, `stop_now`, `enable_control`, `read_sys_params` and others), plus `parse_response`, which returns a `Response` or raises `ResponseError` |
| `lasergimbal.pid` | `Pid` controllers in positional or incremental form (`PidMode`). `calc` runs a plain step, and `calc_i_separation`, `calc_d`, `angle_calc` and `yaw_calc` are the variants. `default_controllers()` returns the stock tuning |
| `lasergimbal.encoder` | `Encoder`: `update(raw_count)` turns one period's 16-bit counter value into speed (cm/s) and accumulated distance |
| `lasergimbal.hwt101` | `Hwt101`: a streaming packet decoder for the HWT101 yaw gyroscope, with configuration commands (baud rate, output rate, calibration, yaw reset) |
| `lasergimbal.step_motor` | `StepMotorPair`: the X/Y stepper pair, driven by speed percentage, RPM or relative pulse moves |
| `lasergimbal.laser` | `parse_maixcam_frame` for checksummed `$R,x,y,CS` frames. `LaserTracker` takes `red:(x,y)` and `gre:(x,y)` lines and runs a step that moves the green spot towards the red one. Malformed input raises `LaserParseError` |
| `lasergimbal.grayscale` | `GrayscaleSensor`: the register protocol of an 8-channel I²C line sensor, with the bit helpers `nth_bit`, `split_bits` and `format_digital` |
| `lasergimbal.keys` | `KeyScanner`: press and release edge detection on key codes |
| `lasergimbal.schedule` | `Scheduler`: runs cooperative tasks at fixed millisecond periods |
| `lasergimbal.motor_link` | `MotorLink`: drains the receive buffers, dispatches motor replies, tracks axis angles, checks angle limits and handles the `reset` and `set(x,y)` text commands |

## Examples

### Build a stepper frame and decode a reply

```python
from lasergimbal import emm_v5

frame = emm_v5.velocity_control(1, 0, 30, 0, False)
# frame == b"\x01\xf6\x00\x00\x1e\x00\x00\x6b"

reply = emm_v5.parse_response(bytes([0x01, 0x35, 0x00, 0x00, 0x1E, 0x6B]))
# reply.func == 0x35, reply.speed == 30
```

### Drive the gimbal motors

```python
from lasergimbal.step_motor import StepMotorPair

x_frames, y_frames = [], []
motors = StepMotorPair(x_frames.append, y_frames.append)
motors.init()                 # enable both motors, then stop them
motors.set_speed_rpm(1.5, -0.5)
motors.stop()
```

### Track the red spot with the green one

```python
from lasergimbal.laser import LaserTracker
from lasergimbal.pid import default_controllers

pids = default_controllers()
tracker = LaserTracker()
tracker.parse_line("red:(120,80)\n")
tracker.parse_line("gre:(100,90)\n")
out_x, out_y = tracker.step(pids["x"], pids["y"], motors)
```

### Buffer incoming bytes

```python
from lasergimbal.ringbuffer import RingBuffer

rb = RingBuffer(64)
rb.put(b"red:(120,80)\n")
chunk = rb.get(len(rb))
```

### Run periodic tasks

```python
from lasergimbal.motor_link import MotorLink
from lasergimbal.schedule import Scheduler

link = MotorLink(motors, tracker)
scheduler = Scheduler()          # uses a monotonic millisecond clock by default
scheduler.add(link.process, 1)
scheduler.add(lambda: tracker.step(pids["x"], pids["y"], motors), 20)
scheduler.run()                  # call repeatedly; returns how many tasks ran
```

Received bytes go into `link.x_buffer`, `link.y_buffer` and `link.pi_buffer`
(`RingBuffer` objects of 64 bytes). `link.process()` drains them.

## What the package does not do

The package does not open serial ports or I²C buses itself. Every device
class takes callables for writing, reading, timing and sleeping. The package
also does not produce PWM for DC motors, draw on a display or read GPIO pins:
`KeyScanner` and `Encoder` are handed the values that were read. There is no
command-line program and no ready-made main loop. You put one together from
`Scheduler` and the classes above.

## Testing

The test suite uses pytest and is declared in the `test` extra:

```
pip install .[test]
pytest
```