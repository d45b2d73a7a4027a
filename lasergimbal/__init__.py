"""Control logic for a two-axis laser-tracking gimbal: frames, PID loops, sensor protocols, scheduling."""

__version__ = "0.1.0"

__all__ = [
    "emm_v5",
    "encoder",
    "grayscale",
    "hwt101",
    "keys",
    "laser",
    "motor_link",
    "pid",
    "ringbuffer",
    "schedule",
    "step_motor",
]