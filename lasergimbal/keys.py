"""Edge detection for the push buttons."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class KeyScanner:
    """Tracks the key code read each scan and reports press and release edges.

    ``value`` is the key code just read (0 for none), ``down`` holds the bits
    that became set and ``up`` the bits that became clear since the last scan.
    """

    value: int = 0
    old: int = 0
    down: int = 0
    up: int = 0

    def update(self, value: int) -> int:
        """Record a new key code; return the newly pressed bits."""
        if not 0 <= value <= 0xFF:
            raise ValueError(f"key code must be in 0..255, got {value}")
        change = value ^ self.old
        self.value = value
        self.down = value & change
        self.up = ~value & change & 0xFF
        self.old = value
        return self.down