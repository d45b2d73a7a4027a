"""Fixed-size byte ring buffer using mirror bits to tell full from empty."""

from __future__ import annotations

from enum import Enum

_MAX_SIZE = 0x7FFF  # indices are 15 bits wide


class _State(Enum):
    EMPTY = 0
    FULL = 1
    HALF_FULL = 2


class RingBuffer:
    """A byte FIFO of fixed capacity.

    The capacity is the requested size rounded down to a multiple of four.
    Read and write positions each carry a mirror flag, so a buffer whose
    positions coincide is empty when the flags agree and full when they differ.
    """

    def __init__(self, size: int) -> None:
        if size <= 0 or size > _MAX_SIZE:
            raise ValueError(f"ring buffer size must be in 1..{_MAX_SIZE}, got {size}")
        capacity = size & ~3
        if capacity == 0:
            raise ValueError(f"ring buffer size {size} rounds down to zero")
        self._buffer = bytearray(capacity)
        self._size = capacity
        self._read_index = 0
        self._read_mirror = False
        self._write_index = 0
        self._write_mirror = False

    @property
    def size(self) -> int:
        """Capacity of the buffer in bytes."""
        return self._size

    def _status(self) -> _State:
        if self._read_index == self._write_index:
            if self._read_mirror == self._write_mirror:
                return _State.EMPTY
            return _State.FULL
        return _State.HALF_FULL

    def reset(self) -> None:
        """Discard all contents."""
        self._read_index = 0
        self._read_mirror = False
        self._write_index = 0
        self._write_mirror = False

    def data_len(self) -> int:
        """Number of bytes waiting to be read."""
        state = self._status()
        if state is _State.EMPTY:
            return 0
        if state is _State.FULL:
            return self._size
        wi, ri = self._write_index, self._read_index
        if wi > ri:
            return wi - ri
        return self._size - (ri - wi)

    def space_len(self) -> int:
        """Number of bytes that can still be written."""
        return self._size - self.data_len()

    def __len__(self) -> int:
        return self.data_len()

    def _write_block(self, data: bytes) -> bool:
        """Copy data at the write position; return True if it wrapped."""
        length = len(data)
        tail = self._size - self._write_index
        if tail > length:
            self._buffer[self._write_index:self._write_index + length] = data
            self._write_index += length
            return False
        self._buffer[self._write_index:] = data[:tail]
        self._buffer[:length - tail] = data[tail:]
        self._write_mirror = not self._write_mirror
        self._write_index = length - tail
        return True

    def put(self, data: bytes) -> int:
        """Append as much of data as fits; return the number of bytes stored."""
        data = bytes(data)
        space = self.space_len()
        if space == 0:
            return 0
        if space < len(data):
            data = data[:space]
        self._write_block(data)
        return len(data)

    def put_force(self, data: bytes) -> int:
        """Append data, overwriting the oldest bytes when space runs out."""
        data = bytes(data)
        space = self.space_len()
        if len(data) > self._size:
            data = data[len(data) - self._size:]
        length = len(data)
        wrapped = self._write_block(data)
        if length > space:
            if wrapped and self._write_index <= self._read_index:
                self._read_mirror = not self._read_mirror
            self._read_index = self._write_index
        return length

    def _advance_write(self) -> bool:
        if self._write_index == self._size - 1:
            self._write_mirror = not self._write_mirror
            self._write_index = 0
            return True
        self._write_index += 1
        return False

    def putchar(self, ch: int) -> bool:
        """Append one byte; return False if the buffer is full."""
        if not self.space_len():
            return False
        self._buffer[self._write_index] = ch
        self._advance_write()
        return True

    def putchar_force(self, ch: int) -> None:
        """Append one byte, dropping the oldest byte if the buffer is full."""
        was_full = self._status() is _State.FULL
        self._buffer[self._write_index] = ch
        wrapped = self._advance_write()
        if was_full:
            if wrapped:
                self._read_mirror = not self._read_mirror
            self._read_index = self._write_index

    def get(self, length: int) -> bytes:
        """Remove and return up to length bytes from the front."""
        if length < 0:
            raise ValueError("length must not be negative")
        available = self.data_len()
        if available == 0:
            return b""
        length = min(length, available)
        tail = self._size - self._read_index
        if tail > length:
            out = bytes(self._buffer[self._read_index:self._read_index + length])
            self._read_index += length
            return out
        out = bytes(self._buffer[self._read_index:]) + bytes(self._buffer[:length - tail])
        self._read_mirror = not self._read_mirror
        self._read_index = length - tail
        return out

    def peek(self) -> bytes:
        """Remove and return the readable bytes that lie contiguously in storage.

        Only the run up to the end of the underlying storage is returned; a
        further call yields the part that wrapped around.
        """
        available = self.data_len()
        if available == 0:
            return b""
        start = self._read_index
        tail = self._size - start
        if tail > available:
            self._read_index += available
            return bytes(self._buffer[start:start + available])
        self._read_mirror = not self._read_mirror
        self._read_index = 0
        return bytes(self._buffer[start:])

    def getchar(self) -> int | None:
        """Remove and return one byte, or None if the buffer is empty."""
        if not self.data_len():
            return None
        ch = self._buffer[self._read_index]
        if self._read_index == self._size - 1:
            self._read_mirror = not self._read_mirror
            self._read_index = 0
        else:
            self._read_index += 1
        return ch