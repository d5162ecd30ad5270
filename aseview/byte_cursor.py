from struct import Struct
from typing import Optional

from .errors import OutOfBounds


_BYTE = Struct('<B')
_WORD = Struct('<H')
_SHORT = Struct('<h')
_DWORD = Struct('<I')
_LONG = Struct('<i')
_FLOAT = Struct('<f')


class ByteCursor(object):
    """
    Sequential little-endian reader over an immutable buffer.

    Offsets reported by the cursor (and by the errors it raises) are absolute
    positions in the original file, also for child cursors created with
    :meth:`take`.
    """

    def __init__(self, data: bytes, start: int = 0, end: Optional[int] = None, base: int = 0):
        self._data = memoryview(data)
        self._start = start
        self._pos = start
        self._end = len(data) if end is None else end
        self._base = base

    @property
    def offset(self) -> int:
        """Absolute offset of the next byte to be read."""
        return self._base + self._pos

    @property
    def consumed(self) -> int:
        """Number of bytes read since the cursor was created."""
        return self._pos - self._start

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    def _advance(self, size: int) -> int:
        if size < 0:
            raise OutOfBounds(f'Negative read size {size}', offset=self.offset)
        if self._pos + size > self._end:
            raise OutOfBounds(
                f'Read of {size} bytes past end of buffer ({self.remaining} left)',
                offset=self.offset,
            )
        pos = self._pos
        self._pos += size
        return pos

    def _unpack(self, fmt: Struct):
        pos = self._advance(fmt.size)
        return fmt.unpack_from(self._data, pos)[0]

    def read_byte(self) -> int:
        return self._unpack(_BYTE)

    def read_word(self) -> int:
        return self._unpack(_WORD)

    def read_short(self) -> int:
        return self._unpack(_SHORT)

    def read_dword(self) -> int:
        return self._unpack(_DWORD)

    def read_long(self) -> int:
        return self._unpack(_LONG)

    def read_float(self) -> float:
        return self._unpack(_FLOAT)

    def read_bytes(self, size: int) -> bytes:
        pos = self._advance(size)
        return bytes(self._data[pos : pos + size])

    def read_string(self) -> str:
        """Read a WORD length followed by that many UTF-8 bytes."""
        length = self.read_word()
        return self.read_bytes(length).decode('utf-8', errors='replace')

    def skip(self, size: int) -> None:
        self._advance(size)

    def take(self, size: int) -> 'ByteCursor':
        """
        Consume the next `size` bytes and return a cursor confined to them.

        Args:
            size: Number of bytes the child cursor may read

        Returns:
            ByteCursor that raises OutOfBounds instead of reading past `size`
        """
        pos = self._advance(size)
        return ByteCursor(self._data, start=pos, end=pos + size, base=self._base)
