#!/usr/bin/env python3

"""Forward-only cursor over a WebAssembly byte view."""

from .errors import WasmFormatError

# u32 varints never use more than 5 bytes (35 encoded bits)
MAX_U32_LEB128_BYTES = 5


class ByteCursor:
    """Reads LEB128 integers, raw slices and names from a borrowed buffer.

    All returned slices are ``memoryview`` objects over the original buffer,
    so nothing is copied until a caller asks for it.
    """

    def __init__(self, data: bytes | memoryview) -> None:
        self._data = memoryview(data)
        self._pos = 0

    @property
    def position(self) -> int:
        """Offset of the next unread byte."""
        return self._pos

    def len(self) -> int:
        """Number of bytes left to read."""
        return len(self._data) - self._pos

    def __len__(self) -> int:
        return self.len()

    def eof(self) -> bool:
        return self._pos >= len(self._data)

    def u32(self) -> int:
        """
        Decode an unsigned LEB128 integer.

        Returns:
            Decoded value, truncated to 32 bits

        Raises:
            WasmFormatError: If the input ends inside the varint
        """
        result = 0
        shift = 0
        pos = self._pos
        for _ in range(MAX_U32_LEB128_BYTES):
            if pos >= len(self._data):
                raise WasmFormatError(f"Truncated varint at offset {self._pos}")
            byte = self._data[pos]
            pos += 1
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                break
            shift += 7
        self._pos = pos
        return result & 0xFFFFFFFF

    def skip(self, amount: int) -> memoryview:
        """
        Consume ``amount`` bytes.

        Returns:
            View over the consumed bytes

        Raises:
            WasmFormatError: If fewer than ``amount`` bytes remain
        """
        if amount < 0 or amount > self.len():
            raise WasmFormatError(
                f"Cannot skip {amount} bytes at offset {self._pos} "
                f"({self.len()} remaining)"
            )
        start = self._pos
        self._pos += amount
        return self._data[start : self._pos]

    def str(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        length = self.u32()
        raw = self.skip(length)
        try:
            return str(raw, "utf-8")
        except UnicodeDecodeError as e:
            raise WasmFormatError(f"Invalid UTF-8 string at offset {self._pos - length}") from e
