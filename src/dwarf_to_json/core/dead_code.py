#!/usr/bin/env python3

"""Detection of functions removed by the linker.

When the linker drops an unreferenced function it leaves the debug entries in
place with addresses starting from zero. In the code section every function
body is preceded by its size as a LEB128 varint, so a body that starts inside
that varint cannot be real code.
"""


def leb128_size(value: int) -> int:
    """Number of bytes needed to encode ``value`` as an unsigned LEB128."""
    return (value.bit_length() + 6) // 7


def is_out_of_range(low_pc: int, high_pc: int) -> bool:
    """
    Check whether the code range [low_pc, high_pc) belongs to a dead function.

    Args:
        low_pc: First address of the function body
        high_pc: One past the last address of the function body

    Returns:
        True if the body would overlap its own size field
    """
    fn_size = (high_pc - low_pc) & 0xFFFFFFFF
    return low_pc <= leb128_size(fn_size)
