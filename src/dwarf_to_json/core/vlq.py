#!/usr/bin/env python3

"""Base64 VLQ encoding as used by source map ``mappings``.

Each character carries 5 bits of value and a continuation bit; the lowest bit
of the first group is the sign.
"""

B64_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"

VLQ_SHIFT = 5
VLQ_MASK = (1 << VLQ_SHIFT) - 1
VLQ_CONTINUATION = 1 << VLQ_SHIFT


def encode_vlq(value: int) -> str:
    """Encode one signed integer."""
    vlq = (-value << 1) | 1 if value < 0 else value << 1

    chars = []
    while True:
        digit = vlq & VLQ_MASK
        vlq >>= VLQ_SHIFT
        if vlq:
            digit |= VLQ_CONTINUATION
        chars.append(B64_CHARS[digit])
        if not vlq:
            return "".join(chars)


def encode_segment(values: list[int] | tuple[int, ...]) -> str:
    """Encode a group of integers as one mapping segment."""
    return "".join(encode_vlq(v) for v in values)
