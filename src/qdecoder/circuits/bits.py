# src/qdecoder/circuits/bits.py
"""Bit-level helpers shared by fragments, decoders and accelerators."""
from __future__ import annotations

from typing import List, Sequence


def int_to_bits(value: int, width: int, lsb_first: bool = True) -> List[int]:
    """Binary expansion of ``value`` on ``width`` bits.

    Raises
    ------
    ValueError
        If ``value`` is negative or does not fit in ``width`` bits.
    """
    if value < 0:
        raise ValueError(f"value must be non-negative, got {value}")
    if width < 0 or value >= (1 << width):
        raise ValueError(f"value {value} does not fit in {width} bit(s)")
    bits = [(value >> k) & 1 for k in range(width)]
    return bits if lsb_first else bits[::-1]


def bits_to_int(bits: Sequence[int], lsb_first: bool = True) -> int:
    ordered = bits if lsb_first else list(reversed(bits))
    value = 0
    for k, bit in enumerate(ordered):
        if bit not in (0, 1, "0", "1"):
            raise ValueError(f"invalid bit {bit!r}")
        value |= int(bit) << k
    return value


def gray_code(index: int) -> int:
    """Reflected binary Gray code of ``index``."""
    return index ^ (index >> 1)


def gray_code_string(binary: str) -> str:
    """Gray code of a binary string, MSB first (``"011"`` -> ``"010"``)."""
    if not binary:
        return ""
    out = [binary[0]]
    for k in range(1, len(binary)):
        out.append("0" if binary[k] == binary[k - 1] else "1")
    return "".join(out)


def different_bit_index(a: int, b: int) -> int:
    """Index of the single bit in which ``a`` and ``b`` differ, or -1 if equal.

    Raises
    ------
    ValueError
        If the values differ in more than one bit.
    """
    diff = a ^ b
    if diff == 0:
        return -1
    if diff & (diff - 1):
        raise ValueError(f"{a} and {b} differ in more than one bit")
    return diff.bit_length() - 1


def flip_bitstring(bitstring: str) -> str:
    return bitstring.translate(str.maketrans("01", "10"))


def symbol_chunk(value: int, width: int) -> str:
    """Render a symbol index as a chunk string, most significant bit first."""
    return "".join(str(b) for b in int_to_bits(value, width, lsb_first=False))


def register_value(bitstring: str, positions: Sequence[int]) -> int:
    """Read an LSB-first register from selected characters of ``bitstring``."""
    return bits_to_int([bitstring[p] for p in positions])
