# src/qdecoder/decoders/reduction.py
"""
Classical beam reduction.

A measured string is a sequence of symbol chunks. Its beam is obtained by
contracting runs of equal adjacent chunks to one chunk and then dropping
the null chunk (all zeros). For example with one-character chunks and
``-`` as null: ``aa-b -> ab``, ``--a -> a``, ``a-a -> aa``.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence


def split_chunks(bitstring: str, chunk_width: int) -> List[str]:
    if chunk_width < 1:
        raise ValueError(f"chunk_width must be >= 1, got {chunk_width}")
    if len(bitstring) % chunk_width:
        raise ValueError(f"length {len(bitstring)} is not a multiple of {chunk_width}")
    return [bitstring[i:i + chunk_width] for i in range(0, len(bitstring), chunk_width)]


def contract_repeats(chunks: Iterable[str]) -> List[str]:
    """Keep a chunk only when it differs from the last kept chunk."""
    out: List[str] = []
    for chunk in chunks:
        if not out or chunk != out[-1]:
            out.append(chunk)
    return out


def strip_nulls(chunks: Iterable[str], null: str) -> List[str]:
    return [chunk for chunk in chunks if chunk != null]


def reduce_chunks(chunks: Sequence[str], null: Optional[str] = None) -> List[str]:
    """Contract repeats, then strip nulls (default null: all-zero chunk)."""
    if not chunks:
        return []
    if null is None:
        null = "0" * len(chunks[0])
    return strip_nulls(contract_repeats(chunks), null)


def reduce_bitstring(bitstring: str, chunk_width: int) -> str:
    return "".join(reduce_chunks(split_chunks(bitstring, chunk_width)))


def measured_to_chunks(bitstring: str, num_timesteps: int) -> List[str]:
    """Convert a measured string register to MSB-first symbol chunks.

    ``bitstring`` lists the string qubits in register order, so each slot
    arrives least-significant bit first and is reversed here.
    """
    if num_timesteps < 1 or len(bitstring) % num_timesteps:
        raise ValueError(f"cannot split {len(bitstring)} bits into {num_timesteps} symbols")
    width = len(bitstring) // num_timesteps
    return [slot[::-1] for slot in split_chunks(bitstring, width)]


def measured_beam(bitstring: str, num_timesteps: int) -> str:
    """Beam of a measured string register."""
    return "".join(reduce_chunks(measured_to_chunks(bitstring, num_timesteps)))


def flagged_beam(bitstring: str, num_timesteps: int) -> str:
    """Beam of a measured ``string + superfluous flags`` register.

    After the reduction network the beam is the symbols whose flag is 0,
    in register order.
    """
    string, flags = bitstring[:-num_timesteps], bitstring[-num_timesteps:]
    chunks = measured_to_chunks(string, num_timesteps)
    return "".join(chunk for chunk, flag in zip(chunks, flags) if flag == "0")


def aggregate_beams(counts: Mapping[str, int], num_timesteps: int) -> Dict[str, int]:
    """Sum measurement counts per beam; keys sorted lexicographically."""
    beams: Dict[str, int] = {}
    for bitstring, count in counts.items():
        beam = measured_beam(bitstring, num_timesteps)
        beams[beam] = beams.get(beam, 0) + int(count)
    return dict(sorted(beams.items()))


def select_best_beam(beam_counts: Mapping[str, int]) -> str:
    """Beam with the highest count; ties go to the lexicographically smallest."""
    if not beam_counts:
        raise ValueError("no beams to select from")
    best = max(beam_counts.values())
    return min(beam for beam, count in beam_counts.items() if count == best)


def beam_count_upper_bound(alphabet_size: int, num_timesteps: int) -> int:
    """Upper bound on the number of distinct beams of ``num_timesteps`` symbols.

    Counts the non-empty sequences of non-null symbols of length at most
    ``num_timesteps`` plus the empty beam.
    """
    non_null = alphabet_size - 1
    return 1 + sum(non_null ** k for k in range(1, num_timesteps + 1))
