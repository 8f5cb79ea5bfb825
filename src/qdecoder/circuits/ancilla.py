# src/qdecoder/circuits/ancilla.py
"""
Ancilla arena.

The decoders receive one flat list of scratch qubits and carve it into
regions. A region is owned by exactly one builder between
:meth:`AncillaPool.allocate` and :meth:`AncillaPool.release`; a few stages
instead address the pool by fixed offsets, listed below.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from qdecoder.exceptions import PreconditionViolation

logger = logging.getLogger(__name__)

# Fixed-offset conventions into the pool.
CONTROL_SWAP_OFFSET = 0
ORACLE_FLAG_OFFSET = 0
ORACLE_CARRY_OFFSET = 1
ADDER_CARRY_OFFSETS = (0, 1, 2)


@dataclass(frozen=True)
class Region:
    """A contiguous-by-allocation block of pool qubits."""

    name: str
    qubits: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.qubits)

    def __getitem__(self, item):
        return self.qubits[item]


class AncillaPool:
    """Allocator over a fixed list of scratch qubits.

    Parameters
    ----------
    qubits : Sequence[int]
        Pool qubits in offset order. Allocation always hands out the lowest
        free offsets first.
    """

    def __init__(self, qubits: Sequence[int]):
        self._qubits: Tuple[int, ...] = tuple(int(q) for q in qubits)
        if len(set(self._qubits)) != len(self._qubits):
            raise PreconditionViolation("ancilla pool contains repeated qubits")
        self._owner: Dict[int, str] = {}
        self._excluded: Set[int] = set()
        self._peak_in_use = 0

    @property
    def qubits(self) -> Tuple[int, ...]:
        return self._qubits

    @property
    def size(self) -> int:
        return len(self._qubits)

    @property
    def in_use(self) -> int:
        return len(self._owner)

    @property
    def peak_in_use(self) -> int:
        """Largest number of simultaneously allocated qubits seen so far."""
        return self._peak_in_use

    def at(self, offset: int) -> int:
        """Qubit at a fixed offset of the pool."""
        if not 0 <= offset < len(self._qubits):
            raise PreconditionViolation(
                f"ancilla offset {offset} outside pool of size {len(self._qubits)}"
            )
        return self._qubits[offset]

    def window(self, start: int, stop: int) -> Tuple[int, ...]:
        if stop > len(self._qubits):
            raise PreconditionViolation(
                f"ancilla window [{start}, {stop}) outside pool of size {len(self._qubits)}"
            )
        return self._qubits[start:stop]

    def free_qubits(self, start: int = 0) -> List[int]:
        """Unallocated, non-excluded qubits from offset ``start`` onwards."""
        return [
            q for q in self._qubits[start:]
            if q not in self._owner and q not in self._excluded
        ]

    def allocate(self, count: int, name: str = "scratch") -> Region:
        """Claim the ``count`` lowest free qubits."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        free = self.free_qubits()
        if count > len(free):
            raise PreconditionViolation(
                f"ancilla pool exhausted: region '{name}' needs {count} qubit(s), "
                f"{len(free)} free of {len(self._qubits)}"
            )
        region = Region(name, tuple(free[:count]))
        for q in region.qubits:
            self._owner[q] = name
        self._peak_in_use = max(self._peak_in_use, len(self._owner))
        logger.debug("Allocated region %s -> %s", name, region.qubits)
        return region

    def release(self, region: Region) -> None:
        for q in region.qubits:
            if self._owner.get(q) != region.name:
                raise PreconditionViolation(
                    f"qubit {q} is not owned by region '{region.name}'"
                )
        for q in region.qubits:
            del self._owner[q]

    def exclude(self, qubits: Iterable[int]) -> None:
        """Remove qubits (e.g. those touched by another circuit) from circulation."""
        self._excluded.update(int(q) for q in qubits)

    def __contains__(self, qubit: int) -> bool:
        return qubit in self._qubits

    def __len__(self) -> int:
        return len(self._qubits)

    def __repr__(self) -> str:
        return f"AncillaPool(size={self.size}, in_use={self.in_use}, excluded={len(self._excluded)})"
