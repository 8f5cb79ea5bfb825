# src/qdecoder/accelerators/sparse_sim.py
"""
Sparse state-vector simulator.

The state is a dictionary from basis index to amplitude, holding only
non-zero entries. Qubit ``k`` is bit ``k`` of the basis index (LSB
convention). Work per gate scales with the size of the superposition
support rather than with ``2**n``, which keeps the decoder circuits
(dozens of qubits, small support) tractable.

Measurements are terminal: once a qubit is measured no later gate may act
on it.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Sequence

import numpy as np

from qdecoder.accelerators.base import Accelerator, register_accelerator
from qdecoder.circuits.circuit import Circuit, Instruction
from qdecoder.circuits.gates import gate_matrix
from qdecoder.exceptions import UnsupportedOperationError

logger = logging.getLogger(__name__)

_DIAGONAL_PHASES = {"Z": -1.0 + 0j, "S": 1j, "S_DAG": -1j}


def _mask(qubits: Iterable[int]) -> int:
    mask = 0
    for q in qubits:
        mask |= 1 << q
    return mask


class SparseState:
    """Sparse pure state.

    Parameters
    ----------
    amplitudes : Optional[Dict[int, complex]]
        Initial amplitudes; defaults to the all-zero basis state.
    atol : float
        Amplitudes with magnitude at or below this are dropped after each gate.
    """

    def __init__(self, amplitudes: Optional[Dict[int, complex]] = None, atol: float = 1e-12):
        self._amps: Dict[int, complex] = dict(amplitudes) if amplitudes else {0: 1.0 + 0j}
        self.atol = atol

    @classmethod
    def basis(cls, index: int) -> "SparseState":
        return cls({int(index): 1.0 + 0j})

    @classmethod
    def from_bits(cls, assignment: Dict[int, int]) -> "SparseState":
        """Basis state with ``assignment[qubit] = bit`` and every other qubit 0."""
        index = 0
        for qubit, bit in assignment.items():
            if bit:
                index |= 1 << qubit
        return cls.basis(index)

    @property
    def amplitudes(self) -> Dict[int, complex]:
        return dict(self._amps)

    def __len__(self) -> int:
        return len(self._amps)

    def amplitude(self, index: int) -> complex:
        return self._amps.get(index, 0j)

    def norm(self) -> float:
        return float(np.sqrt(sum(abs(a) ** 2 for a in self._amps.values())))

    # ------------------------------------------------------------------
    # Evolution
    # ------------------------------------------------------------------

    def run(self, circuit: Iterable[Instruction]) -> "SparseState":
        """Apply every unitary instruction; measurements only freeze their qubit."""
        frozen = set()
        for inst in circuit:
            if frozen.intersection(inst.qubits):
                raise UnsupportedOperationError(
                    f"instruction '{inst}' acts on an already measured qubit"
                )
            if inst.is_measurement:
                frozen.add(inst.targets[0])
                continue
            self.apply(inst)
        return self

    def apply(self, inst: Instruction) -> None:
        on_mask = _mask(inst.controls)
        off_mask = _mask(inst.controls_off)
        if inst.name == "X":
            self._apply_flip(1 << inst.targets[0], on_mask, off_mask)
        elif inst.name in _DIAGONAL_PHASES:
            self._apply_phase(1 << inst.targets[0], _DIAGONAL_PHASES[inst.name], on_mask, off_mask)
        elif inst.name == "SWAP":
            self._apply_swap(inst.targets[0], inst.targets[1], on_mask, off_mask)
        else:
            self._apply_matrix(
                gate_matrix(inst.name, inst.params), 1 << inst.targets[0], on_mask, off_mask
            )

    @staticmethod
    def _enabled(index: int, on_mask: int, off_mask: int) -> bool:
        return (index & on_mask) == on_mask and not (index & off_mask)

    def _apply_flip(self, bit: int, on_mask: int, off_mask: int) -> None:
        self._amps = {
            (index ^ bit if self._enabled(index, on_mask, off_mask) else index): amp
            for index, amp in self._amps.items()
        }

    def _apply_phase(self, bit: int, phase: complex, on_mask: int, off_mask: int) -> None:
        for index in list(self._amps):
            if index & bit and self._enabled(index, on_mask, off_mask):
                self._amps[index] *= phase

    def _apply_swap(self, a: int, b: int, on_mask: int, off_mask: int) -> None:
        both = (1 << a) | (1 << b)
        new: Dict[int, complex] = {}
        for index, amp in self._amps.items():
            if self._enabled(index, on_mask, off_mask) and ((index >> a) & 1) != ((index >> b) & 1):
                index ^= both
            new[index] = amp
        self._amps = new

    def _apply_matrix(self, matrix: np.ndarray, bit: int, on_mask: int, off_mask: int) -> None:
        m00, m01 = complex(matrix[0, 0]), complex(matrix[0, 1])
        m10, m11 = complex(matrix[1, 0]), complex(matrix[1, 1])
        new: Dict[int, complex] = {}
        done = set()
        for index, amp in self._amps.items():
            if not self._enabled(index, on_mask, off_mask):
                new[index] = new.get(index, 0j) + amp
                continue
            low = index & ~bit
            if low in done:
                continue
            done.add(low)
            a0 = self._amps.get(low, 0j)
            a1 = self._amps.get(low | bit, 0j)
            new[low] = new.get(low, 0j) + m00 * a0 + m01 * a1
            new[low | bit] = new.get(low | bit, 0j) + m10 * a0 + m11 * a1
        self._amps = {k: v for k, v in new.items() if abs(v) > self.atol}

    # ------------------------------------------------------------------
    # Readout
    # ------------------------------------------------------------------

    def marginal(self, qubits: Sequence[int]) -> Dict[str, float]:
        """Outcome distribution of ``qubits``, keyed in the given order."""
        dist: Dict[str, float] = {}
        for index, amp in self._amps.items():
            key = "".join("1" if (index >> q) & 1 else "0" for q in qubits)
            dist[key] = dist.get(key, 0.0) + abs(amp) ** 2
        return dist

    def register_values(self, qubits: Sequence[int]) -> Dict[int, float]:
        """Distribution of an LSB-first register read as an integer."""
        dist: Dict[int, float] = {}
        for index, amp in self._amps.items():
            value = 0
            for k, q in enumerate(qubits):
                value |= ((index >> q) & 1) << k
            dist[value] = dist.get(value, 0.0) + abs(amp) ** 2
        return dist


def simulate(circuit: Circuit, initial: Optional[SparseState] = None) -> SparseState:
    """Evolve ``initial`` (default all-zero) through ``circuit``."""
    state = initial if initial is not None else SparseState()
    return state.run(circuit)


@register_accelerator("sparse-sim")
class SparseSimulator(Accelerator):
    """Exact sparse simulator with numpy sampling."""

    def __init__(self, shots: int = 1, seed: Optional[int] = None):
        super().__init__(shots=shots, seed=seed)
        self._rng = np.random.default_rng(seed)

    def _sample(self, circuit: Circuit) -> Dict[str, int]:
        state = simulate(circuit)
        logger.debug("Sparse support after %s: %d basis states", circuit.name, len(state))
        dist = state.marginal(circuit.measured_qubits)
        keys = sorted(dist)
        probs = np.array([dist[k] for k in keys], dtype=float)
        probs /= probs.sum()
        draws = self._rng.choice(len(keys), size=self.shots, p=probs)
        counts = np.bincount(draws, minlength=len(keys))
        return {keys[i]: int(c) for i, c in enumerate(counts) if c}
