# src/qdecoder/decoders/oracle.py
"""Phase oracle marking beams whose metric exceeds the best score so far."""
from __future__ import annotations

from typing import Sequence

from qdecoder.circuits.ancilla import ORACLE_CARRY_OFFSET, ORACLE_FLAG_OFFSET, AncillaPool
from qdecoder.circuits.bits import int_to_bits
from qdecoder.circuits.circuit import Circuit
from qdecoder.exceptions import PreconditionViolation
from qdecoder.primitives.amplification import phase_oracle
from qdecoder.primitives.base import get_fragment


class ComparatorOracle:
    """Callable building the oracle for a given best score.

    Parameters
    ----------
    qubits_beam_metric : Sequence[int]
        Beam metric register (LSB first).
    qubits_best_score : Sequence[int]
        Register loaded with the best score, same width, starts and ends in 0.
    qubits_ancilla_pool : Sequence[int]
        Pool providing the phase flag and the comparator carry.
    """

    def __init__(
        self,
        qubits_beam_metric: Sequence[int],
        qubits_best_score: Sequence[int],
        qubits_ancilla_pool: Sequence[int],
    ):
        if len(qubits_beam_metric) != len(qubits_best_score):
            raise PreconditionViolation(
                f"beam metric ({len(qubits_beam_metric)}) and best score "
                f"({len(qubits_best_score)}) registers differ in width"
            )
        pool = AncillaPool(qubits_ancilla_pool)
        self.qubits_beam_metric = list(qubits_beam_metric)
        self.qubits_best_score = list(qubits_best_score)
        self.flag = pool.at(ORACLE_FLAG_OFFSET)
        self.carry = pool.at(ORACLE_CARRY_OFFSET)

    @property
    def max_score(self) -> int:
        return (1 << len(self.qubits_best_score)) - 1

    def __call__(self, best_score: int) -> Circuit:
        if not 0 <= best_score <= self.max_score:
            raise PreconditionViolation(
                f"best score {best_score} does not fit in {len(self.qubits_best_score)} bit(s)"
            )
        load = Circuit("load_best_score")
        for q, bit in zip(self.qubits_best_score, int_to_bits(best_score, len(self.qubits_best_score))):
            if bit:
                load.x(q)

        compare = get_fragment("CompareGT").expand({
            "qubits_a": self.qubits_beam_metric,
            "qubits_b": self.qubits_best_score,
            "qubit_flag": self.flag,
            "qubit_ancilla": self.carry,
            "is_LSB": True,
        })
        circuit = Circuit(f"oracle_gt_{best_score}")
        circuit.extend(load)
        circuit.extend(phase_oracle(self.flag, compare))
        circuit.extend(load)
        return circuit
