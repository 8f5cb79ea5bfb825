# src/qdecoder/decoders/layout.py
"""
Qubit registers of the quantum decoder.

:class:`DecoderRegisters` groups the register lists the decoder is
configured with and checks them against a :class:`MetricPrecision`.
:class:`DecoderLayout` lays the registers out contiguously for a given
probability table, which is how callers usually obtain them.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List

from qdecoder.decoders.metric_encoder import MetricPrecision
from qdecoder.exceptions import PreconditionViolation


@dataclass
class DecoderRegisters:
    """Register lists (qubit indices, LSB first) used by the quantum decoder.

    Attributes
    ----------
    qubits_metric : List[int]
        ``L * ml`` symbol metrics.
    qubits_string : List[int]
        ``L * S`` symbols.
    qubits_init_null, qubits_init_repeat, qubits_superfluous_flags : List[int]
        One flag per timestep.
    qubits_total_metric_buffer : List[int]
        ``ms - ml`` high bits of the total metric (the low ``ml`` bits are the
        first symbol metric).
    qubits_beam_metric, qubits_best_score : List[int]
        ``mb`` bits each.
    qubits_ancilla_pool : List[int]
        Scratch qubits, at least ``MetricPrecision.required_ancillas``.
    """
    qubits_metric: List[int] = field(default_factory=list)
    qubits_string: List[int] = field(default_factory=list)
    qubits_init_null: List[int] = field(default_factory=list)
    qubits_init_repeat: List[int] = field(default_factory=list)
    qubits_superfluous_flags: List[int] = field(default_factory=list)
    qubits_total_metric_buffer: List[int] = field(default_factory=list)
    qubits_beam_metric: List[int] = field(default_factory=list)
    qubits_best_score: List[int] = field(default_factory=list)
    qubits_ancilla_pool: List[int] = field(default_factory=list)

    def as_dict(self) -> Dict[str, List[int]]:
        return {f.name: list(getattr(self, f.name)) for f in fields(self)}

    @property
    def total_num_qubits(self) -> int:
        qubits = [q for register in self.as_dict().values() for q in register]
        return max(qubits) + 1 if qubits else 0

    @property
    def total_metric(self) -> List[int]:
        """Full ``ms``-bit total metric register."""
        ml = len(self.qubits_metric) // max(1, len(self.qubits_superfluous_flags))
        return self.qubits_metric[:ml] + self.qubits_total_metric_buffer

    def validate(self, precision: MetricPrecision) -> None:
        """Check widths, disjointness and the ancilla budget.

        Raises
        ------
        PreconditionViolation
            On the first failed check.
        """
        n = precision.num_timesteps
        expected = {
            "qubits_metric": n * precision.symbol_metric,
            "qubits_string": n * precision.symbol_width,
            "qubits_init_null": n,
            "qubits_init_repeat": n,
            "qubits_superfluous_flags": n,
            "qubits_total_metric_buffer": precision.string_metric - precision.symbol_metric,
            "qubits_beam_metric": precision.beam_metric,
            "qubits_best_score": precision.beam_metric,
        }
        for name, width in expected.items():
            actual = len(getattr(self, name))
            if actual != width:
                raise PreconditionViolation(f"{name} holds {actual} qubit(s), expected {width}")

        required = precision.required_ancillas
        if len(self.qubits_ancilla_pool) < required:
            raise PreconditionViolation(
                f"ancilla pool holds {len(self.qubits_ancilla_pool)} qubit(s), "
                f"at least {required} required"
            )

        owner: Dict[int, str] = {}
        for name, register in self.as_dict().items():
            for q in register:
                if q < 0:
                    raise PreconditionViolation(f"{name} contains negative qubit index {q}")
                if q in owner:
                    raise PreconditionViolation(
                        f"qubit {q} is used by both {owner[q]} and {name}"
                    )
                owner[q] = name


class DecoderLayout:
    """Contiguous register layout for a probability table.

    Parameters
    ----------
    precision : MetricPrecision
        Problem sizes.
    start : int
        First qubit index.
    """

    def __init__(self, precision: MetricPrecision, start: int = 0):
        self.precision = precision
        self._next_qubit_idx = start
        n, s = precision.num_timesteps, precision.symbol_width
        self.registers = DecoderRegisters(
            qubits_metric=self._take(n * precision.symbol_metric),
            qubits_string=self._take(n * s),
            qubits_init_null=self._take(n),
            qubits_init_repeat=self._take(n),
            qubits_superfluous_flags=self._take(n),
            qubits_total_metric_buffer=self._take(precision.string_metric - precision.symbol_metric),
            qubits_beam_metric=self._take(precision.beam_metric),
            qubits_best_score=self._take(precision.beam_metric),
            qubits_ancilla_pool=self._take(precision.required_ancillas),
        )

    @classmethod
    def build(cls, probability_table, metric_precision: int, start: int = 0) -> "DecoderLayout":
        return cls(MetricPrecision.from_table(probability_table, metric_precision), start)

    def _take(self, count: int) -> List[int]:
        qubits = list(range(self._next_qubit_idx, self._next_qubit_idx + count))
        self._next_qubit_idx += count
        return qubits

    @property
    def total_num_qubits(self) -> int:
        return self._next_qubit_idx

    def to_parameters(self) -> Dict[str, Any]:
        """Register entries of a ``quantum-decoder`` parameter mapping."""
        return self.registers.as_dict()

    def __repr__(self) -> str:
        return f"DecoderLayout(precision={self.precision}, total_num_qubits={self.total_num_qubits})"
