# src/qdecoder/circuits/circuit.py
"""
Gate-level circuit IR.

A :class:`Circuit` is an ordered list of :class:`Instruction` objects. It is
deliberately small: enough to compose fragments, invert them, report which
qubits they touch, and hand them to an accelerator.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple

import stim

from qdecoder.circuits.gates import get_gate_spec
from qdecoder.circuits.stim_export import circuit_to_stim, is_stim_lowerable
from qdecoder.exceptions import UnsupportedOperationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Instruction:
    """A single gate application.

    Attributes
    ----------
    name : str
        Gate name from :data:`~qdecoder.circuits.gates.STANDARD_GATES`.
    targets : Tuple[int, ...]
        Target qubits (one, or two for SWAP).
    controls : Tuple[int, ...]
        Controls that enable the gate when in state 1.
    controls_off : Tuple[int, ...]
        Controls that enable the gate when in state 0.
    params : Tuple[float, ...]
        Continuous gate parameters (the angle of RY).
    """
    name: str
    targets: Tuple[int, ...]
    controls: Tuple[int, ...] = ()
    controls_off: Tuple[int, ...] = ()
    params: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        spec = get_gate_spec(self.name)
        if len(self.targets) != spec.num_targets:
            raise ValueError(
                f"{self.name} expects {spec.num_targets} target(s), got {len(self.targets)}"
            )
        if len(self.params) != len(spec.parameters):
            raise ValueError(
                f"{self.name} expects {len(spec.parameters)} parameter(s), got {len(self.params)}"
            )
        if not spec.is_unitary and (self.controls or self.controls_off):
            raise ValueError(f"{self.name} cannot be controlled")
        qubits = self.qubits
        if len(set(qubits)) != len(qubits):
            raise ValueError(f"{self.name} acts on repeated qubits {qubits}")
        if any(q < 0 for q in qubits):
            raise ValueError(f"{self.name} acts on a negative qubit index {qubits}")

    @property
    def qubits(self) -> Tuple[int, ...]:
        """All qubits involved: targets followed by both control kinds."""
        return self.targets + self.controls + self.controls_off

    @property
    def num_controls(self) -> int:
        return len(self.controls) + len(self.controls_off)

    @property
    def is_measurement(self) -> bool:
        return self.name == "M"

    def inverse(self) -> "Instruction":
        spec = get_gate_spec(self.name)
        if not spec.is_unitary:
            raise UnsupportedOperationError(f"Cannot invert non-unitary instruction {self}")
        if spec.has_parameters:
            return Instruction(
                self.name, self.targets, self.controls, self.controls_off,
                tuple(-p for p in self.params),
            )
        name = spec.inverse_name or self.name
        return Instruction(name, self.targets, self.controls, self.controls_off, self.params)

    def __str__(self) -> str:
        text = self.name
        if self.params:
            text += "(" + ", ".join(f"{p:.6g}" for p in self.params) + ")"
        parts = [" ".join(str(t) for t in self.targets)]
        if self.controls:
            parts.append("ctrl " + " ".join(str(c) for c in self.controls))
        if self.controls_off:
            parts.append("ctrl0 " + " ".join(str(c) for c in self.controls_off))
        return f"{text} " + " | ".join(parts)


class Circuit:
    """Ordered sequence of instructions.

    Parameters
    ----------
    name : str
        Label used in logs and string output.
    instructions : Optional[Iterable[Instruction]]
        Initial instructions.
    """

    def __init__(self, name: str = "circuit", instructions: Optional[Iterable[Instruction]] = None):
        self.name = name
        self._instructions: List[Instruction] = list(instructions or [])

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def append(self, instruction: Instruction) -> "Circuit":
        self._instructions.append(instruction)
        return self

    def add_gate(
        self,
        name: str,
        targets: Sequence[int],
        controls: Sequence[int] = (),
        controls_off: Sequence[int] = (),
        params: Sequence[float] = (),
    ) -> "Circuit":
        return self.append(
            Instruction(
                name,
                tuple(int(t) for t in targets),
                tuple(int(c) for c in controls),
                tuple(int(c) for c in controls_off),
                tuple(float(p) for p in params),
            )
        )

    def extend(self, other: "Circuit") -> "Circuit":
        """Append every instruction of ``other`` (composition)."""
        self._instructions.extend(other._instructions)
        return self

    def x(self, qubit: int) -> "Circuit":
        return self.add_gate("X", [qubit])

    def h(self, qubit: int) -> "Circuit":
        return self.add_gate("H", [qubit])

    def z(self, qubit: int) -> "Circuit":
        return self.add_gate("Z", [qubit])

    def ry(self, qubit: int, theta: float, controls: Sequence[int] = ()) -> "Circuit":
        return self.add_gate("RY", [qubit], controls=controls, params=[theta])

    def cx(self, control: int, target: int) -> "Circuit":
        return self.add_gate("X", [target], controls=[control])

    def mcx(
        self,
        controls: Sequence[int],
        target: int,
        controls_off: Sequence[int] = (),
    ) -> "Circuit":
        return self.add_gate("X", [target], controls=controls, controls_off=controls_off)

    def swap(self, a: int, b: int) -> "Circuit":
        return self.add_gate("SWAP", [a, b])

    def measure(self, qubits: Iterable[int]) -> "Circuit":
        for q in qubits:
            self.add_gate("M", [q])
        return self

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def clone(self, name: Optional[str] = None) -> "Circuit":
        return Circuit(name or self.name, self._instructions)

    def inverse(self) -> "Circuit":
        """Return the adjoint circuit. Measurements cannot be inverted."""
        return Circuit(
            f"{self.name}_dag",
            (inst.inverse() for inst in reversed(self._instructions)),
        )

    def power(self, exponent: int) -> "Circuit":
        if exponent < 0:
            raise ValueError(f"exponent must be non-negative, got {exponent}")
        result = Circuit(f"{self.name}^{exponent}")
        for _ in range(exponent):
            result.extend(self)
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def instructions(self) -> Tuple[Instruction, ...]:
        return tuple(self._instructions)

    def unique_bits(self) -> Set[int]:
        """Set of every qubit touched by the circuit."""
        bits: Set[int] = set()
        for inst in self._instructions:
            bits.update(inst.qubits)
        return bits

    @property
    def measured_qubits(self) -> List[int]:
        """Measured qubits in measurement order."""
        return [inst.targets[0] for inst in self._instructions if inst.is_measurement]

    @property
    def num_qubits(self) -> int:
        bits = self.unique_bits()
        return max(bits) + 1 if bits else 0

    def gate_counts(self) -> dict:
        counts: dict = {}
        for inst in self._instructions:
            key = inst.name if not inst.num_controls else f"C{inst.num_controls}-{inst.name}"
            counts[key] = counts.get(key, 0) + 1
        return counts

    def is_clifford(self) -> bool:
        return all(is_stim_lowerable(inst) for inst in self._instructions)

    def to_stim(self) -> stim.Circuit:
        """Lower to a ``stim.Circuit`` (Clifford content only)."""
        return circuit_to_stim(self)

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def __repr__(self) -> str:
        return f"Circuit(name={self.name!r}, instructions={len(self)}, qubits={self.num_qubits})"

    def __str__(self) -> str:
        return "\n".join(str(inst) for inst in self._instructions)
