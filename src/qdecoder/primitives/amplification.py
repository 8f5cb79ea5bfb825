# src/qdecoder/primitives/amplification.py
"""Grover-style amplitude amplification."""
from __future__ import annotations

from typing import Any, Mapping, Sequence

from qdecoder.circuits.circuit import Circuit
from qdecoder.primitives.base import CircuitFragment, register_fragment


def zero_reflection(qubits: Sequence[int]) -> Circuit:
    """``I - 2|0><0|`` on ``qubits``."""
    qubits = sorted(qubits)
    circuit = Circuit("zero_reflection")
    if not qubits:
        return circuit
    target, rest = qubits[-1], qubits[:-1]
    for q in qubits:
        circuit.x(q)
    circuit.h(target)
    circuit.mcx(rest, target)
    circuit.h(target)
    for q in qubits:
        circuit.x(q)
    return circuit


def phase_oracle(flag: int, marker: Circuit) -> Circuit:
    """Turn a bit-flip ``marker`` acting on ``flag`` into a phase flip.

    The flag is prepared in ``|->`` before the marker and returned to 0 after.
    """
    circuit = Circuit(f"phase_{marker.name}")
    circuit.x(flag)
    circuit.h(flag)
    circuit.extend(marker)
    circuit.h(flag)
    circuit.x(flag)
    return circuit


@register_fragment("AmplitudeAmplification")
class AmplitudeAmplification(CircuitFragment):
    """``Q**power`` with ``Q = A S0 A^dagger O``.

    The state preparation ``A`` itself is not emitted; callers apply it once
    before the amplification.

    Options
    -------
    oracle : Circuit
        Phase oracle ``O`` marking good states.
    state_preparation : Circuit
        ``A``. Must be measurement free.
    power : int
        Number of Grover iterations (``>= 0``).
    qubits_zero : list of int, optional
        Qubits of the zero reflection; defaults to those touched by ``A``.
    """

    required_options = ("oracle", "state_preparation", "power")

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        oracle = options["oracle"]
        state_prep = options["state_preparation"]
        if not isinstance(oracle, Circuit) or not isinstance(state_prep, Circuit):
            self.fail("oracle and state_preparation must be Circuit instances")
        power = options["power"]
        if isinstance(power, bool) or not isinstance(power, int) or power < 0:
            self.fail(f"power must be a non-negative integer, got {power!r}")
        if state_prep.measured_qubits:
            self.fail("state_preparation must not contain measurements")
        if "qubits_zero" in options:
            zero_qubits = self.qubits(options, "qubits_zero")
        else:
            zero_qubits = sorted(state_prep.unique_bits())

        grover = Circuit("grover_iterate")
        grover.extend(oracle)
        grover.extend(state_prep.inverse())
        grover.extend(zero_reflection(zero_qubits))
        grover.extend(state_prep)
        circuit.extend(grover.power(power))
