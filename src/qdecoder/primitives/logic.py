# src/qdecoder/primitives/logic.py
"""Multi-controlled X, controlled swap and register equality."""
from __future__ import annotations

from typing import Any, Mapping

from qdecoder.circuits.circuit import Circuit
from qdecoder.primitives.base import CircuitFragment, register_fragment


@register_fragment("GeneralisedMCX")
class GeneralisedMCX(CircuitFragment):
    """X on ``target`` when every ``controls_on`` qubit is 1 and every
    ``controls_off`` qubit is 0. Either control list may be empty."""

    required_options = ("target",)

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        target = self.qubit(options, "target")
        controls_on = self.qubits(options, "controls_on", allow_empty=True)
        controls_off = self.qubits(options, "controls_off", allow_empty=True)
        self.check_disjoint(controls_on=controls_on, controls_off=controls_off, target=[target])
        circuit.mcx(controls_on, target, controls_off=controls_off)


@register_fragment("ControlledSwap")
class ControlledSwap(CircuitFragment):
    """Swap ``qubits_a[i]`` with ``qubits_b[i]`` for every ``i`` when the
    flags are satisfied.

    Each pair is swapped as ``CX(b, a); MCX(flags + [a], b); CX(b, a)``.
    """

    required_options = ("qubits_a", "qubits_b")

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        qubits_a = self.qubits(options, "qubits_a")
        qubits_b = self.qubits(options, "qubits_b")
        flags_on = self.qubits(options, "flags_on", allow_empty=True)
        flags_off = self.qubits(options, "flags_off", allow_empty=True)
        if len(qubits_a) != len(qubits_b):
            self.fail(f"register widths differ: {len(qubits_a)} != {len(qubits_b)}")
        self.check_disjoint(
            qubits_a=qubits_a, qubits_b=qubits_b, flags_on=flags_on, flags_off=flags_off
        )
        for a, b in zip(qubits_a, qubits_b):
            circuit.cx(b, a)
            circuit.mcx(flags_on + [a], b, controls_off=flags_off)
            circuit.cx(b, a)


@register_fragment("EqualityChecker")
class EqualityChecker(CircuitFragment):
    """Flip ``flag`` when ``qubits_a`` and ``qubits_b`` hold the same value.

    Optional ``controls_on``/``controls_off`` further condition the flip.
    Both registers are restored.
    """

    required_options = ("qubits_a", "qubits_b", "flag")

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        qubits_a = self.qubits(options, "qubits_a")
        qubits_b = self.qubits(options, "qubits_b")
        flag = self.qubit(options, "flag")
        controls_on = self.qubits(options, "controls_on", allow_empty=True)
        controls_off = self.qubits(options, "controls_off", allow_empty=True)
        if len(qubits_a) != len(qubits_b):
            self.fail(f"register widths differ: {len(qubits_a)} != {len(qubits_b)}")
        self.check_disjoint(
            qubits_a=qubits_a, qubits_b=qubits_b, flag=[flag],
            controls_on=controls_on, controls_off=controls_off,
        )
        for a, b in zip(qubits_a, qubits_b):
            circuit.cx(b, a)
        circuit.mcx(controls_on, flag, controls_off=qubits_a + controls_off)
        for a, b in zip(qubits_a, qubits_b):
            circuit.cx(b, a)
