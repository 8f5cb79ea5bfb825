# src/qdecoder/primitives/arithmetic.py
"""
Reversible arithmetic: ripple-carry addition and greater-than comparison.

Both fragments use the Cuccaro MAJ/UMA ladder, which needs one carry qubit
and no other scratch space. Registers are least-significant bit first.
"""
from __future__ import annotations

from typing import Any, Mapping

from qdecoder.circuits.circuit import Circuit
from qdecoder.primitives.base import CircuitFragment, register_fragment


def _maj(circuit: Circuit, c: int, x: int, y: int) -> None:
    """Majority: leaves the carry of ``c + x + y`` in ``y``."""
    circuit.cx(y, x)
    circuit.cx(y, c)
    circuit.mcx([c, x], y)


def _maj_inverse(circuit: Circuit, c: int, x: int, y: int) -> None:
    circuit.mcx([c, x], y)
    circuit.cx(y, c)
    circuit.cx(y, x)


def _uma(circuit: Circuit, c: int, x: int, y: int) -> None:
    """Unmajority-and-add: restores ``c`` and ``y``, leaves the sum bit in ``x``."""
    circuit.mcx([c, x], y)
    circuit.cx(y, c)
    circuit.cx(c, x)


@register_fragment("RippleCarryAdder")
class RippleCarryAdder(CircuitFragment):
    """In-place addition ``sum_bits += adder_bits``.

    Options
    -------
    adder_bits : list of int
        Addend, restored on exit.
    sum_bits : list of int
        Accumulator. Either the same width as ``adder_bits`` (addition modulo
        ``2**n``) or one bit wider, in which case the carry-out is XORed into
        the top bit.
    c_in : int
        Carry qubit, must start and end in 0.
    """

    required_options = ("adder_bits", "sum_bits", "c_in")

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        a = self.qubits(options, "adder_bits")
        s = self.qubits(options, "sum_bits")
        c_in = self.qubit(options, "c_in")
        n = len(a)
        if len(s) not in (n, n + 1):
            self.fail(f"sum_bits must hold {n} or {n + 1} qubits, got {len(s)}")
        self.check_disjoint(adder_bits=a, sum_bits=s, c_in=[c_in])

        b = s[:n]
        _maj(circuit, c_in, b[0], a[0])
        for i in range(1, n):
            _maj(circuit, a[i - 1], b[i], a[i])
        if len(s) == n + 1:
            circuit.cx(a[n - 1], s[n])
        for i in range(n - 1, 0, -1):
            _uma(circuit, a[i - 1], b[i], a[i])
        _uma(circuit, c_in, b[0], a[0])


@register_fragment("CompareGT")
class CompareGT(CircuitFragment):
    """Flip ``qubit_flag`` iff ``qubits_a > qubits_b``; both registers restored.

    The carry-out of ``a + ~b`` is set exactly when ``a > b``. It is computed
    with a MAJ ladder, copied into the flag and uncomputed.

    Options
    -------
    qubits_a, qubits_b : list of int
        Operands of equal width.
    qubit_flag : int
        Result qubit.
    qubit_ancilla : int
        Carry qubit, must start and end in 0.
    is_LSB : bool
        ``True`` (default) when registers are least-significant bit first.
    """

    required_options = ("qubits_a", "qubits_b", "qubit_flag", "qubit_ancilla")

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        a = self.qubits(options, "qubits_a")
        b = self.qubits(options, "qubits_b")
        flag = self.qubit(options, "qubit_flag")
        carry = self.qubit(options, "qubit_ancilla")
        if len(a) != len(b):
            self.fail(f"register widths differ: {len(a)} != {len(b)}")
        self.check_disjoint(qubits_a=a, qubits_b=b, qubit_flag=[flag], qubit_ancilla=[carry])
        if not options.get("is_LSB", True):
            a, b = a[::-1], b[::-1]
        n = len(a)

        for q in b:
            circuit.x(q)
        _maj(circuit, carry, b[0], a[0])
        for i in range(1, n):
            _maj(circuit, a[i - 1], b[i], a[i])
        circuit.cx(a[n - 1], flag)
        for i in range(n - 1, 0, -1):
            _maj_inverse(circuit, a[i - 1], b[i], a[i])
        _maj_inverse(circuit, carry, b[0], a[0])
        for q in b:
            circuit.x(q)
