# src/qdecoder/circuits/__init__.py
"""
Circuit IR, gate specs, bit helpers and the ancilla arena.
"""

from qdecoder.circuits.gates import GateSpec, GateType, STANDARD_GATES, gate_matrix
from qdecoder.circuits.circuit import Circuit, Instruction
from qdecoder.circuits.ancilla import AncillaPool, Region

__all__ = [
    "AncillaPool",
    "Circuit",
    "GateSpec",
    "GateType",
    "Instruction",
    "Region",
    "STANDARD_GATES",
    "gate_matrix",
]
