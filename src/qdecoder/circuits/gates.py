# src/qdecoder/circuits/gates.py
"""
Gate specifications for the decoder circuit IR.

Every unitary gate in the IR acts on a single target (``SWAP`` on two) and
may carry any number of active-high or active-low controls. The specs below
describe the uncontrolled gate; controls are a property of the
:class:`~qdecoder.circuits.circuit.Instruction` that uses it.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Optional, Sequence, Tuple

import numpy as np


class GateType(Enum):
    """Categories of gates in the IR."""
    SINGLE_QUBIT = auto()
    TWO_QUBIT = auto()
    MEASUREMENT = auto()


@dataclass(frozen=True)
class GateSpec:
    """Specification of an IR gate.

    Attributes
    ----------
    name : str
        Gate name as used in instructions (e.g. "X", "RY", "SWAP").
    gate_type : GateType
        Category of gate.
    num_targets : int
        Number of target qubits.
    parameters : Tuple[str, ...]
        Names of continuous parameters (e.g. ("theta",)).
    is_clifford : bool
        Whether the uncontrolled gate is Clifford.
    inverse_name : Optional[str]
        Name of the inverse gate; ``None`` means the gate is self-inverse
        (or, for parameterized gates, inverted by negating its angle).
    stim_name : Optional[str]
        Corresponding Stim gate name, if different from name.
    """
    name: str
    gate_type: GateType
    num_targets: int
    parameters: Tuple[str, ...] = ()
    is_clifford: bool = True
    inverse_name: Optional[str] = None
    stim_name: Optional[str] = None

    @property
    def has_parameters(self) -> bool:
        """Check if this gate has continuous parameters."""
        return len(self.parameters) > 0

    @property
    def is_unitary(self) -> bool:
        return self.gate_type is not GateType.MEASUREMENT

    def to_stim_name(self) -> str:
        """Get the Stim-compatible gate name."""
        return self.stim_name or self.name


STANDARD_GATES: Dict[str, GateSpec] = {
    "X": GateSpec("X", GateType.SINGLE_QUBIT, 1),
    "Y": GateSpec("Y", GateType.SINGLE_QUBIT, 1),
    "Z": GateSpec("Z", GateType.SINGLE_QUBIT, 1),
    "H": GateSpec("H", GateType.SINGLE_QUBIT, 1),
    "S": GateSpec("S", GateType.SINGLE_QUBIT, 1, inverse_name="S_DAG"),
    "S_DAG": GateSpec("S_DAG", GateType.SINGLE_QUBIT, 1, inverse_name="S"),
    "RY": GateSpec("RY", GateType.SINGLE_QUBIT, 1, parameters=("theta",), is_clifford=False),
    "SWAP": GateSpec("SWAP", GateType.TWO_QUBIT, 2),
    "M": GateSpec("M", GateType.MEASUREMENT, 1),
}

# Controlled variants that Stim knows natively (single active-high control).
STIM_CONTROLLED_NAMES: Dict[str, str] = {
    "X": "CX",
    "Y": "CY",
    "Z": "CZ",
}


def get_gate_spec(name: str) -> GateSpec:
    """Look up a gate spec, raising ``KeyError`` with the known names."""
    try:
        return STANDARD_GATES[name]
    except KeyError:
        known = ", ".join(sorted(STANDARD_GATES))
        raise KeyError(f"Unknown gate {name!r}; known gates: {known}") from None


_SQRT_HALF = 1.0 / math.sqrt(2.0)

_FIXED_MATRICES: Dict[str, np.ndarray] = {
    "X": np.array([[0, 1], [1, 0]], dtype=complex),
    "Y": np.array([[0, -1j], [1j, 0]], dtype=complex),
    "Z": np.array([[1, 0], [0, -1]], dtype=complex),
    "H": np.array([[_SQRT_HALF, _SQRT_HALF], [_SQRT_HALF, -_SQRT_HALF]], dtype=complex),
    "S": np.array([[1, 0], [0, 1j]], dtype=complex),
    "S_DAG": np.array([[1, 0], [0, -1j]], dtype=complex),
}


def ry_matrix(theta: float) -> np.ndarray:
    """RY(theta) = exp(-i theta Y / 2)."""
    c = math.cos(theta / 2.0)
    s = math.sin(theta / 2.0)
    return np.array([[c, -s], [s, c]], dtype=complex)


def gate_matrix(name: str, params: Sequence[float] = ()) -> np.ndarray:
    """Return the 2x2 unitary of a single-target gate."""
    if name == "RY":
        if len(params) != 1:
            raise ValueError(f"RY expects one angle, got {len(params)}")
        return ry_matrix(params[0])
    if name not in _FIXED_MATRICES:
        raise KeyError(f"No single-qubit matrix for gate {name!r}")
    return _FIXED_MATRICES[name]


def quarter_turns(theta: float, atol: float = 1e-9) -> Optional[int]:
    """Return ``k`` in ``0..3`` when ``theta`` is ``k * pi / 2`` modulo ``2 pi``.

    ``None`` is returned for any other angle.
    """
    k = round(theta / (math.pi / 2.0))
    if abs(theta - k * math.pi / 2.0) > atol:
        return None
    return k % 4
