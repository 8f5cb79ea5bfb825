# src/qdecoder/primitives/__init__.py
"""
Reusable circuit fragments, looked up by name with :func:`get_fragment`.

Registered fragments:
- GeneralisedMCX, ControlledSwap, EqualityChecker
- RippleCarryAdder, CompareGT
- RyEncoding, SymbolDistribution, InitRepeatFlag
- AmplitudeAmplification
- SuperpositionAdder

The ``exponential-search`` algorithm is registered with
:func:`qdecoder.algorithms.get_algorithm`.
"""

from qdecoder.primitives.base import (
    CircuitFragment,
    available_fragments,
    get_fragment,
    register_fragment,
)
from qdecoder.primitives.logic import ControlledSwap, EqualityChecker, GeneralisedMCX
from qdecoder.primitives.arithmetic import CompareGT, RippleCarryAdder
from qdecoder.primitives.encoding import (
    InitRepeatFlag,
    RyEncoding,
    SymbolDistribution,
    append_amplitude_encoding,
    append_lookup,
    uniformly_controlled_ry,
)
from qdecoder.primitives.amplification import AmplitudeAmplification, phase_oracle, zero_reflection
from qdecoder.primitives.superposition_adder import SuperpositionAdder
from qdecoder.primitives.exponential_search import ExponentialSearch

__all__ = [
    "AmplitudeAmplification",
    "CircuitFragment",
    "CompareGT",
    "ControlledSwap",
    "EqualityChecker",
    "ExponentialSearch",
    "GeneralisedMCX",
    "InitRepeatFlag",
    "RippleCarryAdder",
    "RyEncoding",
    "SuperpositionAdder",
    "SymbolDistribution",
    "append_amplitude_encoding",
    "append_lookup",
    "available_fragments",
    "get_fragment",
    "phase_oracle",
    "register_fragment",
    "uniformly_controlled_ry",
    "zero_reflection",
]
