# src/qdecoder/__init__.py
"""
qdecoder: beam-search decoding of per-timestep symbol probabilities.

Importing the package registers the built-in accelerators, circuit
fragments and algorithms.
"""
import logging

from qdecoder.exceptions import (
    ConfigurationError,
    DomainError,
    ErrorCode,
    FragmentBuildError,
    PreconditionViolation,
    QDecoderError,
    SearchInvariantError,
    UnsupportedOperationError,
)
from qdecoder.accelerators import AcceleratorBuffer, get_accelerator, qalloc
from qdecoder.algorithms import get_algorithm
from qdecoder.primitives import get_fragment
from qdecoder.decoders import (
    DecoderLayout,
    QuantumDecoder,
    SimplifiedDecoder,
    select_decoder,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "AcceleratorBuffer",
    "ConfigurationError",
    "DecoderLayout",
    "DomainError",
    "ErrorCode",
    "FragmentBuildError",
    "PreconditionViolation",
    "QDecoderError",
    "QuantumDecoder",
    "SearchInvariantError",
    "SimplifiedDecoder",
    "UnsupportedOperationError",
    "get_accelerator",
    "get_algorithm",
    "get_fragment",
    "qalloc",
    "select_decoder",
]
