# src/qdecoder/config.py
"""
Parameter parsing for the decoders.

Decoders are configured from plain mappings. The dataclasses here type-check
every recognised key and raise :class:`ConfigurationError` naming the
offending key; unknown keys only trigger a warning.
"""
from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any, FrozenSet, List, Mapping, Optional, Union

import numpy as np

from qdecoder.accelerators import DEFAULT_ACCELERATOR, Accelerator, get_accelerator
from qdecoder.decoders.layout import DecoderRegisters
from qdecoder.decoders.metric_encoder import validate_probability_table
from qdecoder.exceptions import ConfigurationError

QUANTUM_REGISTER_KEYS = (
    "qubits_metric",
    "qubits_string",
    "qubits_init_null",
    "qubits_init_repeat",
    "qubits_superfluous_flags",
    "qubits_total_metric_buffer",
    "qubits_beam_metric",
    "qubits_best_score",
    "qubits_ancilla_pool",
)

SIMPLIFIED_METHODS = ("ry", "aa")
DEFAULT_SHOTS = 1024


def _is_int(value: Any) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


def _int(parameters: Mapping[str, Any], key: str, default: Optional[int] = None, minimum: int = 0) -> int:
    if key not in parameters:
        if default is None:
            raise ConfigurationError(f"missing required parameter '{key}'", key=key)
        return default
    value = parameters[key]
    if not _is_int(value):
        raise ConfigurationError(f"parameter '{key}' must be an integer, got {value!r}", key=key)
    if value < minimum:
        raise ConfigurationError(f"parameter '{key}' must be >= {minimum}, got {value}", key=key)
    return int(value)


def _int_list(parameters: Mapping[str, Any], key: str, required: bool = True) -> List[int]:
    if key not in parameters:
        if required:
            raise ConfigurationError(f"missing required parameter '{key}'", key=key)
        return []
    value = parameters[key]
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        raise ConfigurationError(f"parameter '{key}' must be a list of integers, got {value!r}", key=key)
    items = list(value)
    if not all(_is_int(v) for v in items):
        raise ConfigurationError(f"parameter '{key}' must contain only integers, got {items!r}", key=key)
    return [int(v) for v in items]


def _table(parameters: Mapping[str, Any]) -> np.ndarray:
    if "probability_table" not in parameters:
        raise ConfigurationError("missing required parameter 'probability_table'", key="probability_table")
    return validate_probability_table(parameters["probability_table"])


def _accelerator(parameters: Mapping[str, Any], shots: int, seed: Optional[int]) -> Accelerator:
    qpu: Union[str, Accelerator] = parameters.get("qpu", DEFAULT_ACCELERATOR)
    if isinstance(qpu, Accelerator):
        return qpu
    if isinstance(qpu, str):
        return get_accelerator(qpu, shots=shots, seed=seed)
    raise ConfigurationError(f"parameter 'qpu' must be a name or an Accelerator, got {qpu!r}", key="qpu")


def _warn_unknown(parameters: Mapping[str, Any], known: FrozenSet[str], owner: str) -> None:
    unknown = sorted(set(parameters) - known)
    if unknown:
        warnings.warn(f"{owner} ignores unknown parameter(s) {unknown}", UserWarning, stacklevel=3)


@dataclass
class QuantumDecoderConfig:
    """Parsed ``quantum-decoder`` parameters."""

    probability_table: np.ndarray
    registers: DecoderRegisters
    n_trials: int
    best_score: int = 0
    qpu: Optional[Accelerator] = None
    seed: Optional[int] = None

    KNOWN_KEYS = frozenset(QUANTUM_REGISTER_KEYS) | {
        "probability_table", "BestScore", "N_TRIALS", "qpu", "seed",
    }

    @classmethod
    def from_parameters(cls, parameters: Mapping[str, Any]) -> "QuantumDecoderConfig":
        """Raises ``ConfigurationError`` (bad keys) or ``DomainError`` (bad table)."""
        _warn_unknown(parameters, cls.KNOWN_KEYS, "quantum-decoder")
        registers = DecoderRegisters(**{
            key: _int_list(parameters, key, required=key != "qubits_total_metric_buffer")
            for key in QUANTUM_REGISTER_KEYS
        })
        n_trials = _int(parameters, "N_TRIALS", minimum=1)
        best_score = _int(parameters, "BestScore", default=0)
        seed = parameters.get("seed")
        if seed is not None and not _is_int(seed):
            raise ConfigurationError(f"parameter 'seed' must be an integer, got {seed!r}", key="seed")
        table = _table(parameters)
        return cls(
            probability_table=table,
            registers=registers,
            n_trials=n_trials,
            best_score=best_score,
            qpu=_accelerator(parameters, shots=1, seed=seed),
            seed=seed,
        )


@dataclass
class SimplifiedDecoderConfig:
    """Parsed ``simplified-decoder`` parameters."""

    probability_table: np.ndarray
    qubits_string: List[int]
    method: str = "ry"
    qubits_metric: List[int] = field(default_factory=list)
    qubits_ancilla_pool: List[int] = field(default_factory=list)
    shots: int = DEFAULT_SHOTS
    qpu: Optional[Accelerator] = None
    seed: Optional[int] = None

    # BestScore and qubits_best_score are shared with the quantum decoder and ignored here.
    KNOWN_KEYS = frozenset({
        "probability_table", "qubits_string", "method", "BestScore", "qubits_best_score",
        "qubits_metric", "qubits_ancilla_pool", "shots", "qpu", "seed",
    })

    @classmethod
    def from_parameters(cls, parameters: Mapping[str, Any]) -> "SimplifiedDecoderConfig":
        _warn_unknown(parameters, cls.KNOWN_KEYS, "simplified-decoder")
        qubits_string = _int_list(parameters, "qubits_string")
        method = parameters.get("method", "ry")
        if method not in SIMPLIFIED_METHODS:
            raise ConfigurationError(
                f"parameter 'method' must be one of {SIMPLIFIED_METHODS}, got {method!r}", key="method"
            )
        needs_metric = method == "aa"
        qubits_metric = _int_list(parameters, "qubits_metric", required=needs_metric)
        qubits_ancilla_pool = _int_list(parameters, "qubits_ancilla_pool", required=needs_metric)
        shots = _int(parameters, "shots", default=DEFAULT_SHOTS, minimum=1)
        seed = parameters.get("seed")
        if seed is not None and not _is_int(seed):
            raise ConfigurationError(f"parameter 'seed' must be an integer, got {seed!r}", key="seed")
        return cls(
            probability_table=_table(parameters),
            qubits_string=qubits_string,
            method=method,
            qubits_metric=qubits_metric,
            qubits_ancilla_pool=qubits_ancilla_pool,
            shots=shots,
            qpu=_accelerator(parameters, shots=shots, seed=seed),
            seed=seed,
        )
