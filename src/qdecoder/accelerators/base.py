# src/qdecoder/accelerators/base.py
"""
Accelerator interface and result buffer.

An accelerator executes a :class:`~qdecoder.circuits.Circuit` and records
measurement counts into an :class:`AcceleratorBuffer`. Bitstring keys list
outcomes in measurement order: character ``k`` is the result of the
``k``-th measured qubit.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional, Type

from qdecoder.circuits.circuit import Circuit
from qdecoder.exceptions import ConfigurationError, PreconditionViolation

logger = logging.getLogger(__name__)


class AcceleratorBuffer:
    """Register of ``size`` qubits plus the results of running on it.

    Parameters
    ----------
    size : int
        Number of qubits addressable by circuits run on this buffer.
    name : str
        Label for logs.
    """

    def __init__(self, size: int, name: str = "q"):
        if size < 0:
            raise ValueError(f"buffer size must be non-negative, got {size}")
        self.size = int(size)
        self.name = name
        self._counts: Dict[str, int] = {}
        self._info: Dict[str, Any] = {}

    @property
    def measurement_counts(self) -> Dict[str, int]:
        return dict(self._counts)

    def append_measurement(self, bitstring: str, count: int = 1) -> None:
        self._counts[bitstring] = self._counts.get(bitstring, 0) + int(count)

    def add_extra_info(self, key: str, value: Any) -> None:
        self._info[key] = value

    def get_information(self) -> Dict[str, Any]:
        return dict(self._info)

    def __getitem__(self, key: str) -> Any:
        return self._info[key]

    def __contains__(self, key: str) -> bool:
        return key in self._info

    def __repr__(self) -> str:
        return (
            f"AcceleratorBuffer(name={self.name!r}, size={self.size}, "
            f"outcomes={len(self._counts)}, info_keys={sorted(self._info)})"
        )


def qalloc(size: int, name: str = "q") -> AcceleratorBuffer:
    """Allocate a fresh buffer of ``size`` qubits."""
    return AcceleratorBuffer(size, name)


class Accelerator(ABC):
    """Execution backend for decoder circuits.

    Parameters
    ----------
    shots : int
        Number of samples drawn per execution.
    seed : Optional[int]
        Seed for the backend's random number generator.
    """

    name: str = ""

    def __init__(self, shots: int = 1, seed: Optional[int] = None):
        if shots < 1:
            raise ValueError(f"shots must be >= 1, got {shots}")
        self.shots = int(shots)
        self.seed = seed

    def allocate(self, size: int) -> AcceleratorBuffer:
        return qalloc(size)

    def execute(self, buffer: AcceleratorBuffer, circuit: Circuit) -> None:
        """Run ``circuit`` and append its measurement counts to ``buffer``."""
        if circuit.num_qubits > buffer.size:
            raise PreconditionViolation(
                f"circuit '{circuit.name}' uses {circuit.num_qubits} qubits but buffer "
                f"'{buffer.name}' holds {buffer.size}"
            )
        if not circuit.measured_qubits:
            raise ValueError(f"circuit '{circuit.name}' has no measurements")
        logger.debug(
            "%s executing %s (%d instructions, %d shots)",
            self.name, circuit.name, len(circuit), self.shots,
        )
        counts = self._sample(circuit)
        for bitstring, count in counts.items():
            buffer.append_measurement(bitstring, count)
        buffer.add_extra_info("accelerator", self.name)
        buffer.add_extra_info("shots", self.shots)

    @abstractmethod
    def _sample(self, circuit: Circuit) -> Dict[str, int]:
        """Return counts keyed by measurement-order bitstrings."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shots={self.shots}, seed={self.seed})"


_ACCELERATORS: Dict[str, Type[Accelerator]] = {}


def register_accelerator(name: str) -> Callable[[Type[Accelerator]], Type[Accelerator]]:
    def decorator(cls: Type[Accelerator]) -> Type[Accelerator]:
        cls.name = name
        _ACCELERATORS[name] = cls
        return cls
    return decorator


def available_accelerators() -> Mapping[str, Type[Accelerator]]:
    return dict(_ACCELERATORS)


def get_accelerator(name: str, shots: int = 1, seed: Optional[int] = None) -> Accelerator:
    """Instantiate a registered accelerator by name (case-insensitive)."""
    key = name.strip().lower()
    if key not in _ACCELERATORS:
        known = ", ".join(sorted(_ACCELERATORS))
        raise ConfigurationError(f"Unknown accelerator {name!r}; known: {known}", key="qpu")
    return _ACCELERATORS[key](shots=shots, seed=seed)
