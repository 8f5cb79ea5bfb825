# src/qdecoder/primitives/base.py
"""
Circuit fragment base class and the name-keyed fragment registry.

A fragment is a parameterised circuit builder. Callers look one up by name,
hand it an options mapping (qubit registers, tables, nested circuits) and
receive a :class:`~qdecoder.circuits.Circuit`. Invalid options are reported
with :class:`~qdecoder.exceptions.FragmentBuildError`; builders never retry.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from numbers import Integral
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple, Type

from qdecoder.circuits.circuit import Circuit
from qdecoder.exceptions import FragmentBuildError

logger = logging.getLogger(__name__)


class CircuitFragment(ABC):
    """Base class for registered circuit builders.

    Subclasses declare the option keys they cannot do without in
    ``required_options`` and implement :meth:`build`.
    """

    name: str = ""
    required_options: Tuple[str, ...] = ()

    def expand(self, options: Mapping[str, Any]) -> Circuit:
        """Build the fragment's circuit from ``options``.

        Raises
        ------
        FragmentBuildError
            If a required option is missing or an option is invalid.
        """
        missing = [key for key in self.required_options if key not in options]
        if missing:
            self.fail(f"missing option(s) {missing}")
        circuit = Circuit(self.name)
        self.build(circuit, options)
        logger.debug("Expanded %s into %d instructions", self.name, len(circuit))
        return circuit

    @abstractmethod
    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        """Append the fragment's instructions to ``circuit``."""

    def fail(self, message: str) -> None:
        raise FragmentBuildError(message, fragment=self.name)

    # ------------------------------------------------------------------
    # Option helpers
    # ------------------------------------------------------------------

    def qubits(self, options: Mapping[str, Any], key: str, allow_empty: bool = False) -> List[int]:
        value = options.get(key, [])
        try:
            qubits = [int(q) for q in value]
        except (TypeError, ValueError):
            self.fail(f"option '{key}' must be a sequence of qubit indices, got {value!r}")
        if not qubits and not allow_empty:
            self.fail(f"option '{key}' must not be empty")
        if len(set(qubits)) != len(qubits):
            self.fail(f"option '{key}' contains repeated qubits {qubits}")
        return qubits

    def qubit(self, options: Mapping[str, Any], key: str) -> int:
        value = options.get(key)
        if isinstance(value, bool) or not isinstance(value, Integral) or value < 0:
            self.fail(f"option '{key}' must be a qubit index, got {value!r}")
        return int(value)

    def check_disjoint(self, **registers: Sequence[int]) -> None:
        seen: Dict[int, str] = {}
        for label, qubits in registers.items():
            for q in qubits:
                if q in seen and seen[q] != label:
                    self.fail(f"qubit {q} appears in both '{seen[q]}' and '{label}'")
                seen[q] = label


_FRAGMENTS: Dict[str, Type[CircuitFragment]] = {}


def register_fragment(name: str) -> Callable[[Type[CircuitFragment]], Type[CircuitFragment]]:
    """Class decorator adding a fragment to the registry under ``name``."""
    def decorator(cls: Type[CircuitFragment]) -> Type[CircuitFragment]:
        if name in _FRAGMENTS and _FRAGMENTS[name] is not cls:
            logger.warning("Fragment %s re-registered by %s", name, cls.__qualname__)
        cls.name = name
        _FRAGMENTS[name] = cls
        return cls
    return decorator


def get_fragment(name: str) -> CircuitFragment:
    """Fresh instance of the fragment registered as ``name``."""
    if name not in _FRAGMENTS:
        known = ", ".join(sorted(_FRAGMENTS))
        raise FragmentBuildError(f"no fragment registered as {name!r}; known: {known}")
    return _FRAGMENTS[name]()


def available_fragments() -> List[str]:
    return sorted(_FRAGMENTS)
