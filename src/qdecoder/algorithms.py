# src/qdecoder/algorithms.py
"""
Algorithm interface and the name-keyed algorithm registry.

An algorithm is configured once with :meth:`Algorithm.initialize` and then
run against an :class:`~qdecoder.accelerators.AcceleratorBuffer`, into which
it writes its results as extra information.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from qdecoder.accelerators.base import AcceleratorBuffer
from qdecoder.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Algorithm(ABC):
    """Configurable routine executed on an accelerator buffer."""

    name: str = ""

    @abstractmethod
    def initialize(self, parameters: Mapping[str, Any]) -> bool:
        """Validate and store ``parameters``; ``False`` means unusable."""

    @abstractmethod
    def required_parameters(self) -> List[str]:
        ...

    @abstractmethod
    def execute(self, buffer: AcceleratorBuffer) -> None:
        ...


_ALGORITHMS: Dict[str, Type[Algorithm]] = {}


def register_algorithm(name: str) -> Callable[[Type[Algorithm]], Type[Algorithm]]:
    def decorator(cls: Type[Algorithm]) -> Type[Algorithm]:
        cls.name = name
        _ALGORITHMS[name] = cls
        return cls
    return decorator


def available_algorithms() -> List[str]:
    return sorted(_ALGORITHMS)


def get_algorithm(name: str, parameters: Optional[Mapping[str, Any]] = None) -> Algorithm:
    """Instantiate the algorithm registered as ``name``.

    When ``parameters`` are given the algorithm is initialized with them.

    Raises
    ------
    ConfigurationError
        If ``name`` is unknown or initialization fails.
    """
    if name not in _ALGORITHMS:
        known = ", ".join(sorted(_ALGORITHMS))
        raise ConfigurationError(f"Unknown algorithm {name!r}; known: {known}")
    algorithm = _ALGORITHMS[name]()
    if parameters is not None and not algorithm.initialize(parameters):
        raise ConfigurationError(f"Algorithm {name!r} rejected its parameters")
    return algorithm
