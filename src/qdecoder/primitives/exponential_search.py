# src/qdecoder/primitives/exponential_search.py
"""
Exponential search for a string scoring above a threshold.

Implements the randomized schedule of Boyer, Brassard, Hoyer and Tapp:
starting from ``m = 1`` each attempt applies a uniformly random number
``j < m`` of Grover iterations, measures, and on failure grows ``m`` by
``lambda = 6/5`` up to ``sqrt(N)``.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, List, Mapping, Optional

import numpy as np

from qdecoder.accelerators.base import Accelerator, AcceleratorBuffer
from qdecoder.algorithms import Algorithm, register_algorithm
from qdecoder.circuits.bits import bits_to_int
from qdecoder.circuits.circuit import Circuit
from qdecoder.exceptions import ConfigurationError
from qdecoder.primitives.base import get_fragment

logger = logging.getLogger(__name__)

DEFAULT_LAMBDA = 6.0 / 5.0


def default_max_attempts(search_space_size: int) -> int:
    return 2 * math.ceil(math.sqrt(search_space_size)) + 2


@register_algorithm("exponential-search")
class ExponentialSearch(Algorithm):
    """Find a measurement outcome whose score beats ``best_score``.

    Parameters (via :meth:`initialize`)
    ------------------------------------
    method : str
        Only ``"canonical"`` is supported.
    state_preparation_circuit : Circuit
        ``A``; must be measurement free.
    oracle_circuit : Callable[[int], Circuit]
        Builds the phase oracle marking scores above a threshold.
    best_score : int
        Threshold to beat.
    f_score : Callable[[int], int], optional
        Maps the measured metric register to a score (default identity).
    total_num_qubits : int
        Buffer size required by the circuits.
    qubits_string : list of int
        Reported qubits, measured first.
    total_metric : list of int
        Metric register (LSB first), measured after ``qubits_string``.
    qpu : Accelerator
        Backend used for every attempt.
    search_space_size : int, optional
        ``N``; defaults to ``2 ** len(qubits_string)``.
    max_attempts : int, optional
        Attempt budget; defaults to ``2 ceil(sqrt(N)) + 2``.
    seed : int, optional
        Seed for the choice of Grover powers.

    Results written to the buffer: ``best-score``, ``best-string``,
    ``attempts`` and ``success``.
    """

    def __init__(self) -> None:
        self._state_prep: Optional[Circuit] = None
        self._oracle: Optional[Callable[[int], Circuit]] = None
        self._f_score: Callable[[int], int] = lambda value: value
        self._best_score = 0
        self._total_num_qubits = 0
        self._qubits_string: List[int] = []
        self._total_metric: List[int] = []
        self._qpu: Optional[Accelerator] = None
        self._search_space_size = 1
        self._lambda = DEFAULT_LAMBDA
        self._max_attempts = 1
        self._seed: Optional[int] = None

    def required_parameters(self) -> List[str]:
        return [
            "state_preparation_circuit", "oracle_circuit", "best_score",
            "total_num_qubits", "qubits_string", "total_metric", "qpu",
        ]

    def initialize(self, parameters: Mapping[str, Any]) -> bool:
        try:
            self._configure(parameters)
        except ConfigurationError as exc:
            logger.error("exponential-search: %s", exc)
            return False
        return True

    def _configure(self, parameters: Mapping[str, Any]) -> None:
        for key in self.required_parameters():
            if key not in parameters:
                raise ConfigurationError(f"missing parameter '{key}'", key=key)
        method = parameters.get("method", "canonical")
        if method != "canonical":
            raise ConfigurationError(f"unsupported method {method!r}", key="method")
        state_prep = parameters["state_preparation_circuit"]
        if not isinstance(state_prep, Circuit):
            raise ConfigurationError("state_preparation_circuit must be a Circuit", key="state_preparation_circuit")
        if not callable(parameters["oracle_circuit"]):
            raise ConfigurationError("oracle_circuit must be callable", key="oracle_circuit")
        if not isinstance(parameters["qpu"], Accelerator):
            raise ConfigurationError("qpu must be an Accelerator", key="qpu")
        f_score = parameters.get("f_score")
        if f_score is not None and not callable(f_score):
            raise ConfigurationError("f_score must be callable", key="f_score")

        self._state_prep = state_prep
        self._oracle = parameters["oracle_circuit"]
        if f_score is not None:
            self._f_score = f_score
        self._best_score = int(parameters["best_score"])
        self._total_num_qubits = int(parameters["total_num_qubits"])
        self._qubits_string = [int(q) for q in parameters["qubits_string"]]
        self._total_metric = [int(q) for q in parameters["total_metric"]]
        self._qpu = parameters["qpu"]
        self._search_space_size = int(
            parameters.get("search_space_size", 1 << len(self._qubits_string))
        )
        if self._search_space_size < 1:
            raise ConfigurationError("search_space_size must be >= 1", key="search_space_size")
        self._lambda = float(parameters.get("lambda", DEFAULT_LAMBDA))
        if self._lambda <= 1.0:
            raise ConfigurationError("lambda must be > 1", key="lambda")
        self._max_attempts = int(
            parameters.get("max_attempts", default_max_attempts(self._search_space_size))
        )
        self._seed = parameters.get("seed")

    def execute(self, buffer: AcceleratorBuffer) -> None:
        if self._state_prep is None:
            raise ConfigurationError("exponential-search executed before initialize")
        rng = np.random.default_rng(self._seed)
        grover = get_fragment("AmplitudeAmplification").expand({
            "oracle": self._oracle(self._best_score),
            "state_preparation": self._state_prep,
            "power": 1,
        })
        measured = self._qubits_string + self._total_metric
        n_string = len(self._qubits_string)
        limit = math.sqrt(self._search_space_size)

        m = 1.0
        best_score, best_string, success = self._best_score, "", False
        attempts = 0
        while attempts < self._max_attempts:
            attempts += 1
            power = int(rng.integers(0, math.ceil(m)))
            circuit = self._state_prep.clone("exponential_search")
            circuit.extend(grover.power(power))
            circuit.measure(measured)

            run = self._qpu.allocate(self._total_num_qubits)
            self._qpu.execute(run, circuit)
            counts = run.measurement_counts
            outcome = max(sorted(counts), key=counts.get)
            score = self._f_score(bits_to_int(outcome[n_string:]))
            logger.debug(
                "Attempt %d: m=%.3f, %d Grover iteration(s), score %d vs threshold %d",
                attempts, m, power, score, self._best_score,
            )
            if score > self._best_score:
                best_score, best_string, success = score, outcome[:n_string], True
                break
            m = min(self._lambda * m, limit)

        buffer.add_extra_info("best-score", best_score)
        buffer.add_extra_info("best-string", best_string)
        buffer.add_extra_info("attempts", attempts)
        buffer.add_extra_info("success", success)
