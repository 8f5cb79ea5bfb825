# src/qdecoder/decoders/search_driver.py
"""
Trial loop around the exponential search.

Each trial asks the ``exponential-search`` algorithm for a beam scoring
above the current best score. The best score only ever increases, and the
driver checks at the end that it never fell below its starting value.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from qdecoder.accelerators.base import Accelerator, qalloc
from qdecoder.algorithms import Algorithm, get_algorithm
from qdecoder.circuits.circuit import Circuit
from qdecoder.exceptions import SearchInvariantError

logger = logging.getLogger(__name__)


class SearchState(Enum):
    """Phases of the trial loop."""
    IDLE = auto()
    PREPARING = auto()
    SEARCHING = auto()
    SCORING = auto()
    DONE = auto()


@dataclass(frozen=True)
class TrialRecord:
    """Outcome of one trial.

    Attributes
    ----------
    trial : int
        Zero-based trial index.
    threshold : int
        Best score the trial had to beat.
    score : int
        Score reported by the search.
    best_string : str
        Reported register string after the trial (current best).
    current_best : int
        Best score held after the trial.
    improved : bool
        Whether the trial raised the best score.
    """
    trial: int
    threshold: int
    score: int
    best_string: str
    current_best: int
    improved: bool


@dataclass
class SearchOutcome:
    initial_best_score: int
    best_score: int
    max_best_score: int
    best_string: str
    trials: List[TrialRecord] = field(default_factory=list)

    @property
    def n_success(self) -> int:
        """Trials that ended holding the final best score."""
        return sum(
            1 for record in self.trials
            if record.best_string and record.current_best == self.best_score
        )

    @property
    def success_probability(self) -> float:
        return self.n_success / len(self.trials) if self.trials else 0.0


SearchFactory = Callable[[Mapping[str, Any]], Algorithm]


def _default_search(parameters: Mapping[str, Any]) -> Algorithm:
    return get_algorithm("exponential-search", parameters)


class ExponentialSearchDriver:
    """Run ``n_trials`` exponential searches with a ratcheting threshold.

    Parameters
    ----------
    state_preparation : Circuit
        ``A``.
    oracle_builder : Callable[[int], Circuit]
        Oracle for a given best score.
    n_trials : int
        Number of trials.
    initial_best_score : int
        Starting threshold.
    qubits_string : Sequence[int]
        Reported qubits (string followed by superfluous flags).
    qubits_metric : Sequence[int]
        Register holding the score (beam metric).
    total_num_qubits : int
        Buffer size for each search.
    search_space_size : int
        Number of strings in superposition.
    qpu : Accelerator
        Backend.
    seed : Optional[int]
        Base seed; trial ``t`` uses ``seed + t``.
    search_factory : Optional[SearchFactory]
        Builds an initialized search algorithm from its parameters.
    """

    def __init__(
        self,
        state_preparation: Circuit,
        oracle_builder: Callable[[int], Circuit],
        *,
        n_trials: int,
        initial_best_score: int,
        qubits_string: Sequence[int],
        qubits_metric: Sequence[int],
        total_num_qubits: int,
        search_space_size: int,
        qpu: Accelerator,
        seed: Optional[int] = None,
        search_factory: Optional[SearchFactory] = None,
    ):
        if n_trials < 1:
            raise ValueError(f"n_trials must be >= 1, got {n_trials}")
        self.state_preparation = state_preparation
        self.oracle_builder = oracle_builder
        self.n_trials = n_trials
        self.initial_best_score = initial_best_score
        self.qubits_string = list(qubits_string)
        self.qubits_metric = list(qubits_metric)
        self.total_num_qubits = total_num_qubits
        self.search_space_size = search_space_size
        self.qpu = qpu
        self.seed = seed
        self.search_factory = search_factory or _default_search
        self.state = SearchState.IDLE

    def _parameters(self, trial: int, best_score: int) -> Dict[str, Any]:
        return {
            "method": "canonical",
            "state_preparation_circuit": self.state_preparation,
            "oracle_circuit": self.oracle_builder,
            "best_score": best_score,
            "f_score": lambda value: value,
            "total_num_qubits": self.total_num_qubits,
            "qubits_string": self.qubits_string,
            "total_metric": self.qubits_metric,
            "qpu": self.qpu,
            "search_space_size": self.search_space_size,
            "seed": None if self.seed is None else self.seed + trial,
        }

    def run(self) -> SearchOutcome:
        current_best = self.initial_best_score
        max_best = self.initial_best_score
        best_string = ""
        records: List[TrialRecord] = []

        for trial in range(self.n_trials):
            self.state = SearchState.PREPARING
            search = self.search_factory(self._parameters(trial, current_best))

            self.state = SearchState.SEARCHING
            buffer = qalloc(self.total_num_qubits)
            search.execute(buffer)

            self.state = SearchState.SCORING
            info = buffer.get_information()
            score = int(info.get("best-score", current_best))
            threshold = current_best
            improved = score > current_best
            if improved:
                current_best = score
                best_string = info.get("best-string", "")
                logger.info("Trial %d: best score raised %d -> %d", trial, threshold, score)
            else:
                logger.debug("Trial %d: no score above %d", trial, threshold)
            max_best = max(max_best, current_best)
            records.append(TrialRecord(trial, threshold, score, best_string, current_best, improved))

        self.state = SearchState.DONE
        if max_best < self.initial_best_score:
            raise SearchInvariantError(
                f"best score {max_best} fell below the initial value {self.initial_best_score}"
            )
        return SearchOutcome(
            initial_best_score=self.initial_best_score,
            best_score=current_best,
            max_best_score=max_best,
            best_string=best_string,
            trials=records,
        )
