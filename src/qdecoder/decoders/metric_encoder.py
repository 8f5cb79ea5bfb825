# src/qdecoder/decoders/metric_encoder.py
"""
Quantized log-likelihood metrics and register sizing.

A symbol with probability ``p`` has metric ``floor(-ln(sqrt(p)))`` clamped
to ``2**ml - 1``, so likelier symbols get smaller metrics. All register
widths derived from the table are computed with exact integer arithmetic.
"""
from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence

import numpy as np

from qdecoder.exceptions import DomainError

logger = logging.getLogger(__name__)

ROW_SUM_ATOL = 1e-4


def validate_probability_table(table) -> np.ndarray:
    """Return ``table`` as a float ``(L, A)`` array.

    Raises
    ------
    DomainError
        If the table is not rectangular and non-empty, holds values outside
        ``[0, 1]`` or a row does not sum to 1.
    """
    try:
        array = np.asarray(table, dtype=float)
    except (TypeError, ValueError) as exc:
        raise DomainError(f"probability table is not a numeric matrix: {exc}") from exc
    if array.ndim != 2 or array.shape[0] == 0 or array.shape[1] == 0:
        raise DomainError(f"probability table must be a non-empty L x A matrix, got shape {array.shape}")
    if not np.all(np.isfinite(array)):
        raise DomainError("probability table contains non-finite values")
    if np.any(array < 0) or np.any(array > 1):
        raise DomainError("probabilities must lie in [0, 1]")
    sums = array.sum(axis=1)
    bad = np.flatnonzero(~np.isclose(sums, 1.0, atol=ROW_SUM_ATOL))
    if bad.size:
        raise DomainError(f"row(s) {bad.tolist()} do not sum to 1 (sums {sums[bad].tolist()})")
    return array


def symbol_metric(probability: float, precision: int) -> int:
    """Quantized metric of one symbol on ``precision`` bits."""
    max_metric = (1 << precision) - 1
    if probability < 0:
        raise DomainError(f"negative probability {probability}")
    if probability == 0:
        return max_metric
    if probability >= 1:
        return 0
    return min(max_metric, int(math.floor(-math.log(math.sqrt(probability)))))


@dataclass(frozen=True)
class RowMetrics:
    """Metrics of one row and the number of symbols per metric value."""
    metrics: List[int]
    tally: Dict[int, int]


@dataclass(frozen=True)
class TableMetrics:
    rows: List[RowMetrics]
    tally: Dict[int, int]

    @property
    def metrics(self) -> List[List[int]]:
        return [row.metrics for row in self.rows]


def encode_row(row: Sequence[float], precision: int) -> RowMetrics:
    """Quantize one probability row.

    Raises
    ------
    DomainError
        If a probability is negative or the row does not sum to 1.
    """
    values = np.asarray(row, dtype=float)
    if np.any(values < 0):
        raise DomainError(f"row {values.tolist()} has negative probabilities")
    if not np.isclose(values.sum(), 1.0, atol=ROW_SUM_ATOL):
        raise DomainError(f"row {values.tolist()} sums to {values.sum()}, not 1")
    metrics = [symbol_metric(float(p), precision) for p in values]
    return RowMetrics(metrics, dict(Counter(metrics)))


def encode_table(table, precision: int) -> TableMetrics:
    rows = [encode_row(row, precision) for row in validate_probability_table(table)]
    total: Counter = Counter()
    for row in rows:
        total.update(row.tally)
    return TableMetrics(rows, dict(total))


def metric_proportions(tally: Mapping[int, int], num_states: int) -> Dict[int, float]:
    """Fraction of ``num_states`` basis states holding each metric value."""
    if num_states <= 0:
        raise ValueError(f"num_states must be positive, got {num_states}")
    return {metric: count / num_states for metric, count in tally.items()}


def grover_iterations(proportion: float) -> int:
    """``ceil(pi / (4 sqrt(proportion)))``, never below 1."""
    if not math.isfinite(proportion) or proportion <= 0:
        logger.warning("Grover iteration count for proportion %r clamped to 1", proportion)
        return 1
    return max(1, math.ceil(math.pi / (4.0 * math.sqrt(proportion))))


@dataclass(frozen=True)
class MetricPrecision:
    """Register widths for a decoding problem.

    Attributes
    ----------
    num_timesteps : int
        ``L``, rows of the probability table.
    alphabet_size : int
        ``A``, columns of the probability table.
    symbol_metric : int
        ``ml``, bits per symbol metric.
    """
    num_timesteps: int
    alphabet_size: int
    symbol_metric: int

    def __post_init__(self) -> None:
        if self.num_timesteps < 1 or self.alphabet_size < 1 or self.symbol_metric < 1:
            raise ValueError(f"invalid precision parameters {self}")

    @classmethod
    def from_table(cls, table, symbol_metric: int) -> "MetricPrecision":
        array = np.asarray(table)
        return cls(int(array.shape[0]), int(array.shape[1]), int(symbol_metric))

    @property
    def symbol_width(self) -> int:
        """``S``, qubits per symbol."""
        return max(1, (self.alphabet_size - 1).bit_length())

    @property
    def max_symbol_metric(self) -> int:
        return (1 << self.symbol_metric) - 1

    @property
    def string_metric(self) -> int:
        """``ms``, bits of the total string metric."""
        return (self.num_timesteps * self.max_symbol_metric).bit_length()

    @property
    def beam_metric(self) -> int:
        """``mb``, bits of the beam metric and best score."""
        return (self.alphabet_size ** self.num_timesteps * ((1 << self.string_metric) - 1)).bit_length()

    @property
    def estimation_precision(self) -> int:
        """``p = ms (ms + 1) / 2``."""
        ms = self.string_metric
        return ms * (ms + 1) // 2

    def partial_sum_width(self, num_terms: int) -> int:
        """Bits needed for the sum of ``num_terms`` symbol metrics."""
        return (num_terms * self.max_symbol_metric).bit_length()

    @property
    def required_ancillas(self) -> int:
        ml, ms, mb = self.symbol_metric, self.string_metric, self.beam_metric
        s, n = self.symbol_width, self.num_timesteps
        p = self.estimation_precision
        return max(
            ml + s,
            ms - ml,
            4 + 5 * ms + 2 * p + ms + s + n * s + n,
            4 + p + mb + 2 * ms + n * s + n,
        )
