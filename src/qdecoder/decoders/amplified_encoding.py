# src/qdecoder/decoders/amplified_encoding.py
"""
Amplitude-amplified string encoding (``method="aa"``).

Each timestep starts from a uniform superposition of its symbol register,
looks the symbol metric up into its metric slot, then amplifies the
buckets of equal metric from the least likely to the most likely, each
with ``grover_iterations(bucket proportion)`` iterations. The last, most
likely, bucket is amplified last and dominates the measured distribution.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

from qdecoder.circuits.circuit import Circuit
from qdecoder.decoders.metric_encoder import (
    MetricPrecision,
    encode_table,
    grover_iterations,
    metric_proportions,
)
from qdecoder.exceptions import PreconditionViolation
from qdecoder.primitives.amplification import phase_oracle
from qdecoder.primitives.base import get_fragment
from qdecoder.primitives.encoding import append_lookup

logger = logging.getLogger(__name__)


def _equals_constant(metric: Sequence[int], value: int, flag: int) -> Circuit:
    marker = Circuit(f"metric_eq_{value}")
    append_lookup(marker, metric, value, [flag], 1)
    return phase_oracle(flag, marker)


def build_amplified_encoding(
    probability_table: np.ndarray,
    qubits_string: Sequence[int],
    qubits_metric: Sequence[int],
    qubit_flag: int,
) -> Tuple[Circuit, List[Dict[int, int]]]:
    """Build the encoding circuit and return it with the per-row metric tallies.

    Tallies count basis states of each symbol register, including symbols
    beyond the alphabet, which carry the maximum metric.
    """
    table = np.asarray(probability_table, dtype=float)
    num_timesteps, alphabet = table.shape
    if len(qubits_string) % num_timesteps or len(qubits_metric) % num_timesteps:
        raise PreconditionViolation(
            f"string ({len(qubits_string)}) and metric ({len(qubits_metric)}) registers "
            f"cannot be split into {num_timesteps} timesteps"
        )
    width = len(qubits_string) // num_timesteps
    ml = len(qubits_metric) // num_timesteps
    if alphabet > 1 << width:
        raise PreconditionViolation(f"alphabet of {alphabet} does not fit on {width} qubit(s)")
    if qubit_flag in qubits_string or qubit_flag in qubits_metric:
        raise PreconditionViolation(f"flag qubit {qubit_flag} overlaps the string or metric registers")

    precision = MetricPrecision(num_timesteps, alphabet, ml)
    encoded = encode_table(table, ml)
    num_states = 1 << width
    circuit = Circuit("amplified_encoding")
    tallies: List[Dict[int, int]] = []

    for it in range(num_timesteps):
        letter = list(qubits_string[it * width:(it + 1) * width])
        metric = list(qubits_metric[it * ml:(it + 1) * ml])
        metrics = encoded.rows[it].metrics + [precision.max_symbol_metric] * (num_states - alphabet)
        tally: Dict[int, int] = {}
        for value in metrics:
            tally[value] = tally.get(value, 0) + 1
        tallies.append(tally)

        prep = Circuit(f"uniform_{it}")
        for q in letter:
            prep.h(q)
        for symbol, value in enumerate(metrics):
            append_lookup(prep, letter, symbol, metric, value)
        circuit.extend(prep)

        proportions = metric_proportions(tally, num_states)
        for value in range(precision.max_symbol_metric, -1, -1):
            if value not in proportions:
                continue
            iterations = grover_iterations(proportions[value])
            logger.debug(
                "Timestep %d, metric %d: proportion %.4f, %d Grover iteration(s)",
                it, value, proportions[value], iterations,
            )
            circuit.extend(get_fragment("AmplitudeAmplification").expand({
                "oracle": _equals_constant(metric, value, qubit_flag),
                "state_preparation": prep,
                "power": iterations,
            }))
    return circuit, tallies
