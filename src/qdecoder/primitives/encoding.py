# src/qdecoder/primitives/encoding.py
"""
Amplitude encoding of probability rows and symbol-keyed lookups.

Rows are loaded with a binary tree of uniformly controlled RY rotations,
each decomposed (Mottonen et al.) into plain RY and CX gates ordered by a
Gray code, so that a symbol register ends in ``sum_v sqrt(p_v) |v>``.
"""
from __future__ import annotations

import math
from typing import Any, List, Mapping, Sequence

import numpy as np

from qdecoder.circuits.bits import different_bit_index, gray_code, int_to_bits
from qdecoder.circuits.circuit import Circuit
from qdecoder.primitives.base import CircuitFragment, get_fragment, register_fragment

ANGLE_ATOL = 1e-12


def uniformly_controlled_ry(
    circuit: Circuit,
    angles: Sequence[float],
    controls: Sequence[int],
    target: int,
) -> None:
    """Apply ``RY(angles[j])`` on ``target`` for control value ``j``.

    ``controls[b]`` carries bit ``b`` of ``j``. The rotation is realised with
    ``2**k`` RY gates and ``2**k`` CX gates for ``k`` controls.
    """
    k = len(controls)
    if len(angles) != 1 << k:
        raise ValueError(f"expected {1 << k} angles for {k} controls, got {len(angles)}")
    if k == 0:
        if abs(angles[0]) > ANGLE_ATOL:
            circuit.ry(target, angles[0])
        return

    size = 1 << k
    alpha = np.asarray(angles, dtype=float)
    signs = np.array(
        [[(-1) ** bin(j & gray_code(i)).count("1") for i in range(size)] for j in range(size)],
        dtype=float,
    )
    theta = signs.T @ alpha / size
    for i in range(size):
        if abs(theta[i]) > ANGLE_ATOL:
            circuit.ry(target, float(theta[i]))
        bit = different_bit_index(gray_code(i), gray_code((i + 1) % size))
        circuit.cx(controls[bit], target)


def tree_angles(probabilities: Sequence[float], num_qubits: int) -> List[List[float]]:
    """RY angles per tree level, most significant qubit first.

    Level ``d`` holds ``2**d`` angles indexed by the value of the ``d``
    already-prepared higher bits.
    """
    padded = np.zeros(1 << num_qubits)
    padded[: len(probabilities)] = np.clip(np.asarray(probabilities, dtype=float), 0.0, None)
    levels: List[List[float]] = []
    for depth in range(num_qubits):
        m = num_qubits - 1 - depth
        block = 1 << (m + 1)
        half = 1 << m
        angles = []
        for h in range(1 << depth):
            chunk = padded[h * block:(h + 1) * block]
            # Symbols are grouped by their high bits: chunk[:half] has bit m clear.
            p0 = float(chunk[:half].sum())
            p1 = float(chunk[half:].sum())
            angles.append(2.0 * math.atan2(math.sqrt(p1), math.sqrt(p0)) if p0 + p1 > 0 else 0.0)
        levels.append(angles)
    return levels


def append_amplitude_encoding(
    circuit: Circuit, probabilities: Sequence[float], qubits: Sequence[int]
) -> None:
    """Load ``sum_v sqrt(probabilities[v]) |v>`` onto the LSB-first ``qubits``."""
    n = len(qubits)
    if len(probabilities) > 1 << n:
        raise ValueError(f"{len(probabilities)} probabilities do not fit on {n} qubit(s)")
    for depth, angles in enumerate(tree_angles(probabilities, n)):
        m = n - 1 - depth
        # Control value index h is read from the higher bits, LSB = qubits[m + 1].
        uniformly_controlled_ry(circuit, angles, list(qubits[m + 1:]), qubits[m])


def append_lookup(
    circuit: Circuit,
    key_qubits: Sequence[int],
    key: int,
    target_qubits: Sequence[int],
    value: int,
) -> None:
    """XOR ``value`` into ``target_qubits`` when ``key_qubits`` hold ``key``."""
    if value == 0:
        return
    key_bits = int_to_bits(key, len(key_qubits))
    on = [q for q, bit in zip(key_qubits, key_bits) if bit]
    off = [q for q, bit in zip(key_qubits, key_bits) if not bit]
    for target, bit in zip(target_qubits, int_to_bits(value, len(target_qubits))):
        if bit:
            circuit.mcx(on, target, controls_off=off)


def _row(fragment: CircuitFragment, table: Any, iteration: int) -> np.ndarray:
    table = np.asarray(table, dtype=float)
    if table.ndim != 2:
        fragment.fail(f"probability_table must be two-dimensional, got shape {table.shape}")
    if not 0 <= iteration < table.shape[0]:
        fragment.fail(f"iteration {iteration} outside table with {table.shape[0]} row(s)")
    return table[iteration]


@register_fragment("RyEncoding")
class RyEncoding(CircuitFragment):
    """Encode every row of ``probability_table`` onto its slot of ``qubits_string``."""

    required_options = ("probability_table", "qubits_string")

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        table = np.asarray(options["probability_table"], dtype=float)
        qubits = self.qubits(options, "qubits_string")
        if table.ndim != 2:
            self.fail(f"probability_table must be two-dimensional, got shape {table.shape}")
        num_rows, alphabet = table.shape
        if len(qubits) % num_rows:
            self.fail(f"{len(qubits)} string qubits cannot be split into {num_rows} symbols")
        width = len(qubits) // num_rows
        if alphabet > 1 << width:
            self.fail(f"alphabet of {alphabet} does not fit on {width} qubit(s)")
        for it in range(num_rows):
            append_amplitude_encoding(circuit, table[it], qubits[it * width:(it + 1) * width])


@register_fragment("SymbolDistribution")
class SymbolDistribution(CircuitFragment):
    """Prepare one timestep on scratch registers.

    Loads row ``iteration`` onto ``qubits_next_letter``, writes the metric of
    each symbol into ``qubits_next_metric`` and flips
    ``qubits_init_null[iteration]`` when the symbol is null.

    Options
    -------
    probability_table : array-like
        Full ``L x A`` table.
    symbol_metrics : list of int
        Quantized metric of every symbol of the row.
    iteration : int
        Timestep to prepare.
    qubits_next_letter, qubits_next_metric, qubits_init_null : list of int
        Registers as described above.
    """

    required_options = (
        "probability_table", "symbol_metrics", "iteration",
        "qubits_next_letter", "qubits_next_metric", "qubits_init_null",
    )

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        iteration = int(options["iteration"])
        row = _row(self, options["probability_table"], iteration)
        letter = self.qubits(options, "qubits_next_letter")
        metric = self.qubits(options, "qubits_next_metric")
        init_null = self.qubits(options, "qubits_init_null")
        metrics = [int(m) for m in options["symbol_metrics"]]
        self.check_disjoint(next_letter=letter, next_metric=metric, init_null=init_null)
        if len(row) > 1 << len(letter):
            self.fail(f"alphabet of {len(row)} does not fit on {len(letter)} qubit(s)")
        if len(metrics) != len(row):
            self.fail(f"expected {len(row)} symbol metrics, got {len(metrics)}")
        if iteration >= len(init_null):
            self.fail(f"no init-null flag for iteration {iteration}")
        if any(m < 0 or m >= 1 << len(metric) for m in metrics):
            self.fail(f"symbol metrics {metrics} do not fit on {len(metric)} qubit(s)")

        append_amplitude_encoding(circuit, row, letter)
        for symbol, value in enumerate(metrics):
            if row[symbol] > 0:
                append_lookup(circuit, letter, symbol, metric, value)
        circuit.mcx([], init_null[iteration], controls_off=letter)


@register_fragment("InitRepeatFlag")
class InitRepeatFlag(CircuitFragment):
    """Flip ``qubits_init_repeat[iteration]`` when the scratch symbol equals
    the symbol stored at ``iteration - 1`` in ``qubits_string``."""

    required_options = ("iteration", "qubits_string", "qubits_next_letter", "qubits_init_repeat")

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        iteration = int(options["iteration"])
        string = self.qubits(options, "qubits_string")
        letter = self.qubits(options, "qubits_next_letter")
        init_repeat = self.qubits(options, "qubits_init_repeat")
        width = len(letter)
        if iteration < 1:
            self.fail(f"iteration must be >= 1, got {iteration}")
        if iteration * width > len(string) or iteration >= len(init_repeat):
            self.fail(f"iteration {iteration} outside the string registers")
        previous = string[(iteration - 1) * width:iteration * width]
        circuit.extend(
            get_fragment("EqualityChecker").expand(
                {"qubits_a": letter, "qubits_b": previous, "flag": init_repeat[iteration]}
            )
        )
