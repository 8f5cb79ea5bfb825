# src/qdecoder/decoders/state_preparation.py
"""
State preparation of the quantum decoder.

Builds ``A`` such that ``A|0>`` holds every string of the table in
superposition together with its symbol metrics, null and repeat flags,
total metric, superfluous flags (after beam reduction) and beam metric.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from qdecoder.circuits.ancilla import AncillaPool
from qdecoder.circuits.circuit import Circuit
from qdecoder.decoders.layout import DecoderRegisters
from qdecoder.decoders.metric_encoder import MetricPrecision, TableMetrics, encode_table
from qdecoder.primitives.base import get_fragment

logger = logging.getLogger(__name__)


class StatePreparation:
    """Builder for the decoder's state-preparation circuit.

    Parameters
    ----------
    probability_table : np.ndarray
        Validated ``L x A`` table.
    registers : DecoderRegisters
        Register lists, already validated against ``precision``.
    precision : MetricPrecision
        Register widths.
    """

    def __init__(
        self,
        probability_table: np.ndarray,
        registers: DecoderRegisters,
        precision: MetricPrecision,
    ):
        self.table = np.asarray(probability_table, dtype=float)
        self.registers = registers
        self.precision = precision
        self.metrics: TableMetrics = encode_table(self.table, precision.symbol_metric)
        self.metric_state_prep: Optional[Circuit] = None
        self.pool_peak_usage = 0

    def string_slot(self, it: int):
        s = self.precision.symbol_width
        return self.registers.qubits_string[it * s:(it + 1) * s]

    def metric_slot(self, it: int):
        ml = self.precision.symbol_metric
        return self.registers.qubits_metric[it * ml:(it + 1) * ml]

    def build(self) -> Circuit:
        regs = self.registers
        pool = AncillaPool(regs.qubits_ancilla_pool)
        circuit = Circuit("state_prep")

        self._encode_symbols(circuit, pool)
        self._accumulate_metric(circuit, pool)

        self.metric_state_prep = circuit.clone("metric_state_prep")
        circuit.extend(get_fragment("DecoderKernel").expand({
            "qubits_string": regs.qubits_string,
            "qubits_metric": regs.qubits_metric,
            "qubits_total_metric_buffer": regs.qubits_total_metric_buffer,
            "qubits_init_null": regs.qubits_init_null,
            "qubits_init_repeat": regs.qubits_init_repeat,
            "qubits_superfluous_flags": regs.qubits_superfluous_flags,
            "qubits_beam_metric": regs.qubits_beam_metric,
            "qubits_ancilla_pool": regs.qubits_ancilla_pool,
            "metric_state_prep": self.metric_state_prep,
        }))
        self.pool_peak_usage = pool.peak_in_use
        logger.debug(
            "State preparation: %d instructions on %d qubits, gate counts %s",
            len(circuit), circuit.num_qubits, circuit.gate_counts(),
        )
        return circuit

    def _encode_symbols(self, circuit: Circuit, pool: AncillaPool) -> None:
        regs = self.registers
        s, ml = self.precision.symbol_width, self.precision.symbol_metric
        scratch = pool.allocate(s + ml, "next_symbol")
        next_letter, next_metric = list(scratch[:s]), list(scratch[s:])

        for it in range(self.precision.num_timesteps):
            circuit.extend(get_fragment("SymbolDistribution").expand({
                "probability_table": self.table,
                "symbol_metrics": self.metrics.rows[it].metrics,
                "iteration": it,
                "qubits_next_letter": next_letter,
                "qubits_next_metric": next_metric,
                "qubits_init_null": regs.qubits_init_null,
            }))
            if it > 0:
                circuit.extend(get_fragment("InitRepeatFlag").expand({
                    "iteration": it,
                    "qubits_string": regs.qubits_string,
                    "qubits_next_letter": next_letter,
                    "qubits_init_repeat": regs.qubits_init_repeat,
                }))
            # Move the scratch registers into slot it, then clear them.
            for src, dst in zip(next_letter + next_metric, self.string_slot(it) + self.metric_slot(it)):
                circuit.cx(src, dst)
            for src, dst in zip(self.string_slot(it) + self.metric_slot(it), next_letter + next_metric):
                circuit.cx(src, dst)

        pool.release(scratch)

    def _accumulate_metric(self, circuit: Circuit, pool: AncillaPool) -> None:
        """Add every symbol metric into the total register, widening as it grows."""
        ml = self.precision.symbol_metric
        total = self.metric_slot(0) + self.registers.qubits_total_metric_buffer
        carry = pool.allocate(1, "carry")
        for it in range(1, self.precision.num_timesteps):
            width = self.precision.partial_sum_width(it + 1)
            padding = pool.allocate(width - 1 - ml, f"padding_{it}")
            circuit.extend(get_fragment("RippleCarryAdder").expand({
                "adder_bits": self.metric_slot(it) + list(padding.qubits),
                "sum_bits": total[:width],
                "c_in": carry[0],
            }))
            pool.release(padding)
        pool.release(carry)
