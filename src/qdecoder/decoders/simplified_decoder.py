# src/qdecoder/decoders/simplified_decoder.py
"""
Simplified decoder: sample strings, reduce classically.

The probability table is encoded on the string register (``method="ry"``
loads each row exactly, ``method="aa"`` uses amplitude-amplified buckets),
the register is measured, and every outcome is reduced to its beam. The
beam collecting most shots wins.
"""
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from qdecoder.accelerators.base import AcceleratorBuffer
from qdecoder.algorithms import register_algorithm
from qdecoder.circuits.circuit import Circuit
from qdecoder.config import SimplifiedDecoderConfig
from qdecoder.decoders.amplified_encoding import build_amplified_encoding
from qdecoder.decoders.base import Decoder
from qdecoder.decoders.reduction import aggregate_beams, select_best_beam
from qdecoder.exceptions import ConfigurationError
from qdecoder.primitives.base import get_fragment

logger = logging.getLogger(__name__)


@register_algorithm("simplified-decoder")
class SimplifiedDecoder(Decoder):
    """Measurement-and-reduce beam decoder."""

    def __init__(self) -> None:
        self._config: Optional[SimplifiedDecoderConfig] = None

    def required_parameters(self) -> List[str]:
        return ["probability_table", "qubits_string"]

    def _configure(self, parameters: Mapping[str, Any]) -> None:
        self._config = SimplifiedDecoderConfig.from_parameters(parameters)

    @property
    def config(self) -> SimplifiedDecoderConfig:
        if self._config is None:
            raise ConfigurationError("simplified-decoder used before a successful initialize()")
        return self._config

    def build_circuit(self) -> Circuit:
        cfg = self.config
        if cfg.method == "aa":
            if not cfg.qubits_ancilla_pool:
                raise ConfigurationError("method 'aa' needs a non-empty qubits_ancilla_pool", key="qubits_ancilla_pool")
            circuit, _ = build_amplified_encoding(
                cfg.probability_table, cfg.qubits_string, cfg.qubits_metric, cfg.qubits_ancilla_pool[0]
            )
        else:
            circuit = get_fragment("RyEncoding").expand({
                "probability_table": cfg.probability_table,
                "qubits_string": cfg.qubits_string,
            })
        circuit.name = f"simplified_{cfg.method}"
        circuit.measure(cfg.qubits_string)
        return circuit

    def execute(self, buffer: AcceleratorBuffer) -> None:
        cfg = self.config
        num_timesteps = cfg.probability_table.shape[0]
        logger.info(
            "Simplified decoder (%s): %d timestep(s), %d symbol(s), %d shot(s)",
            cfg.method, num_timesteps, cfg.probability_table.shape[1], cfg.qpu.shots,
        )
        circuit = self.build_circuit()
        cfg.qpu.execute(buffer, circuit)

        beam_counts = aggregate_beams(buffer.measurement_counts, num_timesteps)
        best_beam = select_best_beam(beam_counts)
        logger.info("Best beam %r from %d distinct beam(s)", best_beam, len(beam_counts))
        self.report_beams(buffer, beam_counts, best_beam)
