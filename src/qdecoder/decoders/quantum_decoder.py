# src/qdecoder/decoders/quantum_decoder.py
"""
Quantum beam-search decoder.

Prepares every string of the probability table in superposition, reduces
each to its beam with a reversible network, scores the beams, and uses
repeated exponential search to find a beam scoring above the best score
found so far.

Example
-------
>>> table = [[0.99999, 0.00001], [0.001, 0.999]]
>>> layout = DecoderLayout.build(table, metric_precision=3)
>>> decoder = QuantumDecoder()
>>> decoder.initialize({"probability_table": table, "N_TRIALS": 2, **layout.to_parameters()})
True
>>> buffer = qalloc(layout.total_num_qubits)
>>> decoder.execute(buffer)
>>> buffer["best_beam"]
'1'
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from qdecoder.accelerators.base import AcceleratorBuffer
from qdecoder.algorithms import register_algorithm
from qdecoder.circuits.circuit import Circuit
from qdecoder.config import QuantumDecoderConfig
from qdecoder.decoders.base import Decoder
from qdecoder.decoders.metric_encoder import MetricPrecision
from qdecoder.decoders.oracle import ComparatorOracle
from qdecoder.decoders.reduction import flagged_beam
from qdecoder.decoders.search_driver import ExponentialSearchDriver, SearchFactory, SearchOutcome
from qdecoder.decoders.state_preparation import StatePreparation
from qdecoder.exceptions import ConfigurationError, PreconditionViolation

logger = logging.getLogger(__name__)


@register_algorithm("quantum-decoder")
class QuantumDecoder(Decoder):
    """Exponential-search beam decoder.

    Parameters
    ----------
    search_factory : Optional[SearchFactory]
        Replaces the registered ``exponential-search`` algorithm.
    """

    def __init__(self, search_factory: Optional[SearchFactory] = None):
        self._config: Optional[QuantumDecoderConfig] = None
        self._search_factory = search_factory
        self.state_preparation: Optional[Circuit] = None
        self.outcome: Optional[SearchOutcome] = None

    def required_parameters(self) -> List[str]:
        return [
            "probability_table", "qubits_metric", "qubits_string", "qubits_init_null",
            "qubits_init_repeat", "qubits_superfluous_flags", "qubits_beam_metric",
            "qubits_best_score", "qubits_ancilla_pool", "N_TRIALS",
        ]

    def _configure(self, parameters: Mapping[str, Any]) -> None:
        self._config = QuantumDecoderConfig.from_parameters(parameters)

    @property
    def config(self) -> QuantumDecoderConfig:
        if self._config is None:
            raise ConfigurationError("quantum-decoder used before a successful initialize()")
        return self._config

    def precision(self) -> MetricPrecision:
        cfg = self.config
        num_timesteps, alphabet = cfg.probability_table.shape
        num_metric = len(cfg.registers.qubits_metric)
        if num_metric == 0 or num_metric % num_timesteps:
            raise PreconditionViolation(
                f"qubits_metric holds {num_metric} qubit(s), not a positive multiple of {num_timesteps}"
            )
        return MetricPrecision(num_timesteps, alphabet, num_metric // num_timesteps)

    def build_state_preparation(self) -> Circuit:
        """Validate the registers and build the state preparation ``A``."""
        precision = self.precision()
        self.config.registers.validate(precision)
        builder = StatePreparation(self.config.probability_table, self.config.registers, precision)
        circuit = builder.build()
        logger.debug("Ancilla pool peak usage during preparation: %d", builder.pool_peak_usage)
        return circuit

    def build_oracle(self) -> ComparatorOracle:
        regs = self.config.registers
        return ComparatorOracle(regs.qubits_beam_metric, regs.qubits_best_score, regs.qubits_ancilla_pool)

    def execute(self, buffer: AcceleratorBuffer) -> None:
        cfg = self.config
        precision = self.precision()
        regs = cfg.registers
        logger.info(
            "Quantum decoder: %d timestep(s), %d symbol(s), ml=%d ms=%d mb=%d, %d trial(s)",
            precision.num_timesteps, precision.alphabet_size, precision.symbol_metric,
            precision.string_metric, precision.beam_metric, cfg.n_trials,
        )

        self.state_preparation = self.build_state_preparation()
        oracle = self.build_oracle()
        # Raises PreconditionViolation for an initial score outside the register.
        oracle(cfg.best_score)

        total_num_qubits = regs.total_num_qubits
        driver = ExponentialSearchDriver(
            self.state_preparation,
            oracle,
            n_trials=cfg.n_trials,
            initial_best_score=cfg.best_score,
            qubits_string=regs.qubits_string + regs.qubits_superfluous_flags,
            qubits_metric=regs.qubits_beam_metric,
            total_num_qubits=total_num_qubits,
            search_space_size=precision.alphabet_size ** precision.num_timesteps,
            qpu=cfg.qpu,
            seed=cfg.seed,
            search_factory=self._search_factory,
        )
        self.outcome = outcome = driver.run()

        beam_counts: Dict[str, int] = {}
        for record in outcome.trials:
            if record.best_string:
                beam = flagged_beam(record.best_string, precision.num_timesteps)
                beam_counts[beam] = beam_counts.get(beam, 0) + 1
        if outcome.best_string:
            best_beam = flagged_beam(outcome.best_string, precision.num_timesteps)
            logger.info("Best beam %r with score %d", best_beam, outcome.best_score)
        else:
            best_beam = ""
            logger.warning("No beam scored above the initial best score %d", cfg.best_score)

        buffer.add_extra_info("best_string", outcome.best_string)
        buffer.add_extra_info("best_score", outcome.best_score)
        buffer.add_extra_info("max_best_score", outcome.max_best_score)
        buffer.add_extra_info("n_success", outcome.n_success)
        buffer.add_extra_info("success_probability", outcome.success_probability)
        buffer.add_extra_info("total_num_qubits", total_num_qubits)
        self.report_beams(buffer, beam_counts, best_beam)
