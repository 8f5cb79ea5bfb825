# src/qdecoder/accelerators/stim_backend.py
"""Stim-backed accelerator for Clifford-only circuits."""
from __future__ import annotations

import logging
from typing import Dict, Optional

import numpy as np

from qdecoder.accelerators.base import Accelerator, register_accelerator
from qdecoder.circuits.circuit import Circuit

logger = logging.getLogger(__name__)


@register_accelerator("stim")
class StimAccelerator(Accelerator):
    """Samples circuits with ``stim.Circuit.compile_sampler``.

    Raises
    ------
    UnsupportedOperationError
        From :meth:`execute` when the circuit holds non-Clifford content
        (multi-controlled gates, arbitrary RY angles).
    """

    def __init__(self, shots: int = 1, seed: Optional[int] = None):
        super().__init__(shots=shots, seed=seed)
        self._executions = 0

    def _sample(self, circuit: Circuit) -> Dict[str, int]:
        stim_circuit = circuit.to_stim()
        seed = None if self.seed is None else self.seed + self._executions
        self._executions += 1
        sampler = stim_circuit.compile_sampler(seed=seed)
        samples = sampler.sample(shots=self.shots)
        logger.debug(
            "Sampled %d shots of %d measurements from %s",
            self.shots, stim_circuit.num_measurements, circuit.name,
        )
        counts: Dict[str, int] = {}
        rows, row_counts = np.unique(samples.astype(np.uint8), axis=0, return_counts=True)
        for row, count in zip(rows, row_counts):
            key = "".join("1" if bit else "0" for bit in row)
            counts[key] = int(count)
        return counts
