from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any, Dict, Mapping

from qdecoder.accelerators.base import AcceleratorBuffer
from qdecoder.algorithms import Algorithm
from qdecoder.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Decoder(Algorithm):
    """Beam decoder interface: configure once, then execute on a buffer."""

    def initialize(self, parameters: Mapping[str, Any]) -> bool:
        """Parse ``parameters``. Returns ``False`` on a configuration error.

        Malformed probability data raises ``DomainError``.
        """
        try:
            self._configure(parameters)
        except ConfigurationError as exc:
            logger.error("%s: invalid configuration: %s", self.name, exc)
            return False
        return True

    @abstractmethod
    def _configure(self, parameters: Mapping[str, Any]) -> None:
        ...

    @staticmethod
    def report_beams(buffer: AcceleratorBuffer, beam_counts: Dict[str, int], best_beam: str) -> None:
        """Write ``best_beam``, ``nb_beams`` and ``beam_i``/``beam_count_i``."""
        buffer.add_extra_info("best_beam", best_beam)
        buffer.add_extra_info("nb_beams", len(beam_counts))
        for i, (beam, count) in enumerate(sorted(beam_counts.items())):
            buffer.add_extra_info(f"beam_{i}", beam)
            buffer.add_extra_info(f"beam_count_{i}", int(count))
