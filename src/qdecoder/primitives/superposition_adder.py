# src/qdecoder/primitives/superposition_adder.py
"""
Beam-metric evaluation over a superposition of strings.

The fragment writes, for every string in the support of the metric state
preparation, a score for the beam that string reduces to. The built-in
version behaves like ideal amplitude estimation: it evaluates the state
preparation exactly and compiles the resulting scores into a
multi-controlled-X lookup keyed by the string and superfluous-flag
registers, so the emitted circuit is self-inverse.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Tuple

from qdecoder.accelerators.sparse_sim import simulate
from qdecoder.circuits.circuit import Circuit
from qdecoder.primitives.base import CircuitFragment, register_fragment
from qdecoder.primitives.encoding import append_lookup

logger = logging.getLogger(__name__)

SUPPORT_ATOL = 1e-12


@register_fragment("SuperpositionAdder")
class SuperpositionAdder(CircuitFragment):
    """Score every beam and write it into ``qubits_beam_metric``.

    A string ``s`` with total metric ``M(s)`` has weight ``exp(-2 M(s))``,
    the product of its symbol probabilities up to quantization. A beam's
    score is its share of the total weight, scaled to the full range of
    ``qubits_beam_metric`` and floored.

    Options
    -------
    q0, q1, q2 : int
        Scratch qubits reserved for the estimation.
    qubits_flags : list of int
        Superfluous flags, one per timestep.
    qubits_string : list of int
        Symbol register, ``len(qubits_flags)`` equal-width slots.
    qubits_metric : list of int
        Total string metric (LSB first).
    ae_state_prep_circ : Circuit
        State preparation whose output is scored.
    qubits_ancilla : list of int
        Further scratch qubits, disjoint from everything the state
        preparation touches.
    qubits_beam_metric : list of int
        Output register, must start in 0.
    """

    required_options = (
        "q0", "q1", "q2", "qubits_flags", "qubits_string", "qubits_metric",
        "ae_state_prep_circ", "qubits_ancilla", "qubits_beam_metric",
    )

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        scratch = [self.qubit(options, key) for key in ("q0", "q1", "q2")]
        flags = self.qubits(options, "qubits_flags")
        string = self.qubits(options, "qubits_string")
        metric = self.qubits(options, "qubits_metric")
        ancilla = self.qubits(options, "qubits_ancilla", allow_empty=True)
        beam_metric = self.qubits(options, "qubits_beam_metric")
        prep = options["ae_state_prep_circ"]
        if not isinstance(prep, Circuit):
            self.fail("ae_state_prep_circ must be a Circuit")
        if len(set(scratch)) != 3:
            self.fail(f"q0, q1, q2 must be distinct, got {scratch}")
        if len(string) % len(flags):
            self.fail(f"{len(string)} string qubits cannot be split into {len(flags)} slots")
        self.check_disjoint(
            scratch=scratch, qubits_flags=flags, qubits_string=string,
            qubits_metric=metric, qubits_ancilla=ancilla, qubits_beam_metric=beam_metric,
        )
        overlap = set(ancilla) & prep.unique_bits()
        if overlap:
            self.fail(f"ancilla qubits {sorted(overlap)} are used by the state preparation")
        if prep.measured_qubits:
            self.fail("ae_state_prep_circ must not contain measurements")

        width = len(string) // len(flags)
        state = simulate(prep)
        beam_weight: Dict[Tuple[int, ...], float] = {}
        pattern_beam: Dict[int, Tuple[int, ...]] = {}
        for index, amp in state.amplitudes.items():
            if abs(amp) ** 2 <= SUPPORT_ATOL:
                continue
            bits = [(index >> q) & 1 for q in string + flags]
            key = sum(bit << k for k, bit in enumerate(bits))
            total = sum(((index >> q) & 1) << k for k, q in enumerate(metric))
            beam = tuple(
                sum(bits[t * width + k] << k for k in range(width))
                for t in range(len(flags))
                if not bits[len(string) + t]
            )
            # Distinct strings can reduce to the same pattern; each keeps its own weight.
            pattern_beam[key] = beam
            beam_weight[beam] = beam_weight.get(beam, 0.0) + math.exp(-2.0 * total)

        norm = sum(beam_weight.values())
        scale = (1 << len(beam_metric)) - 1
        scores = {
            beam: min(scale, int(math.floor(weight / norm * scale + 1e-9)))
            for beam, weight in beam_weight.items()
        }
        for key, beam in sorted(pattern_beam.items()):
            append_lookup(circuit, string + flags, key, beam_metric, scores[beam])
        logger.debug(
            "Scored %d beam(s) over %d string pattern(s): %s",
            len(scores), len(pattern_beam), scores,
        )
