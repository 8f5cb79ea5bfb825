# src/qdecoder/decoders/kernel.py
"""
Reversible beam-reduction kernel.

For a string with null flags ``n`` and repeat flags ``r`` the kernel marks
each timestep superfluous (``flag[i] = n[i] OR r[i]``) and moves every
superfluous symbol, together with its flag, to the end of the string with
a controlled bubble-sort swap network. Working from the last timestep to
the first keeps the relative order of the surviving symbols.

Every reduction instruction is also appended to the metric state
preparation, which is then scored by the ``SuperpositionAdder`` fragment.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from qdecoder.circuits.ancilla import ADDER_CARRY_OFFSETS, CONTROL_SWAP_OFFSET, AncillaPool
from qdecoder.circuits.circuit import Circuit
from qdecoder.primitives.base import CircuitFragment, get_fragment, register_fragment

logger = logging.getLogger(__name__)


@register_fragment("DecoderKernel")
class BeamReductionKernel(CircuitFragment):
    """Superfluous-flag computation, swap network and beam scoring."""

    required_options = (
        "qubits_string", "qubits_metric", "qubits_total_metric_buffer",
        "qubits_init_null", "qubits_init_repeat", "qubits_superfluous_flags",
        "qubits_beam_metric", "qubits_ancilla_pool", "metric_state_prep",
    )

    def build(self, circuit: Circuit, options: Mapping[str, Any]) -> None:
        string = self.qubits(options, "qubits_string")
        metric = self.qubits(options, "qubits_metric")
        buffer = self.qubits(options, "qubits_total_metric_buffer", allow_empty=True)
        init_null = self.qubits(options, "qubits_init_null")
        init_repeat = self.qubits(options, "qubits_init_repeat")
        flags = self.qubits(options, "qubits_superfluous_flags")
        beam_metric = self.qubits(options, "qubits_beam_metric")
        pool = AncillaPool(self.qubits(options, "qubits_ancilla_pool"))
        metric_state_prep = options["metric_state_prep"]
        if not isinstance(metric_state_prep, Circuit):
            self.fail("metric_state_prep must be a Circuit")

        length = len(flags)
        if len(init_null) != length or len(init_repeat) != length:
            self.fail("init-null, init-repeat and superfluous flags must have one qubit per timestep")
        if len(string) % length or len(metric) % length:
            self.fail(f"string and metric registers cannot be split into {length} timesteps")
        if len(pool) < len(ADDER_CARRY_OFFSETS) + 1:
            self.fail(f"ancilla pool of {len(pool)} qubit(s) is too small")
        width = len(string) // length
        symbol_metric = len(metric) // length
        control_swap = pool.at(CONTROL_SWAP_OFFSET)

        def emit(step: Circuit) -> None:
            circuit.extend(step)
            metric_state_prep.extend(step)

        mcx = get_fragment("GeneralisedMCX")
        cswap = get_fragment("ControlledSwap")
        for i in range(length - 1, -1, -1):
            step = Circuit(f"flag_{i}")
            step.x(flags[i])
            step.extend(mcx.expand({
                "controls_off": [init_null[i], init_repeat[i]],
                "target": flags[i],
            }))
            emit(step)
            if i == length - 1:
                continue

            step = Circuit(f"sort_{i}")
            step.cx(flags[i], control_swap)
            for j in range(i, length - 1):
                step.extend(cswap.expand({
                    "qubits_a": string[j * width:(j + 1) * width],
                    "qubits_b": string[(j + 1) * width:(j + 2) * width],
                    "flags_on": [control_swap],
                }))
                step.extend(cswap.expand({
                    "qubits_a": [flags[j]],
                    "qubits_b": [flags[j + 1]],
                    "flags_on": [control_swap],
                }))
            # Reset the control from the init flags, which the swaps never move.
            step.x(control_swap)
            step.extend(mcx.expand({
                "controls_off": [init_null[i], init_repeat[i]],
                "target": control_swap,
            }))
            emit(step)

        pool.exclude(metric_state_prep.unique_bits())
        q0, q1, q2 = (pool.at(offset) for offset in ADDER_CARRY_OFFSETS)
        ancillas = pool.free_qubits(start=len(ADDER_CARRY_OFFSETS))
        logger.debug(
            "Kernel over %d timesteps: %d instructions, %d free ancillas for scoring",
            length, len(circuit), len(ancillas),
        )
        circuit.extend(get_fragment("SuperpositionAdder").expand({
            "q0": q0,
            "q1": q1,
            "q2": q2,
            "qubits_flags": flags,
            "qubits_string": string,
            "qubits_metric": metric[:symbol_metric] + buffer,
            "ae_state_prep_circ": metric_state_prep,
            "qubits_ancilla": ancillas,
            "qubits_beam_metric": beam_metric,
        }))
