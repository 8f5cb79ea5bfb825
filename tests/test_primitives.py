#!/usr/bin/env python3
"""
Tests for the registered circuit fragments.

Validates that:
1. Logic fragments (MCX, controlled swap, equality) act on basis states as
   documented and restore their inputs.
2. The ripple-carry adder and the comparator are exact on every input of a
   small width.
3. Amplitude encoding reproduces the requested distribution.
4. Amplitude amplification and the zero reflection produce the textbook
   phases and probabilities.
5. The superposition adder scores beams by their share of the string weight.
"""
import math

import pytest

from qdecoder.accelerators import SparseState, simulate
from qdecoder.circuits.bits import int_to_bits
from qdecoder.circuits.circuit import Circuit
from qdecoder.exceptions import FragmentBuildError
from qdecoder.primitives import (
    append_amplitude_encoding,
    available_fragments,
    get_fragment,
    phase_oracle,
    uniformly_controlled_ry,
    zero_reflection,
)


def _load(assignment):
    """Basis state from ``{register: value}`` with LSB-first registers."""
    bits = {}
    for qubits, value in assignment.items():
        for q, bit in zip(qubits, int_to_bits(value, len(qubits))):
            bits[q] = bit
    return SparseState.from_bits(bits)


def _single_value(state, qubits):
    """Value of a register that is expected to hold one classical value."""
    values = {v: p for v, p in state.register_values(qubits).items() if p > 1e-9}
    assert len(values) == 1, f"register {qubits} is in superposition: {values}"
    return next(iter(values))


def _dist(state, qubits):
    return {v: p for v, p in state.register_values(qubits).items() if p > 1e-9}


# ============================================================================
# Registry
# ============================================================================

class TestFragmentRegistry:

    def test_builtin_fragments_registered(self):
        names = available_fragments()
        for expected in ["GeneralisedMCX", "ControlledSwap", "EqualityChecker",
                         "RippleCarryAdder", "CompareGT", "RyEncoding",
                         "AmplitudeAmplification", "SuperpositionAdder", "DecoderKernel"]:
            assert expected in names, f"{expected} missing from {names}"

    def test_unknown_fragment(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("QuantumFourierTransform")

    def test_missing_option(self):
        with pytest.raises(FragmentBuildError) as excinfo:
            get_fragment("RippleCarryAdder").expand({"adder_bits": [0], "sum_bits": [1]})
        assert "c_in" in str(excinfo.value)

    def test_overlapping_registers(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("RippleCarryAdder").expand(
                {"adder_bits": [0, 1], "sum_bits": [1, 2], "c_in": 3}
            )

    def test_invalid_qubit_index(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("GeneralisedMCX").expand({"target": -1})


# ============================================================================
# Logic
# ============================================================================

class TestGeneralisedMCX:

    @pytest.mark.parametrize("q0, q1, fires", [(0, 0, False), (1, 0, True), (0, 1, False), (1, 1, False)])
    def test_mixed_polarity(self, q0, q1, fires):
        circuit = get_fragment("GeneralisedMCX").expand(
            {"target": 2, "controls_on": [0], "controls_off": [1]}
        )
        state = SparseState.from_bits({0: q0, 1: q1}).run(circuit)
        assert _single_value(state, [2]) == int(fires)

    def test_no_controls_is_plain_x(self):
        circuit = get_fragment("GeneralisedMCX").expand({"target": 0})
        assert _single_value(simulate(circuit), [0]) == 1


class TestControlledSwap:

    @pytest.mark.parametrize("flag_on, flag_off, swapped", [
        (1, 0, True), (0, 0, False), (1, 1, False),
    ])
    def test_flags(self, flag_on, flag_off, swapped):
        a, b = [0, 1], [2, 3]
        circuit = get_fragment("ControlledSwap").expand(
            {"qubits_a": a, "qubits_b": b, "flags_on": [4], "flags_off": [5]}
        )
        state = _load({tuple(a): 1, tuple(b): 2, (4,): flag_on, (5,): flag_off}).run(circuit)
        expected = (2, 1) if swapped else (1, 2)
        assert (_single_value(state, a), _single_value(state, b)) == expected

    def test_width_mismatch(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("ControlledSwap").expand({"qubits_a": [0, 1], "qubits_b": [2]})


class TestEqualityChecker:

    @pytest.mark.parametrize("x", range(4))
    @pytest.mark.parametrize("y", range(4))
    def test_exhaustive(self, x, y):
        a, b = [0, 1], [2, 3]
        circuit = get_fragment("EqualityChecker").expand(
            {"qubits_a": a, "qubits_b": b, "flag": 4}
        )
        state = _load({tuple(a): x, tuple(b): y}).run(circuit)
        assert _single_value(state, [4]) == int(x == y)
        assert _single_value(state, a) == x
        assert _single_value(state, b) == y

    def test_extra_control_blocks_flip(self):
        circuit = get_fragment("EqualityChecker").expand(
            {"qubits_a": [0], "qubits_b": [1], "flag": 2, "controls_off": [3]}
        )
        state = SparseState.from_bits({3: 1}).run(circuit)
        assert _single_value(state, [2]) == 0


# ============================================================================
# Arithmetic
# ============================================================================

class TestRippleCarryAdder:

    @pytest.mark.parametrize("x", range(8))
    @pytest.mark.parametrize("y", range(8))
    def test_widened_sum(self, x, y):
        a, s, c_in = [0, 1, 2], [3, 4, 5, 6], 7
        circuit = get_fragment("RippleCarryAdder").expand(
            {"adder_bits": a, "sum_bits": s, "c_in": c_in}
        )
        state = _load({tuple(a): x, tuple(s): y}).run(circuit)
        assert _single_value(state, s) == x + y, f"{x} + {y}"
        assert _single_value(state, a) == x
        assert _single_value(state, [c_in]) == 0

    @pytest.mark.parametrize("x", range(4))
    @pytest.mark.parametrize("y", range(4))
    def test_modular_sum(self, x, y):
        a, s = [0, 1], [2, 3]
        circuit = get_fragment("RippleCarryAdder").expand(
            {"adder_bits": a, "sum_bits": s, "c_in": 4}
        )
        state = _load({tuple(a): x, tuple(s): y}).run(circuit)
        assert _single_value(state, s) == (x + y) % 4

    def test_adds_over_superposition(self):
        circuit = Circuit().h(0)
        circuit.extend(get_fragment("RippleCarryAdder").expand(
            {"adder_bits": [0, 1], "sum_bits": [2, 3, 4], "c_in": 5}
        ))
        state = _load({(1,): 1, (2, 3): 3}).run(circuit)
        assert _dist(state, [2, 3, 4]) == pytest.approx({5: 0.5, 6: 0.5})

    def test_sum_width(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("RippleCarryAdder").expand(
                {"adder_bits": [0, 1], "sum_bits": [2, 3, 4, 5], "c_in": 6}
            )


class TestCompareGT:

    @pytest.mark.parametrize("x", range(8))
    @pytest.mark.parametrize("y", range(8))
    def test_exhaustive(self, x, y):
        a, b, flag, carry = [0, 1, 2], [3, 4, 5], 6, 7
        circuit = get_fragment("CompareGT").expand(
            {"qubits_a": a, "qubits_b": b, "qubit_flag": flag, "qubit_ancilla": carry}
        )
        state = _load({tuple(a): x, tuple(b): y}).run(circuit)
        assert _single_value(state, [flag]) == int(x > y), f"{x} > {y}"
        assert _single_value(state, a) == x
        assert _single_value(state, b) == y
        assert _single_value(state, [carry]) == 0

    @pytest.mark.parametrize("x, y", [(2, 1), (1, 2), (3, 3)])
    def test_msb_first_registers(self, x, y):
        a, b = [0, 1], [2, 3]
        circuit = get_fragment("CompareGT").expand({
            "qubits_a": a, "qubits_b": b, "qubit_flag": 4, "qubit_ancilla": 5,
            "is_LSB": False,
        })
        bits = {}
        for qubits, value in ((a, x), (b, y)):
            for q, bit in zip(qubits, int_to_bits(value, 2, lsb_first=False)):
                bits[q] = bit
        state = SparseState.from_bits(bits).run(circuit)
        assert _single_value(state, [4]) == int(x > y)


# ============================================================================
# Encoding
# ============================================================================

class TestAmplitudeEncoding:

    def test_four_symbols(self):
        probs = [0.1, 0.2, 0.3, 0.4]
        circuit = Circuit()
        append_amplitude_encoding(circuit, probs, [0, 1])
        state = simulate(circuit)
        assert _dist(state, [0, 1]) == pytest.approx(dict(enumerate(probs)))
        for value, p in enumerate(probs):
            assert state.amplitude(value).real == pytest.approx(math.sqrt(p))

    def test_padding_to_power_of_two(self):
        circuit = Circuit()
        append_amplitude_encoding(circuit, [0.5, 0.25, 0.25], [3, 4])
        assert _dist(simulate(circuit), [3, 4]) == pytest.approx({0: 0.5, 1: 0.25, 2: 0.25})

    def test_too_many_probabilities(self):
        with pytest.raises(ValueError):
            append_amplitude_encoding(Circuit(), [0.25] * 4, [0])

    @pytest.mark.parametrize("value", range(4))
    def test_uniformly_controlled_ry(self, value):
        angles = [0.3, 1.1, -0.7, 2.0]
        circuit = Circuit()
        uniformly_controlled_ry(circuit, angles, [1, 2], 0)
        state = _load({(1, 2): value}).run(circuit)
        base = value << 1
        assert state.amplitude(base).real == pytest.approx(math.cos(angles[value] / 2))
        assert state.amplitude(base | 1).real == pytest.approx(math.sin(angles[value] / 2))

    def test_ry_encoding_per_timestep(self):
        table = [[0.0, 0.5, 0.5, 0.0], [0.25] * 4]
        circuit = get_fragment("RyEncoding").expand(
            {"probability_table": table, "qubits_string": [0, 1, 2, 3]}
        )
        state = simulate(circuit)
        assert _dist(state, [0, 1]) == pytest.approx({1: 0.5, 2: 0.5})
        assert _dist(state, [2, 3]) == pytest.approx({v: 0.25 for v in range(4)})

    def test_ry_encoding_ragged_string(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("RyEncoding").expand(
                {"probability_table": [[0.5, 0.5], [0.5, 0.5]], "qubits_string": [0, 1, 2]}
            )


class TestSymbolDistribution:

    def test_letter_metric_and_null_flag(self):
        circuit = get_fragment("SymbolDistribution").expand({
            "probability_table": [[0.5, 0.5, 0.0, 0.0]],
            "symbol_metrics": [1, 2, 3, 3],
            "iteration": 0,
            "qubits_next_letter": [0, 1],
            "qubits_next_metric": [2, 3],
            "qubits_init_null": [4],
        })
        dist = {k: p for k, p in simulate(circuit).marginal([0, 1, 2, 3, 4]).items() if p > 1e-9}
        # letter 0 -> metric 1, null flag set; letter 1 -> metric 2
        assert dist == pytest.approx({"00101": 0.5, "10010": 0.5})

    def test_metric_must_fit(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("SymbolDistribution").expand({
                "probability_table": [[0.5, 0.5]],
                "symbol_metrics": [0, 4],
                "iteration": 0,
                "qubits_next_letter": [0],
                "qubits_next_metric": [1, 2],
                "qubits_init_null": [3],
            })


class TestInitRepeatFlag:

    @pytest.mark.parametrize("previous, letter, repeat", [(1, 1, 1), (1, 0, 0), (0, 0, 1)])
    def test_compares_with_previous_slot(self, previous, letter, repeat):
        circuit = get_fragment("InitRepeatFlag").expand({
            "iteration": 1,
            "qubits_string": [0, 1],
            "qubits_next_letter": [2],
            "qubits_init_repeat": [3, 4],
        })
        state = SparseState.from_bits({0: previous, 2: letter}).run(circuit)
        assert _single_value(state, [4]) == repeat
        assert _single_value(state, [3]) == 0

    def test_first_timestep_rejected(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("InitRepeatFlag").expand({
                "iteration": 0,
                "qubits_string": [0, 1],
                "qubits_next_letter": [2],
                "qubits_init_repeat": [3, 4],
            })


# ============================================================================
# Amplification
# ============================================================================

class TestAmplification:

    def test_zero_reflection(self):
        reflection = zero_reflection([0, 1])
        assert simulate(reflection).amplitude(0) == pytest.approx(-1.0)
        state = SparseState.basis(2).run(reflection)
        assert state.amplitude(2) == pytest.approx(1.0)

    def test_phase_oracle_restores_flag(self):
        circuit = Circuit().h(0)
        circuit.extend(phase_oracle(2, Circuit("mark").cx(0, 2)))
        state = simulate(circuit)
        assert state.amplitude(0).real == pytest.approx(1 / math.sqrt(2))
        assert state.amplitude(1).real == pytest.approx(-1 / math.sqrt(2))
        assert _single_value(state, [2]) == 0

    def test_single_iteration_finds_marked_state(self):
        """One Grover iteration over four states is exact."""
        prep = Circuit("uniform").h(0).h(1)
        oracle = phase_oracle(2, Circuit("mark").mcx([0, 1], 2))
        circuit = prep.clone()
        circuit.extend(get_fragment("AmplitudeAmplification").expand(
            {"oracle": oracle, "state_preparation": prep, "power": 1}
        ))
        state = simulate(circuit)
        assert _dist(state, [0, 1]) == pytest.approx({3: 1.0})
        assert _single_value(state, [2]) == 0

    def test_zero_power_is_empty(self):
        prep = Circuit().h(0)
        circuit = get_fragment("AmplitudeAmplification").expand(
            {"oracle": Circuit(), "state_preparation": prep, "power": 0}
        )
        assert len(circuit) == 0

    def test_negative_power(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("AmplitudeAmplification").expand(
                {"oracle": Circuit(), "state_preparation": Circuit().h(0), "power": -1}
            )


# ============================================================================
# Superposition adder
# ============================================================================

class TestSuperpositionAdder:
    """One timestep, binary alphabet: symbol 1 has metric 0, the null symbol metric 1."""

    @staticmethod
    def _prep() -> Circuit:
        prep = Circuit("prep").h(0)
        prep.x(1).cx(0, 1)
        prep.x(2).cx(0, 2)
        return prep

    def _options(self, **overrides):
        options = {
            "q0": 3, "q1": 4, "q2": 5,
            "qubits_flags": [1],
            "qubits_string": [0],
            "qubits_metric": [2],
            "ae_state_prep_circ": self._prep(),
            "qubits_ancilla": [9],
            "qubits_beam_metric": [6, 7, 8],
        }
        options.update(overrides)
        return options

    def test_scores(self):
        circuit = self._prep()
        circuit.extend(get_fragment("SuperpositionAdder").expand(self._options()))
        dist = {k: p for k, p in simulate(circuit).marginal([0, 6, 7, 8]).items() if p > 1e-9}
        # share of beam "1" is 1 / (1 + e^-2) -> floor(0.88 * 7) = 6
        assert dist == pytest.approx({"1011": 0.5, "0000": 0.5})

    def test_self_inverse(self):
        adder = get_fragment("SuperpositionAdder").expand(self._options())
        circuit = self._prep().extend(adder).extend(adder)
        assert _single_value(simulate(circuit), [6, 7, 8]) == 0

    def test_scratch_qubits_distinct(self):
        with pytest.raises(FragmentBuildError):
            get_fragment("SuperpositionAdder").expand(self._options(q1=3))

    def test_ancilla_used_by_prep(self):
        prep = self._prep().x(9).x(9)
        with pytest.raises(FragmentBuildError):
            get_fragment("SuperpositionAdder").expand(self._options(ae_state_prep_circ=prep))
