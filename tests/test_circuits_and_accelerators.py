#!/usr/bin/env python3
"""
Tests for the circuit IR, the ancilla arena and the accelerators.

Validates that:
1. Instructions reject malformed targets and invert correctly.
2. Circuits report touched and measured qubits, and lower to Stim.
3. The ancilla arena hands out the lowest free qubits and enforces ownership.
4. The sparse simulator and the Stim accelerator agree on Clifford circuits.
"""
import math

import pytest
import stim

from qdecoder.accelerators import (
    AcceleratorBuffer,
    SparseState,
    get_accelerator,
    qalloc,
    simulate,
)
from qdecoder.circuits.ancilla import AncillaPool
from qdecoder.circuits.bits import (
    bits_to_int,
    different_bit_index,
    flip_bitstring,
    gray_code,
    gray_code_string,
    int_to_bits,
    symbol_chunk,
)
from qdecoder.circuits.circuit import Circuit, Instruction
from qdecoder.exceptions import (
    ConfigurationError,
    PreconditionViolation,
    UnsupportedOperationError,
)


def _bell() -> Circuit:
    circuit = Circuit("bell")
    circuit.h(0)
    circuit.cx(0, 1)
    return circuit


# ============================================================================
# Bits
# ============================================================================

class TestBits:

    def test_int_to_bits_round_trip(self):
        assert int_to_bits(6, 4) == [0, 1, 1, 0]
        assert int_to_bits(6, 4, lsb_first=False) == [0, 1, 1, 0][::-1]
        assert bits_to_int([0, 1, 1]) == 6

    def test_value_must_fit(self):
        with pytest.raises(ValueError):
            int_to_bits(8, 3)
        with pytest.raises(ValueError):
            int_to_bits(-1, 3)

    def test_gray_code(self):
        assert [gray_code(i) for i in range(4)] == [0, 1, 3, 2]
        assert gray_code_string("011") == "010"

    def test_different_bit_index(self):
        assert different_bit_index(gray_code(2), gray_code(3)) == 0
        assert different_bit_index(5, 5) == -1
        with pytest.raises(ValueError):
            different_bit_index(0, 3)

    def test_chunks(self):
        assert symbol_chunk(1, 2) == "01"
        assert flip_bitstring("0110") == "1001"


# ============================================================================
# Circuit IR
# ============================================================================

class TestInstruction:

    def test_repeated_qubits_rejected(self):
        with pytest.raises(ValueError):
            Instruction("X", (1,), controls=(1,))

    def test_wrong_parameter_count(self):
        with pytest.raises(ValueError):
            Instruction("RY", (0,))

    def test_unknown_gate(self):
        with pytest.raises(KeyError):
            Instruction("T", (0,))

    def test_inverse(self):
        assert Instruction("S", (0,)).inverse().name == "S_DAG"
        assert Instruction("RY", (0,), params=(0.3,)).inverse().params == (-0.3,)
        cx = Instruction("X", (1,), controls=(0,))
        assert cx.inverse() == cx

    def test_measurement_cannot_be_inverted(self):
        with pytest.raises(UnsupportedOperationError):
            Instruction("M", (0,)).inverse()


class TestCircuit:

    def test_unique_bits_and_measurements(self):
        circuit = _bell()
        circuit.mcx([2], 4, controls_off=[3])
        circuit.measure([1, 0])
        assert circuit.unique_bits() == {0, 1, 2, 3, 4}
        assert circuit.measured_qubits == [1, 0]
        assert circuit.num_qubits == 5

    def test_inverse_undoes_circuit(self):
        circuit = Circuit()
        circuit.ry(0, 0.7)
        circuit.add_gate("S", [0])
        circuit.cx(0, 1)
        circuit.add_gate("RY", [1], controls=[0], params=[1.1])
        composed = circuit.clone()
        composed.extend(circuit.inverse())
        state = simulate(composed)
        assert abs(state.amplitude(0) - 1.0) < 1e-9

    def test_extend_and_power(self):
        step = Circuit("step").x(0)
        assert len(step.power(3)) == 3
        assert len(step.power(0)) == 0
        combined = Circuit().extend(step).extend(step)
        assert len(combined) == 2

    def test_clone_is_independent(self):
        circuit = _bell()
        copy = circuit.clone()
        copy.x(3)
        assert len(circuit) == 2 and len(copy) == 3


class TestStimLowering:

    def test_clifford_circuit(self):
        circuit = _bell()
        circuit.add_gate("X", [2], controls_off=[1])
        circuit.ry(3, math.pi / 2)
        circuit.ry(3, math.pi)
        circuit.measure([0, 1, 2, 3])
        assert circuit.is_clifford()
        lowered = circuit.to_stim()
        assert isinstance(lowered, stim.Circuit)
        assert lowered.num_measurements == 4

    def test_off_control_is_conjugated(self):
        circuit = Circuit().add_gate("X", [1], controls_off=[0])
        assert str(circuit.to_stim()).split() == ["X", "0", "CX", "0", "1", "X", "0"]

    def test_multi_controlled_gate_rejected(self):
        circuit = Circuit().mcx([0, 1], 2)
        assert not circuit.is_clifford()
        with pytest.raises(UnsupportedOperationError):
            circuit.to_stim()

    def test_arbitrary_angle_rejected(self):
        with pytest.raises(UnsupportedOperationError):
            Circuit().ry(0, 0.3).to_stim()


# ============================================================================
# Ancilla arena
# ============================================================================

class TestAncillaPool:

    def test_lowest_free_first(self):
        pool = AncillaPool([10, 11, 12, 13])
        first = pool.allocate(2, "a")
        assert first.qubits == (10, 11)
        pool.release(first)
        again = pool.allocate(1, "b")
        assert again.qubits == (10,)
        assert pool.peak_in_use == 2

    def test_exhaustion(self):
        pool = AncillaPool([0, 1])
        pool.allocate(2, "all")
        with pytest.raises(PreconditionViolation):
            pool.allocate(1, "more")

    def test_release_checks_ownership(self):
        pool = AncillaPool([0, 1, 2])
        region = pool.allocate(1, "mine")
        pool.release(region)
        with pytest.raises(PreconditionViolation):
            pool.release(region)

    def test_exclude_and_offsets(self):
        pool = AncillaPool([5, 6, 7, 8, 9])
        pool.exclude([6, 8])
        assert pool.free_qubits() == [5, 7, 9]
        assert pool.free_qubits(start=3) == [9]
        assert pool.at(1) == 6
        with pytest.raises(PreconditionViolation):
            pool.at(5)

    def test_repeated_qubits_rejected(self):
        with pytest.raises(PreconditionViolation):
            AncillaPool([1, 1])


# ============================================================================
# Accelerators
# ============================================================================

class TestSparseState:

    def test_bell_state(self):
        dist = simulate(_bell()).marginal([0, 1])
        assert set(dist) == {"00", "11"}
        assert abs(dist["00"] - 0.5) < 1e-12

    def test_active_low_control(self):
        circuit = Circuit().add_gate("X", [1], controls_off=[0])
        assert simulate(circuit).register_values([1]) == {1: 1.0}
        state = SparseState.from_bits({0: 1}).run(circuit)
        assert state.register_values([1]) == {0: 1.0}

    def test_swap(self):
        state = SparseState.from_bits({0: 1}).run(Circuit().swap(0, 3))
        assert state.register_values([0, 3]) == {2: 1.0}

    def test_phase_gates(self):
        circuit = Circuit().x(0).z(0)
        assert abs(simulate(circuit).amplitude(1) + 1.0) < 1e-12

    def test_gate_after_measurement_rejected(self):
        circuit = Circuit().measure([0]).x(0)
        with pytest.raises(UnsupportedOperationError):
            simulate(circuit)


class TestAccelerators:

    @pytest.mark.parametrize("name", ["sparse-sim", "stim"])
    def test_bell_counts(self, name):
        qpu = get_accelerator(name, shots=200, seed=3)
        buffer = qalloc(2)
        circuit = _bell().measure([0, 1])
        qpu.execute(buffer, circuit)
        counts = buffer.measurement_counts
        assert set(counts) <= {"00", "11"}, f"{name} produced {counts}"
        assert sum(counts.values()) == 200
        assert buffer["accelerator"] == name

    def test_seeded_sampling_is_reproducible(self):
        circuit = Circuit().h(0).h(1).measure([0, 1])
        results = []
        for _ in range(2):
            buffer = AcceleratorBuffer(2)
            get_accelerator("sparse-sim", shots=50, seed=11).execute(buffer, circuit)
            results.append(buffer.measurement_counts)
        assert results[0] == results[1]

    def test_buffer_too_small(self):
        with pytest.raises(PreconditionViolation):
            get_accelerator("sparse-sim").execute(qalloc(1), _bell().measure([1]))

    def test_circuit_without_measurement(self):
        with pytest.raises(ValueError):
            get_accelerator("sparse-sim").execute(qalloc(2), _bell())

    def test_unknown_accelerator(self):
        with pytest.raises(ConfigurationError):
            get_accelerator("qpu-9000")

    def test_stim_rejects_non_clifford(self):
        circuit = Circuit().ry(0, 0.4).measure([0])
        with pytest.raises(UnsupportedOperationError):
            get_accelerator("stim").execute(qalloc(1), circuit)
