#!/usr/bin/env python3
"""
Tests for classical beam reduction and metric encoding.

Validates that:
1. Contract-then-strip reduction matches the literal cases and is idempotent.
2. Beam aggregation and best-beam tie-breaking are deterministic.
3. Symbol metrics hit their boundary values and the register widths follow
   the closed-form sizes.
4. Grover iteration counts are clamped to at least one.
5. Malformed probability tables raise DomainError.
"""
import math

import numpy as np
import pytest

from qdecoder.decoders.metric_encoder import (
    MetricPrecision,
    encode_row,
    encode_table,
    grover_iterations,
    metric_proportions,
    symbol_metric,
    validate_probability_table,
)
from qdecoder.decoders.reduction import (
    aggregate_beams,
    beam_count_upper_bound,
    contract_repeats,
    flagged_beam,
    measured_beam,
    measured_to_chunks,
    reduce_bitstring,
    reduce_chunks,
    select_best_beam,
    split_chunks,
    strip_nulls,
)
from qdecoder.exceptions import DomainError


# ============================================================================
# Reduction
# ============================================================================

class TestReduction:
    """Contract repeats, then strip nulls."""

    @pytest.mark.parametrize("chunks, expected", [
        (["a", "a", "-", "b"], ["a", "b"]),
        (["-", "-", "a"], ["a"]),
        (["a", "-", "a"], ["a", "a"]),
        (["-", "-", "-"], []),
        (["a", "a", "a"], ["a"]),
        ([], []),
    ])
    def test_literal_cases(self, chunks, expected):
        """Reduction of the documented examples with '-' as null."""
        result = reduce_chunks(chunks, null="-")
        assert result == expected, f"{chunks} reduced to {result}, expected {expected}"

    def test_default_null_is_all_zero_chunk(self):
        assert reduce_chunks(["01", "00", "01", "10", "10"]) == ["01", "01", "10"]

    def test_contract_compares_with_last_kept(self):
        assert contract_repeats(["a", "a", "b", "b", "a"]) == ["a", "b", "a"]

    def test_strip_nulls(self):
        assert strip_nulls(["0", "1", "0"], "0") == ["1"]

    @pytest.mark.parametrize("bitstring", ["0101", "1100", "0000", "1001", "0110"])
    def test_reduction_is_idempotent(self, bitstring):
        """Reducing an already reduced beam leaves it unchanged."""
        once = reduce_bitstring(bitstring, 2)
        twice = reduce_bitstring(once, 2)
        assert once == twice, f"reduce({bitstring!r}) = {once!r} but reduce twice = {twice!r}"

    def test_split_chunks_rejects_ragged_length(self):
        with pytest.raises(ValueError):
            split_chunks("010", 2)

    def test_measured_chunks_are_msb_first(self):
        """Slots arrive LSB first from the register and are rendered MSB first."""
        assert measured_to_chunks("1001", 2) == ["01", "10"]

    def test_measured_beam(self):
        # slot 0 = symbol 1, slot 1 = symbol 1 -> contracted to one symbol
        assert measured_beam("1010", 2) == "01"

    def test_flagged_beam_keeps_unflagged_symbols(self):
        # string "10" (symbols 1, 0), flags "01": only slot 0 survives
        assert flagged_beam("1001", 2) == "1"
        assert flagged_beam("0011", 2) == ""


class TestBeamAggregation:
    """Shot counts grouped by beam."""

    def test_counts_are_summed_per_beam(self):
        counts = {"1000": 3, "1010": 2, "0110": 5}
        beams = aggregate_beams(counts, 2)
        # "1000": symbols (1, 0) -> "01"; "1010": (1, 1) -> "01"; "0110": (2, 1) -> "1001"
        assert beams == {"01": 5, "1001": 5}

    def test_tie_break_is_lexicographic(self):
        assert select_best_beam({"10": 4, "01": 4, "11": 1}) == "01"

    def test_best_beam_requires_input(self):
        with pytest.raises(ValueError):
            select_best_beam({})

    def test_upper_bound(self):
        assert beam_count_upper_bound(4, 2) == 1 + 3 + 9
        assert beam_count_upper_bound(2, 3) == 4


# ============================================================================
# Metric encoding
# ============================================================================

class TestSymbolMetric:
    """Quantized -ln(sqrt(p))."""

    def test_certain_symbol_has_zero_metric(self):
        assert symbol_metric(1.0, 3) == 0

    def test_impossible_symbol_has_max_metric(self):
        assert symbol_metric(0.0, 3) == 7

    def test_metric_is_clamped(self):
        assert symbol_metric(1e-30, 2) == 3

    def test_intermediate_value(self):
        # -ln(sqrt(1e-5)) = 5.756...
        assert symbol_metric(1e-5, 3) == 5
        assert symbol_metric(0.001, 3) == 3

    def test_negative_probability(self):
        with pytest.raises(DomainError):
            symbol_metric(-0.1, 3)

    def test_metrics_are_monotone(self):
        """Likelier symbols never get a larger metric."""
        probabilities = np.linspace(0.0, 1.0, 41)
        metrics = [symbol_metric(float(p), 4) for p in probabilities]
        assert all(a >= b for a, b in zip(metrics, metrics[1:])), metrics


class TestEncodeRow:
    """Row encoding with explicit tallies."""

    def test_tally(self):
        row = encode_row([0.0, 0.5, 0.5, 0.0], 2)
        assert row.metrics == [3, 0, 0, 3]
        assert row.tally == {3: 2, 0: 2}

    def test_table_tally_sums_rows(self):
        table = encode_table([[0.0, 0.5, 0.5, 0.0], [0.25] * 4], 2)
        assert table.tally == {3: 2, 0: 6}
        assert table.metrics[1] == [0, 0, 0, 0]

    def test_row_must_sum_to_one(self):
        with pytest.raises(DomainError):
            encode_row([0.5, 0.2], 3)

    def test_negative_entries_rejected(self):
        with pytest.raises(DomainError):
            encode_row([1.5, -0.5], 3)

    def test_proportions(self):
        assert metric_proportions({0: 3, 2: 1}, 4) == {0: 0.75, 2: 0.25}


class TestProbabilityTableValidation:

    @pytest.mark.parametrize("table", [
        [[0.5, 0.4]],
        [[1.2, -0.2]],
        [],
        [[0.5, 0.5], [1.0]],
        [[float("nan"), 1.0]],
    ])
    def test_malformed_tables(self, table):
        with pytest.raises(DomainError):
            validate_probability_table(table)

    def test_valid_table_is_returned_as_array(self):
        array = validate_probability_table([[0.99999, 0.00001], [0.001, 0.999]])
        assert array.shape == (2, 2)
        assert array.dtype == np.float64


class TestGroverIterations:

    def test_formula(self):
        assert grover_iterations(0.25) == math.ceil(math.pi / 2)
        assert grover_iterations(0.01) == math.ceil(math.pi / 0.4)

    def test_full_proportion_gives_one(self):
        assert grover_iterations(1.0) == 1

    @pytest.mark.parametrize("proportion", [0.0, -1.0, float("nan"), float("inf")])
    def test_degenerate_proportions_clamp_to_one(self, proportion, caplog):
        assert grover_iterations(proportion) == 1
        assert "clamped to 1" in caplog.text


class TestMetricPrecision:
    """Register widths derived from the table shape."""

    def test_two_by_two_table(self):
        precision = MetricPrecision(num_timesteps=2, alphabet_size=2, symbol_metric=3)
        assert precision.symbol_width == 1
        assert precision.string_metric == 4
        assert precision.beam_metric == 6
        assert precision.estimation_precision == 10
        assert precision.required_ancillas == 53

    def test_symbol_width(self):
        assert MetricPrecision(1, 4, 1).symbol_width == 2
        assert MetricPrecision(1, 5, 1).symbol_width == 3
        assert MetricPrecision(1, 1, 1).symbol_width == 1

    def test_partial_sum_width_grows(self):
        precision = MetricPrecision(4, 2, 3)
        widths = [precision.partial_sum_width(k) for k in range(1, 5)]
        assert widths == [3, 4, 5, 5]
        assert widths[-1] == precision.string_metric

    def test_from_table(self):
        precision = MetricPrecision.from_table([[0.25] * 4] * 3, 2)
        assert (precision.num_timesteps, precision.alphabet_size) == (3, 4)

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            MetricPrecision(0, 2, 3)
