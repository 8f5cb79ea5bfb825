# src/qdecoder/decoders/__init__.py
"""
Beam decoders.

Available decoders:
- QuantumDecoder: exponential search over a reversible beam-reduction network
- SimplifiedDecoder: amplitude encoding, sampling and classical reduction
"""

from qdecoder.decoders.base import Decoder
from qdecoder.decoders.metric_encoder import (
    MetricPrecision,
    encode_row,
    encode_table,
    grover_iterations,
    symbol_metric,
    validate_probability_table,
)
from qdecoder.decoders.reduction import (
    aggregate_beams,
    contract_repeats,
    reduce_bitstring,
    reduce_chunks,
    select_best_beam,
    strip_nulls,
)
from qdecoder.decoders.layout import DecoderLayout, DecoderRegisters
from qdecoder.decoders.kernel import BeamReductionKernel
from qdecoder.decoders.oracle import ComparatorOracle
from qdecoder.decoders.state_preparation import StatePreparation
from qdecoder.decoders.search_driver import ExponentialSearchDriver, SearchOutcome, SearchState
from qdecoder.decoders.quantum_decoder import QuantumDecoder
from qdecoder.decoders.simplified_decoder import SimplifiedDecoder
from qdecoder.decoders.decoder_selector import select_decoder

__all__ = [
    "BeamReductionKernel",
    "ComparatorOracle",
    "Decoder",
    "DecoderLayout",
    "DecoderRegisters",
    "ExponentialSearchDriver",
    "MetricPrecision",
    "QuantumDecoder",
    "SearchOutcome",
    "SearchState",
    "SimplifiedDecoder",
    "StatePreparation",
    "aggregate_beams",
    "contract_repeats",
    "encode_row",
    "encode_table",
    "grover_iterations",
    "reduce_bitstring",
    "reduce_chunks",
    "select_best_beam",
    "select_decoder",
    "strip_nulls",
    "symbol_metric",
    "validate_probability_table",
]
