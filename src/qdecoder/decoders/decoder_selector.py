# src/qdecoder/decoders/decoder_selector.py
from __future__ import annotations

from typing import Any, Mapping, Optional

from qdecoder.decoders.base import Decoder
from qdecoder.decoders.quantum_decoder import QuantumDecoder
from qdecoder.decoders.simplified_decoder import SimplifiedDecoder
from qdecoder.exceptions import ConfigurationError


def select_decoder(
    preferred: Optional[str] = None,
    parameters: Optional[Mapping[str, Any]] = None,
) -> Decoder:
    """Factory for constructing a beam decoder.

    Parameters
    ----------
    preferred : Optional[str]
        Decoder name hint (case-insensitive). Examples:
          - "quantum", "quantum-decoder", "exponential", "search"
          - "simplified", "simplified-decoder", "sampling", "classical"
        Defaults to the quantum decoder.
    parameters : Optional[Mapping[str, Any]]
        When given, the decoder is initialized with them.

    Raises
    ------
    ConfigurationError
        If the hint is not recognised or initialization fails.
    """
    name = (preferred or "quantum").strip().lower()

    if name in {"quantum", "quantum-decoder", "quantum_decoder", "exponential", "search"}:
        decoder: Decoder = QuantumDecoder()
    elif name in {"simplified", "simplified-decoder", "simplified_decoder", "sampling", "classical"}:
        decoder = SimplifiedDecoder()
    else:
        raise ConfigurationError(f"Unknown decoder preference {preferred!r}")

    if parameters is not None and not decoder.initialize(parameters):
        raise ConfigurationError(f"{decoder.name} rejected its parameters")
    return decoder
