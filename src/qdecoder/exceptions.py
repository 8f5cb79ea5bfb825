# src/qdecoder/exceptions.py
"""
Error taxonomy for the beam-search decoders.

Every error raised by the package derives from :class:`QDecoderError` and
carries an :class:`ErrorCode` so callers can branch on the failure kind
without matching message text.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Stable identifiers for each failure kind."""
    CONFIGURATION = "E100"
    DOMAIN = "E200"
    PRECONDITION = "E300"
    FRAGMENT_BUILD = "E400"
    UNSUPPORTED_OPERATION = "E500"
    SEARCH_INVARIANT = "E600"


class QDecoderError(Exception):
    """Base class for all decoder errors."""

    code: ErrorCode = ErrorCode.CONFIGURATION

    def __init__(self, message: str, *, code: Optional[ErrorCode] = None):
        super().__init__(message)
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"[{self.code.value}] {super().__str__()}"


class ConfigurationError(QDecoderError):
    """A required parameter is missing or has the wrong type."""

    code = ErrorCode.CONFIGURATION

    def __init__(self, message: str, *, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class DomainError(QDecoderError, ValueError):
    """Probability data is malformed (negative entries, rows not normalised)."""

    code = ErrorCode.DOMAIN


class PreconditionViolation(QDecoderError):
    """A resource or register-width requirement is not met."""

    code = ErrorCode.PRECONDITION


class FragmentBuildError(QDecoderError):
    """A circuit fragment rejected the options it was expanded with."""

    code = ErrorCode.FRAGMENT_BUILD

    def __init__(self, message: str, *, fragment: Optional[str] = None):
        if fragment:
            message = f"{fragment}: {message}"
        super().__init__(message)
        self.fragment = fragment


class UnsupportedOperationError(QDecoderError):
    """An accelerator or circuit transform cannot handle an instruction."""

    code = ErrorCode.UNSUPPORTED_OPERATION


class SearchInvariantError(QDecoderError):
    """The best score found by the search dropped below its starting value."""

    code = ErrorCode.SEARCH_INVARIANT
