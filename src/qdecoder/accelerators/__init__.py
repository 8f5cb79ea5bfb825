# src/qdecoder/accelerators/__init__.py
"""
Execution backends.

Available accelerators:
- ``sparse-sim``: exact sparse state-vector simulator (default)
- ``stim``: Stim sampler for Clifford-only circuits
"""

from qdecoder.accelerators.base import (
    Accelerator,
    AcceleratorBuffer,
    available_accelerators,
    get_accelerator,
    qalloc,
    register_accelerator,
)
from qdecoder.accelerators.sparse_sim import SparseSimulator, SparseState, simulate
from qdecoder.accelerators.stim_backend import StimAccelerator

DEFAULT_ACCELERATOR = "sparse-sim"

__all__ = [
    "Accelerator",
    "AcceleratorBuffer",
    "DEFAULT_ACCELERATOR",
    "SparseSimulator",
    "SparseState",
    "StimAccelerator",
    "available_accelerators",
    "get_accelerator",
    "qalloc",
    "register_accelerator",
    "simulate",
]
