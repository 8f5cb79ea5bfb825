# src/qdecoder/circuits/stim_export.py
"""
Lowering of IR circuits to ``stim.Circuit``.

Only Clifford content can be lowered:

- uncontrolled X, Y, Z, H, S, S_DAG, SWAP and M map one-to-one;
- RY by a multiple of pi/2 maps to nothing, SQRT_Y, Y or SQRT_Y_DAG;
- X, Y, Z with exactly one control map to CX, CY, CZ; an active-low control
  is lowered by conjugating the control with X.

Anything else raises :class:`~qdecoder.exceptions.UnsupportedOperationError`.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import stim

from qdecoder.circuits.gates import STIM_CONTROLLED_NAMES, get_gate_spec, quarter_turns
from qdecoder.exceptions import UnsupportedOperationError

if TYPE_CHECKING:
    from qdecoder.circuits.circuit import Instruction

_RY_QUARTER_TURNS = {0: None, 1: "SQRT_Y", 2: "Y", 3: "SQRT_Y_DAG"}


def is_stim_lowerable(inst: "Instruction") -> bool:
    """Whether :func:`append_instruction` accepts ``inst``."""
    if inst.num_controls == 0:
        if inst.name == "RY":
            return quarter_turns(inst.params[0]) is not None
        return True
    return inst.num_controls == 1 and inst.name in STIM_CONTROLLED_NAMES


def append_instruction(target: stim.Circuit, inst: "Instruction") -> None:
    """Append the stim lowering of one instruction to ``target``."""
    if not is_stim_lowerable(inst):
        raise UnsupportedOperationError(f"Instruction '{inst}' has no Clifford lowering for stim")

    if inst.num_controls == 0:
        if inst.name == "RY":
            stim_name = _RY_QUARTER_TURNS[quarter_turns(inst.params[0])]
            if stim_name is not None:
                target.append(stim_name, list(inst.targets))
            return
        target.append(get_gate_spec(inst.name).to_stim_name(), list(inst.targets))
        return

    stim_name = STIM_CONTROLLED_NAMES[inst.name]
    if inst.controls:
        target.append(stim_name, [inst.controls[0], inst.targets[0]])
        return
    control = inst.controls_off[0]
    target.append("X", [control])
    target.append(stim_name, [control, inst.targets[0]])
    target.append("X", [control])


def circuit_to_stim(instructions: Iterable["Instruction"]) -> stim.Circuit:
    """Lower a whole circuit (any iterable of instructions)."""
    result = stim.Circuit()
    for inst in instructions:
        append_instruction(result, inst)
    return result
