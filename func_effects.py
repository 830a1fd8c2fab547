"""
Side-effect classification for contract functions.

Primitive bits describe one kind of impact each. Compound categories are
explicit unions of primitives (and of earlier compounds), so testing a
compound against ``Effect.STATE_WRITE`` also matches transfers, mints, burns.
"""
from __future__ import annotations

import enum
from typing import Dict, List

from evm_errors import RegistryIntegrityError

__all__ = ["Effect", "describe_effect", "check_compounds"]


class Effect(enum.IntFlag):
    UNKNOWN = 0

    # primitives
    READ = 1 << 0
    WRITE = 1 << 1
    TRIGGER = 1 << 2
    STORAGE = 1 << 3
    ADDRESS = 1 << 4
    VALUE_MOVE = 1 << 5
    SUPPLY_UP = 1 << 6
    SUPPLY_DOWN = 1 << 7
    DESTRUCT = 1 << 8
    ROLES = 1 << 9

    # compounds; order matters, each one only references members above it
    STATE_WRITE = WRITE | STORAGE
    ADDRESS_WRITE = WRITE | ADDRESS
    TRANSFER = STATE_WRITE | TRIGGER | VALUE_MOVE
    MINT = TRANSFER | SUPPLY_UP
    BURN = TRANSFER | SUPPLY_DOWN
    SELFDESTRUCT = ADDRESS_WRITE | STATE_WRITE | TRIGGER | DESTRUCT
    ACCESS_CONTROL_UPDATE = STATE_WRITE | ROLES

    def is_(self, other: "Effect") -> bool:
        """True if any bit of ``other`` is set."""
        return bool(self & other)


# membership table for compounds, in definition order
COMPOUNDS: Dict[str, List[str]] = {
    "STATE_WRITE": ["WRITE", "STORAGE"],
    "ADDRESS_WRITE": ["WRITE", "ADDRESS"],
    "TRANSFER": ["STATE_WRITE", "TRIGGER", "VALUE_MOVE"],
    "MINT": ["TRANSFER", "SUPPLY_UP"],
    "BURN": ["TRANSFER", "SUPPLY_DOWN"],
    "SELFDESTRUCT": ["ADDRESS_WRITE", "STATE_WRITE", "TRIGGER", "DESTRUCT"],
    "ACCESS_CONTROL_UPDATE": ["STATE_WRITE", "ROLES"],
}

# bare class bits (WRITE, STORAGE, ...) have no label of their own
_LABELS = {
    Effect.UNKNOWN: "unknown",
    Effect.READ: "read",
    Effect.STATE_WRITE: "state write",
    Effect.ADDRESS_WRITE: "address write",
    Effect.TRIGGER: "trigger",
    Effect.TRANSFER: "transfer",
    Effect.MINT: "mint",
    Effect.BURN: "burn",
    Effect.SELFDESTRUCT: "selfdestruct",
    Effect.ACCESS_CONTROL_UPDATE: "access control update",
}


def describe_effect(effect: Effect) -> str:
    return _LABELS.get(Effect(effect), "unknown")


def check_compounds() -> None:
    """
    Verify that every compound equals the union of its listed members and
    that those members are defined before it.
    """
    seen: List[str] = []
    for name, member in Effect.__members__.items():
        if name in COMPOUNDS:
            parts = COMPOUNDS[name]
            undefined = [p for p in parts if p not in seen]
            if undefined:
                raise RegistryIntegrityError(
                    f"effect {name} references members defined after it: {undefined}"
                )
            union = Effect.UNKNOWN
            for p in parts:
                union |= Effect[p]
            if union != member:
                raise RegistryIntegrityError(
                    f"effect {name} is {int(member):#x}, expected union {int(union):#x}"
                )
        seen.append(name)
