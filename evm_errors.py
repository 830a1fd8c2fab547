"""Exception types shared by the disassembler, selector cache and ABI codec."""
from __future__ import annotations

__all__ = [
    "EvmToolsError",
    "InputEncodingError",
    "TruncatedStreamError",
    "SelectorResolutionFailure",
    "SignatureDecodeMismatch",
    "RegistryIntegrityError",
]


class EvmToolsError(Exception):
    """Base class for every error raised by this project."""


class InputEncodingError(EvmToolsError, ValueError):
    """Raw bytecode input is not valid hex; nothing was decoded."""


class TruncatedStreamError(EvmToolsError):
    """
    Bytecode ends in the middle of an instruction.

    Never raised by ``disassemble``: it is attached to the partial result,
    which stays usable.
    """

    def __init__(self, pc: int, needed: int, available: int) -> None:
        self.pc = pc
        self.needed = needed
        self.available = available
        super().__init__(
            f"incomplete push instruction at pc={pc}: "
            f"needs {needed} argument bytes, {available} available"
        )


class SelectorResolutionFailure(EvmToolsError):
    """Remote selector lookup failed (network, HTTP status or payload)."""


class SignatureDecodeMismatch(EvmToolsError, ValueError):
    """Call data does not fit the parameter layout of a function descriptor."""


class RegistryIntegrityError(EvmToolsError, RuntimeError):
    """Well-known function registry is inconsistent; raised at import time."""
