"""
EVM bytecode disassembler with selector and string recovery.

Walks the instruction stream respecting push arity and:

- resolves PUSH4 arguments as candidate function selectors through a
  SelectorCache, collecting the matched signatures;
- shows PUSH32 arguments holding a NUL-terminated 7-bit string as that
  string;
- keeps every other argument verbatim.

Decoding is best-effort: a trailing instruction cut short by the end of the
code stops the walk, and everything decoded up to that point is returned with
the error attached to the result.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple, Union

from eth_utils import decode_hex

from evm_errors import InputEncodingError, TruncatedStreamError
from evm_opcodes import PUSH4, PUSH32, Instruction, lookup
from func_registry import WellKnownEntry, lookup_signature
from selector_cache import SelectorCache, default_cache

__all__ = [
    "DecodedLine",
    "DisassemblyResult",
    "ERC20_INTERFACE",
    "ERC721_INTERFACE",
    "disassemble",
    "printable_prefix",
]

ERC20_INTERFACE: Tuple[str, ...] = (
    "totalSupply()",
    "balanceOf(address)",
    "allowance(address,address)",
    "transfer(address,uint256)",
    "approve(address,uint256)",
    "transferFrom(address,address,uint256)",
)

ERC721_INTERFACE: Tuple[str, ...] = (
    "balanceOf(address)",
    "ownerOf(uint256)",
    "safeTransferFrom(address,address,uint256)",
    "safeTransferFrom(address,address,uint256,bytes)",
    "transferFrom(address,address,uint256)",
    "approve(address,uint256)",
    "setApprovalForAll(address,bool)",
    "getApproved(uint256)",
    "isApprovedForAll(address,address)",
)

Bytecode = Union[str, bytes, bytearray]


@dataclass(frozen=True)
class DecodedLine:
    instruction: Instruction
    pc: int
    args: Tuple[bytes, ...] = ()
    annotation: str = ""

    @property
    def mnemonic(self) -> str:
        return self.instruction.mnemonic

    def format(self) -> str:
        out = f"{self.pc:04x}: {self.mnemonic}"
        if self.args:
            out += " " + ", ".join("0x" + a.hex() for a in self.args)
        if self.annotation:
            out += f" ; {self.annotation}"
        return out

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class DisassemblyResult:
    lines: Tuple[DecodedLine, ...]
    compiled_len: int
    found_signatures: FrozenSet[str]
    error: Optional[TruncatedStreamError] = None

    @property
    def partial(self) -> bool:
        return self.error is not None

    def implements(self, signatures: Iterable[str]) -> bool:
        """True if every given signature was discovered (exact text match)."""
        return all(sig in self.found_signatures for sig in signatures)

    def selectors(self) -> List[str]:
        """Distinct PUSH4 arguments as hex, in first-seen order."""
        seen: Dict[str, None] = {}
        for line in self.lines:
            if line.instruction.opcode == PUSH4 and line.args:
                seen.setdefault(line.args[0].hex(), None)
        return list(seen)

    def well_known(self) -> List[WellKnownEntry]:
        """Registry entries for discovered signatures, sorted by signature."""
        out = []
        for sig in sorted(self.found_signatures):
            entry = lookup_signature(sig)
            if entry is not None:
                out.append(entry)
        return out

    def __str__(self) -> str:
        return "".join(line.format() + "\n" for line in self.lines)


# --- helpers ---------------------------------------------------------------


def _to_bytes(code: Bytecode) -> bytes:
    if isinstance(code, (bytes, bytearray)):
        return bytes(code)
    text = "".join(code.split())
    try:
        return decode_hex(text)
    except (ValueError, TypeError) as e:
        raise InputEncodingError(f"bytecode is not valid hex: {e}") from e


def printable_prefix(arg: bytes) -> Optional[bytes]:
    """
    Return the bytes before the first NUL if they are all 7-bit, else None.

    An argument without a NUL byte is not a string; a leading NUL gives
    the empty string.
    """
    pos = arg.find(b"\x00")
    if pos < 0:
        return None
    prefix = arg[:pos]
    if any(b & 0x80 for b in prefix):
        return None
    return prefix


# --- core ------------------------------------------------------------------


def disassemble(code: Bytecode, cache: Optional[SelectorCache] = None) -> DisassemblyResult:
    """
    Disassemble hex (``0x`` optional) or raw bytecode.

    Raises InputEncodingError if ``code`` is not valid hex. A truncated
    trailing instruction does not raise: check ``result.error``.
    """
    script = _to_bytes(code)
    if cache is None:
        cache = default_cache()

    lines: List[DecodedLine] = []
    found: Set[str] = set()
    seen_selectors: Dict[bytes, Sequence[str]] = {}
    error: Optional[TruncatedStreamError] = None

    pc = 0
    n = len(script)
    while pc < n:
        inst = lookup(script[pc])
        start = pc + 1
        end = start + inst.arg_len
        if end > n:
            error = TruncatedStreamError(pc, inst.arg_len, n - start)
            break

        arg = script[start:end]
        if inst.opcode == PUSH4:
            sigs = seen_selectors.get(arg)
            if sigs is None:
                sigs = cache.resolve(arg)
                seen_selectors[arg] = sigs
                found.update(sigs)
            lines.append(DecodedLine(inst, pc, (arg,), ", ".join(sigs)))
        elif inst.opcode == PUSH32:
            text = printable_prefix(arg)
            if text is None:
                lines.append(DecodedLine(inst, pc, (arg,)))
            else:
                lines.append(DecodedLine(inst, pc, (text,), repr(text.decode("ascii"))))
        elif arg:
            lines.append(DecodedLine(inst, pc, (arg,)))
        else:
            lines.append(DecodedLine(inst, pc))
        pc = end

    return DisassemblyResult(
        lines=tuple(lines),
        compiled_len=n,
        found_signatures=frozenset(found),
        error=error,
    )
