"""
Function signature grammar.

Selector sources return both canonical (``transfer(address,uint256)``) and
annotated (``transfer(address to, uint256 amount) returns (bool)``) forms, so
parsing is best-effort and never fails:

    name ["(" [param ("," param)*] ")"] ["returns" "(" [param ("," param)*] ")"]
    param := type [" " name]

The first space of a param splits its type from its name. Commas nested in
tuple types do not split params.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

from abi_codec import FuncParam, canonical_signature, selector_of
from func_effects import Effect, describe_effect
from func_registry import WellKnownEntry, lookup_name, lookup_signature

__all__ = [
    "Parsed",
    "WellKnown",
    "FunctionDescriptor",
    "parse_signature",
    "parse_params",
    "lookup_well_known",
]

_ARRAY_SUFFIX = re.compile(r"((?:\[\d*\])*)(.*)$", re.DOTALL)


@dataclass(frozen=True)
class Parsed:
    """Ad-hoc descriptor built from signature text only."""

    raw: str


@dataclass(frozen=True)
class WellKnown:
    """Descriptor backed by a registry entry."""

    entry: WellKnownEntry
    raw: str = ""


Provenance = Union[Parsed, WellKnown]


@dataclass(frozen=True)
class FunctionDescriptor:
    name: str
    inputs: Tuple[FuncParam, ...] = ()
    outputs: Tuple[FuncParam, ...] = ()
    provenance: Provenance = field(default_factory=lambda: Parsed(""))

    @property
    def canonical(self) -> str:
        return canonical_signature(self.name, [p.type for p in self.inputs])

    @property
    def selector(self) -> bytes:
        if isinstance(self.provenance, WellKnown) and self.provenance.entry.selector_hex:
            return bytes.fromhex(self.provenance.entry.selector_hex)
        return selector_of(self.canonical)

    @property
    def selector_hex(self) -> str:
        return self.selector.hex()

    @property
    def is_well_known(self) -> bool:
        return isinstance(self.provenance, WellKnown)

    @property
    def description(self) -> Optional[str]:
        if isinstance(self.provenance, WellKnown):
            return self.provenance.entry.description
        return None

    @property
    def effects(self) -> Effect:
        if isinstance(self.provenance, WellKnown):
            return self.provenance.entry.effects
        return Effect.UNKNOWN

    def describe(self) -> str:
        """
        Human-readable form with parameter names, return clause and the
        registry description when there is one.
        """
        out = f"{self.name}({', '.join(str(p) for p in self.inputs)})"
        if self.outputs:
            out += f" returns ({', '.join(str(p) for p in self.outputs)})"
        if self.description:
            out += f" // {self.description} [{describe_effect(self.effects)}]"
        return out

    def __str__(self) -> str:
        return self.canonical


# --- parsing ---------------------------------------------------------------


def _split_top_level(text: str) -> Iterator[str]:
    depth = 0
    start = 0
    for i, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            yield text[start:i]
            start = i + 1
    yield text[start:]


def _matching_paren(text: str, open_idx: int) -> int:
    """Index of the ")" closing ``text[open_idx]``, or len(text) if unclosed."""
    depth = 0
    for i in range(open_idx, len(text)):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    return len(text)


def _parse_param(text: str) -> FuncParam:
    text = text.strip()
    # tuple types may contain spaces; the name follows the closing paren
    if text.startswith("("):
        end = _matching_paren(text, 0)
        m = _ARRAY_SUFFIX.match(text, end + 1)
        return FuncParam(type=text[: end + 1] + m.group(1), name=m.group(2).strip())
    if " " in text:
        typ, name = text.split(" ", 1)
        return FuncParam(type=typ, name=name.strip())
    return FuncParam(type=text)


def parse_params(text: str) -> Tuple[FuncParam, ...]:
    if not text.strip():
        return ()
    return tuple(_parse_param(p) for p in _split_top_level(text))


def _parse_raw(raw: str) -> Tuple[str, Tuple[FuncParam, ...], Tuple[FuncParam, ...]]:
    text = raw.strip()
    open_idx = text.find("(")
    if open_idx < 0:
        return text, (), ()

    name = text[:open_idx].strip()
    close_idx = _matching_paren(text, open_idx)
    inputs = parse_params(text[open_idx + 1:close_idx])

    outputs: Tuple[FuncParam, ...] = ()
    rest = text[close_idx + 1:]
    ret = rest.find("returns")
    if ret >= 0:
        rest = rest[ret + len("returns"):]
        out_open = rest.find("(")
        if out_open >= 0:
            out_close = _matching_paren(rest, out_open)
            outputs = parse_params(rest[out_open + 1:out_close])
        else:
            outputs = parse_params(rest)
    return name, inputs, outputs


def _collapse(text: str) -> str:
    return " ".join(text.split())


def lookup_well_known(
    raw: str, name: str, inputs: Tuple[FuncParam, ...], bare: bool
) -> Optional[WellKnownEntry]:
    """
    Registry lookup in order: verbatim text, canonical form, whitespace
    collapsed forms, then case-insensitive bare name.

    The name tier only applies to bare input (no parameter list). Several
    matches are narrowed to the one taking no arguments; with a parameter
    list a differently cased name hashes to a different selector.
    """
    canonical = canonical_signature(name, [p.type for p in inputs])
    for key in (raw, canonical, _collapse(canonical), _collapse(raw)):
        entry = lookup_signature(key)
        if entry is not None:
            return entry

    if bare:
        candidates = lookup_name(name)
        if len(candidates) == 1:
            return candidates[0]
        types = [p.type for p in inputs]
        same = [e for e in candidates if [p.type for p in e.inputs] == types]
        if len(same) == 1:
            return same[0]
    return None


def parse_signature(raw: str) -> FunctionDescriptor:
    """Parse signature text into a descriptor; never raises."""
    name, inputs, outputs = _parse_raw(raw)
    entry = lookup_well_known(raw, name, inputs, bare="(" not in raw)
    if entry is not None:
        return FunctionDescriptor(
            name=entry.name,
            inputs=entry.inputs,
            outputs=entry.outputs,
            provenance=WellKnown(entry, raw),
        )
    return FunctionDescriptor(name=name, inputs=inputs, outputs=outputs, provenance=Parsed(raw))
