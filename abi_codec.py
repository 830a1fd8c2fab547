"""
ABI helpers: selector computation and head/tail call-data codec.

The codec follows the standard layout: one 32-byte head word per parameter,
static values inlined in the head, dynamic values stored in a tail region and
referenced from the head by byte offset. Encoding and decoding are delegated
to eth_abi; this module maps function descriptors onto type lists and turns
eth_abi failures into SignatureDecodeMismatch.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

from eth_abi import decode, encode, is_encodable_type
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import keccak, to_bytes

from evm_errors import SignatureDecodeMismatch

__all__ = [
    "FuncParam",
    "WORD_SIZE",
    "canonical_signature",
    "selector_of",
    "normalize_type",
    "encode_arguments",
    "decode_arguments",
    "decode_outputs",
]

WORD_SIZE = 32
SELECTOR_SIZE = 4

CallData = Union[bytes, bytearray, str]

# shorthand integer names are hashed verbatim but encoded as their full width
_INT_ALIAS = re.compile(r"\b(u?int)(?=$|[\[\),])")


@dataclass(frozen=True)
class FuncParam:
    type: str
    name: str = ""

    def __str__(self) -> str:
        return f"{self.type} {self.name}" if self.name else self.type


def canonical_signature(name: str, types: Sequence[str]) -> str:
    """``name(type,type,...)`` - the text a selector is computed from."""
    return f"{name}({','.join(types)})"


def selector_of(signature: str) -> bytes:
    """First 4 bytes of keccak256 over the canonical signature text."""
    return keccak(text=signature)[:SELECTOR_SIZE]


def normalize_type(abi_type: str) -> str:
    return _INT_ALIAS.sub(r"\g<1>256", abi_type.strip())


def _as_bytes(data: CallData) -> bytes:
    if isinstance(data, str):
        try:
            return to_bytes(hexstr=data.strip())
        except ValueError as e:
            raise SignatureDecodeMismatch(f"call data is not valid hex: {e}") from e
    return bytes(data)


def _types_of(params: Sequence[FuncParam]) -> List[str]:
    types = [normalize_type(p.type) for p in params]
    for t in types:
        if not is_encodable_type(t):
            raise SignatureDecodeMismatch(f"unsupported ABI type {t!r}")
    return types


def _decode_params(
    params: Sequence[FuncParam],
    data: CallData,
    selector: Optional[bytes],
) -> List[Any]:
    raw = _as_bytes(data)
    if selector is not None and raw[:SELECTOR_SIZE] == selector:
        raw = raw[SELECTOR_SIZE:]

    types = _types_of(params)
    if not raw:
        if types:
            raise SignatureDecodeMismatch(
                f"no data to decode for {len(types)} parameter(s)"
            )
        return []
    if len(raw) % WORD_SIZE:
        raise SignatureDecodeMismatch(
            f"data length {len(raw)} is not a multiple of {WORD_SIZE}"
        )
    try:
        return list(decode(types, raw))
    except (DecodingError, UnicodeDecodeError) as e:
        raise SignatureDecodeMismatch(
            f"data does not match ({','.join(types)}): {e}"
        ) from e


def decode_arguments(descriptor: Any, data: CallData, strip_selector: bool = True) -> List[Any]:
    """
    Decode call data against the descriptor's inputs.

    When ``strip_selector`` is set and the data starts with the descriptor's
    own selector, those 4 bytes are skipped; otherwise decoding starts at
    byte 0. Addresses come back as hex strings, integers as ``int``, dynamic
    bytes as ``bytes``, strings as ``str`` and arrays/tuples as tuples.
    """
    selector = descriptor.selector if strip_selector else None
    return _decode_params(descriptor.inputs, data, selector)


def decode_outputs(descriptor: Any, data: CallData) -> List[Any]:
    """Decode return data against the descriptor's outputs."""
    return _decode_params(descriptor.outputs, data, None)


def encode_arguments(descriptor: Any, values: Sequence[Any], with_selector: bool = False) -> bytes:
    """
    Encode values for the descriptor's inputs with canonical tail packing
    (dynamic payloads appended in parameter order).
    """
    types = _types_of(descriptor.inputs)
    if len(values) != len(types):
        raise SignatureDecodeMismatch(
            f"expected {len(types)} value(s) for ({','.join(types)}), got {len(values)}"
        )
    try:
        payload = encode(types, list(values))
    except EncodingError as e:
        raise SignatureDecodeMismatch(f"cannot encode values as ({','.join(types)}): {e}") from e
    if with_selector:
        return descriptor.selector + payload
    return payload
