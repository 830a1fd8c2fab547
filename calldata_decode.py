"""Decode call data against a function signature.

The signature may be canonical or annotated with parameter names; call data
comes inline or from a transaction fetched over RPC.
"""
from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List

from abi_codec import decode_arguments
from evm_errors import SignatureDecodeMismatch
from func_effects import describe_effect
from func_signature import FunctionDescriptor, parse_signature
from rpc_helpers import DEFAULT_RPC, RPC_TIMEOUT, connect, emit_json, setup_logging


def jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) >= 2**53:
        # beyond what JSON consumers can hold exactly
        return str(value)
    return value


def describe_values(desc: FunctionDescriptor, values: List[Any]) -> List[Dict[str, Any]]:
    return [
        {"name": p.name or f"arg{i}", "type": p.type, "value": jsonable(v)}
        for i, (p, v) in enumerate(zip(desc.inputs, values))
    ]


def fetch_tx_input(rpc: str, timeout: float, tx_hash: str) -> bytes:
    w3 = connect(rpc, timeout=timeout)
    try:
        tx = w3.eth.get_transaction(tx_hash)
    except Exception as e:
        print(f"❌ Failed to fetch transaction {tx_hash}: {e}", file=sys.stderr)
        sys.exit(1)
    return bytes(tx["input"])


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Decode call data against a function signature.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ap.add_argument("--sig", required=True, help="Function signature, e.g. 'transfer(address to, uint256 amount)'")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--data", help="Call data as hex (0x optional)")
    src.add_argument("--tx", help="Transaction hash whose input to decode")
    ap.add_argument("--rpc", default=DEFAULT_RPC, help="RPC URL for --tx (default from RPC_URL)")
    ap.add_argument("--timeout", type=float, default=RPC_TIMEOUT, help="RPC HTTP timeout in seconds")
    ap.add_argument("--no-strip", action="store_true", help="Decode from byte 0 even if a matching selector leads")
    ap.add_argument("--json", action="store_true", help="Emit JSON to stdout")
    ap.add_argument("--verbose", action="store_true", help="Debug logging on stderr")
    return ap.parse_args()


def main() -> None:
    args = parse_args()
    setup_logging(args.verbose)

    desc = parse_signature(args.sig)
    data: Any = fetch_tx_input(args.rpc, args.timeout, args.tx) if args.tx else args.data

    try:
        values = decode_arguments(desc, data, strip_selector=not args.no_strip)
    except SignatureDecodeMismatch as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(2)

    print(f"🔑 {desc.canonical}  selector=0x{desc.selector_hex}", file=sys.stderr)
    if desc.is_well_known:
        print(f"📚 {desc.description} [{describe_effect(desc.effects)}]", file=sys.stderr)

    rows = describe_values(desc, values)
    if args.json:
        emit_json({
            "signature": desc.canonical,
            "selector": desc.selector_hex,
            "wellKnown": desc.is_well_known,
            "arguments": rows,
        })
    else:
        for row in rows:
            print(f"{row['name']} ({row['type']}): {row['value']}")


if __name__ == "__main__":
    main()
