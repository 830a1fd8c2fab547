# app.py
"""Disassemble EVM bytecode and report the function surface it exposes.

Bytecode comes from a file (or stdin), a hex argument, or an on-chain address
fetched over RPC. PUSH4 selectors are resolved to candidate signatures and the
result is checked against the ERC20 and ERC721 interfaces.
"""
from __future__ import annotations

import argparse
import sys
import time
from typing import Any, Dict

from evm_disasm import ERC20_INTERFACE, ERC721_INTERFACE, DisassemblyResult, disassemble
from evm_errors import InputEncodingError
from func_effects import describe_effect
from rpc_helpers import (
    DEFAULT_RPC,
    RPC_TIMEOUT,
    as_block_id,
    checksum,
    connect,
    emit_json,
    fetch_code,
    read_text_arg,
    setup_logging,
)
from selector_cache import FOURBYTE_TIMEOUT, SelectorCache

MAX_PREVIEW = 20


def summarize(result: DisassemblyResult) -> Dict[str, Any]:
    return {
        "bytecodeLength": result.compiled_len,
        "instructionCount": len(result.lines),
        "partial": result.partial,
        "error": str(result.error) if result.error else None,
        "selectors": result.selectors(),
        "signatures": sorted(result.found_signatures),
        "implementsERC20": result.implements(ERC20_INTERFACE),
        "implementsERC721": result.implements(ERC721_INTERFACE),
        "wellKnown": [
            {
                "signature": e.key,
                "selector": e.selector_hex,
                "description": e.description,
                "effects": describe_effect(e.effects),
            }
            for e in result.well_known()
        ],
    }


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Disassemble EVM bytecode, resolve function selectors and check ERC20/ERC721 surfaces.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--code", help="File with hex bytecode ('-' for stdin)")
    src.add_argument("--hex", help="Hex bytecode given inline")
    src.add_argument("--address", help="Contract address to fetch runtime code for")
    p.add_argument("--rpc", default=DEFAULT_RPC, help="EVM RPC URL (default from RPC_URL)")
    p.add_argument("--block", default="latest", help="Block tag or number for --address")
    p.add_argument("--timeout", type=float, default=RPC_TIMEOUT, help="RPC HTTP timeout in seconds")
    p.add_argument("--lookup-timeout", type=float, default=FOURBYTE_TIMEOUT, help="4byte lookup timeout in seconds")
    p.add_argument("--offline", action="store_true", help="Only use built-in selector signatures")
    p.add_argument("--no-listing", action="store_true", help="Do not print the instruction listing")
    p.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    p.add_argument("--verbose", action="store_true", help="Debug logging on stderr")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    setup_logging(args.verbose)
    start = time.time()

    if args.address:
        w3 = connect(args.rpc, timeout=args.timeout)
        addr = checksum(args.address)
        try:
            code: Any = fetch_code(w3, addr, as_block_id(args.block))
        except Exception as e:
            print(f"❌ Failed to fetch bytecode: {e}", file=sys.stderr)
            sys.exit(1)
        if not code:
            print("❌ No runtime bytecode at the provided address (EOA or selfdestructed).", file=sys.stderr)
            sys.exit(2)
        print(f"🏷️ Address: {addr}  🧱 Block: {args.block}", file=sys.stderr)
    elif args.code:
        code = read_text_arg(args.code)
    else:
        code = args.hex

    cache = SelectorCache() if args.offline else SelectorCache.with_4byte(timeout=args.lookup_timeout)

    try:
        result = disassemble(code, cache=cache)
    except InputEncodingError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(2)

    if not args.no_listing and not args.json:
        sys.stdout.write(str(result))

    summary = summarize(result)
    print(f"📦 Bytecode bytes: {summary['bytecodeLength']}  instructions: {summary['instructionCount']}", file=sys.stderr)
    if result.error:
        print(f"⚠️ Partial disassembly: {result.error}", file=sys.stderr)
    print(f"🧩 Selectors: {len(summary['selectors'])}  signatures: {len(summary['signatures'])}", file=sys.stderr)
    sigs = summary["signatures"]
    if sigs:
        print("   " + ", ".join(sigs[:MAX_PREVIEW]) + (" ..." if len(sigs) > MAX_PREVIEW else ""), file=sys.stderr)
    for entry in summary["wellKnown"]:
        print(f"   📚 {entry['signature']}: {entry['description']} [{entry['effects']}]", file=sys.stderr)
    print(f"{'✅' if summary['implementsERC20'] else '➖'} ERC20", file=sys.stderr)
    print(f"{'✅' if summary['implementsERC721'] else '➖'} ERC721", file=sys.stderr)
    if args.offline:
        print(f"📴 Offline: {cache.lookups} selector(s) not in the built-in table", file=sys.stderr)
    else:
        print(f"🌐 Remote selector lookups: {cache.lookups}", file=sys.stderr)

    if args.json:
        emit_json(summary)

    elapsed = time.time() - start
    print(f"⏱️ Completed in {elapsed:.2f} seconds", file=sys.stderr)
    sys.exit(0)


if __name__ == "__main__":
    main()
