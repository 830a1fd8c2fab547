"""Shared CLI plumbing: RPC connection, address/block parsing, input loading."""
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

from web3 import Web3

DEFAULT_RPC = os.getenv("RPC_URL", "https://ethereum-rpc.publicnode.com")
RPC_TIMEOUT = float(os.getenv("RPC_TIMEOUT", "30"))

__all__ = [
    "DEFAULT_RPC",
    "RPC_TIMEOUT",
    "checksum",
    "connect",
    "as_block_id",
    "fetch_code",
    "read_text_arg",
    "emit_json",
    "setup_logging",
]

BLOCK_TAGS = ("latest", "finalized", "safe", "earliest", "pending")


def checksum(addr: str) -> str:
    if not isinstance(addr, str) or not Web3.is_address(addr):
        print(f"❌ Invalid Ethereum address: {addr!r}", file=sys.stderr)
        sys.exit(2)
    return Web3.to_checksum_address(addr)


def connect(rpc: str, timeout: float = RPC_TIMEOUT) -> Web3:
    w3 = Web3(Web3.HTTPProvider(rpc, request_kwargs={"timeout": timeout}))
    if not w3.is_connected():
        print(f"❌ Failed to connect to RPC endpoint {rpc}.", file=sys.stderr)
        sys.exit(1)
    return w3


def as_block_id(s: str | None) -> str | int:
    """
    Accept either an integer-like string (decimal / 0xHEX) or a tag:
    latest | finalized | safe | earliest | pending
    """
    if s is None:
        return "latest"
    low = s.lower()
    if low in BLOCK_TAGS:
        return low
    try:
        return int(s, 0)
    except ValueError:
        print(f"❌ Invalid block identifier: {s!r}", file=sys.stderr)
        sys.exit(2)


def fetch_code(w3: Web3, address: str, block: str | int = "latest") -> bytes:
    return bytes(w3.eth.get_code(checksum(address), block_identifier=block))


def read_text_arg(path: str) -> str:
    """Read a file's text, or stdin when ``path`` is '-'."""
    try:
        if path == "-":
            return sys.stdin.read()
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        print(f"❌ Failed to read {path}: {e}", file=sys.stderr)
        sys.exit(2)


def emit_json(obj: Any) -> None:
    print(json.dumps(obj, indent=2, sort_keys=True))


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
