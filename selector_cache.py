"""
Selector -> candidate signatures, resolved through three tiers:

1. built-in constants (authoritative, never overwritten);
2. runtime entries cached by earlier lookups (append-only, no eviction);
3. one remote lookup against the 4byte directory per distinct selector.

Every remote outcome is cached, including failures (as an empty list), so a
selector is looked up remotely at most once per cache lifetime. Several
candidates per selector are normal: 4-byte hashes collide across unrelated
signatures.
"""
from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Union

import requests

from evm_errors import SelectorResolutionFailure

__all__ = [
    "BUILTIN_SIGNATURES",
    "FourByteClient",
    "RWLock",
    "SelectorCache",
    "default_cache",
    "selector_hex",
]

logger = logging.getLogger(__name__)

FOURBYTE_API_URL = os.getenv("FOURBYTE_API_URL", "https://www.4byte.directory/api/v1/signatures/")
FOURBYTE_TIMEOUT = float(os.getenv("FOURBYTE_TIMEOUT", "10"))

SelectorHex = str  # 8 lowercase hex chars, no 0x
Resolver = Callable[[SelectorHex], List[str]]

BUILTIN_SIGNATURES: Dict[SelectorHex, List[str]] = {
    "06fdde03": ["transfer_attention_tg_invmru_6e7aa58(bool,address,address)", "message_hour(uint256,int8,uint16,bytes32)", "name()"],
    "0753c30c": ["deprecate(address)"],
    "095ea7b3": ["watch_tg_invmru_2f69f1b(address,address)", "sign_szabo_bytecode(bytes16,uint128)", "approve(address,uint256)"],
    "0e136b19": ["deprecated()"],
    "0ecb93c0": ["addBlackList(address)"],
    "18160ddd": ["watch_tg_invmru_ae5c248(uint256,bool,bool)", "voting_var(address,uint256,int128,int128)", "totalSupply()"],
    "23b872dd": ["watch_tg_invmru_faebe36(bool,bool,bool)", "gasprice_bit_ether(int128)", "transferFrom(address,address,uint256)"],
    "26976e3f": ["upgradedAddress()"],
    "27e235e3": ["balances(address)"],
    "313ce567": ["watch_tg_invmru_5c94e13(bool)", "watch_tg_invmru_e597f2(address,bool)", "transfer_attention_tg_invmru_efa43f6(uint256,bool,address)", "available_assert_time(uint16,uint64)", "decimals()"],
    "35390714": ["maximumFee()"],
    "3eaaf86b": ["_totalSupply()"],
    "3f4ba83a": ["unpause()"],
    "59bf1abe": ["getBlackListStatus(address)"],
    "5c658165": ["allowed(address,address)"],
    "5c975abb": ["paused()"],
    "6e18980a": ["transferByLegacy(address,address,uint256)"],
    "70a08231": ["watch_tg_invmru_119a5a98(address,uint256,uint256)", "passphrase_calculate_transfer(uint64,address)", "branch_passphrase_public(uint256,bytes8)", "balanceOf(address)"],
    "8456cb59": ["pause()"],
    "893d20e8": ["getOwner()"],
    "8b477adb": ["transferFromByLegacy(address,address,address,uint256)"],
    "8da5cb5b": ["ideal_warn_timed(uint256,uint128)", "owner()"],
    "95d89b41": ["watch_tg_invmru_4f9dd3f(address,uint256)", "link_classic_internal(uint64,int64)", "symbol()"],
    "a9059cbb": ["join_tg_invmru_haha_fd06787(address,bool)", "func_2093253501(bytes)", "transfer(bytes4[9],bytes5[6],int48[11])", "many_msg_babbage(bytes1)", "transfer(address,uint256)"],
    "aee92d33": ["approveByLegacy(address,address,uint256)"],
    "c0324c77": ["setParams(uint256,uint256)"],
    "cc872b66": ["issue(uint256)"],
    "db006a75": ["redeem(uint256)"],
    "dd62ed3e": ["join_tg_invmru_haha_5911067(uint256,address)", "_func_5437782296(address,address)", "remove_good(uint256[],bytes8,bool)", "allowance(address,address)"],
    "dd644f72": ["basisPointsRate()"],
    "e47d6060": ["isBlackListed(address)"],
    "e4997dc5": ["removeBlackList(address)"],
    "e5b5019a": ["MAX_UINT()"],
    "f3bdc228": ["destroyBlackFunds(address)"],
    "ffffffff": ["LOCK8605463013()", "test266151307()"],
    "f2fde38b": ["transferOwnership(address)"],
    "6fcfff45": ["numCheckpoints(address)"],
    "b4b5ea57": ["getCurrentVotes(address)"],
    "e7a324dc": ["DELEGATION_TYPEHASH()"],
    "f1127ed8": ["checkpoints(address,uint32)"],
    "fca3b5aa": ["setMinter(address)"],
    "c3cda520": ["delegateBySig(address,uint256,uint256,uint8,bytes32,bytes32)"],
    "d505accf": ["watch_tg_invmru_168a06(bool,address,bool)", "permit(address,address,uint256,uint256,uint8,bytes32,bytes32)"],
    "782d6fe1": ["getPriorVotes(address,uint256)"],
    "7ecebe00": ["transfer_attention_tg_invmru_5811b86(uint256,address,address)", "nonces(address)"],
    "76c71ca1": ["mintCap()"],
    "30adf81f": ["transfer_attention_tg_invmru_6c0d2a(uint256,uint256)", "PERMIT_TYPEHASH()"],
    "40c10f19": ["mint(address,uint256)"],
    "587cde1e": ["delegates(address)"],
    "5c11d62f": ["minimumTimeBetweenMints()"],
    "5c19a95c": ["delegate(address)"],
    "30b36cef": ["mintingAllowedAfter()"],
    "20606b70": ["DOMAIN_TYPEHASH()"],
    "07546172": ["minter()"],
    "01ffc9a7": ["pizza_mandate_apology(uint256)", "supportsInterface(bytes4)"],
    "8f32d59b": ["isOwner()"],
    "d6e4fa86": ["nameExpires(uint256)"],
    "e985e9c5": ["isApprovedForAll(address,address)"],
    "f6a74ed7": ["removeController(address)"],
    "fca247ac": ["register(uint256,address,uint256)"],
    "da8c229e": ["controllers(address)"],
    "ddf7fcb0": ["baseNode()"],
    "a7fc7a07": ["addController(address)"],
    "b88d4fde": ["safeTransferFrom(address,address,uint256,bytes)"],
    "c1a287e2": ["GRACE_PERIOD()"],
    "c475abff": ["renew(uint256,uint256)"],
    "96e494e8": ["available(uint256)"],
    "a22cb465": ["niceFunctionHerePlzClick943230089(address,bool)", "setApprovalForAll(address,bool)"],
    "3f15457f": ["ens()"],
    "6352211e": ["ownerOf(uint256)"],
    "715018a6": ["renounceOwnership()"],
    "42842e0e": ["safeTransferFrom(address,address,uint256)"],
    "4e543b26": ["setResolver(address)"],
    "081812fc": ["getApproved(uint256)"],
    "0e297b45": ["registerOnly(uint256,address,uint256)"],
    "28ed4f6c": ["reclaim(uint256,address)"],
    "02571be3": ["owner(bytes32)"],
    "06ab5923": ["setSubnodeOwner(bytes32,bytes32,address)"],
    "1896f70a": ["setResolver(bytes32,address)"],
    "150b7a02": ["onERC721Received(address,address,uint256,bytes)"],
}


def selector_hex(selector: Union[bytes, bytearray, str]) -> SelectorHex:
    """Normalize raw bytes or ``0x``-prefixed / bare hex to 8 lowercase chars."""
    if isinstance(selector, (bytes, bytearray)):
        if len(selector) != 4:
            raise ValueError(f"selector must be 4 bytes, got {len(selector)}")
        return bytes(selector).hex()
    s = selector.strip().lower()
    if s.startswith("0x"):
        s = s[2:]
    if len(s) != 8:
        raise ValueError(f"selector must be 8 hex chars, got {selector!r}")
    bytes.fromhex(s)
    return s


# --- remote collaborator ---------------------------------------------------


class FourByteClient:
    """Look up text signatures for a selector on the 4byte directory."""

    def __init__(
        self,
        url: str = FOURBYTE_API_URL,
        timeout: float = FOURBYTE_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def __call__(self, sel: SelectorHex) -> List[str]:
        try:
            resp = self.session.get(
                self.url,
                params={"format": "json", "hex_signature": f"0x{sel}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise SelectorResolutionFailure(f"4byte lookup for 0x{sel} failed: {e}") from e

        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise SelectorResolutionFailure(f"4byte lookup for 0x{sel}: unexpected payload")
        return [r["text_signature"] for r in results if isinstance(r, dict) and r.get("text_signature")]


# --- locking ---------------------------------------------------------------


class RWLock:
    """Readers share the lock; a writer holds it alone."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


# --- cache -----------------------------------------------------------------


class SelectorCache:
    """
    Process-wide or test-owned selector cache.

    ``resolver`` is called with an 8-char selector hex on a full miss and
    returns candidate signatures; raising SelectorResolutionFailure (or any
    requests error) degrades to an empty, cached result. Pass
    ``resolver=None`` to disable remote lookups entirely.
    """

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        builtins: Optional[Dict[SelectorHex, List[str]]] = None,
    ) -> None:
        self._builtins = {k: tuple(v) for k, v in (BUILTIN_SIGNATURES if builtins is None else builtins).items()}
        self._runtime: Dict[SelectorHex, tuple] = {}
        self._resolver = resolver
        self._lock = RWLock()
        self.lookups = 0  # selectors found in neither local tier

    @classmethod
    def with_4byte(cls, timeout: float = FOURBYTE_TIMEOUT) -> "SelectorCache":
        return cls(resolver=FourByteClient(timeout=timeout))

    def resolve(self, selector: Union[bytes, bytearray, str]) -> List[str]:
        sel = selector_hex(selector)

        with self._lock.read():
            if sel in self._builtins:
                return list(self._builtins[sel])
            if sel in self._runtime:
                return list(self._runtime[sel])

        # remote call happens without holding the lock; concurrent misses on
        # the same selector may both call out, the first write wins
        found = tuple(self._remote(sel))

        with self._lock.write():
            self.lookups += 1
            return list(self._runtime.setdefault(sel, found))

    def _remote(self, sel: SelectorHex) -> List[str]:
        if self._resolver is None:
            return []
        try:
            found = self._resolver(sel)
        except (SelectorResolutionFailure, requests.RequestException) as e:
            logger.warning("selector 0x%s left unresolved: %s", sel, e)
            return []
        logger.debug("selector 0x%s resolved to %d candidate(s)", sel, len(found))
        return list(found)

    def __contains__(self, selector: object) -> bool:
        if not isinstance(selector, (bytes, bytearray, str)):
            return False
        try:
            sel = selector_hex(selector)
        except ValueError:
            return False
        with self._lock.read():
            return sel in self._builtins or sel in self._runtime

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._builtins) + len(self._runtime)

    def snapshot(self) -> Dict[SelectorHex, List[str]]:
        """Runtime entries only, copied."""
        with self._lock.read():
            return {k: list(v) for k, v in self._runtime.items()}


_default: Optional[SelectorCache] = None
_default_guard = threading.Lock()


def default_cache() -> SelectorCache:
    """Shared cache backed by the 4byte directory, created on first use."""
    global _default
    with _default_guard:
        if _default is None:
            _default = SelectorCache.with_4byte()
        return _default
