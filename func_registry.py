"""
Curated registry of well-known contract functions.

Entries are keyed by signature text. Most keys are canonical signatures; a
fixed set of hand-annotated ``transfer`` keys carries parameter names so that
ERC20 and ERC721 call sites can be told apart. The registry is built and
validated once at import: a duplicate key, or a key that disagrees with its
entry's canonical signature outside that fixed set, raises
RegistryIntegrityError and the import fails.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from abi_codec import FuncParam, canonical_signature, selector_of
from evm_errors import RegistryIntegrityError
from func_effects import Effect, check_compounds

__all__ = [
    "WellKnownEntry",
    "ANNOTATED_KEYS",
    "RBAC_ROLES",
    "build_registry",
    "lookup_signature",
    "lookup_selector",
    "lookup_name",
    "all_entries",
]

# keys allowed to differ from their canonical signature
ANNOTATED_KEYS = frozenset(
    {
        "transfer(address to, uint256 tokenID)",
        "transfer(address to, uint256 value)",
        "transfer(address to, uint256 amount)",
    }
)

RBAC_ROLES = (
    "admin",
    "minter",
    "pauser",
    "burner",
    "signer",
    "whitelisted",
    "blacklisted",
    "owner",
    "operator",
    "verifier",
    "legal",
    "legalOperator",
    "legalHolder",
    "legalHoldOperator",
)


@dataclass(frozen=True)
class WellKnownEntry:
    key: str
    name: str
    description: str
    inputs: Tuple[FuncParam, ...] = ()
    outputs: Tuple[FuncParam, ...] = ()
    effects: Effect = Effect.UNKNOWN
    selector_hex: str = field(default="", compare=False)

    @property
    def canonical(self) -> str:
        return canonical_signature(self.name, [p.type for p in self.inputs])

    @property
    def selector(self) -> bytes:
        if self.selector_hex:
            return bytes.fromhex(self.selector_hex)
        return selector_of(self.canonical)


def _params(*pairs: Tuple[str, str]) -> Tuple[FuncParam, ...]:
    return tuple(FuncParam(type=t, name=n) for t, n in pairs)


def _entry(
    key: str,
    name: str,
    description: str,
    inputs: Sequence[Tuple[str, str]] = (),
    outputs: Sequence[Tuple[str, str]] = (),
    effects: Effect = Effect.UNKNOWN,
) -> WellKnownEntry:
    return WellKnownEntry(key, name, description, _params(*inputs), _params(*outputs), effects)


# --- curated entries -------------------------------------------------------


def _base_entries() -> List[WellKnownEntry]:
    addr, u256 = "address", "uint256"
    return [
        _entry("balance(address)", "balance", "get the balance of the given account",
               [(addr, "accountAddress")], [(u256, "balance")], Effect.READ),
        _entry("mint(address,uint256)", "mint", "mint new tokens",
               [(addr, "receiverAddress"), (u256, "amount")], [], Effect.MINT),
        _entry("burn(uint256)", "burn", "burn tokens",
               [(u256, "amount")], [], Effect.BURN),
        _entry("burn(address,uint256)", "burn", "burn tokens",
               [(addr, "accountAddress"), (u256, "amount")]),
        _entry("transfer(address,uint256)", "transfer",
               "transfer erc20 tokens or a specific erc721 to the given address",
               [(addr, "to"), (u256, "amount")], [], Effect.TRANSFER),
        _entry("transfer(address to, uint256 tokenID)", "transfer",
               "transfer a specific erc721 to the given address",
               [(addr, "to"), (u256, "tokenID")], [], Effect.TRANSFER),
        _entry("transfer(address to, uint256 value)", "transfer",
               "transfer erc20 tokens to the given address",
               [(addr, "to"), (u256, "value")], [], Effect.TRANSFER),
        _entry("transfer(address to, uint256 amount)", "transfer",
               "transfer erc20 tokens to the given address",
               [(addr, "to"), (u256, "amount")], [], Effect.TRANSFER),
        _entry("transferFrom(address,address,uint256)", "transferFrom",
               "transfer tokens from the given address to the given address",
               [(addr, "from"), (addr, "to"), (u256, "amount")], [], Effect.TRANSFER),
        _entry("approve(address,uint256)", "approve",
               "approve the given address to spend the specified number of tokens "
               "on behalf of the message sender",
               [(addr, "spender"), (u256, "amount")], [], Effect.STATE_WRITE),
        _entry("name()", "name", "get the name of the token",
               [], [("string", "name")], Effect.READ),
        _entry("owner()", "owner", "get the owner of the contract",
               [], [(addr, "owner")], Effect.READ),
        _entry("symbol()", "symbol", "get the symbol of the token",
               [], [("string", "symbol")], Effect.READ),
        _entry("totalSupply()", "totalSupply", "get the total supply of the token",
               [], [(u256, "totalSupply")], Effect.READ),
        _entry("decimals()", "decimals", "get the number of decimals of the token",
               [], [("uint8", "decimals")], Effect.READ),
        _entry("balanceOf(address)", "balanceOf", "get the balance of the given address",
               [(addr, "accountAddress")], [(u256, "balance")], Effect.READ),
        _entry("allowance(address,address)", "allowance",
               "get the number of tokens that the given address is allowed to spend "
               "on behalf of the given address",
               [(addr, "owner"), (addr, "spender")], [(u256, "allowance")], Effect.READ),
        _entry("renounceOwnership()", "renounceOwnership", "renounce ownership of the contract",
               effects=Effect.STATE_WRITE),
        _entry("transferOwnership(address)", "transferOwnership",
               "transfer ownership of the contract to the given address",
               [(addr, "newOwner")], [], Effect.STATE_WRITE),
        _entry("pause()", "pause", "pause the contract", effects=Effect.STATE_WRITE),
        _entry("unpause()", "unpause", "unpause the contract", effects=Effect.STATE_WRITE),
        _entry("paused()", "paused", "check if the contract is paused",
               [], [("bool", "paused")], Effect.READ),
        _entry("ownerOf(uint256)", "ownerOf", "get the owner of the given token",
               [(u256, "tokenId")], [(addr, "owner")], Effect.READ),
        _entry("getApproved(uint256)", "getApproved", "get the approved address for the given token",
               [(u256, "tokenId")], [(addr, "operator")], Effect.READ),
        _entry("setApprovalForAll(address,bool)", "setApprovalForAll",
               "set the approval status for the given operator",
               [(addr, "operator"), ("bool", "approved")], [], Effect.STATE_WRITE),
        _entry("isApprovedForAll(address,address)", "isApprovedForAll",
               "check if the given operator is approved for the given owner",
               [(addr, "owner"), (addr, "operator")], [("bool", "approved")], Effect.READ),
        _entry("safeTransferFrom(address,address,uint256)", "safeTransferFrom",
               "transfer the given token from the given address to the given address",
               [(addr, "from"), (addr, "to"), (u256, "tokenId")], [], Effect.TRANSFER),
        _entry("safeTransferFrom(address,address,uint256,bytes)", "safeTransferFrom",
               "transfer the given token from the given address to the given address",
               [(addr, "from"), (addr, "to"), (u256, "tokenId"), ("bytes", "data")],
               [], Effect.TRANSFER),
        _entry("tokenURI(uint256)", "tokenURI", "get the URI of the given token",
               [(u256, "tokenId")], [("string", "tokenURI")], Effect.READ),
        _entry("supportsInterface(bytes4)", "supportsInterface",
               "check if the contract implements the given interface",
               [("bytes4", "interfaceId")], [("bool", "supported")], Effect.READ),
        _entry("onERC721Received(address,address,uint256,bytes)", "onERC721Received",
               "handle the receipt of an NFT",
               [(addr, "operator"), (addr, "from"), (u256, "tokenId"), ("bytes", "data")]),
        _entry("isOnLegalHold(uint256)", "isOnLegalHold", "check if the given token is on legal hold",
               [(u256, "tokenId")], [("bool", "onHold")], Effect.READ),
        _entry("putOnLegalHold(uint256)", "putOnLegalHold", "put the given token on legal hold",
               [(u256, "tokenId")], [], Effect.STATE_WRITE),
        _entry("releaseLegalHold(uint256)", "releaseLegalHold",
               "release the given token from legal hold",
               [(u256, "tokenId")], [], Effect.STATE_WRITE),
    ]


def _role_entries(role: str) -> List[WellKnownEntry]:
    cap = role[:1].upper() + role[1:]
    account = [("address", "account")]
    return [
        _entry(f"add{cap}(address)", f"add{cap}",
               f"add the given address to the {role} role",
               account, [], Effect.ACCESS_CONTROL_UPDATE),
        _entry(f"remove{cap}(address)", f"remove{cap}",
               f"remove the given address from the {role} role",
               account, [], Effect.ACCESS_CONTROL_UPDATE),
        _entry(f"renounce{cap}()", f"renounce{cap}",
               f"remove the sender from the {role} role",
               effects=Effect.ACCESS_CONTROL_UPDATE),
        _entry(f"has{cap}Role(address)", f"has{cap}Role",
               f"check if the given address has the {role} role",
               account, [("bool", "hasRole")], Effect.READ),
        _entry(f"is{cap}()", f"is{cap}",
               f"check if the sender has the {role} role",
               [], [("bool", f"is{cap}")], Effect.READ),
        _entry(f"is{cap}(address)", f"is{cap}",
               f"check if the given address has the {role} role",
               account, [("bool", f"is{cap}")], Effect.READ),
    ]


# --- validation ------------------------------------------------------------


def build_registry(
    entries: Iterable[WellKnownEntry],
) -> Tuple[Dict[str, WellKnownEntry], Dict[str, WellKnownEntry]]:
    """
    Index entries by key and by selector hex, validating as it goes.

    Returns ``(by_key, by_selector)``. Annotated keys are indexed by key only.
    """
    check_compounds()

    by_key: Dict[str, WellKnownEntry] = {}
    by_selector: Dict[str, WellKnownEntry] = {}
    for entry in entries:
        if entry.key in by_key:
            raise RegistryIntegrityError(f"duplicate function description {entry.key}")
        canonical = entry.canonical
        if entry.key == canonical:
            sel_hex = selector_of(canonical).hex()
            if sel_hex in by_selector:
                raise RegistryIntegrityError(
                    f"selector {sel_hex} of {entry.key} already used by {by_selector[sel_hex].key}"
                )
            entry = WellKnownEntry(
                entry.key, entry.name, entry.description,
                entry.inputs, entry.outputs, entry.effects, sel_hex,
            )
            by_selector[sel_hex] = entry
        elif entry.key not in ANNOTATED_KEYS:
            raise RegistryIntegrityError(f"signature mismatch: {entry.key} != {canonical}")
        by_key[entry.key] = entry
    return by_key, by_selector


def _all_curated() -> List[WellKnownEntry]:
    entries = _base_entries()
    for role in RBAC_ROLES:
        entries.extend(_role_entries(role))
    return entries


_BY_KEY, _BY_SELECTOR = build_registry(_all_curated())


# --- lookups ---------------------------------------------------------------


def lookup_signature(signature: str) -> Optional[WellKnownEntry]:
    """Exact key lookup; keys may be canonical or hand-annotated."""
    return _BY_KEY.get(signature.strip())


def lookup_selector(selector: bytes | str) -> Optional[WellKnownEntry]:
    if isinstance(selector, (bytes, bytearray)):
        sel_hex = bytes(selector).hex()
    else:
        sel_hex = selector.lower()
        if sel_hex.startswith("0x"):
            sel_hex = sel_hex[2:]
    return _BY_SELECTOR.get(sel_hex)


def lookup_name(name: str) -> List[WellKnownEntry]:
    """All entries whose function name matches, case-insensitively."""
    low = name.lower()
    return [e for e in _BY_KEY.values() if e.name.lower() == low]


def all_entries() -> List[WellKnownEntry]:
    return list(_BY_KEY.values())
