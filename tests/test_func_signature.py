from abi_codec import FuncParam
from func_effects import Effect
from func_signature import Parsed, WellKnown, parse_params, parse_signature


def test_annotated_transfer() -> None:
    desc = parse_signature("transfer(address to, uint256 amount)")

    assert desc.name == "transfer"
    assert desc.inputs == (FuncParam("address", "to"), FuncParam("uint256", "amount"))
    assert desc.canonical == "transfer(address,uint256)"
    assert desc.selector_hex == "a9059cbb"
    assert isinstance(desc.provenance, WellKnown)
    assert desc.description == "transfer erc20 tokens to the given address"
    assert desc.effects == Effect.TRANSFER


def test_annotated_keys_disambiguate_erc721() -> None:
    desc = parse_signature("transfer(address to, uint256 tokenID)")

    assert desc.description == "transfer a specific erc721 to the given address"
    assert desc.inputs[1] == FuncParam("uint256", "tokenID")
    assert desc.canonical == "transfer(address,uint256)"


def test_canonical_form_hits_registry() -> None:
    desc = parse_signature("balanceOf(address)")

    assert desc.is_well_known
    assert desc.outputs == (FuncParam("uint256", "balance"),)
    assert desc.effects == Effect.READ
    assert desc.selector_hex == "70a08231"


def test_named_params_fall_back_to_canonical_lookup() -> None:
    desc = parse_signature("approve(address spender, uint256 value)")

    assert desc.is_well_known
    assert desc.inputs == (FuncParam("address", "spender"), FuncParam("uint256", "amount"))
    assert desc.effects == Effect.STATE_WRITE


def test_surrounding_whitespace_is_ignored() -> None:
    desc = parse_signature("  transfer( address to , uint256 amount )")

    assert desc.is_well_known
    assert desc.inputs == (FuncParam("address", "to"), FuncParam("uint256", "amount"))
    assert desc.canonical == "transfer(address,uint256)"


def test_unknown_signature_is_parsed() -> None:
    desc = parse_signature("foo(uint256 a, bytes b) returns (bool ok)")

    assert isinstance(desc.provenance, Parsed)
    assert desc.provenance.raw == "foo(uint256 a, bytes b) returns (bool ok)"
    assert desc.inputs == (FuncParam("uint256", "a"), FuncParam("bytes", "b"))
    assert desc.outputs == (FuncParam("bool", "ok"),)
    assert desc.description is None
    assert desc.effects == Effect.UNKNOWN
    assert desc.canonical == "foo(uint256,bytes)"


def test_bare_name() -> None:
    desc = parse_signature("frobnicate")

    assert desc.name == "frobnicate"
    assert desc.inputs == ()
    assert desc.canonical == "frobnicate()"
    assert not desc.is_well_known


def test_bare_name_matches_registry_case_insensitively() -> None:
    desc = parse_signature("totalsupply")

    assert desc.is_well_known
    assert desc.canonical == "totalSupply()"
    assert desc.selector == bytes.fromhex("18160ddd")


def test_ambiguous_bare_name_stays_parsed() -> None:
    assert not parse_signature("burn").is_well_known


def test_bare_name_prefers_zero_argument_overload() -> None:
    desc = parse_signature("isadmin")

    assert desc.is_well_known
    assert desc.canonical == "isAdmin()"
    assert desc.outputs == (FuncParam("bool", "isAdmin"),)
    assert parse_signature("ISADMIN").selector_hex == desc.selector_hex


def test_differently_cased_signature_is_not_renamed() -> None:
    desc = parse_signature("Transfer(address,uint256)")

    assert not desc.is_well_known
    assert desc.canonical == "Transfer(address,uint256)"
    assert desc.selector_hex != "a9059cbb"


def test_tuple_params() -> None:
    desc = parse_signature("submit((address,uint256)[] orders, bytes sig)")

    assert desc.inputs == (FuncParam("(address,uint256)[]", "orders"), FuncParam("bytes", "sig"))
    assert desc.canonical == "submit((address,uint256)[],bytes)"


def test_parser_never_fails() -> None:
    for raw in ("", "(", "f(", "f(,)", "f() returns", ")(", "f(uint256) returns bool"):
        desc = parse_signature(raw)
        assert isinstance(desc.canonical, str)
    assert parse_signature("f(").inputs == ()
    assert parse_signature("f(uint256) returns bool").outputs == (FuncParam("bool"),)


def test_parse_params() -> None:
    assert parse_params("") == ()
    assert parse_params(" address a , uint8 ") == (FuncParam("address", "a"), FuncParam("uint8"))


def test_describe() -> None:
    assert parse_signature("ownerOf(uint256)").describe() == (
        "ownerOf(uint256 tokenId) returns (address owner) // get the owner of the given token [read]"
    )
    assert parse_signature("foo(uint256 a)").describe() == "foo(uint256 a)"
