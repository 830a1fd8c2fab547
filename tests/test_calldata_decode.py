import json
import subprocess
import sys
from pathlib import Path

from calldata_decode import describe_values, jsonable
from func_signature import parse_signature

ROOT = Path(__file__).resolve().parent.parent
TRANSFER_DATA = (
    "0xa9059cbb"
    "0000000000000000000000005a5b644fb1a3ca046317fe82bc695fff7bacf30c"
    "0000000000000000000000000000000000000000000002a568d6215ac1400000"
)


def run_decoder(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, str(ROOT / "calldata_decode.py"), *args],
        capture_output=True,
        text=True,
        cwd=ROOT,
        timeout=60,
    )


def test_jsonable() -> None:
    assert jsonable(b"\x01\xff") == "0x01ff"
    assert jsonable(5) == 5
    assert jsonable(2**53) == str(2**53)
    assert jsonable(-(2**60)) == str(-(2**60))
    assert jsonable(True) is True
    assert jsonable((1, (b"\x00", "x"))) == [1, ["0x00", "x"]]


def test_describe_values_names_unnamed_params() -> None:
    desc = parse_signature("foo(uint8,bytes b)")
    assert describe_values(desc, [3, b"\xaa"]) == [
        {"name": "arg0", "type": "uint8", "value": 3},
        {"name": "b", "type": "bytes", "value": "0xaa"},
    ]


def test_cli_json() -> None:
    proc = run_decoder("--sig", "transfer(address to, uint256 amount)", "--data", TRANSFER_DATA, "--json")

    assert proc.returncode == 0, proc.stderr
    out = json.loads(proc.stdout)
    assert out["signature"] == "transfer(address,uint256)"
    assert out["selector"] == "a9059cbb"
    assert out["wellKnown"] is True
    assert [row["name"] for row in out["arguments"]] == ["to", "amount"]
    assert out["arguments"][0]["value"].lower() == "0x5a5b644fb1a3ca046317fe82bc695fff7bacf30c"
    assert out["arguments"][1]["value"] == "12496000000000000000000"


def test_cli_text_output() -> None:
    proc = run_decoder("--sig", "balanceOf(address)", "--data", TRANSFER_DATA[:2] + TRANSFER_DATA[10:74])

    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.startswith("accountAddress (address): 0x")


def test_cli_mismatch_exit_code() -> None:
    proc = run_decoder("--sig", "transfer(address,uint256)", "--data", TRANSFER_DATA, "--no-strip")

    assert proc.returncode == 2
    assert proc.stdout == ""
