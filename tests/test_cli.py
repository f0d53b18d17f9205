"""Tests for the command line front end."""

import pytest

from mozza_ledger import cli
from mozza_ledger.config import get_settings


@pytest.fixture(autouse=True)
def sandbox(monkeypatch, tmp_path):
    monkeypatch.setenv("MOZZA_MODE", "sandbox")
    monkeypatch.setenv("MOZZA_SANDBOX_PATH", str(tmp_path / "ledger.json"))
    get_settings.cache_clear()
    yield tmp_path / "ledger.json"
    get_settings.cache_clear()


async def _run(capsys, *argv: str) -> tuple[int, str, str]:
    code = await cli.main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


async def _new_account(capsys, name: str, kind: str) -> str:
    code, out, _ = await _run(capsys, "add-account", name, "--type", kind)
    assert code == 0
    return out.strip().splitlines()[-1]


@pytest.mark.asyncio
async def test_full_shift_through_the_cli(capsys, sandbox):
    """Test a full open, update and close cycle from the command line."""
    ids = {}
    for role, kind in [
        ("sales", "income"),
        ("cards", "receivable"),
        ("hiking", "receivable"),
        ("fx", "asset"),
        ("bills", "receivable"),
        ("cash", "cash"),
        ("variance", "equity"),
    ]:
        ids[role] = await _new_account(capsys, role.title(), kind)

    flags = [item for role, account_id in ids.items() for item in (f"--{role}", account_id)]
    code, out, _ = await _run(capsys, "flow", "set", *flags)
    assert code == 0
    assert "Incomplete" not in out

    assert (await _run(capsys, "shift", "start", "--float", "200"))[0] == 0
    code, out, _ = await _run(capsys, "shift", "update", "total_sales=1000", "cards=300")
    assert code == 0
    assert "900.00" in out

    code, out, _ = await _run(capsys, "shift", "close", "880")
    assert code == 0
    assert "-20.00" in out

    code, out, _ = await _run(capsys, "shift", "status")
    assert "No open shift" in out

    code, out, _ = await _run(capsys, "verify")
    assert code == 0
    assert sandbox.exists()


@pytest.mark.asyncio
async def test_close_with_incomplete_flow_reports_error(capsys):
    """Test that closing without a complete flow exits non-zero."""
    await _run(capsys, "shift", "start", "--float", "50")

    code, _, err = await _run(capsys, "shift", "close", "50")

    assert code == 1
    assert "incomplete" in err


@pytest.mark.asyncio
async def test_post_to_unknown_account_fails(capsys):
    """Test that posting to an unknown account exits non-zero."""
    code, _, err = await _run(capsys, "post", "ghost", "10")

    assert code == 1
    assert "ghost" in err


def test_update_values_are_parsed_as_json():
    """Test that FIELD=VALUE arguments accept JSON values."""
    fields = cli._parse_assignments(['cards=300', 'foreign_currency={"value": 5}', "note=x"])

    assert fields == {"cards": 300, "foreign_currency": {"value": 5}, "note": "x"}


@pytest.mark.asyncio
async def test_misshaped_shift_field_reports_error(capsys):
    """Test that a scalar for a structured field is a clean validation error."""
    await _run(capsys, "shift", "start", "--float", "50")

    code, _, err = await _run(capsys, "shift", "update", "foreign_currency=50")

    assert code == 1
    assert "error: foreign_currency must be an object" in err


@pytest.mark.asyncio
async def test_corrupt_sandbox_file_reports_error(capsys, sandbox):
    """Test that an unreadable sandbox file exits non-zero without a traceback."""
    sandbox.write_text("{not json", encoding="utf-8")

    code, _, err = await _run(capsys, "accounts")

    assert code == 1
    assert "error: Cannot read sandbox file" in err


def test_verbose_flag_is_parsed():
    """Test that -v is accepted ahead of the sub-command."""
    args = cli.build_parser().parse_args(["-v", "shift", "status"])

    assert args.verbose
    assert args.shift_command == "status"
