import pytest
from rich.console import Console

from cellar.manage import main
from cellar.manage.status import print_status


def test_print_status_renders_every_count():
    console = Console(record=True, width=60)
    status = {"target": "summary", "customers": 3, "wines": 5}

    print_status(status, console=console)
    output = console.export_text()

    assert "STATUS SUMMARY" in output
    assert "customers" in output
    assert "5" in output
    assert status["target"] == "summary"


@pytest.mark.asyncio
async def test_unknown_command_exits(monkeypatch):
    monkeypatch.setattr("cellar.manage.setup_logging", lambda **kwargs: None)

    with pytest.raises(SystemExit):
        await main(["vacuum"])


@pytest.mark.asyncio
async def test_status_dispatch(monkeypatch):
    calls = []

    async def fake_status(target):
        calls.append(target)

    monkeypatch.setattr("cellar.manage.setup_logging", lambda **kwargs: None)
    monkeypatch.setattr("cellar.manage.cmd_status", fake_status)

    await main(["status", "consignments"])

    assert calls == ["consignments"]
