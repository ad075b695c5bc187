"""Tests for the daemon entry point and its exit codes."""

from __future__ import annotations

import asyncio
import os
import signal
import sys

import pytest

from artisanbridge import daemon
from artisanbridge.bridge import BridgeStartupError
from artisanbridge.config.model import RuntimeConfig


class _FakeSupervisor:
    started: asyncio.Event | None = None
    error: BaseException | None = None
    block = False

    def __init__(self, config: RuntimeConfig) -> None:
        self.config = config

    async def run(self) -> None:
        if _FakeSupervisor.started is not None:
            _FakeSupervisor.started.set()
        if _FakeSupervisor.error is not None:
            raise _FakeSupervisor.error
        if _FakeSupervisor.block:
            await asyncio.Event().wait()


@pytest.fixture(autouse=True)
def _reset_fake() -> None:
    _FakeSupervisor.started = None
    _FakeSupervisor.error = None
    _FakeSupervisor.block = False


def test_main_exits_1_on_invalid_config(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(sys, "argv", ["artisanbridge", "-p", "0"])

    with pytest.raises(SystemExit) as excinfo:
        daemon.main()

    assert excinfo.value.code == 1
    assert "mqtt_port" in capsys.readouterr().err


def test_main_exits_1_on_startup_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["artisanbridge", "-s", "/dev/does-not-exist"])
    monkeypatch.setattr(daemon, "BridgeSupervisor", _FakeSupervisor)
    _FakeSupervisor.error = BridgeStartupError("Cannot open serial port /dev/does-not-exist")

    with pytest.raises(SystemExit) as excinfo:
        daemon.main()

    assert excinfo.value.code == 1


def test_main_exits_0_when_bridge_returns(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["artisanbridge"])
    monkeypatch.setattr(daemon, "BridgeSupervisor", _FakeSupervisor)

    with pytest.raises(SystemExit) as excinfo:
        daemon.main()

    assert excinfo.value.code == 0


@pytest.mark.asyncio
async def test_sigterm_cancels_bridge(monkeypatch: pytest.MonkeyPatch, runtime_config: RuntimeConfig) -> None:
    monkeypatch.setattr(daemon, "BridgeSupervisor", _FakeSupervisor)
    _FakeSupervisor.started = asyncio.Event()
    _FakeSupervisor.block = True

    task = asyncio.create_task(daemon.run_bridge(runtime_config))
    await _FakeSupervisor.started.wait()
    os.kill(os.getpid(), signal.SIGTERM)

    await asyncio.wait_for(task, timeout=5.0)
    assert task.done() and not task.cancelled()
