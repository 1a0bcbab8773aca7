import os
import subprocess
from types import SimpleNamespace

import pytest

from things_api import apple_script_client
from things_api.apple_script_client import ChannelExecutor
from things_api.errors import ChannelExitError, ChannelSpawnError, ChannelTimeoutError, ErrorType
from utils.config import ThingsConfig

MODULE_RUN = "things_api.apple_script_client.subprocess.run"


def _patch_subprocess(monkeypatch, expected_assertion, returncode=0, stdout="OK\n", stderr=""):
    """Patch subprocess.run to intercept the command list and simulate a result."""
    calls = []

    def _fake_run(cmd, **kwargs):
        # Delegate assertion to caller-provided function so each test can verify the cmd
        expected_assertion(cmd)
        calls.append((cmd, kwargs))
        return SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)

    monkeypatch.setattr(MODULE_RUN, _fake_run)
    return calls


def test_run_script_uses_osascript_and_strips_output(monkeypatch):
    seen_paths = []

    def _assert_cmd(cmd):
        assert cmd[0] == "osascript", cmd
        assert cmd[1].endswith(".applescript")
        # The script file exists while osascript runs.
        assert os.path.exists(cmd[1])
        seen_paths.append(cmd[1])

    calls = _patch_subprocess(monkeypatch, _assert_cmd, stdout="  42 \n")

    out = ChannelExecutor(ThingsConfig(script_timeout=12.5)).run_script('return "42"')

    assert out == "42"
    assert calls[0][1]["timeout"] == 12.5
    assert not os.path.exists(seen_paths[0])


def test_run_script_writes_the_script_text(monkeypatch):
    contents = []

    def _assert_cmd(cmd):
        with open(cmd[1], encoding="utf-8") as fh:
            contents.append(fh.read())

    _patch_subprocess(monkeypatch, _assert_cmd)
    ChannelExecutor().run_script('tell application "Things3" to return "Café"')
    assert contents == ['tell application "Things3" to return "Café"']


def test_non_zero_exit_raises_exit_error(monkeypatch):
    _patch_subprocess(monkeypatch, lambda cmd: None, returncode=1, stdout="", stderr="execution error: -1728\n")

    with pytest.raises(ChannelExitError) as excinfo:
        ChannelExecutor().run_script("bad")

    assert excinfo.value.returncode == 1
    assert excinfo.value.stderr == "execution error: -1728"
    assert excinfo.value.channel == apple_script_client.AUTOMATION_CHANNEL
    assert excinfo.value.type is ErrorType.APPLESCRIPT_ERROR


def test_timeout_raises_timeout_error_and_removes_file(monkeypatch):
    paths = []

    def _fake_run(cmd, **kwargs):
        paths.append(cmd[1])
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(MODULE_RUN, _fake_run)

    with pytest.raises(ChannelTimeoutError) as excinfo:
        ChannelExecutor(ThingsConfig(script_timeout=1.0)).run_script("delay 5")

    assert excinfo.value.type is ErrorType.TIMEOUT
    assert excinfo.value.timeout == 1.0
    assert not os.path.exists(paths[0])


def test_missing_executable_raises_spawn_error(monkeypatch):
    def _fake_run(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", "osascript")

    monkeypatch.setattr(MODULE_RUN, _fake_run)

    with pytest.raises(ChannelSpawnError):
        ChannelExecutor().run_script('return "x"')


def test_activate_opens_url_then_waits_settle_delay(monkeypatch):
    sleeps = []

    def _assert_cmd(cmd):
        assert cmd == ["open", "things:///add?title=Milk"]

    _patch_subprocess(monkeypatch, _assert_cmd, stdout="")
    executor = ChannelExecutor(ThingsConfig(settle_delay=2.0), sleep=sleeps.append)

    executor.activate("things:///add?title=Milk")

    assert sleeps == [2.0]


def test_activate_failure_does_not_wait(monkeypatch):
    sleeps = []
    _patch_subprocess(monkeypatch, lambda cmd: None, returncode=1, stderr="no handler")
    executor = ChannelExecutor(sleep=sleeps.append)

    with pytest.raises(ChannelExitError) as excinfo:
        executor.activate("things:///add?title=x")

    assert excinfo.value.channel == apple_script_client.ACTIVATION_CHANNEL
    assert sleeps == []


def test_ensure_running_respects_auto_launch_flag(monkeypatch):
    calls = _patch_subprocess(monkeypatch, lambda cmd: None, stdout="running")

    ChannelExecutor(ThingsConfig(auto_launch=False)).ensure_running()
    assert calls == []

    ChannelExecutor(ThingsConfig(auto_launch=True)).ensure_running()
    assert len(calls) == 1
