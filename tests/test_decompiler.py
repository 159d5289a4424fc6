import subprocess

import pytest

from addrhistory import decompiler
from addrhistory.decompiler import Decompiler

ADDRESS = "ab" * 20


def test_decompile_invokes_cli(tmp_path, monkeypatch):
    seen = {}

    def fake_run(cmd, capture_output=None, text=None, check=None):
        seen["cmd"] = cmd
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr(decompiler.subprocess, "run", fake_run)
    tool = Decompiler("heimdall", str(tmp_path))

    path = tool.decompile(ADDRESS, b"\x60\x80")

    assert path == str(tmp_path / ADDRESS)
    assert (tmp_path / ADDRESS).is_dir()
    assert seen["cmd"] == ["heimdall", "decompile", "0x6080", "--output", str(tmp_path / ADDRESS)]


def test_nonzero_exit_is_only_logged(tmp_path, monkeypatch, caplog):
    monkeypatch.setattr(
        decompiler.subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 2, stdout="", stderr="bad bytecode"),
    )

    path = Decompiler("heimdall", str(tmp_path)).decompile(ADDRESS, b"\x00")

    assert path == str(tmp_path / ADDRESS)
    assert "bad bytecode" in caplog.text


def test_missing_binary_raises(tmp_path):
    with pytest.raises(OSError):
        Decompiler(str(tmp_path / "no-such-decompiler"), str(tmp_path)).decompile(ADDRESS, b"\x00")
