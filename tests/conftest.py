import os
import stat
import pytest

from castweb.config import Settings
from castweb.main import create_app


def nfo_xml(title="", plot="", thumb="", tags=()):
    body = "".join(f"<tag>{t}</tag>" for t in tags)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<movie><title>{title}</title><plot>{plot}</plot><thumb>{thumb}</thumb>{body}</movie>"
    )


@pytest.fixture
def write():
    """write(path, content, mtime=None) creates parents and optionally pins mtime."""
    def _write(path, content="", mtime=None):
        path = str(path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        mode = "wb" if isinstance(content, bytes) else "w"
        with open(path, mode) as f:
            f.write(content)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path
    return _write


@pytest.fixture
def client_for(tmp_path):
    from fastapi.testclient import TestClient

    def _make(root, **kw):
        kw.setdefault("state_dir", str(tmp_path / "state"))
        return TestClient(create_app(Settings(root=str(root), **kw)))
    return _make


@pytest.fixture
def fake_ytcast(tmp_path, monkeypatch):
    """
    Put a shell script named ytcast first on PATH. It writes its arguments
    to $TRACE_PATH (when set), prints `stdout`, and exits with `exit_code`.
    """
    if os.name == "nt":
        pytest.skip("fake ytcast needs a POSIX shell")

    def _install(stdout="", exit_code=0):
        bindir = tmp_path / "bin"
        bindir.mkdir(exist_ok=True)
        exe = bindir / "ytcast"
        lines = ["#!/bin/sh", 'if [ -n "$TRACE_PATH" ]; then printf \'%s\' "$*" > "$TRACE_PATH"; fi']
        for out in stdout.splitlines():
            lines.append(f"echo '{out}'")
        if exit_code:
            lines.append("echo error 1>&2")
        lines.append(f"exit {exit_code}")
        exe.write_text("\n".join(lines) + "\n")
        exe.chmod(exe.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        monkeypatch.setenv("PATH", str(bindir) + os.pathsep + os.environ.get("PATH", ""))
        trace = tmp_path / "trace.txt"
        monkeypatch.setenv("TRACE_PATH", str(trace))
        return trace
    return _install
