import io
import os
import socket
from typing import Iterator, Tuple

import pytest

from readygate.status import StatusSink


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("READYGATE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def listening_port() -> Iterator[int]:
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(16)
    try:
        yield listener.getsockname()[1]
    finally:
        listener.close()


@pytest.fixture
def closed_port() -> int:
    """A loopback port that nothing listens on any more."""

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def captured_sink() -> Tuple[StatusSink, io.StringIO, io.StringIO]:
    stdout = io.StringIO()
    stderr = io.StringIO()
    return StatusSink(stdout=stdout, stderr=stderr), stdout, stderr
