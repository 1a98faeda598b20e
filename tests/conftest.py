"""Shared pytest fixtures for the File Opener client tests.

Provides sample files on disk, an httpx mock agent, and a recorder for
controller snapshots.  Nothing here opens a real socket.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from fileopener.config import UploadConfig
from fileopener.models import SelectedFile, UploadState
from fileopener.upload.client import AgentClient


@pytest.fixture
def sample_path(tmp_path: Path) -> Path:
    """A small text file on disk."""
    path = tmp_path / "hello.txt"
    path.write_bytes(b"hello agent\n")
    return path


@pytest.fixture
def sample_file(sample_path: Path) -> SelectedFile:
    return SelectedFile.from_path(sample_path)


@pytest.fixture
def large_file(tmp_path: Path) -> SelectedFile:
    """A ~300 KB file, several chunks long at the default chunk size."""
    path = tmp_path / "video.mp4"
    path.write_bytes(b"\x00\x01\x02\x03" * 75_000)
    return SelectedFile.from_path(path)


@pytest.fixture
async def make_client():
    """Factory for AgentClient instances backed by ``httpx.MockTransport``.

    *handler* may be sync or async; it receives the fully read request.
    """
    created: list[AgentClient] = []

    def _make(handler, config: UploadConfig | None = None) -> AgentClient:
        client = AgentClient(config, transport=httpx.MockTransport(handler))
        created.append(client)
        return client

    yield _make

    for client in created:
        await client.aclose()


class StateRecorder:
    """Collects every snapshot a controller publishes."""

    def __init__(self) -> None:
        self.states: list[UploadState] = []

    def __call__(self, state: UploadState) -> None:
        self.states.append(state)


@pytest.fixture
def recorder() -> StateRecorder:
    return StateRecorder()
