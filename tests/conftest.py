"""Pytest configuration and shared fixtures."""

import httpx
import pytest

from tarpkg.repos.repo import Repo
from tarpkg.repos.transport import Transport
from tests.factories import MIRROR_A, MIRROR_B, TARGET, MirrorServer, write_tree


@pytest.fixture
def mirror_server(tmp_path):
    """Mirror server with an empty file set."""
    build_dir = tmp_path / "build"
    build_dir.mkdir()
    return MirrorServer(build_dir)


@pytest.fixture
def transport(mirror_server):
    """Transport that talks to the in-memory mirror server."""
    client = httpx.Client(transport=httpx.MockTransport(mirror_server.handler))
    transport = Transport(show_progress=False, client=client)
    yield transport
    transport.close()


@pytest.fixture
def cache_dir(tmp_path):
    """Local cache directory."""
    return tmp_path / "cache"


@pytest.fixture
def repo(cache_dir, transport):
    """Repository client with mirrors A and B."""
    return Repo(cache_dir, [MIRROR_A, MIRROR_B], TARGET, transport=transport)


@pytest.fixture
def package_tree(tmp_path):
    """A small package directory tree."""
    return write_tree(
        tmp_path / "hello",
        {
            "bin/hello": "#!/bin/sh\necho hello\n",
            "pkg/hello.toml": 'name = "hello"\nversion = "1.0.0"\n',
            "share/doc/hello/README": "Hello package\n",
        },
    )
