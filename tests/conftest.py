"""Pytest configuration and fixtures for clusterview testing.

Fixtures here build membership state and status servers, and make sure any
server started by a test is stopped again so no socket outlives its test.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from loguru import logger

from clusterview.core.config import ClusterViewSettings
from clusterview.core.membership import InMemoryMembership, MemberStatus
from clusterview.datastructures.cluster_types import NodeAddress
from clusterview.server import ClusterStateServer

TWO_NODE_CLUSTER_TOML = """
[cluster]
system = "cluster"
host = "127.0.0.1"
self = 2551
leader = 2552

[[cluster.members]]
port = 2551
status = "up"

[[cluster.members]]
port = 2552
status = "up"
"""


class AsyncTestContext:
    """Context manager for async test operations with automatic cleanup."""

    def __init__(self) -> None:
        self.servers: list[ClusterStateServer] = []

    async def __aenter__(self) -> "AsyncTestContext":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Ensure all servers are stopped."""
        for server in self.servers:
            try:
                await server.stop()
            except Exception as e:
                logger.warning(f"Error stopping status server: {e}")
        self.servers.clear()


@pytest_asyncio.fixture
async def test_context() -> AsyncGenerator[AsyncTestContext, None]:
    """Provides a clean async test context with automatic resource cleanup."""
    async with AsyncTestContext() as ctx:
        yield ctx


def node_address(port: int) -> NodeAddress:
    return NodeAddress(host="127.0.0.1", port=port)


@pytest.fixture
def two_node_membership() -> InMemoryMembership:
    """Members 2551 (oldest, self) and 2552 (leader), both up."""
    membership = InMemoryMembership(self_address=node_address(2551))
    membership.join(node_address(2551), status=MemberStatus.UP)
    membership.join(node_address(2552), status=MemberStatus.UP)
    membership.set_leader(node_address(2552))
    return membership


@pytest.fixture
def server_settings() -> ClusterViewSettings:
    """Settings binding the status server to an ephemeral local port."""
    return ClusterViewSettings(host="127.0.0.1", http_port=0)


@pytest.fixture
def cluster_toml(tmp_path: Path) -> Path:
    path = tmp_path / "cluster.toml"
    path.write_text(TWO_NODE_CLUSTER_TOML)
    return path
