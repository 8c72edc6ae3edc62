"""
clusterview - cluster membership snapshots over HTTP

clusterview reduces the membership view of a clustering subsystem to a
small, stable JSON document that a visualization client can poll.

## Quick Start

```python
from clusterview import ClusterViewSettings, ClusterStateServer, load_cluster_file

membership = load_cluster_file("cluster.toml")
server = ClusterStateServer(settings=ClusterViewSettings(), membership=membership)
await server.start()  # GET http://127.0.0.1:8551/cluster-state
```
"""

from .core import (
    ClusterMember,
    ClusterSnapshot,
    ClusterViewSettings,
    DisplayState,
    InMemoryMembership,
    MembershipUnavailableError,
    MembershipView,
    MemberStatus,
    NodeView,
    StaticMember,
    build_snapshot,
    load_cluster_file,
)
from .datastructures import NodeAddress, PortRange
from .serialization import JsonSerializer
from .server import ClusterStateServer

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    # Snapshot model
    "ClusterSnapshot",
    "DisplayState",
    "NodeView",
    "build_snapshot",
    # Membership
    "ClusterMember",
    "InMemoryMembership",
    "MemberStatus",
    "MembershipUnavailableError",
    "MembershipView",
    "NodeAddress",
    "PortRange",
    "StaticMember",
    "load_cluster_file",
    # Serving
    "ClusterStateServer",
    "ClusterViewSettings",
    "JsonSerializer",
]
