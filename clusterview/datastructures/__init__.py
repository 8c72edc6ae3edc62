"""
clusterview datastructures.

Shared value types used across the snapshot model, the membership
contract and the HTTP layer.
"""

from __future__ import annotations

from .cluster_types import NodeAddress, PortRange

__all__ = [
    "NodeAddress",
    "PortRange",
]
