"""
clusterview core module.

The snapshot model and builder, the membership contract it consumes,
cluster description loading, configuration and logging.
"""

from .cluster_file import ClusterFileError, load_cluster_file, membership_from_dict
from .config import ClusterViewSettings
from .membership import (
    ClusterMember,
    InMemoryMembership,
    MembershipProvider,
    MembershipUnavailableError,
    MembershipView,
    MemberStatus,
    StaticMember,
)
from .snapshot import (
    ClusterSnapshot,
    DisplayState,
    NodeView,
    build_snapshot,
    select_oldest,
)

__all__ = [
    "ClusterFileError",
    "ClusterMember",
    "ClusterSnapshot",
    "ClusterViewSettings",
    "DisplayState",
    "InMemoryMembership",
    "MemberStatus",
    "MembershipProvider",
    "MembershipUnavailableError",
    "MembershipView",
    "NodeView",
    "StaticMember",
    "build_snapshot",
    "load_cluster_file",
    "membership_from_dict",
    "select_oldest",
]
