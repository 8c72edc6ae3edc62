"""
Cluster-state snapshot model and builder.

A snapshot reduces a membership view to what a visualization client needs:
the local node's port, whether it is leader and/or oldest, and one
``NodeView`` per known node. Snapshots are immutable and rebuilt from the
live view on every request.

Derivation rules:
- the oldest member is a left fold over all members with ``is_older_than``,
  defaulting to the local member when the membership is empty;
- members are projected in view order and kept only when their port lies in
  the configured ``PortRange``;
- unreachable members replace any earlier view for the same port and move
  to the end of the sequence.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from functools import reduce

from ..datastructures.cluster_types import NodeAddress, PortRange
from ..datastructures.type_aliases import (
    DisplayStateLabel,
    JsonDict,
    MemberStatusLabel,
    PortNumber,
)
from .membership import ClusterMember, MembershipView, MemberStatus

UNREACHABLE: DisplayStateLabel = "unreachable"


class DisplayState(Enum):
    """User-facing projection of a member's lifecycle status."""

    DOWN = "down"
    STARTING = "starting"
    UP = "up"
    STOPPING = "stopping"
    OFFLINE = "offline"

    @classmethod
    def from_status(cls, status: MemberStatus) -> DisplayState:
        return _DISPLAY_STATES.get(status, cls.OFFLINE)


_DISPLAY_STATES: dict[MemberStatus, DisplayState] = {
    MemberStatus.DOWN: DisplayState.DOWN,
    MemberStatus.JOINING: DisplayState.STARTING,
    MemberStatus.WEAKLY_UP: DisplayState.STARTING,
    MemberStatus.UP: DisplayState.UP,
    MemberStatus.EXITING: DisplayState.STOPPING,
    MemberStatus.LEAVING: DisplayState.STOPPING,
    MemberStatus.REMOVED: DisplayState.STOPPING,
}


def member_status_label(status: MemberStatus) -> MemberStatusLabel:
    """Raw status label reported to clients; ``OTHER`` reads as ``unknown``."""
    if status is MemberStatus.OTHER:
        return "unknown"
    return status.value


@dataclass(frozen=True, slots=True, eq=False)
class NodeView:
    """
    Per-node record of a snapshot.

    Identity is the port alone: two views with the same port are the same
    node regardless of their other fields.
    """

    port: PortNumber
    state: DisplayStateLabel
    member_state: MemberStatusLabel
    leader: bool = False
    oldest: bool = False

    @classmethod
    def unreachable(cls, port: PortNumber) -> NodeView:
        return cls(port=port, state=UNREACHABLE, member_state=UNREACHABLE)

    def to_dict(self) -> JsonDict:
        return {
            "port": self.port,
            "state": self.state,
            "memberState": self.member_state,
            "leader": self.leader,
            "oldest": self.oldest,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeView):
            return NotImplemented
        return self.port == other.port

    def __hash__(self) -> int:
        return hash(self.port)


@dataclass(slots=True)
class NodeViewSequence:
    """
    Insertion-ordered node views keyed by port.

    ``replace_at_end`` removes any view with the same port and appends the
    new one, both in constant time.
    """

    _views: dict[PortNumber, NodeView] = field(default_factory=dict)

    def add(self, view: NodeView) -> None:
        """Append a view; the first view seen for a port is kept."""
        self._views.setdefault(view.port, view)

    def replace_at_end(self, view: NodeView) -> None:
        self._views.pop(view.port, None)
        self._views[view.port] = view

    def __contains__(self, view: object) -> bool:
        return isinstance(view, NodeView) and view.port in self._views

    def __iter__(self) -> Iterator[NodeView]:
        return iter(self._views.values())

    def __len__(self) -> int:
        return len(self._views)


@dataclass(frozen=True, slots=True)
class ClusterSnapshot:
    """Immutable, point-in-time projection of cluster membership."""

    self_port: PortNumber
    leader: bool
    oldest: bool
    nodes: tuple[NodeView, ...] = ()

    def to_dict(self) -> JsonDict:
        return {
            "selfPort": self.self_port,
            "leader": self.leader,
            "oldest": self.oldest,
            "nodes": [node.to_dict() for node in self.nodes],
        }


def select_oldest(
    members: Iterable[ClusterMember], self_member: ClusterMember
) -> ClusterMember:
    """Fold members left to right, keeping the older of each pair.

    With no members at all the local member is the oldest.
    """
    candidates = tuple(members)
    if not candidates:
        return self_member
    return reduce(
        lambda older, member: older if older.is_older_than(member) else member,
        candidates,
    )


def _is_leader(member: ClusterMember, leader: NodeAddress | None) -> bool:
    return leader is not None and member.address_equals(leader)


def build_snapshot(
    view: MembershipView, port_range: PortRange | None = None
) -> ClusterSnapshot:
    """Derive a ``ClusterSnapshot`` from a membership view."""
    valid_ports = port_range or PortRange()
    self_member = view.self_member
    oldest = select_oldest(view.members, self_member)

    nodes = NodeViewSequence()
    for member in view.members:
        if member.port not in valid_ports:
            continue
        nodes.add(
            NodeView(
                port=member.port,
                state=DisplayState.from_status(member.status).value,
                member_state=member_status_label(member.status),
                leader=_is_leader(member, view.leader),
                oldest=oldest == member,
            )
        )

    for member in view.unreachable:
        if member.port in valid_ports:
            nodes.replace_at_end(NodeView.unreachable(member.port))

    return ClusterSnapshot(
        self_port=self_member.port,
        leader=_is_leader(self_member, view.leader),
        oldest=oldest == self_member,
        nodes=tuple(nodes),
    )
