"""
Membership contract between clusterview and the clustering subsystem.

The snapshot builder never looks inside a member. It relies on two
capabilities supplied by the clustering subsystem: an "is older than"
comparator and address equality. ``ClusterMember`` captures that contract;
``StaticMember`` and ``InMemoryMembership`` provide a concrete, thread-safe
implementation used for standalone serving, cluster description files, and
tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from threading import RLock
from typing import Protocol, runtime_checkable

from loguru import logger

from ..datastructures.cluster_types import NodeAddress
from ..datastructures.type_aliases import MemberStatusLabel, PortNumber, UpNumber

# Members that never reached "up" sort after every member that did.
UNASSIGNED_UP_NUMBER: UpNumber = 2**31 - 1


class MembershipUnavailableError(RuntimeError):
    """Raised when the current membership view cannot be read."""

    pass


class MemberStatus(Enum):
    """Raw lifecycle phase of a member as reported by the clustering subsystem."""

    DOWN = "down"
    JOINING = "joining"
    WEAKLY_UP = "weaklyup"
    UP = "up"
    EXITING = "exiting"
    LEAVING = "leaving"
    REMOVED = "removed"
    OTHER = "other"

    @classmethod
    def parse(cls, label: MemberStatusLabel) -> MemberStatus:
        """Parse a status label; unrecognized labels map to ``OTHER``."""
        normalized = label.strip().lower().replace("-", "").replace("_", "")
        for status in cls:
            if status.value == normalized:
                return status
        return cls.OTHER


@runtime_checkable
class ClusterMember(Protocol):
    """Minimal view of a member that the snapshot builder depends on."""

    @property
    def address(self) -> NodeAddress: ...

    @property
    def status(self) -> MemberStatus: ...

    @property
    def port(self) -> PortNumber: ...

    def is_older_than(self, other: ClusterMember) -> bool: ...

    def address_equals(self, address: NodeAddress | None) -> bool: ...


@dataclass(frozen=True, slots=True, eq=False)
class StaticMember:
    """
    Immutable member record.

    Age follows the clustering subsystem's rule: a lower up number is older,
    and on equal up numbers the lower address is older. Two records are the
    same member when their addresses match.
    """

    address: NodeAddress
    status: MemberStatus = MemberStatus.UP
    up_number: UpNumber = UNASSIGNED_UP_NUMBER

    @property
    def port(self) -> PortNumber:
        return self.address.port_or_zero

    def is_older_than(self, other: ClusterMember) -> bool:
        other_up_number = getattr(other, "up_number", UNASSIGNED_UP_NUMBER)
        if self.up_number == other_up_number:
            return self.address.sort_key() < other.address.sort_key()
        return self.up_number < other_up_number

    def address_equals(self, address: NodeAddress | None) -> bool:
        return address is not None and self.address == address

    def with_status(self, status: MemberStatus, up_number: UpNumber) -> StaticMember:
        return StaticMember(address=self.address, status=status, up_number=up_number)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StaticMember):
            return NotImplemented
        return self.address == other.address

    def __hash__(self) -> int:
        return hash(self.address)


@dataclass(frozen=True, slots=True)
class MembershipView:
    """Point-in-time copy of the clustering subsystem's membership state."""

    self_member: ClusterMember
    members: tuple[ClusterMember, ...] = ()
    unreachable: tuple[ClusterMember, ...] = ()
    leader: NodeAddress | None = None


class MembershipProvider(Protocol):
    """Source of membership views, queried once per snapshot."""

    def current_view(self) -> MembershipView: ...


@dataclass(slots=True)
class InMemoryMembership:
    """
    Thread-safe, in-process membership state.

    Mutations are serialized by a reentrant lock and ``current_view`` hands
    out an immutable copy, so any number of readers can build snapshots
    concurrently. Member order is join order.
    """

    self_address: NodeAddress
    _members: dict[NodeAddress, StaticMember] = field(default_factory=dict)
    _unreachable: dict[NodeAddress, None] = field(default_factory=dict)
    _leader: NodeAddress | None = None
    _available: bool = True
    _next_up_number: UpNumber = 1
    _lock: RLock = field(default_factory=RLock)

    def join(
        self,
        address: NodeAddress,
        status: MemberStatus = MemberStatus.JOINING,
        up_number: UpNumber | None = None,
    ) -> StaticMember:
        """Add a member, or return the existing record if already known."""
        with self._lock:
            existing = self._members.get(address)
            if existing is not None:
                return existing
            member = StaticMember(
                address=address,
                status=status,
                up_number=self._resolve_up_number(status, up_number),
            )
            self._members[address] = member
            logger.debug(f"Member {address} joined with status {status.value}")
            return member

    def update_status(self, address: NodeAddress, status: MemberStatus) -> StaticMember:
        """Move a known member to a new lifecycle status."""
        with self._lock:
            member = self._require(address)
            up_number = member.up_number
            if up_number == UNASSIGNED_UP_NUMBER:
                up_number = self._resolve_up_number(status, None)
            updated = member.with_status(status, up_number)
            self._members[address] = updated
            logger.debug(
                f"Member {address} status {member.status.value} -> {status.value}"
            )
            return updated

    def remove(self, address: NodeAddress) -> None:
        """Drop a member entirely, including from the unreachable set."""
        with self._lock:
            self._require(address)
            del self._members[address]
            self._unreachable.pop(address, None)
            if self._leader == address:
                self._leader = None
            logger.debug(f"Member {address} removed")

    def mark_unreachable(self, address: NodeAddress) -> None:
        with self._lock:
            self._require(address)
            self._unreachable[address] = None
            logger.debug(f"Member {address} marked unreachable")

    def mark_reachable(self, address: NodeAddress) -> None:
        with self._lock:
            if address in self._unreachable:
                del self._unreachable[address]
                logger.debug(f"Member {address} reachable again")

    def set_leader(self, address: NodeAddress | None) -> None:
        with self._lock:
            self._leader = address

    def set_available(self, available: bool) -> None:
        """Simulate the clustering subsystem becoming (un)readable."""
        with self._lock:
            self._available = available

    def current_view(self) -> MembershipView:
        with self._lock:
            if not self._available:
                raise MembershipUnavailableError("Cluster membership is not available")
            # A node that has not joined yet still reports itself, as removed.
            self_member = self._members.get(self.self_address) or StaticMember(
                address=self.self_address, status=MemberStatus.REMOVED
            )
            return MembershipView(
                self_member=self_member,
                members=tuple(self._members.values()),
                unreachable=tuple(
                    self._members[address] for address in self._unreachable
                ),
                leader=self._leader,
            )

    def _require(self, address: NodeAddress) -> StaticMember:
        member = self._members.get(address)
        if member is None:
            raise ValueError(f"Unknown member: {address}")
        return member

    def _resolve_up_number(
        self, status: MemberStatus, up_number: UpNumber | None
    ) -> UpNumber:
        if up_number is not None:
            self._next_up_number = max(self._next_up_number, up_number + 1)
            return up_number
        if status is not MemberStatus.UP:
            return UNASSIGNED_UP_NUMBER
        assigned = self._next_up_number
        self._next_up_number += 1
        return assigned
