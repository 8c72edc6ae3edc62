"""
Tests for the cluster-state snapshot builder.

Covers:
- DisplayState and raw status label mappings
- Oldest-member selection with the member-supplied comparator
- Self header, per-member projection and port-window filtering
- Unreachable merge (replace by port, move to the end)
"""

from dataclasses import dataclass

import pytest

from clusterview.core.membership import (
    UNASSIGNED_UP_NUMBER,
    ClusterMember,
    MembershipView,
    MemberStatus,
    StaticMember,
)
from clusterview.core.snapshot import (
    ClusterSnapshot,
    DisplayState,
    NodeView,
    NodeViewSequence,
    build_snapshot,
    member_status_label,
    select_oldest,
)
from clusterview.datastructures.cluster_types import NodeAddress, PortRange


def address(port: int | None, host: str = "127.0.0.1") -> NodeAddress:
    return NodeAddress(host=host, port=port)


def member(
    port: int | None,
    status: MemberStatus = MemberStatus.UP,
    up_number: int = UNASSIGNED_UP_NUMBER,
) -> StaticMember:
    return StaticMember(address=address(port), status=status, up_number=up_number)


@dataclass(frozen=True)
class RankedMember:
    """Member whose age comes from an arbitrary rank (higher rank is older)."""

    address: NodeAddress
    status: MemberStatus
    rank: int

    @property
    def port(self) -> int:
        return self.address.port_or_zero

    def is_older_than(self, other: ClusterMember) -> bool:
        return self.rank > getattr(other, "rank")

    def address_equals(self, other: NodeAddress | None) -> bool:
        return other is not None and self.address == other


class TestDisplayStateMapping:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (MemberStatus.DOWN, DisplayState.DOWN),
            (MemberStatus.JOINING, DisplayState.STARTING),
            (MemberStatus.WEAKLY_UP, DisplayState.STARTING),
            (MemberStatus.UP, DisplayState.UP),
            (MemberStatus.EXITING, DisplayState.STOPPING),
            (MemberStatus.LEAVING, DisplayState.STOPPING),
            (MemberStatus.REMOVED, DisplayState.STOPPING),
            (MemberStatus.OTHER, DisplayState.OFFLINE),
        ],
    )
    def test_status_projection(
        self, status: MemberStatus, expected: DisplayState
    ) -> None:
        assert DisplayState.from_status(status) is expected

    @pytest.mark.parametrize(
        ("status", "label"),
        [
            (MemberStatus.DOWN, "down"),
            (MemberStatus.JOINING, "joining"),
            (MemberStatus.WEAKLY_UP, "weaklyup"),
            (MemberStatus.UP, "up"),
            (MemberStatus.EXITING, "exiting"),
            (MemberStatus.LEAVING, "leaving"),
            (MemberStatus.REMOVED, "removed"),
            (MemberStatus.OTHER, "unknown"),
        ],
    )
    def test_raw_status_labels(self, status: MemberStatus, label: str) -> None:
        assert member_status_label(status) == label

    def test_unrecognized_status_label_is_offline(self) -> None:
        status = MemberStatus.parse("preparing-for-shutdown")
        assert status is MemberStatus.OTHER
        assert DisplayState.from_status(status) is DisplayState.OFFLINE


class TestSelectOldest:
    def test_empty_membership_selects_self(self) -> None:
        self_member = member(2551)
        assert select_oldest([], self_member) is self_member

    def test_lowest_up_number_wins(self) -> None:
        members = [member(2553, up_number=3), member(2551, up_number=1), member(2552, up_number=2)]
        assert select_oldest(members, member(2553)).port == 2551

    def test_equal_up_numbers_fall_back_to_address_order(self) -> None:
        members = [member(2552, up_number=1), member(2551, up_number=1)]
        assert select_oldest(members, members[0]).port == 2551

    def test_uses_member_comparator(self) -> None:
        members = [
            RankedMember(address(2551), MemberStatus.UP, rank=1),
            RankedMember(address(2552), MemberStatus.UP, rank=7),
            RankedMember(address(2553), MemberStatus.UP, rank=3),
        ]
        assert select_oldest(members, members[0]).port == 2552

    def test_out_of_range_member_can_be_oldest(self) -> None:
        members = [member(9999, up_number=1), member(2551, up_number=2)]
        assert select_oldest(members, members[1]).port == 9999


class TestBuildSnapshot:
    def test_two_node_example(self) -> None:
        self_member = member(2551, up_number=1)
        view = MembershipView(
            self_member=self_member,
            members=(self_member, member(2552, up_number=2)),
            leader=address(2552),
        )

        snapshot = build_snapshot(view)

        assert snapshot.self_port == 2551
        assert snapshot.leader is False
        assert snapshot.oldest is True
        assert [node.to_dict() for node in snapshot.nodes] == [
            {"port": 2551, "state": "up", "memberState": "up", "leader": False, "oldest": True},
            {"port": 2552, "state": "up", "memberState": "up", "leader": True, "oldest": False},
        ]

    def test_self_is_leader(self) -> None:
        self_member = member(2551, up_number=2)
        view = MembershipView(
            self_member=self_member,
            members=(member(2552, up_number=1), self_member),
            leader=address(2551),
        )

        snapshot = build_snapshot(view)

        assert snapshot.leader is True
        assert snapshot.oldest is False
        assert [(node.port, node.leader, node.oldest) for node in snapshot.nodes] == [
            (2552, False, True),
            (2551, True, False),
        ]

    def test_absent_leader(self) -> None:
        self_member = member(2551, up_number=1)
        view = MembershipView(
            self_member=self_member, members=(self_member, member(2552, up_number=2))
        )

        snapshot = build_snapshot(view)

        assert snapshot.leader is False
        assert not any(node.leader for node in snapshot.nodes)

    def test_empty_membership(self) -> None:
        snapshot = build_snapshot(MembershipView(self_member=member(2551)))

        assert snapshot == ClusterSnapshot(self_port=2551, leader=False, oldest=True)
        assert snapshot.nodes == ()

    def test_view_order_is_preserved(self) -> None:
        members = (
            member(2555, up_number=1),
            member(2551, up_number=2),
            member(2553, MemberStatus.JOINING),
        )
        view = MembershipView(self_member=members[1], members=members)

        snapshot = build_snapshot(view)

        assert [node.port for node in snapshot.nodes] == [2555, 2551, 2553]
        assert [node.state for node in snapshot.nodes] == ["up", "up", "starting"]

    def test_out_of_range_member_is_excluded(self) -> None:
        self_member = member(2551, up_number=2)
        view = MembershipView(
            self_member=self_member,
            members=(member(9999, up_number=1), self_member),
            leader=address(9999),
        )

        snapshot = build_snapshot(view, PortRange(2551, 2559))

        assert [node.port for node in snapshot.nodes] == [2551]
        # 9999 is still the oldest, so nobody in the output is marked oldest.
        assert snapshot.oldest is False
        assert snapshot.nodes[0].oldest is False
        assert snapshot.nodes[0].leader is False

    def test_member_without_port_is_excluded(self) -> None:
        self_member = member(2551, up_number=1)
        view = MembershipView(
            self_member=self_member,
            members=(self_member, member(None, up_number=2)),
        )

        assert [node.port for node in build_snapshot(view).nodes] == [2551]

    def test_self_header_reports_out_of_range_port(self) -> None:
        self_member = member(9999, up_number=1)
        view = MembershipView(self_member=self_member, members=(self_member,))

        snapshot = build_snapshot(view)

        assert snapshot.self_port == 9999
        assert snapshot.oldest is True
        assert snapshot.nodes == ()

    def test_custom_port_range(self) -> None:
        members = (member(3000, up_number=1), member(2551, up_number=2))
        view = MembershipView(self_member=members[0], members=members)

        snapshot = build_snapshot(view, PortRange(min_port=3000, max_port=3005))

        assert [node.port for node in snapshot.nodes] == [3000]

    def test_range_bounds_are_inclusive(self) -> None:
        members = (
            member(2550, up_number=1),
            member(2551, up_number=2),
            member(2559, up_number=3),
            member(2560, up_number=4),
        )
        view = MembershipView(self_member=members[1], members=members)

        assert [node.port for node in build_snapshot(view).nodes] == [2551, 2559]

    def test_rebuilding_gives_equal_snapshots(self) -> None:
        members = (member(2551, up_number=1), member(2552, MemberStatus.LEAVING, 2))
        view = MembershipView(
            self_member=members[0],
            members=members,
            unreachable=(members[1],),
            leader=address(2551),
        )

        assert build_snapshot(view).to_dict() == build_snapshot(view).to_dict()

    def test_shared_port_keeps_first_member(self) -> None:
        first = StaticMember(
            address=address(2552, host="10.0.0.1"),
            status=MemberStatus.UP,
            up_number=2,
        )
        second = StaticMember(
            address=address(2552, host="10.0.0.2"),
            status=MemberStatus.LEAVING,
            up_number=3,
        )
        self_member = member(2551, up_number=1)
        view = MembershipView(
            self_member=self_member,
            members=(first, self_member, second),
            leader=second.address,
        )

        snapshot = build_snapshot(view)

        assert [node.to_dict() for node in snapshot.nodes] == [
            {"port": 2552, "state": "up", "memberState": "up", "leader": False, "oldest": False},
            {"port": 2551, "state": "up", "memberState": "up", "leader": False, "oldest": True},
        ]


class TestUnreachableMerge:
    def test_single_unreachable_member_replaces_reachable_view(self) -> None:
        self_member = member(2551, up_number=1)
        view = MembershipView(
            self_member=self_member,
            members=(self_member,),
            unreachable=(self_member,),
        )

        snapshot = build_snapshot(view)

        assert [node.to_dict() for node in snapshot.nodes] == [
            {
                "port": 2551,
                "state": "unreachable",
                "memberState": "unreachable",
                "leader": False,
                "oldest": False,
            }
        ]
        # The header still reflects the raw membership.
        assert snapshot.oldest is True

    def test_unreachable_member_moves_to_end(self) -> None:
        members = (
            member(2551, up_number=1),
            member(2552, up_number=2),
            member(2553, up_number=3),
        )
        view = MembershipView(
            self_member=members[1],
            members=members,
            unreachable=(members[0],),
            leader=address(2551),
        )

        snapshot = build_snapshot(view)

        assert [(node.port, node.state) for node in snapshot.nodes] == [
            (2552, "up"),
            (2553, "up"),
            (2551, "unreachable"),
        ]
        # Leader and oldest flags are dropped for unreachable nodes.
        assert not any(node.leader or node.oldest for node in snapshot.nodes)

    def test_unreachable_members_keep_their_relative_order(self) -> None:
        members = tuple(member(port, up_number=port) for port in (2551, 2552, 2553, 2554))
        view = MembershipView(
            self_member=members[0],
            members=members,
            unreachable=(members[3], members[1]),
        )

        snapshot = build_snapshot(view)

        assert [node.port for node in snapshot.nodes] == [2551, 2553, 2554, 2552]

    def test_unreachable_only_member_is_appended(self) -> None:
        self_member = member(2551, up_number=1)
        view = MembershipView(
            self_member=self_member,
            members=(self_member,),
            unreachable=(member(2557),),
        )

        snapshot = build_snapshot(view)

        assert [(node.port, node.state) for node in snapshot.nodes] == [
            (2551, "up"),
            (2557, "unreachable"),
        ]

    def test_out_of_range_unreachable_member_is_ignored(self) -> None:
        self_member = member(2551, up_number=1)
        view = MembershipView(
            self_member=self_member,
            members=(self_member,),
            unreachable=(member(9999),),
        )

        assert [node.port for node in build_snapshot(view).nodes] == [2551]


class TestNodeView:
    def test_equality_is_by_port(self) -> None:
        reachable = NodeView(2551, "up", "up", leader=True, oldest=True)
        unreachable = NodeView.unreachable(2551)

        assert reachable == unreachable
        assert hash(reachable) == hash(unreachable)
        assert len({reachable, unreachable}) == 1
        assert reachable != NodeView(2552, "up", "up", leader=True, oldest=True)

    def test_sequence_replace_moves_view_to_end(self) -> None:
        nodes = NodeViewSequence()
        nodes.add(NodeView(2551, "up", "up"))
        nodes.add(NodeView(2552, "up", "up"))

        nodes.replace_at_end(NodeView.unreachable(2551))

        assert len(nodes) == 2
        assert NodeView.unreachable(2552) in nodes
        assert [(node.port, node.state) for node in nodes] == [
            (2552, "up"),
            (2551, "unreachable"),
        ]
