"""
Cluster description files.

A description is a ``cluster`` table (TOML) or object (JSON) naming the
local member, the members in join order, the leader and the unreachable
members::

    [cluster]
    system = "cluster"
    host = "127.0.0.1"
    self = 2551
    leader = 2552
    unreachable = [2553]

    [[cluster.members]]
    port = 2551
    status = "up"

Members without an explicit ``up_number`` are numbered in declaration order
once they are up.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import orjson
from loguru import logger

from ..datastructures.cluster_types import DEFAULT_SYSTEM, NodeAddress
from ..datastructures.type_aliases import HostAddress, PortNumber
from .membership import InMemoryMembership, MemberStatus

CLUSTER_SECTION = "cluster"
DEFAULT_HOST: HostAddress = "127.0.0.1"


class ClusterFileError(ValueError):
    """Raised when a cluster description is missing or malformed."""

    pass


def load_cluster_file(path: Path | str) -> InMemoryMembership:
    """Load a TOML or JSON cluster description into an in-memory membership."""
    file_path = Path(path)
    try:
        raw = file_path.read_bytes()
    except OSError as e:
        raise ClusterFileError(f"Cannot read cluster file {file_path}: {e}") from e

    try:
        if file_path.suffix.lower() == ".json":
            document = orjson.loads(raw)
        else:
            document = tomllib.loads(raw.decode("utf-8"))
    except (orjson.JSONDecodeError, tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ClusterFileError(f"Cannot parse cluster file {file_path}: {e}") from e

    if not isinstance(document, Mapping):
        raise ClusterFileError(f"Cluster file {file_path} must contain a table")
    membership = membership_from_dict(document.get(CLUSTER_SECTION, document))
    logger.info(f"Loaded cluster description from {file_path}")
    return membership


def membership_from_dict(payload: Mapping[str, Any]) -> InMemoryMembership:
    """Build an ``InMemoryMembership`` from a parsed cluster description."""
    if not isinstance(payload, Mapping):
        raise ClusterFileError("Cluster description must be a table")

    system = str(payload.get("system", DEFAULT_SYSTEM))
    host = str(payload.get("host", DEFAULT_HOST))

    def address(port: PortNumber, member_host: HostAddress | None = None) -> NodeAddress:
        return NodeAddress(host=member_host or host, port=port, system=system)

    membership = InMemoryMembership(
        self_address=address(_require_port(payload.get("self"), "self"))
    )

    members = payload.get("members", [])
    if not isinstance(members, list):
        raise ClusterFileError("'members' must be a list")
    known: dict[PortNumber, NodeAddress] = {}
    for index, entry in enumerate(members):
        if not isinstance(entry, Mapping):
            raise ClusterFileError(f"members[{index}] must be a table")
        port = _require_port(entry.get("port"), f"members[{index}].port")
        if port in known:
            raise ClusterFileError(f"members[{index}] repeats port {port}")
        up_number = entry.get("up_number")
        if up_number is not None and not isinstance(up_number, int):
            raise ClusterFileError(f"members[{index}].up_number must be an integer")
        member_address = address(port, entry.get("host"))
        membership.join(
            member_address,
            status=MemberStatus.parse(str(entry.get("status", "up"))),
            up_number=up_number,
        )
        known[port] = member_address

    leader = payload.get("leader")
    if leader is not None:
        port = _require_port(leader, "leader")
        membership.set_leader(known.get(port) or address(port))

    unreachable = payload.get("unreachable", [])
    if not isinstance(unreachable, list):
        raise ClusterFileError("'unreachable' must be a list")
    for port in unreachable:
        if port not in known:
            raise ClusterFileError(f"Unreachable port {port} is not a declared member")
        membership.mark_unreachable(known[port])

    return membership


def _require_port(value: object, name: str) -> PortNumber:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ClusterFileError(f"'{name}' must be an integer port")
    return value
