"""
Type-safe value objects for cluster addressing.

``NodeAddress`` identifies a member the way the clustering subsystem does,
and ``PortRange`` is the inclusive window of ports a snapshot reports on.
"""

from __future__ import annotations

from dataclasses import dataclass

from .type_aliases import (
    ActorSystemName,
    AddressProtocol,
    HostAddress,
    NodeAddressString,
    PortNumber,
)

DEFAULT_PROTOCOL: AddressProtocol = "akka"
DEFAULT_SYSTEM: ActorSystemName = "cluster"
DEFAULT_MIN_PORT: PortNumber = 2551
DEFAULT_MAX_PORT: PortNumber = 2559


@dataclass(frozen=True, slots=True)
class NodeAddress:
    """
    Address of a cluster member.

    The port is optional: a local-only address carries no host and no port.
    Ordering follows the clustering subsystem's address ordering, host first
    and then port, with portless addresses sorting before any port.
    """

    host: HostAddress | None
    port: PortNumber | None
    system: ActorSystemName = DEFAULT_SYSTEM
    protocol: AddressProtocol = DEFAULT_PROTOCOL

    @classmethod
    def parse(cls, value: NodeAddressString) -> NodeAddress:
        """Parse ``protocol://system@host:port`` (or ``protocol://system``)."""
        protocol, sep, remainder = value.partition("://")
        if not sep or not protocol or not remainder:
            raise ValueError(f"Invalid node address: {value!r}")

        system, at, authority = remainder.partition("@")
        if not system:
            raise ValueError(f"Invalid node address: {value!r}")
        if not at:
            return cls(host=None, port=None, system=system, protocol=protocol)

        host, colon, port_text = authority.rpartition(":")
        if not colon or not host:
            raise ValueError(f"Invalid node address: {value!r}")
        try:
            port = int(port_text)
        except ValueError as e:
            raise ValueError(f"Invalid port in node address: {value!r}") from e
        return cls(host=host, port=port, system=system, protocol=protocol)

    @property
    def port_or_zero(self) -> PortNumber:
        """Port number, or 0 for an address without one."""
        return self.port if self.port is not None else 0

    def sort_key(self) -> tuple[str, PortNumber]:
        return (self.host or "", self.port if self.port is not None else -1)

    def __str__(self) -> str:
        if self.host is None:
            return f"{self.protocol}://{self.system}"
        return f"{self.protocol}://{self.system}@{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class PortRange:
    """Inclusive window of ports that a snapshot reports on."""

    min_port: PortNumber = DEFAULT_MIN_PORT
    max_port: PortNumber = DEFAULT_MAX_PORT

    def __post_init__(self) -> None:
        if self.min_port > self.max_port:
            raise ValueError(
                f"min_port ({self.min_port}) must not exceed max_port ({self.max_port})"
            )

    def __contains__(self, port: object) -> bool:
        if not isinstance(port, int) or isinstance(port, bool):
            return False
        return self.min_port <= port <= self.max_port

    def __str__(self) -> str:
        return f"{self.min_port}-{self.max_port}"
