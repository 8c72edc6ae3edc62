"""
Semantic type aliases for clusterview.

These aliases keep signatures self-documenting: a port used as a node
identity reads as ``PortNumber`` rather than a bare ``int``.
"""

from typing import Any, TypeAlias

# Network and identity types
HostAddress: TypeAlias = str
PortNumber: TypeAlias = int
ActorSystemName: TypeAlias = str
AddressProtocol: TypeAlias = str
NodeAddressString: TypeAlias = str  # akka://system@host:port

# Membership types
UpNumber: TypeAlias = int
MemberStatusLabel: TypeAlias = str
DisplayStateLabel: TypeAlias = str

# HTTP types
EndpointPath: TypeAlias = str

# Configuration types
SettingName: TypeAlias = str

# Serialization types
JsonDict: TypeAlias = dict[str, Any]
