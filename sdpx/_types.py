"""
Type definitions for SDP generation.

This module centralizes the endpoint, metadata and configuration types used
throughout the package, together with the exception hierarchy.
"""

from __future__ import annotations

import ipaddress
import socket
import struct
import sys
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ._utils import PACKAGE_STRING, SA_FAMILY_SIZE


# =============================================================================
# Exceptions
# =============================================================================


class SDPError(Exception):
    """Base exception for SDP generation errors."""

    pass


class InvalidAddress(SDPError):
    """Raised when an endpoint is too short or malformed."""

    pass


class UnsupportedFamily(SDPError):
    """Raised when an endpoint is neither IPv4 nor IPv6."""

    pass


class InvalidText(SDPError):
    """Raised when a text field contains line terminators or invalid UTF-8."""

    pass


class AllocationFailure(SDPError):
    """Raised when the document buffer cannot grow."""

    pass


# =============================================================================
# Endpoints
# =============================================================================


class AddressFamily(Enum):
    """Address families that can appear in an SDP connection field."""

    IPV4 = socket.AF_INET
    IPV6 = socket.AF_INET6

    @property
    def version(self) -> str:
        """IP version digit used in ``IN IP<ver>``."""
        return "4" if self is AddressFamily.IPV4 else "6"

    @property
    def address_size(self) -> int:
        return 4 if self is AddressFamily.IPV4 else 16

    @classmethod
    def from_native(cls, family: int) -> AddressFamily:
        try:
            return cls(family)
        except ValueError:
            raise UnsupportedFamily(f"Unsupported address family: {family}") from None


@dataclass(frozen=True)
class Endpoint:
    """A network endpoint: family tag, packed address, port and IPv6 scope."""

    family: AddressFamily
    address: bytes
    port: int = 0
    scope_id: int = 0

    def __post_init__(self) -> None:
        if len(self.address) != self.family.address_size:
            raise InvalidAddress(
                f"IPv{self.family.version} address must be "
                f"{self.family.address_size} bytes, got {len(self.address)}"
            )

    @property
    def host(self) -> str:
        """Numeric host text without scope."""
        return socket.inet_ntop(self.family.value, self.address)

    @property
    def is_multicast(self) -> bool:
        return ipaddress.ip_address(self.address).is_multicast

    def to_sockaddr(self) -> tuple:
        """Socket-module address tuple for this endpoint."""
        if self.family is AddressFamily.IPV4:
            return (self.host, self.port)
        return (self.host, self.port, 0, self.scope_id)

    @classmethod
    def from_address(cls, host: str, port: int = 0, scope_id: int = 0) -> Endpoint:
        """
        Build an endpoint from numeric address text.

        A ``%scope`` suffix on an IPv6 address is accepted when it is numeric.

        Examples:
            Endpoint.from_address("192.0.2.1", 5004)
            Endpoint.from_address("fe80::1%2")
        """
        if "%" in host:
            host, _, zone = host.partition("%")
            if zone.isdigit():
                scope_id = int(zone)
        try:
            ip = ipaddress.ip_address(host)
        except ValueError as e:
            raise InvalidAddress(f"Not a numeric address: {host!r}") from e

        family = AddressFamily.IPV4 if ip.version == 4 else AddressFamily.IPV6
        if family is AddressFamily.IPV4:
            scope_id = 0
        return cls(family=family, address=ip.packed, port=port, scope_id=scope_id)

    @classmethod
    def from_sockaddr(cls, data: bytes) -> Endpoint:
        """
        Decode a raw ``struct sockaddr`` as laid out by the kernel.

        The family field is in host byte order; ports are big-endian.

        Raises:
            InvalidAddress: If the data is too short for its family
            UnsupportedFamily: If the family is neither IPv4 nor IPv6
        """
        if len(data) < SA_FAMILY_SIZE:
            raise InvalidAddress("Address too short to hold an address family")

        if sys.platform == "darwin" or "bsd" in sys.platform:
            # sa_len precedes a one-byte sa_family
            native = data[1]
        else:
            (native,) = struct.unpack("=H", data[:SA_FAMILY_SIZE])

        family = AddressFamily.from_native(native)
        if family is AddressFamily.IPV4:
            # sin_port, sin_addr
            if len(data) < SA_FAMILY_SIZE + 2 + 4:
                raise InvalidAddress("Address too short for IPv4")
            (port,) = struct.unpack("!H", data[2:4])
            return cls(family=family, address=bytes(data[4:8]), port=port)

        # sin6_port, sin6_flowinfo, sin6_addr, sin6_scope_id
        if len(data) < SA_FAMILY_SIZE + 2 + 4 + 16:
            raise InvalidAddress("Address too short for IPv6")
        (port,) = struct.unpack("!H", data[2:4])
        scope_id = 0
        if len(data) >= 28:
            (scope_id,) = struct.unpack("=I", data[24:28])
        return cls(
            family=family, address=bytes(data[8:24]), port=port, scope_id=scope_id
        )


# =============================================================================
# Session and Media Descriptions
# =============================================================================


@dataclass
class SessionMetadata:
    """User-supplied session text. Every field is optional."""

    name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class MediaDescriptor:
    """Parameters of one ``m=`` block."""

    media_type: Optional[str] = None
    protocol: Optional[str] = None
    port: int = 0
    payload_type: int = 0
    bandwidth_independent: bool = False
    bandwidth: int = 0
    rtpmap: Optional[str] = None
    fmtp: Optional[str] = None


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class SDPConfig:
    """Configuration for generated session descriptions."""

    # Session-level text
    tool: str = PACKAGE_STRING
    default_name: str = "Unnamed"
    default_description: str = "N/A"

    # Fixed session attributes
    direction: str = "recvonly"
    session_type: str = "broadcast"
    charset: str = "UTF-8"

    # Obsolete in RFC 4566, dummy value kept for older receivers
    multicast_ttl: int = 255

    # Media defaults
    default_media_type: str = "video"
    default_protocol: str = "RTP/AVP"

    # Buffer ceiling, in bytes (None for unbounded)
    max_size: Optional[int] = 65535

    # Additional session attributes, appended after the fixed ones
    extra: dict[str, Optional[str]] = field(default_factory=dict)


# =============================================================================
# Collaborators
# =============================================================================

TimeSource = typing.Callable[[], int]
HostnameSource = typing.Callable[[], str]
NameInfo = typing.Callable[[tuple, int], tuple]
MulticastPredicate = typing.Callable[["Endpoint"], bool]


__all__ = [
    # Exceptions
    "SDPError",
    "InvalidAddress",
    "UnsupportedFamily",
    "InvalidText",
    "AllocationFailure",
    # Endpoints
    "AddressFamily",
    "Endpoint",
    # Descriptions
    "SessionMetadata",
    "MediaDescriptor",
    # Configuration
    "SDPConfig",
    # Collaborators
    "TimeSource",
    "HostnameSource",
    "NameInfo",
    "MulticastPredicate",
]
