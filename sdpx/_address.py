"""
Connection field formatting (RFC 4566 Section 5.7).

Turns an endpoint into the ``IN IP<ver> <address>`` text used by the ``c=``
line and by the ``a=source-filter`` attribute.
"""

from __future__ import annotations

import socket
from typing import Optional

from ._types import (
    AddressFamily,
    Endpoint,
    InvalidAddress,
    MulticastPredicate,
    NameInfo,
)
from ._utils import MAX_SDP_ADDRESS, logger


def numeric_name_info(sockaddr: tuple, flags: int) -> tuple:
    """Numeric-only ``getnameinfo``; never performs reverse DNS."""
    return socket.getnameinfo(sockaddr, flags | socket.NI_NUMERICHOST)


def endpoint_is_multicast(endpoint: Endpoint) -> bool:
    return endpoint.is_multicast


def address_to_sdp(
    endpoint: Endpoint,
    *,
    multicast_ttl: int = 255,
    name_info: Optional[NameInfo] = None,
    is_multicast: Optional[MulticastPredicate] = None,
) -> str:
    """
    Format an endpoint as an SDP connection address.

    Args:
        endpoint: Endpoint to format
        multicast_ttl: TTL marker appended to IPv4 multicast groups
        name_info: Numeric address formatter (defaults to getnameinfo)
        is_multicast: Multicast predicate (defaults to the address class)

    Returns:
        ``"IN IP4 <addr>[/ttl]"`` or ``"IN IP6 <addr>"``

    Raises:
        InvalidAddress: If the address cannot be rendered within
            MAX_SDP_ADDRESS characters
    """
    name_info = name_info or numeric_name_info
    is_multicast = is_multicast or endpoint_is_multicast

    try:
        host, _ = name_info(
            endpoint.to_sockaddr(), socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
        )
    except (socket.gaierror, OSError) as e:
        raise InvalidAddress(f"Cannot format address {endpoint.host}: {e}") from e

    if endpoint.family is AddressFamily.IPV4:
        if is_multicast(endpoint):
            host = f"{host}/{multicast_ttl}"
    else:
        # SDP has no notion of interface scope
        host = host.split("%", 1)[0]

    connection = f"IN IP{endpoint.family.version} {host}"
    if len(connection) >= MAX_SDP_ADDRESS:
        raise InvalidAddress(f"Connection address too long: {connection!r}")

    logger.debug(f"Formatted {endpoint.host} as {connection!r}")
    return connection


__all__ = [
    "address_to_sdp",
    "numeric_name_info",
    "endpoint_is_multicast",
]
