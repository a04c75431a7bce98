"""sdpx - Session Description Protocol (RFC 4566) generation for streaming."""

from __future__ import annotations

# Connection addresses
from ._address import address_to_sdp, endpoint_is_multicast, numeric_name_info

# Documents and builders
from ._sdp import (
    SDPDocument,
    SessionBuilder,
    add_attribute,
    add_media,
    add_media_descriptor,
    is_sdp_string,
    local_hostname,
    ntp_time64,
    start_session,
)

# Types, configuration and exceptions
from ._types import (
    AddressFamily,
    AllocationFailure,
    Endpoint,
    HostnameSource,
    InvalidAddress,
    InvalidText,
    MediaDescriptor,
    SDPConfig,
    SDPError,
    SessionMetadata,
    TimeSource,
    UnsupportedFamily,
)
from ._utils import MAX_SDP_ADDRESS, PACKAGE_STRING

__version__ = "0.1.0"

__all__ = [
    # Builders
    "SessionBuilder",
    "start_session",
    "add_attribute",
    "add_media",
    "add_media_descriptor",
    # Documents
    "SDPDocument",
    # Addresses
    "address_to_sdp",
    "numeric_name_info",
    "endpoint_is_multicast",
    "AddressFamily",
    "Endpoint",
    # Collaborators
    "ntp_time64",
    "local_hostname",
    "is_sdp_string",
    "TimeSource",
    "HostnameSource",
    # Descriptions and configuration
    "SessionMetadata",
    "MediaDescriptor",
    "SDPConfig",
    # Exceptions
    "SDPError",
    "InvalidAddress",
    "UnsupportedFamily",
    "InvalidText",
    "AllocationFailure",
    # Constants
    "MAX_SDP_ADDRESS",
    "PACKAGE_STRING",
    "__version__",
]
