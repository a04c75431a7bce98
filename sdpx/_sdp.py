"""
Session Description Protocol generation (RFC 4566).

Builds the session-level header of a streaming announcement, then grows it
with attribute and media lines. Every observable state of a document is a
complete CRLF-terminated description.
"""

from __future__ import annotations

import socket
import time
import typing
from typing import List, Optional

from ._address import address_to_sdp
from ._types import (
    AllocationFailure,
    Endpoint,
    HostnameSource,
    InvalidAddress,
    InvalidText,
    MediaDescriptor,
    MulticastPredicate,
    NameInfo,
    SDPConfig,
    SDPError,
    SessionMetadata,
    TimeSource,
)
from ._utils import EOL, FALLBACK_HOSTNAME, MAX_HOSTNAME, NTP_EPOCH_OFFSET, logger

TextLike = typing.Union[str, bytes]
EndpointLike = typing.Union[Endpoint, bytes, str]


# =============================================================================
# Collaborators
# =============================================================================


def ntp_time64() -> int:
    """Current wall-clock time as a 64-bit NTP timestamp (32.32 fixed point)."""
    now = time.time_ns()
    seconds, nanos = divmod(now, 1_000_000_000)
    fraction = (nanos << 32) // 1_000_000_000
    return (((seconds + NTP_EPOCH_OFFSET) & 0xFFFFFFFF) << 32) | fraction


def local_hostname() -> str:
    return socket.gethostname()[:MAX_HOSTNAME]


# =============================================================================
# Text Validation
# =============================================================================


def is_sdp_string(value: TextLike) -> bool:
    """Check that a value is well-formed UTF-8 text without line breaks."""
    try:
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        else:
            value.encode("utf-8")
    except UnicodeError:
        return False
    return "\r" not in value and "\n" not in value


def _check_text(field: str, value: TextLike) -> str:
    if not is_sdp_string(value):
        raise InvalidText(f"Invalid {field}: {value!r}")
    return value.decode("utf-8") if isinstance(value, bytes) else value


def _coerce_endpoint(value: EndpointLike) -> Endpoint:
    if isinstance(value, Endpoint):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Endpoint.from_sockaddr(bytes(value))
    return Endpoint.from_address(value)


# =============================================================================
# Document
# =============================================================================


class SDPDocument:
    """
    Growable SDP text buffer.

    Documents are created by :func:`start_session` and only ever grow by
    whole lines. A failed growth leaves the existing content untouched.
    Instances carry no locking; share one between threads only with
    external synchronization.
    """

    def __init__(
        self, initial: str = "", *, config: Optional[SDPConfig] = None
    ) -> None:
        self.config = config or SDPConfig()
        self._buffer = bytearray()
        if initial:
            self._append(initial)

    @property
    def max_size(self) -> Optional[int]:
        return self.config.max_size

    def reserve(self, size: int) -> None:
        """
        Check that ``size`` more bytes fit in the document.

        Raises:
            AllocationFailure: If the document would exceed its ceiling
        """
        limit = self.max_size
        if limit is not None and len(self._buffer) + size > limit:
            raise AllocationFailure(
                f"SDP document would grow to {len(self._buffer) + size} bytes "
                f"(limit {limit})"
            )

    def _append(self, text: str) -> None:
        data = text.encode("utf-8")
        self.reserve(len(data))
        try:
            self._buffer += data
        except MemoryError as e:
            raise AllocationFailure("Cannot grow SDP document") from e

    def add_attribute(
        self, name: TextLike, value: object = None, *args: object
    ) -> SDPDocument:
        return add_attribute(self, name, value, *args)

    def add_media(self, *args, **kwargs) -> SDPDocument:
        return add_media(self, *args, **kwargs)

    def lines(self) -> List[str]:
        return self.to_string().split(EOL)[:-1]

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)

    def to_string(self) -> str:
        return self._buffer.decode("utf-8")

    @property
    def content_type(self) -> str:
        return "application/sdp"

    def __len__(self) -> int:
        return len(self._buffer)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"<SDPDocument {len(self)} bytes>"


# =============================================================================
# Session Builder
# =============================================================================


class SessionBuilder:
    """
    Produces the session-level part of an announcement.

    Time, hostname and address lookups are injected so that output can be
    reproduced in tests.

    Example:
        builder = SessionBuilder()
        sdp = builder.build(
            SessionMetadata(name="Camera 1"),
            destination=Endpoint.from_address("239.255.0.1", 5004),
        )
        sdp.add_media("video", "RTP/AVP", 5004, 96, rtpmap="H264/90000")
    """

    def __init__(
        self,
        config: Optional[SDPConfig] = None,
        *,
        clock: Optional[TimeSource] = None,
        hostname: Optional[HostnameSource] = None,
        name_info: Optional[NameInfo] = None,
        is_multicast: Optional[MulticastPredicate] = None,
    ) -> None:
        self.config = config or SDPConfig()
        self.clock = clock or ntp_time64
        self.hostname = hostname or local_hostname
        self.name_info = name_info
        self.is_multicast = is_multicast

    def format_address(self, endpoint: Endpoint) -> str:
        return address_to_sdp(
            endpoint,
            multicast_ttl=self.config.multicast_ttl,
            name_info=self.name_info,
            is_multicast=self.is_multicast,
        )

    def _source_filter(self, source: Optional[EndpointLike]) -> Optional[str]:
        if source is None or (isinstance(source, (bytes, str)) and not source):
            return None
        try:
            machine = self.format_address(_coerce_endpoint(source))
        except SDPError as e:
            logger.warning(f"Skipping source-filter: {e}")
            return None
        # "IN IP4 <addr>" -> "IN IP4 * <addr>"
        return f"source-filter: incl {machine[:6]} * {machine[7:]}"

    def _origin_host(self) -> str:
        hostname = self.hostname()[:MAX_HOSTNAME]
        # origin address is a single token
        if not is_sdp_string(hostname) or hostname.split() != [hostname]:
            logger.warning(f"Unusable hostname {hostname!r}, using {FALLBACK_HOSTNAME}")
            return FALLBACK_HOSTNAME
        return hostname.decode("utf-8") if isinstance(hostname, bytes) else hostname

    def build(
        self,
        metadata: Optional[SessionMetadata] = None,
        destination: Optional[EndpointLike] = None,
        source: Optional[EndpointLike] = None,
    ) -> SDPDocument:
        """
        Build a new document holding the session header.

        Args:
            metadata: Session text; missing name and description get
                placeholders, missing url/email/phone lines are omitted
            destination: Address clients receive the stream on
            source: Sender address for source-specific multicast (optional)

        Returns:
            A new SDPDocument

        Raises:
            InvalidText: If any text field or configured attribute holds CR,
                LF or invalid UTF-8
            InvalidAddress: If the destination is missing or malformed
            UnsupportedFamily: If the destination is neither IPv4 nor IPv6
            AllocationFailure: If the header exceeds the size ceiling
        """
        metadata = metadata or SessionMetadata()
        config = self.config

        name = _check_text("session name", metadata.name or config.default_name)
        description = _check_text(
            "session description", metadata.description or config.default_description
        )
        optional = [
            (prefix, _check_text(field, value))
            for prefix, field, value in (
                ("u", "url", metadata.url),
                ("e", "email", metadata.email),
                ("p", "phone", metadata.phone),
            )
            if value
        ]

        if destination is None:
            raise InvalidAddress("No destination address")
        connection = self.format_address(_coerce_endpoint(destination))
        source_filter = self._source_filter(source)

        tool = _check_text("tool", config.tool)
        direction = _check_text("direction", config.direction)
        session_type = _check_text("session type", config.session_type)
        charset = _check_text("charset", config.charset)

        now = self.clock()
        hostname = self._origin_host()

        lines = [
            "v=0",
            f"o=- {now} {now} {connection[:6]} {hostname}",
            f"s={name}",
            f"i={description}",
        ]
        lines.extend(f"{prefix}={value}" for prefix, value in optional)
        lines.extend(
            [
                f"c={connection}",
                # one dummy time span, no repeat/zone/key lines
                "t=0 0",
                f"a=tool:{tool}",
                f"a={direction}",
                f"a=type:{session_type}",
                f"a=charset:{charset}",
            ]
        )
        if source_filter:
            lines.append(f"a={source_filter}")

        sdp = SDPDocument(EOL.join(lines) + EOL, config=config)
        for attr, value in config.extra.items():
            add_attribute(sdp, attr, value)

        logger.debug(f"Started SDP session {name!r} ({len(sdp)} bytes)")
        return sdp


def start_session(
    name: Optional[TextLike] = None,
    description: Optional[TextLike] = None,
    url: Optional[TextLike] = None,
    email: Optional[TextLike] = None,
    phone: Optional[TextLike] = None,
    source: Optional[EndpointLike] = None,
    destination: Optional[EndpointLike] = None,
    *,
    config: Optional[SDPConfig] = None,
    clock: Optional[TimeSource] = None,
    hostname: Optional[HostnameSource] = None,
) -> SDPDocument:
    """Build a session header. See :meth:`SessionBuilder.build`."""
    builder = SessionBuilder(config, clock=clock, hostname=hostname)
    metadata = SessionMetadata(
        name=name, description=description, url=url, email=email, phone=phone
    )
    return builder.build(metadata, destination=destination, source=source)


# =============================================================================
# Appenders
# =============================================================================


def add_attribute(
    sdp: SDPDocument, name: TextLike, value: object = None, *args: object
) -> SDPDocument:
    """
    Append an ``a=`` line.

    ``value`` may be a %-format string, rendered with ``args``. Without a
    value a flag attribute (``a=<name>``) is written.

    Raises:
        InvalidText: If the name or rendered value holds CR, LF or
            invalid UTF-8
        AllocationFailure: If the document cannot grow; it is left unchanged
    """
    name = _check_text("attribute name", name)
    if value is None:
        line = f"a={name}{EOL}"
    else:
        if isinstance(value, bytes):
            value = _check_text(f"{name} attribute", value)
        if args:
            value = value % args
        value = _check_text(f"{name} attribute", str(value))
        line = f"a={name}:{value}{EOL}"

    sdp._append(line)
    return sdp


def add_media(
    sdp: SDPDocument,
    media_type: Optional[TextLike] = None,
    protocol: Optional[TextLike] = None,
    port: int = 0,
    payload_type: int = 0,
    bandwidth_independent: bool = False,
    bandwidth: int = 0,
    rtpmap: Optional[TextLike] = None,
    fmtp: Optional[TextLike] = None,
) -> SDPDocument:
    """
    Append an ``m=`` block.

    The media and bandwidth lines are committed first; ``rtpmap`` and
    ``fmtp`` attributes follow. If one of those fails the media line stays
    in the document.

    Args:
        sdp: Document to grow
        media_type: Media type (defaults to "video")
        protocol: Transport protocol (defaults to "RTP/AVP")
        port: Destination port
        payload_type: RTP payload type, 0-127
        bandwidth_independent: Report bandwidth as TIAS instead of AS
        bandwidth: Bandwidth value, omitted when 0
        rtpmap: Encoding description for ``a=rtpmap``
        fmtp: Format parameters for ``a=fmtp``

    Raises:
        AssertionError: If payload_type does not fit in 7 bits
        ValueError: If port is out of range
        InvalidText: If a text argument holds CR, LF or invalid UTF-8
        AllocationFailure: If the document cannot grow
    """
    if not 0 <= payload_type < 128:
        raise AssertionError(f"RTP payload type out of range: {payload_type}")
    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range: {port}")

    config = sdp.config
    media_type = _check_text("media type", media_type or config.default_media_type)
    protocol = _check_text("protocol", protocol or config.default_protocol)

    block = f"m={media_type} {port} {protocol} {payload_type}{EOL}"
    if bandwidth > 0:
        modifier = "TIAS" if bandwidth_independent else "AS"
        block += f"b={modifier}:{bandwidth}{EOL}"
    block += f"b=RR:0{EOL}"
    sdp._append(block)
    logger.debug(f"Added {media_type} media on port {port} (pt {payload_type})")

    if rtpmap is not None:
        add_attribute(sdp, "rtpmap", "%u %s", payload_type, _check_text("rtpmap", rtpmap))
    if fmtp is not None:
        add_attribute(sdp, "fmtp", "%u %s", payload_type, _check_text("fmtp", fmtp))

    return sdp


def add_media_descriptor(sdp: SDPDocument, media: MediaDescriptor) -> SDPDocument:
    return add_media(
        sdp,
        media.media_type,
        media.protocol,
        media.port,
        media.payload_type,
        media.bandwidth_independent,
        media.bandwidth,
        media.rtpmap,
        media.fmtp,
    )


__all__ = [
    "SDPDocument",
    "SessionBuilder",
    "start_session",
    "add_attribute",
    "add_media",
    "add_media_descriptor",
    "is_sdp_string",
    "ntp_time64",
    "local_hostname",
]
