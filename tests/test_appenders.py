"""Tests for attribute and media appenders."""

import pytest

from sdpx import (
    AllocationFailure,
    InvalidText,
    MediaDescriptor,
    SDPDocument,
    add_attribute,
    add_media,
    add_media_descriptor,
    start_session,
)
from tests.conftest import fixed_clock, fixed_hostname


def tail(sdp: SDPDocument, start: int) -> str:
    return sdp.to_bytes()[start:].decode("utf-8")


class TestAddAttribute:
    def test_flag_attribute(self, session):
        before = len(session)
        add_attribute(session, "tool")
        assert tail(session, before) == "a=tool\r\n"

    def test_value_attribute(self, session):
        before = len(session)
        add_attribute(session, "control", "*")
        assert tail(session, before) == "a=control:*\r\n"

    def test_format_arguments(self, session):
        before = len(session)
        add_attribute(session, "rtpmap", "%u %s", 96, "H264/90000")
        assert tail(session, before) == "a=rtpmap:96 H264/90000\r\n"

    def test_bytes_format_value(self, session):
        before = len(session)
        add_attribute(session, "rtpmap", b"%u %s", 0, "PCMU/8000")
        assert tail(session, before) == "a=rtpmap:0 PCMU/8000\r\n"

    def test_invalid_bytes_format_value(self, session):
        with pytest.raises(InvalidText):
            add_attribute(session, "rtpmap", b"\xff%u", 0)

    def test_non_string_value(self, session):
        before = len(session)
        add_attribute(session, "ptime", 20)
        assert tail(session, before) == "a=ptime:20\r\n"

    def test_method_form(self, session):
        assert session.add_attribute("sendonly") is session
        assert session.lines()[-1] == "a=sendonly"

    def test_pure_append(self, session):
        before = session.to_bytes()
        add_attribute(session, "x-one", "1")
        add_attribute(session, "x-two")
        assert session.to_bytes().startswith(before)
        assert session.lines()[-2:] == ["a=x-one:1", "a=x-two"]

    @pytest.mark.parametrize(
        "name,value",
        [("bad\r\nname", None), ("ok", "v\r\na=injected"), ("ok", "v\n"), ("ok", b"\xff")],
    )
    def test_line_breaks_rejected(self, session, name, value):
        before = session.to_bytes()
        with pytest.raises(InvalidText):
            add_attribute(session, name, value)
        assert session.to_bytes() == before

    def test_growth_failure_leaves_document(self, session):
        before = session.to_bytes()
        session.config.max_size = len(session) + 4
        with pytest.raises(AllocationFailure):
            add_attribute(session, "x")
        assert session.to_bytes() == before

    def test_exact_fit(self, session):
        session.config.max_size = len(session) + len("a=x\r\n")
        add_attribute(session, "x")
        assert session.lines()[-1] == "a=x"


class TestAddMedia:
    def test_end_to_end_audio(self):
        sdp = start_session(
            name="Test",
            destination="192.0.2.1",
            clock=fixed_clock,
            hostname=fixed_hostname,
        )
        before = len(sdp)
        add_media(sdp, "audio", "RTP/AVP", 5004, 0, rtpmap="PCMU/8000")
        assert tail(sdp, before) == (
            "m=audio 5004 RTP/AVP 0\r\n" "b=RR:0\r\n" "a=rtpmap:0 PCMU/8000\r\n"
        )
        assert "s=Test" in sdp.lines()

    def test_defaults(self, session):
        before = len(session)
        add_media(session, port=1234, payload_type=33)
        assert tail(session, before) == "m=video 1234 RTP/AVP 33\r\nb=RR:0\r\n"

    def test_fmtp(self, session):
        before = len(session)
        add_media(
            session,
            "video",
            "RTP/AVP",
            5006,
            96,
            rtpmap="H264/90000",
            fmtp="packetization-mode=1;profile-level-id=42e01f",
        )
        assert tail(session, before) == (
            "m=video 5006 RTP/AVP 96\r\n"
            "b=RR:0\r\n"
            "a=rtpmap:96 H264/90000\r\n"
            "a=fmtp:96 packetization-mode=1;profile-level-id=42e01f\r\n"
        )

    def test_application_bandwidth(self, session):
        before = len(session)
        add_media(session, "video", None, 5004, 96, False, 512)
        assert tail(session, before) == (
            "m=video 5004 RTP/AVP 96\r\nb=AS:512\r\nb=RR:0\r\n"
        )

    def test_transport_independent_bandwidth(self, session):
        before = len(session)
        add_media(session, "audio", "RTP/AVP", 5004, 10, True, 1411200)
        assert tail(session, before) == (
            "m=audio 5004 RTP/AVP 10\r\nb=TIAS:1411200\r\nb=RR:0\r\n"
        )

    def test_descriptor(self, session):
        media = MediaDescriptor(
            media_type="audio", port=6000, payload_type=8, rtpmap="PCMA/8000"
        )
        before = len(session)
        add_media_descriptor(session, media)
        assert tail(session, before) == (
            "m=audio 6000 RTP/AVP 8\r\nb=RR:0\r\na=rtpmap:8 PCMA/8000\r\n"
        )

    def test_several_streams(self, session):
        session.add_media("video", "RTP/AVP", 5004, 96, rtpmap="H264/90000")
        session.add_media("audio", "RTP/AVP", 5006, 97, rtpmap="opus/48000/2")
        media = [line for line in session.lines() if line.startswith("m=")]
        assert media == ["m=video 5004 RTP/AVP 96", "m=audio 5006 RTP/AVP 97"]
        assert session.lines()[-1] == "a=rtpmap:97 opus/48000/2"

    @pytest.mark.parametrize("payload_type", [128, 200, -1])
    def test_payload_type_out_of_range(self, session, payload_type):
        before = session.to_bytes()
        with pytest.raises(AssertionError):
            add_media(session, "audio", "RTP/AVP", 5004, payload_type)
        assert session.to_bytes() == before

    def test_payload_type_limit(self, session):
        add_media(session, "audio", "RTP/AVP", 5004, 127)
        assert "m=audio 5004 RTP/AVP 127" in session.lines()

    def test_port_out_of_range(self, session):
        with pytest.raises(ValueError):
            add_media(session, "audio", "RTP/AVP", 70000, 0)

    def test_media_type_injection(self, session):
        before = session.to_bytes()
        with pytest.raises(InvalidText):
            add_media(session, "audio\r\na=sendrecv", "RTP/AVP", 5004, 0)
        assert session.to_bytes() == before

    def test_partial_success_keeps_media_line(self, session):
        with pytest.raises(InvalidText):
            add_media(session, "audio", "RTP/AVP", 5004, 0, rtpmap="PCMU/8000", fmtp="a\nb")
        assert session.lines()[-3:] == [
            "m=audio 5004 RTP/AVP 0",
            "b=RR:0",
            "a=rtpmap:0 PCMU/8000",
        ]

    def test_partial_success_on_growth_failure(self, session):
        block = "m=audio 5004 RTP/AVP 0\r\nb=RR:0\r\n"
        session.config.max_size = len(session) + len(block)
        with pytest.raises(AllocationFailure):
            add_media(session, "audio", "RTP/AVP", 5004, 0, rtpmap="PCMU/8000")
        assert session.to_string().endswith(block)

    def test_media_growth_failure(self, session):
        before = session.to_bytes()
        session.config.max_size = len(session) + 10
        with pytest.raises(AllocationFailure):
            add_media(session, "audio", "RTP/AVP", 5004, 0)
        assert session.to_bytes() == before


class TestDocument:
    def test_header_too_large(self):
        from sdpx import SDPConfig

        with pytest.raises(AllocationFailure):
            start_session(
                destination="192.0.2.1",
                config=SDPConfig(max_size=32),
                clock=fixed_clock,
                hostname=fixed_hostname,
            )

    def test_unbounded(self, session):
        session.config.max_size = None
        for index in range(1000):
            add_attribute(session, "x-index", index)
        assert len(session.lines()) > 1000

    def test_reserve(self, session):
        session.config.max_size = len(session) + 3
        session.reserve(3)
        with pytest.raises(AllocationFailure):
            session.reserve(4)

    def test_serialization(self, session):
        assert session.content_type == "application/sdp"
        assert str(session) == session.to_string()
        assert session.to_bytes() == session.to_string().encode("utf-8")
        assert repr(session) == f"<SDPDocument {len(session)} bytes>"

