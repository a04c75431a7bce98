"""Command-line demo printing a generated session description.

Builds a broadcast announcement for one media stream and prints it, either
highlighted inside a panel or as raw CRLF text suitable for piping into an
RTSP or SAP sender.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from rich.panel import Panel
from rich.syntax import Syntax

from . import (
	SDPConfig,
	SDPError,
	SessionBuilder,
	SessionMetadata,
	add_media,
)
from ._utils import console, logger


def _build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(description="Generate an SDP announcement")
	parser.add_argument("destination", help="Destination address (unicast or multicast)")
	parser.add_argument("port", nargs="?", type=int, default=5004, help="Destination port")
	parser.add_argument("--source", help="Sender address for a source-filter attribute")
	parser.add_argument("--name", help="Session name")
	parser.add_argument("--description", help="Session information")
	parser.add_argument("--url", help="URI with more information")
	parser.add_argument("--email", help="Contact email")
	parser.add_argument("--phone", help="Contact phone number")
	parser.add_argument("--media", default="video", help="Media type (default: video)")
	parser.add_argument("--protocol", default="RTP/AVP", help="Transport protocol")
	parser.add_argument("--payload-type", type=int, default=96, help="RTP payload type")
	parser.add_argument("--rtpmap", help="Encoding name and clock rate, e.g. H264/90000")
	parser.add_argument("--fmtp", help="Format parameters")
	parser.add_argument("--bandwidth", type=int, default=0, help="Bandwidth in kbit/s")
	parser.add_argument(
		"--tias",
		action="store_true",
		help="Report bandwidth as transport independent (bit/s)",
	)
	parser.add_argument("--raw", action="store_true", help="Print raw SDP text")
	parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
	return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
	args = _build_parser().parse_args(argv)
	if args.verbose:
		logger.setLevel(logging.DEBUG)

	if not 0 <= args.payload_type < 128:
		logger.error(f"Payload type must be between 0 and 127, got {args.payload_type}")
		return 1

	config = SDPConfig()
	builder = SessionBuilder(config)
	metadata = SessionMetadata(
		name=args.name,
		description=args.description,
		url=args.url,
		email=args.email,
		phone=args.phone,
	)
	try:
		sdp = builder.build(metadata, destination=args.destination, source=args.source)
		add_media(
			sdp,
			args.media,
			args.protocol,
			args.port,
			args.payload_type,
			args.tias,
			args.bandwidth,
			args.rtpmap,
			args.fmtp,
		)
	except (SDPError, ValueError) as e:
		logger.error(f"Cannot build SDP: {e}")
		return 1

	if args.raw:
		sys.stdout.write(sdp.to_string())
		return 0

	console.print(
		Panel.fit(
			Syntax(sdp.to_string().replace("\r\n", "\n"), "ini", word_wrap=True),
			title=args.name or config.default_name,
			subtitle=f"{len(sdp)} bytes, {sdp.content_type}",
			border_style="cyan",
		)
	)
	return 0


if __name__ == "__main__":
	raise SystemExit(main())
