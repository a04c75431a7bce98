"""Utilities and constants for SDP generation."""

import logging
from rich.console import Console
from rich.logging import RichHandler

# Rich Console for pretty printing
console = Console()

# Configure logging with RichHandler
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
)

# Get logger for the package
logger = logging.getLogger("sdpx")

EOL = "\r\n"
PACKAGE_STRING = "sdpx 0.1.0"

# "IN IP6 " + longest IPv6 literal + terminator
MAX_SDP_ADDRESS = 47
MAX_HOSTNAME = 255
FALLBACK_HOSTNAME = "localhost"

# Seconds between 1900-01-01 (NTP epoch) and 1970-01-01
NTP_EPOCH_OFFSET = 2208988800

# Size of the legacy struct sockaddr family field
SA_FAMILY_SIZE = 2
