import pytest

from sdpx import Endpoint, SDPConfig, SessionBuilder

NOW = 3_900_000_000 << 32


def fixed_clock() -> int:
    return NOW


def fixed_hostname() -> str:
    return "testhost"


@pytest.fixture
def config():
    return SDPConfig()


@pytest.fixture
def builder(config):
    return SessionBuilder(config, clock=fixed_clock, hostname=fixed_hostname)


@pytest.fixture
def unicast():
    return Endpoint.from_address("192.0.2.1", 5004)


@pytest.fixture
def multicast():
    return Endpoint.from_address("239.255.0.1", 5004)


@pytest.fixture
def session(builder, unicast):
    return builder.build(destination=unicast)


def field(sdp, prefix: str) -> str:
    """Value of the first line of the given type, e.g. ``field(sdp, "o")``."""
    return next(line[2:] for line in sdp.lines() if line.startswith(prefix + "="))
