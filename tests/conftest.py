"""
Pytest configuration and fixtures
"""

import io
import urllib.error
from unittest.mock import Mock

import pytest
import requests
import yaml

from kafepano.display.target import TargetSet
from kafepano.managers.scheduler import Scheduler
from kafepano.store.memory import InMemoryContentStore


class ManualClock:
    """Clock that only moves when a test advances it"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_image_bytes(image_format: str = "PNG", padding: int = 0) -> bytes:
    """Encode a tiny image, optionally padded to reach a given file size"""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color="brown").save(buffer, format=image_format)
    return buffer.getvalue() + b"\0" * padding


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock=clock)


@pytest.fixture
def advance(clock, scheduler):
    """Move time forward in small steps, running due timers after each step"""

    def _advance(seconds: float, step: float = 0.5) -> None:
        elapsed = 0.0
        while elapsed < seconds:
            clock.advance(step)
            elapsed += step
            scheduler.run_pending()

    return _advance


@pytest.fixture
def store():
    return InMemoryContentStore()


@pytest.fixture
def targets():
    return TargetSet()


@pytest.fixture
def png_bytes():
    return make_image_bytes("PNG")


@pytest.fixture
def image_factory():
    return make_image_bytes


@pytest.fixture
def sample_config(tmp_path):
    """Sample configuration for testing"""
    return {
        "store": {"backend": "memory"},
        "auth": {"api_key": "test-api-key"},
        "assets": {"cloud_name": "kafepano-test", "upload_preset": "kafepano_unsigned"},
        "display": {
            "locale": "tr",
            "output": str(tmp_path / "display" / "index.html"),
            "poll_interval": 0.01,
        },
        "logging": {"level": "info"},
    }


@pytest.fixture
def config_file(tmp_path, sample_config):
    """Create a temporary config file"""
    config_path = tmp_path / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture(autouse=True)
def no_network_calls(monkeypatch):
    """Prevent actual HTTP requests during testing"""
    monkeypatch.setattr(
        "urllib.request.urlopen",
        Mock(side_effect=urllib.error.URLError("network disabled in tests")),
    )
    monkeypatch.setattr(
        "requests.post",
        Mock(side_effect=requests.exceptions.ConnectionError("network disabled in tests")),
    )
