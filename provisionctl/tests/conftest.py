import base64
import os
import stat
import sys
import textwrap

import pytest

import provisionctl
from provisionctl.config import Config
from provisionctl.driver.base import Driver
from provisionctl.driver.types import ClusterInfo, DriverFlag, DriverFlags
from provisionctl.drivers import BUILTIN_DRIVERS


def b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


class FakeDriver(Driver):
    name = "fake"

    def __init__(self):
        self.calls = []

    def get_driver_create_options(self):
        return DriverFlags(options={
            "node-count": DriverFlag(type="int", usage="Number of nodes", value="1"),
            "zone": DriverFlag(type="string", usage="Zone", value="us-central1-a"),
            "locations": DriverFlag(type="stringSlice", usage="Extra zones"),
            "legacy-abac": DriverFlag(type="bool", usage="Enable legacy ABAC"),
            "labels": DriverFlag(type="map", usage="Not understood by the CLI"),
        })

    def create(self, options, info):
        self.calls.append((options, info))
        return ClusterInfo(
            endpoint="10.0.0.1",
            version="v1.29.0",
            root_ca_cert=b64("CA"),
            client_certificate=b64("CERT"),
            client_key=b64("KEY"),
            node_count=options.int_options.get("node-count", 0),
        )


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def fake_driver(monkeypatch):
    driver = FakeDriver()
    monkeypatch.setitem(BUILTIN_DRIVERS, "fake", lambda: driver)
    return driver


def write_plugin(directory, name, body):
    path = directory / f"{Config.PLUGIN_PREFIX}{name}"
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


@pytest.fixture
def plugin_dir(tmp_path, monkeypatch):
    """Directory searched for plugins, with this checkout importable by them."""
    directory = tmp_path / "plugins"
    directory.mkdir()
    monkeypatch.setattr(Config, "PLUGIN_DIR", str(directory))
    monkeypatch.setattr(Config, "PLUGIN_START_TIMEOUT", 30.0)
    project_root = os.path.dirname(os.path.dirname(provisionctl.__file__))
    monkeypatch.setenv("PYTHONPATH", os.pathsep.join(filter(None, [project_root, os.environ.get("PYTHONPATH")])))
    return directory
