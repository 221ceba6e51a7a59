"""Turn a driver name into a live driver handle and its CLI flags.

Built-in drivers run in-process. Anything else is looked up as an executable
called ``provisionctl-driver-<name>`` (first in ``PROVISIONCTL_PLUGIN_DIR``,
then on ``PATH``), started with ``--listen-addr`` and reached over HTTP.
"""
import logging
import os
import shutil
import socket
import subprocess
import time
from typing import List, Optional, Tuple

import click

from ..config import Config
from ..errors import DriverNotFound, DriverResolutionError
from .base import Driver
from .rpc import RPCDriver
from .types import DriverFlag, DriverFlags

logger = logging.getLogger(__name__)

# Options of the create command itself; a driver cannot redefine them.
RESERVED_OPTIONS = frozenset({"driver", "debug", "help"})


class DriverOption(click.Option):
    """A click option generated from a driver's declared schema.

    ``driver_key`` keeps the option name exactly as the driver spelled it;
    click normalises parameter names, so it cannot be recovered from
    ``self.name``.
    """

    def __init__(self, driver_key: str, driver_type: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.driver_key = driver_key
        self.driver_type = driver_type


class PluginProcess:
    """A spawned driver plugin listening on ``addr``."""

    def __init__(self, name: str, path: str, addr: str, process: subprocess.Popen):
        self.name = name
        self.path = path
        self.addr = addr
        self.process = process

    def stop(self) -> None:
        if self.process.poll() is not None:
            return
        logger.debug(f"Stopping driver plugin {self.name} (pid {self.process.pid})")
        self.process.terminate()
        try:
            self.process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()


def find_plugin(name: str) -> Optional[str]:
    """Return the path of the plugin executable for ``name``, if any."""
    executable = f"{Config.PLUGIN_PREFIX}{name}"
    if Config.PLUGIN_DIR:
        candidate = os.path.join(Config.PLUGIN_DIR, executable)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return shutil.which(executable)


def free_addr(host: str = None) -> str:
    host = host or Config.PLUGIN_HOST
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        port = sock.getsockname()[1]
    return f"{host}:{port}"


def start_plugin(name: str, path: str) -> Tuple[RPCDriver, PluginProcess]:
    """Spawn a plugin and wait until it answers on its address."""
    addr = free_addr()
    logger.debug(f"Starting driver plugin {path} on {addr}")
    try:
        process = subprocess.Popen([path, "--listen-addr", addr])
    except OSError as e:
        raise DriverResolutionError(f"failed to start driver plugin {path}: {e}") from e

    plugin = PluginProcess(name, path, addr, process)
    driver = RPCDriver(addr, name=name)
    deadline = time.monotonic() + Config.PLUGIN_START_TIMEOUT
    while time.monotonic() < deadline:
        if process.poll() is not None:
            raise DriverResolutionError(
                f"driver plugin {path} exited with code {process.returncode} before listening"
            )
        if driver.healthy():
            logger.debug(f"Driver plugin {name} is listening on {addr}")
            return driver, plugin
        time.sleep(Config.PLUGIN_POLL_INTERVAL)

    plugin.stop()
    raise DriverResolutionError(
        f"driver plugin {path} did not start listening on {addr} within {Config.PLUGIN_START_TIMEOUT}s"
    )


def run_driver(name: str) -> Tuple[Driver, str, Optional[PluginProcess]]:
    """Resolve ``name`` to a driver handle.

    Returns the handle, the address of a newly spawned plugin ("" for
    built-in drivers) and the plugin process so the caller can stop it.
    """
    from ..drivers import BUILTIN_DRIVERS

    if not name:
        raise DriverNotFound(name)
    if name in BUILTIN_DRIVERS:
        logger.debug(f"Using built-in driver {name}")
        return BUILTIN_DRIVERS[name](), "", None

    path = find_plugin(name)
    if path is None:
        raise DriverNotFound(name)
    driver, plugin = start_plugin(name, path)
    return driver, plugin.addr, plugin


def driver_handle(name: str, addr: str = "") -> Driver:
    """Handle for a driver that is already reachable (or built in)."""
    from ..drivers import BUILTIN_DRIVERS

    if addr:
        return RPCDriver(addr, name=name)
    if name in BUILTIN_DRIVERS:
        return BUILTIN_DRIVERS[name]()
    raise DriverNotFound(name)


def _param_name(key: str) -> str:
    return "driver_opt_" + "".join(c if c.isalnum() else "_" for c in key)


def driver_flag(key: str, flag: DriverFlag) -> Optional[DriverOption]:
    """Build the click option for one schema entry, or None for unknown types."""
    decls = [f"--{key}", _param_name(key)]
    if flag.type == "int":
        try:
            default = int(flag.value)
        except ValueError:
            default = 0
        return DriverOption(key, flag.type, decls, type=int, default=default, show_default=True, help=flag.usage)
    if flag.type == "string":
        return DriverOption(key, flag.type, decls, type=str, default=flag.value, help=flag.usage)
    if flag.type == "stringSlice":
        return DriverOption(key, flag.type, decls, type=str, multiple=True, help=flag.usage)
    if flag.type == "bool":
        return DriverOption(key, flag.type, decls, is_flag=True, default=False, help=flag.usage)
    logger.debug(f"Ignoring driver option {key} with unsupported type {flag.type!r}")
    return None


def driver_flags(schema: DriverFlags) -> List[DriverOption]:
    """Convert a driver's schema into click options, one per supported entry."""
    flags = []
    for key in sorted(schema.options):
        if key in RESERVED_OPTIONS:
            logger.debug(f"Ignoring driver option {key}, it clashes with a create option")
            continue
        option = driver_flag(key, schema.options[key])
        if option is not None:
            flags.append(option)
    return flags
