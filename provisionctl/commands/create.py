"""The ``create`` command.

Parsing happens in two passes. The command first runs as a pass-through
(``create_wrapper``): it finds the driver from the raw command line, asks it
for its options, and dispatches the same command line again with a
structured ``create`` command that knows those options (``create``).
"""
import functools
import logging
from typing import List, Optional

import click
import typer

from provisionctl import cluster
from provisionctl.driver.bootstrap import DriverOption, driver_flags, run_driver
from provisionctl.driver.types import DriverOptions
from provisionctl.errors import ClusterNameRequired, DriverRequired, NotFound
from provisionctl.logging import setup_logging
from provisionctl.prescan import lookup_debug, lookup_flag, trailing_argument
from provisionctl.store import ClusterStore

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)

# Phase one must not reject flags it has not been told about yet, and must
# let --help through to the structured pass.
PASSTHROUGH_SETTINGS = {"ignore_unknown_options": True, "allow_extra_args": True}


class CliConfigGetter:
    """Driver options from the parsed command line, plus the cluster name."""

    def __init__(self, name: str, ctx: click.Context):
        self.name = name
        self.ctx = ctx

    def get_config(self) -> DriverOptions:
        opts = DriverOptions()
        for param in self.ctx.command.params:
            if not isinstance(param, DriverOption):
                continue
            value = self.ctx.params.get(param.name)
            if value is None:
                continue
            if param.driver_type == "int":
                opts.int_options[param.driver_key] = value
            elif param.driver_type == "string":
                opts.string_options[param.driver_key] = value
            elif param.driver_type == "stringSlice":
                opts.string_slice_options[param.driver_key] = list(value)
            elif param.driver_type == "bool":
                opts.bool_options[param.driver_key] = value
        opts.string_options["name"] = self.name
        return opts


def driver_from_store(name: str, store: ClusterStore) -> str:
    if not name:
        return ""
    try:
        return store.get(name).driver_name
    except NotFound:
        return ""


def start_driver(ctx: click.Context, driver_name: str):
    """Resolve ``driver_name``; a spawned plugin is stopped when ``ctx`` closes."""
    driver, addr, plugin = run_driver(driver_name)
    if plugin is not None:
        ctx.call_on_close(plugin.stop)
    return driver, addr


def create_wrapper(ctx: typer.Context):
    """Create a kubernetes cluster."""
    invocation = ctx.obj
    argv = invocation.argv
    if lookup_debug(argv):
        setup_logging(True)

    driver_name = lookup_flag(argv, "--driver")
    if not driver_name:
        driver_name = driver_from_store(trailing_argument(argv), ClusterStore())
    if not driver_name:
        logger.error("Driver name is required")
        help_ctx = help_context(ctx)
        show_help(help_ctx)
        raise DriverRequired(help_ctx)

    driver, addr = start_driver(ctx, driver_name)
    flags = driver_flags(driver.get_driver_create_options())
    logger.debug(f"Driver {driver_name} declares {len(flags)} create option(s)")

    if addr:
        argv = ("--plugin-listen-addr", addr) + tuple(argv)
    return invocation.replay(argv, flags)


@app.command("create")
def create(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, metavar="CLUSTER_NAME", help="Name of the cluster"),
    driver: Optional[str] = typer.Option(None, "--driver", "-d", help="Driver to create kubernetes clusters"),
    debug: bool = typer.Option(False, "--debug", hidden=True, help="Enable debug logging"),
):
    """Create a kubernetes cluster."""
    if debug:
        setup_logging(True)
    store = ClusterStore()
    addr = ctx.find_root().params.get("plugin_listen_addr") or ""
    name = name or ""
    config_getter = CliConfigGetter(name, ctx)

    # A persisted cluster owned by a driver is resumed, whatever --driver says.
    existing = None
    if name:
        try:
            existing = store.get(name)
        except NotFound:
            pass
    if existing is not None and existing.driver_name:
        owner = None
        if driver and driver != existing.driver_name:
            logger.warning(
                f"⚠️  Cluster {name} is owned by driver {existing.driver_name}, ignoring --driver {driver}"
            )
            addr = ""
            if not existing.is_running:
                owner, addr = start_driver(ctx, existing.driver_name)
        logger.info(f"🔁 Resuming cluster {name} (status: {existing.status or 'unknown'})")
        cls = cluster.from_descriptor(existing, addr, config_getter, store, driver=owner)
        return cls.create()

    if not driver:
        logger.error("Driver name is required")
        show_help(ctx)
        raise DriverRequired(ctx)

    cls = cluster.new_cluster(driver, addr, name, config_getter, store)
    if not cls.name:
        logger.error("Cluster name is required")
        show_help(ctx)
        raise ClusterNameRequired(ctx)
    return cls.create()


def get_create_command(flags: List[DriverOption]) -> click.Command:
    """The structured ``create`` command, extended with ``flags``."""
    command = typer.main.get_command(app)
    static = {param.name for param in command.params}
    callback = command.callback

    def invoke(**kwargs):
        # driver values stay in ctx.params for CliConfigGetter
        return callback(**{k: v for k, v in kwargs.items() if k in static})

    command.params.extend(flags)
    command.callback = functools.update_wrapper(invoke, callback)
    return command


def help_context(ctx: click.Context) -> click.Context:
    """Context whose help describes the structured command, for phase-one errors."""
    return click.Context(get_create_command([]), info_name=ctx.info_name, parent=ctx.parent)


def show_help(ctx: click.Context) -> None:
    # rich-enabled typer prints help itself and returns an empty string
    text = ctx.get_help()
    if text:
        click.echo(text)
