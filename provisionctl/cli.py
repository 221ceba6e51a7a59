import logging
import sys
import traceback
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import click
import typer

from provisionctl.commands import create
from provisionctl.driver.bootstrap import DriverOption
from provisionctl.logging import setup_logging
from provisionctl.prescan import lookup_debug

PROG_NAME = "provisionctl"

app = typer.Typer(help="provisionctl - provision kubernetes clusters through pluggable drivers.")

# Phase one of `create`: no parsing until the driver's options are known.
app.command(
    "create",
    context_settings=create.PASSTHROUGH_SETTINGS,
    add_help_option=False,
)(create.create_wrapper)


# Global options callback
@app.callback()
def main_callback(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    plugin_listen_addr: Optional[str] = typer.Option(
        None, "--plugin-listen-addr", hidden=True, help="Address of an already running driver plugin"
    ),
):
    """provisionctl - provision kubernetes clusters through pluggable drivers."""
    setup_logging(debug)
    if debug:
        logging.debug("Debug mode enabled")


@dataclass(frozen=True)
class Invocation:
    """The command line being dispatched, passed to commands as ``ctx.obj``."""
    argv: Tuple[str, ...]

    def replay(self, argv: Sequence[str], driver_flags: List[DriverOption]):
        return dispatch(argv, driver_flags, standalone_mode=False)


def get_cli(driver_flags: Optional[List[DriverOption]] = None) -> click.Group:
    """Command tree for one dispatch.

    Without ``driver_flags`` ``create`` is the pass-through first phase; with
    them it is the structured command carrying the static and driver flags.
    """
    group = typer.main.get_command(app)
    if driver_flags is not None:
        group.add_command(create.get_create_command(driver_flags), "create")
    return group


def dispatch(
    argv: Sequence[str],
    driver_flags: Optional[List[DriverOption]] = None,
    standalone_mode: bool = True,
):
    argv = tuple(argv)
    return get_cli(driver_flags).main(
        args=list(argv),
        prog_name=PROG_NAME,
        obj=Invocation(argv),
        standalone_mode=standalone_mode,
    )


def main(argv: Optional[Sequence[str]] = None):
    argv = tuple(sys.argv[1:] if argv is None else argv)
    debug_mode = lookup_debug(argv)
    try:
        dispatch(argv)
    except Exception as e:
        if debug_mode:
            logging.error(f"Unhandled exception: {e}\n{traceback.format_exc()}")
        else:
            logging.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
