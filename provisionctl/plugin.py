"""Serve a driver over HTTP so the CLI can use it as a plugin.

A plugin executable named ``provisionctl-driver-<name>`` only needs::

    from provisionctl.plugin import serve

    if __name__ == "__main__":
        serve(MyDriver())

The CLI starts it with ``--listen-addr host:port`` and talks to it through
:class:`provisionctl.driver.rpc.RPCDriver`.
"""
import logging

import typer
import uvicorn
from fastapi import APIRouter, FastAPI, HTTPException

from .driver.base import Driver
from .driver.types import ClusterInfo, CreateRequest, DriverFlags
from .errors import ProvisionError

logger = logging.getLogger(__name__)


def build_app(driver: Driver) -> FastAPI:
    router = APIRouter()

    @router.get("/healthz")
    def healthz():
        return {"status": "ok", "driver": driver.name}

    @router.get("/options", response_model=DriverFlags)
    def options():
        return driver.get_driver_create_options()

    @router.post("/create", response_model=ClusterInfo, response_model_by_alias=True)
    def create(req: CreateRequest):
        try:
            return driver.create(req.options, req.info)
        except ProvisionError as e:
            logger.error(f"Driver {driver.name} failed to create cluster: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    app = FastAPI(title=f"provisionctl driver {driver.name}".strip())
    app.include_router(router)
    return app


def split_addr(addr: str):
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise typer.BadParameter(f"expected host:port, got {addr!r}")
    return host or "127.0.0.1", int(port)


def serve(driver: Driver) -> None:
    """Parse ``--listen-addr`` from the command line and serve ``driver``."""

    def main(
        listen_addr: str = typer.Option("127.0.0.1:0", "--listen-addr", help="Address to listen on"),
        debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    ):
        host, port = split_addr(listen_addr)
        logging.basicConfig(level=logging.DEBUG if debug else logging.INFO)
        logger.info(f"🔌 Serving driver {driver.name} on {host}:{port}")
        uvicorn.run(build_app(driver), host=host, port=port, log_level="debug" if debug else "warning")

    typer.run(main)
