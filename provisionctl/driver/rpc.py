"""HTTP client for driver plugins running in their own process."""
import logging

import requests
from jsonschema import ValidationError, validate

from ..errors import DriverError, SchemaFetchFailed
from .base import Driver
from .types import DRIVER_FLAGS_SCHEMA, ClusterInfo, CreateRequest, DriverFlags, DriverOptions

logger = logging.getLogger(__name__)


class RPCDriver(Driver):
    """Talks to a plugin started with ``--listen-addr <addr>``.

    Requests carry no timeout: a plugin that hangs hangs the CLI.
    """

    def __init__(self, addr: str, name: str = ""):
        self.addr = addr
        self.name = name
        self.base_url = addr if addr.startswith(("http://", "https://")) else f"http://{addr}"
        self.session = requests.Session()

    def __repr__(self) -> str:
        return f"RPCDriver({self.addr!r})"

    def healthy(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/healthz", timeout=1)
        except requests.RequestException:
            return False
        return response.ok

    def get_driver_create_options(self) -> DriverFlags:
        logger.debug(f"Fetching create options from {self.base_url}")
        try:
            response = self.session.get(f"{self.base_url}/options")
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise SchemaFetchFailed(f"failed to fetch driver options from {self.addr}: {e}") from e

        try:
            validate(instance=payload, schema=DRIVER_FLAGS_SCHEMA)
        except ValidationError as ve:
            raise SchemaFetchFailed(f"driver at {self.addr} returned a malformed schema: {ve.message}") from ve
        return DriverFlags.model_validate(payload)

    def create(self, options: DriverOptions, info: ClusterInfo) -> ClusterInfo:
        request = CreateRequest(options=options, info=info)
        try:
            response = self.session.post(
                f"{self.base_url}/create",
                json=request.model_dump(mode="json", by_alias=True),
            )
        except requests.RequestException as e:
            raise DriverError(f"driver at {self.addr} is unreachable: {e}") from e

        if not response.ok:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise DriverError(f"driver at {self.addr} failed to create cluster: {detail}")

        try:
            return ClusterInfo.model_validate(response.json())
        except ValueError as e:
            raise DriverError(f"driver at {self.addr} returned an invalid cluster info: {e}") from e
