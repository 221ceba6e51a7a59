"""Driver interface shared by built-in drivers and the RPC client."""

from abc import ABC, abstractmethod

from .types import ClusterInfo, DriverFlags, DriverOptions


class Driver(ABC):
    """A provisioning backend.

    Built-in drivers implement this directly and run in-process; plugin
    drivers implement it in their own process and are reached through
    :class:`provisionctl.driver.rpc.RPCDriver`.
    """

    name: str = ""

    @abstractmethod
    def get_driver_create_options(self) -> DriverFlags:
        """Return the options this driver accepts when creating a cluster."""

    @abstractmethod
    def create(self, options: DriverOptions, info: ClusterInfo) -> ClusterInfo:
        """Provision (or reconcile) a cluster and return how to reach it."""
