"""Driver-agnostic cluster lifecycle."""
import logging
from typing import Optional, Protocol

from .driver.base import Driver
from .driver.bootstrap import driver_handle
from .driver.types import ClusterInfo, DriverOptions
from .models import ClusterDescriptor, ClusterStatus
from .store import ClusterStore

logger = logging.getLogger(__name__)

INFO_FIELDS = tuple(ClusterInfo.model_fields)


class ConfigGetter(Protocol):
    def get_config(self) -> DriverOptions:
        ...


class Cluster:
    """A cluster bound to its driver, its option source and the store."""

    def __init__(
        self,
        descriptor: ClusterDescriptor,
        config_getter: ConfigGetter,
        store: ClusterStore,
        addr: str = "",
        driver: Optional[Driver] = None,
    ):
        self.descriptor = descriptor
        self.config_getter = config_getter
        self.store = store
        self.addr = addr
        self._driver = driver

    @property
    def driver(self) -> Driver:
        # Resolved on first use: a cluster that is already running never needs it.
        if self._driver is None:
            self._driver = driver_handle(self.driver_name, self.addr)
        return self._driver

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def driver_name(self) -> str:
        return self.descriptor.driver_name

    def create(self) -> ClusterDescriptor:
        """Provision the cluster unless it is already running.

        Each step is recorded with ``persist_status`` so an interrupted run
        leaves a descriptor that the next ``create`` picks up again.
        """
        if self.store.check(self.name):
            logger.info(f"✅ Cluster {self.name} is already running")
            return self.descriptor

        self._set_status(ClusterStatus.PRE_CREATING)
        try:
            options = self.config_getter.get_config()
            self._set_status(ClusterStatus.CREATING)
            logger.info(f"🚀 Creating cluster {self.name} with driver {self.driver_name}")
            info = self.driver.create(options, self.info())
            self.update(info)
            self._set_status(ClusterStatus.POST_CHECK)
            self.descriptor = self.descriptor.model_copy(update={"status": ClusterStatus.RUNNING.value})
            self.store.store(self.descriptor)
        except Exception as e:
            logger.error(f"❌ Failed to create cluster {self.name}: {e}")
            self._set_status(ClusterStatus.ERROR)
            raise

        logger.info(f"✅ Cluster {self.name} is running at {self.descriptor.endpoint}")
        return self.descriptor

    def info(self) -> ClusterInfo:
        """What the driver already knows about this cluster, from the descriptor."""
        return ClusterInfo(**{field: getattr(self.descriptor, field) for field in INFO_FIELDS})

    def update(self, info: ClusterInfo) -> None:
        self.descriptor = self.descriptor.model_copy(
            update={field: getattr(info, field) for field in INFO_FIELDS}
        )

    def _set_status(self, status: ClusterStatus) -> None:
        self.descriptor = self.store.persist_status(self.descriptor, status)


def new_cluster(
    driver_name: str,
    addr: str,
    name: str,
    config_getter: ConfigGetter,
    store: ClusterStore,
    driver: Optional[Driver] = None,
) -> Cluster:
    """Cluster object for a cluster that has not been persisted yet."""
    descriptor = ClusterDescriptor(
        name=name,
        driver_name=driver_name,
        status=ClusterStatus.INIT.value,
    )
    return Cluster(descriptor, config_getter, store, addr=addr, driver=driver)


def from_descriptor(
    descriptor: ClusterDescriptor,
    addr: str,
    config_getter: ConfigGetter,
    store: ClusterStore,
    driver: Optional[Driver] = None,
) -> Cluster:
    """Cluster object for a descriptor loaded from the store."""
    return Cluster(descriptor.model_copy(), config_getter, store, addr=addr, driver=driver)
