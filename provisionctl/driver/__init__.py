from .base import Driver
from .rpc import RPCDriver
from .types import ClusterInfo, DriverFlag, DriverFlags, DriverOptions

__all__ = ['Driver', 'RPCDriver', 'ClusterInfo', 'DriverFlag', 'DriverFlags', 'DriverOptions']
