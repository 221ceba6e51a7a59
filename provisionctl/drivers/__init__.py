"""Drivers that run inside the CLI process."""
from typing import Callable, Dict

from ..driver.base import Driver
from .import_driver import ImportDriver

BUILTIN_DRIVERS: Dict[str, Callable[[], Driver]] = {
    ImportDriver.name: ImportDriver,
}

__all__ = ['BUILTIN_DRIVERS', 'ImportDriver']
