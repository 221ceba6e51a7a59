"""Exception hierarchy for provisionctl."""
from typing import Optional

import click


class ProvisionError(Exception):
    """Base class for every error raised by provisionctl."""
    pass


class UserInputError(click.UsageError):
    """Bad or missing user input.

    The command help is printed before raising; click then reports the
    message and exits with status 2 instead of showing a traceback.
    """


class DriverRequired(UserInputError):
    def __init__(self, ctx: Optional[click.Context] = None):
        super().__init__("Driver name is required", ctx=ctx)


class ClusterNameRequired(UserInputError):
    def __init__(self, ctx: Optional[click.Context] = None):
        super().__init__("Cluster name is required", ctx=ctx)


class DriverResolutionError(ProvisionError):
    """A driver could not be located or its plugin process could not be started."""
    pass


class DriverNotFound(DriverResolutionError):
    def __init__(self, name: str):
        super().__init__(f"driver {name!r} not found")
        self.name = name


class SchemaFetchFailed(ProvisionError):
    """The driver did not answer its create-options request with a valid schema."""
    pass


class DriverError(ProvisionError):
    """The driver reported a failure while provisioning."""
    pass


class PersistenceError(ProvisionError):
    """Reading or writing the on-disk cluster state failed."""
    pass


class NotFound(PersistenceError):
    def __init__(self, name: str):
        super().__init__(f"{name} not found")
        self.name = name
