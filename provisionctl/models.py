"""Data models for persisted clusters."""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class ClusterStatus(str, Enum):
    """Lifecycle states recorded in a cluster descriptor."""
    INIT = 'Init'
    PRE_CREATING = 'Pre-Creating'
    CREATING = 'Creating'
    POST_CHECK = 'Post-Checking'
    RUNNING = 'Running'
    UPDATING = 'Updating'
    ERROR = 'Error'


class ClusterDescriptor(BaseModel):
    """Persisted representation of a cluster.

    Credential fields hold base64 text; they are only decoded when the store
    writes them to their own files. Keys not declared here are driver
    specific configuration and are carried through untouched.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = ""
    driver_name: str = Field("", alias="driverName")
    status: str = ""
    endpoint: str = ""
    version: str = ""
    username: str = ""
    password: str = ""
    root_ca_cert: str = Field("", alias="rootCACert")
    client_certificate: str = Field("", alias="clientCertificate")
    client_key: str = Field("", alias="clientKey")
    service_account_token: str = Field("", alias="serviceAccountToken")
    node_count: int = Field(0, alias="nodeCount")
    metadata: Dict[str, str] = Field(default_factory=dict)

    @property
    def is_running(self) -> bool:
        return self.status == ClusterStatus.RUNNING.value

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
