"""Wire types exchanged between the CLI and drivers."""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

# Option types a driver may declare; anything else is ignored by the CLI.
FLAG_TYPES = ("int", "string", "stringSlice", "bool")

# JSON schema for the payload returned by GET /options
DRIVER_FLAGS_SCHEMA = {
    "type": "object",
    "properties": {
        "options": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "type": {"type": "string"},
                    "usage": {"type": "string"},
                    "value": {"type": "string"},
                },
                "required": ["type"],
            },
        },
    },
    "required": ["options"],
}


class DriverFlag(BaseModel):
    """A single option a driver accepts at create time."""
    type: str
    usage: str = ""
    value: str = ""


class DriverFlags(BaseModel):
    """The create-time option schema declared by a driver."""
    options: Dict[str, DriverFlag] = Field(default_factory=dict)


class DriverOptions(BaseModel):
    """Generic option values handed to a driver."""
    bool_options: Dict[str, bool] = Field(default_factory=dict)
    string_options: Dict[str, str] = Field(default_factory=dict)
    int_options: Dict[str, int] = Field(default_factory=dict)
    string_slice_options: Dict[str, List[str]] = Field(default_factory=dict)


class ClusterInfo(BaseModel):
    """Connection details a driver reports for a cluster it created."""
    model_config = ConfigDict(populate_by_name=True)

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


class CreateRequest(BaseModel):
    options: DriverOptions
    info: ClusterInfo = Field(default_factory=ClusterInfo)
