"""Built-in ``import`` driver: registers an existing cluster from a kubeconfig."""
import base64
import logging
import os

import yaml
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from ..driver.base import Driver
from ..driver.types import ClusterInfo, DriverFlag, DriverFlags, DriverOptions
from ..errors import DriverError
from ..utils import read_yaml_file

logger = logging.getLogger(__name__)


def _named(entries, name):
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if isinstance(entry, dict) and entry.get("name") == name:
            return entry
    return None


def _section(entry, key: str) -> dict:
    section = (entry or {}).get(key) or {}
    if not isinstance(section, dict):
        raise DriverError(f"malformed kubeconfig: {key!r} of {entry.get('name')!r} is not a mapping")
    return section


def _file_data(section: dict, key: str) -> str:
    """``<key>-data`` as-is, or the base64 of the file ``<key>`` points at."""
    if section.get(f"{key}-data"):
        return section[f"{key}-data"]
    path = section.get(key)
    if not path:
        return ""
    with open(os.path.expanduser(path), "rb") as f:
        return base64.b64encode(f.read()).decode("ascii")


def parse_kubeconfig(kubeconfig: dict, context_name: str = "") -> ClusterInfo:
    """Extract the endpoint and credentials of one context of a kubeconfig."""
    if not isinstance(kubeconfig, dict):
        raise DriverError("malformed kubeconfig: expected a mapping at the top level")
    context_name = context_name or kubeconfig.get("current-context", "")
    context = _named(kubeconfig.get("contexts"), context_name)
    if context is None:
        raise DriverError(f"context {context_name!r} not found in kubeconfig")
    context = _section(context, "context")

    cluster = _named(kubeconfig.get("clusters"), context.get("cluster"))
    user = _named(kubeconfig.get("users"), context.get("user"))
    if cluster is None:
        raise DriverError(f"cluster for context {context_name!r} not found in kubeconfig")
    cluster = _section(cluster, "cluster")
    user = _section(user, "user")

    return ClusterInfo(
        endpoint=cluster.get("server", ""),
        root_ca_cert=_file_data(cluster, "certificate-authority"),
        client_certificate=_file_data(user, "client-certificate"),
        client_key=_file_data(user, "client-key"),
        service_account_token=user.get("token", ""),
        username=user.get("username", ""),
        password=user.get("password", ""),
        metadata={"context": context_name},
    )


class ImportDriver(Driver):
    name = "import"

    def get_driver_create_options(self) -> DriverFlags:
        return DriverFlags(options={
            "kubeconfig": DriverFlag(
                type="string",
                usage="Path to the kubeconfig of the cluster to import",
                value=os.path.join("~", ".kube", "config"),
            ),
            "context": DriverFlag(
                type="string",
                usage="Kubeconfig context to import (defaults to the current context)",
            ),
            "skip-version-check": DriverFlag(
                type="bool",
                usage="Do not contact the API server to read its version",
            ),
        })

    def create(self, options: DriverOptions, info: ClusterInfo) -> ClusterInfo:
        path = os.path.expanduser(options.string_options.get("kubeconfig", ""))
        context_name = options.string_options.get("context", "")
        if not path:
            raise DriverError("kubeconfig is required")

        logger.info(f"📄 Importing cluster from {path}")
        try:
            result = parse_kubeconfig(read_yaml_file(path), context_name)
        except (OSError, yaml.YAMLError) as e:
            raise DriverError(f"failed to read kubeconfig {path}: {e}") from e

        if not options.bool_options.get("skip-version-check"):
            result.version = self.server_version(path, context_name)
        return result

    def server_version(self, path: str, context_name: str = "") -> str:
        try:
            api_client = config.new_client_from_config(config_file=path, context=context_name or None)
            version = client.VersionApi(api_client).get_code()
        except (ApiException, HTTPError, config.ConfigException) as e:
            raise DriverError(f"failed to reach the API server: {e}") from e
        logger.debug(f"Imported cluster reports version {version.git_version}")
        return version.git_version
