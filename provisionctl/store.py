"""File-backed store of cluster descriptors.

Layout::

    <home>/clusters/<name>/config.json   descriptor (credentials still base64)
    <home>/clusters/<name>/ca.pem        decoded rootCACert
    <home>/clusters/<name>/key.pem       decoded clientKey
    <home>/clusters/<name>/cert.pem      decoded clientCertificate
    <home>/clusters/<name>/kubeconfig    written once an endpoint is known

There is no locking; concurrent writers to the same cluster race.
"""
import base64
import binascii
import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .config import Config
from .errors import NotFound, PersistenceError
from .models import ClusterDescriptor, ClusterStatus
from .utils import write_to_file, write_yaml_file

logger = logging.getLogger(__name__)

CA_PEM = "ca.pem"
CLIENT_KEY = "key.pem"
CLIENT_CERT = "cert.pem"
DEFAULT_CONFIG_NAME = "config.json"
KUBECONFIG_NAME = "kubeconfig"


class ClusterStore:
    """Persists cluster descriptors under ``<root>/<name>/``."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root is not None else Config.clusters_dir()

    def cluster_dir(self, name: str) -> Path:
        return self.root / name

    def config_path(self, name: str) -> Path:
        return self.cluster_dir(name) / DEFAULT_CONFIG_NAME

    def _load(self, path: Path) -> ClusterDescriptor:
        try:
            return ClusterDescriptor.model_validate_json(path.read_bytes())
        except OSError as e:
            raise PersistenceError(f"failed to read {path}: {e}") from e
        except ValidationError as e:
            raise PersistenceError(f"failed to decode {path}: {e}") from e

    def check(self, name: str) -> bool:
        """True iff ``name`` has a descriptor whose status is Running."""
        path = self.config_path(name)
        if not path.exists():
            return False
        return self._load(path).is_running

    def get(self, name: str) -> ClusterDescriptor:
        path = self.config_path(name)
        if not path.exists():
            raise NotFound(name)
        return self._load(path)

    def store(self, cluster: ClusterDescriptor) -> None:
        """Write credentials to their own files, then the descriptor.

        Not transactional: a credential that fails to decode leaves the
        files written before it in place and no descriptor.
        """
        self._require_name(cluster)
        file_dir = self.cluster_dir(cluster.name)
        for value, filename in (
            (cluster.root_ca_cert, CA_PEM),
            (cluster.client_key, CLIENT_KEY),
            (cluster.client_certificate, CLIENT_CERT),
        ):
            try:
                data = base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError) as e:
                raise PersistenceError(f"failed to decode {filename} for cluster {cluster.name}: {e}") from e
            self._write(data, file_dir / filename)

        if cluster.endpoint:
            self._write_kubeconfig(cluster, file_dir / KUBECONFIG_NAME)
        self._write(cluster.to_json().encode("utf-8"), file_dir / DEFAULT_CONFIG_NAME)
        logger.debug(f"Stored cluster {cluster.name} in {file_dir}")

    def persist_status(self, cluster: ClusterDescriptor, status: Union[ClusterStatus, str]) -> ClusterDescriptor:
        """Rewrite only the descriptor file with ``status``.

        The caller's descriptor is not modified; the updated copy is returned.
        """
        self._require_name(cluster)
        status = status.value if isinstance(status, ClusterStatus) else status
        updated = cluster.model_copy(update={"status": status})
        self._write(updated.to_json().encode("utf-8"), self.config_path(cluster.name))
        logger.debug(f"Cluster {cluster.name} status -> {status}")
        return updated

    @staticmethod
    def _require_name(cluster: ClusterDescriptor) -> None:
        if not cluster.name:
            raise PersistenceError("cluster name is required before it can be persisted")

    @staticmethod
    def _write(data: bytes, path: Path) -> None:
        try:
            write_to_file(data, os.fspath(path))
        except OSError as e:
            raise PersistenceError(f"failed to write {path}: {e}") from e

    @staticmethod
    def _write_kubeconfig(cluster: ClusterDescriptor, path: Path) -> None:
        server = cluster.endpoint
        if not server.startswith(("http://", "https://")):
            server = f"https://{server}"
        cluster_entry = {"server": server}
        if cluster.root_ca_cert:
            cluster_entry["certificate-authority-data"] = cluster.root_ca_cert
        user = {}
        if cluster.client_certificate:
            user["client-certificate-data"] = cluster.client_certificate
        if cluster.client_key:
            user["client-key-data"] = cluster.client_key
        if cluster.service_account_token:
            user["token"] = cluster.service_account_token
        elif cluster.username:
            user["username"] = cluster.username
            user["password"] = cluster.password

        kubeconfig = {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [{"name": cluster.name, "cluster": cluster_entry}],
            "users": [{"name": cluster.name, "user": user}],
            "contexts": [{"name": cluster.name, "context": {"cluster": cluster.name, "user": cluster.name}}],
            "current-context": cluster.name,
        }
        try:
            write_yaml_file(os.fspath(path), kubeconfig)
        except OSError as e:
            raise PersistenceError(f"failed to write {path}: {e}") from e
