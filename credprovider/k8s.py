import logging
import os
from pathlib import Path

import urllib3
from dotenv import dotenv_values
from kubernetes import client as k8s_client
from kubernetes.client.rest import ApiException

from . import docker
from . import exceptions
from .secrets import SecretRecord

log = logging.getLogger(__name__)

DEFAULT_HOST = "localhost:6443"
APISERVER_ENV_FILE = "apiserver-url.env"


def api_server_host(root_dir):
    """Return the API server host:port from <root_dir>/apiserver-url.env.

    Falls back to localhost:6443 when root_dir is not absolute or the env
    file does not exist.
    """
    root = Path(root_dir)
    if not root.is_absolute():
        log.warning(f"Provided API server config dir {root_dir!r} is not absolute")
        return DEFAULT_HOST

    env_file = root / APISERVER_ENV_FILE
    if not env_file.exists():
        log.info(f"Unable to find env file {env_file}, using {DEFAULT_HOST}")
        return DEFAULT_HOST

    # Variables already in the environment win over the file
    env = {**dotenv_values(env_file), **os.environ}
    host = ":".join(
        env.get(k) or "" for k in ("KUBERNETES_SERVICE_HOST", "KUBERNETES_SERVICE_PORT")
    )
    log.info(f"Using API server host: {host}")
    return host


def client_factory(host):
    """Return a callable turning a bearer token into a CoreV1Api client."""

    def _client(token):
        cfg = k8s_client.Configuration()
        cfg.host = f"https://{host}"
        cfg.api_key = {"authorization": token}
        cfg.api_key_prefix = {"authorization": "Bearer"}
        # The node local API server endpoint isn't covered by its certificate
        cfg.verify_ssl = False
        return k8s_client.CoreV1Api(k8s_client.ApiClient(cfg))

    return _client


def retrieve_secrets(factory, token, namespace, timeout=60):
    """List the docker config secrets in namespace as SecretRecords."""
    try:
        api = factory(token)
    except Exception as e:
        raise exceptions.SecretRetrievalError(
            f"unable to connect to Kubernetes API: {e}"
        ) from e

    try:
        secrets = api.list_namespaced_secret(
            namespace,
            field_selector=f"type={docker.SECRET_TYPE}",
            _request_timeout=timeout,
        )
    except (ApiException, urllib3.exceptions.HTTPError) as e:
        raise exceptions.SecretRetrievalError(
            f"unable to retrieve secrets: {e}"
        ) from e
    return [SecretRecord.from_kubernetes(s) for s in secrets.items]
