import enum
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import auth
from . import claims
from . import exceptions
from . import k8s
from . import mirrors as mirrors_impl
from . import schema
from . import utils

log = logging.getLogger(__name__)

API_VERSION = "credentialprovider.kubelet.k8s.io/v1"


class Outcome(enum.Enum):
    WRITTEN = "written"
    NO_REGISTRIES_CONF = "no-registries-conf"
    NO_MIRRORS = "no-mirrors"
    NO_CREDENTIALS = "no-credentials"


@dataclass
class Result:
    outcome: Outcome
    path: Optional[Path] = None


@dataclass
class CredentialProviderRequest:
    image: str
    service_account_token: str = ""

    @classmethod
    def from_json(cls, data):
        try:
            doc = json.loads(data)
        except ValueError as e:
            raise exceptions.ValidationError(
                f"unable to parse credential provider request: {e}"
            ) from e
        schema.validate("CredentialProviderRequest", doc, source="stdin")
        return cls(
            image=doc["image"],
            service_account_token=doc.get("serviceAccountToken", ""),
        )


def response():
    # The kubelet gets no credentials, CRI-O picks up the auth file
    return dict(
        kind="CredentialProviderResponse",
        apiVersion=API_VERSION,
        cacheKeyType="Registry",
        auth=None,
    )


def write_response(stdout):
    stdout.write(utils.dump(response(), indent=None))
    stdout.write("\n")
    stdout.flush()


def resolve(stdin, config, client_factory):
    """Run one credential provider invocation without writing the response."""
    conf_path = Path(config.registries_conf_path)
    try:
        conf_path.stat()
    except FileNotFoundError:
        log.info(f"Registries conf path {conf_path} does not exist, stopping")
        return Result(Outcome.NO_REGISTRIES_CONF)
    except OSError as e:
        raise exceptions.ConfigurationError(
            f"unable to access registries conf path {conf_path}: {e}"
        ) from e

    log.info("Reading from stdin")
    req = CredentialProviderRequest.from_json(stdin.read())
    # The image is the normalized name without tag or digest, as the kubelet
    # passes it to every credential provider
    log.info(f"Parsed credential provider request for image {req.image!r}")

    try:
        namespace = claims.extract_namespace(req.service_account_token)
    except exceptions.ClaimError as e:
        raise exceptions.ClaimError(
            f"unable to extract namespace: {e}", e.reason
        ) from e
    if not namespace:
        raise exceptions.ValidationError(
            "unable to extract namespace: namespace is empty"
        )

    log.info(f"Matching mirrors for registry config: {conf_path}")
    mirrors = mirrors_impl.match(
        req.image, conf_path, config.registries_conf_dir
    )
    if not mirrors:
        log.info("No mirrors found, will not write any auth file")
        return Result(Outcome.NO_MIRRORS)
    log.info(f"Got mirror(s) for {req.image!r}: {', '.join(mirrors)}")

    log.info(f"Getting secrets from namespace: {namespace}")
    secrets = k8s.retrieve_secrets(
        client_factory, req.service_account_token, namespace, timeout=config.timeout
    )
    log.info(f"Got {len(secrets)} secret(s)")

    try:
        path = auth.create_auth_file(
            secrets,
            config.kubelet_auth_file_path,
            config.auth_dir,
            namespace,
            req.image,
            mirrors,
        )
    except exceptions.NoCredentialsError as e:
        log.info(f"Not writing an auth file: {e}")
        return Result(Outcome.NO_CREDENTIALS)
    log.info(f"Auth file path: {path}")
    return Result(Outcome.WRITTEN, path)


def run(stdin, config, client_factory=None, stdout=None):
    """Main entry point of the credential provider.

    Errors propagate as CredentialProviderError subclasses; the response is
    only written when the invocation succeeded.
    """
    log.info("Running credential provider")
    if client_factory is None:
        host = k8s.api_server_host(config.apiserver_env_dir)
        client_factory = k8s.client_factory(host)
    result = resolve(stdin, config, client_factory)
    write_response(stdout or sys.stdout)
    return result
