import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from . import docker
from . import exceptions

log = logging.getLogger(__name__)


@dataclass
class SecretRecord:
    name: str
    type: str = ""
    data: Dict[str, bytes] = field(default_factory=dict)

    @classmethod
    def from_kubernetes(cls, secret, log=log):
        """Build a record from a kubernetes client V1Secret.

        The API returns secret data as base64 text, values that fail to
        decode are dropped so the harvester reports the key as missing.
        """
        name = secret.metadata.name if secret.metadata else ""
        data = {}
        for key, value in (secret.data or {}).items():
            try:
                data[key] = base64.b64decode(value, validate=True)
            except (binascii.Error, TypeError) as e:
                log.warning(f"Secret {name!r} key {key!r} is not valid base64: {e}")
        return cls(name=name, type=secret.type or "", data=data)


@dataclass
class DockerConfig:
    source: str
    auths: Dict[str, docker.AuthEntry] = field(default_factory=dict)


@dataclass
class HarvestResult:
    configs: List[DockerConfig] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)

    def skip(self, source, reason, log=log):
        log.warning(f"Skipping {source}: {reason}")
        self.skipped.append((source, reason))


def valid_docker_config_secret(secret):
    if secret.type != docker.SECRET_TYPE:
        raise exceptions.ValidationError(
            f"secret is not a docker config JSON secret (type {secret.type!r})"
        )
    payload = secret.data.get(docker.SECRET_KEY)
    if payload is None:
        raise exceptions.ValidationError(
            f"secret does not contain data key {docker.SECRET_KEY!r}"
        )
    return docker.loads_config(payload, source=f"secret {secret.name!r}")


def harvest(secrets, log=log):
    """Decode the registry credentials carried by docker config secrets.

    Invalid secrets and undecodable auth entries are skipped and recorded in
    the result instead of aborting the batch.
    """
    result = HarvestResult()
    for secret in secrets:
        log.info(f"Parsing secret: {secret.name}")
        try:
            cfg = valid_docker_config_secret(secret)
        except exceptions.ValidationError as e:
            result.skip(f"secret {secret.name!r}", str(e), log=log)
            continue

        decoded = DockerConfig(source=secret.name)
        for registry, auth_config in cfg["auths"].items():
            log.info(
                f"Found docker config JSON auth in secret {secret.name!r} for {registry!r}"
            )
            try:
                decoded.auths[registry] = docker.entry_from_config(auth_config)
            except ValueError as e:
                result.skip(
                    f"secret {secret.name!r} registry {registry!r}", str(e), log=log
                )
        result.configs.append(decoded)
    return result
