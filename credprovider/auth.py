import logging
import os
import tempfile
from pathlib import Path

from . import docker
from . import exceptions
from . import merge as merge_impl
from . import secrets as secrets_impl
from . import utils

log = logging.getLogger(__name__)

DIR_MODE = 0o700
FILE_MODE = 0o600


def load_global_auth_file(path):
    """Load the node wide auth file. A missing file is an empty config."""
    cfg = docker.parse_config(path)
    if cfg is None:
        log.info(f"Global auth file {path} does not exist, using empty config")
        return {"auths": {}}
    return cfg


def auth_file_path(auth_dir, namespace, image):
    if not namespace:
        raise exceptions.ValidationError("namespace is empty")
    if not image:
        raise exceptions.ValidationError("image is empty")
    auth_dir = Path(auth_dir)
    if not auth_dir.is_absolute():
        raise exceptions.ValidationError(f"auth dir {auth_dir} is not an absolute path")
    return auth_dir / f"{namespace}-{utils.sha256_hex(image)}.json"


def write_auth_file(auth_dir, namespace, image, contents):
    # Write the namespace auth file as <auth_dir>/<namespace>-<sha256(image)>.json
    path = auth_file_path(auth_dir, namespace, image)
    if not contents.get("auths"):
        raise exceptions.NoCredentialsError("no auths found in file contents")

    data = utils.dump(contents, indent="\t", sort_keys=True)
    try:
        path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(data)
            os.chmod(tmp, FILE_MODE)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise exceptions.CredentialProviderError(f"write auth file {path}: {e}") from e
    return path


def create_auth_file(secrets, global_auth_path, auth_dir, namespace, image, mirrors):
    """Build and persist the auth file CRI-O reads for this namespace and image.

    Returns the path written. Raises NoCredentialsError when neither the
    global file nor any qualifying secret provides an entry.
    """
    if not namespace:
        raise exceptions.ValidationError("namespace is empty")
    if secrets is None:
        raise exceptions.ValidationError("secrets is None")

    try:
        global_cfg = load_global_auth_file(global_auth_path)
    except exceptions.ConfigurationError as e:
        raise exceptions.ConfigurationError(
            f"unable to read global auth file: {e}"
        ) from e

    harvested = secrets_impl.harvest(secrets)
    if harvested.skipped:
        log.info(f"Skipped {len(harvested.skipped)} secret(s) or entries")
    contents = merge_impl.merge(harvested.configs, global_cfg, image, mirrors)

    path = write_auth_file(auth_dir, namespace, image, contents)
    log.info(f"Wrote auth file to {path} with {len(contents['auths'])} entries")
    return path
