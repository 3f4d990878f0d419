import base64
import json
from dataclasses import dataclass
from pathlib import Path

from . import exceptions
from . import schema
from . import utils

SECRET_TYPE = "kubernetes.io/dockerconfigjson"
SECRET_KEY = ".dockerconfigjson"


# Utils for managing docker config.json style auth files
@dataclass(frozen=True)
class AuthEntry:
    username: str = ""
    password: str = ""

    @property
    def auth(self):
        return encode_auth(self.username, self.password)

    def serialized(self):
        return dict(auth=self.auth)


def encode_auth(username, password):
    raw = f"{username}:{password}".encode("utf-8", "surrogateescape")
    return base64.b64encode(raw).decode("ascii")


def decode_auth(auth):
    """Decode a base64 ``user:password`` string into an AuthEntry.

    A decoded value without a ``:`` separator yields an empty entry rather
    than an error. Line breaks in the encoded value are ignored, any other
    invalid base64 raises ValueError. Bytes which are not UTF-8 are kept as
    surrogates so encode_auth reproduces them exactly.
    """
    if isinstance(auth, bytes):
        auth = auth.decode("ascii", errors="replace")
    auth = auth.replace("\r", "").replace("\n", "")
    try:
        decoded = base64.b64decode(auth, validate=True)
    except ValueError as e:
        raise ValueError(f"unable to decode docker auth: {e}") from e
    user, sep, password = decoded.decode("utf-8", "surrogateescape").partition(":")
    if not sep:
        return AuthEntry()
    return AuthEntry(user, password.strip("\x00"))


def entry_from_config(conf):
    # Only fall back to explicit credentials when no auth string is present
    auth = conf.get("auth")
    if auth is None and ("username" in conf or "password" in conf):
        return AuthEntry(conf.get("username", ""), conf.get("password", ""))
    return decode_auth(auth or "")


def normalize_registry(registry):
    return utils.trim_prefixes(registry, "http://", "https://")


def loads_config(data, source="<string>"):
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        cfg = json.loads(data)
    except ValueError as e:
        raise exceptions.ValidationError(f"unmarshaling JSON at {source}: {e}") from e
    schema.validate("DockerConfig", cfg, source=source)
    if cfg.get("auths") is None:
        cfg["auths"] = {}
    return cfg


def parse_config(cfg_name=None):
    if not cfg_name:
        cfg_name = Path("~/.docker/config.json").expanduser()
    cfg_name = Path(cfg_name)
    try:
        data = cfg_name.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise exceptions.ConfigurationError(f"unable to read {cfg_name}: {e}") from e
    try:
        return loads_config(data, source=str(cfg_name))
    except exceptions.ValidationError as e:
        raise exceptions.ConfigurationError(str(e)) from e

