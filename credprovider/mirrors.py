import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from . import exceptions

log = logging.getLogger(__name__)


def _parse_location(value, source, what):
    if not isinstance(value, str):
        raise exceptions.ConfigurationError(f"{source}: {what} must be a string")
    trimmed = value.rstrip("/")
    if not trimmed:
        raise exceptions.ConfigurationError(f"{source}: {what} cannot be empty")
    if trimmed.startswith(("http://", "https://")):
        raise exceptions.ConfigurationError(
            f"{source}: invalid {what} {value!r}: URI schemes are not supported"
        )
    return trimmed


@dataclass
class Registry:
    prefix: str
    location: str = ""
    mirrors: List[str] = field(default_factory=list)

    @classmethod
    def from_table(cls, table, source):
        if not isinstance(table, dict):
            raise exceptions.ConfigurationError(f"{source}: registry must be a table")
        location = table.get("location", "")
        prefix = table.get("prefix", "")
        if not isinstance(location, str) or not isinstance(prefix, str):
            raise exceptions.ConfigurationError(
                f"{source}: registry prefix and location must be strings"
            )
        if location:
            location = _parse_location(location, source, "location")
        elif not prefix.startswith("*."):
            raise exceptions.ConfigurationError(
                f"{source}: registry location is unset and prefix is not in the"
                " format *.example.com"
            )
        if not prefix:
            prefix = location
        elif prefix.startswith("*."):
            if location:
                raise exceptions.ConfigurationError(
                    f"{source}: wildcarded prefix {prefix!r} must not define a location"
                )
        else:
            prefix = _parse_location(prefix, source, "prefix")

        mirrors = table.get("mirror", [])
        if not isinstance(mirrors, list):
            raise exceptions.ConfigurationError(
                f"{source}: mirror of {prefix!r} must be an array"
            )
        locations = []
        for m in mirrors:
            if not isinstance(m, dict) or "location" not in m:
                raise exceptions.ConfigurationError(
                    f"{source}: mirror of {prefix!r} must define a location"
                )
            locations.append(_parse_location(m["location"], source, "mirror location"))
        return cls(prefix=prefix, location=location, mirrors=locations)

    def match_length(self, ref):
        """Return how much of ref this registry's prefix covers or -1."""
        if self.prefix.startswith("*."):
            return _subdomain_match(ref, self.prefix)
        if not ref.startswith(self.prefix):
            return -1
        index = len(self.prefix)
        if index == len(ref) or ref[index] in "/:@":
            return index
        return -1


def _subdomain_match(ref, prefix):
    # *.example.com matches any host ending in .example.com
    suffix = prefix[1:]
    index = ref.find(suffix)
    if index == -1 or "/" in ref[:index]:
        return -1
    index += len(suffix)
    if index == len(ref) or ref[index] in "/:@":
        return index
    return -1


def _load_file(path):
    try:
        with open(path, "rb") as fp:
            data = tomllib.load(fp)
    except OSError as e:
        raise exceptions.ConfigurationError(f"unable to read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise exceptions.ConfigurationError(f"unable to parse {path}: {e}") from e

    if "registries" in data:
        log.warning(f"{path} uses the V1 format which configures no mirrors")
        return []
    tables = data.get("registry", [])
    if not isinstance(tables, list):
        raise exceptions.ConfigurationError(f"{path}: registry must be an array")
    return [Registry.from_table(t, path) for t in tables]


def drop_in_paths(conf_dir):
    if not conf_dir:
        return []
    d = Path(conf_dir)
    if not d.is_dir():
        return []
    return sorted(d.glob("*.conf"))


def load_registries(conf_path, conf_dir=None):
    """Load registries from conf_path and the drop-in directory conf_dir.

    Drop-ins are applied in lexical order, a registry with an already known
    prefix replaces the earlier definition.
    """
    registries = {}
    for path in [Path(conf_path)] + drop_in_paths(conf_dir):
        log.debug(f"Loading registries configuration from {path}")
        for reg in _load_file(path):
            registries[reg.prefix] = reg
    return list(registries.values())


def find_registry(image, registries):
    best, best_len = None, -1
    for reg in registries:
        n = reg.match_length(image)
        if n > best_len:
            best, best_len = reg, n
    return best


def match(image, registries_conf_path, registries_conf_dir=None):
    """Return the mirror locations configured for image, in priority order."""
    if not image:
        raise exceptions.ValidationError("image is empty")
    try:
        registry = find_registry(
            image, load_registries(registries_conf_path, registries_conf_dir)
        )
    except exceptions.ConfigurationError as e:
        raise exceptions.ConfigurationError(
            f"loading registries configuration: {e}"
        ) from e
    if registry is None:
        return []
    return list(registry.mirrors)
