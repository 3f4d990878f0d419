import hashlib
import json


def _dumper(obj):
    m = getattr(obj, "serialized", None)
    if m:
        if callable(m):
            return m()
        else:
            return m
    else:
        return obj


def dump(obj, indent=2, sort_keys=False):
    """Dump objects as JSON. If objects have a serialized method or property it
    will be used in the resulting output"""
    return json.dumps(obj, default=_dumper, indent=indent, sort_keys=sort_keys)


def sha256_hex(string):
    return hashlib.sha256(string.encode("utf-8")).hexdigest()


def trim_prefixes(string, *prefixes):
    # Each prefix is removed at most once, in the order given
    for prefix in prefixes:
        if string.startswith(prefix):
            string = string[len(prefix) :]
    return string


def first(iterable, predicate, default=None):
    for item in iterable:
        if predicate(item):
            return item
    return default
