import jsonschema

from . import exceptions

schema_map = {}


class Schema(dict):
    def validate(self, document):
        jsonschema.validate(document, self, format_checker=jsonschema.FormatChecker())


def register(kind, schema):
    if not schema:
        raise ValueError("must supply a schema to register")
    if not isinstance(schema, Schema):
        schema = Schema(schema)
    schema_map[kind] = schema
    return schema


def lookup(kind):
    return schema_map.get(kind)


def validate(kind, document, source=None):
    """Validate document against the schema registered for kind.

    jsonschema failures are raised as exceptions.ValidationError naming the
    offending location so callers can decide how fatal the problem is.
    """
    schema = lookup(kind)
    if schema is None:
        raise KeyError(f"no schema registered for {kind}")
    try:
        schema.validate(document)
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        origin = f" from {source}" if source else ""
        raise exceptions.ValidationError(
            f"invalid {kind}{origin} at {where}: {e.message}"
        ) from e
    return document


# v1 schema definitions
strprop = dict(type="string")
register(
    "CredentialProviderRequest",
    schema={
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "kind": strprop,
            "apiVersion": strprop,
            "image": {"type": "string", "minLength": 1},
            "serviceAccountToken": strprop,
            "serviceAccountAnnotations": {
                "type": "object",
                "additionalProperties": strprop,
            },
        },
        "required": ["image"],
    },
)

register(
    "DockerConfig",
    schema={
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "auths": {
                "type": ["object", "null"],
                "additionalProperties": {
                    "type": "object",
                    "properties": {
                        "auth": strprop,
                        "username": strprop,
                        "password": strprop,
                        "email": strprop,
                    },
                },
            },
        },
    },
)
