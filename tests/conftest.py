import json

import jwt
import pytest

from credprovider import docker
from credprovider.secrets import SecretRecord

SIGNING_KEY = "signature-is-never-checked-by-the-provider"


def make_token(claims):
    return jwt.encode(claims, SIGNING_KEY, algorithm="HS256")


def make_secret(name, auths, type=docker.SECRET_TYPE):
    payload = json.dumps({"auths": auths}).encode("utf-8")
    return SecretRecord(name=name, type=type, data={docker.SECRET_KEY: payload})


@pytest.fixture
def token():
    return make_token({"kubernetes.io": {"namespace": "default"}, "sub": "system:sa"})
