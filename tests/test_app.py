import base64
import hashlib
import io
import json
from types import SimpleNamespace

import pytest

from credprovider import app
from credprovider import config as config_impl
from credprovider import docker
from credprovider import exceptions
from credprovider.exceptions import ClaimFailure

from conftest import make_token

namespace = "default"
registry = "docker.io"
image = registry + "/library/image"
mirror = "localhost:5000"
user_password_b64 = "bXl1c2VyOm15cGFzc3dvcmQ="


class FakeCoreV1:
    def __init__(self, secrets):
        self.secrets = secrets
        self.namespaces = []

    def list_namespaced_secret(self, namespace, **kwargs):
        self.namespaces.append(namespace)
        return SimpleNamespace(items=self.secrets)


def v1_secret(name, auths):
    payload = json.dumps({"auths": auths}).encode()
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace=namespace),
        type=docker.SECRET_TYPE,
        data={docker.SECRET_KEY: base64.b64encode(payload).decode()},
    )


@pytest.fixture
def provider_config(tmp_path):
    conf = tmp_path / "registries.conf"
    conf.write_text(
        f'[[registry]]\nlocation = "{registry}"\n[[registry.mirror]]\nlocation = "{mirror}"\n'
    )
    return config_impl.ProviderConfig(
        registries_conf_path=conf,
        registries_conf_dir=tmp_path / "registries.conf.d",
        auth_dir=tmp_path / "auth",
        kubelet_auth_file_path=tmp_path / "kubelet-auth.json",
    )


def request(image=image, ns=namespace):
    token = make_token({"kubernetes.io": {"namespace": ns}})
    return io.StringIO(
        json.dumps(
            {
                "kind": "CredentialProviderRequest",
                "apiVersion": app.API_VERSION,
                "image": image,
                "serviceAccountToken": token,
                "serviceAccountAnnotations": {},
            }
        )
    )


def factory_for(api):
    return lambda token: api


def test_run(provider_config):
    api = FakeCoreV1(
        [
            v1_secret(
                "secret",
                {
                    f"http://{mirror}": {
                        "username": "myuser",
                        "password": "mypassword",
                        "auth": user_password_b64,
                    }
                },
            )
        ]
    )
    out = io.StringIO()
    result = app.run(request(), provider_config, factory_for(api), stdout=out)

    digest = hashlib.sha256(image.encode()).hexdigest()
    path = provider_config.auth_dir / f"{namespace}-{digest}.json"
    assert result.outcome is app.Outcome.WRITTEN
    assert result.path == path
    assert json.loads(path.read_text()) == {"auths": {mirror: {"auth": user_password_b64}}}
    assert api.namespaces == [namespace]
    assert json.loads(out.getvalue()) == app.response()


def test_response_envelope():
    assert app.response() == {
        "kind": "CredentialProviderResponse",
        "apiVersion": "credentialprovider.kubelet.k8s.io/v1",
        "cacheKeyType": "Registry",
        "auth": None,
    }
    out = io.StringIO()
    app.write_response(out)
    assert "\"auth\": null" in out.getvalue()
    assert "auths" not in out.getvalue()


def test_request_from_json():
    doc = {"image": image, "serviceAccountToken": "t", "serviceAccountAnnotations": {"a": "b"}}
    req = app.CredentialProviderRequest.from_json(json.dumps(doc))
    assert req == app.CredentialProviderRequest(image, "t")


def test_run_without_registries_conf(provider_config):
    provider_config.registries_conf_path.unlink()
    out = io.StringIO()
    stdin = io.StringIO("never read")
    result = app.run(stdin, provider_config, factory_for(None), stdout=out)
    assert result.outcome is app.Outcome.NO_REGISTRIES_CONF
    assert stdin.tell() == 0
    assert json.loads(out.getvalue())["kind"] == "CredentialProviderResponse"


def test_run_without_mirrors(provider_config):
    api = FakeCoreV1([])
    out = io.StringIO()
    result = app.run(request("quay.io/app"), provider_config, factory_for(api), out)
    assert result.outcome is app.Outcome.NO_MIRRORS
    assert api.namespaces == []
    assert not provider_config.auth_dir.exists()
    assert out.getvalue()


def test_run_no_credentials(provider_config):
    api = FakeCoreV1([v1_secret("secret", {"nomatch.io": {"auth": "dTpw"}})])
    out = io.StringIO()
    result = app.run(request(), provider_config, factory_for(api), stdout=out)
    assert result.outcome is app.Outcome.NO_CREDENTIALS
    assert not provider_config.auth_dir.exists()
    assert json.loads(out.getvalue()) == app.response()


def test_run_bad_request(provider_config):
    out = io.StringIO()
    with pytest.raises(exceptions.ValidationError):
        app.run(io.StringIO("{"), provider_config, factory_for(None), stdout=out)
    with pytest.raises(exceptions.ValidationError):
        app.run(io.StringIO("{}"), provider_config, factory_for(None), stdout=out)
    assert out.getvalue() == ""


def test_run_bad_token(provider_config):
    stdin = io.StringIO(json.dumps({"image": image, "serviceAccountToken": "bogus"}))
    with pytest.raises(exceptions.ClaimError) as e:
        app.run(stdin, provider_config, factory_for(None), stdout=io.StringIO())
    assert e.value.reason is ClaimFailure.UNPARSEABLE


def test_run_empty_namespace(provider_config):
    api = FakeCoreV1([])
    with pytest.raises(exceptions.ValidationError):
        app.run(request(ns=""), provider_config, factory_for(api), io.StringIO())
    assert api.namespaces == []


def test_run_bad_global_file(provider_config):
    provider_config.kubelet_auth_file_path.write_text("{")
    api = FakeCoreV1([])
    with pytest.raises(exceptions.ConfigurationError):
        app.run(request(), provider_config, factory_for(api), io.StringIO())
