import base64
import logging
from types import SimpleNamespace

from credprovider import docker
from credprovider import secrets

from conftest import make_secret


def b64(s):
    return base64.b64encode(s.encode()).decode()


def test_harvest():
    s = make_secret("pull", {"https://quay.io": {"auth": b64("u:p")}})
    result = secrets.harvest([s])
    assert result.skipped == []
    assert len(result.configs) == 1
    assert result.configs[0].source == "pull"
    assert result.configs[0].auths == {"https://quay.io": docker.AuthEntry("u", "p")}


def test_harvest_skips_invalid_records():
    records = [
        make_secret("opaque", {"quay.io": {"auth": b64("u:p")}}, type="Opaque"),
        secrets.SecretRecord("nokey", docker.SECRET_TYPE, {"other": b"{}"}),
        secrets.SecretRecord("badjson", docker.SECRET_TYPE, {docker.SECRET_KEY: b"{"}),
        secrets.SecretRecord("binary", docker.SECRET_TYPE, {docker.SECRET_KEY: b"\xff"}),
        make_secret("good", {"quay.io": {"auth": b64("u:p")}}),
    ]
    result = secrets.harvest(records)
    assert [c.source for c in result.configs] == ["good"]
    assert [s for s, _ in result.skipped] == [
        "secret 'opaque'",
        "secret 'nokey'",
        "secret 'badjson'",
        "secret 'binary'",
    ]


def test_harvest_skips_single_entry():
    s = make_secret(
        "mixed",
        {"bad.io": {"auth": "%%%"}, "good.io": {"auth": b64("u:p")}, "empty.io": {}},
    )
    result = secrets.harvest([s])
    assert result.configs[0].auths == {
        "good.io": docker.AuthEntry("u", "p"),
        "empty.io": docker.AuthEntry("", ""),
    }
    assert result.skipped[0][0] == "secret 'mixed' registry 'bad.io'"


def test_harvest_uses_injected_logger(caplog):
    log = logging.getLogger("test.harvest")
    with caplog.at_level(logging.WARNING, logger="test.harvest"):
        secrets.harvest([make_secret("opaque", {}, type="Opaque")], log=log)
    assert any(r.name == "test.harvest" for r in caplog.records)


def test_from_kubernetes():
    payload = b'{"auths": {}}'
    v1 = SimpleNamespace(
        metadata=SimpleNamespace(name="pull"),
        type=docker.SECRET_TYPE,
        data={docker.SECRET_KEY: base64.b64encode(payload).decode(), "bad": "%%%"},
    )
    record = secrets.SecretRecord.from_kubernetes(v1)
    assert record.name == "pull"
    assert record.type == docker.SECRET_TYPE
    assert record.data == {docker.SECRET_KEY: payload}


def test_from_kubernetes_without_data():
    v1 = SimpleNamespace(metadata=SimpleNamespace(name="x"), type="Opaque", data=None)
    assert secrets.SecretRecord.from_kubernetes(v1).data == {}
