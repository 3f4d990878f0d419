import pytest

from credprovider import claims
from credprovider.exceptions import ClaimError, ClaimFailure

from conftest import make_token


def test_extract_namespace(token):
    assert claims.extract_namespace(token) == "default"


def test_extract_namespace_verbatim():
    t = make_token({"kubernetes.io": {"namespace": "", "pod": {"name": "x"}}})
    assert claims.extract_namespace(t) == ""


def test_extract_namespace_ignores_signature():
    t = make_token({"kubernetes.io": {"namespace": "team-a"}})
    header, payload, _ = t.split(".")
    assert claims.extract_namespace(f"{header}.{payload}.invalidsignature") == "team-a"


@pytest.mark.parametrize(
    "value,reason",
    [
        ("", ClaimFailure.EMPTY_TOKEN),
        ("not-a-jwt", ClaimFailure.UNPARSEABLE),
        (make_token({"sub": "system:sa"}), ClaimFailure.MISSING_CLAIM),
        (make_token({"kubernetes.io": "default"}), ClaimFailure.CLAIM_NOT_MAPPING),
        (make_token({"kubernetes.io": {"pod": "x"}}), ClaimFailure.MISSING_NAMESPACE),
        (
            make_token({"kubernetes.io": {"namespace": 42}}),
            ClaimFailure.NAMESPACE_NOT_STRING,
        ),
    ],
)
def test_extract_namespace_failures(value, reason):
    with pytest.raises(ClaimError) as e:
        claims.extract_namespace(value)
    assert e.value.reason is reason
