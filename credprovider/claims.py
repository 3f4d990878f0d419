import logging

import jwt

from .exceptions import ClaimError, ClaimFailure

log = logging.getLogger(__name__)

K8S_CLAIM_KEY = "kubernetes.io"


def unverified_claims(token):
    # The kubelet hands us the service account token it minted; authenticity
    # is established before we're invoked so the signature is not checked here.
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        raise ClaimError(
            f"unable to parse JWT token: {e}", ClaimFailure.UNPARSEABLE
        ) from e


def extract_namespace(token):
    """Return the namespace asserted by the kubernetes.io claim of token.

    Every failure raises ClaimError with a ClaimFailure reason. The namespace
    is returned verbatim, which means it can be an empty string.
    """
    if not token:
        raise ClaimError(
            "request service account token is empty", ClaimFailure.EMPTY_TOKEN
        )

    claims = unverified_claims(token)

    if K8S_CLAIM_KEY not in claims:
        raise ClaimError(
            f"no {K8S_CLAIM_KEY} claim name in JWT claims found",
            ClaimFailure.MISSING_CLAIM,
        )
    k8s_claim = claims[K8S_CLAIM_KEY]
    if not isinstance(k8s_claim, dict):
        raise ClaimError(
            f"{K8S_CLAIM_KEY} claim does not contain a map",
            ClaimFailure.CLAIM_NOT_MAPPING,
        )
    if "namespace" not in k8s_claim:
        raise ClaimError(
            "no namespace found in kubernetes claim", ClaimFailure.MISSING_NAMESPACE
        )
    namespace = k8s_claim["namespace"]
    if not isinstance(namespace, str):
        raise ClaimError(
            "namespace is not a string object", ClaimFailure.NAMESPACE_NOT_STRING
        )
    log.debug(f"Token asserts namespace {namespace!r}")
    return namespace
