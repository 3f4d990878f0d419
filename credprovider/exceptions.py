import enum


class CredentialProviderError(Exception):
    pass


class ConfigurationError(CredentialProviderError):
    pass


class ValidationError(CredentialProviderError):
    pass


class ClaimFailure(enum.Enum):
    EMPTY_TOKEN = "empty-token"
    UNPARSEABLE = "unparseable"
    MISSING_CLAIM = "missing-claim"
    CLAIM_NOT_MAPPING = "claim-not-mapping"
    MISSING_NAMESPACE = "missing-namespace"
    NAMESPACE_NOT_STRING = "namespace-not-string"


class ClaimError(ValidationError):
    def __init__(self, message, reason):
        super().__init__(message)
        self.reason = reason


class SecretRetrievalError(CredentialProviderError):
    pass


class NoCredentialsError(CredentialProviderError):
    pass
