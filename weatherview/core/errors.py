from __future__ import annotations


class FetchError(Exception):
    """Base class for failures raised by the weather client."""

    kind = "fetch_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkFailure(FetchError):
    kind = "network_failure"


class HttpStatusFailure(FetchError):
    kind = "http_status_failure"

    def __init__(self, status_code: int, message: str | None = None) -> None:
        super().__init__(message or f"Weather API responded with HTTP {status_code}")
        self.status_code = status_code


class DeserializationFailure(FetchError):
    kind = "deserialization_failure"


class EmptyCredentialOrCity(FetchError):
    kind = "empty_credential_or_city"
