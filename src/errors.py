"""Exception hierarchy shared by the generation engine and its collaborators."""


class VeniceBatchError(Exception):
    """Base class for all errors raised by this application."""
    pass


class ConfigError(VeniceBatchError):
    """Raised when the configuration or credential is missing or invalid."""
    pass


class TransportError(VeniceBatchError):
    """Raised when the remote service could not be reached or timed out."""
    pass


class ApiError(VeniceBatchError):
    """Raised for a non-2xx response from the remote service.

    Args:
        status_code: HTTP status of the response
        messages: Human-readable fragments surfaced from the error body
    """

    def __init__(self, status_code: int, messages: list[str] | None = None):
        self.status_code = status_code
        self.messages = messages or []
        detail = "; ".join(self.messages) if self.messages else "no details"
        super().__init__(f"API error (Status {status_code}): {detail}")


class AuthError(ApiError):
    """Raised on 401: the credential was rejected."""
    pass


class RateLimitError(ApiError):
    """Raised on 429: the service asked us to slow down."""
    pass


class ServerError(ApiError):
    """Raised on 5xx: the service failed on its side."""
    pass


class MalformedResponseError(VeniceBatchError):
    """Raised when a 2xx response body cannot be interpreted."""
    pass


class ValidationError(VeniceBatchError):
    """Raised when a decoded image payload is corrupt, a placeholder or undersized.

    placeholder is set for the all-zero buffer the service returns instead of
    a render.
    """

    def __init__(
        self,
        message: str,
        content_type: str | None = None,
        size: int = 0,
        placeholder: bool = False,
    ):
        self.content_type = content_type
        self.size = size
        self.placeholder = placeholder
        super().__init__(message)


class PersistenceError(VeniceBatchError):
    """Raised when writing an image or the run log fails."""
    pass
