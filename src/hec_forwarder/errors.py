from __future__ import annotations


class ForwarderError(RuntimeError):
    """Base class for every failure that aborts a forwarding invocation."""


class FetchError(ForwarderError):
    """Raised when the archive object cannot be read from the object store."""

    def __init__(self, message: str, *, bucket: str, key: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.bucket = bucket
        self.key = key
        self.error_code = error_code


class DecompressionError(ForwarderError):
    """Raised when fetched bytes are not valid gzip framing."""


class ParseError(ForwarderError):
    """Raised when a decoded payload is not the expected structured shape."""


class InvalidEventError(ParseError):
    """Raised when a trigger payload does not match its source's shape."""


class TransportError(ForwarderError):
    """Raised when the collector is unreachable or rejects a batch."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        status_code: int | None = None,
        hec_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.status_code = status_code
        self.hec_code = hec_code
