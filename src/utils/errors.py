"""Error taxonomy for the documentation pipeline.

Every component raises one of these classified errors instead of leaking
library exceptions. Each class knows the pipeline stage it belongs to and
the process exit code the CLI should use when it reaches the boundary.
"""

from typing import Optional


class DoxcerError(Exception):
    """Base class for all classified pipeline failures.

    Attributes:
        stage: Short name of the pipeline stage that failed.
        exit_code: Process exit status used by the CLI.
        retryable: Whether a caller could reasonably retry the operation.
    """

    stage = "pipeline"
    exit_code = 1
    retryable = False


class ConfigError(DoxcerError):
    """The configuration source or one of its entries is unusable."""

    stage = "config"
    exit_code = 3


class MissingSourceError(ConfigError):
    """No .env configuration source could be located."""

    def __init__(self, message: str, searched: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.searched = searched or []


class MissingKeyError(ConfigError):
    """A required entry is absent from the configuration source."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing required entry: {name}")
        self.name = name


class CipherError(DoxcerError):
    """The credential could not be decrypted."""

    stage = "decrypt"
    exit_code = 4


class InvalidKeyError(CipherError):
    """The decryption key is not a well-formed Fernet key."""


class InvalidTokenError(CipherError):
    """The ciphertext failed its integrity check or is malformed."""


class IoError(DoxcerError):
    """A notebook or template file could not be read."""

    stage = "read"
    exit_code = 5


class RequestError(DoxcerError):
    """The completion request did not produce a usable document."""

    stage = "request"
    exit_code = 6


class NetworkError(RequestError):
    """The connection failed, was interrupted, or timed out."""

    retryable = True


class HttpStatusError(RequestError):
    """The completion service answered with a non-success status."""

    def __init__(self, status_code: int, message: str = "") -> None:
        detail = f"HTTP {status_code}"
        if message:
            detail = f"{detail}: {message}"
        super().__init__(detail)
        self.status_code = status_code


class MalformedResponseError(RequestError):
    """The response body does not have the expected shape."""
