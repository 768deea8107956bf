"""Fernet encryption for the API credential stored at rest.

Fernet (AES-128-CBC with an HMAC-SHA256 integrity tag and an embedded
timestamp) protects the completion-service key in the .env file. The
plaintext credential is only ever handed out inside ``open_credential``,
which drops it again when the request is finished.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from cryptography.fernet import Fernet, InvalidToken

from src.security.secret_store import ConfigBundle
from src.utils.errors import InvalidKeyError, InvalidTokenError

logger = logging.getLogger(__name__)


class Credential:
    """A bearer token held in memory for the duration of one request.

    The value is masked in ``repr`` and ``str`` so it cannot leak through
    logging or tracebacks, and ``clear`` drops the reference.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value: Optional[str] = value

    def reveal(self) -> str:
        """Return the plaintext token.

        Raises:
            RuntimeError: If the credential has already been cleared.
        """
        if self._value is None:
            raise RuntimeError("Credential has been cleared")
        return self._value

    def clear(self) -> None:
        self._value = None

    @property
    def cleared(self) -> bool:
        return self._value is None

    def __repr__(self) -> str:
        return "Credential('**********')"

    __str__ = __repr__


def _fernet(key: str) -> Fernet:
    """Build a Fernet instance, classifying malformed keys."""
    if not key:
        raise InvalidKeyError("Invalid Fernet key: key is empty")
    try:
        return Fernet(key)
    except (ValueError, TypeError) as e:
        raise InvalidKeyError(
            "Invalid Fernet key: expected 32 url-safe base64-encoded bytes"
        ) from e


def generate_key() -> str:
    """Generate a fresh Fernet key as a string."""
    return Fernet.generate_key().decode("ascii")


def validate_key(key: str) -> str:
    """Check that ``key`` is structurally valid for Fernet.

    Returns:
        The key unchanged.

    Raises:
        InvalidKeyError: If the key is malformed.
    """
    _fernet(key)
    return key


def encrypt_credential(key: str, plaintext: str) -> str:
    """Encrypt a credential into a Fernet token.

    Args:
        key: URL-safe base64 Fernet key.
        plaintext: The credential to protect.

    Returns:
        The Fernet token as an ASCII string.

    Raises:
        InvalidKeyError: If the key is malformed.
    """
    return _fernet(key).encrypt(plaintext.encode("utf-8")).decode("ascii")


def decrypt_credential(key: str, ciphertext: str) -> str:
    """Decrypt a Fernet token back into the plaintext credential.

    Decryption is all-or-nothing: the integrity tag is verified before
    any plaintext is produced.

    Args:
        key: URL-safe base64 Fernet key.
        ciphertext: Fernet token produced by ``encrypt_credential``.

    Returns:
        The decrypted credential.

    Raises:
        InvalidKeyError: If the key is malformed.
        InvalidTokenError: If the token is malformed, was produced under a
            different key, or does not decrypt to UTF-8 text.
    """
    fernet = _fernet(key)
    try:
        data = fernet.decrypt(ciphertext)
    except (InvalidToken, ValueError, TypeError) as e:
        raise InvalidTokenError(
            "Decryption failed: token is corrupted or was encrypted with another key"
        ) from e
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidTokenError("Decrypted bytes were not valid UTF-8") from e


@contextmanager
def open_credential(bundle: ConfigBundle) -> Iterator[Credential]:
    """Decrypt the bundle's credential for the duration of a ``with`` block.

    The credential is cleared on exit, whether or not the block raised.

    Raises:
        InvalidKeyError: If the bundle's key is malformed.
        InvalidTokenError: If the encrypted credential cannot be decrypted.
    """
    credential = Credential(
        decrypt_credential(bundle.decryption_key, bundle.encrypted_credential)
    )
    logger.debug("Credential decrypted")
    try:
        yield credential
    finally:
        credential.clear()
        logger.debug("Credential cleared")
