"""Loading of the encrypted credential bundle from a .env source.

The .env file holds two entries: the Fernet decryption key and the
Fernet-encrypted completion-service key. The file is parsed without
being injected into ``os.environ``; entries missing from the file fall
back to the process environment.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import dotenv_values

from src.utils.config import SecretsConfig
from src.utils.errors import MissingKeyError, MissingSourceError

logger = logging.getLogger(__name__)

ENV_PATH_VARIABLE = "DOXCER_ENV_PATH"

_PROJECT_DIR = Path(__file__).resolve().parent.parent.parent


@dataclass(frozen=True)
class ConfigBundle:
    """The two opaque strings needed to obtain the API credential.

    Attributes:
        decryption_key: Fernet key used to decrypt the credential.
        encrypted_credential: Fernet token holding the API credential.
        source: The .env file the bundle was read from.
    """

    decryption_key: str = field(repr=False)
    encrypted_credential: str = field(repr=False)
    source: Optional[Path] = None


def candidate_paths(
    cwd: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> list[Path]:
    """List the .env locations to try, in priority order.

    Order: ``DOXCER_ENV_PATH``, then ``config/.env`` and ``.env`` under
    the working directory, the project directory and its parent.

    Args:
        cwd: Working directory. Defaults to ``Path.cwd()``.
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Candidate paths without duplicates.
    """
    cwd = cwd or Path.cwd()
    environ = os.environ if environ is None else environ

    candidates: list[Path] = []
    explicit = environ.get(ENV_PATH_VARIABLE)
    if explicit:
        candidates.append(Path(explicit))

    for root in (cwd, _PROJECT_DIR, _PROJECT_DIR.parent):
        candidates.append(root / "config" / ".env")
        candidates.append(root / ".env")

    unique: list[Path] = []
    for path in candidates:
        if path not in unique:
            unique.append(path)
    return unique


def locate_env_file(
    override: Optional[Union[str, Path]] = None,
    cwd: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """Find the .env file to load.

    Args:
        override: Explicit path. When given, it is the only candidate.
        cwd: Working directory used for the search.
        environ: Environment mapping used for the search.

    Returns:
        Path of the first existing candidate.

    Raises:
        MissingSourceError: If no candidate exists.
    """
    if override is not None:
        path = Path(override)
        if not path.is_file():
            raise MissingSourceError(
                f"Configuration file not found: {path}", searched=[str(path)]
            )
        return path

    candidates = candidate_paths(cwd=cwd, environ=environ)
    for path in candidates:
        if path.is_file():
            logger.info("Loaded .env from: %s", path)
            return path

    searched = [str(p) for p in candidates]
    raise MissingSourceError(
        "Could not find a .env file. Searched: " + ", ".join(searched),
        searched=searched,
    )


class SecretStore:
    """Structured, read-only access to the credential bundle.

    Owns no persistence: each ``load`` reads the source again and returns
    a new immutable ``ConfigBundle``.
    """

    def __init__(
        self,
        config: Optional[SecretsConfig] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Initialize the store.

        Args:
            config: Entry names and optional fixed .env path.
            environ: Fallback environment. Defaults to ``os.environ``.
        """
        self.config = config or SecretsConfig()
        self._environ = os.environ if environ is None else environ

    def load(self, source: Optional[Union[str, Path]] = None) -> ConfigBundle:
        """Read the decryption key and encrypted credential.

        Args:
            source: Explicit .env path. Falls back to the configured
                ``env_file`` and then to the search order of
                ``candidate_paths``.

        Returns:
            A ConfigBundle with both entries populated.

        Raises:
            MissingSourceError: If no .env file can be located or read.
            MissingKeyError: If either entry is absent or empty.
        """
        path = locate_env_file(
            source if source is not None else self.config.env_file,
            environ=self._environ,
        )
        try:
            values = dotenv_values(path)
        except (OSError, UnicodeDecodeError) as e:
            raise MissingSourceError(
                f"Failed to load .env at {path}: {e}", searched=[str(path)]
            ) from e

        key = self._lookup(values, self.config.key_name)
        credential = self._lookup(values, self.config.credential_name)
        return ConfigBundle(
            decryption_key=key, encrypted_credential=credential, source=path
        )

    def _lookup(self, values: Mapping[str, Optional[str]], name: str) -> str:
        value = values.get(name) or self._environ.get(name)
        if not value:
            raise MissingKeyError(name)
        return value
