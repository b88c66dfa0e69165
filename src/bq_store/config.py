"""TOML credential loading and config file discovery."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from bq_store.errors import ConfigError

CONFIG_FILENAME = "bq_store.toml"
DEFAULT_CLIENT_SECRET = "notasecret"


@dataclass(frozen=True)
class Credentials:
    """Service-account identity used to open a warehouse session."""

    client_id: str
    client_secret: str
    project_id: str
    service_account: str
    key_file: Path | None

    def validate(self) -> None:
        """Check that every credential field is populated.

        Raises:
            ConfigError: Naming the first missing field.
        """
        if not self.client_id:
            raise ConfigError("missing client id")
        if not self.client_secret:
            raise ConfigError("missing client secret")
        if not self.service_account:
            raise ConfigError("missing service account")
        if not self.project_id:
            raise ConfigError("missing project id")
        if self.key_file is None or not str(self.key_file):
            raise ConfigError("missing credential file path")


def read_private_key(credentials: Credentials) -> bytes:
    """Read the PEM private key referenced by *credentials*.

    Args:
        credentials: Validated credentials.

    Returns:
        Raw bytes of the key file.

    Raises:
        ConfigError: If no key file is configured or it cannot be read.
    """
    if credentials.key_file is None:
        raise ConfigError("missing credential file path")
    try:
        return credentials.key_file.read_bytes()
    except OSError as exc:
        msg = f"credential file unreadable: {credentials.key_file} - {exc}"
        raise ConfigError(msg) from exc


def load_config(path: Path) -> Credentials:
    """Read credentials from a ``bq_store.toml`` file.

    A relative ``key_file`` is resolved against the config file's directory.
    Missing fields are left empty so that ``Credentials.validate`` can report
    them when a session is opened.

    Args:
        path: Absolute or relative path to the TOML config file.

    Returns:
        Parsed ``Credentials``.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ConfigError: If the ``[credentials]`` table is missing.
    """
    with path.open("rb") as fh:
        raw = tomllib.load(fh)

    if "credentials" not in raw:
        raise ConfigError(f"{path}: missing [credentials] table")
    creds_raw = raw["credentials"]

    key_file = None
    if creds_raw.get("key_file"):
        key_file = Path(creds_raw["key_file"])
        if not key_file.is_absolute():
            key_file = path.resolve().parent / key_file

    return Credentials(
        client_id=str(creds_raw.get("client_id", "")),
        client_secret=str(creds_raw.get("client_secret", DEFAULT_CLIENT_SECRET)),
        project_id=str(creds_raw.get("project_id", "")),
        service_account=str(creds_raw.get("service_account", "")),
        key_file=key_file,
    )


def discover_config(start: Path | None = None) -> Path:
    """Walk from *start* upward looking for ``bq_store.toml``.

    Args:
        start: Directory to begin the search.  Defaults to the current
            working directory.

    Returns:
        Absolute path to the discovered config file.

    Raises:
        FileNotFoundError: If no ``bq_store.toml`` is found between *start*
            and the filesystem root.
    """
    current = (start or Path.cwd()).resolve()

    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate

        parent = current.parent
        if parent == current:
            break
        current = parent

    msg = f"{CONFIG_FILENAME} not found (searched from {start or Path.cwd()})"
    raise FileNotFoundError(msg)
