"""Service-account authentication against the Google identity provider.

``authenticate`` runs the full JWT assertion flow on every call and returns
a ``Session`` pairing the access token with a BigQuery client bound to it.
No refresh token is kept; an expired session is replaced by calling
``authenticate`` again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import google.auth.transport.requests
from google.api_core.exceptions import GoogleAPIError
from google.auth import crypt
from google.auth import exceptions as auth_exceptions
from google.cloud import bigquery
from google.oauth2 import credentials as oauth2_credentials
from google.oauth2 import service_account

from bq_store.config import Credentials, read_private_key
from bq_store.errors import AuthError

logger = logging.getLogger(__name__)

BIGQUERY_SCOPE = "https://www.googleapis.com/auth/bigquery"
TOKEN_URI = "https://oauth2.googleapis.com/token"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Token:
    """An access token and the instant it stops being valid."""

    value: str
    expiry: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return ``True`` once *now* has reached the token expiry."""
        return (now or utcnow()) >= self.expiry


@dataclass(frozen=True)
class Session:
    """A token together with the BigQuery client authorised by it."""

    token: Token
    client: bigquery.Client


def _exchange_assertion(
    credentials: Credentials,
    key: bytes,
    request: google.auth.transport.Request,
) -> Token:
    """Sign a JWT assertion with *key* and exchange it for an access token.

    Raises:
        AuthError: If the key cannot be parsed or the assertion is rejected.
    """
    try:
        signer = crypt.RSASigner.from_string(key)
    except (ValueError, TypeError) as exc:
        msg = f"invalid private key in {credentials.key_file}: {exc}"
        raise AuthError(msg) from exc

    assertion = service_account.Credentials(
        signer,
        credentials.service_account,
        TOKEN_URI,
        scopes=[BIGQUERY_SCOPE],
        project_id=credentials.project_id,
    )
    try:
        assertion.refresh(request)
    except auth_exceptions.RefreshError as exc:
        msg = f"assertion rejected for {credentials.service_account}: {exc}"
        raise AuthError(msg) from exc
    except auth_exceptions.TransportError as exc:
        raise AuthError(f"token exchange failed: {exc}") from exc

    if not assertion.token or assertion.expiry is None:
        raise AuthError("identity provider returned no access token")

    # google-auth reports expiry as naive UTC.
    expiry = assertion.expiry.replace(tzinfo=timezone.utc)
    return Token(value=assertion.token, expiry=expiry)


def authenticate(
    credentials: Credentials,
    *,
    request: google.auth.transport.Request | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> Session:
    """Open an authenticated BigQuery session for *credentials*.

    The call is all-or-nothing: either a usable ``Session`` is returned or an
    exception is raised and nothing is kept.

    Args:
        credentials: Service-account identity.
        request: HTTP request adapter used for the token exchange.  Defaults
            to a ``requests``-based adapter.
        clock: Source of the current time.

    Returns:
        A ``Session`` whose token has not yet expired.

    Raises:
        ConfigError: If a credential field is missing or the key file cannot
            be read.
        AuthError: If the assertion is rejected or the BigQuery client
            cannot be constructed.
    """
    credentials.validate()
    key = read_private_key(credentials)

    token = _exchange_assertion(
        credentials,
        key,
        request or google.auth.transport.requests.Request(),
    )
    if token.is_expired(clock()):
        raise AuthError(f"access token already expired at {token.expiry.isoformat()}")

    # Expiry is tracked by Token only; the bearer credential never refreshes.
    bearer = oauth2_credentials.Credentials(
        token=token.value,
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
        scopes=[BIGQUERY_SCOPE],
    )
    try:
        client = bigquery.Client(project=credentials.project_id, credentials=bearer)
    except (GoogleAPIError, ValueError) as exc:
        raise AuthError(f"failed to create BigQuery service: {exc}") from exc

    logger.info(
        "Authenticated %s for project '%s' (token expires %s)",
        credentials.service_account,
        credentials.project_id,
        token.expiry.isoformat(),
    )
    return Session(token=token, client=client)
