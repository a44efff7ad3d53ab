"""OAuth 2.0 session for the Google Calendar API.

:class:`CalendarSession` owns the server's single set of credentials and
their lifecycle:

- **authorize** -- :meth:`CalendarSession.authorization_url` builds the
  consent URL for the web flow (offline access, calendar scope).
- **exchange** -- :meth:`CalendarSession.exchange_code` trades the
  callback's ``code`` for tokens and persists them.
- **load** -- :meth:`CalendarSession.load` reads the token file.
- **refresh** -- :meth:`CalendarSession.credentials` refreshes expired
  credentials and persists the result.

The session is created once by the app factory and injected wherever
credentials are needed.

Usage::

    session = CalendarSession(client_id, client_secret, redirect_uri, Path("tokens.json"))
    session.load()
    creds = session.credentials()
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from nlcal.calendar.exceptions import CalendarAuthError
from nlcal.config import ConfigError, Settings

logger = logging.getLogger(__name__)

SCOPES: list[str] = ["https://www.googleapis.com/auth/calendar"]
"""OAuth 2.0 scopes required to insert events."""

_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
_TOKEN_URI = "https://oauth2.googleapis.com/token"

# Consent URLs issued but not yet redeemed; the oldest are dropped first.
_MAX_PENDING_AUTHORIZATIONS = 32


class CalendarSession:
    """Holds and maintains the OAuth credentials used for calendar calls.

    Args:
        client_id: OAuth client id.
        client_secret: OAuth client secret.
        redirect_uri: Callback URL registered for the web client.
        token_path: File the authorized-user token is stored in.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        token_path: Path | str,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._token_path = Path(token_path)
        self._credentials: Credentials | None = None
        # PKCE code verifiers by OAuth ``state``, from consent URL to callback.
        self._pending_verifiers: dict[str, str | None] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> CalendarSession:
        """Build a session from application settings."""
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.google_redirect_uri,
            token_path=settings.token_path,
        )

    @property
    def token_path(self) -> Path:
        return self._token_path

    # ------------------------------------------------------------------
    # Authorization code flow
    # ------------------------------------------------------------------

    def _flow(self, state: str | None = None, code_verifier: str | None = None) -> Flow:
        if not self._client_id or not self._client_secret:
            raise ConfigError(
                "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set to run the OAuth flow"
            )
        client_config = {
            "web": {
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "auth_uri": _AUTH_URI,
                "token_uri": _TOKEN_URI,
                "redirect_uris": [self._redirect_uri],
            }
        }
        return Flow.from_client_config(
            client_config,
            scopes=SCOPES,
            redirect_uri=self._redirect_uri,
            state=state,
            code_verifier=code_verifier,
        )

    def authorization_url(self) -> str:
        """Return the Google consent URL to redirect the user to.

        The flow's PKCE code verifier is kept under the URL's ``state`` so
        :meth:`exchange_code` can present it when the callback arrives.

        Raises:
            ConfigError: If the OAuth client id or secret is not configured.
        """
        flow = self._flow()
        url, state = flow.authorization_url(access_type="offline")
        with self._lock:
            while len(self._pending_verifiers) >= _MAX_PENDING_AUTHORIZATIONS:
                self._pending_verifiers.pop(next(iter(self._pending_verifiers)))
            self._pending_verifiers[state] = flow.code_verifier
        logger.info("Generated OAuth authorization URL")
        return url

    def exchange_code(self, code: str, state: str | None = None) -> Credentials:
        """Exchange an authorization *code* for credentials and persist them.

        Args:
            code: The ``code`` query parameter of the OAuth callback.
            state: The callback's ``state`` parameter, used to find the PKCE
                code verifier issued with the consent URL.

        Raises:
            ConfigError: If the OAuth client is not configured.
            CalendarAuthError: If Google rejects the code.
        """
        with self._lock:
            code_verifier = self._pending_verifiers.pop(state, None) if state else None
        if state and code_verifier is None:
            logger.warning("No pending authorization for OAuth state %r", state)
        flow = self._flow(state=state, code_verifier=code_verifier)
        try:
            flow.fetch_token(code=code)
        except Exception as exc:
            logger.error("OAuth code exchange failed: %s", exc)
            raise CalendarAuthError(f"OAuth code exchange failed: {exc}") from exc

        creds = flow.credentials
        with self._lock:
            self._credentials = creds
            self._persist(creds)
        logger.info("OAuth code exchanged, credentials stored")
        return creds

    # ------------------------------------------------------------------
    # Token file lifecycle
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Load credentials from the token file.

        Returns:
            ``True`` if a token was loaded, ``False`` if the file is absent
            or unreadable (the server still starts; calendar calls will
            fail with :class:`CalendarAuthError` until authorized).
        """
        if not self._token_path.exists():
            logger.warning("No stored token at %s; visit /auth/google to authorize", self._token_path)
            return False

        try:
            creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)
        except (json.JSONDecodeError, ValueError, KeyError) as exc:
            logger.warning("Failed to parse stored token at %s: %s", self._token_path, exc)
            return False

        with self._lock:
            self._credentials = creds
        logger.info("Loaded stored token from %s", self._token_path)
        return True

    def credentials(self) -> Credentials:
        """Return usable credentials, refreshing them if they have expired.

        Raises:
            CalendarAuthError: If no credentials are stored or the refresh
                fails.
        """
        with self._lock:
            creds = self._credentials
            if creds is None:
                raise CalendarAuthError(
                    "Calendar is not authorized; visit /auth/google first"
                )
            if creds.valid:
                return creds
            if creds.expired and creds.refresh_token:
                logger.info("Stored token expired, refreshing")
                try:
                    creds.refresh(Request())
                except Exception as exc:
                    logger.error("Token refresh failed: %s", exc)
                    raise CalendarAuthError(f"Token refresh failed: {exc}") from exc
                self._persist(creds)
                return creds
            raise CalendarAuthError("Stored credentials are invalid; re-authorize at /auth/google")

    def persist(self) -> None:
        """Write the current credentials to the token file."""
        with self._lock:
            if self._credentials is None:
                raise CalendarAuthError("No credentials to persist")
            self._persist(self._credentials)

    def _persist(self, creds: Credentials) -> None:
        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())
        logger.info("Token saved to %s", self._token_path)
