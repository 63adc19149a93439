"""
Google Drive Blob Channel.

Stores the sync document as a JSON file in the user's Drive, using the
drive.file scope so the app only sees files it created.

Authentication uses an OAuth refresh token: it is exchanged for an access
token on sign-in and persisted in the sync state store so later sessions
can re-authenticate silently. Acquiring the first refresh token (browser
consent flow) happens outside this module.

Every HTTP call goes through the resilience stack:
    Circuit Breaker (aiobreaker) → Retry (tenacity) → httpx request
"""

from typing import Any

import aiobreaker
import httpx

from notesync.backend.core.exceptions import AuthenticationError, ExternalServiceError
from notesync.backend.core.logging import get_logger
from notesync.backend.core.resilience import create_circuit_breaker, remote_retrying
from notesync.backend.remote.base import RemoteBlobChannel, SyncObjectRef
from notesync.backend.schemas.note import Note, notes_from_json, notes_to_json
from notesync.backend.storage.base import SyncStateStore

logger = get_logger(__name__)

DRIVE_API = "https://www.googleapis.com/drive/v3"
UPLOAD_API = "https://www.googleapis.com/upload/drive/v3"
TOKEN_URL = "https://oauth2.googleapis.com/token"
REVOKE_URL = "https://oauth2.googleapis.com/revoke"

REFRESH_TOKEN_KEY = "google_drive_refresh_token"

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class _RetryableResponse(Exception):
    """Raised inside the retry loop for throttling and server errors."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"HTTP {response.status_code}")


class GoogleDriveChannel(RemoteBlobChannel):
    """
    Remote channel for a single JSON file on Google Drive.

    Usage:
        channel = GoogleDriveChannel(state_store, client_id, client_secret)
        await channel.authenticate(silent=True)
        ref = await channel.locate_sync_object()
    """

    def __init__(
        self,
        state_store: SyncStateStore,
        client_id: str,
        client_secret: str,
        object_name: str = "markdown_notes_sync.json",
        http_client: httpx.AsyncClient | None = None,
        breaker: aiobreaker.CircuitBreaker | None = None,
        max_attempts: int = 3,
        backoff_multiplier: float = 1,
        backoff_max: float = 10,
    ) -> None:
        self._state_store = state_store
        self._client_id = client_id
        self._client_secret = client_secret
        self.object_name = object_name
        self._client = http_client
        self._owns_client = http_client is None
        self._breaker = breaker or create_circuit_breaker("google-drive")
        self._max_attempts = max_attempts
        self._backoff_multiplier = backoff_multiplier
        self._backoff_max = backoff_max
        self._access_token: str | None = None

    @property
    def provider_name(self) -> str:
        return "google_drive"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def authenticate(
        self,
        silent: bool = False,
        login_hint: str | None = None,
        credential: str | None = None,
    ) -> None:
        """
        Exchange a refresh token for an access token.

        credential is a freshly obtained refresh token; without it the
        stored one is used. login_hint is only logged: a refresh token is
        already bound to one account.
        """
        if not self._client_id:
            raise AuthenticationError("Google client id is not configured")

        refresh_token = credential or await self._state_store.get(REFRESH_TOKEN_KEY)
        if not refresh_token:
            raise AuthenticationError("No Google Drive credentials stored. Sign in first.")

        logger.info(
            "Requesting Google Drive access token",
            extra={"silent": silent, "login_hint": login_hint},
        )
        response = await self._send(
            "POST",
            TOKEN_URL,
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
        )
        payload = _json_or_empty(response)
        if response.status_code >= 400 or "access_token" not in payload:
            reason = payload.get("error_description") or payload.get("error") or f"HTTP {response.status_code}"
            raise AuthenticationError(f"Token exchange failed: {reason}")

        self._access_token = payload["access_token"]
        if credential:
            await self._state_store.set(REFRESH_TOKEN_KEY, credential)
        logger.info("Google Drive access token acquired")

    async def sign_out(self) -> None:
        token = self._access_token
        self._access_token = None
        await self._state_store.delete(REFRESH_TOKEN_KEY)
        if token is None:
            return
        try:
            await self._send("POST", REVOKE_URL, params={"token": token})
        except ExternalServiceError as e:
            logger.warning("Token revocation failed", extra={"error": str(e)})

    async def is_authenticated(self) -> bool:
        return self._access_token is not None

    # -------------------------------------------------------------------------
    # Sync document
    # -------------------------------------------------------------------------

    async def current_identity(self) -> str | None:
        if self._access_token is None:
            return None
        response = await self._authorized("GET", f"{DRIVE_API}/about", params={"fields": "user(emailAddress)"})
        return response.json().get("user", {}).get("emailAddress")

    async def locate_sync_object(self) -> SyncObjectRef | None:
        response = await self._authorized(
            "GET",
            f"{DRIVE_API}/files",
            params={
                "q": f"name = '{self.object_name}' and trashed = false",
                "fields": "files(id, name)",
                "spaces": "drive",
            },
        )
        files = response.json().get("files") or []
        if not files:
            return None
        return SyncObjectRef(object_id=files[0]["id"], name=files[0]["name"])

    async def read_sync_object(self, ref: SyncObjectRef) -> list[Note]:
        response = await self._authorized(
            "GET", f"{DRIVE_API}/files/{ref.object_id}", params={"alt": "media"},
        )
        return notes_from_json(response.content)

    async def write_sync_object(self, notes: list[Note]) -> None:
        ref = await self.locate_sync_object()
        if ref is None:
            response = await self._authorized(
                "POST",
                f"{DRIVE_API}/files",
                params={"fields": "id"},
                json={"name": self.object_name, "mimeType": "application/json"},
            )
            ref = SyncObjectRef(object_id=response.json()["id"], name=self.object_name)
            logger.info("Sync file created", extra={"file_id": ref.object_id})

        await self._authorized(
            "PATCH",
            f"{UPLOAD_API}/files/{ref.object_id}",
            params={"uploadType": "media"},
            content=notes_to_json(notes),
            headers={"Content-Type": "application/json"},
        )
        logger.debug("Sync file uploaded", extra={"file_id": ref.object_id, "count": len(notes)})

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _authorized(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._access_token is None:
            raise AuthenticationError("Not signed in to Google Drive")
        headers = {**kwargs.pop("headers", {}), "Authorization": f"Bearer {self._access_token}"}
        response = await self._send(method, url, headers=headers, **kwargs)

        if response.status_code == 401:
            self._access_token = None
            raise AuthenticationError("Google Drive session expired")
        if response.status_code >= 400:
            raise ExternalServiceError(
                f"Google Drive returned HTTP {response.status_code} for {method} {url}",
                status_code=response.status_code,
            )
        return response

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send one request through circuit breaker and retry."""
        client = self._get_client()

        async def _attempt() -> httpx.Response:
            async for attempt in remote_retrying(
                self._max_attempts,
                self._backoff_multiplier,
                self._backoff_max,
                (httpx.TransportError, _RetryableResponse),
            ):
                with attempt:
                    response = await client.request(method, url, **kwargs)
                    if response.status_code in RETRYABLE_STATUS:
                        raise _RetryableResponse(response)
                    return response

        try:
            return await self._breaker.call_async(_attempt)
        except _RetryableResponse as e:
            return e.response
        except aiobreaker.CircuitBreakerError as e:
            raise ExternalServiceError("Google Drive is temporarily unavailable") from e
        except httpx.TransportError as e:
            raise ExternalServiceError(f"Google Drive unreachable: {e}") from e


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
