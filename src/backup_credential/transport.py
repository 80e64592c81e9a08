"""
HTTP collaborators for the credential chain using httpx.

``HttpAuthorizationExchange`` performs the single authorization request the
remote fetcher needs. ``CredentialAuth`` plugs a resolver into an
``httpx.AsyncClient`` so outbound vault calls carry the bearer token and a
rejected token is invalidated.
"""
import logging
from typing import Any, AsyncGenerator, Dict, Generator, Optional

import httpx

from .errors import AuthorizationRejectedError, BackupCredentialError
from .resolver import CredentialResolver
from .types import AuthorizationExchange

logger = logging.getLogger(__name__)

DEFAULT_AUTHORIZATION_PATH = "/api/v2/backup/credential"
DEFAULT_TIMEOUT_SECONDS = 30.0
REJECTED_STATUS_CODES = frozenset({401, 403})


class HttpAuthorizationExchange(AuthorizationExchange):
    """
    Asks the target node to issue a backup token over HTTP.

    POSTs the caller DID, target DID and target host as JSON to
    ``{target_address}{authorization_path}`` and reads ``token`` from the
    JSON reply. 401/403 raise AuthorizationRejectedError, a reply that is not
    JSON raises BackupCredentialError, and other HTTP and transport errors
    propagate as httpx errors.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        authorization_path: str = DEFAULT_AUTHORIZATION_PATH,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_did: Optional[str] = None,
    ) -> None:
        self._client = client
        self._authorization_path = "/" + authorization_path.lstrip("/")
        self._timeout_seconds = timeout_seconds
        self._user_did = user_did

    def build_url(self, target_address: str) -> str:
        return target_address.rstrip("/") + self._authorization_path

    def build_payload(self, caller_did: str, target_did: str, target_address: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "source_did": caller_did,
            "target_did": target_did,
            "target_host": target_address,
        }
        if self._user_did:
            payload["user_did"] = self._user_did
        return payload

    async def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, json=payload)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout_seconds)) as client:
            return await client.post(url, json=payload)

    async def request_authorization(
        self, caller_did: str, target_did: str, target_address: str
    ) -> str:
        url = self.build_url(target_address)
        logger.debug(
            f"HttpAuthorizationExchange.request_authorization: url={url}, "
            f"caller={caller_did}, target={target_did}"
        )
        response = await self._post(url, self.build_payload(caller_did, target_did, target_address))

        if response.status_code in REJECTED_STATUS_CODES:
            raise AuthorizationRejectedError(
                f"Target '{target_did}' rejected authorization (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise BackupCredentialError(
                f"Target '{target_did}' returned a non-JSON authorization response"
            ) from e

        token = data.get("token") if isinstance(data, dict) else None
        if not token or not isinstance(token, str):
            raise AuthorizationRejectedError(
                f"Target '{target_did}' returned no token",
                status_code=response.status_code,
            )
        return token


class CredentialAuth(httpx.Auth):
    """
    httpx auth flow backed by a CredentialResolver.

    Sets ``Authorization: Bearer <token>`` on each request. When the server
    answers 401 the token it sent is handed to ``invalidate_token``, so the
    next request re-runs the chain unless that token was already replaced.
    The rejected response itself is returned unchanged, with no retry.
    """

    def __init__(self, resolver: CredentialResolver) -> None:
        self._resolver = resolver

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("CredentialAuth requires an httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self._resolver.get_token()
        request.headers["Authorization"] = f"Bearer {token}"
        response = yield request
        if response.status_code == 401:
            logger.info(
                f"CredentialAuth.async_auth_flow: Token for '{self._resolver.key}' "
                f"rejected by {request.url.host}, invalidating"
            )
            await self._resolver.invalidate_token(token)
