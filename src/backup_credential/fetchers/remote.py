"""
Terminal fetcher that runs the authorization handshake against the target node.
"""
import logging

from ..errors import CredentialAuthorizationError
from ..types import AuthorizationContext, AuthorizationExchange, CodeFetcher, IdentityResolver
from ..utils import mask_sensitive

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to create backup credential."


class RemoteCredentialFetcher(CodeFetcher):
    """
    Always goes to the network.

    The local service identity is resolved on every fetch, then presented to
    the target node together with the target DID and address. Any failure is
    raised as CredentialAuthorizationError; retrying is left to the caller.
    """

    def __init__(
        self,
        identity_resolver: IdentityResolver,
        exchange: AuthorizationExchange,
        context: AuthorizationContext,
    ) -> None:
        self._identity_resolver = identity_resolver
        self._exchange = exchange
        self._context = context

    @property
    def context(self) -> AuthorizationContext:
        return self._context

    async def fetch(self) -> str:
        target_did = self._context.target_service_did
        logger.debug(f"RemoteCredentialFetcher.fetch: Requesting token for '{target_did}'")
        try:
            service_did = await self._identity_resolver.resolve_own_service_identity()
            token = await self._exchange.request_authorization(
                service_did, target_did, self._context.target_address
            )
        except Exception as e:
            logger.debug(f"RemoteCredentialFetcher.fetch: Handshake with '{target_did}' failed: {e}")
            raise CredentialAuthorizationError(FAILURE_MESSAGE, cause=e) from e

        if not token or not isinstance(token, str):
            logger.debug(
                f"RemoteCredentialFetcher.fetch: Target '{target_did}' returned an empty token"
            )
            raise CredentialAuthorizationError(FAILURE_MESSAGE)

        logger.info(
            f"RemoteCredentialFetcher.fetch: Obtained token for '{target_did}' "
            f"({mask_sensitive(token)})"
        )
        return token

    async def invalidate(self) -> None:
        """Nothing is cached at this tier."""
        logger.debug(
            f"RemoteCredentialFetcher.invalidate: No cached state for "
            f"'{self._context.target_service_did}'"
        )
