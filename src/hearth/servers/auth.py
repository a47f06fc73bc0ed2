"""
Authentication

Bots and the /events endpoints need an authenticated caller. Who the caller
is comes from an AuthProvider; the default trusts an upstream gateway that
has already authenticated the session and forwards the identity in headers.
"""

import logging
import secrets
from abc import ABC, abstractmethod
from collections.abc import Mapping

from hearth.core.errors import AuthError
from hearth.core.models import AuthenticatedUser

logger = logging.getLogger(__name__)

USER_ID_HEADER = "x-user-id"
USER_NAME_HEADER = "x-user-name"
USER_EMAIL_HEADER = "x-user-email"


class AuthProvider(ABC):
    """Resolves request headers to the calling user."""

    @abstractmethod
    def authenticate(self, headers: Mapping[str, str]) -> AuthenticatedUser:
        """
        Identify the caller.

        Raises:
            AuthError: If there is no valid session
        """
        pass


class HeaderAuthProvider(AuthProvider):
    """
    Identity from gateway headers.

    X-User-Id is required; X-User-Name and X-User-Email are optional. When
    ``api_token`` is set the request must also carry
    ``Authorization: Bearer <api_token>``.
    """

    def __init__(self, api_token: str = "") -> None:
        self._api_token = api_token

    def authenticate(self, headers: Mapping[str, str]) -> AuthenticatedUser:
        if self._api_token and not self._token_matches(headers.get("authorization", "")):
            logger.warning("Rejected request with missing or invalid bearer token")
            raise AuthError("Invalid or missing bearer token")

        user_id = (headers.get(USER_ID_HEADER) or "").strip()
        if not user_id:
            raise AuthError("No authenticated session")

        return AuthenticatedUser(
            id=user_id,
            name=headers.get(USER_NAME_HEADER) or "User",
            email=headers.get(USER_EMAIL_HEADER) or None,
        )

    def _token_matches(self, authorization: str) -> bool:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return False
        return secrets.compare_digest(token.strip(), self._api_token)
