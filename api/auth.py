"""Bearer token authentication using itsdangerous-signed user ids."""

from typing import Annotated

from fastapi import Header
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import config
from core.errors import AuthenticationError

TOKEN_SALT = "blackjack-auth"


class TokenSigner:
    """Sign and verify user tokens using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the signer with a secret key."""
        self._secret_key = secret_key or config.security.secret_key
        self._serializer = URLSafeTimedSerializer(self._secret_key, salt=TOKEN_SALT)

    def sign(self, user_id: str) -> str:
        """Create a signed token from a user ID."""
        return self._serializer.dumps(user_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract the user ID from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to token_max_age)

        Returns:
            The user ID if valid, None otherwise
        """
        max_age = max_age or config.security.token_max_age
        try:
            user_id = self._serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return None
        if not isinstance(user_id, str) or not user_id:
            return None
        return user_id


# Global signer instance
_token_signer: TokenSigner | None = None


def get_token_signer() -> TokenSigner:
    """Get or create the token signer."""
    global _token_signer
    if _token_signer is None:
        _token_signer = TokenSigner()
    return _token_signer


def issue_token(user_id: str) -> str:
    """Issue a bearer token for a user (used by the login service and tests)."""
    return get_token_signer().sign(user_id)


async def get_current_user_id(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """FastAPI dependency resolving the caller from an Authorization header."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError()

    user_id = get_token_signer().unsign(authorization.removeprefix("Bearer ").strip())
    if user_id is None:
        raise AuthenticationError("Invalid or expired token")
    return user_id
