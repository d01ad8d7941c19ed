"""Identity resolution: bearer JWT -> Principal."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from src.models.principal import Principal
from src.utils.errors import UnauthenticatedError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise UnauthenticatedError("No token, authorization denied")
    if not authorization.startswith(BEARER_PREFIX):
        raise UnauthenticatedError("Token is not valid")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthenticatedError("No token, authorization denied")
    return token


class IdentityResolver:
    """Verifies HS256 bearer tokens and loads the caller's public user record."""

    def __init__(self, store, secret: str, algorithm: str = "HS256", expires_in_seconds: int = 7 * 24 * 3600):
        self.store = store
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in_seconds = expires_in_seconds

    def issue_token(self, user_id: str, expires_in_seconds: Optional[int] = None) -> str:
        """Mint a token for ``user_id`` signed with the shared secret."""
        now = datetime.now(timezone.utc)
        lifetime = expires_in_seconds if expires_in_seconds is not None else self.expires_in_seconds
        claims = {
            "userId": user_id,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=lifetime)).timestamp()),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def decode_subject(self, token: str) -> str:
        """Verify signature and expiry; return the subject user id."""
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise UnauthenticatedError("Token is not valid")
        except JWTError as e:
            logger.info("Rejected invalid token", error=str(e))
            raise UnauthenticatedError("Token is not valid")

        subject = claims.get("userId") or claims.get("sub")
        if not subject or not isinstance(subject, str):
            raise UnauthenticatedError("Token is not valid")
        return subject

    async def resolve(self, token: str) -> Principal:
        """Resolve a raw token to a Principal, raising UnauthenticatedError."""
        user_id = self.decode_subject(token)

        user = await self.store.get_user(user_id)
        if not user:
            # Deleted account, or a token minted for a user that never existed
            logger.warning("Token subject has no user record", user_id=mask_user_id(user_id))
            raise UnauthenticatedError("Token is not valid")

        try:
            return Principal.model_validate(user)
        except ValidationError:
            logger.warning("User record has no usable role", user_id=mask_user_id(user_id))
            raise UnauthenticatedError("Token is not valid")

    async def resolve_header(self, authorization: Optional[str]) -> Principal:
        """Resolve an ``Authorization`` header value."""
        return await self.resolve(extract_bearer_token(authorization))
