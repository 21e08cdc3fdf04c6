import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


class JWTAuthAdapter:
    """
    Argon2 password hashing (passlib) and HS256 bearer tokens (python-jose).

    Tokens carry the user id as ``sub`` and nothing else; the caller is
    re-read from the user store on every request.
    """

    def __init__(self, secret_key: str) -> None:
        self.secret_key = secret_key

    def hash_password(self, password: str) -> str:
        hashed: str = pwd_context.hash(password)
        return hashed

    def verify_password(self, plain: str, hashed: str) -> bool:
        try:
            result: bool = pwd_context.verify(plain, hashed)
        except ValueError:
            # Stored value is not a hash this context knows
            logger.warning("Unrecognised password hash format")
            return False
        return result

    def create_token(
        self, user_id: UUID, ttl_minutes: int, now_utc: datetime | None = None
    ) -> str:
        issued = now_utc if now_utc is not None else datetime.now(UTC)
        claims = {"sub": str(user_id), "exp": issued + timedelta(minutes=ttl_minutes)}
        token: str = jwt.encode(claims, self.secret_key, algorithm=ALGORITHM)
        return token

    def validate_token(self, token: str) -> UUID | None:
        """User id of a valid, unexpired token."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except JWTError:
            return None
        try:
            return UUID(str(payload.get("sub")))
        except ValueError:
            return None
