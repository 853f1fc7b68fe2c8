"""Password hashing and signed access tokens."""

import logging

import bcrypt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from src.core.config import Settings, constants
from src.core.errors import UnauthenticatedError
from src.domain.user import CurrentUser, UserRole


logger = logging.getLogger(__name__)


def _password_bytes(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes
    return password.encode("utf-8")[: constants.PASSWORD_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt. Salt and cost factor are embedded in the result."""
    salt = bcrypt.gensalt(rounds=constants.PASSWORD_HASH_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Malformed password hash")
        return False


class TokenSigner:
    """Issues and verifies access tokens carrying a user id and role."""

    def __init__(self, settings: Settings) -> None:
        secret = settings.require_credential("secret_key", "Access token signing")
        self._serializer = URLSafeTimedSerializer(secret, salt=constants.ACCESS_TOKEN_SALT)
        self._max_age = settings.access_token_max_age_seconds

    def issue(self, *, user_id: str, role: UserRole) -> str:
        return self._serializer.dumps({"id": user_id, "role": str(role)})

    def verify(self, token: str) -> CurrentUser:
        """Decode a token, raising UnauthenticatedError if it is invalid, tampered or expired."""
        try:
            payload = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired as err:
            logger.warning("access_token_expired")
            raise UnauthenticatedError("Access token expired") from err
        except BadSignature as err:
            logger.warning("access_token_invalid")
            raise UnauthenticatedError("Invalid access token") from err

        try:
            return CurrentUser.model_validate(payload)
        except ValueError as err:
            logger.warning("access_token_malformed_payload")
            raise UnauthenticatedError("Invalid access token") from err
