"""Authentication - API keys as the session provider's source of identity.

A user id is the truncated SHA-256 of the user's API key, so the plaintext key
is never stored. Requests carry the key as a bearer token.
"""

import hashlib
import logging
import secrets
from contextvars import ContextVar

from google.cloud import firestore

from ..core.models import User


logger = logging.getLogger(__name__)

# Custody documentation log key prefix
API_KEY_PREFIX = "cdl_"
MIN_API_KEY_LENGTH = 40
BEARER_PREFIX = "Bearer "

# Authenticated user for the current request, None when unauthenticated
current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)


def current_session_user() -> str | None:
    """Session provider backed by the request context.

    Returns:
        The user id set by the auth middleware, None when unauthenticated
    """
    return current_user_id.get()


def generate_api_key() -> str:
    """Generate a cryptographically secure API key.

    Returns:
        API key in format: cdl_<random_chars>
    """
    return f"{API_KEY_PREFIX}{secrets.token_urlsafe(32)}"


def hash_api_key(api_key: str) -> str:
    """Hash an API key to create a user_id.

    Uses SHA256 and truncates to 32 chars for the Firestore document ID.

    Args:
        api_key: The plaintext API key

    Returns:
        32-character hash to use as user_id
    """
    return hashlib.sha256(api_key.encode()).hexdigest()[:32]


def validate_api_key_format(api_key: str | None) -> bool:
    """Check if an API key has valid format, without touching the database.

    Args:
        api_key: The API key to validate

    Returns:
        True if the prefix and minimum length are right
    """
    if not api_key:
        return False
    return api_key.startswith(API_KEY_PREFIX) and len(api_key) >= MIN_API_KEY_LENGTH


def parse_bearer(header: str | None) -> str | None:
    """Pull the API key out of an Authorization header value.

    Args:
        header: Raw Authorization header, may be None

    Returns:
        The bearer token, None if the header is missing or not a bearer
    """
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    api_key = header[len(BEARER_PREFIX):].strip()
    return api_key or None


class AuthClient:
    """Client for API key authentication operations.

    Handles user registration and API key validation against Firestore.
    """

    def __init__(self, db: firestore.Client) -> None:
        """Initialize auth client.

        Args:
            db: Firestore client instance
        """
        self._db = db

    def _user_ref(self, user_id: str) -> firestore.DocumentReference:
        """Get reference to user document."""
        return self._db.collection("users").document(user_id)

    def register_user(self, email: str) -> tuple[str, str]:
        """Register a new user and generate their API key.

        Args:
            email: User's email address

        Returns:
            Tuple of (api_key, user_id). The api_key is only returned here.
        """
        logger.info("Registering new user: %s", email)

        api_key = generate_api_key()
        user_id = hash_api_key(api_key)
        user = User(email=email, api_key_hash=user_id)
        self._user_ref(user_id).set(user.model_dump(), merge=True)

        logger.info("User registered successfully: %s", user_id[:8])
        return api_key, user_id

    def validate_api_key(self, api_key: str | None) -> str | None:
        """Validate an API key and return the user_id if known.

        Args:
            api_key: The API key to validate

        Returns:
            user_id if valid, None if invalid, unknown or the lookup failed
        """
        if not validate_api_key_format(api_key):
            logger.warning("Invalid API key format")
            return None

        user_id = hash_api_key(api_key)
        try:
            if self._user_ref(user_id).get().exists:
                logger.debug("API key validated for user: %s", user_id[:8])
                return user_id
        except Exception as e:
            logger.error("Error validating API key: %s", str(e))
            return None

        logger.warning("API key not found in database")
        return None

    def authenticate(self, authorization: str | None) -> str | None:
        """Resolve an Authorization header to a user id.

        Args:
            authorization: Raw Authorization header value

        Returns:
            user_id for a known bearer key, None otherwise
        """
        api_key = parse_bearer(authorization)
        if api_key is None:
            return None
        return self.validate_api_key(api_key)
