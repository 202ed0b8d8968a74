import hashlib
import hmac
import logging
import secrets
from datetime import timedelta
from typing import Optional, Tuple

from auction_server import config
from auction_server.errors import Conflict, Unauthorized
from auction_server.models import Session, User, utcnow

logger = logging.getLogger(__name__)


def hash_password(password: str, salt: Optional[bytes] = None,
                  iterations: int = config.PASSWORD_HASH_ITERATIONS) -> str:
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)
    return f"pbkdf2_sha256${iterations}${salt.hex()}${digest.hex()}"


def check_password(password: str, encoded: str) -> bool:
    try:
        _, iterations, salt, expected = encoded.split("$")
        digest = hashlib.pbkdf2_hmac("sha256", password.encode(),
                                     bytes.fromhex(salt), int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), expected)


class Authenticator:
    """Registration, login and bearer-token verification.

    Tokens are opaque random strings bound to a user id in the store; the rest
    of the core only ever sees the verified user.
    """

    def __init__(self, store, clock=utcnow, token_ttl: int = config.TOKEN_TTL_SECONDS,
                 hash_iterations: int = config.PASSWORD_HASH_ITERATIONS):
        self.store = store
        self.clock = clock
        self.token_ttl = timedelta(seconds=token_ttl)
        self.hash_iterations = hash_iterations

    def register(self, name: str, email: str, password: str,
                 profile_picture: Optional[str] = None) -> Tuple[User, str]:
        email = email.strip().lower()
        if self.store.find_user_by_email(email):
            raise Conflict("User already exists")

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password, iterations=self.hash_iterations),
            profile_picture=profile_picture,
        )
        self.store.add_user(user)
        logger.info("Registered user %s", user.id)
        return user, self.issue_token(user.id)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        user = self.store.find_user_by_email(email)
        if user is None or not check_password(password, user.password_hash):
            logger.debug("Failed login attempt")
            raise Unauthorized("Invalid email or password")
        return user, self.issue_token(user.id)

    def issue_token(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        self.store.add_session(Session(
            token=token,
            user_id=user_id,
            expires_at=self.clock() + self.token_ttl,
        ))
        return token

    def verify(self, token: Optional[str]) -> User:
        if not token:
            raise Unauthorized("Not authorized, no token")

        session = self.store.get_session(token)
        if session is None:
            raise Unauthorized("Not authorized, token failed")
        if session.expires_at <= self.clock():
            self.store.delete_session(token)
            raise Unauthorized("Not authorized, token expired")

        user = self.store.get_user(session.user_id)
        if user is None:
            raise Unauthorized("Not authorized, token failed")
        return user
