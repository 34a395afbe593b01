from __future__ import annotations

import logging
from typing import Optional, Tuple

from .errors import MissingCredentials, UserAlreadyExists, UserNotFound
from .passwords import PasswordHasher
from .repositories import Store
from .tokens import TokenService

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class AccountService:
    """
    Registration and credential checks.

    Both operations validate input before touching the store and return a
    freshly issued session token on success.
    """

    def __init__(self, store: Store, tokens: TokenService, hasher: PasswordHasher) -> None:
        self.store = store
        self.tokens = tokens
        self.hasher = hasher

    @staticmethod
    def _require(email: Optional[str], password: Optional[str]) -> Tuple[str, str]:
        if not email or not password:
            raise MissingCredentials()
        return email, password

    def signup(self, email: Optional[str], password: Optional[str]) -> str:
        """
        Register a new user and return a session token.

        Raises:
            MissingCredentials: email or password absent/empty.
            UserAlreadyExists: the email is already registered.
        """
        email, password = self._require(email, password)

        if self.store.find_user(email) is not None:
            logger.info("Signup rejected, email already registered: %s", email)
            raise UserAlreadyExists()

        if not self.store.insert_user(email, self.hasher.hash(password)):
            # Lost a race against a concurrent signup for the same email
            logger.info("Signup rejected by unique constraint: %s", email)
            raise UserAlreadyExists()

        logger.info("User registered: %s", email)
        return self.tokens.issue(email)

    def login(self, email: Optional[str], password: Optional[str]) -> str:
        """
        Check credentials and return a session token.

        Raises:
            MissingCredentials: email or password absent/empty.
            UserNotFound: unknown email or wrong password.
        """
        email, password = self._require(email, password)

        user = self.store.find_user(email)
        if user is None or not self.hasher.verify(password, user["password_hash"]):
            logger.info("Login failed for %s", email)
            raise UserNotFound()

        logger.info("User logged in: %s", email)
        return self.tokens.issue(email)
