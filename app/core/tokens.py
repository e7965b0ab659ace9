"""
Confirmation token authority.

Deletion requests are approved by following a link that carries a random
token. Only the bcrypt hash of that token is ever stored; checking a
supplied token is a one-way comparison. All hashing of confirmation
tokens goes through this module.
"""

import logging
import secrets
from typing import Optional, Tuple

from passlib.context import CryptContext

logger = logging.getLogger(__name__)

# Cost 10 and the 2a ident keep hashes compatible with tokens and
# passwords already stored in the registry database.
ENCRYPTED_TOKEN_PREFIX = "$2a$10$"

_token_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=10,
    bcrypt__ident="2a",
)


class ConfirmationTokenAuthority:
    """Issues and verifies one-way-hashed confirmation tokens."""

    def __init__(self, token_bytes: int = 16):
        self.token_bytes = token_bytes

    def issue(self) -> Tuple[str, str]:
        """
        Generate a fresh token.

        Returns:
            (plaintext, hash). The plaintext is not recoverable from the hash,
            so the caller has to use it right away.
        """
        plaintext = secrets.token_hex(self.token_bytes)
        return plaintext, _token_context.hash(plaintext)

    def verify(self, hashed: Optional[str], plaintext: Optional[str]) -> bool:
        """Compare a supplied plaintext token against a stored hash."""
        if not hashed or not plaintext:
            return False
        if not self.looks_encrypted(hashed):
            logger.error("Refusing to verify token against a value that is not a bcrypt hash")
            return False
        try:
            return _token_context.verify(plaintext, hashed)
        except ValueError as e:
            logger.warning(f"Malformed confirmation token hash: {e}")
            return False

    @staticmethod
    def looks_encrypted(value: Optional[str]) -> bool:
        return bool(value) and value.startswith(ENCRYPTED_TOKEN_PREFIX)
