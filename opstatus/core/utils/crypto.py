"""Hashing and identifier helpers."""

import hashlib
import secrets
import string

OBJECT_ID_ALPHABET = string.ascii_letters + string.digits
OBJECT_ID_LENGTH = 10


def md5_hash(text: str) -> str:
    """Return the hex MD5 digest of a UTF-8 string. Not for security use."""
    return hashlib.md5(text.encode("utf-8"), usedforsecurity=False).hexdigest()


def new_object_id(length: int = OBJECT_ID_LENGTH) -> str:
    """Generate a random alphanumeric object id."""
    return "".join(secrets.choice(OBJECT_ID_ALPHABET) for _ in range(length))
