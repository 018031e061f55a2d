"""
Password hashing with argon2id.
"""

import logging

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from argon2.low_level import Type

logger = logging.getLogger(__name__)

_hasher = PasswordHasher(time_cost=2, memory_cost=102400, parallelism=8, hash_len=32, type=Type.ID)


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(encoded_hash: str, password: str) -> bool:
    if not encoded_hash:
        return False
    try:
        return _hasher.verify(encoded_hash, password)
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError) as e:
        logger.warning(f"Password hash could not be verified: {e}")
        return False


def needs_rehash(encoded_hash: str) -> bool:
    try:
        return _hasher.check_needs_rehash(encoded_hash)
    except InvalidHashError:
        return True
