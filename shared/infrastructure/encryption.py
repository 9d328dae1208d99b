"""
Encryption utilities

Symmetric (Fernet) encryption for personal data at rest, such as the
street address a client gives when the freelancer travels to them.
"""

import base64
import hashlib
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings


class DecryptionError(Exception):
    """Raised when a stored value cannot be decrypted with the current key."""


def _derive_key(raw: str) -> bytes:
    # Any passphrase is stretched to the 32 url-safe bytes Fernet expects.
    return base64.urlsafe_b64encode(hashlib.sha256(raw.encode()).digest())


@lru_cache(maxsize=4)
def _fernet_for(raw_key: str) -> Fernet:
    return Fernet(_derive_key(raw_key))


def get_fernet() -> Fernet:
    key = getattr(settings, 'ENCRYPTION_KEY', None)
    if not key:
        raise ValueError(
            "ENCRYPTION_KEY not configured in settings. "
            "Generate one with: python -c 'from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())'"
        )
    return _fernet_for(key)


def encrypt_string(plaintext: str) -> str:
    if not plaintext:
        return ''
    return get_fernet().encrypt(plaintext.encode()).decode()


def decrypt_string(token: str) -> str:
    if not token:
        return ''
    try:
        return get_fernet().decrypt(token.encode()).decode()
    except InvalidToken as exc:
        raise DecryptionError("Stored value was encrypted with a different key") from exc
