import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from werkzeug.security import generate_password_hash, check_password_hash


def generate_hash(password: str) -> str:
    return generate_password_hash(password)


def check_hash(password: str, hashed: str) -> bool:
    try:
        return check_password_hash(hashed, password)
    except (TypeError, ValueError):
        return False


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def hash_promo_code(code: str) -> str:
    """Deterministic one-way hash of an upper-cased promo code."""
    return hashlib.sha256(normalize_code(code).encode("utf-8")).hexdigest()


def code_hint(code: str) -> str:
    """Last two characters of the normalized code, for admin listings."""
    return normalize_code(code)[-2:]


class TokenCipher:
    """
    Symmetric encryption for payment-method tokens before they are persisted.
    A key that is not a valid Fernet key is stretched with SHA-256, so any
    secret string can be configured.
    """

    def __init__(self, key: str | bytes):
        if isinstance(key, str):
            key = key.encode("utf-8")
        try:
            self._fernet = Fernet(key)
        except ValueError:
            derived = base64.urlsafe_b64encode(hashlib.sha256(key).digest())
            self._fernet = Fernet(derived)

    def encrypt(self, token: str) -> str:
        return self._fernet.encrypt(token.encode("utf-8")).decode("ascii")

    def decrypt(self, blob: str) -> str | None:
        try:
            return self._fernet.decrypt(blob.encode("ascii")).decode("utf-8")
        except InvalidToken:
            return None
