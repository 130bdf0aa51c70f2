"""TOTP two-factor primitives (RFC 6238) backed by pyotp, plus single-use backup codes."""

import re
import secrets
from dataclasses import dataclass

import pyotp

from src.inbox_admin.core.config import get_settings
from src.inbox_admin.core.security.crypto import hash_token

BACKUP_CODE_COUNT = 10
BACKUP_CODE_LENGTH = 10

_TOTP_CODE = re.compile(r"^\d{6}$")


@dataclass(frozen=True)
class TwoFactorSecret:
    secret: str
    otpauth_url: str


def generate_secret(label: str) -> TwoFactorSecret:
    """Create a new base32 secret and its provisioning URI for authenticator apps."""
    settings = get_settings()
    secret = pyotp.random_base32()
    otpauth_url = pyotp.TOTP(secret).provisioning_uri(
        name=label,
        issuer_name=settings.two_factor_issuer,
    )
    return TwoFactorSecret(secret=secret, otpauth_url=otpauth_url)


def verify_code(secret: str, code: str, window: int | None = None) -> bool:
    """Check a 6-digit code, tolerating `window` steps of clock drift either way."""
    if not code or not code.isdigit():
        return False
    if window is None:
        window = get_settings().two_factor_valid_window
    return pyotp.TOTP(secret).verify(code, valid_window=window)


def is_totp_code(code: str) -> bool:
    return bool(_TOTP_CODE.match(code))


def generate_backup_codes(count: int = BACKUP_CODE_COUNT) -> list[str]:
    """Plaintext recovery codes (uppercase hex). Shown to the user once."""
    return [secrets.token_hex(BACKUP_CODE_LENGTH // 2).upper() for _ in range(count)]


def hash_backup_code(code: str) -> str:
    """Storage form of a backup code; input is case and separator insensitive."""
    return hash_token(code.replace("-", "").replace(" ", "").upper())


def match_backup_code(code_hashes: list[str], code: str) -> str | None:
    """The stored hash ``code`` matches, or None."""
    hashed = hash_backup_code(code)
    for candidate in code_hashes:
        if secrets.compare_digest(candidate, hashed):
            return candidate
    return None
