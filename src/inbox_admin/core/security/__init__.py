"""Security utilities - crypto, two-factor and HTTP headers.

Re-exports all security-related functions for convenience.
"""

from src.inbox_admin.core.security.crypto import (
    ACCESS_TOKEN_TYPE,
    DUMMY_PASSWORD_HASH,
    TWO_FACTOR_SETUP_TOKEN_TYPE,
    create_access_token,
    decode_token,
    generate_token,
    hash_password,
    hash_token,
    verify_password,
)
from src.inbox_admin.core.security.headers import SecurityHeadersMiddleware
from src.inbox_admin.core.security.two_factor import (
    BACKUP_CODE_COUNT,
    TwoFactorSecret,
    generate_backup_codes,
    generate_secret,
    hash_backup_code,
    is_totp_code,
    match_backup_code,
    verify_code,
)

__all__ = [
    # Crypto
    "ACCESS_TOKEN_TYPE",
    "TWO_FACTOR_SETUP_TOKEN_TYPE",
    "DUMMY_PASSWORD_HASH",
    "create_access_token",
    "decode_token",
    "generate_token",
    "hash_password",
    "hash_token",
    "verify_password",
    # Two-factor
    "BACKUP_CODE_COUNT",
    "TwoFactorSecret",
    "generate_backup_codes",
    "generate_secret",
    "hash_backup_code",
    "is_totp_code",
    "match_backup_code",
    "verify_code",
    # Middleware
    "SecurityHeadersMiddleware",
]
