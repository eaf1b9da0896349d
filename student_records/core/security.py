# /student_records/core/security.py

"""
Password hashing utilities.

Passwords are stored as salted PBKDF2-SHA256 hashes produced by
`werkzeug.security`. The hash string embeds the method, iteration count and
salt, so `verify_password` needs nothing but the stored value. Werkzeug compares
digests with `hmac.compare_digest`, which keeps verification constant-time.
"""

from werkzeug.security import generate_password_hash, check_password_hash

PASSWORD_HASH_METHOD = "pbkdf2:sha256:260000"
SALT_LENGTH = 16


def hash_password(password: str) -> str:
    """Returns a salted one-way hash of `password`. Two calls never return the same string."""
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD, salt_length=SALT_LENGTH)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """True only when `plain_password` is the exact input that produced `password_hash`."""
    if not password_hash:
        return False
    try:
        return check_password_hash(password_hash, plain_password)
    except ValueError:
        # A value that is not a werkzeug hash at all (e.g. a legacy plain-text row).
        return False
