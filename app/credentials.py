"""One-way salted password hashing."""
from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    """Return a salted hash of *password* (method and salt are embedded)."""
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Return ``True`` only if *password* produced *password_hash*.

    Malformed or empty hashes simply fail verification.
    """
    if not password_hash:
        return False
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        return False
