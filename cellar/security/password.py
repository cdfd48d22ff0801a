import bcrypt

from cellar.config import PASSWORD_SALT_ROUNDS


def hash_password(password: str, rounds: int = PASSWORD_SALT_ROUNDS) -> str:
    """Hash a password with bcrypt at the configured cost factor."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def check_password(password: str, password_hash: str) -> bool:
    """Whether ``password`` matches a stored bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        return False
