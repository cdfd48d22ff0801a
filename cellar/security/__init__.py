from .jwt import generate_token, decode_token, validate_token
from .password import hash_password, check_password

__all__ = [
    "generate_token",
    "decode_token",
    "validate_token",
    "hash_password",
    "check_password"
]
