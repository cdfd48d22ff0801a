from datetime import timedelta
from typing import Iterable, Any

import jwt
from jwt.exceptions import InvalidIssuerError, InvalidTokenError

from cellar.utils import aware_utcnow
from cellar.config import JWT_SECRET_KEY, JWT_ALGORITHM, JWT_ISSUER, JWT_LIFETIME_DAYS


def generate_token(user_id: str, roles: Iterable[str] = (), permissions: Iterable[str] = ()) -> str:
    """Generate a signed JWT for an authenticated user.

    Args:
        user_id:
            Identifier of the authenticated user.
        roles:
            Role names granted to the user.
        permissions:
            Permission names granted through those roles.

    Returns:
        Encoded JWT string.
    """
    return encode_token(create_token_payload(user_id, roles, permissions))


def create_token_payload(user_id: str, roles: Iterable[str] = (), permissions: Iterable[str] = ()) -> dict[str, Any]:
    """Create a JWT payload for authentication.

    Includes standard claims:
        - ``sub``: Subject (user ID)
        - ``iss``: Issuer (``JWT_ISSUER``)
        - ``iat``: Issued-at timestamp
        - ``exp``: Expiration timestamp

    plus ``roles`` and ``permissions`` as sorted, de-duplicated lists.
    """
    now = aware_utcnow()

    return {
        "sub": str(user_id),
        "roles": sorted(set(roles)),
        "permissions": sorted(set(permissions)),
        "iss": JWT_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=JWT_LIFETIME_DAYS)).timestamp())
    }


def encode_token(payload: dict[str, Any]) -> str:
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT.

    Raises:
        InvalidTokenError:
            If signature or structure is invalid.
        ExpiredSignatureError:
            If token has expired.
    """
    return jwt.decode(token, key=JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])


def validate_token(token: str) -> dict[str, Any]:
    """Validate a JWT and its issuer.

    Raises:
        ExpiredSignatureError:
            If token is expired.
        InvalidTokenError:
            If validation fails.
    """
    payload = decode_token(token)

    if payload.get("iss") != JWT_ISSUER:
        raise InvalidIssuerError("Invalid token issuer")

    if not payload.get("sub"):
        raise InvalidTokenError("Token has no subject")

    payload.setdefault("roles", [])
    payload.setdefault("permissions", [])

    return payload
