#!/usr/bin/env python3
"""
Secret generation for the Nhost stack.

Values are returned only; persisting or printing them is the caller's job.
"""

from __future__ import annotations

import base64
import secrets
from dataclasses import dataclass

PASSWORD_LENGTH = 25
ACCESS_KEY_LENGTH = 16
SECRET_KEY_LENGTH = 25
JWT_KEY_BYTES = 32
JWT_ALGORITHM = "HS256"
JWT_ISSUER = "hasura-auth"


@dataclass(frozen=True)
class SecretBundle:
    postgres_password: str
    graphql_admin_secret: str
    jwt_secret: str
    storage_access_key: str
    storage_secret_key: str

    def as_env(self) -> dict[str, str]:
        return {
            "POSTGRES_PASSWORD": self.postgres_password,
            "GRAPHQL_ADMIN_SECRET": self.graphql_admin_secret,
            "JWT_SECRET": self.jwt_secret,
            "STORAGE_ACCESS_KEY": self.storage_access_key,
            "STORAGE_SECRET_KEY": self.storage_secret_key,
        }


def gen_alnum(length: int, nbytes: int = 32) -> str:
    """
    Base64-encode random bytes, drop ``=+/`` and truncate to ``length``.

    Args:
        length: Target length of the returned string
        nbytes: Random bytes drawn per attempt

    Returns:
        Alphanumeric string of exactly ``length`` characters

    Raises:
        ValueError: If the requested length cannot be produced from ``nbytes``
    """
    if length < 1:
        raise ValueError("Secret length must be at least 1")
    if length > (nbytes * 4) // 3:
        raise ValueError(f"Cannot derive {length} characters from {nbytes} random bytes")

    while True:
        encoded = base64.b64encode(secrets.token_bytes(nbytes)).decode("ascii")
        cleaned = encoded.translate(str.maketrans("", "", "=+/"))
        # Stripping can leave fewer characters than requested; draw again.
        if len(cleaned) >= length:
            return cleaned[:length]


def build_jwt_secret(key_hex: str) -> str:
    """Signing-key descriptor shared by hasura-auth and the GraphQL engine."""
    return f'{{"type":"{JWT_ALGORITHM}", "key":"{key_hex}","issuer":"{JWT_ISSUER}"}}'


def generate_secrets() -> SecretBundle:
    return SecretBundle(
        postgres_password=gen_alnum(PASSWORD_LENGTH, nbytes=32),
        graphql_admin_secret=gen_alnum(PASSWORD_LENGTH, nbytes=32),
        jwt_secret=build_jwt_secret(secrets.token_hex(JWT_KEY_BYTES)),
        storage_access_key=gen_alnum(ACCESS_KEY_LENGTH, nbytes=20),
        storage_secret_key=gen_alnum(SECRET_KEY_LENGTH, nbytes=32),
    )
