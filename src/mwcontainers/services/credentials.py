"""Admin credential generation."""

import secrets
import string

from mwcontainers.constants import ADMIN_PASSWORD_LENGTH

ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = ADMIN_PASSWORD_LENGTH) -> str:
    if length < 1:
        raise ValueError("Password length must be positive.")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
