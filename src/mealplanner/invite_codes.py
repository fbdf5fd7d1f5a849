"""Household invite codes."""

import secrets

# No O/0 or I/1, which are easy to confuse when read aloud
ALLOWED_CHARS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 8


def generate_invite_code() -> str:
    return "".join(secrets.choice(ALLOWED_CHARS) for _ in range(CODE_LENGTH))


def normalize_invite_code(code: str) -> str:
    return code.strip().upper()
