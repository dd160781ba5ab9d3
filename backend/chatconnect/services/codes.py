"""
Invite code generation and normalization.
"""
import re
import secrets
import string

CODE_LENGTH = 6
CODE_ALPHABET = string.ascii_uppercase + string.digits
_CODE_RE = re.compile(rf"^[A-Z0-9]{{{CODE_LENGTH}}}$")


def generate_code() -> str:
    """Random 6-character uppercase alphanumeric code (36^6 possibilities)."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def normalize_code(code) -> str:
    """Trim and uppercase user input ("  x7k2qt " -> "X7K2QT")."""
    return (code or "").strip().upper()


def is_valid_code(code: str) -> bool:
    return bool(_CODE_RE.match(code or ""))
