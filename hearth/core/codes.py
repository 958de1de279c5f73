"""Join-code generation — pure, no I/O.

Uniqueness is not guaranteed here; HouseholdRegistry checks and retries.
"""

from __future__ import annotations

import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


def generate_code(length: int = CODE_LENGTH) -> str:
    """Return `length` characters drawn uniformly from A-Z0-9."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(raw: str) -> str:
    """Trim and uppercase a user-typed code."""
    return raw.strip().upper()


def is_valid_code(code: str, length: int = CODE_LENGTH) -> bool:
    return len(code) == length and all(c in CODE_ALPHABET for c in code)
