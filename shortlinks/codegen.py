"""Short code generation and custom code format rules.

Candidates are drawn with nanoid, which reads ``os.urandom`` and masks bytes
onto the alphabet without modulo bias. The generator keeps no state between
calls and does not deduplicate: uniqueness is decided by the store.
"""

import re

from nanoid import generate

__all__ = [
    "ALPHABET",
    "CUSTOM_CODE_PATTERN",
    "CodeGenerator",
    "is_valid_custom_code",
]

ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
DEFAULT_CODE_LENGTH = 8

CUSTOM_CODE_MIN_LENGTH = 3
CUSTOM_CODE_MAX_LENGTH = 50
CUSTOM_CODE_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def is_valid_custom_code(code: str) -> bool:
    """Return True when ``code`` is 3-50 characters from ``[A-Za-z0-9_-]``."""
    if not isinstance(code, str):
        return False
    if not CUSTOM_CODE_MIN_LENGTH <= len(code) <= CUSTOM_CODE_MAX_LENGTH:
        return False
    return CUSTOM_CODE_PATTERN.fullmatch(code) is not None


class CodeGenerator:
    """Produces independent fixed-length candidates for the allocator."""

    def __init__(self, length: int = DEFAULT_CODE_LENGTH, alphabet: str = ALPHABET):
        assert length > 0, f"length must be positive, got {length!r}"
        assert len(set(alphabet)) >= 62, "alphabet must hold at least 62 distinct symbols"
        self.length = length
        self.alphabet = alphabet

    def next(self) -> str:
        return generate(self.alphabet, self.length)
