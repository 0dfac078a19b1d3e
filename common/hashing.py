"""Provides SHA-256 fingerprint calculation and verification helpers."""

import hashlib
import string

from common.constants import FINGERPRINT_HEX_LENGTH
from common.types import Fingerprint

_HEX_DIGITS = frozenset(string.hexdigits.lower())


def compute_fingerprint(data: bytes) -> Fingerprint:
    """
    Compute the content fingerprint of a block.

    Args:
        data: Block bytes (may be empty)

    Returns:
        Lowercase hexadecimal SHA-256 digest
    """
    return Fingerprint(hashlib.sha256(data).hexdigest())


def verify_fingerprint(data: bytes, expected: str) -> bool:
    """
    Verify that data matches an expected fingerprint.

    Args:
        data: Bytes to verify
        expected: Expected fingerprint (hex string)

    Returns:
        True if fingerprint matches, False otherwise
    """
    return compute_fingerprint(data) == expected


def is_valid_fingerprint(value: str) -> bool:
    """Check that value looks like a fingerprint produced by compute_fingerprint."""
    return (
        isinstance(value, str)
        and len(value) == FINGERPRINT_HEX_LENGTH
        and set(value) <= _HEX_DIGITS
    )
