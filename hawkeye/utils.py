"""Hashing and byte comparison helpers."""

import hashlib


def calculate_sha256(data: bytes) -> str:
    """Return the hex-encoded SHA-256 digest of data."""
    return hashlib.sha256(data).hexdigest()


def calculate_sha512(data: bytes) -> str:
    """Return the hex-encoded SHA-512 digest of data."""
    return hashlib.sha512(data).hexdigest()


def byte_slice_equal(a: bytes | None, b: bytes | None) -> bool:
    """Compare two byte sequences; None counts as empty."""
    return bytes(a or b"") == bytes(b or b"")