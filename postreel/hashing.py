"""Stable hashing for deterministic per-scene choices."""

import hashlib


def stable_hash(value: object) -> int:
    """Hash a scene identifier or prompt to a non-negative integer.

    SHA-256 over the UTF-8 encoding of str(value); the first 8 bytes of the
    digest are read as a big-endian unsigned integer. The result is the same
    on every interpreter and platform, unlike the builtin hash().
    """
    digest = hashlib.sha256(str(value).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")
