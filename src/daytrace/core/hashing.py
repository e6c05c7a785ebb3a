"""Deterministic hashing for event identifiers and result fingerprints."""

from __future__ import annotations

import hashlib

_HASH_TRUNCATION = 12


def stable_hash(payload: str) -> str:
    """Deterministic SHA-256 of *payload*, truncated to 12 hex chars.

    Used to derive ids for events that arrive without one, so the same
    observation always maps to the same id across pipeline runs.

    Args:
        payload: Arbitrary string to hash.

    Returns:
        First 12 hexadecimal characters of the SHA-256 digest.
    """
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return digest[:_HASH_TRUNCATION]


def fingerprint(document: str) -> str:
    """Full SHA-256 hex digest of a serialized result document.

    Two pipeline runs over identical inputs produce identical
    fingerprints; the CLI prints it so repeated exports can be compared.
    """
    return hashlib.sha256(document.encode("utf-8")).hexdigest()
