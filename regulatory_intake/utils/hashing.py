"""
Checksums for uploaded documents.
The document store may echo a SHA-256 digest, bare or as "sha256:<hex>".
"""

from __future__ import annotations

import hashlib


def document_checksum(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def checksum_matches(content: bytes, reported: str | None) -> bool:
    """True when ``reported`` is absent or equals the digest of ``content``."""
    if not reported:
        return True
    algorithm, _, digest = reported.strip().rpartition(":")
    if algorithm and algorithm.lower() != "sha256":
        # Other algorithms cannot be checked locally
        return True
    return digest.lower() == document_checksum(content)
