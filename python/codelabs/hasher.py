"""
Hasher - Fast content fingerprints using xxHash.

Each metadata file's bytes are hashed as they are read during a scan, and
the per-file hashes are folded into one fingerprint for the whole scan.
Watch mode compares fingerprints to avoid rewriting an unchanged catalog
when an editor merely touches a file.
"""

from typing import Iterable, Tuple

import xxhash


def hash_bytes(data: bytes) -> str:
    """xxh64 hex digest of raw bytes."""
    return xxhash.xxh64(data).hexdigest()


def combine_hashes(items: Iterable[Tuple[str, str]]) -> str:
    """
    Fold (relative path, content hash) pairs into a single fingerprint.

    Pairs are sorted first, so traversal order never changes the result.
    Renaming a directory changes the fingerprint because URLs change too.
    """
    hasher = xxhash.xxh64()
    for rel_path, content_hash in sorted(items):
        hasher.update(rel_path.encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(content_hash.encode("ascii"))
        hasher.update(b"\n")
    return hasher.hexdigest()
