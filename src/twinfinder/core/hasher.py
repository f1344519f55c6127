"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Implements file sampling and hashing utilities with pluggable hash algorithms.

Boundary samples are returned raw (the bytes themselves are the grouping key),
full-content digests are xxHash64 hex strings bounded by a read ceiling.
Every read failure is reported as None so callers can drop the file instead of crashing.
"""

import logging
import os
from typing import Optional

import xxhash

from twinfinder.core.interfaces import Hasher, HashAlgorithm

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024 * 1024


# Use the same way to implement and use any other hashing algorithm
class XXHashAlgorithmImpl(HashAlgorithm):
    def new(self):
        return xxhash.xxh64()


class HasherImpl(Hasher):
    """
    A hasher implementation that supports any algorithm via the HashAlgorithm interface.
    """

    def __init__(self, algorithm: Optional[HashAlgorithm] = None):
        self.algorithm = algorithm or XXHashAlgorithmImpl()

    @staticmethod
    def read_sample(path: str, offset: int, length: int) -> Optional[bytes]:
        """
        Reads up to `length` bytes starting at `offset`.
        A short read is returned as-is; a failed open/seek/read returns None.
        """
        try:
            with open(path, 'rb') as f:
                f.seek(max(0, offset))
                return f.read(length)
        except OSError as e:
            logger.debug(f"Could not sample {path} at offset {offset}: {e}")
            return None

    def compute_digest(self, path: str, max_bytes: int) -> Optional[str]:
        """
        Hashes at most `max_bytes` of the file, streamed in chunks.
        Files larger than the ceiling also feed their size into the digest,
        so two truncated files of different sizes never share a digest.
        """
        digest = self.algorithm.new()
        try:
            with open(path, 'rb') as f:
                size = os.fstat(f.fileno()).st_size
                remaining = max_bytes
                while remaining > 0:
                    chunk = f.read(min(READ_CHUNK_SIZE, remaining))
                    if not chunk:
                        break
                    digest.update(chunk)
                    remaining -= len(chunk)
        except OSError as e:
            logger.debug(f"Could not read {path}: {e}")
            return None

        if size > max_bytes:
            digest.update(size.to_bytes(8, "little"))
        return digest.hexdigest()
