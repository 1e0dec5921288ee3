"""Scalable Bloom filters built from chains of sliced, value-typed Bloom filters."""
from .bitvector import BitVector
from .exceptions import (BloomError, IndexOutOfRange, InvalidParameters, InvalidSize,
                         MalformedState)
from .pybloom import BloomFilter, ScalableBloomFilter, default_hash

__all__ = [
    'BitVector',
    'BloomError',
    'BloomFilter',
    'IndexOutOfRange',
    'InvalidParameters',
    'InvalidSize',
    'MalformedState',
    'ScalableBloomFilter',
    'default_hash',
]
