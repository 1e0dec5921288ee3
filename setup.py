#!/usr/bin/env python3
"""Setup script for pybloom_chain - Scalable Bloom Filter implementation."""
from setuptools import setup

VERSION = "1.0.0"
DESCRIPTION = "Scalable Bloom filter: A Probabilistic data structure"
LONG_DESCRIPTION = """
A pure-Python Scalable Bloom filter built from chains of sliced Bloom filters.

Each internal filter splits its bits into k slices of 2^mb bits and derives
the k probe positions from at most two hashes by double hashing. When the
newest filter fills up, a larger filter with a tighter error probability is
prepended, so the overall false positive probability stays below the
configured bound however many elements are added.

This module provides two implementations:
- BloomFilter: Fixed-capacity filter for known dataset sizes
- ScalableBloomFilter: Dynamically growing filter that scales automatically

Features:
- Value semantics: add() returns a new filter, old references stay valid
- Copy-on-write bit storage shared between filter versions
- Fast xxHash default hash, pluggable hash functions
- Dictionary state and binary file serialization
"""

CLASSIFIERS = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "License :: OSI Approved :: MIT License",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.7",
    "Programming Language :: Python :: 3.8",
    "Programming Language :: Python :: 3.9",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3 :: Only",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Utilities",
]

setup(
    name="pybloom_chain",
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/plain",
    classifiers=CLASSIFIERS,
    keywords=[
        "bloom filter",
        "probabilistic",
        "data structures",
        "set membership",
        "scalable",
        "xxhash",
    ],
    license="MIT License",
    platforms=["any"],
    python_requires=">=3.7",
    install_requires=["bitarray>=2.0.0", "xxhash>=3.0.0"],
    extras_require={"test": ["pytest"]},
    packages=["pybloom_chain"],
    zip_safe=True,
)
