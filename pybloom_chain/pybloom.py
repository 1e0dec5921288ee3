"""Bloom Filter and Scalable Bloom Filter implementations.

This module implements two probabilistic data structures for space-efficient
set membership testing:

1. BloomFilter: Fixed-capacity, sliced filter for known dataset sizes
2. ScalableBloomFilter: Chain of BloomFilters that grows without bound

Both implementations never produce false negatives. Filters are values:
``add`` returns a new filter and leaves the receiver untouched, so a filter
may be shared freely between readers.

Mathematical Foundation:
    - Slices (hash functions): k = 1 + floor(log2(1/P)) where P is error rate
    - Per-slice error: p = P^(1/k), so that p^k = P
    - Slice size: m = 2^mb, with mb = 1 + floor(-log2(1 - (1-p)^(1/n)))
    - Guaranteed capacity: n_max = floor(ln(1-p) / ln(1 - 1/m))
    - Scalable chain errors: P(1-r), P(1-r)r, P(1-r)r^2, ... summing to P

Probe indices are derived by double hashing: one or two base hashes give a
start index and a step, and slice i is probed at ``start + i * step``
(mod m), so an element costs at most two hash computations.

Requirements:
    - Python 3.7+
    - bitarray >= 2.0.0: Packed bit storage
    - xxhash >= 3.0.0: Fast non-cryptographic hashing
"""
import copy
import logging
import math
import numbers
from struct import calcsize, pack, unpack
from struct import error as StructError

import xxhash

from .bitvector import WORD_BITS, BitVector
from .exceptions import InvalidParameters, MalformedState

logger = logging.getLogger(__name__)

DEFAULT_ERROR_PROB = 0.01

# Slices wider than 2^16 bits need a second, independent base hash.
SINGLE_HASH_MAX_EXPONENT = 16
SINGLE_HASH_MAX_MASK = 1 << 16

# Upper bound accepted when loading state.
MAX_BITS_EXPONENT = 40


def default_hash(key):
    """Hash ``key`` to an integer in ``[0, 2**32)`` with xxHash32.

    The key is hashed through the UTF-8 encoding of its ``repr()``. Filters
    always pass tuple-wrapped keys, so every element is hashed this way, and
    ``"a"`` and ``b"a"`` hash differently because their reprs differ.

    Keys must have a repr that is stable across processes, or a filter
    reloaded elsewhere gives false negatives. Ints, floats, strings, bytes
    and tuples of those are safe. Sets and frozensets are not: their
    iteration order, and so their repr, depends on ``PYTHONHASHSEED``.
    Objects using the default ``object.__repr__`` are not either. Supply a
    custom ``hash_function`` for such keys.
    """
    return xxhash.xxh32_intdigest(repr(key).encode('utf-8'))


def make_hashes(bits_exponent, key, hash_function):
    """Compute the base hash(es) of ``key`` for slices of ``2**bits_exponent`` bits.

    Small slices need a single 32-bit hash, split into two 16-bit halves by
    ``make_indexes``. Larger slices get a pair of hashes of two differently
    shaped wrappings of the key, so the pair is independent. The key is
    always wrapped, so it never hashes like a bare one-element tuple would.

    Returns:
        int or tuple: A single hash, or a ``(h0, h1)`` pair.
    """
    if bits_exponent <= SINGLE_HASH_MAX_EXPONENT:
        return hash_function((key,))
    return hash_function((key,)), hash_function(((key,),))


def make_indexes(mask, hashes):
    """Reduce base hashes to a ``(step, start)`` pair of slice indexes.

    A true pair is only used when the mask is wider than 16 bits; otherwise
    the first hash is split into its high and low 16-bit halves. A filter
    therefore always derives the same indexes from the same first hash,
    whether or not a second hash was computed for a wider filter in the same
    chain.
    """
    if isinstance(hashes, tuple):
        h0, h1 = hashes
        if mask > SINGLE_HASH_MAX_MASK:
            return h0 & mask, h1 & mask
    else:
        h0 = hashes
    return (h0 >> 16) & mask, h0 & mask


def _check_probability(value, name):
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not 0 < value < 1:
        raise InvalidParameters("%s must be between 0 and 1." % name)


def _check_capacity(value, name='Capacity'):
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not value > 0:
        raise InvalidParameters("%s must be > 0" % name)
    if not math.isfinite(value):
        raise InvalidParameters("%s must be finite" % name)


def _slice_parameters(error_prob):
    """Return ``(k, p)``: the number of slices and the per-slice error."""
    num_slices = 1 + int(math.floor(math.log2(1.0 / error_prob)))
    return num_slices, error_prob ** (1.0 / num_slices)


def _state_field(state, name):
    try:
        return state[name]
    except (KeyError, TypeError) as exc:
        raise MalformedState("Filter state is missing field %r" % name) from exc


def _state_count(state, name, minimum=0):
    value = _state_field(state, name)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise MalformedState("Field %r must be an integer >= %d, got %r" % (name, minimum, value))
    return value


def _state_probability(state, name):
    value = _state_field(state, name)
    try:
        _check_probability(value, name)
    except InvalidParameters as exc:
        raise MalformedState("Field %r must be between 0 and 1, got %r" % (name, value)) from exc
    return value


def _read_exact(f, num_bytes):
    data = f.read(num_bytes)
    if len(data) != num_bytes:
        raise MalformedState(
            "Unexpected end of file: wanted %d bytes, got %d" % (num_bytes, len(data)))
    return data


class BloomFilter:
    FILE_FMT = '<dQQQQ'

    def __init__(self, capacity, error_prob=DEFAULT_ERROR_PROB, hash_function=None):
        """Initialize a Bloom filter sized for ``capacity`` elements.

        The filter is split into k slices of 2^mb bits each. Every element
        sets exactly one bit per slice, and the slice size is solved so that
        each slice reaches false positive probability p = P^(1/k) at the
        requested capacity.

        Args:
            capacity (int): Number of elements the filter should hold while
                keeping the error bound. Must be > 0 and >= 4 / error_prob,
                a rule of thumb that leaves double hashing enough room.
            error_prob (float, optional): Target false positive probability,
                strictly between 0 and 1. Default is 0.01 (1%).
            hash_function (callable, optional): Maps a key to a non-negative
                integer. Defaults to ``default_hash`` (xxHash32).

        Raises:
            InvalidParameters: If any parameter is out of its domain.

        Example:
            >>> bf = BloomFilter(capacity=1000, error_prob=0.01)
            >>> bf = bf.add("test")
            >>> "test" in bf
            True
            >>> BloomFilter(50, 0.1).max_capacity
            52
        """
        _check_probability(error_prob, "Error_Prob")
        _check_capacity(capacity)
        if capacity < 4 / error_prob:
            raise InvalidParameters(
                "Capacity must be >= 4 / error_prob (%g) for double hashing" % (4 / error_prob))

        num_slices, slice_error = _slice_parameters(error_prob)
        # 1 - (1-p)^(1/n), computed without cancellation for large n
        fill = -math.expm1(math.log1p(-slice_error) / capacity)
        bits_exponent = 1 + int(math.floor(-math.log2(fill)))
        self._build(error_prob, num_slices, slice_error, bits_exponent, hash_function)

    @classmethod
    def from_bits_exponent(cls, bits_exponent, error_prob=DEFAULT_ERROR_PROB, hash_function=None):
        """Create a filter whose slices hold exactly ``2**bits_exponent`` bits.

        The number of slices still follows from ``error_prob``; the capacity
        is whatever a slice of that size supports. Used by
        ScalableBloomFilter to grow the slice size by a fixed exponent step.

        Raises:
            InvalidParameters: If ``bits_exponent`` is not a positive integer
                or ``error_prob`` is not between 0 and 1.
        """
        _check_probability(error_prob, "Error_Prob")
        if isinstance(bits_exponent, bool) or not isinstance(bits_exponent, int) or bits_exponent <= 0:
            raise InvalidParameters("Bits exponent must be a positive integer")

        num_slices, slice_error = _slice_parameters(error_prob)
        bloom = cls.__new__(cls)
        bloom._build(error_prob, num_slices, slice_error, bits_exponent, hash_function)
        return bloom

    def _build(self, error_prob, num_slices, slice_error, bits_exponent, hash_function):
        num_bits = 1 << bits_exponent
        max_capacity = int(math.floor(math.log1p(-slice_error) / math.log1p(-1.0 / num_bits)))
        # Slices are immutable, so the empty ones can share one vector.
        slices = (BitVector(num_bits),) * num_slices
        self._setup(error_prob, max_capacity, bits_exponent, 0, slices, hash_function)

    def _setup(self, error_prob, max_capacity, slice_bits_exponent, size, slices, hash_function):
        """Internal setup method for initializing or restoring filter state.

        Args:
            error_prob (float): Target false positive probability
            max_capacity (int): Elements the filter holds within error_prob
            slice_bits_exponent (int): Each slice holds 2^exponent bits
            size (int): Current number of elements
            slices (tuple): One BitVector per slice
            hash_function (callable or None): None selects default_hash
        """
        self.error_prob = error_prob
        self.max_capacity = max_capacity
        self.slice_bits_exponent = slice_bits_exponent
        self.slice_count = len(slices)
        self.size = size
        self.slices = slices
        self.hash_function = hash_function or default_hash
        self._mask = (1 << slice_bits_exponent) - 1

    def _evolve(self, **changes):
        bloom = copy.copy(self)
        bloom.__dict__.update(changes)
        return bloom

    @property
    def capacity(self):
        """The guaranteed capacity; may slightly exceed the requested one."""
        return self.max_capacity

    @property
    def num_bits(self):
        return self.slice_count << self.slice_bits_exponent

    def __contains__(self, key):
        """Test whether an element might be in the Bloom filter.

        Returns:
            bool: True if every slice has the element's bit set (possibly a
                false positive), False if the element was never added.

        Time Complexity:
            O(k), exiting on the first unset bit.
        """
        return self._hash_member(make_hashes(self.slice_bits_exponent, key, self.hash_function))

    def _hash_member(self, hashes):
        mask = self._mask
        step, index = make_indexes(mask, hashes)
        for bits in self.slices:
            if not bits.get(index):
                return False
            index = (index + step) & mask
        return True

    def __len__(self):
        """Return the number of elements counted as added.

        Additions of elements already reported as members (duplicates or
        false positives) are not counted.
        """
        return self.size

    def add(self, key):
        """Return a filter that also contains ``key``.

        If ``key`` is already reported as a member the same filter object is
        returned and its size is unchanged. Otherwise a new filter is
        returned with one bit set in every slice and size increased by one;
        this filter is not modified.

        The filter does not refuse additions beyond ``max_capacity``, it only
        stops honouring its error bound. ScalableBloomFilter never fills a
        filter past that point.

        Args:
            key: The element to add (anything the hash function accepts)

        Returns:
            BloomFilter: The filter containing ``key``

        Example:
            >>> bf = BloomFilter(100, 0.1)
            >>> bf2 = bf.add("apple")
            >>> "apple" in bf2, "apple" in bf
            (True, False)
            >>> bf2.add("apple") is bf2
            True
        """
        return self._hash_add(make_hashes(self.slice_bits_exponent, key, self.hash_function))

    def _hash_add(self, hashes):
        if self._hash_member(hashes):
            return self

        mask = self._mask
        step, index = make_indexes(mask, hashes)
        slices = []
        for bits in self.slices:
            slices.append(bits.set(index))
            index = (index + step) & mask
        return self._evolve(size=self.size + 1, slices=tuple(slices))

    def update(self, keys):
        """Return a filter containing every element of ``keys``."""
        bloom = self
        for key in keys:
            bloom = bloom.add(key)
        return bloom

    def fill_ratio(self):
        """Return the fraction of bits set across all slices."""
        return sum(bits.count() for bits in self.slices) / self.num_bits

    def to_state(self):
        """Return the filter state as a plain dictionary.

        The hash function is not part of the state; ``from_state`` needs the
        same function to be supplied again.
        """
        return {
            'error_prob': self.error_prob,
            'max_capacity': self.max_capacity,
            'slice_bits_exponent': self.slice_bits_exponent,
            'size': self.size,
            'slices': [bits.to_words() for bits in self.slices],
        }

    @classmethod
    def from_state(cls, state, hash_function=None):
        """Rebuild a filter from ``to_state`` output.

        Args:
            state (dict): Record produced by ``to_state``
            hash_function (callable, optional): Must be the function the
                filter was built with. A different function is not detected
                and silently breaks membership answers.

        Raises:
            MalformedState: If a field is missing or inconsistent.
        """
        error_prob = _state_probability(state, 'error_prob')
        max_capacity = _state_count(state, 'max_capacity')
        bits_exponent = _state_count(state, 'slice_bits_exponent', minimum=1)
        size = _state_count(state, 'size')
        slice_words = _state_field(state, 'slices')

        if bits_exponent > MAX_BITS_EXPONENT:
            raise MalformedState("Slice bits exponent %d is too large" % bits_exponent)
        num_slices, _ = _slice_parameters(error_prob)
        if not isinstance(slice_words, (list, tuple)) or len(slice_words) != num_slices:
            raise MalformedState(
                "Expected %d slices for error_prob %r" % (num_slices, error_prob))

        slices = tuple(BitVector.from_words(1 << bits_exponent, words) for words in slice_words)
        bloom = cls.__new__(cls)
        bloom._setup(error_prob, max_capacity, bits_exponent, size, slices, hash_function)
        return bloom

    def tofile(self, f):
        """Serialize the Bloom filter to a binary file.

        File Format:
            - Header (40 bytes): error_prob, slice_count, slice_bits_exponent,
              max_capacity, size (packed as '<dQQQQ')
            - Body: each slice as little-endian 64-bit words

        Args:
            f: File-like object opened in binary write mode ('wb'). Can be a
                regular file or BytesIO.
        """
        f.write(pack(self.FILE_FMT, self.error_prob, self.slice_count,
                     self.slice_bits_exponent, self.max_capacity, self.size))
        for bits in self.slices:
            words = bits.to_words()
            f.write(pack('<%dQ' % len(words), *words))

    @classmethod
    def fromfile(cls, f, hash_function=None):
        """Deserialize a Bloom filter written by ``tofile``.

        Raises:
            MalformedState: If the file is truncated or its header is
                inconsistent.
        """
        try:
            error_prob, num_slices, bits_exponent, max_capacity, size = unpack(
                cls.FILE_FMT, _read_exact(f, calcsize(cls.FILE_FMT)))
        except StructError as exc:
            raise MalformedState("Corrupt Bloom filter header") from exc

        if not 0 < bits_exponent <= MAX_BITS_EXPONENT:
            raise MalformedState("Slice bits exponent %d out of range" % bits_exponent)
        if not 0 < error_prob < 1 or num_slices != _slice_parameters(error_prob)[0]:
            raise MalformedState(
                "Header declares %d slices for error_prob %r" % (num_slices, error_prob))

        num_words = -(-(1 << bits_exponent) // WORD_BITS)
        words_fmt = '<%dQ' % num_words
        slices = [list(unpack(words_fmt, _read_exact(f, num_words * 8)))
                  for _ in range(num_slices)]
        return cls.from_state({
            'error_prob': error_prob,
            'max_capacity': max_capacity,
            'slice_bits_exponent': bits_exponent,
            'size': size,
            'slices': slices,
        }, hash_function)


class ScalableBloomFilter:
    """A Bloom filter that keeps growing as more elements are added.

    This implementation follows the algorithm described in:
    "Scalable Bloom Filters" by Almeida et al., Information Processing
    Letters 101.6 (2007).

    The filter holds a chain of BloomFilters, newest first. When the newest
    filter reaches its capacity a new one is prepended with:
    - Slices 2^growth times larger
    - Error probability multiplied by the tightening ratio r

    The first filter is given P(1-r), so the per-filter errors form a
    geometric series whose sum stays below the configured P however long
    the chain grows.

    Class Attributes:
        SMALL_SET_GROWTH (int): Slices double per new filter
        MEDIUM_SET_GROWTH (int): Slices quadruple per new filter
        LARGE_SET_GROWTH (int): Slices grow eightfold per new filter (default)
        GROWTH_RATIOS (dict): Default tightening ratio for each growth
        FILE_FMT (str): Binary format string for serialization
    """
    SMALL_SET_GROWTH = 1
    MEDIUM_SET_GROWTH = 2
    LARGE_SET_GROWTH = 3
    GROWTH_RATIOS = {
        SMALL_SET_GROWTH: 0.85,
        MEDIUM_SET_GROWTH: 0.75,
        LARGE_SET_GROWTH: 0.65,
    }
    FILE_FMT = '<ddQQQ'

    def __init__(self, initial_capacity=10000, error_prob=DEFAULT_ERROR_PROB,
                 error_prob_ratio=None, growth=LARGE_SET_GROWTH, hash_function=None):
        """Initialize a Scalable Bloom Filter.

        Args:
            initial_capacity (int, optional): Capacity of the first internal
                filter. Default is 10000. Must satisfy
                initial_capacity >= 4 / (error_prob * (1 - error_prob_ratio)).
            error_prob (float, optional): Bound on the overall false positive
                probability, between 0 and 1. Default is 0.01.
            error_prob_ratio (float, optional): Tightening ratio r between 0
                and 1. Defaults to GROWTH_RATIOS[growth].
            growth (int, optional): One of SMALL_SET_GROWTH (1),
                MEDIUM_SET_GROWTH (2) or LARGE_SET_GROWTH (3): the slice bits
                exponent increment for each new filter.
            hash_function (callable, optional): Shared by every filter in the
                chain. Defaults to ``default_hash``.

        Raises:
            InvalidParameters: If any parameter is out of its domain.

        Example:
            >>> sbf = ScalableBloomFilter(initial_capacity=1000, error_prob=0.1,
            ...                           growth=ScalableBloomFilter.SMALL_SET_GROWTH)
            >>> sbf = sbf.update(range(5000))
            >>> 42 in sbf
            True
            >>> len(sbf.filters) > 1
            True
        """
        if not self._is_growth(growth):
            raise InvalidParameters("Growth must be one of 1, 2 or 3")
        if error_prob_ratio is None:
            error_prob_ratio = self.GROWTH_RATIOS[growth]
        _check_probability(error_prob, "Error_Prob")
        _check_probability(error_prob_ratio, "Error_Prob_Ratio")
        _check_capacity(initial_capacity, "Initial_Capacity")
        if initial_capacity < 4 / (error_prob * (1 - error_prob_ratio)):
            raise InvalidParameters(
                "Initial_Capacity must be >= 4 / (error_prob * (1 - error_prob_ratio)) (%g)"
                % (4 / (error_prob * (1 - error_prob_ratio))))

        hash_function = hash_function or default_hash
        head = BloomFilter(initial_capacity, error_prob * (1 - error_prob_ratio), hash_function)
        self._setup(error_prob, error_prob_ratio, growth, 0, (head,), hash_function)
        logger.debug("Created scalable filter: error_prob=%g ratio=%g growth=%d "
                     "initial slices=%d x 2^%d bits", error_prob, error_prob_ratio, growth,
                     head.slice_count, head.slice_bits_exponent)

    def _setup(self, error_prob, error_prob_ratio, growth, size, filters, hash_function):
        """Internal setup method for initializing or restoring filter state.

        Args:
            error_prob (float): Overall false positive bound
            error_prob_ratio (float): Tightening ratio for new filters
            growth (int): Slice bits exponent increment for new filters
            size (int): Elements across the whole chain
            filters (tuple): BloomFilters, newest first
            hash_function (callable or None): None selects default_hash
        """
        self.error_prob = error_prob
        self.error_prob_ratio = error_prob_ratio
        self.growth = growth
        self.size = size
        self.filters = filters
        self.hash_function = hash_function or default_hash

    @classmethod
    def _is_growth(cls, growth):
        # Exact ints only: 3.0 and 3 share a dict key.
        return (isinstance(growth, int) and not isinstance(growth, bool)
                and growth in cls.GROWTH_RATIOS)

    def _evolve(self, **changes):
        sbf = copy.copy(self)
        sbf.__dict__.update(changes)
        return sbf

    def __contains__(self, key):
        """Test whether an element might be in any filter of the chain.

        The base hashes are computed once, sized for the newest filter, and
        every filter derives its own indexes from them. The search stops at
        the first filter reporting a hit.

        Time Complexity:
            O(k × n) where k is slices per filter and n is the chain length.
        """
        head = self.filters[0]
        return self._hash_member(make_hashes(head.slice_bits_exponent, key, self.hash_function))

    def _hash_member(self, hashes):
        return any(bloom._hash_member(hashes) for bloom in self.filters)

    def __len__(self):
        return self.size

    @property
    def capacity(self):
        """Always infinite: the chain grows for as long as elements arrive."""
        return math.inf

    def add(self, key):
        """Return a scalable filter that also contains ``key``.

        Duplicates are detected across the whole chain: when ``key`` is
        already reported as a member the same object is returned. Otherwise
        ``key`` goes into the newest filter, or into a new, larger and
        tighter filter prepended to the chain once the newest one is at
        capacity. This filter is not modified.

        Args:
            key: The element to add

        Returns:
            ScalableBloomFilter: The filter containing ``key``

        Example:
            >>> sbf = ScalableBloomFilter(initial_capacity=100, error_prob=0.1,
            ...                           error_prob_ratio=0.1, growth=3)
            >>> sbf = sbf.add("apple")
            >>> sbf.add("apple") is sbf
            True
        """
        head = self.filters[0]
        hashes = make_hashes(head.slice_bits_exponent, key, self.hash_function)
        if self._hash_member(hashes):
            return self

        if head.size < head.max_capacity:
            filters = (head._hash_add(hashes),) + self.filters[1:]
        else:
            grown = BloomFilter.from_bits_exponent(
                head.slice_bits_exponent + self.growth,
                head.error_prob * self.error_prob_ratio,
                self.hash_function).add(key)
            filters = (grown,) + self.filters
            logger.debug("Scalable filter grew to %d filters: slices=%d x 2^%d bits, "
                         "error_prob=%g, capacity=%d", len(filters), grown.slice_count,
                         grown.slice_bits_exponent, grown.error_prob, grown.max_capacity)
        return self._evolve(size=self.size + 1, filters=filters)

    def update(self, keys):
        """Return a scalable filter containing every element of ``keys``."""
        sbf = self
        for key in keys:
            sbf = sbf.add(key)
        return sbf

    def error_budget(self):
        """Return the sum of the per-filter error probabilities.

        This is the conservative false positive bound for the chain as it
        stands; it approaches but never exceeds ``error_prob``.
        """
        return sum(bloom.error_prob for bloom in self.filters)

    def to_state(self):
        """Return the chain state as a plain dictionary, newest filter first."""
        return {
            'error_prob': self.error_prob,
            'error_prob_ratio': self.error_prob_ratio,
            'growth': self.growth,
            'size': self.size,
            'filters': [bloom.to_state() for bloom in self.filters],
        }

    @classmethod
    def from_state(cls, state, hash_function=None):
        """Rebuild a scalable filter from ``to_state`` output.

        The hash function must be the one the filter was built with.

        Raises:
            MalformedState: If a field is missing, the chain is empty or the
                recorded size disagrees with the filters.
        """
        error_prob = _state_probability(state, 'error_prob')
        error_prob_ratio = _state_probability(state, 'error_prob_ratio')
        growth = _state_field(state, 'growth')
        size = _state_count(state, 'size')
        filter_states = _state_field(state, 'filters')

        if not cls._is_growth(growth):
            raise MalformedState("Field 'growth' must be one of 1, 2 or 3, got %r" % (growth,))
        if not isinstance(filter_states, (list, tuple)):
            raise MalformedState("Field 'filters' must be a list of filter states")

        filters = [BloomFilter.from_state(s, hash_function) for s in filter_states]
        return cls._from_filters(error_prob, error_prob_ratio, growth, size, filters, hash_function)

    @classmethod
    def _from_filters(cls, error_prob, error_prob_ratio, growth, size, filters, hash_function):
        if not filters:
            raise MalformedState("Scalable filter state holds no filters")
        total = sum(bloom.size for bloom in filters)
        if size != total:
            raise MalformedState("Size %d does not match the filters' total %d" % (size, total))

        hash_function = hash_function or default_hash
        for bloom in filters:
            bloom.hash_function = hash_function
        sbf = cls.__new__(cls)
        sbf._setup(error_prob, error_prob_ratio, growth, size, tuple(filters), hash_function)
        logger.debug("Loaded scalable filter with %d filters and %d elements", len(filters), size)
        return sbf

    def tofile(self, f):
        """Serialize this Scalable Bloom Filter to a binary file.

        File Format:
            1. Header: error_prob, error_prob_ratio, growth, size, number of
               filters (packed as '<ddQQQ')
            2. Each internal filter as written by BloomFilter.tofile, newest
               first

        Args:
            f: File-like object opened in binary write mode ('wb')
        """
        f.write(pack(self.FILE_FMT, self.error_prob, self.error_prob_ratio,
                     self.growth, self.size, len(self.filters)))
        for bloom in self.filters:
            bloom.tofile(f)

    @classmethod
    def fromfile(cls, f, hash_function=None):
        """Deserialize a Scalable Bloom Filter written by ``tofile``.

        Raises:
            MalformedState: If the file is truncated or inconsistent.
        """
        try:
            error_prob, error_prob_ratio, growth, size, num_filters = unpack(
                cls.FILE_FMT, _read_exact(f, calcsize(cls.FILE_FMT)))
        except StructError as exc:
            raise MalformedState("Corrupt scalable filter header") from exc

        if not (0 < error_prob < 1 and 0 < error_prob_ratio < 1):
            raise MalformedState("Header error probabilities must be between 0 and 1")
        if growth not in cls.GROWTH_RATIOS:
            raise MalformedState("Header growth must be one of 1, 2 or 3, got %d" % growth)

        filters = [BloomFilter.fromfile(f, hash_function) for _ in range(num_filters)]
        return cls._from_filters(error_prob, error_prob_ratio, growth, size, filters, hash_function)


if __name__ == "__main__":
    import doctest

    doctest.testmod()
