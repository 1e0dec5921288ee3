"""Packed, copy-on-write bit vector used for the slices of a Bloom filter.

A BitVector never changes once built. ``set`` returns a new vector that
shares every untouched chunk with its predecessor, so references to an older
filter keep observing the older bit pattern while only one chunk per update
is copied.

Storage layout:
    The bits are split into chunks of ``CHUNK_BITS`` bits (the last chunk may
    be shorter), each held in an immutable little-endian
    ``bitarray.frozenbitarray``. A freshly allocated vector shares a single
    all-zero chunk object across every position.
"""
from struct import error as StructError
from struct import pack, unpack

from bitarray import bitarray, frozenbitarray

from .exceptions import IndexOutOfRange, InvalidSize, MalformedState

WORD_BITS = 64


def _zero_chunk(num_bits):
    chunk = bitarray(num_bits, endian='little')
    chunk.setall(False)
    return frozenbitarray(chunk)


class BitVector:
    CHUNK_BITS = 1 << 12

    def __init__(self, bit_count):
        """Allocate a zeroed vector of ``bit_count`` bits.

        Raises:
            InvalidSize: If ``bit_count`` is not a positive integer.
        """
        if not isinstance(bit_count, int) or bit_count <= 0:
            raise InvalidSize("Bit count must be a positive integer, got %r" % (bit_count,))

        chunk_bits = min(bit_count, self.CHUNK_BITS)
        full, tail = divmod(bit_count, chunk_bits)
        chunks = (_zero_chunk(chunk_bits),) * full
        if tail:
            chunks += (_zero_chunk(tail),)
        self._setup(bit_count, chunk_bits, chunks)

    def _setup(self, bit_count, chunk_bits, chunks):
        self.bit_count = bit_count
        self._chunk_bits = chunk_bits
        self._chunks = chunks

    @classmethod
    def _from_chunks(cls, bit_count, chunk_bits, chunks):
        vector = cls.__new__(cls)
        vector._setup(bit_count, chunk_bits, chunks)
        return vector

    def _locate(self, index):
        if not 0 <= index < self.bit_count:
            raise IndexOutOfRange(
                "Bit index %d out of range for vector of %d bits" % (index, self.bit_count))
        return divmod(index, self._chunk_bits)

    def get(self, index):
        """Return True if bit ``index`` is set."""
        chunk_index, offset = self._locate(index)
        return bool(self._chunks[chunk_index][offset])

    __getitem__ = get

    def set(self, index):
        """Return a vector equal to this one with bit ``index`` set.

        Returns ``self`` when the bit is already set. Only the chunk holding
        ``index`` is copied; all other chunks are shared.
        """
        chunk_index, offset = self._locate(index)
        chunk = self._chunks[chunk_index]
        if chunk[offset]:
            return self

        updated = bitarray(chunk, endian='little')
        updated[offset] = True
        chunks = (self._chunks[:chunk_index] + (frozenbitarray(updated),) +
                  self._chunks[chunk_index + 1:])
        return self._from_chunks(self.bit_count, self._chunk_bits, chunks)

    def count(self):
        """Return the number of bits set."""
        return sum(chunk.count() for chunk in self._chunks)

    def __len__(self):
        return self.bit_count

    def __eq__(self, other):
        if not isinstance(other, BitVector):
            return NotImplemented
        return self.bit_count == other.bit_count and self._bits() == other._bits()

    def __hash__(self):
        return hash((self.bit_count, frozenbitarray(self._bits())))

    def _bits(self):
        bits = bitarray(endian='little')
        for chunk in self._chunks:
            bits.extend(chunk)
        return bits

    def to_words(self):
        """Return the vector contents as a list of 64-bit unsigned words.

        Bit ``i`` lives in word ``i // 64`` at position ``i % 64`` (least
        significant first). Bits past ``bit_count`` in the last word are zero.
        """
        num_words = -(-self.bit_count // WORD_BITS)
        raw = self._bits().tobytes().ljust(num_words * 8, b'\0')
        return list(unpack('<%dQ' % num_words, raw))

    @classmethod
    def from_words(cls, bit_count, words):
        """Rebuild a vector of ``bit_count`` bits from ``to_words`` output.

        Raises:
            InvalidSize: If ``bit_count`` is not a positive integer.
            MalformedState: If ``words`` does not hold exactly enough 64-bit
                words for ``bit_count`` bits, or sets bits past ``bit_count``.
        """
        if not isinstance(bit_count, int) or bit_count <= 0:
            raise InvalidSize("Bit count must be a positive integer, got %r" % (bit_count,))
        try:
            words = list(words)
        except TypeError as exc:
            raise MalformedState("Slice words must be a sequence of integers") from exc

        num_words = -(-bit_count // WORD_BITS)
        if len(words) != num_words:
            raise MalformedState(
                "Expected %d words for %d bits, got %d" % (num_words, bit_count, len(words)))
        try:
            raw = pack('<%dQ' % num_words, *words)
        except StructError as exc:
            raise MalformedState("Slice words must be unsigned 64-bit integers") from exc

        bits = bitarray(endian='little')
        bits.frombytes(raw)
        if bits[bit_count:].any():
            raise MalformedState("Bits set past the end of a %d-bit vector" % bit_count)
        del bits[bit_count:]

        chunk_bits = min(bit_count, cls.CHUNK_BITS)
        chunks = tuple(frozenbitarray(bits[start:start + chunk_bits])
                       for start in range(0, bit_count, chunk_bits))
        return cls._from_chunks(bit_count, chunk_bits, chunks)
