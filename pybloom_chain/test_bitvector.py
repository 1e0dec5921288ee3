"""Tests for the copy-on-write BitVector used as Bloom filter slice storage."""
import pytest

from pybloom_chain.bitvector import BitVector
from pybloom_chain.exceptions import IndexOutOfRange, InvalidSize, MalformedState


@pytest.fixture
def vector():
    """A vector spanning several storage chunks."""
    return BitVector(3 * BitVector.CHUNK_BITS + 17)


# =============================================================================
# Construction
# =============================================================================

class TestConstruction:

    def test_new_vector_is_empty(self, vector):
        """Test that a fresh vector has no bits set.

        Expected:
            Every probed bit reads False and count() is zero.
        """
        assert vector.count() == 0
        assert not vector.get(0)
        assert not vector.get(len(vector) - 1)

    def test_len_is_bit_count(self):
        assert len(BitVector(100)) == 100
        assert BitVector(100).bit_count == 100

    @pytest.mark.parametrize("bit_count", [0, -1, -64])
    def test_non_positive_size_rejected(self, bit_count):
        """Test that non-positive sizes raise InvalidSize.

        Expected:
            InvalidSize, which is also a ValueError.
        """
        with pytest.raises(InvalidSize):
            BitVector(bit_count)
        with pytest.raises(ValueError):
            BitVector(bit_count)

    def test_non_integer_size_rejected(self):
        with pytest.raises(InvalidSize):
            BitVector(1.5)


# =============================================================================
# Get / Set
# =============================================================================

class TestGetSet:

    def test_set_returns_new_vector(self, vector):
        """Test that set() leaves the receiver untouched.

        Purpose:
            Filters rely on bit vectors being values: older references must
            keep observing the older bit pattern.

        Expected:
            The returned vector has the bit set, the original does not.
        """
        updated = vector.set(5)
        assert updated is not vector
        assert updated.get(5)
        assert not vector.get(5)

    def test_set_is_idempotent(self, vector):
        """Setting an already set bit returns the same vector."""
        updated = vector.set(42)
        assert updated.set(42) is updated

    def test_getitem_matches_get(self, vector):
        updated = vector.set(7)
        assert updated[7] is True
        assert updated[8] is False

    def test_bits_across_chunk_boundaries(self, vector):
        """Test bits on both sides of each chunk boundary.

        Expected:
            Exactly the bits that were set read True.
        """
        chunk = BitVector.CHUNK_BITS
        indexes = [0, chunk - 1, chunk, 2 * chunk, len(vector) - 1]
        for index in indexes:
            vector = vector.set(index)

        assert vector.count() == len(indexes)
        for index in indexes:
            assert vector.get(index)
        assert not vector.get(chunk + 1)

    def test_untouched_chunks_are_shared(self, vector):
        updated = vector.set(0)
        assert updated._chunks[0] is not vector._chunks[0]
        assert updated._chunks[1] is vector._chunks[1]
        assert updated._chunks[-1] is vector._chunks[-1]

    def test_small_vector(self):
        """Vectors smaller than one chunk still behave."""
        vector = BitVector(2).set(1)
        assert not vector.get(0)
        assert vector.get(1)

    @pytest.mark.parametrize("index", [-1, 100, 1000])
    def test_out_of_range_index(self, index):
        """Test that out of range indexes fail instead of corrupting state.

        Expected:
            IndexOutOfRange (an IndexError) for both get() and set().
        """
        vector = BitVector(100)
        with pytest.raises(IndexOutOfRange):
            vector.get(index)
        with pytest.raises(IndexError):
            vector.set(index)

    def test_equality(self):
        assert BitVector(64).set(3) == BitVector(64).set(3)
        assert BitVector(64).set(3) != BitVector(64).set(4)
        assert BitVector(64) != BitVector(65)
        assert hash(BitVector(64).set(3)) == hash(BitVector(64).set(3))


# =============================================================================
# Word Serialization
# =============================================================================

class TestWords:

    def test_word_layout(self):
        """Test that bit i lands in word i // 64 at position i % 64.

        Expected:
            Bits 0, 64 and 129 of a 130-bit vector give words [1, 1, 2].
        """
        vector = BitVector(130).set(0).set(64).set(129)
        assert vector.to_words() == [1, 1, 2]

    def test_short_vector_uses_one_word(self):
        assert BitVector(8).set(7).to_words() == [128]

    def test_from_words_restores_bits(self, vector):
        for index in (3, BitVector.CHUNK_BITS + 9, len(vector) - 1):
            vector = vector.set(index)

        restored = BitVector.from_words(len(vector), vector.to_words())
        assert restored == vector
        assert restored.count() == 3

    def test_from_words_wrong_length(self):
        with pytest.raises(MalformedState, match="Expected 2 words"):
            BitVector.from_words(128, [0])

    @pytest.mark.parametrize("words", [[-1, 0], [1 << 64, 0], ["x", 0], [0.5, 0]])
    def test_from_words_invalid_word(self, words):
        with pytest.raises(MalformedState):
            BitVector.from_words(128, words)

    def test_from_words_bits_past_end(self):
        """Test that padding bits in the last word must be zero.

        Expected:
            Bit 130 of a 130-bit vector (word 2, position 2) is rejected
            instead of being silently dropped.
        """
        with pytest.raises(MalformedState, match="past the end"):
            BitVector.from_words(130, [0, 0, 1 << 2])
        assert BitVector.from_words(130, [0, 0, 1 << 1]).get(129)

    def test_from_words_not_a_sequence(self):
        with pytest.raises(MalformedState):
            BitVector.from_words(128, 7)
