import pytest
from hypothesis import given, strategies as st

from srtproto.loss_compression import compress_loss_list, decompress_loss_list
from srtproto.modular import SeqNumber

ONE = 1 << 31

CASES = [
    ([13, 14, 15, 16, 17, 18, 19], [13 | ONE, 19]),
    ([1, 2, 3, 4, 5, 9, 11, 12, 13, 16, 17], [1 | ONE, 5, 9, 11 | ONE, 13, 16 | ONE, 17]),
    ([15, 16], [15 | ONE, 16]),
    ([1_687_761_238, 1_687_761_239], [1_687_761_238 | ONE, 1_687_761_239]),
]


def _seqs(values):
    return [SeqNumber.new_truncate(v) for v in values]


@pytest.mark.parametrize("plain, compressed", CASES)
def test_compress(plain, compressed):
    assert list(compress_loss_list(_seqs(plain))) == compressed


@pytest.mark.parametrize("plain, compressed", CASES)
def test_decompress(plain, compressed):
    assert list(decompress_loss_list(compressed)) == _seqs(plain)


def test_invalid_ordering():
    with pytest.raises(ValueError, match="error: 10!<1"):
        list(compress_loss_list(_seqs([10, 1])))


def test_unterminated_loop():
    with pytest.raises(ValueError, match="unterminated loop"):
        list(decompress_loss_list([10 | ONE]))


def test_empty():
    assert list(compress_loss_list([])) == []
    assert list(decompress_loss_list([])) == []


def test_single_value():
    assert list(compress_loss_list(_seqs([7]))) == [7]


@given(st.sets(st.integers(0, (1 << 30) - 1), max_size=60))
def test_round_trip(values):
    seqs = _seqs(sorted(values))
    compressed = list(compress_loss_list(seqs))
    assert list(decompress_loss_list(compressed)) == seqs
    assert len(compressed) <= len(seqs)