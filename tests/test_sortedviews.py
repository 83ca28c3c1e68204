import pytest
from sortedcontainers import SortedDict, SortedList, SortedSet

import sortedviews
from mergejoin import OrderedMap, OrderedSet


@pytest.fixture
def squares():
    return SortedDict((x, x * x) for x in (5, 1, 4, 2, 3))


def test_items_walks_in_key_order(squares):
    view = sortedviews.items(squares)
    assert isinstance(view, OrderedMap)
    assert list(view) == [(1, 1), (2, 4), (3, 9), (4, 16), (5, 25)]

def test_items_range(squares):
    assert list(sortedviews.items(squares, 2, 4)) == [(2, 4), (3, 9), (4, 16)]
    assert list(sortedviews.items(squares, 2, 4, (False, False))) == [(3, 9)]

def test_items_hands_out_values_by_reference():
    buckets = SortedDict({1: [], 2: [], 3: []})
    for key, (bucket, _) in sortedviews.items(buckets).inner_join_map([(2, "x"), (3, "y")]):
        bucket.append(key)
    assert buckets == {1: [], 2: [2], 3: [3]}

@pytest.mark.parametrize("container", [
    SortedSet([9, 3, 6]),
    SortedList([9, 3, 6]),
    SortedDict({9: "c", 3: "a", 6: "b"}),
])
def test_keys(container):
    view = sortedviews.keys(container)
    assert isinstance(view, OrderedSet)
    assert list(view) == [3, 6, 9]

def test_keys_range():
    assert list(sortedviews.keys(SortedSet(range(10)), minimum=7)) == [7, 8, 9]

def test_drain_empties_container(squares):
    assert list(sortedviews.drain(squares)) == [(1, 1), (2, 4), (3, 9), (4, 16), (5, 25)]
    assert len(squares) == 0

def test_drain_only_pops_what_is_pulled(squares):
    joined = sortedviews.drain(squares).inner_join_set([2])
    assert list(joined) == [(2, 4)]
    # The set ran out first, so nothing past the match was popped.
    assert list(squares.items()) == [(3, 9), (4, 16), (5, 25)]

def test_dense_items_skips_holes():
    view = sortedviews.dense_items(["a", None, "c", None, None, "f"])
    assert list(view) == [(0, "a"), (2, "c"), (5, "f")]

def test_bits():
    assert list(sortedviews.bits(0b101101)) == [0, 2, 3, 5]
    assert list(sortedviews.bits(0)) == []
    assert list(sortedviews.bits(1 << 100)) == [100]

def test_bits_rejects_negative():
    with pytest.raises(ValueError, match="non-negative"):
        sortedviews.bits(-1)

def test_dense_map_joins_bitset():
    names = sortedviews.dense_items(["zero", "one", None, "three", "four"])
    assert list(names.inner_join_set(sortedviews.bits(0b11010))) == \
        [(1, "one"), (3, "three"), (4, "four")]

def test_sorted_set_chain():
    twos, threes, fives = (SortedSet(range(n, 100, n)) for n in (2, 3, 5))
    joined = sortedviews.keys(twos).inner_join_set(sortedviews.keys(threes))
    assert list(joined.inner_join_set(sortedviews.keys(fives))) == [30, 60, 90]
