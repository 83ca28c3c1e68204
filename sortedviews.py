"""Ascending views of sorted containers, ready to be joined.

The sortedcontainers types keep their keys sorted, so walking them in order
already satisfies the ordered-iterator contracts. Dense integer-keyed lists
and int bitsets are sorted by construction.
"""
from sortedcontainers import SortedDict

from mergejoin import OrderedMap, OrderedSet


# ----- SORTEDCONTAINERS -----
def items(sd: SortedDict, minimum=None, maximum=None, inclusive=(True, True)):
    """Ordered map over the (key, value) pairs of a SortedDict.

    Values are handed out by reference, so mutable values can be updated in
    place while joining. Adding or removing keys during the walk is not
    allowed. Bounds follow SortedDict.irange.
    """
    keys = sd.irange(minimum, maximum, inclusive)
    return OrderedMap((k, sd[k]) for k in keys)


def keys(container, minimum=None, maximum=None, inclusive=(True, True)):
    """Ordered set over the keys of a SortedDict, SortedSet or SortedList.

    A SortedList may hold duplicates; joins assume it doesn't.
    """
    return OrderedSet(container.irange(minimum, maximum, inclusive))


def drain(sd: SortedDict):
    # Pops each item as it is produced; the SortedDict ends up empty once the
    # view is exhausted. Items never pulled stay in the container.
    def pop_front():
        while sd:
            yield sd.popitem(index=0)
    return OrderedMap(pop_front())


# ----- DENSE INTEGER KEYS -----
def dense_items(seq):
    """Ordered map over a list indexed by non-negative int; None is a hole."""
    return OrderedMap((i, v) for i, v in enumerate(seq) if v is not None)


def bits(bitset: int):
    """Ordered set of the positions of the 1 bits in `bitset`, lowest first."""
    if bitset < 0:
        raise ValueError(f"bitset must be non-negative, got {bitset}")
    def positions(n):
        while n:
            low = n & -n
            yield low.bit_length() - 1
            n ^= low
    return OrderedSet(positions(bitset))
