"""Merge joins over iterators that produce keys in strictly ascending order.

Nothing here sorts, buffers or indexes: every join walks its inputs in
lockstep, holding at most one element per side. Join results are ordered
iterators themselves, so they can be fed into further joins.

    >>> evens = OrderedSet(range(2, 20, 2))
    >>> list(evens.inner_join_set(range(3, 30, 3)))
    [6, 12, 18]

Callers must not touch an iterator after handing it to a join; the join owns
it from then on.
"""
from collections.abc import Iterable, Mapping
from functools import reduce
from typing import Any

import structlog

__all__ = [
    "OrderError", "OrderedMapIterator", "OrderedSetIterator",
    "OrderedMap", "OrderedSet", "InnerJoinMap", "InnerJoinMapSet",
    "InnerJoinSet", "OuterJoin", "as_map", "as_set", "intersection", "trace",
]

logger = structlog.get_logger(__name__)

_NOTHING = object()   # empty peek slot / no key seen yet


# Dumps each input that can dump itself, naming it after its parent.
def _dump_inputs(name, **inputs):
    for side, it in inputs.items():
        if hasattr(it, "debug_dump"):
            it.debug_dump(f"{name}.{side}" if name else side)


class OrderError(ValueError):
    """An input produced a key that is not greater than the one before it."""
    def __init__(self, previous, key):
        super().__init__(f"keys out of order: {key!r} after {previous!r}")
        self.previous = previous
        self.key = key


# ----- CAPABILITY CONTRACTS -----
# A sequence opts into a contract by inheriting one of these and implementing
# __next__. The contracts only add the join combinators.
class OrderedMapIterator:
    # Produces (key, value) pairs, keys strictly ascending.
    def __iter__(self): return self
    def __next__(self): raise NotImplementedError

    def inner_join_map(self, other) -> "InnerJoinMap":
        """Joins two ordered maps, yielding (key, (value, other_value))."""
        return InnerJoinMap(self, as_map(other))

    def inner_join_set(self, other) -> "InnerJoinMapSet":
        """Filters this map down to the keys also produced by `other`."""
        return InnerJoinMapSet(self, as_set(other))

    def outer_join(self, other, default=None) -> "OuterJoin":
        """Joins two ordered maps, keeping keys found in either of them.

        Yields (key, (value, other_value)) for every key in either map. Where
        a key is missing from one side that side's value is `default`. Pass a
        marker object as `default` if None is a legitimate value.
        """
        return OuterJoin(self, as_map(other), default=default)


class OrderedSetIterator:
    # Produces keys, strictly ascending.
    def __iter__(self): return self
    def __next__(self): raise NotImplementedError

    def inner_join_map(self, other) -> "InnerJoinMapSet":
        """Filters the ordered map `other` down to the keys in this set."""
        return InnerJoinMapSet(as_map(other), self)

    def inner_join_set(self, other) -> "InnerJoinSet":
        """Intersects two ordered sets."""
        return InnerJoinSet(self, as_set(other))


# ----- WRAPPING PLAIN ITERABLES -----
# Wraps a Python iterable so it satisfies a contract. The iterable is trusted
# to be in ascending order unless check=True.
class _Wrapped:
    def __init__(self, iterable: Iterable, check: bool = False):
        self.iter = iter(iterable)
        self.check = check
        self.last = _NOTHING

    def _checked(self, key):
        if self.last is not _NOTHING and not self.last < key:
            raise OrderError(self.last, key)
        self.last = key

    def __repr__(self):
        return f"{type(self).__name__}({self.iter!r})"

    def debug_dump(self, name=None):
        logger.debug("ordered iterator", name=name, kind=type(self).__name__,
                     source=repr(self.iter), last_checked=_show(self.last))


class OrderedMap(_Wrapped, OrderedMapIterator):
    def __next__(self):
        key, value = next(self.iter)
        if self.check: self._checked(key)
        return key, value


class OrderedSet(_Wrapped, OrderedSetIterator):
    def __next__(self):
        key = next(self.iter)
        if self.check: self._checked(key)
        return key


def as_map(obj) -> OrderedMapIterator:
    """Bridges `obj` into an ordered map iterator.

    Mappings contribute their items(); other iterables must produce pairs.
    Only key-ordered mappings such as SortedDict are valid: a plain dict
    iterates in insertion order and is not checked.
    """
    if isinstance(obj, OrderedMapIterator): return obj
    if isinstance(obj, OrderedSetIterator):
        raise TypeError(f"expected an ordered map, got ordered set {obj!r}")
    if isinstance(obj, Mapping): return OrderedMap(obj.items())
    return OrderedMap(obj)


def as_set(obj) -> OrderedSetIterator:
    """Bridges `obj` into an ordered set iterator. Mappings contribute keys.

    As with as_map, a mapping must iterate its keys in ascending order.
    """
    if isinstance(obj, OrderedSetIterator): return obj
    if isinstance(obj, OrderedMapIterator):
        raise TypeError(f"expected an ordered set, got ordered map {obj!r}")
    return OrderedSet(obj)


# ----- INNER JOINS -----
# Each call to __next__ pulls a fresh element from both sides, then advances
# whichever side is behind until the keys meet. Running out on either side
# finishes the join for good; the other side is not drained.
class InnerJoinMap(OrderedMapIterator):
    def __init__(self, a: OrderedMapIterator, b: OrderedMapIterator):
        self.a = a
        self.b = b
        self.finished = False

    def __next__(self):
        if self.finished: raise StopIteration
        try:
            key_a, val_a = next(self.a)
            key_b, val_b = next(self.b)
            while True:
                if key_a < key_b: key_a, val_a = next(self.a)
                elif key_b < key_a: key_b, val_b = next(self.b)
                else: return key_a, (val_a, val_b)
        except StopIteration:
            self.finished = True
            raise

    def debug_dump(self, name=None):
        logger.debug("inner join map", name=name, finished=self.finished,
                     a=type(self.a).__name__, b=type(self.b).__name__)
        _dump_inputs(name, a=self.a, b=self.b)


class InnerJoinMapSet(OrderedMapIterator):
    def __init__(self, map: OrderedMapIterator, set: OrderedSetIterator):
        self.map = map
        self.set = set
        self.finished = False

    def __next__(self):
        if self.finished: raise StopIteration
        try:
            key_set = next(self.set)
            key_map, value = next(self.map)
            while True:
                if key_set < key_map: key_set = next(self.set)
                elif key_map < key_set: key_map, value = next(self.map)
                else: return key_map, value
        except StopIteration:
            self.finished = True
            raise

    def debug_dump(self, name=None):
        logger.debug("inner join map/set", name=name, finished=self.finished,
                     map=type(self.map).__name__, set=type(self.set).__name__)
        _dump_inputs(name, map=self.map, set=self.set)


class InnerJoinSet(OrderedSetIterator):
    def __init__(self, a: OrderedSetIterator, b: OrderedSetIterator):
        self.a = a
        self.b = b
        self.finished = False

    def __next__(self):
        if self.finished: raise StopIteration
        try:
            key_a = next(self.a)
            key_b = next(self.b)
            while True:
                if key_a < key_b: key_a = next(self.a)
                elif key_b < key_a: key_b = next(self.b)
                else: return key_a
        except StopIteration:
            self.finished = True
            raise

    def debug_dump(self, name=None):
        logger.debug("inner join set", name=name, finished=self.finished,
                     a=type(self.a).__name__, b=type(self.b).__name__)
        _dump_inputs(name, a=self.a, b=self.b)


# ----- OUTER JOIN -----
def _show(x): return "<empty>" if x is _NOTHING else repr(x)


# One-element look-ahead over an iterator. The slot is filled lazily and
# emptied by take().
class _Peek:
    def __init__(self, it):
        self.it = it
        self.slot = _NOTHING
        self.done = False

    # Returns the next element without consuming it, or _NOTHING if the
    # iterator is exhausted.
    def peek(self):
        if self.slot is _NOTHING and not self.done:
            try: self.slot = next(self.it)
            except StopIteration: self.done = True
        return self.slot

    # precondition: peek() just returned an element.
    def take(self):
        elem = self.slot
        assert elem is not _NOTHING, "took from an empty peek slot"
        self.slot = _NOTHING
        return elem


class OuterJoin(OrderedMapIterator):
    def __init__(self, left: OrderedMapIterator, right: OrderedMapIterator,
                 default: Any = None):
        self.left = _Peek(left)
        self.right = _Peek(right)
        self.default = default

    def __next__(self):
        left, right = self.left.peek(), self.right.peek()
        if left is _NOTHING and right is _NOTHING:
            raise StopIteration
        if right is _NOTHING or (left is not _NOTHING and left[0] < right[0]):
            key, value = self.left.take()
            return key, (value, self.default)
        if left is _NOTHING or right[0] < left[0]:
            key, value = self.right.take()
            return key, (self.default, value)
        (key, a), (_, b) = self.left.take(), self.right.take()
        return key, (a, b)

    def debug_dump(self, name=None):
        logger.debug("outer join", name=name,
                     left=type(self.left.it).__name__, left_peek=_show(self.left.slot),
                     left_done=self.left.done,
                     right=type(self.right.it).__name__, right_peek=_show(self.right.slot),
                     right_done=self.right.done)
        _dump_inputs(name, left=self.left.it, right=self.right.it)


# ----- CHAINING & DEBUGGING -----
def intersection(first, *rest) -> OrderedSetIterator:
    """Intersects any number of ordered sets by chaining pairwise joins.

    intersection(a, b, c) is a.inner_join_set(b).inner_join_set(c).
    """
    return reduce(lambda acc, s: acc.inner_join_set(s), rest, as_set(first))


def trace(it, name=None):
    """Passes `it` through unchanged, logging each element at debug level.

    The result satisfies the same contract as `it`, so a traced join can be
    chained like the untraced one.
    """
    traced = _trace(it, name)
    if isinstance(it, OrderedMapIterator): return OrderedMap(traced)
    if isinstance(it, OrderedSetIterator): return OrderedSet(traced)
    return traced

def _trace(it, name):
    count = 0
    for elem in it:
        logger.debug("produced", name=name, index=count, element=elem)
        count += 1
        yield elem
    logger.debug("exhausted", name=name, count=count)
