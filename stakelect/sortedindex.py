'''A descending sorted index of keys weighted by a number.

The index keeps its keys in a doubly linked arena - a dictionary mapping each
key to its lesser and greater neighbor - with the greatest weight at the head
and the smallest at the tail. Finding the position for a new weight is not
done by searching: the caller passes the expected neighbors (*hints*) and the
index only checks them locally. This makes insertions and updates cost O(1)
regardless of the index size; the caller computes the hints out of band, e.g.
by :meth:`SortedIndex.get_hints`.

A hint of ``None`` means "no neighbor on this side", i.e. the new weight goes
to the tail (``lesser=None``) or to the head (``greater=None``). A hint that
does not bracket the weight raises a
:class:`stakelect.errors.ConsistencyError` and leaves the index unchanged.
'''

from typing import Any, Dict, Iterator, List, Optional, Tuple
from numbers import Number

from stakelect.errors import ConsistencyError, ValidationError


Key = Any


class _Node:
    __slots__ = ('weight', 'lesser', 'greater')

    def __init__(self,
                 weight: Number,
                 lesser: Optional[Key] = None,
                 greater: Optional[Key] = None,
                 ):
        self.weight = weight
        self.lesser = lesser
        self.greater = greater

    def __repr__(self) -> str:
        return f'<_Node({self.weight},{self.lesser!r},{self.greater!r})>'


class SortedIndex:
    '''Keys ordered by descending weight, with hint-assisted mutation.

    Keys can be any hashable objects except ``None``, which is reserved for
    the null hint. Ties are kept in insertion order as allowed by the hints
    (an equal weight can go on either side of its equals).
    '''
    def __init__(self):
        self._nodes: Dict[Key, _Node] = {}
        self._head: Optional[Key] = None
        self._tail: Optional[Key] = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, key: Key) -> bool:
        return key in self._nodes

    def __iter__(self) -> Iterator[Key]:
        key = self._head
        while key is not None:
            yield key
            key = self._nodes[key].lesser

    def __repr__(self) -> str:
        items = ', '.join(f'{key!r}: {w}' for key, w in self.items())
        return f'<SortedIndex({{{items}}})>'

    @property
    def head(self) -> Optional[Key]:
        '''The key with the greatest weight, or None if empty.'''
        return self._head

    @property
    def tail(self) -> Optional[Key]:
        '''The key with the smallest weight, or None if empty.'''
        return self._tail

    def contains(self, key: Key) -> bool:
        return key in self._nodes

    def get_value(self, key: Key) -> Number:
        '''Return the weight of the key.

        :raises ValidationError: If the key is not present.
        '''
        try:
            return self._nodes[key].weight
        except KeyError:
            raise ValidationError(f'key not in index: {key!r}')

    def get_neighbors(self, key: Key) -> Tuple[Optional[Key], Optional[Key]]:
        '''Return the ``(lesser, greater)`` neighbors of the key.

        These are valid hints to put the key back to its current place.

        :raises ValidationError: If the key is not present.
        '''
        try:
            node = self._nodes[key]
        except KeyError:
            raise ValidationError(f'key not in index: {key!r}')
        return node.lesser, node.greater

    def items(self) -> Iterator[Tuple[Key, Number]]:
        for key in self:
            yield key, self._nodes[key].weight

    def get_keys(self) -> List[Key]:
        '''Return all keys from the head (greatest) to the tail.'''
        return list(self)

    def get_elements(self) -> Tuple[List[Key], List[Number]]:
        '''Return all keys and their weights from the head to the tail.'''
        keys = []
        weights = []
        for key, weight in self.items():
            keys.append(key)
            weights.append(weight)
        return keys, weights

    def head_n(self, n: int) -> List[Key]:
        '''Return the n keys with the greatest weights.

        :raises ValidationError: If n exceeds the number of keys.
        '''
        if n < 0 or n > len(self._nodes):
            raise ValidationError(
                f'cannot take {n} keys from an index of {len(self._nodes)}'
            )
        out = []
        key = self._head
        while len(out) < n:
            out.append(key)
            key = self._nodes[key].lesser
        return out

    def num_elements_greater_than(self, threshold: Number, max_n: int) -> int:
        '''Count head-side keys with weight at or above the threshold.

        Stops at the first key below the threshold or after max_n keys.
        '''
        limit = min(max_n, len(self._nodes))
        key = self._head
        for i in range(limit):
            if self._nodes[key].weight < threshold:
                return i
            key = self._nodes[key].lesser
        return limit

    def insert(self,
               key: Key,
               weight: Number,
               lesser: Optional[Key] = None,
               greater: Optional[Key] = None,
               ) -> None:
        '''Insert a key between its hinted neighbors.

        :param key: The key to insert; must not be present yet.
        :param weight: Weight of the key.
        :param lesser: Expected neighbor with a smaller or equal weight, or
            None if the key goes to the tail.
        :param greater: Expected neighbor with a greater or equal weight, or
            None if the key goes to the head.
        :raises ValidationError: If the key is None, already present, or
            equal to one of the hints.
        :raises ConsistencyError: If the hints do not bracket the weight.
        '''
        self._check_key(key, lesser, greater)
        if key in self._nodes:
            raise ValidationError(f'key already in index: {key!r}')
        new_lesser, new_greater = self._locate(weight, lesser, greater)
        self._link(key, weight, new_lesser, new_greater)

    def remove(self, key: Key) -> None:
        '''Remove a key, joining its neighbors.

        :raises ValidationError: If the key is not present.
        '''
        if key not in self._nodes:
            raise ValidationError(f'key not in index: {key!r}')
        self._unlink(key)

    def update(self,
               key: Key,
               weight: Number,
               lesser: Optional[Key] = None,
               greater: Optional[Key] = None,
               ) -> None:
        '''Change the weight of a present key and move it to the hinted place.

        The hints are checked as if the key were already removed; if they are
        wrong, the index is left untouched.
        '''
        self._check_key(key, lesser, greater)
        if key not in self._nodes:
            raise ValidationError(f'key not in index: {key!r}')
        new_lesser, new_greater = self._locate(
            weight, lesser, greater, exclude=key
        )
        self._unlink(key)
        self._link(key, weight, new_lesser, new_greater)

    def check_update(self,
                     key: Key,
                     weight: Number,
                     lesser: Optional[Key] = None,
                     greater: Optional[Key] = None,
                     ) -> None:
        '''Raise the error :meth:`update` would raise, without mutating.'''
        self._check_key(key, lesser, greater)
        if key not in self._nodes:
            raise ValidationError(f'key not in index: {key!r}')
        self._locate(weight, lesser, greater, exclude=key)

    def check_insert(self,
                     key: Key,
                     weight: Number,
                     lesser: Optional[Key] = None,
                     greater: Optional[Key] = None,
                     ) -> None:
        '''Raise the error :meth:`insert` would raise, without mutating.'''
        self._check_key(key, lesser, greater)
        if key in self._nodes:
            raise ValidationError(f'key already in index: {key!r}')
        self._locate(weight, lesser, greater)

    def get_hints(self,
                  key: Key,
                  weight: Number,
                  ) -> Tuple[Optional[Key], Optional[Key]]:
        '''Compute correct hints for placing the key at the given weight.

        This scans the whole index and is meant for callers preparing their
        arguments and for tests, not for use inside mutations.

        :returns: A ``(lesser, greater)`` tuple.
        '''
        greater = None
        for other, other_weight in self.items():
            if other == key:
                continue
            if other_weight < weight:
                return other, greater
            greater = other
        return None, greater

    def copy(self) -> 'SortedIndex':
        '''Return an independent copy of the index.'''
        other = SortedIndex()
        other._nodes = {
            key: _Node(node.weight, node.lesser, node.greater)
            for key, node in self._nodes.items()
        }
        other._head = self._head
        other._tail = self._tail
        return other

    def _check_key(self,
                   key: Key,
                   lesser: Optional[Key],
                   greater: Optional[Key],
                   ) -> None:
        if key is None:
            raise ValidationError('null key')
        if key == lesser or key == greater:
            raise ValidationError(f'key {key!r} cannot be its own neighbor')

    def _locate(self,
                weight: Number,
                lesser: Optional[Key],
                greater: Optional[Key],
                exclude: Optional[Key] = None,
                ) -> Tuple[Optional[Key], Optional[Key]]:
        '''Check the hints locally and return the actual neighbors.

        The excluded key is treated as absent from the index.
        '''
        for hint in (lesser, greater):
            if hint is not None and hint not in self._nodes:
                raise ConsistencyError(f'unknown hint key: {hint!r}')
        head = self._skip_down(self._head, exclude)
        tail = self._skip_up(self._tail, exclude)
        if lesser is None and self._is_between(weight, None, tail):
            return None, tail
        if greater is None and self._is_between(weight, head, None):
            return head, None
        if lesser is not None:
            above = self._skip_up(self._nodes[lesser].greater, exclude)
            if self._is_between(weight, lesser, above):
                return lesser, above
        if greater is not None:
            below = self._skip_down(self._nodes[greater].lesser, exclude)
            if self._is_between(weight, below, greater):
                return below, greater
        raise ConsistencyError(
            f'hints {lesser!r}, {greater!r} do not bracket weight {weight}'
        )

    def _is_between(self,
                    weight: Number,
                    lesser: Optional[Key],
                    greater: Optional[Key],
                    ) -> bool:
        return (
            (lesser is None or self._nodes[lesser].weight <= weight)
            and (greater is None or self._nodes[greater].weight >= weight)
        )

    def _skip_up(self, key: Optional[Key], exclude: Optional[Key]
                 ) -> Optional[Key]:
        if key is not None and key == exclude:
            return self._nodes[key].greater
        return key

    def _skip_down(self, key: Optional[Key], exclude: Optional[Key]
                   ) -> Optional[Key]:
        if key is not None and key == exclude:
            return self._nodes[key].lesser
        return key

    def _link(self,
              key: Key,
              weight: Number,
              lesser: Optional[Key],
              greater: Optional[Key],
              ) -> None:
        self._nodes[key] = _Node(weight, lesser, greater)
        if lesser is None:
            self._tail = key
        else:
            self._nodes[lesser].greater = key
        if greater is None:
            self._head = key
        else:
            self._nodes[greater].lesser = key

    def _unlink(self, key: Key) -> None:
        node = self._nodes.pop(key)
        if node.lesser is None:
            self._tail = node.greater
        else:
            self._nodes[node.lesser].greater = node.greater
        if node.greater is None:
            self._head = node.lesser
        else:
            self._nodes[node.greater].lesser = node.lesser
