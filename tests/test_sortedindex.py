
import sys
import os
import random

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import stakelect.sortedindex
from stakelect.errors import ConsistencyError, ValidationError


def build_index(weights):
    index = stakelect.sortedindex.SortedIndex()
    for key, weight in weights.items():
        index.insert(key, weight, *index.get_hints(key, weight))
    return index


def assert_descending(index):
    keys, weights = index.get_elements()
    assert weights == sorted(weights, reverse=True)
    assert len(keys) == len(index)
    if keys:
        assert index.head == keys[0]
        assert index.tail == keys[-1]


def test_insert_empty_null_hints():
    index = stakelect.sortedindex.SortedIndex()
    index.insert('a', 10)
    assert index.get_keys() == ['a']
    assert index.head == index.tail == 'a'


def test_null_hints_tail_and_head():
    index = stakelect.sortedindex.SortedIndex()
    index.insert('a', 10)
    index.insert('b', 5)
    index.insert('c', 20)
    assert index.get_elements() == (['c', 'a', 'b'], [20, 10, 5])


def test_null_hints_middle_fail():
    index = build_index({'c': 20, 'a': 10, 'b': 5})
    with pytest.raises(ConsistencyError):
        index.insert('d', 7)
    assert 'd' not in index
    index.insert('d', 7, lesser='b')
    assert index.get_keys() == ['c', 'a', 'd', 'b']


def test_insert_by_greater_hint():
    index = build_index({'c': 20, 'a': 10, 'b': 5})
    index.insert('d', 15, greater='c')
    assert index.get_keys() == ['c', 'd', 'a', 'b']


@pytest.mark.parametrize(('lesser', 'greater'), [
    ('c', None),
    ('a', 'c'),
    (None, 'c'),
])
def test_wrong_hints(lesser, greater):
    index = build_index({'c': 20, 'a': 10, 'b': 5})
    with pytest.raises(ConsistencyError):
        index.insert('d', 7, lesser, greater)
    assert index.get_elements() == (['c', 'a', 'b'], [20, 10, 5])


def test_unknown_hint():
    index = build_index({'a': 10})
    with pytest.raises(ConsistencyError):
        index.insert('b', 5, lesser='nonexistent')


def test_invalid_keys():
    index = build_index({'a': 10})
    with pytest.raises(ValidationError):
        index.insert('a', 3)
    with pytest.raises(ValidationError):
        index.insert(None, 3)
    with pytest.raises(ValidationError):
        index.insert('b', 3, lesser='b')
    with pytest.raises(ValidationError):
        index.update('a', 3, greater='a')
    with pytest.raises(ValidationError):
        index.remove('b')
    with pytest.raises(ValidationError):
        index.update('b', 4)
    with pytest.raises(ValidationError):
        index.get_value('b')


def test_remove():
    index = build_index({'c': 20, 'a': 10, 'b': 5})
    index.remove('a')
    assert index.get_keys() == ['c', 'b']
    index.remove('c')
    assert index.head == index.tail == 'b'
    index.remove('b')
    assert len(index) == 0
    assert index.head is None and index.tail is None


def test_update():
    index = build_index({'c': 20, 'a': 10, 'b': 5})
    index.update('b', 15, lesser='a', greater='c')
    assert index.get_elements() == (['c', 'b', 'a'], [20, 15, 10])
    index.update('b', 30)
    assert index.get_keys() == ['b', 'c', 'a']


def test_update_next_to_own_position():
    index = build_index({'c': 20, 'a': 10, 'b': 5})
    # the greater neighbor of b is a itself, which is skipped
    index.update('a', 12, lesser='b', greater='c')
    assert index.get_elements() == (['c', 'a', 'b'], [20, 12, 5])


def test_update_single():
    index = build_index({'a': 10})
    index.update('a', 100)
    assert index.get_elements() == (['a'], [100])


def test_failed_update_unchanged():
    index = build_index({'c': 20, 'a': 10, 'b': 5})
    with pytest.raises(ConsistencyError):
        index.update('b', 30, lesser='a', greater='c')
    assert index.get_elements() == (['c', 'a', 'b'], [20, 10, 5])
    with pytest.raises(ConsistencyError):
        index.check_update('b', 30, lesser='a', greater='c')


def test_head_n():
    index = build_index({'c': 20, 'a': 10, 'b': 5})
    assert index.head_n(0) == []
    assert index.head_n(2) == ['c', 'a']
    assert index.head_n(3) == ['c', 'a', 'b']
    with pytest.raises(ValidationError):
        index.head_n(4)


@pytest.mark.parametrize(('threshold', 'max_n', 'expected'), [
    (0, 10, 3),
    (10, 10, 2),
    (11, 10, 1),
    (100, 10, 0),
    (0, 2, 2),
    (5, 0, 0),
])
def test_num_elements_greater_than(threshold, max_n, expected):
    index = build_index({'c': 20, 'a': 10, 'b': 5})
    assert index.num_elements_greater_than(threshold, max_n) == expected


def test_neighbors_put_key_back():
    index = build_index({'a': 10, 'b': 20, 'c': 10, 'd': 5})
    before = index.get_elements()
    assert index.get_neighbors(index.head) == (index.get_keys()[1], None)
    assert index.get_neighbors(index.tail) == (None, index.get_keys()[-2])
    lesser, greater = index.get_neighbors('a')
    weight = index.get_value('a')
    index.update('a', 30, *index.get_hints('a', 30))
    index.update('a', weight, lesser, greater)
    assert index.get_elements() == before
    with pytest.raises(ValidationError):
        index.get_neighbors('x')


def test_copy_independent():
    index = build_index({'c': 20, 'a': 10})
    copied = index.copy()
    index.update('a', 30)
    assert copied.get_elements() == (['c', 'a'], [20, 10])
    assert index.get_keys() == ['a', 'c']


def test_random_operations_stay_sorted():
    rng = random.Random(1234)
    index = stakelect.sortedindex.SortedIndex()
    weights = {}
    for i in range(500):
        key = rng.randrange(30)
        weight = rng.randrange(50)
        op = rng.random()
        if key not in weights:
            index.insert(key, weight, *index.get_hints(key, weight))
            weights[key] = weight
        elif op < 0.2:
            index.remove(key)
            del weights[key]
        else:
            index.update(key, weight, *index.get_hints(key, weight))
            weights[key] = weight
        assert_descending(index)
        assert dict(index.items()) == weights
