'''Various utility functions for other modules of Stakelect.

Mostly checked integer arithmetic. Ledger amounts are unbounded Python
integers, but they are kept within the range of an unsigned 256-bit word
and never allowed to go negative, so that a ledger replayed elsewhere cannot
diverge by wrapping.

There should normally be no need to use these functions directly.
'''

import operator
from fractions import Fraction
from typing import Any, Dict, List, Tuple, Union
from numbers import Number

from stakelect.errors import LedgerArithmeticError, ValidationError


MAX_VALUE: int = 2 ** 256 - 1


def check_amount(value: Any, name: str = 'value') -> int:
    '''Check the value is a non-negative integer amount and return it.'''
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'{name} must be an integer, got {value!r}')
    if value < 0 or value > MAX_VALUE:
        raise LedgerArithmeticError('amount', value)
    return value


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > MAX_VALUE:
        raise LedgerArithmeticError('addition', a, b)
    return result


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise LedgerArithmeticError('subtraction', a, b)
    return a - b


def checked_mul(a: int, b: int) -> int:
    result = a * b
    if result > MAX_VALUE:
        raise LedgerArithmeticError('multiplication', a, b)
    return result


def checked_div(a: int, b: int) -> int:
    '''Divide, truncating toward zero.'''
    if b == 0:
        raise LedgerArithmeticError('division', a, b)
    return a // b


def truncate(value: Union[int, Fraction]) -> int:
    '''Truncate an exact fraction toward zero.'''
    return int(value)


def to_fraction(value: Number) -> Fraction:
    '''Convert an int, Fraction or Decimal to an exact Fraction.'''
    if isinstance(value, Fraction):
        return value
    elif isinstance(value, int):
        return Fraction(value)
    else:
        return Fraction(*value.as_integer_ratio())


def sorted_votes(votes: Dict[Any, Number],
                 descending: bool = True,
                 ) -> List[Tuple[Any, Number]]:
    '''Return votes items sorted by value.'''
    return list(sorted(
        votes.items(),
        key=operator.itemgetter(1),
        reverse=descending
    ))
