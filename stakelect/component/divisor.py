'''Divisor functions giving the value of a group's next seat.

The election awards seats one by one to the group whose votes divided by the
divisor for its next seat are the largest (a highest-averages method).
A divisor function takes the number of seats the group has been awarded so
far and returns the divisor; it must be positive for every order including
zero, since every group starts with no seats.

All supported divisor functions are assembled in the `DIVISORS` dictionary
keyed by their name. `get()` retrieves from this dictionary by string key;
`construct()` also accepts callables and passes them through.
'''

from fractions import Fraction
from typing import Callable
from numbers import Number

import stakelect.component.core


DIVISORS = {}


divisor_mark, get, construct = stakelect.component.core.register_functions(
    DIVISORS, 'divisor'
)


@divisor_mark
def d_hondt(order: int) -> int:
    '''D'Hondt divisor, the election default.

    Forms a simple sequence 1, 2, 3..., so the next seat of a group is worth
    its votes divided by the number of seats it would then hold.
    Slightly favors groups with more votes.
    '''
    return order + 1


@divisor_mark
def sainte_lague(order: int) -> int:
    '''Sainte-Laguë (Webster) divisor.

    Forms a sequence 1, 3, 5...; spreads seats more evenly among groups.
    '''
    return 2 * order + 1


@divisor_mark
def imperiali(order: int) -> Fraction:
    '''Imperiali divisor, forming a sequence 1, 1.5, 2...

    Concentrates seats in the largest groups.
    '''
    return Fraction(order, 2) + 1


def next_seat_value(votes: int,
                    seats: int,
                    divisor_fx: Callable[[int], Number],
                    ) -> Fraction:
    '''Return the exact value of the next seat for a group.'''
    return Fraction(votes) / divisor_fx(seats)
