
import sys
import os
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import stakelect.component.divisor as d
from stakelect.errors import ValidationError

TEST_ORDERS = list(range(10)) + [100, 1000, 10000]


@pytest.mark.parametrize(
    'order', TEST_ORDERS
)
def test_result(order):
    for fx in d.DIVISORS.values():
        assert fx(order) > 0


def test_increasing():
    for fx in d.DIVISORS.values():
        divisors = [fx(order) for order in TEST_ORDERS]
        assert divisors == sorted(divisors)


def test_get():
    for fx_name, fx in d.DIVISORS.items():
        assert d.get(fx_name) == fx
    for bad_name in ('oapsdjf', '', None):
        with pytest.raises(ValidationError):
            d.get(bad_name)


def test_construct():
    for fx_name, fx in d.DIVISORS.items():
        assert d.construct(fx_name) == d.get(fx_name) == fx
    with pytest.raises(ValidationError):
        d.construct('oapsdjf')
    def own_divf(ord):
        return ord + 2
    assert d.construct(own_divf) == own_divf


def test_next_seat_value():
    assert d.next_seat_value(2000, 0, d.d_hondt) == 2000
    assert d.next_seat_value(2000, 2, d.d_hondt) == Fraction(2000, 3)
    assert d.next_seat_value(300, 1, d.sainte_lague) == 100
    assert d.next_seat_value(300, 1, d.imperiali) == 200
