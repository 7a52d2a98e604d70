
import sys
import os
import json
import decimal
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import stakelect.persist
from stakelect.config import ElectionConfig, UNIT_PRECISION_FACTOR
from stakelect.errors import ValidationError


def test_defaults():
    config = ElectionConfig()
    assert config.min_electable_validators == 1
    assert config.max_electable_validators == 100
    assert config.electability_threshold == 0
    assert isinstance(config.electability_threshold, Fraction)
    assert config.unit_precision_factor == UNIT_PRECISION_FACTOR


@pytest.mark.parametrize('threshold, expected', [
    (Fraction(1, 20), Fraction(1, 20)),
    (decimal.Decimal('0.05'), Fraction(1, 20)),
    (0, Fraction(0)),
])
def test_threshold_exact(threshold, expected):
    config = ElectionConfig(electability_threshold=threshold)
    assert config.electability_threshold == expected


@pytest.mark.parametrize('threshold', [1, Fraction(3, 2), -Fraction(1, 10)])
def test_invalid_threshold(threshold):
    with pytest.raises(ValidationError):
        ElectionConfig(electability_threshold=threshold)


@pytest.mark.parametrize('bounds', [(0, 5), (6, 5), (-1, 1)])
def test_invalid_electable_bounds(bounds):
    with pytest.raises(ValidationError):
        ElectionConfig(*bounds)


def test_set_electable_validators():
    config = ElectionConfig(2, 10)
    config.set_electable_validators(3, 3)
    assert (config.min_electable_validators, config.max_electable_validators) == (3, 3)
    with pytest.raises(ValidationError):
        config.set_electable_validators(4, 3)
    assert (config.min_electable_validators, config.max_electable_validators) == (3, 3)


@pytest.mark.parametrize('value', [0, -1, 1.5, True, '3'])
def test_invalid_max_groups(value):
    with pytest.raises(ValidationError):
        ElectionConfig(max_groups_voted_for=value)
    config = ElectionConfig()
    with pytest.raises(ValidationError):
        config.max_groups_voted_for = value
    assert config.max_groups_voted_for == 10


@pytest.mark.parametrize('factor', [0, -10, 1.5, True])
def test_invalid_precision_factor(factor):
    with pytest.raises(ValidationError):
        ElectionConfig(unit_precision_factor=factor)


def test_persist_roundtrip():
    config = ElectionConfig(
        min_electable_validators=3,
        max_electable_validators=7,
        max_groups_voted_for=4,
        electability_threshold=Fraction(3, 100),
        unit_precision_factor=1000,
    )
    dumped = json.dumps(stakelect.persist.to_dict(config))
    loaded = stakelect.persist.from_dict(json.loads(dumped))
    assert isinstance(loaded, ElectionConfig)
    assert loaded.min_electable_validators == 3
    assert loaded.max_electable_validators == 7
    assert loaded.max_groups_voted_for == 4
    assert loaded.electability_threshold == Fraction(3, 100)
    assert loaded.unit_precision_factor == 1000


def test_persist_format():
    config_dict = stakelect.persist.to_dict(
        ElectionConfig(electability_threshold=Fraction(1, 10))
    )
    assert config_dict['class'] == 'stakelect.config.ElectionConfig'
    assert config_dict['electability_threshold'] == {
        'type': 'Fraction', 'arguments': [1, 10]
    }


def test_persist_decimal():
    assert stakelect.persist.deserialize_value(
        stakelect.persist.serialize_value(decimal.Decimal('0.25'))
    ) == decimal.Decimal('0.25')


@pytest.mark.parametrize('value', [
    [1, 2],
    {'min_electable_validators': 1},
    {'class': 'not an identifier'},
    {'class': 'os.path.join', 'a': 'b'},
    {'class': 'stakelect.config.UNIT_PRECISION_FACTOR'},
])
def test_from_dict_invalid(value):
    with pytest.raises(ValueError):
        stakelect.persist.from_dict(value)


def test_serialize_unknown():
    with pytest.raises(ValueError):
        stakelect.persist.serialize_value(object())
