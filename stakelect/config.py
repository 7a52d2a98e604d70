'''Governance parameters of the vote ledger and the election.

The parameters are plain attributes validated on construction and by their
setters, so that a ledger never runs with a nonsensical setup (e.g. more
minimum than maximum seats or an electability threshold of 100 %).
'''

import logging
from fractions import Fraction
from typing import Union
from numbers import Number

import stakelect.util
from stakelect.errors import ValidationError
from stakelect.persist import simple_serialization

logger = logging.getLogger(__name__)

UNIT_PRECISION_FACTOR: int = 10 ** 20
'''Number of vote units credited per vote on the first activation for a
group. Keeps the unit price precise after many reward distributions.'''


@simple_serialization
class ElectionConfig:
    '''Parameters of the vote ledger and the validator election.

    :param min_electable_validators: Minimum number of validators that must
        be elected, otherwise the election fails.
    :param max_electable_validators: Maximum number of validators (seats)
        to elect. Also bounds the number of groups taking part.
    :param max_groups_voted_for: Maximum number of distinct groups a single
        account can hold votes for at the same time.
    :param electability_threshold: Minimum fraction of all votes a group
        must hold to take part in the election; in ``[0, 1)``.
    :param unit_precision_factor: Vote units per vote credited on the first
        activation for a group.
    '''
    def __init__(self,
                 min_electable_validators: int = 1,
                 max_electable_validators: int = 100,
                 max_groups_voted_for: int = 10,
                 electability_threshold: Union[Number, Fraction] = 0,
                 unit_precision_factor: int = UNIT_PRECISION_FACTOR,
                 ):
        self.set_electable_validators(
            min_electable_validators, max_electable_validators
        )
        self.max_groups_voted_for = max_groups_voted_for
        self.electability_threshold = electability_threshold
        if (isinstance(unit_precision_factor, bool)
                or not isinstance(unit_precision_factor, int)
                or unit_precision_factor <= 0):
            raise ValidationError(
                f'invalid unit precision factor: {unit_precision_factor!r}'
            )
        self.unit_precision_factor = unit_precision_factor

    def __repr__(self) -> str:
        return (
            f'<ElectionConfig({self.min_electable_validators}'
            f'-{self.max_electable_validators} seats,'
            f'{self.max_groups_voted_for} groups,'
            f'threshold {self.electability_threshold})>'
        )

    def set_electable_validators(self, min_n: int, max_n: int) -> None:
        '''Set the bounds on the number of elected validators.'''
        if not (0 < min_n <= max_n):
            raise ValidationError(
                f'invalid electable validators bounds: {min_n}, {max_n}'
            )
        self.min_electable_validators = min_n
        self.max_electable_validators = max_n
        logger.info('electable validators set to %d-%d', min_n, max_n)

    @property
    def max_groups_voted_for(self) -> int:
        return self._max_groups_voted_for

    @max_groups_voted_for.setter
    def max_groups_voted_for(self, value: int) -> None:
        if (isinstance(value, bool) or not isinstance(value, int)
                or value <= 0):
            raise ValidationError(f'invalid max groups voted for: {value!r}')
        self._max_groups_voted_for = value

    @property
    def electability_threshold(self) -> Fraction:
        return self._electability_threshold

    @electability_threshold.setter
    def electability_threshold(self, value: Number) -> None:
        threshold = stakelect.util.to_fraction(value)
        if not (0 <= threshold < 1):
            raise ValidationError(
                f'electability threshold must be in [0, 1): {value}'
            )
        self._electability_threshold = threshold
