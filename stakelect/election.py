'''Election of the validator set from the ranking of eligible groups.

Seats are distributed among the groups by a highest-averages method
(D'Hondt by default) limited by the number of members each group has. The
groups taking part are the top-ranked eligible groups holding at least
the electability threshold of all votes, at most as many as there are seats.
Each group with seats then contributes its top-ranked members, in the order
of the group ranking.

The distribution keeps the groups in a max-heap keyed by the value of their
next seat (their votes divided by the divisor for the seats they hold), so
awarding a seat costs a logarithmic number of steps in the number of groups
instead of re-sorting them. A group that has as many seats as members gets
its key forced to zero; the distribution stops when all seats are filled or
no group has a nonzero key.

Ties between groups with an equal next seat value are broken in favor of
the group ranked higher by votes. This order is a property of this
implementation, not a rule of the election.
'''

import heapq
import logging
from fractions import Fraction
from typing import Any, Callable, Dict, List, Optional, Union
from numbers import Number

import stakelect.util
import stakelect.component.divisor
from stakelect.collaborator import FreezeFlag, GroupCatalog
from stakelect.errors import CapacityError, FrozenError, ValidationError
from stakelect.ledger import LedgerSnapshot, VoteLedger

logger = logging.getLogger(__name__)


class ElectionEngine:
    '''Elect validators from the groups ranked by a vote ledger.

    :param ledger: The vote ledger providing the ranking, total votes and
        the election parameters (:attr:`VoteLedger.config`).
    :param group_catalog: Registry of group members; the ledger's catalog is
        used if omitted.
    :param freeze_flag: If given and frozen, :meth:`elect_validator_signers`
        refuses to run.
    :param divisor_function: A callable producing the divisor from the number
        of seats a group holds, or a name of one from
        :mod:`stakelect.component.divisor`.
    '''
    def __init__(self,
                 ledger: VoteLedger,
                 group_catalog: Optional[GroupCatalog] = None,
                 freeze_flag: Optional[FreezeFlag] = None,
                 divisor_function: Union[
                     str, Callable[[int], Number]
                 ] = 'd_hondt',
                 ):
        self.ledger = ledger
        self.group_catalog = (
            group_catalog if group_catalog is not None
            else ledger.group_catalog
        )
        self.freeze_flag = freeze_flag
        self.divisor_function = stakelect.component.divisor.construct(
            divisor_function
        )

    def elect_validator_signers(self) -> List[Any]:
        '''Elect the validators for the next epoch.

        Uses the bounds on the number of electable validators from the
        ledger configuration.

        :raises FrozenError: If elections are frozen.
        :raises CapacityError: If fewer than the minimum number of validators
            can be elected.
        '''
        if self.freeze_flag is not None and self.freeze_flag.is_frozen():
            raise FrozenError('validator elections are frozen')
        config = self.ledger.config
        return self.elect_n_validator_signers(
            config.min_electable_validators,
            config.max_electable_validators,
        )

    def elect_n_validator_signers(self,
                                  min_electable: int,
                                  max_electable: int,
                                  snapshot: Optional[LedgerSnapshot] = None,
                                  ) -> List[Any]:
        '''Elect between min_electable and max_electable validators.

        :param snapshot: Ledger state to elect from; a fresh snapshot of the
            ledger is taken if None.
        :returns: Elected validators, grouped by their groups in ranking
            order, each group's members in the group's own order.
        '''
        seats = self.allocate_seats(min_electable, max_electable, snapshot)
        elected = []
        for group, n_seats in seats.items():
            elected.extend(
                self.group_catalog.get_top_group_members(group, n_seats)
            )
        return elected

    def allocate_seats(self,
                       min_electable: int,
                       max_electable: int,
                       snapshot: Optional[LedgerSnapshot] = None,
                       ) -> Dict[Any, int]:
        '''Distribute seats among the eligible groups.

        :returns: Number of seats per group that got any, in ranking order.
        :raises CapacityError: If fewer than min_electable seats can be
            filled.
        '''
        if not (0 <= min_electable <= max_electable):
            raise ValidationError(
                f'invalid electable bounds: {min_electable}, {max_electable}'
            )
        if snapshot is None:
            snapshot = self.ledger.snapshot()
        ranking = snapshot.ranking
        required_votes = stakelect.util.truncate(
            self.ledger.config.electability_threshold
            * snapshot.get_total_votes()
        )
        n_groups = ranking.num_elements_greater_than(
            required_votes, max_electable
        )
        groups = ranking.head_n(n_groups)
        group_votes = [ranking.get_value(group) for group in groups]
        capacities = self.group_catalog.get_groups_member_counts(groups)
        awarded = [0] * n_groups
        # entries are (-next seat value, ranking position)
        heap = [
            (-self._next_seat_value(group_votes[i], 0), i)
            for i in range(n_groups)
        ]
        heapq.heapify(heap)
        n_awarded = 0
        while n_awarded < max_electable and heap:
            neg_value, i = heap[0]
            if neg_value == 0:
                break
            if awarded[i] >= capacities[i]:
                logger.debug('group %s has no more members to elect',
                             groups[i])
                heapq.heapreplace(heap, (0, i))
                continue
            awarded[i] += 1
            n_awarded += 1
            logger.debug('seat %d awarded to group %s at %s votes',
                         n_awarded, groups[i], -neg_value)
            heapq.heapreplace(
                heap, (-self._next_seat_value(group_votes[i], awarded[i]), i)
            )
        if n_awarded < min_electable:
            raise CapacityError(
                f'only {n_awarded} validators can be elected, '
                f'minimum {min_electable}'
            )
        seats = {
            groups[i]: awarded[i] for i in range(n_groups) if awarded[i]
        }
        logger.info('%d seats awarded to %d groups: %s',
                    n_awarded, len(seats), seats)
        return seats

    def _next_seat_value(self, votes: int, seats: int) -> Fraction:
        return stakelect.component.divisor.next_seat_value(
            votes, seats, self.divisor_function
        )
