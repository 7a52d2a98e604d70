'''Bookkeeping of votes cast by accounts for validator groups.

Accounts vote for groups with their non-voting stake. A fresh vote is
*pending*: it counts towards the group's total (and thus its ranking and
chance of election) but earns no rewards. Once an epoch has passed since the
vote was cast, the account can *activate* it, converting it to *units* of
the group's active vote pool at the current unit price.

Rewards for a group are added to its active pool as a whole, without
touching the unit balances of the accounts. Each unit thus becomes worth more
votes and all active voters of the group gain in proportion to their units,
while later activations pay the new, higher price. All divisions truncate
toward zero; the rounding dust stays in the pools.

The eligible groups are kept ranked by their total votes in a
:class:`stakelect.sortedindex.SortedIndex`. Operations changing the total of
an eligible group take the hints for its new position in the ranking; see
:meth:`VoteLedger.get_vote_hints` to compute them.

Every mutating operation is all-or-nothing: it validates its arguments
(including the ranking hints) before changing anything and raises a
subclass of :class:`stakelect.errors.LedgerError` otherwise. Mutations are
serialized by a per-ledger lock; a collaborator calling back into a mutating
operation of the ledger while another one is in progress gets a
:class:`stakelect.errors.ReentrancyError`.
'''

import contextlib
import functools
import logging
import threading
from fractions import Fraction
from typing import (
    Any, Collection, Dict, Iterator, List, Optional, Sequence, Tuple
)
from numbers import Number

import stakelect.util
from stakelect.collaborator import EpochClock, GroupCatalog, StakeSource
from stakelect.config import ElectionConfig
from stakelect.errors import (
    CapacityError, ConsistencyError, ReentrancyError, UnauthorizedError,
    ValidationError
)
from stakelect.sortedindex import SortedIndex
from stakelect.util import check_amount, checked_add, checked_mul, checked_sub

logger = logging.getLogger(__name__)

Account = Any
Group = Any

ROLE_STAKE = 'stake'
ROLE_REWARDS = 'rewards'
ROLE_CATALOG = 'catalog'


class PendingVote:
    '''Votes of an account for a group waiting for activation.

    :param value: Number of pending votes.
    :param epoch: Epoch in which votes were last added.
    '''
    __slots__ = ('value', 'epoch')

    def __init__(self, value: int = 0, epoch: int = 0):
        self.value = value
        self.epoch = epoch

    def __repr__(self) -> str:
        return f'<PendingVote({self.value},epoch {self.epoch})>'


class GroupVotes:
    '''Vote pools of a single group.'''
    def __init__(self):
        self.pending_total = 0
        self.pending_by_account: Dict[Account, PendingVote] = {}
        self.active_total = 0
        self.active_units_total = 0
        self.units_by_account: Dict[Account, int] = {}

    @property
    def total(self) -> int:
        return self.pending_total + self.active_total

    def __repr__(self) -> str:
        return (
            f'<GroupVotes(pending {self.pending_total},'
            f'active {self.active_total},units {self.active_units_total})>'
        )


class LedgerSnapshot:
    '''An independent copy of the ledger state the election works on.

    :param ranking: Copy of the ranking of eligible groups.
    :param pending_total: Total pending votes in the network.
    :param active_total: Total active votes in the network.
    '''
    def __init__(self,
                 ranking: SortedIndex,
                 pending_total: int,
                 active_total: int,
                 ):
        self.ranking = ranking
        self.pending_total = pending_total
        self.active_total = active_total

    def get_total_votes(self) -> int:
        return self.pending_total + self.active_total

    def get_eligible_groups(self) -> List[Group]:
        return self.ranking.get_keys()

    def get_total_votes_for_eligible_groups(self
                                            ) -> Tuple[List[Group], List[int]]:
        return self.ranking.get_elements()


class _MutationGuard:
    '''An exclusive lock that refuses reentry from its holding thread.'''
    def __init__(self):
        self._lock = threading.Lock()
        self._owner: Optional[int] = None

    @contextlib.contextmanager
    def hold(self) -> Iterator[None]:
        ident = threading.get_ident()
        if self._owner == ident:
            raise ReentrancyError('reentrant call into the vote ledger')
        with self._lock:
            self._owner = ident
            try:
                yield
            finally:
                self._owner = None


def mutating(method):
    '''Run the ledger method under the ledger's mutation guard.'''
    @functools.wraps(method)
    def guarded(self, *args, **kwargs):
        with self._guard.hold():
            return method(self, *args, **kwargs)
    return guarded


class _Checkpoint:
    '''Saved state of the groups voted for by one account.

    Restoring it undoes any changes made to those groups and the network
    totals since the checkpoint was taken. Ranking positions are only saved
    for the groups passed to :meth:`save_position` before they are moved,
    and restored by moving them back in reverse order.
    '''
    def __init__(self, ledger: 'VoteLedger', account: Account):
        self.account = account
        self.groups_voted_for = list(ledger._groups_voted_for.get(account, []))
        self.positions: List[
            Tuple[Group, int, Optional[Group], Optional[Group]]
        ] = []
        self.totals = (
            ledger.pending_total, ledger.active_total,
            ledger.active_units_total
        )
        self.group_states = {}
        for group in self.groups_voted_for:
            votes = ledger._groups[group]
            pending = votes.pending_by_account.get(account)
            self.group_states[group] = (
                votes.pending_total, votes.active_total,
                votes.active_units_total,
                None if pending is None else (pending.value, pending.epoch),
                votes.units_by_account.get(account),
            )

    def restore(self, ledger: 'VoteLedger') -> None:
        account = self.account
        if self.groups_voted_for:
            ledger._groups_voted_for[account] = self.groups_voted_for
        else:
            ledger._groups_voted_for.pop(account, None)
        for group, weight, lesser, greater in reversed(self.positions):
            ledger._eligible.update(group, weight, lesser, greater)
        (
            ledger.pending_total, ledger.active_total,
            ledger.active_units_total
        ) = self.totals
        for group, state in self.group_states.items():
            votes = ledger._groups[group]
            (
                votes.pending_total, votes.active_total,
                votes.active_units_total, pending, units
            ) = state
            if pending is None:
                votes.pending_by_account.pop(account, None)
            else:
                votes.pending_by_account[account] = PendingVote(*pending)
            if units is None:
                votes.units_by_account.pop(account, None)
            else:
                votes.units_by_account[account] = units

    def save_position(self, ledger: 'VoteLedger', group: Group) -> None:
        ranking = ledger._eligible
        if group in ranking:
            self.positions.append(
                (group, ranking.get_value(group)) + ranking.get_neighbors(group)
            )


class VoteLedger:
    '''Pending and active votes of accounts for validator groups.

    :param stake_source: Custody of the stake accounts vote with.
    :param group_catalog: Registry of groups and their members; used for the
        capacity check of incoming votes.
    :param epoch_clock: Source of the current epoch.
    :param config: Governance parameters; defaults are used if omitted.
    :param privileged: Callers allowed to perform privileged operations, by
        role: ``'stake'`` for :meth:`force_decrement_votes`, ``'rewards'``
        for :meth:`distribute_epoch_rewards` and ``'catalog'`` for
        :meth:`mark_group_eligible` and :meth:`mark_group_ineligible`. If
        None, the host is trusted to guard these operations itself.
    '''
    def __init__(self,
                 stake_source: StakeSource,
                 group_catalog: GroupCatalog,
                 epoch_clock: EpochClock,
                 config: Optional[ElectionConfig] = None,
                 privileged: Optional[Dict[str, Collection[Any]]] = None,
                 ):
        self.stake_source = stake_source
        self.group_catalog = group_catalog
        self.epoch_clock = epoch_clock
        self.config = config if config is not None else ElectionConfig()
        self.privileged = privileged
        self.pending_total = 0
        self.active_total = 0
        self.active_units_total = 0
        self._groups: Dict[Group, GroupVotes] = {}
        self._groups_voted_for: Dict[Account, List[Group]] = {}
        self._eligible = SortedIndex()
        self._guard = _MutationGuard()

    # --- voting ---

    @mutating
    def vote(self,
             account: Account,
             group: Group,
             value: int,
             lesser: Optional[Group] = None,
             greater: Optional[Group] = None,
             ) -> None:
        '''Vote for a group with the account's non-voting stake.

        The votes are pending until activated in a later epoch.

        :param account: The voting account.
        :param group: The group to vote for; must be eligible.
        :param value: Number of votes, taken from the non-voting stake.
        :param lesser: Ranking hint - the eligible group just below the new
            total of the group, or None if it will be last.
        :param greater: Ranking hint - the eligible group just above the new
            total of the group, or None if it will be first.
        '''
        value = check_amount(value)
        if group is None:
            raise ValidationError('null group')
        if value == 0:
            raise ValidationError('vote value cannot be zero')
        if group not in self._eligible:
            raise ValidationError(f'group {group!r} is not eligible')
        if not self.can_receive_votes(group, value):
            raise CapacityError(
                f'group {group!r} cannot receive {value} more votes', group
            )
        groups = self._groups_voted_for.get(account, [])
        is_new_group = group not in groups
        if is_new_group and len(groups) >= self.config.max_groups_voted_for:
            raise ValidationError(
                f'{account!r} already votes for {len(groups)} groups, '
                f'maximum {self.config.max_groups_voted_for}'
            )
        nonvoting = self.stake_source.get_account_nonvoting_stake(account)
        if value > nonvoting:
            raise ValidationError(
                f'{account!r} has only {nonvoting} non-voting stake, '
                f'cannot vote {value}'
            )
        votes = self._groups.get(group) or GroupVotes()
        pending = votes.pending_by_account.get(account) or PendingVote()
        new_pending = checked_add(pending.value, value)
        new_group_pending = checked_add(votes.pending_total, value)
        new_network_pending = checked_add(self.pending_total, value)
        new_group_total = checked_add(votes.total, value)
        self._eligible.check_update(group, new_group_total, lesser, greater)
        self.stake_source.decrement_nonvoting_balance(account, value)
        self._eligible.update(group, new_group_total, lesser, greater)
        if is_new_group:
            self._groups_voted_for.setdefault(account, []).append(group)
        pending.value = new_pending
        pending.epoch = self.epoch_clock.get_current_epoch()
        votes.pending_by_account[account] = pending
        votes.pending_total = new_group_pending
        self._groups[group] = votes
        self.pending_total = new_network_pending
        logger.info('%s voted %d for group %s (pending)', account, value, group)

    @mutating
    def activate(self, account: Account, group: Group) -> int:
        '''Convert the account's pending votes for the group to active votes.

        The pending votes must have been cast in an earlier epoch and be
        worth at least one unit at the current unit price; otherwise they stay
        pending (and revocable).

        :returns: Number of units credited to the account.
        '''
        votes = self._groups.get(group)
        pending = None if votes is None else votes.pending_by_account.get(
            account
        )
        if pending is None or pending.value == 0:
            raise ValidationError(
                f'{account!r} has no pending votes for group {group!r}'
            )
        current_epoch = self.epoch_clock.get_current_epoch()
        if pending.epoch >= current_epoch:
            raise ValidationError(
                f'pending votes of {account!r} for group {group!r} cast in '
                f'epoch {pending.epoch} cannot be activated before epoch '
                f'{pending.epoch + 1}'
            )
        value = pending.value
        units = self._votes_to_units(votes, value)
        if units == 0:
            raise ValidationError(
                f'{value} pending votes of {account!r} for group {group!r} '
                'are worth less than one unit'
            )
        new_account_units = checked_add(
            votes.units_by_account.get(account, 0), units
        )
        new_group_units = checked_add(votes.active_units_total, units)
        new_network_units = checked_add(self.active_units_total, units)
        new_group_active = checked_add(votes.active_total, value)
        new_network_active = checked_add(self.active_total, value)
        del votes.pending_by_account[account]
        votes.pending_total -= value
        self.pending_total -= value
        votes.units_by_account[account] = new_account_units
        votes.active_units_total = new_group_units
        votes.active_total = new_group_active
        self.active_units_total = new_network_units
        self.active_total = new_network_active
        logger.info(
            '%s activated %d votes for group %s as %d units',
            account, value, group, units
        )
        return units

    def has_activatable_pending_votes(self,
                                      account: Account,
                                      group: Group,
                                      ) -> bool:
        votes = self._groups.get(group)
        if votes is None or account not in votes.pending_by_account:
            return False
        pending = votes.pending_by_account[account]
        return (
            pending.value > 0
            and pending.epoch < self.epoch_clock.get_current_epoch()
            and self._votes_to_units(votes, pending.value) > 0
        )

    # --- revocation ---

    @mutating
    def revoke_pending(self,
                       account: Account,
                       group: Group,
                       value: int,
                       lesser: Optional[Group] = None,
                       greater: Optional[Group] = None,
                       index: Optional[int] = None,
                       ) -> None:
        '''Revoke pending votes and return them to the non-voting stake.

        :param index: Position of the group in the list of groups voted for
            by the account (:meth:`get_groups_voted_for_by_account`). Only
            checked if the group is dropped from the list; looked up if None.
        '''
        value = check_amount(value)
        if value == 0:
            raise ValidationError('revoked value cannot be zero')
        pending_votes = self.get_pending_votes_for_group_by_account(
            group, account
        )
        if value > pending_votes:
            raise ValidationError(
                f'cannot revoke {value} pending votes of {account!r} for '
                f'group {group!r}, only {pending_votes} pending'
            )
        is_emptied = (
            value == pending_votes
            and self.get_active_votes_for_group_by_account(group, account) == 0
        )
        self._check_total_decrement(
            account, group, value, lesser, greater, index, is_emptied
        )
        self.stake_source.increment_nonvoting_balance(account, value)
        self._decrement_pending(account, group, value)
        self._decrement_total(account, group, value, lesser, greater,
                              is_emptied)
        logger.info('%s revoked %d pending votes for group %s',
                    account, value, group)

    @mutating
    def revoke_active(self,
                      account: Account,
                      group: Group,
                      value: int,
                      lesser: Optional[Group] = None,
                      greater: Optional[Group] = None,
                      index: Optional[int] = None,
                      ) -> None:
        '''Revoke active votes and return them to the non-voting stake.

        The revoked votes are converted to units at the current unit price;
        revoking all of the account's active votes removes all its units.

        :param index: Position of the group in the list of groups voted for
            by the account; see :meth:`revoke_pending`.
        '''
        value = check_amount(value)
        if value == 0:
            raise ValidationError('revoked value cannot be zero')
        self._revoke_active(account, group, value, lesser, greater, index)

    @mutating
    def revoke_all_active(self,
                          account: Account,
                          group: Group,
                          lesser: Optional[Group] = None,
                          greater: Optional[Group] = None,
                          index: Optional[int] = None,
                          ) -> int:
        '''Revoke all active votes of the account for the group.

        :returns: The number of votes revoked.
        '''
        value = self.get_active_votes_for_group_by_account(group, account)
        if value == 0:
            raise ValidationError(
                f'{account!r} has no active votes for group {group!r}'
            )
        self._revoke_active(account, group, value, lesser, greater, index)
        return value

    def _revoke_active(self,
                       account: Account,
                       group: Group,
                       value: int,
                       lesser: Optional[Group],
                       greater: Optional[Group],
                       index: Optional[int],
                       ) -> None:
        active_votes = self.get_active_votes_for_group_by_account(
            group, account
        )
        if value > active_votes:
            raise ValidationError(
                f'cannot revoke {value} active votes of {account!r} for '
                f'group {group!r}, only {active_votes} active'
            )
        is_emptied = (
            value == active_votes
            and self.get_pending_votes_for_group_by_account(
                group, account
            ) == 0
        )
        self._check_total_decrement(
            account, group, value, lesser, greater, index, is_emptied
        )
        self.stake_source.increment_nonvoting_balance(account, value)
        units = self._decrement_active(account, group, value)
        self._decrement_total(account, group, value, lesser, greater,
                              is_emptied)
        logger.info('%s revoked %d active votes (%d units) for group %s',
                    account, value, units, group)

    @mutating
    def force_decrement_votes(self,
                              account: Account,
                              value: int,
                              lessers: Optional[Sequence[Optional[Group]]] = None,
                              greaters: Optional[Sequence[Optional[Group]]] = None,
                              indices: Optional[Sequence[Optional[int]]] = None,
                              caller: Any = None,
                              ) -> int:
        '''Remove votes of the account regardless of its will.

        Used by the stake custody when the account's locked stake drops below
        the stake it votes with (e.g. when slashed). Drains pending and then
        active votes from the groups voted for, starting with the most
        recently added group, until *value* votes are removed. The removed
        stake is not credited back to the account.

        :param lessers: Ranking hints for each group voted for by the
            account, aligned with :meth:`get_groups_voted_for_by_account`.
            Each hint must be valid after the changes made to the groups
            processed before it. None means null hints for all groups.
        :param greaters: Ranking hints, as *lessers*.
        :param indices: Positions of the groups in the list of groups voted
            for, at the time each group is processed.
        :returns: The number of votes removed.
        :raises ValidationError: If the account does not have enough votes.
        '''
        self._authorize(ROLE_STAKE, caller)
        value = check_amount(value)
        if value == 0:
            raise ValidationError('decrement value cannot be zero')
        groups = list(self._groups_voted_for.get(account, []))
        lessers = self._per_group_args(lessers, groups, 'lessers')
        greaters = self._per_group_args(greaters, groups, 'greaters')
        indices = self._per_group_args(indices, groups, 'indices')
        account_total = self.get_total_votes_by_account(account)
        if value > account_total:
            raise ValidationError(
                f'cannot decrement {value} votes of {account!r}, '
                f'it has only {account_total}'
            )
        checkpoint = _Checkpoint(self, account)
        remaining = value
        try:
            for i in reversed(range(len(groups))):
                checkpoint.save_position(self, groups[i])
                remaining = self._decrement_group_votes(
                    account, groups[i], remaining,
                    lessers[i], greaters[i], indices[i]
                )
                if remaining == 0:
                    break
        except Exception:
            checkpoint.restore(self)
            raise
        logger.info('force decremented %d votes of %s', value, account)
        return value

    def _decrement_group_votes(self,
                               account: Account,
                               group: Group,
                               value: int,
                               lesser: Optional[Group],
                               greater: Optional[Group],
                               index: Optional[int],
                               ) -> int:
        pending_votes = self.get_pending_votes_for_group_by_account(
            group, account
        )
        active_votes = self.get_active_votes_for_group_by_account(
            group, account
        )
        from_pending = min(value, pending_votes)
        from_active = min(value - from_pending, active_votes)
        decrement = from_pending + from_active
        if decrement == 0:
            return value
        is_emptied = decrement == pending_votes + active_votes
        self._check_total_decrement(
            account, group, decrement, lesser, greater, index, is_emptied
        )
        if from_pending:
            self._decrement_pending(account, group, from_pending)
        if from_active:
            self._decrement_active(account, group, from_active)
        self._decrement_total(account, group, decrement, lesser, greater,
                              is_emptied)
        logger.info('removed %d votes of %s from group %s',
                    decrement, account, group)
        return value - decrement

    def _per_group_args(self,
                        args: Optional[Sequence[Any]],
                        groups: List[Group],
                        name: str,
                        ) -> List[Any]:
        if args is None:
            return [None] * len(groups)
        if len(args) != len(groups):
            raise ValidationError(
                f'{len(args)} {name} given for {len(groups)} groups'
            )
        return list(args)

    def _check_total_decrement(self,
                               account: Account,
                               group: Group,
                               value: int,
                               lesser: Optional[Group],
                               greater: Optional[Group],
                               index: Optional[int],
                               is_emptied: bool,
                               ) -> None:
        if is_emptied:
            self._resolve_group_index(account, group, index)
        if group in self._eligible:
            self._eligible.check_update(
                group, self.get_total_votes_for_group(group) - value,
                lesser, greater
            )

    def _resolve_group_index(self,
                             account: Account,
                             group: Group,
                             index: Optional[int],
                             ) -> int:
        groups = self._groups_voted_for.get(account, [])
        if index is None:
            try:
                return groups.index(group)
            except ValueError:
                raise ConsistencyError(
                    f'{account!r} does not vote for group {group!r}'
                )
        if isinstance(index, bool) or not isinstance(index, int):
            raise ValidationError(f'invalid group index: {index!r}')
        if not 0 <= index < len(groups):
            raise ValidationError(
                f'group index {index} out of range for {len(groups)} groups'
            )
        if groups[index] != group:
            raise ConsistencyError(
                f'group index {index} of {account!r} points at '
                f'{groups[index]!r}, not {group!r}'
            )
        return index

    def _decrement_pending(self, account: Account, group: Group, value: int
                           ) -> None:
        votes = self._groups[group]
        pending = votes.pending_by_account[account]
        pending.value = checked_sub(pending.value, value)
        if pending.value == 0:
            del votes.pending_by_account[account]
        votes.pending_total = checked_sub(votes.pending_total, value)
        self.pending_total = checked_sub(self.pending_total, value)

    def _decrement_active(self, account: Account, group: Group, value: int
                          ) -> int:
        votes = self._groups[group]
        account_units = votes.units_by_account.get(account, 0)
        if value == self._units_to_votes(votes, account_units):
            units = account_units
        else:
            units = self._votes_to_units(votes, value)
        remaining_units = checked_sub(account_units, units)
        if remaining_units:
            votes.units_by_account[account] = remaining_units
        else:
            votes.units_by_account.pop(account, None)
        votes.active_units_total = checked_sub(votes.active_units_total, units)
        votes.active_total = checked_sub(votes.active_total, value)
        self.active_units_total = checked_sub(self.active_units_total, units)
        self.active_total = checked_sub(self.active_total, value)
        return units

    def _decrement_total(self,
                         account: Account,
                         group: Group,
                         value: int,
                         lesser: Optional[Group],
                         greater: Optional[Group],
                         is_emptied: bool,
                         ) -> None:
        '''Update the ranking and drop the group if the account left it.

        Must be called after the pools were decremented.
        '''
        if group in self._eligible:
            self._eligible.update(
                group, self.get_total_votes_for_group(group), lesser, greater
            )
        if is_emptied:
            groups = self._groups_voted_for[account]
            index = groups.index(group)
            groups[index] = groups[-1]
            groups.pop()
            if not groups:
                del self._groups_voted_for[account]

    # --- privileged operations ---

    @mutating
    def distribute_epoch_rewards(self,
                                 group: Group,
                                 value: int,
                                 lesser: Optional[Group] = None,
                                 greater: Optional[Group] = None,
                                 caller: Any = None,
                                 ) -> None:
        '''Add epoch rewards to the active votes of the group.

        The unit balances of the group's voters stay unchanged, so the
        rewards raise the unit price and reach all of them in proportion.
        The ranking hints are only used if the group is eligible.
        '''
        self._authorize(ROLE_REWARDS, caller)
        value = check_amount(value)
        if group is None:
            raise ValidationError('null group')
        if value == 0:
            return
        votes = self._groups.get(group) or GroupVotes()
        new_group_active = checked_add(votes.active_total, value)
        new_network_active = checked_add(self.active_total, value)
        new_group_total = checked_add(votes.total, value)
        if group in self._eligible:
            self._eligible.update(group, new_group_total, lesser, greater)
        votes.active_total = new_group_active
        self._groups[group] = votes
        self.active_total = new_network_active
        logger.info('distributed %d epoch rewards to voters of group %s',
                    value, group)

    @mutating
    def mark_group_eligible(self,
                            group: Group,
                            lesser: Optional[Group] = None,
                            greater: Optional[Group] = None,
                            caller: Any = None,
                            ) -> None:
        '''Make the group eligible to receive votes and be elected.

        The group is ranked by the votes it already holds.
        '''
        self._authorize(ROLE_CATALOG, caller)
        if group is None:
            raise ValidationError('null group')
        if group in self._eligible:
            raise ValidationError(f'group {group!r} is already eligible')
        self._eligible.insert(
            group, self.get_total_votes_for_group(group), lesser, greater
        )
        logger.info('group %s marked eligible', group)

    @mutating
    def mark_group_ineligible(self, group: Group, caller: Any = None) -> None:
        '''Remove the group from the ranking; its votes stay.

        Does nothing if the group is not eligible.
        '''
        self._authorize(ROLE_CATALOG, caller)
        if group in self._eligible:
            self._eligible.remove(group)
            logger.info('group %s marked ineligible', group)

    def _authorize(self, role: str, caller: Any) -> None:
        if self.privileged is None:
            return
        if caller not in self.privileged.get(role, ()):
            raise UnauthorizedError(caller, role)

    # --- capacity ---

    def can_receive_votes(self, group: Group, value: int) -> bool:
        '''Tell whether the group can receive the given number of votes.

        A group can hold at most as many votes as correspond to the share of
        total stake it could need to fill one more seat than it has members;
        the share of a seat is taken as the total stake divided by the number
        of validators that can be elected.
        '''
        total = checked_add(self.get_total_votes_for_group(group), value)
        left = checked_mul(total, self._num_electable())
        right = checked_mul(
            self.group_catalog.get_group_member_count(group) + 1,
            self.stake_source.get_total_stake()
        )
        return left <= right

    def get_num_votes_receivable(self, group: Group) -> int:
        '''Return the total votes the group can hold at most.'''
        numerator = checked_mul(
            self.group_catalog.get_group_member_count(group) + 1,
            self.stake_source.get_total_stake()
        )
        return stakelect.util.checked_div(numerator, self._num_electable())

    def _num_electable(self) -> int:
        return min(
            self.config.max_electable_validators,
            self.group_catalog.get_registered_validator_count()
        )

    # --- unit conversion ---

    def _votes_to_units(self, votes: GroupVotes, value: int) -> int:
        if votes.active_units_total == 0 or votes.active_total == 0:
            return checked_mul(value, self.config.unit_precision_factor)
        return checked_mul(value, votes.active_units_total) // votes.active_total

    def _units_to_votes(self, votes: GroupVotes, units: int) -> int:
        if votes.active_units_total == 0:
            return 0
        return checked_mul(units, votes.active_total) // votes.active_units_total

    # --- views ---

    def get_total_votes(self) -> int:
        return self.pending_total + self.active_total

    def get_active_votes(self) -> int:
        return self.active_total

    def get_pending_votes(self) -> int:
        return self.pending_total

    def get_active_vote_units(self) -> int:
        return self.active_units_total

    def get_total_votes_for_group(self, group: Group) -> int:
        votes = self._groups.get(group)
        return 0 if votes is None else votes.total

    def get_pending_votes_for_group(self, group: Group) -> int:
        votes = self._groups.get(group)
        return 0 if votes is None else votes.pending_total

    def get_active_votes_for_group(self, group: Group) -> int:
        votes = self._groups.get(group)
        return 0 if votes is None else votes.active_total

    def get_active_vote_units_for_group(self, group: Group) -> int:
        votes = self._groups.get(group)
        return 0 if votes is None else votes.active_units_total

    def get_pending_votes_for_group_by_account(self,
                                               group: Group,
                                               account: Account,
                                               ) -> int:
        votes = self._groups.get(group)
        if votes is None or account not in votes.pending_by_account:
            return 0
        return votes.pending_by_account[account].value

    def get_active_votes_for_group_by_account(self,
                                              group: Group,
                                              account: Account,
                                              ) -> int:
        votes = self._groups.get(group)
        if votes is None:
            return 0
        return self._units_to_votes(
            votes, votes.units_by_account.get(account, 0)
        )

    def get_active_vote_units_for_group_by_account(self,
                                                   group: Group,
                                                   account: Account,
                                                   ) -> int:
        votes = self._groups.get(group)
        return 0 if votes is None else votes.units_by_account.get(account, 0)

    def get_total_votes_for_group_by_account(self,
                                             group: Group,
                                             account: Account,
                                             ) -> int:
        return (
            self.get_pending_votes_for_group_by_account(group, account)
            + self.get_active_votes_for_group_by_account(group, account)
        )

    def get_total_votes_by_account(self, account: Account) -> int:
        return sum(
            self.get_total_votes_for_group_by_account(group, account)
            for group in self._groups_voted_for.get(account, [])
        )

    def get_groups_voted_for_by_account(self, account: Account) -> List[Group]:
        return list(self._groups_voted_for.get(account, []))

    def get_group_eligibility(self, group: Group) -> bool:
        return group in self._eligible

    def get_eligible_groups(self) -> List[Group]:
        '''Return the eligible groups, most voted first.

        Like the other views walking the ranking, this waits for a mutation
        in progress to finish and raises a ReentrancyError when called back
        by a collaborator during one.
        '''
        with self._guard.hold():
            return self._eligible.get_keys()

    def get_total_votes_for_eligible_groups(self
                                            ) -> Tuple[List[Group], List[int]]:
        '''Return the eligible groups and their total votes, most voted first.'''
        with self._guard.hold():
            return self._eligible.get_elements()

    def get_vote_hints(self,
                       group: Group,
                       delta: int = 0,
                       ) -> Tuple[Optional[Group], Optional[Group]]:
        '''Compute ranking hints for changing the group's votes by delta.

        Scans the whole ranking; meant for preparing arguments of the
        mutating operations, which only check the hints they get. Also gives
        the hints for :meth:`mark_group_eligible` with a zero delta.

        :returns: A ``(lesser, greater)`` tuple.
        '''
        with self._guard.hold():
            return self._eligible.get_hints(
                group, self.get_total_votes_for_group(group) + delta
            )

    def get_group_epoch_rewards(self,
                                group: Group,
                                total_epoch_rewards: int,
                                score: Number = 1,
                                slashing_multiplier: Number = 1,
                                ) -> int:
        '''Return the share of epoch rewards due to the voters of the group.

        The share is proportional to the group's part of all active votes,
        scaled by the group's performance score and slashing multiplier
        (both fractions between 0 and 1). Truncated toward zero.
        '''
        if self.active_total == 0:
            return 0
        share = (
            Fraction(self.get_active_votes_for_group(group), self.active_total)
            * stakelect.util.to_fraction(score)
            * stakelect.util.to_fraction(slashing_multiplier)
        )
        return stakelect.util.truncate(total_epoch_rewards * share)

    def snapshot(self) -> LedgerSnapshot:
        '''Return a consistent copy of the state needed for the election.'''
        with self._guard.hold():
            return LedgerSnapshot(
                self._eligible.copy(), self.pending_total, self.active_total
            )
