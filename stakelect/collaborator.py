'''Interfaces of the systems the vote ledger and the election depend on.

The ledger does not custody stake, register groups or keep time; it talks to
the following collaborators instead:

-   :class:`StakeSource` - the stake custody ledger that locks stake and keeps
    the non-voting (free to vote) balance of each account.
-   :class:`GroupCatalog` - the registry of groups and their members.
-   :class:`EpochClock` - the source of the current epoch number.
-   :class:`FreezeFlag` - the switch that suspends validator elections.

Each interface has a simple in-memory implementation here, used by the
command line tool and suitable for tests and simulations.
'''

import abc
import collections
from typing import Any, Dict, Iterable, List, Optional

from stakelect.errors import ValidationError


class StakeSource(metaclass=abc.ABCMeta):
    '''Custody ledger of locked stake.'''

    @abc.abstractmethod
    def increment_nonvoting_balance(self, account: Any, value: int) -> None:
        '''Return stake to the account's non-voting balance.'''
        raise NotImplementedError

    @abc.abstractmethod
    def decrement_nonvoting_balance(self, account: Any, value: int) -> None:
        '''Take stake from the account's non-voting balance to vote with.'''
        raise NotImplementedError

    @abc.abstractmethod
    def get_account_nonvoting_stake(self, account: Any) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def get_account_total_stake(self, account: Any) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def get_total_stake(self) -> int:
        '''Return the stake locked by all accounts of the network.'''
        raise NotImplementedError


class GroupCatalog(metaclass=abc.ABCMeta):
    '''Registry of validator groups and their members.'''

    @abc.abstractmethod
    def get_group_member_count(self, group: Any) -> int:
        raise NotImplementedError

    def get_groups_member_counts(self, groups: Iterable[Any]) -> List[int]:
        return [self.get_group_member_count(group) for group in groups]

    @abc.abstractmethod
    def get_top_group_members(self, group: Any, n: int) -> List[Any]:
        '''Return the n members of the group it ranks highest, in order.'''
        raise NotImplementedError

    @abc.abstractmethod
    def get_registered_validator_count(self) -> int:
        raise NotImplementedError


class EpochClock(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def get_current_epoch(self) -> int:
        raise NotImplementedError


class FreezeFlag(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def is_frozen(self) -> bool:
        raise NotImplementedError


class InMemoryStakeSource(StakeSource):
    '''Stake custody kept in dictionaries.

    Every account's locked stake is either non-voting or held by the vote
    ledger; the total stake of an account does not change by voting.

    :param stakes: Initial locked stake per account, all of it non-voting.
    '''
    def __init__(self, stakes: Optional[Dict[Any, int]] = None):
        self.nonvoting = collections.defaultdict(int)
        self.total = collections.defaultdict(int)
        for account, value in (stakes or {}).items():
            self.lock(account, value)

    def lock(self, account: Any, value: int) -> None:
        '''Lock additional stake for the account.'''
        self.nonvoting[account] += value
        self.total[account] += value

    def increment_nonvoting_balance(self, account: Any, value: int) -> None:
        self.nonvoting[account] += value

    def decrement_nonvoting_balance(self, account: Any, value: int) -> None:
        if value > self.nonvoting[account]:
            raise ValidationError(
                f'insufficient non-voting stake of {account!r}: '
                f'{self.nonvoting[account]} < {value}'
            )
        self.nonvoting[account] -= value

    def get_account_nonvoting_stake(self, account: Any) -> int:
        return self.nonvoting.get(account, 0)

    def get_account_total_stake(self, account: Any) -> int:
        return self.total.get(account, 0)

    def get_total_stake(self) -> int:
        return sum(self.total.values())


class StaticGroupCatalog(GroupCatalog):
    '''A fixed mapping of groups to their ranked members.

    :param members: Members of each group, best ranked first.
    '''
    def __init__(self, members: Optional[Dict[Any, List[Any]]] = None):
        self.members = {
            group: list(group_members)
            for group, group_members in (members or {}).items()
        }

    def get_group_member_count(self, group: Any) -> int:
        return len(self.members.get(group, ()))

    def get_top_group_members(self, group: Any, n: int) -> List[Any]:
        group_members = self.members.get(group, [])
        if n > len(group_members):
            raise ValidationError(
                f'group {group!r} has only {len(group_members)} members'
            )
        return group_members[:n]

    def get_registered_validator_count(self) -> int:
        return sum(len(group_members) for group_members in self.members.values())


class ManualEpochClock(EpochClock):
    '''An epoch counter advanced by hand.'''
    def __init__(self, epoch: int = 1):
        self.epoch = epoch

    def advance(self, n: int = 1) -> int:
        self.epoch += n
        return self.epoch

    def get_current_epoch(self) -> int:
        return self.epoch


class FreezeSwitch(FreezeFlag):
    def __init__(self, frozen: bool = False):
        self.frozen = frozen

    def is_frozen(self) -> bool:
        return self.frozen
