"""A commandline tool to replay a voting scenario and run the election.

The scenario is a JSON file with the following keys (all optional except
``groups``):

-   ``config`` - election parameters, as produced by
    ``stakelect.persist.to_dict(ElectionConfig(...))`` or just a dictionary
    of its constructor arguments,
-   ``stakes`` - locked stake per account,
-   ``groups`` - per group, a list of ``members`` (best ranked first) and
    whether it is ``eligible`` (default true),
-   ``votes`` - a list of votes with ``account``, ``group``, ``value`` and
    whether to ``activate`` them after an epoch (default true),
-   ``rewards`` - epoch rewards per group, distributed after activation.
"""

import argparse
import io
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import stakelect.persist
import stakelect.util
from stakelect.collaborator import (
    FreezeSwitch, InMemoryStakeSource, ManualEpochClock, StaticGroupCatalog
)
from stakelect.config import ElectionConfig
from stakelect.election import ElectionEngine
from stakelect.errors import LedgerError, ValidationError
from stakelect.ledger import VoteLedger

argparser = argparse.ArgumentParser(
    description=__doc__,
    formatter_class=argparse.RawDescriptionHelpFormatter,
)
argparser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help='file to load the scenario from',
)
argparser.add_argument(
    '-I', '--use-stdin',
    action='store_true',
    help='load the scenario from standard input',
)
argparser.add_argument(
    '-n', '--max-seats',
    type=int,
    help='elect at most this many validators (overrides the scenario)',
)
argparser.add_argument(
    '-d', '--divisor',
    default='d_hondt',
    help='divisor function to distribute seats with',
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all ledger and election log messages',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any log messages',
)


def main(input_file: Optional[io.TextIOBase] = None,
         use_stdin: bool = False,
         max_seats: Optional[int] = None,
         divisor: str = 'd_hondt',
         verbose: bool = False,
         quiet: bool = False,
         ) -> int:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if use_stdin:
        input_file = sys.stdin
    scenario = json.load(input_file)
    try:
        ledger = replay(scenario)
        engine = ElectionEngine(
            ledger, freeze_flag=FreezeSwitch(), divisor_function=divisor
        )
        config = ledger.config
        if max_seats is not None:
            config.set_electable_validators(
                min(config.min_electable_validators, max_seats), max_seats
            )
        seats = engine.allocate_seats(
            config.min_electable_validators, config.max_electable_validators
        )
        elected = engine.elect_validator_signers()
    except LedgerError as err:
        print(f'Election failed: {err}')
        return 1
    show_ranking(ledger)
    print()
    show_seats(seats)
    print()
    show_elected(elected)
    return 0


def load_config(config_def: Optional[Dict[str, Any]]) -> ElectionConfig:
    """Construct the election parameters from their scenario definition."""
    if config_def is None:
        return ElectionConfig()
    elif 'class' in config_def:
        return stakelect.persist.from_dict(config_def)
    else:
        return ElectionConfig(**config_def)


def replay(scenario: Dict[str, Any]) -> VoteLedger:
    """Build a ledger with in-memory collaborators and replay the scenario.

    :raises ValidationError: If the scenario misses a required key or holds
        a value of a wrong type.
    """
    try:
        return _replay(scenario)
    except (KeyError, TypeError, ValueError, AttributeError) as err:
        raise ValidationError(f'invalid scenario: {err!r}') from err


def _replay(scenario: Dict[str, Any]) -> VoteLedger:
    groups = scenario['groups']
    stake_source = InMemoryStakeSource(scenario.get('stakes', {}))
    catalog = StaticGroupCatalog({
        group: group_def.get('members', [])
        for group, group_def in groups.items()
    })
    clock = ManualEpochClock()
    ledger = VoteLedger(
        stake_source, catalog, clock,
        config=load_config(scenario.get('config'))
    )
    for group, group_def in groups.items():
        if group_def.get('eligible', True):
            ledger.mark_group_eligible(group, *ledger.get_vote_hints(group))
    votes = scenario.get('votes', [])
    for vote in votes:
        ledger.vote(
            vote['account'], vote['group'], vote['value'],
            *ledger.get_vote_hints(vote['group'], vote['value'])
        )
    clock.advance()
    for vote in votes:
        activatable = ledger.has_activatable_pending_votes(
            vote['account'], vote['group']
        )
        if vote.get('activate', True) and activatable:
            ledger.activate(vote['account'], vote['group'])
    for group, value in scenario.get('rewards', {}).items():
        ledger.distribute_epoch_rewards(
            group, value, *ledger.get_vote_hints(group, value)
        )
    return ledger


def show_ranking(ledger: VoteLedger) -> None:
    groups, totals = ledger.get_total_votes_for_eligible_groups()
    print(f'{len(groups)} eligible groups, {ledger.get_total_votes()} votes'
          f' ({ledger.get_active_votes()} active):')
    _print_columns([str(group) for group in groups], totals)


def show_seats(seats: Dict[Any, int]) -> None:
    if not seats:
        print('No seats awarded')
        return
    print('Seats awarded:')
    sorted_seats = stakelect.util.sorted_votes(seats)
    _print_columns(
        [str(group) for group, _ in sorted_seats],
        [n_seats for _, n_seats in sorted_seats],
    )


def show_elected(elected: List[Any]) -> None:
    print('Elected validators:')
    _print_columns(
        [str(i) for i in range(1, len(elected) + 1)], elected, rjust=True
    )


def _print_columns(left_col: List[str],
                   right_col: List[Any],
                   rjust: bool = False,
                   ) -> None:
    if not left_col:
        return
    n_just_chars = len(max(left_col, key=len))
    for left, right in zip(left_col, right_col):
        left_disp = (left.rjust if rjust else left.ljust)(n_just_chars)
        print(' ' * 4 + left_disp, ' ', right)


if __name__ == '__main__':
    args = argparser.parse_args()
    if not args.input_file and not args.use_stdin:
        argparser.print_usage()
    else:
        sys.exit(main(**vars(args)))
