
import sys
import os
import json

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import stakelect.__main__
from stakelect.config import ElectionConfig
import stakelect.persist
from stakelect.errors import ValidationError


SCENARIO = {
    'config': {
        'min_electable_validators': 1,
        'max_electable_validators': 3,
    },
    'stakes': {'alice': 10000, 'bob': 10000, 'carol': 500},
    'groups': {
        'X': {'members': ['x1', 'x2']},
        'Y': {'members': ['y1', 'y2']},
        'Z': {'members': ['z1'], 'eligible': False},
    },
    'votes': [
        {'account': 'alice', 'group': 'X', 'value': 2000},
        {'account': 'bob', 'group': 'Y', 'value': 1000},
        {'account': 'carol', 'group': 'Y', 'value': 500, 'activate': False},
    ],
    'rewards': {'X': 100},
}


def run_scenario(tmp_path, scenario, **kwargs):
    path = tmp_path / 'scenario.json'
    path.write_text(json.dumps(scenario), encoding='utf8')
    with open(path, encoding='utf8') as infile:
        return stakelect.__main__.main(input_file=infile, quiet=True, **kwargs)


def elected_from_output(out):
    lines = out.splitlines()
    start = lines.index('Elected validators:') + 1
    return [line.split()[-1] for line in lines[start:] if line.strip()]


def test_replay():
    ledger = stakelect.__main__.replay(SCENARIO)
    assert ledger.get_eligible_groups() == ['X', 'Y']
    assert ledger.get_total_votes_for_group('X') == 2100
    assert ledger.get_active_votes_for_group('X') == 2100
    assert ledger.get_active_votes_for_group_by_account('X', 'alice') == 2100
    assert ledger.get_active_votes_for_group('Y') == 1000
    assert ledger.get_pending_votes_for_group_by_account('Y', 'carol') == 500
    assert not ledger.get_group_eligibility('Z')
    assert ledger.stake_source.get_account_nonvoting_stake('alice') == 8000


def test_main(tmp_path, capsys):
    assert run_scenario(tmp_path, SCENARIO) == 0
    out = capsys.readouterr().out
    assert out.startswith('2 eligible groups, 3600 votes (3100 active):')
    assert 'Seats awarded:' in out
    assert elected_from_output(out) == ['x1', 'x2', 'y1']


def test_main_max_seats(tmp_path, capsys):
    assert run_scenario(tmp_path, SCENARIO, max_seats=1) == 0
    assert elected_from_output(capsys.readouterr().out) == ['x1']


def test_main_divisor(tmp_path, capsys):
    scenario = dict(SCENARIO, rewards={})
    scenario['config'] = {
        'min_electable_validators': 1, 'max_electable_validators': 2
    }
    assert run_scenario(tmp_path, scenario, divisor='sainte_lague') == 0
    # X 2000 and Y 1500 votes: the second seat of X is only worth 666
    assert elected_from_output(capsys.readouterr().out) == ['x1', 'y1']


def test_main_persisted_config(tmp_path, capsys):
    scenario = dict(SCENARIO)
    scenario['config'] = stakelect.persist.to_dict(ElectionConfig(1, 2))
    assert run_scenario(tmp_path, scenario) == 0
    assert elected_from_output(capsys.readouterr().out) == ['x1', 'y1']


def test_main_failure(tmp_path, capsys):
    scenario = dict(SCENARIO)
    scenario['config'] = {
        'min_electable_validators': 5, 'max_electable_validators': 10
    }
    assert run_scenario(tmp_path, scenario) == 1
    assert capsys.readouterr().out.startswith('Election failed:')


def test_load_config():
    assert stakelect.__main__.load_config(None).max_electable_validators == 100
    config = stakelect.__main__.load_config({'max_groups_voted_for': 3})
    assert config.max_groups_voted_for == 3


@pytest.mark.parametrize('args', [
    ['-i', 'scenario.json', '-n', '5', '-d', 'imperiali', '-v'],
    ['-I', '-q'],
])
def test_argparser(tmp_path, monkeypatch, args):
    (tmp_path / 'scenario.json').write_text('{}', encoding='utf8')
    monkeypatch.chdir(tmp_path)
    parsed = stakelect.__main__.argparser.parse_args(args)
    if parsed.input_file:
        parsed.input_file.close()
    assert set(vars(parsed)) == {
        'input_file', 'use_stdin', 'max_seats', 'divisor', 'verbose', 'quiet'
    }


def test_main_unknown_divisor(tmp_path, capsys):
    assert run_scenario(tmp_path, SCENARIO, divisor='no_such_divisor') == 1
    assert 'no_such_divisor' in capsys.readouterr().out


@pytest.mark.parametrize('bad_vote', [
    {'account': 'alice', 'group': 'X'},
    {'account': 'alice', 'group': 'X', 'value': '10'},
])
def test_main_malformed_scenario(tmp_path, capsys, bad_vote):
    scenario = dict(SCENARIO, votes=[bad_vote])
    assert run_scenario(tmp_path, scenario) == 1
    assert capsys.readouterr().out.startswith(
        'Election failed: invalid scenario'
    )


def test_replay_missing_groups():
    with pytest.raises(ValidationError):
        stakelect.__main__.replay({'votes': []})
