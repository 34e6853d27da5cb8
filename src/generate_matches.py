import os
import sys

import yaml

from engine.elimination import round_name_for
from engine.operations import POOL_KNOCKOUT, generate_fixtures
from settings import load_settings, make_pool_policy


def load_divisions(file_path):
    """Read ``{division: [participant, ...]}`` from a YAML file."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or {}
    divisions = {}
    for division, participants in data.items():
        divisions[str(division)] = [str(p) for p in (participants or [])]
    return divisions


def format_pool_stage(result):
    lines = []
    for pool in result.pools:
        lines.append(f"## {pool.name}")
        for match in result.matches:
            if match.pool == pool.name:
                lines.append(f"{match.slot_a} vs {match.slot_b}")
    for warning in result.warnings:
        lines.append(f"Warning: {warning}")
    return lines


def format_bracket(result):
    lines = []
    total_rounds = max((m.round for m in result.matches), default=0)
    current_round = None
    for match in sorted(result.matches, key=lambda m: (m.round, m.bracket_position)):
        if match.round != current_round:
            current_round = match.round
            lines.append(f"## {round_name_for(current_round, total_rounds)}")
        slot_a = match.slot_a if match.slot_a is not None else ('BYE' if match.round == 1 else 'TBD')
        slot_b = match.slot_b if match.slot_b is not None else ('BYE' if match.round == 1 else 'TBD')
        lines.append(f"{slot_a} vs {slot_b}")
    return lines


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    # Use command line arguments if provided, otherwise use default paths
    participants_file = argv[0] if len(argv) > 0 else os.path.join(base_dir, 'data', 'participants.yaml')
    settings = load_settings(argv[1] if len(argv) > 1 else None)

    divisions = load_divisions(participants_file)
    if not divisions:
        print(f"Warning: no divisions found in {participants_file}", file=sys.stderr)
        return 1

    fixture_type = settings['fixture_type']
    pool_count = settings['number_of_pools']
    results = generate_fixtures(
        divisions,
        fixture_type=fixture_type,
        seeding=settings['seed_order'],
        random_seed=settings['random_seed'],
        auto_advance_byes=settings['auto_advance_byes'],
        pool_count=pool_count,
        policy=None if pool_count else make_pool_policy(settings),
        advance_per_pool=settings['advance_per_pool'],
    )

    failed = False
    first_division = True
    for division, result in results.items():
        if not first_division:
            print()  # Add newline before each division except the first one
        print(f"# Division {division}")
        first_division = False
        if not result.ok:
            failed = True
            for error in result.errors:
                print(f"Warning: {error['code']}: {error['message']}")
            continue
        lines = format_pool_stage(result) if fixture_type == POOL_KNOCKOUT else format_bracket(result)
        for line in lines:
            print(line)
    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
