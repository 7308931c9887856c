#!/usr/bin/env python3
"""
Build a bracket from a roster file and print it.

Usage:
    python src/main.py players.yaml
    python src/main.py players.csv --type double-elimination --seed 7
    python src/main.py players.yaml --json bracket.json

Roster files are either YAML (a list of names or of ``{name, nickname}``
entries, optionally under a ``players`` key) or CSV with ``name`` and
``nickname`` columns.

Exit codes:
    0: Success
    1: Roster file could not be read
    2: Bracket could not be built
"""
import argparse
import csv
import json
import random
import sys
import yaml

from brackets.models import BRACKET_TYPES, SINGLE_ELIMINATION
from brackets.formats import generate_bracket
from brackets.rounds import get_round_names


def load_players(file_path):
    """Load a roster from a YAML or CSV file."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        if file_path.lower().endswith('.csv'):
            rows = list(csv.DictReader(file))
        else:
            rows = yaml.safe_load(file) or []
    if isinstance(rows, dict):
        rows = rows.get('players') or []

    players = []
    for row in rows:
        if isinstance(row, str):
            row = {'name': row}
        name = str(row.get('name') or '').strip()
        if name:
            players.append({'name': name, 'nickname': str(row.get('nickname') or '').strip()})
    return players


def format_bracket(bracket):
    """Render the bracket as text, one block per round."""
    lines = [f"{bracket.tournament_name or 'Tournament'} ({bracket.bracket_type})"]
    for round_name in get_round_names(bracket):
        lines.append(f"\n{round_name}:")
        for match in bracket.round_matches(round_name):
            names = ' vs '.join(slot.display_name for slot in match.players)
            line = f"  #{match.id} [{match.bracket}] {names}"
            if match.winner is not None:
                line += f" -> {match.players[match.winner].display_name}"
            lines.append(line)
    return '\n'.join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Generate a pool tournament bracket from a player roster'
    )
    parser.add_argument('roster', help='Roster file (.yaml or .csv)')
    parser.add_argument(
        '--type',
        dest='bracket_type',
        default=SINGLE_ELIMINATION,
        choices=BRACKET_TYPES,
        help='Bracket type (default: single-elimination)'
    )
    parser.add_argument('--name', default='', help='Tournament name')
    parser.add_argument('--seed', type=int, help='Random seed for a reproducible draw')
    parser.add_argument('--json', dest='json_path', help='Also write the bracket document to this file')
    args = parser.parse_args(argv)

    try:
        players = load_players(args.roster)
    except (OSError, yaml.YAMLError, csv.Error) as e:
        print(f"Error: could not read roster {args.roster}: {e}", file=sys.stderr)
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    bracket, failure = generate_bracket(
        players, {'tournament_name': args.name, 'bracket_type': args.bracket_type}, rng
    )
    if failure:
        print(f"Error: {failure.message}", file=sys.stderr)
        return 2

    print(format_bracket(bracket))
    if args.json_path:
        with open(args.json_path, 'w', encoding='utf-8') as f:
            json.dump(bracket.to_dict(), f, ensure_ascii=False, indent=2)
        print(f"\nBracket written to {args.json_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
