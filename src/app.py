"""
Flask web application for the pool tournament bracket manager.

Each tournament is stored as a directory of YAML documents under
``DATA_DIR/tournaments/<slug>/``. The bracket itself is one opaque
document (``bracket.yaml``) that every mutating request reads, changes
and writes back under the tournament's file lock.
"""
import os
import csv
import hmac
import io
import re
import json
import shutil
import yaml
from datetime import datetime
from functools import wraps
from filelock import FileLock
from flask import Flask, request, jsonify, Response

from brackets.models import Bracket, BRACKET_TYPES, SINGLE_ELIMINATION
from brackets.formats import generate_bracket, reset_bracket
from brackets.advancement import report_match_result, set_match_winner
from brackets.rounds import advance_round, get_round_names
from brackets.scores import validate_best_of_three
from brackets import results

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('BRACKETS_DATA_DIR', os.path.join(BASE_DIR, 'data'))


def _get_or_create_secret_key() -> bytes:
    """Get SECRET_KEY from env, or generate and persist to file."""
    env_key = os.environ.get('SECRET_KEY')
    if env_key:
        return env_key.encode()
    key_file = os.path.join(DATA_DIR, '.secret_key')
    if os.path.exists(key_file):
        with open(key_file, 'rb') as f:
            return f.read()
    key = os.urandom(24)
    os.makedirs(os.path.dirname(key_file), exist_ok=True)
    with open(key_file, 'wb') as f:
        f.write(key)
    return key


app.secret_key = _get_or_create_secret_key()

STATUS_PENDING = 'pending'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_FINISHED = 'finished'

MAX_UPLOAD_SIZE = 1 * 1024 * 1024  # 1 MB
LOCK_TIMEOUT = 10

HTTP_STATUS_BY_FAILURE = {
    results.MATCH_NOT_FOUND: 404,
    results.NOT_IMPLEMENTED: 501,
}


def require_admin_key(f):
    """Require valid ADMIN_API_KEY in Authorization header."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected_key = os.environ.get('ADMIN_API_KEY')
        if not expected_key:
            return jsonify({'error': 'Server not configured for admin operations'}), 500

        auth_header = request.headers.get('Authorization', '')
        if not auth_header.startswith('Bearer '):
            return jsonify({'error': 'Missing or invalid Authorization header'}), 401

        provided_key = auth_header[7:]  # Strip "Bearer "
        if not hmac.compare_digest(expected_key, provided_key):
            return jsonify({'error': 'Invalid API key'}), 401

        return f(*args, **kwargs)
    return decorated_function


def _slugify(name: str) -> str:
    """Convert tournament name to filesystem-safe slug."""
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'[\s-]+', '-', slug)
    slug = slug.strip('-')
    return slug or 'tournament'


def _is_valid_slug(slug: str) -> bool:
    return bool(slug) and re.match(r'^[a-z0-9][a-z0-9-]*$', slug) is not None


def _tournaments_file() -> str:
    return os.path.join(DATA_DIR, 'tournaments.yaml')


def _tournament_dir(slug: str) -> str:
    return os.path.join(DATA_DIR, 'tournaments', slug)


def _registry_lock() -> FileLock:
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(os.path.join(DATA_DIR, '.lock'), timeout=LOCK_TIMEOUT)


def _tournament_lock(slug: str) -> FileLock:
    """Single-writer lock for one tournament's documents."""
    return FileLock(os.path.join(_tournament_dir(slug), '.lock'), timeout=LOCK_TIMEOUT)


def _load_yaml(path: str, default):
    if not os.path.exists(path):
        return default
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return data if data else default
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return default


def _save_yaml(path: str, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)


def load_tournaments() -> dict:
    """Load the tournaments registry."""
    data = _load_yaml(_tournaments_file(), {'tournaments': []})
    data.setdefault('tournaments', [])
    return data


def save_tournaments(data: dict):
    """Save the tournaments registry."""
    _save_yaml(_tournaments_file(), data)


def get_tournament(slug: str):
    """Registry entry for ``slug``, or None."""
    for t in load_tournaments()['tournaments']:
        if t['slug'] == slug:
            return t
    return None


def update_tournament(slug: str, **changes):
    """Apply ``changes`` to a registry entry."""
    with _registry_lock():
        data = load_tournaments()
        for t in data['tournaments']:
            if t['slug'] == slug:
                t.update(changes)
        save_tournaments(data)


def load_players(slug: str) -> list:
    """Load the player roster of a tournament."""
    data = _load_yaml(os.path.join(_tournament_dir(slug), 'players.yaml'), {'players': []})
    return data.get('players') or []


def save_players(slug: str, players: list):
    _save_yaml(os.path.join(_tournament_dir(slug), 'players.yaml'), {'players': players})


def load_bracket(slug: str):
    """Load the bracket document of a tournament, or None before generation."""
    data = _load_yaml(os.path.join(_tournament_dir(slug), 'bracket.yaml'), None)
    if not data:
        return None
    return Bracket.from_dict(data)


def save_bracket(slug: str, bracket: Bracket):
    _save_yaml(os.path.join(_tournament_dir(slug), 'bracket.yaml'), bracket.to_dict())


def _base_state(tournament: dict) -> dict:
    return {
        'tournament_name': tournament.get('name', ''),
        'description': tournament.get('description', ''),
        'num_players_expected': tournament.get('num_players_expected'),
        'bracket_type': tournament.get('bracket_type', SINGLE_ELIMINATION),
    }


def _empty_bracket(tournament: dict) -> Bracket:
    base = _base_state(tournament)
    return Bracket(base['tournament_name'], bracket_type=base['bracket_type'],
                   description=base['description'],
                   num_players_expected=base['num_players_expected'])


def _failure_response(failure: results.Failure):
    status = HTTP_STATUS_BY_FAILURE.get(failure.code, 400)
    body = {'success': False}
    body.update(failure.to_dict())
    return jsonify(body), status


def _not_found(message: str):
    return jsonify({'success': False, 'error': 'not_found', 'message': message}), 404


def _state_payload(bracket: Bracket) -> dict:
    champion = bracket.champion()
    payload = bracket.to_dict()
    payload['round_names'] = get_round_names(bracket)
    payload['champion'] = champion.to_dict() if champion else None
    return payload


def _sync_status(slug: str, bracket: Bracket):
    if bracket.champion() is not None:
        update_tournament(slug, status=STATUS_FINISHED)


def tournament_route(f):
    """Resolve ``slug`` to its registry entry, answering 404 for unknown tournaments."""
    @wraps(f)
    def decorated_function(slug, *args, **kwargs):
        if not _is_valid_slug(slug):
            return jsonify({'success': False, 'error': 'invalid_tournament',
                            'message': 'Invalid tournament identifier.'}), 400
        tournament = get_tournament(slug)
        if tournament is None or not os.path.isdir(_tournament_dir(slug)):
            return _not_found(f'Tournament "{slug}" not found.')
        return f(tournament, *args, **kwargs)
    return decorated_function


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    """List all tournaments."""
    return jsonify({'tournaments': load_tournaments()['tournaments']})


@app.route('/api/tournaments/create', methods=['POST'])
@require_admin_key
def api_create_tournament():
    """Create a new tournament."""
    data = request.get_json(silent=True) or {}
    name = str(data.get('name', '')).strip()
    if not name:
        return jsonify({'success': False, 'error': 'invalid_request',
                        'message': 'Tournament name is required.'}), 400

    bracket_type = data.get('bracket_type') or SINGLE_ELIMINATION
    if bracket_type not in BRACKET_TYPES:
        return jsonify({'success': False, 'error': results.UNKNOWN_BRACKET_TYPE,
                        'message': f'Unknown bracket type "{bracket_type}".'}), 400

    slug = _slugify(name)
    with _registry_lock():
        registry = load_tournaments()
        if any(t['slug'] == slug for t in registry['tournaments']):
            return jsonify({'success': False, 'error': 'duplicate_tournament',
                            'message': f'A tournament with a similar name already exists ("{slug}").'}), 409

        os.makedirs(_tournament_dir(slug), exist_ok=True)
        save_players(slug, [])
        tournament = {
            'slug': slug,
            'name': name,
            'description': str(data.get('description', '')),
            'bracket_type': bracket_type,
            'num_players_expected': data.get('num_players_expected'),
            'status': STATUS_PENDING,
            'created': datetime.now().isoformat(),
        }
        registry['tournaments'].append(tournament)
        save_tournaments(registry)

    app.logger.info(f'Tournament "{name}" created as {slug}')
    return jsonify({'success': True, 'tournament': tournament}), 201


@app.route('/api/tournaments/delete', methods=['POST'])
@require_admin_key
def api_delete_tournament():
    """Delete a tournament and its documents."""
    data = request.get_json(silent=True) or {}
    slug = str(data.get('slug', '')).strip()
    if not _is_valid_slug(slug):
        return jsonify({'success': False, 'error': 'invalid_tournament',
                        'message': 'Invalid tournament identifier.'}), 400

    with _registry_lock():
        registry = load_tournaments()
        remaining = [t for t in registry['tournaments'] if t['slug'] != slug]
        if len(remaining) == len(registry['tournaments']):
            return _not_found(f'Tournament "{slug}" not found.')
        registry['tournaments'] = remaining
        save_tournaments(registry)

    tournament_path = _tournament_dir(slug)
    if os.path.isdir(tournament_path):
        shutil.rmtree(tournament_path)
    return jsonify({'success': True})


@app.route('/api/tournaments/<slug>/players', methods=['GET'])
@tournament_route
def api_list_players(tournament):
    return jsonify({'players': load_players(tournament['slug'])})


def _clean_player(entry) -> dict:
    if isinstance(entry, str):
        entry = {'name': entry}
    if not isinstance(entry, dict):
        return None
    name = str(entry.get('name') or '').strip()
    if not name:
        return None
    return {'name': name, 'nickname': str(entry.get('nickname') or '').strip()}


def _add_players(slug: str, entries: list):
    """Append roster entries, skipping blanks and duplicate names. Returns (added, skipped)."""
    added, skipped = [], []
    with _tournament_lock(slug):
        players = load_players(slug)
        names = {p['name'].lower() for p in players}
        for entry in entries:
            player = _clean_player(entry)
            if player is None or player['name'].lower() in names:
                skipped.append(entry)
                continue
            player['id'] = max((p.get('id', 0) for p in players), default=0) + 1
            players.append(player)
            names.add(player['name'].lower())
            added.append(player)
        save_players(slug, players)
    return added, skipped


@app.route('/api/tournaments/<slug>/players', methods=['POST'])
@require_admin_key
@tournament_route
def api_add_player(tournament):
    """Register one player."""
    data = request.get_json(silent=True) or {}
    added, _ = _add_players(tournament['slug'], [data])
    if not added:
        return jsonify({'success': False, 'error': 'invalid_player',
                        'message': 'Player name is required and must be unique.'}), 400
    return jsonify({'success': True, 'player': added[0]}), 201


@app.route('/api/tournaments/<slug>/players/import', methods=['POST'])
@require_admin_key
@tournament_route
def api_import_players(tournament):
    """Import a roster from a CSV upload (``name,nickname``) or a JSON list."""
    if request.is_json:
        data = request.get_json(silent=True) or {}
        entries = data.get('players') if isinstance(data, dict) else data
        if not isinstance(entries, list):
            return jsonify({'success': False, 'error': 'invalid_request',
                            'message': 'Expected a "players" list.'}), 400
    else:
        upload = request.files.get('file')
        if upload is None:
            return jsonify({'success': False, 'error': 'invalid_request',
                            'message': 'No file uploaded.'}), 400
        content = upload.read(MAX_UPLOAD_SIZE + 1)
        if len(content) > MAX_UPLOAD_SIZE:
            return jsonify({'success': False, 'error': 'invalid_request',
                            'message': 'File too large.'}), 400
        try:
            text = content.decode('utf-8-sig')
        except UnicodeDecodeError:
            return jsonify({'success': False, 'error': 'invalid_request',
                            'message': 'File must be UTF-8 encoded.'}), 400
        entries = list(csv.DictReader(io.StringIO(text)))

    added, skipped = _add_players(tournament['slug'], entries)
    return jsonify({'success': True, 'added': len(added), 'skipped': len(skipped),
                    'players': load_players(tournament['slug'])})


@app.route('/api/tournaments/<slug>/generate-bracket', methods=['POST'])
@require_admin_key
@tournament_route
def api_generate_bracket(tournament):
    """Shuffle the roster and build a fresh bracket (replaces any existing one)."""
    slug = tournament['slug']
    with _tournament_lock(slug):
        players = load_players(slug)
        bracket, failure = generate_bracket(players, _base_state(tournament))
        if failure:
            return _failure_response(failure)
        save_bracket(slug, bracket)
    update_tournament(slug, status=STATUS_IN_PROGRESS)
    app.logger.info(f'Bracket generated for {slug}: {len(bracket.matches)} matches')
    return jsonify({'success': True, 'state': _state_payload(bracket)})


@app.route('/api/tournaments/<slug>/state', methods=['GET'])
@tournament_route
def api_get_state(tournament):
    bracket = load_bracket(tournament['slug']) or _empty_bracket(tournament)
    return jsonify(_state_payload(bracket))


def _scores_in_slot_order(match, data):
    """
    Map submitted scores onto the match's slots.

    ``player1``/``player2`` names are optional; when present they must
    name the match's players, in either order.
    """
    score1, score2 = data.get('score1'), data.get('score2')
    player1, player2 = data.get('player1'), data.get('player2')
    if player1 is None and player2 is None:
        return (score1, score2), None
    names = [slot.display_name for slot in match.players]
    if [player1, player2] == names:
        return (score1, score2), None
    if [player2, player1] == names:
        return (score2, score1), None
    return None, f'Players {player1} and {player2} do not play match {match.id}.'


@app.route('/api/tournaments/<slug>/scores', methods=['POST'])
@require_admin_key
@tournament_route
def api_report_score(tournament):
    """Record a best-of-three score and advance the bracket."""
    slug = tournament['slug']
    data = request.get_json(silent=True) or {}
    if data.get('match_id') is None:
        return jsonify({'success': False, 'error': 'invalid_request',
                        'message': 'match_id, score1 and score2 are required.'}), 400

    scores, failure = validate_best_of_three(data.get('score1'), data.get('score2'))
    if failure:
        return _failure_response(failure)

    with _tournament_lock(slug):
        bracket = load_bracket(slug)
        if bracket is None:
            return _not_found('Bracket has not been generated yet.')
        match = bracket.get_match(data['match_id'])
        if match is None:
            return _failure_response(results.Failure(
                results.MATCH_NOT_FOUND, f'Match {data["match_id"]} not found.'))

        ordered, mismatch = _scores_in_slot_order(match, {
            'score1': scores[0], 'score2': scores[1],
            'player1': data.get('player1'), 'player2': data.get('player2'),
        })
        if mismatch:
            return jsonify({'success': False, 'error': 'players_mismatch', 'message': mismatch}), 400

        winner, failure = report_match_result(bracket, match.id, ordered[0], ordered[1])
        if failure:
            return _failure_response(failure)
        save_bracket(slug, bracket)

    _sync_status(slug, bracket)
    return jsonify({'success': True, 'winner': winner, 'state': _state_payload(bracket)})


@app.route('/api/tournaments/<slug>/matches/<int:match_id>/winner', methods=['PATCH'])
@require_admin_key
@tournament_route
def api_set_winner(tournament, match_id):
    """Designate a match winner by slot index (0 or 1)."""
    slug = tournament['slug']
    data = request.get_json(silent=True) or {}
    winner_index = data.get('winner_index')

    with _tournament_lock(slug):
        bracket = load_bracket(slug)
        if bracket is None:
            return _not_found('Bracket has not been generated yet.')
        winner, failure = set_match_winner(bracket, match_id, winner_index)
        if failure:
            return _failure_response(failure)
        save_bracket(slug, bracket)

    _sync_status(slug, bracket)
    return jsonify({'success': True, 'winner': winner, 'state': _state_payload(bracket)})


@app.route('/api/tournaments/<slug>/matches/<int:match_id>/schedule', methods=['PATCH'])
@require_admin_key
@tournament_route
def api_schedule_match(tournament, match_id):
    """Set or clear the date/time a match is played."""
    slug = tournament['slug']
    data = request.get_json(silent=True) or {}
    date_time = data.get('date_time')

    scheduled_at = None
    if date_time:
        try:
            scheduled_at = datetime.fromisoformat(str(date_time)).isoformat()
        except ValueError:
            return jsonify({'success': False, 'error': 'invalid_request',
                            'message': 'Invalid date/time format.'}), 400

    with _tournament_lock(slug):
        bracket = load_bracket(slug)
        match = bracket.get_match(match_id) if bracket else None
        if match is None:
            return _failure_response(results.Failure(
                results.MATCH_NOT_FOUND, f'Match {match_id} not found.'))
        match.scheduled_at = scheduled_at
        save_bracket(slug, bracket)

    return jsonify({'success': True, 'match': match.to_dict()})


@app.route('/api/tournaments/<slug>/advance-round', methods=['POST'])
@require_admin_key
@tournament_route
def api_advance_round(tournament):
    """Move the current round cursor once every match of the round has a winner."""
    slug = tournament['slug']
    data = request.get_json(silent=True) or {}

    with _tournament_lock(slug):
        bracket = load_bracket(slug)
        if bracket is None or not bracket.matches:
            return jsonify({'success': False, 'error': results.CURRENT_ROUND_INVALID,
                            'message': 'Bracket has no current round.'}), 400
        next_round, failure = advance_round(bracket, data.get('current_round'))
        if failure:
            return _failure_response(failure)
        save_bracket(slug, bracket)

    return jsonify({'success': True, 'current_round': next_round, 'state': _state_payload(bracket)})


@app.route('/api/tournaments/<slug>/reset', methods=['POST'])
@require_admin_key
@tournament_route
def api_reset(tournament):
    """Discard all matches; the roster is kept."""
    slug = tournament['slug']
    with _tournament_lock(slug):
        bracket = load_bracket(slug)
        bracket = reset_bracket(bracket) if bracket else _empty_bracket(tournament)
        save_bracket(slug, bracket)
    update_tournament(slug, status=STATUS_PENDING)
    return jsonify({'success': True, 'state': _state_payload(bracket)})


@app.route('/api/tournaments/<slug>/export/state', methods=['GET'])
@tournament_route
def api_export_state(tournament):
    """Download the bracket document as JSON."""
    bracket = load_bracket(tournament['slug']) or _empty_bracket(tournament)
    return Response(
        json.dumps(bracket.to_dict(), ensure_ascii=False, indent=2),
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename={tournament["slug"]}_bracket.json'},
    )


if __name__ == '__main__':
    app.run(debug=True, port=5000)
