"""
Shared pytest fixtures for bracket engine and API tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset (skips player-count sweeps)
"""
import pytest
import random
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

# Keep the app from persisting a generated key into the repo data dir
os.environ.setdefault('SECRET_KEY', 'test-secret-key')

TEST_ADMIN_KEY = 'test-admin-key'


def make_players(count):
    """Roster of ``count`` players named Player 1..Player N."""
    return [{'name': f'Player {i}', 'nickname': f'P{i}'} for i in range(1, count + 1)]


def playable_matches(bracket):
    """Undecided matches whose two slots hold players, in id order."""
    from brackets.models import DECIDED, GRAND_FINAL
    playable = []
    for match_id in sorted(bracket.matches):
        match = bracket.matches[match_id]
        if match.bracket == GRAND_FINAL:
            open_match = match.grand_final_state != DECIDED
        else:
            open_match = match.winner is None
        if open_match and match.is_ready:
            playable.append(match)
    return playable


def play_out(bracket, rng):
    """Report random 2-0 / 2-1 results until no match is playable. Returns the reports made."""
    from brackets.advancement import report_match_result
    reports = []
    while True:
        playable = playable_matches(bracket)
        if not playable:
            return reports
        match = playable[0]
        loser_racks = rng.choice([0, 1])
        scores = (2, loser_racks) if rng.random() < 0.5 else (loser_racks, 2)
        winner, failure = report_match_result(bracket, match.id, *scores)
        assert failure is None, failure
        reports.append((match.id, scores, winner))


@pytest.fixture
def rng():
    """Seeded random source so draws are reproducible."""
    return random.Random(1234)


@pytest.fixture
def four_players():
    return make_players(4)


@pytest.fixture
def five_players():
    return make_players(5)


@pytest.fixture
def eight_players():
    return make_players(8)


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app at an empty temporary data directory."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return str(data_dir)


@pytest.fixture
def admin_headers(monkeypatch):
    """Authorization header accepted by mutating endpoints."""
    monkeypatch.setenv('ADMIN_API_KEY', TEST_ADMIN_KEY)
    return {'Authorization': f'Bearer {TEST_ADMIN_KEY}'}


@pytest.fixture
def client(temp_data_dir):
    """Create a test client backed by the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def tournament(client, admin_headers):
    """A created single elimination tournament with five registered players."""
    response = client.post('/api/tournaments/create', json={
        'name': 'Sinuca de Sexta',
        'description': 'Torneio semanal',
        'bracket_type': 'single-elimination',
        'num_players_expected': 5,
    }, headers=admin_headers)
    slug = response.get_json()['tournament']['slug']
    client.post(f'/api/tournaments/{slug}/players/import',
                json={'players': make_players(5)}, headers=admin_headers)
    return slug
