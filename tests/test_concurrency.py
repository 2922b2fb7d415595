import pytest

from conftest import NOW
from matchday import errors
from matchday.services.matches import invites, lifecycle, teams
from matchday.services.matches.concurrency import run_mutation


def test_retry_applies_on_top_of_competing_write(flask_app, users, make_match):
    match_id = make_match(max_players=4, invite=['bruno', 'carla'])
    versions = []

    def bruno_accepts(match):
        versions.append(match.version)
        player = match.find_player(users['bruno'])
        if len(versions) == 1:
            # A competing request commits from its own session between our read and write
            with flask_app.app_context():
                invites.respond_invite(users['carla'], match_id, 'accept', now=NOW)
        return invites.apply_accept(match, player, None, NOW)

    result = run_mutation(match_id, bruno_accepts)
    assert len(versions) == 2
    assert versions[1] > versions[0]
    assert result.match.confirmed_count == 3
    assert result.match.find_player(users['carla']).status == 'confirmed'
    assert result.match.status == 'open'


def test_concurrent_accepts_for_last_slot(flask_app, users, make_match):
    match_id = make_match(max_players=2, invite=['bruno', 'carla'])
    attempts = []

    def carla_accepts(match):
        carla = match.find_player(users['carla'])
        attempts.append(match.confirmed_count)
        if len(attempts) == 1:
            # Bruno takes the last slot before our write lands
            with flask_app.app_context():
                invites.respond_invite(users['bruno'], match_id, 'accept', now=NOW)
        return invites.apply_accept(match, carla, None, NOW)

    with pytest.raises(errors.MatchFullError):
        run_mutation(match_id, carla_accepts)

    # First attempt saw a free slot and lost the version check; the retry saw the match full
    assert attempts == [1, 2]
    match = lifecycle.get_match(match_id)
    assert match.confirmed_count == 2
    assert match.status == 'full'
    assert match.find_player(users['bruno']).status == 'confirmed'
    assert match.find_player(users['carla']).status == 'pending'


def test_concurrent_public_joins_for_last_team_slot(flask_app, users, make_match):
    match_id = make_match(max_players=4, is_public=True, team='A')
    teams.join_public_match(users['bruno'], match_id, team='B', now=NOW)
    attempts = []

    def dario_joins_a(match):
        attempts.append(match.team_count('A'))
        if len(attempts) == 1:
            with flask_app.app_context():
                teams.join_public_match(users['carla'], match_id, team='A', now=NOW)
        return teams.apply_join(match, users['dario'], 'A', NOW)

    with pytest.raises(errors.TeamFullError):
        run_mutation(match_id, dario_joins_a)
    assert attempts == [1, 2]
    match = lifecycle.get_match(match_id)
    assert match.team_count('A') == 2
    assert match.find_player(users['dario']) is None


def test_gives_up_after_bounded_retries(flask_app, users, make_match):
    match_id = make_match(max_players=6, invite=['bruno'])
    calls = []

    def always_overtaken(match):
        calls.append(match.version)
        # Someone else bumps the version every single time
        with flask_app.app_context():
            run_mutation(match_id, lambda m: [])
        return invites.apply_decline(match, match.find_player(users['bruno']), NOW)

    with pytest.raises(errors.ConcurrentModificationError) as excinfo:
        run_mutation(match_id, always_overtaken)
    assert excinfo.value.attempts == 3
    assert len(calls) == 3
    assert lifecycle.get_match(match_id).find_player(users['bruno']).status == 'pending'


def test_missing_match(flask_app):
    with pytest.raises(errors.MatchNotFoundError):
        run_mutation(12345, lambda m: [])
