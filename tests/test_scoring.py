from datetime import timedelta

import pytest

from conftest import NOW
from matchday import errors
from matchday.services.matches import invites, lifecycle, scoring

LATER = NOW + timedelta(days=2)


@pytest.fixture()
def played_match(users, make_match):
    match_id = make_match(max_players=4, invite=['bruno', 'carla', 'dario'])
    for name in ['bruno', 'carla', 'dario']:
        invites.respond_invite(users[name], match_id, 'accept', now=NOW)
    return match_id


def test_winner_is_team_with_more_sets(users, played_match):
    result = scoring.submit_score(users['alice'], played_match, [[21, 15], [18, 21], [21, 19]], now=LATER)
    match = result.match
    assert match.winner == 'A'
    assert match.status == 'completed'
    assert match.sets == [{'teamA': 21, 'teamB': 15}, {'teamA': 18, 'teamB': 21}, {'teamA': 21, 'teamB': 19}]
    assert match.played_at == LATER
    assert [e.name for e in result.events] == ['score_submitted']


def test_tied_sets_without_override_are_invalid(users, played_match):
    with pytest.raises(errors.InvalidScoreError):
        scoring.submit_score(users['alice'], played_match, [[21, 15], [15, 21]], now=LATER)
    match = lifecycle.get_match(played_match)
    assert match.status == 'full'
    assert match.winner is None and match.score is None


def test_tied_sets_override_must_match_points(users, played_match):
    with pytest.raises(errors.ScoreWinnerMismatchError):
        scoring.submit_score(users['alice'], played_match, [[21, 15], [15, 21]], winner='A', now=LATER)

    result = scoring.submit_score(users['alice'], played_match, [[21, 10], [19, 21]], winner='A', now=LATER)
    assert result.match.winner == 'A'


def test_override_contradicting_sets_is_a_mismatch(users, played_match):
    with pytest.raises(errors.ScoreWinnerMismatchError):
        scoring.submit_score(users['alice'], played_match, [[21, 15], [21, 19]], winner='B', now=LATER)
    result = scoring.submit_score(users['alice'], played_match, [{'teamA': 21, 'teamB': 15}, {'teamA': 21, 'teamB': 19}],
                                  winner='A', now=LATER)
    assert result.match.winner == 'A'


def test_resubmission_keeps_first_played_at(users, played_match):
    scoring.submit_score(users['alice'], played_match, [[21, 15], [21, 19]], now=LATER)
    result = scoring.submit_score(users['bruno'], played_match, [[15, 21], [19, 21]], now=LATER + timedelta(hours=1))
    assert result.match.winner == 'B'
    assert result.match.sets[0] == {'teamA': 15, 'teamB': 21}
    assert result.match.played_at == LATER
    assert result.match.status == 'completed'


@pytest.mark.parametrize('sets', [
    [],
    None,
    [[21, -1]],
    [[21, 'x']],
    [[21, True]],
    [[21, 15, 3]],
    [{'teamA': 21}],
    [[0, 0], [0, 0]],
])
def test_malformed_sets_rejected(users, played_match, sets):
    with pytest.raises(errors.InvalidScoreError):
        scoring.submit_score(users['alice'], played_match, sets, now=LATER)


def test_unplayed_sets_are_ignored(users, played_match):
    result = scoring.submit_score(users['alice'], played_match, [[21, 15], [21, 18], [0, 0]], now=LATER)
    assert result.match.winner == 'A'


def test_score_before_booking_end_is_refused(users, played_match):
    with pytest.raises(errors.PermissionError):
        scoring.submit_score(users['alice'], played_match, [[21, 15], [21, 18]], now=NOW)


def test_score_on_draft_match_is_refused(users, make_booking, make_match):
    booking = make_booking(start=NOW - timedelta(hours=3))
    match_id = make_match(max_players=4, booking=booking, publish=False, now=NOW - timedelta(days=1))
    with pytest.raises(errors.InvalidTransitionError):
        scoring.submit_score(users['alice'], match_id, [[21, 15], [21, 18]], now=NOW)


def test_set_rules(flask_app):
    scoring.validate_set_rules([{'teamA': 21, 'teamB': 19}, {'teamA': 24, 'teamB': 26}, {'teamA': 0, 'teamB': 0}])
    scoring.validate_set_rules([{'teamA': 25, 'teamB': 20}], sport='volleyball')
    for bad in [{'teamA': 20, 'teamB': 18}, {'teamA': 21, 'teamB': 20}, {'teamA': 23, 'teamB': 20},
                {'teamA': 15, 'teamB': 15}]:
        with pytest.raises(errors.InvalidScoreError):
            scoring.validate_set_rules([bad])
    with pytest.raises(errors.InvalidScoreError):
        scoring.validate_set_rules([{'teamA': 21, 'teamB': 15}], sport='volleyball')


def test_set_rules_apply_when_enabled(users, played_match, flask_app):
    flask_app.config['SCORE_ENFORCE_SET_RULES'] = True
    with pytest.raises(errors.InvalidScoreError):
        scoring.submit_score(users['alice'], played_match, [[21, 20], [21, 15]], now=LATER)
    result = scoring.submit_score(users['alice'], played_match, [[22, 20], [21, 15]], now=LATER)
    assert result.match.winner == 'A'
