from datetime import datetime
import json

from flask import current_app

from matchday import errors
from matchday.events import ScoreSubmitted
from matchday.models import Match
from . import status, permissions
from .capacity import normalize_team
from .concurrency import run_mutation, Mutation

# Points needed to take a set, per sport; anything else plays to 21
SET_TARGET_POINTS = {'volleyball': 25}
DEFAULT_SET_TARGET = 21


def _points(value, index, side):
    if isinstance(value, bool) or not isinstance(value, int):
        raise errors.InvalidScoreError(f'Set {index}: {side} must be a whole number, got {value!r}')
    if value < 0:
        raise errors.InvalidScoreError(f'Set {index}: {side} cannot be negative')
    return value


def parse_sets(raw):
    """Normalize ``[[a, b], ...]`` or ``[{"teamA": a, "teamB": b}, ...]``."""
    if not isinstance(raw, (list, tuple)) or not raw:
        raise errors.InvalidScoreError('Score needs at least one set')
    sets = []
    for index, item in enumerate(raw, start=1):
        if isinstance(item, dict):
            if 'teamA' not in item or 'teamB' not in item:
                raise errors.InvalidScoreError(f'Set {index}: expected teamA and teamB')
            a, b = item['teamA'], item['teamB']
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            a, b = item
        else:
            raise errors.InvalidScoreError(f'Set {index}: expected a pair of scores')
        sets.append({'teamA': _points(a, index, 'teamA'), 'teamB': _points(b, index, 'teamB')})
    return sets


def set_winner(s):
    if s['teamA'] > s['teamB']:
        return 'A'
    if s['teamB'] > s['teamA']:
        return 'B'
    return None


def played_sets(sets):
    # 0-0 means the set was never played
    return [s for s in sets if s['teamA'] or s['teamB']]


def validate_set_rules(sets, sport=None):
    """Reject set scores a referee would not sign.

    The winner needs the target score; at exactly the target the loser has at
    most target-2, beyond it the game only ends on a two point lead.
    """
    target = SET_TARGET_POINTS.get(sport, DEFAULT_SET_TARGET)
    for index, s in enumerate(sets, start=1):
        if not (s['teamA'] or s['teamB']):
            continue
        high, low = max(s['teamA'], s['teamB']), min(s['teamA'], s['teamB'])
        if high == low:
            raise errors.InvalidScoreError(f'Set {index}: a set cannot end in a draw')
        if high < target:
            raise errors.InvalidScoreError(f'Set {index}: the winner needs at least {target} points')
        if high == target and low > target - 2:
            raise errors.InvalidScoreError(
                f'Set {index}: at {target - 1}-{target - 1} play continues until a two point lead')
        if high > target and high - low != 2:
            raise errors.InvalidScoreError(f'Set {index}: past {target} points a set ends on a two point lead')


def derive_winner(sets, winner_override=None):
    """Team that won strictly more sets.

    On a tie in sets won, an explicit ``winner_override`` is accepted only if
    that team also scored more total points; without one there is no valid
    outcome. An override that contradicts a clear result is a mismatch.
    """
    override = normalize_team(winner_override)
    played = played_sets(sets)
    if not played:
        raise errors.InvalidScoreError('No set has been played')
    won_a = sum(1 for s in played if set_winner(s) == 'A')
    won_b = sum(1 for s in played if set_winner(s) == 'B')

    if won_a != won_b:
        derived = 'A' if won_a > won_b else 'B'
        if override is not None and override != derived:
            raise errors.ScoreWinnerMismatchError(
                f'Sets say team {derived} won {max(won_a, won_b)}-{min(won_a, won_b)}, not team {override}')
        return derived

    if override is None:
        raise errors.InvalidScoreError(f'Sets are tied {won_a}-{won_b}; a match cannot end without a winner')
    points_a = sum(s['teamA'] for s in played)
    points_b = sum(s['teamB'] for s in played)
    leader = 'A' if points_a > points_b else 'B' if points_b > points_a else None
    if leader != override:
        raise errors.ScoreWinnerMismatchError(
            f'Sets are tied {won_a}-{won_b} and points ({points_a}-{points_b}) do not favour team {override}')
    return override


def apply_score(match: Match, actor_id, raw_sets, winner_override, now: datetime):
    status.ensure_mutable(match, allow_completed=True)
    permissions.require_score_submitter(match, actor_id)
    if match.status == status.DRAFT:
        raise errors.InvalidTransitionError(f'Match {match.id} was never published')
    if now < match.booking.ends_at:
        raise errors.PermissionError('submitScore', 'the booking to have ended')

    sets = parse_sets(raw_sets)
    if current_app.config.get('SCORE_ENFORCE_SET_RULES'):
        validate_set_rules(sets, match.booking.sport)
    winner = derive_winner(sets, winner_override)

    match.score = json.dumps(sets)
    match.winner = winner
    if match.played_at is None:
        match.played_at = now
    status.transition(match, status.COMPLETED)
    return [ScoreSubmitted(match_id=match.id, actor_id=actor_id, occurred_at=now, winner=winner, sets=sets)]


def submit_score(actor_id, match_id, sets, winner=None, now=None) -> Mutation:
    now = now or datetime.now()
    result = run_mutation(match_id, lambda m: apply_score(m, actor_id, sets, winner, now))
    current_app.logger.info(
        f"[score] match={match_id} by={actor_id} winner={result.match.winner} sets={len(result.match.sets)}")
    return result
