from datetime import datetime

from flask import current_app

from matchday import errors
from matchday.events import PlayerRemoved
from matchday.models import Match
from . import status, permissions
from .concurrency import run_mutation, Mutation


def apply_remove(match: Match, actor_id, target_user_id, now: datetime):
    status.ensure_mutable(match)
    permissions.require_creator(match, actor_id, 'removePlayer')
    permissions.require_not_creator_target(match, target_user_id, 'removePlayer')
    player = match.find_player(target_user_id)
    if player is None:
        raise errors.PlayerNotFoundError(f'User {target_user_id} is not in match {match.id}')
    player.team = None
    match.players.remove(player)
    events = [PlayerRemoved(match_id=match.id, actor_id=actor_id, occurred_at=now,
                            user_id=target_user_id, reason='removed')]
    return events + status.sync_capacity(match, actor_id, now)


def apply_leave(match: Match, actor_id, now: datetime):
    status.ensure_mutable(match)
    player = permissions.require_confirmed_non_creator(match, actor_id, 'leaveMatch')
    match.players.remove(player)
    events = [PlayerRemoved(match_id=match.id, actor_id=actor_id, occurred_at=now, user_id=actor_id, reason='left')]
    return events + status.sync_capacity(match, actor_id, now)


def remove_player(actor_id, match_id, target_user_id, now=None) -> Mutation:
    now = now or datetime.now()
    result = run_mutation(match_id, lambda m: apply_remove(m, actor_id, target_user_id, now))
    current_app.logger.info(
        f"[remove] match={match_id} by={actor_id} user={target_user_id} status={result.match.status}")
    return result


def leave_match(actor_id, match_id, now=None) -> Mutation:
    now = now or datetime.now()
    result = run_mutation(match_id, lambda m: apply_leave(m, actor_id, now))
    current_app.logger.info(f"[leave] match={match_id} user={actor_id} status={result.match.status}")
    return result
