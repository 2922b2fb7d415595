from datetime import datetime, timedelta

from flask import current_app

from matchday import errors
from matchday.events import PlayerJoined
from matchday.models import Match, Player
from . import status, permissions
from .capacity import normalize_team, ensure_slot_free, ensure_team_capacity, smaller_team
from .concurrency import run_mutation, Mutation


def _join_order(player: Player):
    return (player.joined_at or datetime.min, player.id or 0)


def balance(match: Match):
    """Spread unassigned confirmed players over A and B.

    Players are taken in join order and each goes to the currently smaller
    team (ties go to A). If earlier manual picks left the teams more than one
    apart, the latest joiners of the bigger team are moved across. Returns
    the list of ``(player, team)`` changes applied.
    """
    if not match.uses_teams:
        return []
    changes = []
    pool = sorted((p for p in match.confirmed_players if p.team is None), key=_join_order)
    for player in pool:
        team = smaller_team(match)
        if team is None:
            break
        player.team = team
        changes.append((player, team))

    while abs(match.team_count('A') - match.team_count('B')) > 1:
        larger = 'A' if match.team_count('A') > match.team_count('B') else 'B'
        smaller = 'B' if larger == 'A' else 'A'
        mover = max((p for p in match.confirmed_players if p.team == larger), key=_join_order)
        mover.team = smaller
        changes.append((mover, smaller))
    return changes


def apply_assign_team(match: Match, actor_id, target_user_id, team):
    status.ensure_mutable(match)
    permissions.require_creator(match, actor_id, 'assignTeam')
    team = normalize_team(team)
    player = match.find_player(target_user_id)
    if player is None:
        raise errors.PlayerNotFoundError(f'User {target_user_id} is not in match {match.id}')
    if not player.is_confirmed:
        raise errors.PermissionError('assignTeam', 'a confirmed target player')
    if not match.uses_teams:
        return []
    ensure_team_capacity(match, team, moving_player=player)
    player.team = team
    return []


def apply_auto_balance(match: Match, actor_id):
    status.ensure_mutable(match)
    permissions.require_creator(match, actor_id, 'autoBalanceTeams')
    balance(match)
    return []


def registration_deadline(match: Match):
    minutes = int(current_app.config.get('PUBLIC_JOIN_CUTOFF_MINUTES', 45))
    if minutes <= 0:
        return None
    return match.booking.starts_at - timedelta(minutes=minutes)


def apply_join(match: Match, actor_id, team, now: datetime):
    status.ensure_mutable(match)
    if not match.is_public:
        raise errors.PermissionError('joinPublicMatch', permissions.PUBLIC_MATCH)
    if match.find_player(actor_id) is not None:
        raise errors.AlreadyJoinedError(f'User {actor_id} is already listed in match {match.id}')
    if match.status == status.FULL:
        raise errors.MatchFullError(match.max_players)
    if match.status != status.OPEN:
        raise errors.InvalidTransitionError(f'Match {match.id} is not open for registration')
    deadline = registration_deadline(match)
    if deadline is not None and now > deadline:
        raise errors.InviteExpiredError(f'Registration for match {match.id} closed at {deadline:%Y-%m-%d %H:%M}')
    ensure_slot_free(match)

    team = normalize_team(team) if match.uses_teams else None
    if match.uses_teams:
        if team is None:
            team = smaller_team(match)
        ensure_team_capacity(match, team)

    match.players.append(Player(user_id=actor_id, status='confirmed', team=team, joined_at=now, responded_at=now))
    events = [PlayerJoined(match_id=match.id, actor_id=actor_id, occurred_at=now, user_id=actor_id, team=team)]
    return events + status.sync_capacity(match, actor_id, now)


def assign_team(actor_id, match_id, target_user_id, team) -> Mutation:
    result = run_mutation(match_id, lambda m: apply_assign_team(m, actor_id, target_user_id, team))
    current_app.logger.info(f"[assign_team] match={match_id} by={actor_id} user={target_user_id} team={team}")
    return result


def auto_balance_teams(actor_id, match_id) -> Mutation:
    result = run_mutation(match_id, lambda m: apply_auto_balance(m, actor_id))
    m = result.match
    current_app.logger.info(
        f"[auto_balance] match={match_id} by={actor_id} A={m.team_count('A')} B={m.team_count('B')}")
    return result


def join_public_match(actor_id, match_id, team=None, now=None) -> Mutation:
    now = now or datetime.now()
    result = run_mutation(match_id, lambda m: apply_join(m, actor_id, team, now))
    current_app.logger.info(f"[join] match={match_id} user={actor_id} status={result.match.status}")
    return result
