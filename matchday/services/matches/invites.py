from datetime import datetime, timedelta

from flask import current_app

from matchday import db, errors
from matchday.events import PlayerInvited, InviteAccepted, InviteDeclined
from matchday.models import Booking, Match, Player, User
from . import status, permissions
from .capacity import normalize_team, ensure_slot_free, ensure_team_capacity, team_has_room
from .concurrency import run_mutation, Mutation

ACCEPT = 'accept'
DECLINE = 'decline'


def cutoff_time(booking: Booking, hours=None) -> datetime:
    """Deadline after which a declined player can no longer re-accept."""
    if hours is None:
        hours = float(current_app.config.get('INVITE_CUTOFF_HOURS', 2))
    return booking.starts_at - timedelta(hours=hours)


def _resolve_invitee(user_id=None, username=None) -> User:
    user = None
    if user_id is not None:
        user = db.session.get(User, user_id)
    elif username:
        user = User.query.filter_by(username=username.strip().lower()).first() \
            or User.query.filter_by(username=username.strip()).first()
    if user is None:
        raise errors.PlayerNotFoundError(f'No user {username or user_id} to invite')
    return user


def apply_invite(match: Match, actor_id, invitee: User, team, now: datetime):
    status.ensure_mutable(match)
    permissions.require_creator(match, actor_id, 'invitePlayer')
    team = normalize_team(team) if match.uses_teams else None
    if match.find_player(invitee.id) is not None:
        raise errors.AlreadyJoinedError(f'{invitee.username} is already listed in match {match.id}')
    ensure_slot_free(match)
    ensure_team_capacity(match, team)

    match.players.append(Player(user_id=invitee.id, status='pending', team=team, invited_at=now))
    return [PlayerInvited(match_id=match.id, actor_id=actor_id, occurred_at=now, user_id=invitee.id, team=team)]


def apply_accept(match: Match, player: Player, team, now: datetime):
    if player.is_confirmed:
        raise errors.AlreadyJoinedError(f'User {player.user_id} already confirmed for match {match.id}')
    if match.status == status.DRAFT:
        raise errors.InvalidTransitionError(f'Match {match.id} is not accepting responses yet')
    if player.status == 'declined' and now > cutoff_time(match.booking):
        raise errors.InviteExpiredError(
            f'Responses for match {match.id} closed at {cutoff_time(match.booking):%Y-%m-%d %H:%M}; '
            'ask the organizer for a new invite')
    ensure_slot_free(match)
    team = team_for_accept(match, player, team)

    player.status = 'confirmed'
    player.team = team
    player.joined_at = now
    player.responded_at = now
    player.declined_at = None
    events = [InviteAccepted(match_id=match.id, actor_id=player.user_id, occurred_at=now,
                             user_id=player.user_id, team=team)]
    return events + status.sync_capacity(match, player.user_id, now)


def team_for_accept(match: Match, player: Player, requested):
    """Team the accepting player ends up on.

    An explicit request must fit under the team cap. Without one, the team
    suggested with the invite is used while it still has room; otherwise the
    player is confirmed unassigned and can be placed by balancing later.
    """
    if not match.uses_teams:
        return None
    requested = normalize_team(requested)
    if requested is not None:
        ensure_team_capacity(match, requested)
        return requested
    suggested = normalize_team(player.team)
    return suggested if team_has_room(match, suggested) else None


def apply_decline(match: Match, player: Player, now: datetime):
    if player.status == 'declined':
        return []
    player.status = 'declined'
    player.team = None
    player.declined_at = now
    player.responded_at = now
    events = [InviteDeclined(match_id=match.id, actor_id=player.user_id, occurred_at=now, user_id=player.user_id)]
    return events + status.sync_capacity(match, player.user_id, now)


def _apply_response(match: Match, actor_id, action, team, now, operation):
    status.ensure_mutable(match)
    player = permissions.require_invited(match, actor_id, operation)
    if operation == 'changeResponse' and player.status == 'pending':
        raise errors.PermissionError(operation, permissions.RESPONDED)
    if action == ACCEPT:
        return apply_accept(match, player, team, now)
    if action == DECLINE:
        return apply_decline(match, player, now)
    raise errors.InvalidRequestError(f'Unknown action {action!r}; expected accept or decline')


def invite_player(actor_id, match_id, user_id=None, username=None, team=None, now=None) -> Mutation:
    now = now or datetime.now()
    invitee = _resolve_invitee(user_id, username)
    result = run_mutation(match_id, lambda m: apply_invite(m, actor_id, invitee, team, now))
    current_app.logger.info(f"[invite] match={match_id} by={actor_id} user={invitee.id} team={team}")
    return result


def respond_invite(actor_id, match_id, action, team=None, now=None) -> Mutation:
    now = now or datetime.now()
    result = run_mutation(match_id, lambda m: _apply_response(m, actor_id, action, team, now, 'respondInvite'))
    current_app.logger.info(
        f"[respond] match={match_id} user={actor_id} action={action} status={result.match.status}")
    return result


def change_response(actor_id, match_id, action, team=None, now=None) -> Mutation:
    now = now or datetime.now()
    result = run_mutation(match_id, lambda m: _apply_response(m, actor_id, action, team, now, 'changeResponse'))
    current_app.logger.info(
        f"[change_response] match={match_id} user={actor_id} action={action} status={result.match.status}")
    return result


def pending_invites(user_id):
    """Open invites for ``user_id``, recomputed from the players table on every call."""
    return (
        Match.query.join(Player)
        .filter(Player.user_id == user_id, Player.status == 'pending')
        .filter(Match.status.notin_(list(status.TERMINAL)))
        .order_by(Match.id)
        .all()
    )


def pending_invites_count(user_id) -> int:
    return (
        Player.query.join(Match)
        .filter(Player.user_id == user_id, Player.status == 'pending')
        .filter(Match.status.notin_(list(status.TERMINAL)))
        .count()
    )
