"""Who may perform which match mutation.

Role checks only; state preconditions (terminal match, capacity, cutoff)
live with the operation that needs them.
"""
from datetime import datetime

from matchday import errors
from matchday.models import Match, Player
from . import status

CREATOR = 'the match creator'
INVITED = 'an invited player'
RESPONDED = 'an invited player who already responded'
CONFIRMED_NON_CREATOR = 'a confirmed player other than the creator'
SUBMITTER = 'the creator or a confirmed player'
NON_CREATOR_TARGET = 'a target other than the creator'
BOOKING_OWNER = 'the booking owner'
PUBLIC_MATCH = 'a public match (this match is invite-only)'

REQUIRED_ROLES = {
    'invitePlayer': CREATOR,
    'respondInvite': INVITED,
    'changeResponse': RESPONDED,
    'assignTeam': CREATOR,
    'autoBalanceTeams': CREATOR,
    'removePlayer': CREATOR,
    'leaveMatch': CONFIRMED_NON_CREATOR,
    'submitScore': SUBMITTER,
    'cancelMatch': CREATOR,
    'publishMatch': CREATOR,
    'createMatch': BOOKING_OWNER,
    'cancelBooking': BOOKING_OWNER,
}


def is_creator(match: Match, user_id) -> bool:
    return match.created_by == user_id


def require_creator(match: Match, actor_id, action: str) -> None:
    if not is_creator(match, actor_id):
        raise errors.PermissionError(action, CREATOR)


def require_invited(match: Match, actor_id, action: str) -> Player:
    """The actor's own invite; the creator has none to answer."""
    player = match.find_player(actor_id)
    if player is None or is_creator(match, actor_id):
        raise errors.PermissionError(action, REQUIRED_ROLES.get(action, INVITED))
    return player


def require_confirmed_non_creator(match: Match, actor_id, action: str) -> Player:
    player = match.find_player(actor_id)
    if player is None or is_creator(match, actor_id) or not player.is_confirmed:
        raise errors.PermissionError(action, CONFIRMED_NON_CREATOR)
    return player


def require_score_submitter(match: Match, actor_id, action: str = 'submitScore') -> None:
    if is_creator(match, actor_id):
        return
    player = match.find_player(actor_id)
    if player is None or not player.is_confirmed:
        raise errors.PermissionError(action, SUBMITTER)


def require_not_creator_target(match: Match, target_user_id, action: str) -> None:
    if is_creator(match, target_user_id):
        raise errors.PermissionError(action, NON_CREATOR_TARGET)


def allowed_actions(match: Match, user_id, now: datetime = None):
    """Actions ``user_id`` may currently attempt on ``match``.

    Mirrors the role checks above so clients can gate their controls; the
    operations still re-check everything when called.
    """
    now = now or datetime.now()
    if match.status == status.CANCELLED:
        return []
    player = match.find_player(user_id)
    creator = is_creator(match, user_id)
    confirmed = player is not None and player.is_confirmed
    ended = match.booking is not None and now >= match.booking.ends_at

    actions = []
    if (creator or confirmed) and ended and match.status != status.DRAFT:
        actions.append('submitScore')
    if match.status == status.COMPLETED:
        return actions

    if creator:
        actions.extend(['invitePlayer', 'assignTeam', 'autoBalanceTeams', 'removePlayer', 'cancelMatch'])
        if match.status == status.DRAFT:
            actions.append('publishMatch')
        return actions

    if player is None:
        if match.is_public and match.status == status.OPEN:
            actions.append('joinPublicMatch')
        return actions

    actions.append('respondInvite')
    if player.status != 'pending':
        actions.append('changeResponse')
    if confirmed:
        actions.append('leaveMatch')
    return actions
