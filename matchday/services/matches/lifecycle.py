from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from matchday import db, errors
from matchday.events import MatchCancelled
from matchday.models import Booking, Match, Player
from . import status, permissions
from .capacity import normalize_team
from .concurrency import run_mutation, Mutation


def get_match(match_id) -> Match:
    match = db.session.get(Match, match_id)
    if match is None:
        raise errors.MatchNotFoundError(match_id)
    return match


def create_match(actor_id, booking_id, max_players, is_public=False, team=None, publish=True, now=None) -> Mutation:
    """Attach a match to a booking, with the booker as its first confirmed player.

    The match starts as a draft; with ``publish`` (the default) it opens for
    responses straight away.
    """
    now = now or datetime.now()
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise errors.BookingNotFoundError(booking_id)
    if booking.user_id != actor_id:
        raise errors.PermissionError('createMatch', permissions.BOOKING_OWNER)
    if booking.status == 'cancelled':
        raise errors.InvalidRequestError(f'Booking {booking_id} is cancelled')
    if booking.match is not None:
        raise errors.InvalidRequestError(f'Booking {booking_id} already has match {booking.match.id}')
    if isinstance(max_players, bool) or not isinstance(max_players, int) or max_players < 1:
        raise errors.InvalidRequestError(f'max_players must be a positive whole number, got {max_players!r}')

    match = Match(booking=booking, created_by=actor_id, max_players=max_players, is_public=bool(is_public),
                  status=status.DRAFT, created_at=now, updated_at=now)
    team = normalize_team(team) if match.uses_teams else None
    match.players.append(Player(user_id=actor_id, status='confirmed', team=team, joined_at=now, responded_at=now))
    events = []
    try:
        db.session.add(match)
        db.session.flush()
        if publish:
            status.transition(match, status.OPEN)
            events = status.sync_capacity(match, actor_id, now)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise errors.InvalidRequestError(f'Booking {booking_id} already has a match')
    current_app.logger.info(
        f"[create] match={match.id} booking={booking_id} by={actor_id} max={max_players} public={match.is_public} status={match.status}")
    return Mutation(match, events)


def apply_publish(match: Match, actor_id, now: datetime):
    status.ensure_mutable(match)
    permissions.require_creator(match, actor_id, 'publishMatch')
    if match.status != status.DRAFT:
        raise errors.InvalidTransitionError(f'Match {match.id} is already {match.status}')
    status.transition(match, status.OPEN)
    return status.sync_capacity(match, actor_id, now)


def apply_cancel(match: Match, actor_id, now: datetime):
    status.ensure_mutable(match)
    permissions.require_creator(match, actor_id, 'cancelMatch')
    status.transition(match, status.CANCELLED)
    return [MatchCancelled(match_id=match.id, actor_id=actor_id, occurred_at=now, reason='creator')]


def apply_booking_cancellation(match: Match, actor_id, now: datetime):
    match.booking.status = 'cancelled'
    if match.is_terminal:
        return []
    status.transition(match, status.CANCELLED)
    return [MatchCancelled(match_id=match.id, actor_id=actor_id, occurred_at=now, reason='booking')]


def publish_match(actor_id, match_id, now=None) -> Mutation:
    now = now or datetime.now()
    result = run_mutation(match_id, lambda m: apply_publish(m, actor_id, now))
    current_app.logger.info(f"[publish] match={match_id} by={actor_id} status={result.match.status}")
    return result


def cancel_match(actor_id, match_id, now=None) -> Mutation:
    now = now or datetime.now()
    result = run_mutation(match_id, lambda m: apply_cancel(m, actor_id, now))
    current_app.logger.info(f"[cancel] match={match_id} by={actor_id}")
    return result


def cancel_booking(actor_id, booking_id, now=None) -> Mutation:
    """Cancel a booking and, in the same transaction, its match."""
    now = now or datetime.now()
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise errors.BookingNotFoundError(booking_id)
    if booking.user_id != actor_id:
        raise errors.PermissionError('cancelBooking', permissions.BOOKING_OWNER)
    if booking.match is None:
        booking.status = 'cancelled'
        db.session.commit()
        current_app.logger.info(f"[cancel_booking] booking={booking_id} by={actor_id} match=none")
        return Mutation(None, [])
    result = run_mutation(booking.match.id, lambda m: apply_booking_cancellation(m, actor_id, now))
    current_app.logger.info(
        f"[cancel_booking] booking={booking_id} by={actor_id} match={result.match.id} status={result.match.status}")
    return result
