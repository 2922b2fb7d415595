from datetime import datetime

from matchday import errors
from matchday.events import MatchFull
from matchday.models import Match, Booking

DRAFT = 'draft'
OPEN = 'open'
FULL = 'full'
COMPLETED = 'completed'
CANCELLED = 'cancelled'

TERMINAL = frozenset({COMPLETED, CANCELLED})

TRANSITIONS = {
    DRAFT: {OPEN, CANCELLED},
    OPEN: {FULL, COMPLETED, CANCELLED},
    FULL: {OPEN, COMPLETED, CANCELLED},
    COMPLETED: set(),
    CANCELLED: set(),
}


def ensure_mutable(match: Match, allow_completed: bool = False) -> None:
    """Reject changes to a terminal match.

    Score resubmission is the only mutation that may touch a completed match.
    """
    if match.status == CANCELLED or (match.status == COMPLETED and not allow_completed):
        raise errors.MatchCompletedError(match.id, match.status)


def transition(match: Match, target: str) -> None:
    if match.status == target:
        return
    if match.status in TERMINAL:
        raise errors.MatchCompletedError(match.id, match.status)
    if target not in TRANSITIONS[match.status]:
        raise errors.InvalidTransitionError(f'Cannot move match {match.id} from {match.status} to {target}')
    match.status = target


def sync_capacity(match: Match, actor_id: int, now: datetime):
    """Keep open/full in step with the confirmed count.

    Returns the events produced by the change (a MatchFull on open->full).
    """
    if match.status == OPEN and match.confirmed_count >= match.max_players:
        transition(match, FULL)
        return [MatchFull(match_id=match.id, actor_id=actor_id, occurred_at=now)]
    if match.status == FULL and match.confirmed_count < match.max_players:
        transition(match, OPEN)
    return []


def effective_status(match: Match, booking: Booking, now: datetime = None) -> str:
    """Status as shown to users, derived from the stored one and the clock.

    Never persisted. A public match still short of players once play has
    started is shown as cancelled; a finished booking without a score is
    not_completed; an open match still short of players is not_team_completed.
    """
    now = now or datetime.now()
    if match.status == CANCELLED or booking.status == 'cancelled':
        return CANCELLED
    short_of_players = match.confirmed_count < match.max_players

    if booking.starts_at <= now <= booking.ends_at and match.status != COMPLETED:
        if match.is_public and short_of_players:
            return CANCELLED
        return 'in_progress'

    if now > booking.ends_at:
        if match.status == COMPLETED:
            return COMPLETED
        if match.is_public and short_of_players:
            return CANCELLED
        return 'not_completed'

    if match.status == OPEN and short_of_players:
        return 'not_team_completed'
    return match.status
