"""Turn domain events into socket messages.

One event model, two audiences: players hear about invites and match
outcomes, the match owner hears about how the roster is filling up. Each
presenter decides its recipients and the payload they get.
"""
from matchday import socketio
from matchday.events import (
    MatchEvent, PlayerInvited, InviteAccepted, InviteDeclined, PlayerJoined,
    PlayerRemoved, MatchFull, ScoreSubmitted, MatchCancelled,
)


class NotificationPresenter:
    role = None
    titles = {}

    def recipients(self, event: MatchEvent, match):
        raise NotImplementedError

    def present(self, event: MatchEvent, match):
        """Yield ``(user_id, payload)`` pairs for ``event``."""
        title = self.titles.get(type(event))
        if title is None:
            return
        for user_id in self.recipients(event, match):
            if user_id == event.actor_id:
                continue
            yield user_id, {
                'role': self.role,
                'title': title,
                'match_id': event.match_id,
                'event': event.to_dict(),
            }


class PlayerPresenter(NotificationPresenter):
    role = 'player'
    titles = {
        PlayerInvited: 'You have been invited to a match',
        MatchFull: 'Your match is full',
        ScoreSubmitted: 'The match result is in',
        MatchCancelled: 'Your match has been cancelled',
        PlayerRemoved: 'You have been removed from a match',
    }

    def recipients(self, event, match):
        if isinstance(event, PlayerInvited):
            return [event.user_id]
        if isinstance(event, PlayerRemoved):
            return [event.user_id] if event.reason == 'removed' else []
        # Everyone still taking part, organizer excluded (the owner presenter covers them)
        return [p.user_id for p in match.players if p.status != 'declined' and p.user_id != match.created_by]


class OwnerPresenter(NotificationPresenter):
    role = 'owner'
    titles = {
        InviteAccepted: 'A player accepted your invite',
        InviteDeclined: 'A player declined your invite',
        PlayerJoined: 'A player joined your match',
        PlayerRemoved: 'A player left your match',
        MatchFull: 'Your match is full',
        ScoreSubmitted: 'A result was submitted for your match',
    }

    def recipients(self, event, match):
        if isinstance(event, PlayerRemoved) and event.reason != 'left':
            return []
        return [match.created_by]


PRESENTERS = (PlayerPresenter(), OwnerPresenter())


def dispatch(events, match) -> int:
    """Push committed events to the match room and to each recipient's user room."""
    sent = 0
    for event in events:
        socketio.emit('match_event', event.to_dict(), to=f"match:{event.match_id}", namespace='/ws')
        for presenter in PRESENTERS:
            for user_id, payload in presenter.present(event, match):
                socketio.emit('notification', payload, to=f"user:{user_id}", namespace='/ws')
                sent += 1
    return sent
