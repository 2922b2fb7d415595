"""Domain events returned by the match services.

Services never deliver notifications. They hand these records back to the
caller, which dispatches them once the transaction has committed.
"""
from dataclasses import dataclass, asdict, field
from datetime import datetime
from typing import ClassVar, List, Optional


@dataclass(frozen=True)
class MatchEvent:
    name: ClassVar[str] = 'match_event'
    match_id: int
    actor_id: int
    occurred_at: datetime

    def to_dict(self):
        data = asdict(self)
        data['occurred_at'] = self.occurred_at.isoformat()
        data['event'] = self.name
        return data


@dataclass(frozen=True)
class PlayerInvited(MatchEvent):
    name: ClassVar[str] = 'player_invited'
    user_id: int = None
    team: Optional[str] = None


@dataclass(frozen=True)
class InviteAccepted(MatchEvent):
    name: ClassVar[str] = 'invite_accepted'
    user_id: int = None
    team: Optional[str] = None


@dataclass(frozen=True)
class InviteDeclined(MatchEvent):
    name: ClassVar[str] = 'invite_declined'
    user_id: int = None


@dataclass(frozen=True)
class PlayerJoined(MatchEvent):
    name: ClassVar[str] = 'player_joined'
    user_id: int = None
    team: Optional[str] = None


@dataclass(frozen=True)
class PlayerRemoved(MatchEvent):
    name: ClassVar[str] = 'player_removed'
    user_id: int = None
    reason: str = 'removed'  # removed, left


@dataclass(frozen=True)
class MatchFull(MatchEvent):
    name: ClassVar[str] = 'match_full'


@dataclass(frozen=True)
class ScoreSubmitted(MatchEvent):
    name: ClassVar[str] = 'score_submitted'
    winner: str = None
    sets: List[dict] = field(default_factory=list)


@dataclass(frozen=True)
class MatchCancelled(MatchEvent):
    name: ClassVar[str] = 'match_cancelled'
    reason: str = 'creator'  # creator, booking
