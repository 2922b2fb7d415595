from matchday import db
from flask_login import UserMixin
from datetime import datetime, time
import json
import math

TEAMS = ('A', 'B')

class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(64), nullable=True)
    surname = db.Column(db.String(64), nullable=True)
    avatar_url = db.Column(db.String(512), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'name': self.name,
            'surname': self.surname,
            'avatar_url': self.avatar_url,
        }

class Booking(db.Model):
    __tablename__ = 'booking'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    end_time = db.Column(db.String(5), nullable=False)
    status = db.Column(db.String(16), nullable=False, default='confirmed')  # confirmed, cancelled
    sport = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    match = db.relationship('Match', back_populates='booking', uselist=False)

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, time.fromisoformat(self.start_time))

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.date, time.fromisoformat(self.end_time))

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'date': self.date.isoformat(),
            'start_time': self.start_time,
            'end_time': self.end_time,
            'status': self.status,
            'sport': self.sport,
            'match_id': self.match.id if self.match else None,
        }

class Player(db.Model):
    __tablename__ = 'player'
    __table_args__ = (db.UniqueConstraint('match_id', 'user_id', name='uq_player_match_user'),)
    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey('match.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    status = db.Column(db.String(16), nullable=False, default='pending')  # pending, confirmed, declined
    team = db.Column(db.String(1), nullable=True)  # A, B; only meaningful once confirmed
    invited_at = db.Column(db.DateTime, nullable=True)
    joined_at = db.Column(db.DateTime, nullable=True)
    responded_at = db.Column(db.DateTime, nullable=True)
    declined_at = db.Column(db.DateTime, nullable=True)
    match = db.relationship('Match', back_populates='players')
    user = db.relationship('User')

    @property
    def is_confirmed(self) -> bool:
        return self.status == 'confirmed'

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'username': self.user.username if self.user else None,
            'status': self.status,
            'team': self.team,
            'invited_at': self.invited_at.isoformat() if self.invited_at else None,
            'joined_at': self.joined_at.isoformat() if self.joined_at else None,
            'responded_at': self.responded_at.isoformat() if self.responded_at else None,
            'declined_at': self.declined_at.isoformat() if self.declined_at else None,
        }

class Match(db.Model):
    __tablename__ = 'match'
    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey('booking.id'), unique=True, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    max_players = db.Column(db.Integer, nullable=False)
    is_public = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.String(16), nullable=False, default='draft')  # draft, open, full, completed, cancelled
    winner = db.Column(db.String(1), nullable=True)
    score = db.Column(db.Text, nullable=True)  # JSON-encoded list of {"teamA", "teamB"}
    played_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    version = db.Column(db.Integer, nullable=False)
    players = db.relationship('Player', back_populates='match', order_by='Player.id',
                              cascade='all, delete-orphan')
    booking = db.relationship('Booking', back_populates='match')

    __mapper_args__ = {'version_id_col': version}

    @property
    def confirmed_players(self):
        return [p for p in self.players if p.is_confirmed]

    @property
    def confirmed_count(self) -> int:
        return len(self.confirmed_players)

    @property
    def uses_teams(self) -> bool:
        # Singles (and solo) matches keep a flat roster
        return self.max_players > 2

    @property
    def team_cap(self) -> int:
        return math.ceil(self.max_players / 2)

    @property
    def is_terminal(self) -> bool:
        return self.status in ('completed', 'cancelled')

    @property
    def sets(self):
        return json.loads(self.score) if self.score else []

    def team_count(self, team: str) -> int:
        return sum(1 for p in self.confirmed_players if p.team == team)

    def find_player(self, user_id):
        for p in self.players:
            if p.user_id == user_id:
                return p
        return None

    def to_dict(self, include_players=True):
        data = {
            'id': self.id,
            'booking_id': self.booking_id,
            'created_by': self.created_by,
            'max_players': self.max_players,
            'is_public': self.is_public,
            'status': self.status,
            'confirmed_count': self.confirmed_count,
            'winner': self.winner,
            'score': {'sets': self.sets} if self.score else None,
            'played_at': self.played_at.isoformat() if self.played_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'version': self.version,
        }
        if include_players:
            data['players'] = [p.to_dict() for p in self.players]
        return data
