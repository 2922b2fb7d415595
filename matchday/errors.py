"""Typed failures raised by the match services.

Every error carries a machine readable ``code`` and the HTTP status the API
layer answers with. ``PermissionError`` intentionally reuses the builtin's
name; import this module and refer to ``errors.PermissionError``.
"""


class MatchError(Exception):
    code = 'match_error'
    status_code = 400


class PermissionError(MatchError):
    code = 'permission_denied'
    status_code = 403

    def __init__(self, action: str, required_role: str):
        super().__init__(f'{action} requires {required_role}')
        self.action = action
        self.required_role = required_role


class MatchFullError(MatchError):
    code = 'match_full'
    status_code = 409

    def __init__(self, max_players: int):
        super().__init__(f'Match is full ({max_players} players)')
        self.max_players = max_players


class TeamFullError(MatchError):
    code = 'team_full'
    status_code = 409

    def __init__(self, team: str, cap: int):
        super().__init__(f'Team {team} is full ({cap} players)')
        self.team = team
        self.cap = cap


class InviteExpiredError(MatchError):
    code = 'invite_expired'
    status_code = 410


class AlreadyJoinedError(MatchError):
    code = 'already_joined'
    status_code = 409


class PlayerNotFoundError(MatchError):
    code = 'player_not_found'
    status_code = 404


class MatchCompletedError(MatchError):
    code = 'match_completed'
    status_code = 409

    def __init__(self, match_id, status: str):
        super().__init__(f'Match {match_id} is {status} and can no longer change')
        self.status = status


class InvalidScoreError(MatchError):
    code = 'invalid_score'
    status_code = 400


class ScoreWinnerMismatchError(MatchError):
    code = 'score_winner_mismatch'
    status_code = 400


class ConcurrentModificationError(MatchError):
    code = 'concurrent_modification'
    status_code = 409

    def __init__(self, match_id, attempts: int):
        super().__init__(f'Match {match_id} kept changing; gave up after {attempts} attempts')
        self.attempts = attempts


class MatchNotFoundError(MatchError):
    code = 'match_not_found'
    status_code = 404

    def __init__(self, match_id):
        super().__init__(f'Match {match_id} not found')


class BookingNotFoundError(MatchError):
    code = 'booking_not_found'
    status_code = 404

    def __init__(self, booking_id):
        super().__init__(f'Booking {booking_id} not found')


class InvalidTransitionError(MatchError):
    code = 'invalid_transition'
    status_code = 409


class InvalidRequestError(MatchError):
    code = 'invalid_request'
    status_code = 400
