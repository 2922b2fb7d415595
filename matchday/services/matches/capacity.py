from matchday import errors
from matchday.models import Match, TEAMS


def normalize_team(team):
    """Validate a team label; ``None``/empty means no team."""
    if team in (None, ''):
        return None
    if isinstance(team, str) and team.upper() in TEAMS:
        return team.upper()
    raise errors.InvalidRequestError(f'Unknown team {team!r}; expected one of {", ".join(TEAMS)}')


def ensure_slot_free(match: Match) -> None:
    if match.confirmed_count >= match.max_players:
        raise errors.MatchFullError(match.max_players)


def team_has_room(match: Match, team, moving_player=None) -> bool:
    """Whether ``team`` can take one more; a player already on it does not count twice."""
    if team is None or not match.uses_teams:
        return True
    taken = match.team_count(team)
    if moving_player is not None and moving_player.is_confirmed and moving_player.team == team:
        taken -= 1
    return taken < match.team_cap


def ensure_team_capacity(match: Match, team, moving_player=None) -> None:
    if not team_has_room(match, team, moving_player):
        raise errors.TeamFullError(team, match.team_cap)


def smaller_team(match: Match):
    """Team with fewer confirmed players (ties go to A); None when both are full."""
    count_a = match.team_count('A')
    count_b = match.team_count('B')
    if count_a >= match.team_cap and count_b >= match.team_cap:
        return None
    if count_b < count_a or count_a >= match.team_cap:
        return 'B'
    return 'A'
