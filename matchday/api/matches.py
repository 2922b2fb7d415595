from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from matchday.notifications import dispatch
from matchday.services.matches import invites, lifecycle, permissions, roster, scoring, teams
from matchday.services.matches.status import effective_status

matches = Blueprint('matches', __name__)


def _payload():
    return request.get_json(silent=True) or {}


def _respond(result, status_code=200):
    """Dispatch events of a committed mutation and return the match state."""
    dispatch(result.events, result.match)
    return jsonify(_serialize(result.match)), status_code


def _serialize(match):
    data = match.to_dict()
    data['effective_status'] = effective_status(match, match.booking)
    data['allowed_actions'] = permissions.allowed_actions(match, current_user.id)
    data['team_cap'] = match.team_cap if match.uses_teams else None
    return data


@matches.route('', methods=['POST'])
@login_required
def create_match():
    data = _payload()
    if not data.get('booking_id'):
        return jsonify({'error': 'booking_id is required', 'code': 'invalid_request'}), 400
    result = lifecycle.create_match(
        current_user.id,
        data.get('booking_id'),
        data.get('max_players'),
        is_public=bool(data.get('is_public', False)),
        team=data.get('team'),
        publish=bool(data.get('publish', True)),
    )
    return _respond(result, 201)


@matches.route('/pending-invites', methods=['GET'])
@login_required
def get_pending_invites():
    pending = invites.pending_invites(current_user.id)
    return jsonify({
        'count': len(pending),
        'matches': [m.to_dict(include_players=False) for m in pending],
    })


@matches.route('/<int:match_id>', methods=['GET'])
@login_required
def get_match(match_id):
    return jsonify(_serialize(lifecycle.get_match(match_id)))


@matches.route('/<int:match_id>/publish', methods=['POST'])
@login_required
def publish_match(match_id):
    return _respond(lifecycle.publish_match(current_user.id, match_id))


@matches.route('/<int:match_id>/invite', methods=['POST'])
@login_required
def invite_player(match_id):
    data = _payload()
    if not data.get('user_id') and not data.get('username'):
        return jsonify({'error': 'user_id or username is required', 'code': 'invalid_request'}), 400
    result = invites.invite_player(
        current_user.id, match_id,
        user_id=data.get('user_id'), username=data.get('username'), team=data.get('team'),
    )
    return _respond(result, 201)


@matches.route('/<int:match_id>/respond', methods=['PATCH'])
@login_required
def respond_invite(match_id):
    data = _payload()
    return _respond(invites.respond_invite(current_user.id, match_id, data.get('action'), team=data.get('team')))


@matches.route('/<int:match_id>/response', methods=['PATCH'])
@login_required
def change_response(match_id):
    data = _payload()
    return _respond(invites.change_response(current_user.id, match_id, data.get('action'), team=data.get('team')))


@matches.route('/<int:match_id>/join', methods=['POST'])
@login_required
def join_match(match_id):
    data = _payload()
    return _respond(teams.join_public_match(current_user.id, match_id, team=data.get('team')))


@matches.route('/<int:match_id>/leave', methods=['DELETE'])
@login_required
def leave_match(match_id):
    return _respond(roster.leave_match(current_user.id, match_id))


@matches.route('/<int:match_id>/players/<int:user_id>', methods=['DELETE'])
@login_required
def remove_player(match_id, user_id):
    return _respond(roster.remove_player(current_user.id, match_id, user_id))


@matches.route('/<int:match_id>/players/<int:user_id>/team', methods=['PATCH'])
@login_required
def assign_team(match_id, user_id):
    data = _payload()
    return _respond(teams.assign_team(current_user.id, match_id, user_id, data.get('team')))


@matches.route('/<int:match_id>/teams/balance', methods=['POST'])
@login_required
def auto_balance_teams(match_id):
    return _respond(teams.auto_balance_teams(current_user.id, match_id))


@matches.route('/<int:match_id>/score', methods=['PUT'])
@login_required
def submit_score(match_id):
    data = _payload()
    return _respond(scoring.submit_score(current_user.id, match_id, data.get('sets'), winner=data.get('winner')))


@matches.route('/<int:match_id>/cancel', methods=['POST'])
@login_required
def cancel_match(match_id):
    return _respond(lifecycle.cancel_match(current_user.id, match_id))
