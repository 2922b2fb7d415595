from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from .models import db, User, Match, Player
from .services.matches import invites, status

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Matchday server!'})

@main.route('/users/<int:user_id>')
@login_required
def get_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({'error': 'User not found', 'code': 'user_not_found'}), 404
    return jsonify(user.to_dict())

@main.route('/me/matches')
@login_required
def get_active_matches():
    # Matches where the current user is confirmed and nothing is settled yet
    active = (
        Match.query.join(Player)
        .filter(Player.user_id == current_user.id, Player.status == 'confirmed')
        .filter(Match.status.notin_(list(status.TERMINAL)))
        .order_by(Match.id)
        .all()
    )
    return jsonify({
        'matches': [m.to_dict(include_players=False) for m in active],
        'pending_invites': invites.pending_invites_count(current_user.id),
    })
