from flask import Blueprint, jsonify
from flask_login import login_required, current_user

from matchday.notifications import dispatch
from matchday.services.matches import lifecycle

bookings = Blueprint('bookings', __name__)


@bookings.route('/<int:booking_id>', methods=['DELETE'])
@login_required
def cancel_booking(booking_id):
    """
    Cancels a booking; its match, if any, is cancelled in the same transaction.
    """
    result = lifecycle.cancel_booking(current_user.id, booking_id)
    if result.match is not None:
        dispatch(result.events, result.match)
    return jsonify({
        'message': 'Booking cancelled',
        'booking_id': booking_id,
        'match': result.match.to_dict(include_players=False) if result.match else None,
    }), 200
