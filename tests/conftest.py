import os
import sys
from datetime import datetime, timedelta
import pytest
from flask import g

# Ensure the project root (containing the `matchday` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from matchday import create_app, db, socketio
from matchday.models import User, Booking
from matchday.services.matches import invites, lifecycle

# Fixed clock for service tests: bookings tomorrow 18:00-19:30
NOW = datetime(2026, 7, 10, 12, 0)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    USER_ID_HEADER = 'X-User-Id'
    INVITE_CUTOFF_HOURS = 2
    PUBLIC_JOIN_CUTOFF_MINUTES = 45
    MUTATION_MAX_ATTEMPTS = 3
    SCORE_ENFORCE_SET_RULES = False


@pytest.fixture()
def flask_app(tmp_path):
    # A file database, so separate sessions really hold separate connections
    config = type('FileDbTestConfig', (TestConfig,), {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'matchday.db'}",
    })
    application = create_app(config)

    # Requests share the fixture's app context (and its `g`); drop Flask-Login's
    # cached user so each request resolves identity from its own header
    @application.teardown_request
    def _forget_login_user(exc):
        g.pop('_login_user', None)

    with application.app_context():
        # Ensure models are imported so tables are created
        import matchday.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def users(flask_app):
    """alice organizes; the others are potential players."""
    created = {}
    for username in ['alice', 'bruno', 'carla', 'dario', 'elena', 'fabio', 'gina']:
        user = User(username=username, name=username.title())
        db.session.add(user)
        created[username] = user
    db.session.commit()
    return {name: user.id for name, user in created.items()}


@pytest.fixture()
def make_booking(users):
    def _make(start=None, duration=timedelta(minutes=90), owner='alice', sport='beach_volley'):
        start = start or (NOW + timedelta(days=1)).replace(hour=18, minute=0)
        end = start + duration
        booking = Booking(user_id=users[owner], date=start.date(), start_time=start.strftime('%H:%M'),
                          end_time=end.strftime('%H:%M'), sport=sport)
        db.session.add(booking)
        db.session.commit()
        return booking
    return _make


@pytest.fixture()
def make_match(users, make_booking):
    """Create a published match owned by alice and invite ``invite`` usernames."""
    def _make(max_players=4, is_public=False, invite=(), booking=None, now=NOW, **create_kwargs):
        booking = booking or make_booking()
        match = lifecycle.create_match(users['alice'], booking.id, max_players, is_public=is_public,
                                       now=now, **create_kwargs).match
        for username in invite:
            invites.invite_player(users['alice'], match.id, user_id=users[username], now=now)
        return match.id
    return _make


def auth(user_id):
    return {'X-User-Id': str(user_id)}
