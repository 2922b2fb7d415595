from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:8081",
    "http://127.0.0.1:8081",
    "http://localhost:19006",
    "http://127.0.0.1:19006",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from matchday.main import main
    flask_app.register_blueprint(main)

    from matchday.api.matches import matches
    flask_app.register_blueprint(matches, url_prefix='/api/matches')

    from matchday.api.bookings import bookings
    flask_app.register_blueprint(bookings, url_prefix='/api/bookings')

    from matchday.errors import MatchError

    @flask_app.errorhandler(MatchError)
    def handle_match_error(exc):
        flask_app.logger.info(f"[rejected] {request.method} {request.path} code={exc.code} reason={exc}")
        return jsonify({'error': str(exc), 'code': exc.code}), exc.status_code

    # Register Socket.IO event handlers
    from matchday.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Identity comes from the upstream gateway; we only resolve the user id
    from matchday.models import User

    @login_manager.request_loader
    def load_user_from_request(req):
        raw = req.headers.get(flask_app.config.get('USER_ID_HEADER', 'X-User-Id'))
        if not raw or not raw.isdigit():
            return None
        return db.session.get(User, int(raw))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required', 'code': 'unauthenticated'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = [('alice', 'Alice', 'Rossi'), ('bruno', 'Bruno', 'Bianchi'), ('carla', 'Carla', 'Verdi'),
                     ('dario', 'Dario', 'Neri')]
            for username, name, surname in users:
                db.session.add(User(username=username, name=name, surname=surname))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
