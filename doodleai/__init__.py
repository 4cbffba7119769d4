from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Round timers run as Socket.IO background tasks; tests drive a virtual clock instead
    from doodleai.services.games import BackgroundScheduler, ManualScheduler
    from doodleai.services.sessions import SessionRegistry
    if flask_app.config.get('TESTING'):
        scheduler = ManualScheduler()
    else:
        scheduler = BackgroundScheduler(socketio, heartbeat_sec=int(flask_app.config.get('TIMER_HEARTBEAT_SEC', 0)))
    flask_app.extensions['doodleai_scheduler'] = scheduler
    flask_app.extensions['doodleai_sessions'] = SessionRegistry(flask_app, scheduler, socketio)

    from doodleai.routes import main
    flask_app.register_blueprint(main)

    from doodleai.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    from doodleai.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @flask_app.errorhandler(404)
    def not_found(_exc):
        return jsonify({'error': 'Not found'}), 404

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with one profile."""
        from doodleai.models import PlayerProfile
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            profile = PlayerProfile()
            db.session.add(profile)
            db.session.commit()
            print(f'Database has been reset and seeded! profile={profile.profile_key}')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
