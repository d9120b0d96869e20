from flask import Flask
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

    from whackamole.main import main
    flask_app.register_blueprint(main)

    from whackamole.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/game')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from whackamole.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database, clearing the stored high score."""
        import whackamole.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('high-score')
    @click.option('--clear', is_flag=True, help='Delete the stored high score.')
    def high_score_command(clear):
        """Prints (or clears) the stored high score."""
        from whackamole.services.games.scoring import clear_high_score, load_high_score
        with flask_app.app_context():
            key = flask_app.config.get('HIGH_SCORE_KEY', 'HighScore')
            if clear:
                clear_high_score(key)
                print(f"{key} cleared")
            print(f"{key}: {load_high_score(key)}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(high_score_command)

    return flask_app
