from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def get_store():
    """The LeaderboardStore bound to the running application."""
    return current_app.extensions['leaderboard_store']


def init_store(flask_app):
    from leaderboard.services.scores import LeaderboardStore, SqlAlchemyScoreBackend

    backend = SqlAlchemyScoreBackend(
        db.session,
        max_retries=flask_app.config.get('SUBMIT_MAX_RETRIES', 5),
        native_upsert=flask_app.config.get('NATIVE_UPSERT', True),
    )
    store = LeaderboardStore(backend, max_limit=flask_app.config.get('LEADERBOARD_MAX_LIMIT', 100))
    flask_app.extensions['leaderboard_store'] = store
    return store


def shutdown_store(flask_app):
    """Release pooled database connections; called once at process exit."""
    with flask_app.app_context():
        db.session.remove()
        db.engine.dispose()
    flask_app.logger.info('[shutdown] score database pool disposed')


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = flask_app.config.get('CORS_ORIGINS') or '*'
    if origins == ['*']:
        origins = '*'
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=origins)
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    init_store(flask_app)

    from leaderboard.main import main
    flask_app.register_blueprint(main)

    from leaderboard.api.scores import scores
    flask_app.register_blueprint(scores)

    from leaderboard.api.errors import register_error_handlers
    register_error_handlers(flask_app)

    from leaderboard.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    if flask_app.config.get('AUTO_CREATE_TABLES'):
        from leaderboard import models  # noqa: F401
        with flask_app.app_context():
            db.create_all()
        flask_app.logger.info('[startup] scores table ready')

    @click.command('init-db')
    def init_db_command():
        """Creates the scores table if it does not exist."""
        from leaderboard import models  # noqa: F401
        with flask_app.app_context():
            db.create_all()
        print('Scores table is ready.')

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the scores table."""
        from leaderboard import models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
        print('Database has been reset!')

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(db_reset_command)

    return flask_app
