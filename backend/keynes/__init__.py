from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)

REGISTRY_KEY = 'keynes.registry'


def create_app(config_class=Config, scheduler=None):
    """Build the Flask app and its session registry.

    ``scheduler`` replaces the default Socket.IO-backed RoundScheduler,
    which lets tests fire deadlines by hand.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS') or []

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from keynes.broadcaster import SocketIOBroadcaster
    from keynes.services.games import GameSettings, RoundScheduler, SessionRegistry

    settings = GameSettings.from_config(flask_app.config)
    if scheduler is None:
        scheduler = RoundScheduler(socketio.start_background_task, socketio.sleep, logger=flask_app.logger)
    flask_app.extensions[REGISTRY_KEY] = SessionRegistry(
        settings,
        scheduler,
        SocketIOBroadcaster(socketio),
        logger=flask_app.logger,
    )

    from keynes.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers
    from keynes.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('game-settings')
    def game_settings_command():
        """Prints the game constants this server would run with."""
        for key, value in vars(settings).items():
            click.echo(f'{key}={value}')

    flask_app.cli.add_command(game_settings_command)

    return flask_app


def get_registry(flask_app=None):
    from flask import current_app
    return (flask_app or current_app).extensions[REGISTRY_KEY]
