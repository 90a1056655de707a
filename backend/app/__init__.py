from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def get_table():
    """Return the game table owned by the current app."""
    return current_app.extensions['game_table']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One table per app; Socket.IO handlers and routes reach it through get_table()
    from app.services.games import GameTable
    from app.services.games.scheduler import make_cooldown_scheduler
    from app.socketio_events import deliver, register_socketio_handlers

    flask_app.extensions['game_table'] = GameTable.from_config(
        flask_app.config,
        deliver,
        schedule=make_cooldown_scheduler(flask_app),
        logger=flask_app.logger,
    )

    from app.main import main
    flask_app.register_blueprint(main)

    from app.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/game')

    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('scoring-table')
    def scoring_table_command():
        """Prints the active scoring policy."""
        from app.services.games.scoring import get_policy
        policy = get_policy(flask_app.config.get('SCORING_POLICY', 'parity'))
        click.echo(f"Policy: {policy.name} (miss rule: {policy.miss_rule})")
        for role, grant in policy.grants.items():
            flags = []
            if role == policy.guesser_role:
                flags.append('guesser')
            if role in policy.exempt_roles:
                flags.append('exempt')
            suffix = f" [{', '.join(flags)}]" if flags else ''
            click.echo(f"  {role.value:<7}{grant.points:>6}  {grant.timing}{suffix}")
        click.echo(f"Targets by round: {' -> '.join(r.value for r in policy.target_cycle)}")

    flask_app.cli.add_command(scoring_table_command)

    return flask_app
