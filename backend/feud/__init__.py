import os

from flask import Flask
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from feud.config import Config

bcrypt = Bcrypt()
socketio = SocketIO(async_mode=None)


def _cors_origins(value):
    if not value or value == '*':
        return '*'
    return [o.strip() for o in value.split(',') if o.strip()]


def create_app(config_class=Config, judge=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = _cors_origins(flask_app.config.get('CORS_ORIGINS', '*'))

    bcrypt.init_app(flask_app)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from feud.store import RoomStore
    from feud.sessions import SessionManager
    from feud.services.games.judge import OpenAIJudge
    from feud.services.questions import QuestionBank

    # The shared host secret is hashed once; the plain value is not kept around
    password_hash = bcrypt.generate_password_hash(flask_app.config['HOST_PASSWORD'])

    def check_host_password(candidate):
        if not candidate:
            return False
        try:
            return bcrypt.check_password_hash(password_hash, candidate)
        except ValueError:
            # bcrypt refuses inputs over 72 bytes
            return False

    rooms = RoomStore(default_timer_sec=int(flask_app.config.get('DEFAULT_TIMER_SEC', 30)))
    flask_app.extensions['rooms'] = rooms
    flask_app.extensions['sessions'] = SessionManager(rooms, check_host_password)
    flask_app.extensions['answer_judge'] = judge or OpenAIJudge.from_config(flask_app.config)

    bank = QuestionBank()
    csv_path = flask_app.config.get('QUESTIONS_CSV')
    if csv_path and os.path.exists(csv_path):
        try:
            bank = QuestionBank.from_csv(csv_path)
            flask_app.logger.info(f"[questions] loaded {len(bank)} questions from {csv_path}")
        except (OSError, UnicodeDecodeError) as exc:
            flask_app.logger.warning(f"[questions] could not load {csv_path}: {exc}")
    flask_app.extensions['questions'] = bank

    # Import and register blueprints here
    from feud.main import main
    flask_app.register_blueprint(main)

    from feud.api.rooms import rooms_api
    flask_app.register_blueprint(rooms_api, url_prefix='/api')

    # Register Socket.IO event handlers
    from feud.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from feud.services.games.scheduler import schedule_room_sweep
    schedule_room_sweep(flask_app)

    @click.command('questions-check')
    @click.option('--path', default=None, help='CSV file to check instead of QUESTIONS_CSV.')
    def questions_check_command(path):
        """Loads the question bank CSV and reports what it contains."""
        target = path or flask_app.config.get('QUESTIONS_CSV')
        if not target or not os.path.exists(target):
            raise click.ClickException(f'Question file not found: {target}')
        loaded = QuestionBank.from_csv(target)
        click.echo(f'{len(loaded)} questions loaded from {target}')
        for question in loaded.questions:
            click.echo(f'  {question.question} ({len(question.answers)} answers)')

    flask_app.cli.add_command(questions_check_command)

    return flask_app
