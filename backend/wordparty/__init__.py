from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def _origins(value):
    if not value or value.strip() == '*':
        return '*'
    return [o.strip() for o in value.split(',') if o.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    cfg = flask_app.config

    allowed_origins = _origins(cfg.get('CORS_ALLOWED_ORIGINS', '*'))
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from wordparty.services.rooms import GameServices, PresenceSweeper, RoomRegistry, RoomStateMachine, WordSource
    from wordparty.services.rooms.channel import RoomChannel
    from wordparty.services.rooms.scheduler import DeferredScheduler, TaskScheduler

    namespace = cfg.get('SOCKETIO_NAMESPACE', '/')
    background = bool(cfg.get('BACKGROUND_TASKS', True))
    if cfg.get('TESTING') and not cfg.get('ENABLE_BACKGROUND_TASKS_IN_TESTS'):
        background = False
    scheduler = TaskScheduler(socketio) if background else DeferredScheduler()
    channel = RoomChannel(socketio, namespace=namespace)

    registry = RoomRegistry()
    words = WordSource.from_directory(cfg['WORDLIST_DIR'], logger=flask_app.logger)
    machine = RoomStateMachine(
        registry, words, channel, scheduler,
        logger=flask_app.logger,
        round_seconds=int(cfg.get('ROUND_DURATION_SEC', 300)),
        extend_seconds=int(cfg.get('EXTEND_TIME_SEC', 300)),
        tick_seconds=float(cfg.get('TIMER_TICK_SEC', 1)),
        end_grace_seconds=float(cfg.get('END_GRACE_SEC', 2)),
    )
    sweeper = PresenceSweeper(
        registry, channel, scheduler,
        interval=float(cfg.get('PRESENCE_SWEEP_SEC', 3)),
        logger=flask_app.logger,
    )
    flask_app.extensions['wordparty'] = GameServices(registry=registry, words=words, machine=machine, sweeper=sweeper)
    flask_app.extensions['wordparty_scheduler'] = scheduler

    from wordparty.main import main
    flask_app.register_blueprint(main)

    from wordparty.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace)

    if background:
        sweeper.start()

    @click.command('words-check')
    def words_check_command():
        """Prints word pool sizes and the first invalid entry of each list."""
        from wordparty.services.rooms.words import is_valid_custom_word
        pools = current_app.extensions['wordparty'].words.pools
        for name, pool in pools.items():
            bad = next((w for w in pool if not is_valid_custom_word(w)), None)
            line = f"{name}: {len(pool)} words"
            if bad is not None:
                line += f" (invalid entry: {bad!r})"
            click.echo(line)

    flask_app.cli.add_command(words_check_command)

    return flask_app
