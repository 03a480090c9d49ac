import os

BACKEND_ROOT = os.path.dirname(os.path.abspath(__file__))


def _flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', '*')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Directory holding wordlist.txt, wordlist-easy.txt and wordlist-difficult.txt
    WORDLIST_DIR = os.environ.get('WORDLIST_DIR') or os.path.join(BACKEND_ROOT, 'shared')
    # Round timers (seconds)
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '300'))
    EXTEND_TIME_SEC = int(os.environ.get('EXTEND_TIME_SEC', '300'))
    TIMER_TICK_SEC = float(os.environ.get('TIMER_TICK_SEC', '1'))
    # Hold time before an ended room is torn down, so clients can show the result
    END_GRACE_SEC = float(os.environ.get('END_GRACE_SEC', '2'))
    # Player list resync interval
    PRESENCE_SWEEP_SEC = float(os.environ.get('PRESENCE_SWEEP_SEC', '3'))
    # Disable to queue timers/sweeps instead of running them (tests)
    BACKGROUND_TASKS = _flag('BACKGROUND_TASKS', 'true')
