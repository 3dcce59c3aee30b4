# config.py

import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- PERSISTENCE ---
# The history lives under a single namespaced key inside the backing JSON
# document, the same way a browser keeps it in localStorage.
STORAGE_KEY = "kodou-timer-history-v1"
HISTORY_LIMIT = 20
DEFAULT_HISTORY_PATH = "timer_history.json"

# --- STICK LENGTH ---
MIN_DURATION_MINUTES = 5
MAX_DURATION_MINUTES = 60
DURATION_STEP_MINUTES = 5
DEFAULT_DURATION_MINUTES = 25

# --- CADENCE ---
TICK_INTERVAL_SECONDS = 1.0

# --- SERVER DEFAULTS ---
DEFAULT_SETTINGS = {
    'history_path': DEFAULT_HISTORY_PATH,
    'timezone': None,  # None means the process's local timezone
    'default_minutes': DEFAULT_DURATION_MINUTES,
    'chime': 'bell',  # 'bell' or 'none'
    'host': '127.0.0.1',
    'port': 5000,
    'debug': False,
    'log_level': 'INFO',
}


def is_valid_minutes(minutes):
    """True for 5, 10, ... 60."""
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        return False
    return (MIN_DURATION_MINUTES <= minutes <= MAX_DURATION_MINUTES
            and minutes % DURATION_STEP_MINUTES == 0)


def minutes_to_seconds(minutes):
    """Translates a stick length picked in minutes into timer seconds."""
    if not is_valid_minutes(minutes):
        raise ValueError(
            f"Stick length must be {MIN_DURATION_MINUTES}-{MAX_DURATION_MINUTES} "
            f"minutes in steps of {DURATION_STEP_MINUTES}, got {minutes!r}."
        )
    return minutes * 60


def _env_bool(value):
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def load_settings(env=None):
    """Builds the runtime settings from defaults, .env and the environment."""
    if env is None:
        load_dotenv()
        env = os.environ

    settings = DEFAULT_SETTINGS.copy()

    if 'TIMER_HISTORY_PATH' in env:
        # An empty path turns persistence off entirely.
        settings['history_path'] = env['TIMER_HISTORY_PATH'].strip() or None

    tz_name = (env.get('TIMER_TIMEZONE') or '').strip()
    if tz_name:
        settings['timezone'] = tz_name

    raw_minutes = env.get('TIMER_DEFAULT_MINUTES')
    if raw_minutes:
        try:
            minutes = int(raw_minutes)
        except ValueError:
            minutes = None
        if minutes is not None and is_valid_minutes(minutes):
            settings['default_minutes'] = minutes
        else:
            logger.warning("Ignoring invalid TIMER_DEFAULT_MINUTES=%r, using %d",
                           raw_minutes, DEFAULT_DURATION_MINUTES)

    chime = (env.get('TIMER_CHIME') or '').strip().lower()
    if chime in ('bell', 'none'):
        settings['chime'] = chime

    if env.get('TIMER_HOST'):
        settings['host'] = env['TIMER_HOST']
    if env.get('TIMER_PORT'):
        try:
            settings['port'] = int(env['TIMER_PORT'])
        except ValueError:
            logger.warning("Ignoring invalid TIMER_PORT=%r", env['TIMER_PORT'])
    if 'TIMER_DEBUG' in env:
        settings['debug'] = _env_bool(env['TIMER_DEBUG'])
    if env.get('LOG_LEVEL'):
        settings['log_level'] = env['LOG_LEVEL'].upper()

    return settings
