import logging
from datetime import datetime

from flask import Flask, jsonify, request

import config
from chime import build_chime
from clock import SystemClock
from content import QUOTES, quote_to_dict, select_daily_quote
from core import IncenseTimer
from history import build_store
from recorder import SessionRecorder

logger = logging.getLogger(__name__)


def setup_logging(level='INFO'):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _history_entry(record, clock):
    """Record as stored, plus the fields the history panel shows."""
    entry = record.to_dict()
    entry['minutes'] = round(record.duration / 60)
    try:
        ended = datetime.fromtimestamp(record.ended_at / 1000, clock.timezone)
    except (OverflowError, OSError, ValueError):
        logger.warning("Cannot format end time of session %s", record.id)
        entry['burned_on'] = ''
        entry['burned_at'] = ''
        return entry
    entry['burned_on'] = ended.strftime('%b %d')
    entry['burned_at'] = ended.strftime('%H:%M')
    return entry


def create_app(settings=None, timer=None, recorder=None, clock=None):
    """Wires the timer, recorder and store together behind the JSON API."""
    settings = settings or config.load_settings()
    clock = clock or SystemClock(settings['timezone'])

    if recorder is None:
        recorder = SessionRecorder(build_store(settings['history_path']), clock)
    if timer is None:
        timer = IncenseTimer(
            total_duration=config.minutes_to_seconds(settings['default_minutes']),
            chime=build_chime(settings['chime']),
            clock=clock,
        )
    recorder.attach(timer)
    recorder.load()

    app = Flask(__name__)
    app.config['TIMER'] = timer
    app.config['RECORDER'] = recorder
    app.config['CLOCK'] = clock

    # --- FLASK ROUTES ---

    @app.route('/')
    def index():
        """Short description of the API."""
        return jsonify({'app': 'Incense Session Timer', 'state': '/api/state'})

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    # --- TIMER ENDPOINTS ---

    @app.route('/api/state', methods=['GET'])
    def get_state():
        """Endpoint for the clients to poll the current timer state."""
        return jsonify(timer.get_timer_state_details())

    @app.route('/api/start', methods=['POST'])
    def start_timer_route():
        """Lights the stick, or resumes a paused one."""
        timer.start()
        return jsonify({'success': True, 'state': timer.get_timer_state_details()})

    @app.route('/api/pause', methods=['POST'])
    def pause_timer_route():
        timer.pause()
        return jsonify({'success': True, 'state': timer.get_timer_state_details()})

    @app.route('/api/reset', methods=['POST'])
    def reset_timer_route():
        timer.reset()
        return jsonify({'success': True, 'state': timer.get_timer_state_details()})

    @app.route('/api/set_duration', methods=['POST'])
    def set_duration():
        """Endpoint to set the stick length in minutes (5-60, steps of 5)."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'success': False, 'error': 'Invalid request format.'}), 400
        try:
            seconds = config.minutes_to_seconds(data.get('minutes'))
        except ValueError as e:
            return jsonify({'success': False, 'error': str(e)}), 400

        timer.set_duration(seconds)
        return jsonify({'success': True, 'minutes': data['minutes'],
                        'state': timer.get_timer_state_details()})

    # --- HISTORY ENDPOINTS ---

    @app.route('/api/history', methods=['GET'])
    def get_history():
        """Most recent sessions first."""
        history = [_history_entry(r, clock) for r in recorder.history]
        return jsonify({'history': history, 'count': len(history)})

    @app.route('/api/history', methods=['DELETE'])
    def clear_history():
        recorder.clear()
        return jsonify({'success': True})

    # --- CONTENT ENDPOINTS ---

    @app.route('/api/quote/today', methods=['GET'])
    def todays_quote():
        today = clock.today()
        quote = select_daily_quote(today)
        return jsonify({'date': today.isoformat(), **quote_to_dict(quote)})

    @app.route('/api/quotes', methods=['GET'])
    def quote_archive():
        return jsonify({'quotes': [quote_to_dict(q) for q in QUOTES]})

    return app


def main():
    settings = config.load_settings()
    setup_logging(settings['log_level'])
    app = create_app(settings)
    try:
        app.run(debug=settings['debug'], host=settings['host'],
                port=settings['port'], use_reloader=False)
    finally:
        app.config['TIMER'].close()


if __name__ == '__main__':
    main()
