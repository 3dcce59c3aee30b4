"""Tests for the Flask control API."""

import json

import pytest

from config import DEFAULT_SETTINGS, STORAGE_KEY
from history import HistoryStore, SessionRecord
from recorder import SessionRecorder
from server import _history_entry, create_app


@pytest.fixture
def app(timer, recorder, clock):
    settings = dict(DEFAULT_SETTINGS, history_path=None, chime='none')
    return create_app(settings, timer=timer, recorder=recorder, clock=clock)


@pytest.fixture
def client(app):
    return app.test_client()


def test_health(client):
    assert client.get('/health').get_json() == {'status': 'ok'}


def test_state(client):
    state = client.get('/api/state').get_json()
    assert state['remaining'] == 300
    assert state['display'] == "05:00"
    assert state['is_running'] is False


def test_start_pause_reset(client, scheduler):
    assert client.post('/api/start').get_json()['state']['is_running'] is True
    scheduler.fire(10)
    paused = client.post('/api/pause').get_json()['state']
    assert paused['is_running'] is False
    assert paused['remaining'] == 290
    reset = client.post('/api/reset').get_json()['state']
    assert reset['remaining'] == 300


def test_set_duration(client, timer):
    client.post('/api/start')
    resp = client.post('/api/set_duration', json={'minutes': 10})
    assert resp.status_code == 200
    assert resp.get_json()['state']['remaining'] == 600
    assert timer.is_running is False


@pytest.mark.parametrize("body", [{'minutes': 7}, {'minutes': 90}, {'minutes': "10"}, {}, [10]])
def test_set_duration_rejects_out_of_range(client, timer, body):
    resp = client.post('/api/set_duration', json=body)
    assert resp.status_code == 400
    assert resp.get_json()['success'] is False
    assert timer.total_duration == 300


def test_set_duration_rejects_non_json(client):
    resp = client.post('/api/set_duration', data="minutes=10")
    assert resp.status_code == 400


def test_history_after_completion(client, scheduler, backend):
    client.post('/api/start')
    scheduler.fire(300)
    body = client.get('/api/history').get_json()
    assert body['count'] == 1
    entry = body['history'][0]
    assert entry['duration'] == 300
    assert entry['minutes'] == 5
    assert entry['endedAt'] - entry['startedAt'] == 300_000
    assert json.loads(backend.get(STORAGE_KEY))[0]['id'] == entry['id']


def test_clear_history(client, scheduler, recorder):
    client.post('/api/start')
    scheduler.fire(300)
    assert client.delete('/api/history').get_json() == {'success': True}
    assert recorder.history == []


def test_todays_quote(client):
    body = client.get('/api/quote/today').get_json()
    assert body['date'] == "2024-05-07"
    assert body['author'] == "Mother Teresa"


def test_quote_archive(client):
    quotes = client.get('/api/quotes').get_json()['quotes']
    assert len(quotes) == 6
    assert quotes[0] == {'text': "Wherever you are, be all there.", 'author': "Jim Elliot"}


def test_default_wiring_uses_settings(tmp_path):
    settings = dict(DEFAULT_SETTINGS, history_path=str(tmp_path / "h.json"),
                    chime='none', default_minutes=15)
    app = create_app(settings)
    timer = app.config['TIMER']
    try:
        assert timer.total_duration == 900
        assert app.config['RECORDER'].history == []
        assert (tmp_path / "h.json").exists()
    finally:
        timer.close()


def test_history_skips_unrepresentable_end_times(timer, clock, backend):
    backend.set(STORAGE_KEY, json.dumps([
        {'id': 'far', 'startedAt': 0, 'endedAt': 10 ** 20, 'duration': 300},
        {'id': '9000', 'startedAt': 6000, 'endedAt': 9000, 'duration': 3},
    ]))
    recorder = SessionRecorder(HistoryStore(backend), clock)
    settings = dict(DEFAULT_SETTINGS, history_path=None, chime='none')
    client = create_app(settings, timer=timer, recorder=recorder, clock=clock).test_client()

    resp = client.get('/api/history')
    assert resp.status_code == 200
    assert [e['id'] for e in resp.get_json()['history']] == ['9000']


def test_history_entry_with_unformattable_end_time(clock):
    entry = _history_entry(SessionRecord('x', 0, 10 ** 20, 300), clock)
    assert entry['minutes'] == 5
    assert entry['burned_on'] == ''
    assert entry['burned_at'] == ''
