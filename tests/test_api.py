"""Tests for the web API endpoints."""

import io
import zipfile
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from thai_learning_cards.audio.cache import AudioCache, audio_key
from thai_learning_cards.audio.resolver import AudioSourceResolver
from thai_learning_cards.audio.store import AudioStore
from thai_learning_cards.audio.tts_client import JobState, JobStatus
from thai_learning_cards.export.exporter import PackageExporter
from thai_learning_cards.web.app import create_app
from thai_learning_cards.web.error_responses import ErrorCode

from conftest import FakeTTSClient, RecordingSleep


GENERATED = "https://files.example.com/generated.mp3"


@pytest.fixture
def loader():
    loader = MagicMock()
    loader.load_bytes.return_value = b"ID3fake-mp3"
    return loader


@pytest.fixture
def tts():
    return FakeTTSClient(statuses=[JobStatus(JobState.DONE, GENERATED)] * 20)


@pytest.fixture
def app(tmp_path, loader, tts):
    """Create Flask app for testing."""
    cache = AudioCache()
    audio_store = AudioStore(tmp_path / "audio", loader=loader)
    resolver = AudioSourceResolver(cache, stored_audio=audio_store, tts_client=tts,
                                   sleep=RecordingSleep())
    services = MagicMock()
    services.cache = cache
    services.stored_audio = audio_store
    services.resolver = resolver
    services.exporter = PackageExporter(cache, loader=loader, language="th", resolver=resolver)

    app = create_app({
        'TESTING': True,
        'DATA_DIR': str(tmp_path / "data"),
        'AUDIO_DIR': str(tmp_path / "audio"),
        'BACKUP_DIR': str(tmp_path / "backups"),
        'ADMIN_USERNAME': "admin",
        'ADMIN_PASSWORD': "secret",
        'SECRET_KEY': "test-key",
        'RUN_BACKUP_SCHEDULER': False,
        'BULK_GENERATION_DELAY': 0,
        'AUDIO_SERVICES': services,
    })
    yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def logged_in(client):
    response = client.post('/api/login', json={'username': "admin", 'password': "secret"})
    assert response.status_code == 200
    return client


class TestHealthAndAuth:

    def test_health(self, client):
        response = client.get('/api/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'ok'

    def test_login_logout(self, client):
        assert client.get('/api/session').get_json() == {'loggedIn': False}

        response = client.post('/api/login', json={'username': "admin", 'password': "secret"})
        assert response.get_json()['success'] is True
        session = client.get('/api/session').get_json()
        assert session['loggedIn'] is True
        assert session['username'] == "admin"

        client.post('/api/logout')
        assert client.get('/api/session').get_json() == {'loggedIn': False}

    def test_wrong_password(self, client):
        response = client.post('/api/login', json={'username': "admin", 'password': "nope"})
        assert response.status_code == 401
        assert response.get_json()['error_code'] == ErrorCode.INVALID_CREDENTIALS

    def test_missing_fields(self, client):
        response = client.post('/api/login', json={'username': "admin"})
        assert response.status_code == 400

    def test_session_lifetime(self, app):
        assert app.permanent_session_lifetime == timedelta(days=7)

    def test_content_management_requires_login(self, client, card_dicts):
        response = client.post('/api/cards/1', json={'cards': card_dicts})
        assert response.status_code == 401
        body = response.get_json()
        assert body['error_code'] == ErrorCode.AUTH_REQUIRED
        assert body['action_required'] == 'login'


class TestCardsApi:
    """Test card listing and management."""

    def test_seeded_levels(self, client):
        body = client.get('/api/cards/1').get_json()
        assert body['success'] is True
        assert body['totalCards'] == 5
        assert body['cards'][0]['headword'] == "สวัสดี"

    def test_invalid_level(self, client):
        response = client.get('/api/cards/9')
        assert response.status_code == 400
        assert response.get_json()['error_code'] == ErrorCode.INVALID_LEVEL

    def test_upload_appends_cards(self, logged_in, card_dicts):
        response = logged_in.post('/api/cards/4', json={'cards': card_dicts})

        assert response.status_code == 201
        body = response.get_json()
        assert len(body['cards']) == 2
        assert body['totalCards'] == 4
        assert all(card['level'] == 4 for card in body['cards'])

    def test_upload_rejects_bad_payload(self, logged_in):
        assert logged_in.post('/api/cards/1', json={'cards': []}).status_code == 400
        assert logged_in.post('/api/cards/1', data="x", content_type='text/plain').status_code == 400
        response = logged_in.post('/api/cards/1', json={'cards': [{'headword': "x"}]})
        assert response.status_code == 400

    def test_replace_and_delete(self, logged_in, client, card_dicts):
        assert logged_in.put('/api/cards/2', json={'cards': card_dicts}).status_code == 200
        assert client.get('/api/cards/2/1').get_json()['card']['headword'] == "สวัสดี"

        assert logged_in.delete('/api/cards/2/1').status_code == 200
        assert logged_in.delete('/api/cards/2/1').status_code == 404
        assert client.get('/api/cards/2/1').status_code == 404


class TestAudioApi:
    """Test stored audio endpoints."""

    def test_store_lookup_and_file(self, client):
        key = audio_key("สวัสดี", "th")
        response = client.post('/api/audio/store', json={
            'key': key, 'audioUrl': GENERATED, 'text': "สวัสดี"
        })
        assert response.get_json()['localFileAvailable'] is True

        body = client.get(f'/api/audio/{key}').get_json()
        assert body['audioUrl'] == GENERATED
        assert body['text'] == "สวัสดี"
        assert body['localUrl'] == f"/api/audio/file/{key}.mp3"

        file_response = client.get(body['localUrl'])
        assert file_response.status_code == 200
        assert file_response.data == b"ID3fake-mp3"

    def test_unknown_key(self, client):
        assert client.get(f'/api/audio/{audio_key("x", "th")}').status_code == 404

    def test_invalid_key(self, client):
        response = client.post('/api/audio/store', json={'key': "../etc", 'audioUrl': GENERATED})
        assert response.status_code == 400

    def test_missing_file(self, client):
        assert client.get('/api/audio/file/nothing.mp3').status_code == 404

    def test_generate(self, client, tts):
        response = client.post('/api/audio/generate', json={'text': "น้ำ", 'language': "th"})
        assert response.get_json() == {'success': True, 'audioUrl': GENERATED}

        client.post('/api/audio/generate', json={'text': "น้ำ", 'language': "th"})
        assert len(tts.submitted) == 1

    def test_generate_failure(self, client, tts):
        tts.submit_error = True
        response = client.post('/api/audio/generate', json={'text': "น้ำ"})
        assert response.status_code == 502

    def test_bulk_generation(self, logged_in, tts):
        response = logged_in.post('/api/audio/generate-bulk/3')

        body = response.get_json()
        assert body['successCount'] == 4
        assert body['failCount'] == 0
        assert body['message'] == "Generated 4 audio files, 0 failed"
        assert len(tts.submitted) == 4


class TestProgressApi:

    def test_mark_and_reset(self, client):
        assert client.get('/api/progress/1').get_json()['completed'] == []

        client.post('/api/progress/1', json={'cardId': 3})
        assert client.get('/api/progress/1').get_json()['completed'] == [3]

        client.delete('/api/progress/1')
        assert client.get('/api/progress/1').get_json()['completed'] == []

    def test_bad_card_id(self, client):
        assert client.post('/api/progress/1', json={'cardId': "abc"}).status_code == 400


class TestBackupAndExportApi:

    def test_backup(self, logged_in, app):
        response = logged_in.post('/api/backup')
        assert response.status_code == 200
        filename = response.get_json()['filename']
        assert filename.startswith("backup-")

        download = logged_in.get('/api/backup')
        assert download.status_code == 200
        assert 'level_1' in download.get_json()

    def test_export_zip(self, client, app):
        app.config['AUDIO_SERVICES'].cache.set("สวัสดี", "th", GENERATED)

        response = client.get('/api/export/1')

        assert response.status_code == 200
        assert response.mimetype == 'application/zip'
        assert 'thai-learning-level-1.zip' in response.headers['Content-Disposition']
        with zipfile.ZipFile(io.BytesIO(response.data)) as zf:
            names = zf.namelist()
        assert "audio/words/card_001_สวัสดี_word.mp3" in names
        assert "data/cards_level_1.json" in names

    def test_export_includes_stored_audio(self, client, tts):
        key = audio_key("สวัสดี", "th")
        client.post('/api/audio/store', json={'key': key, 'audioUrl': GENERATED, 'text': "สวัสดี"})

        response = client.get('/api/export/1')

        with zipfile.ZipFile(io.BytesIO(response.data)) as zf:
            assert zf.read("audio/words/card_001_สวัสดี_word.mp3") == b"ID3fake-mp3"
            assert "audio/words/card_002_ขอบคุณ_word.mp3" not in zf.namelist()
        assert tts.submitted == []

    def test_export_json(self, client):
        response = client.get('/api/export/2?format=json')
        assert response.mimetype == 'application/json'
        assert response.get_json()['totalCards'] == 3

    def test_export_unknown_format(self, client):
        assert client.get('/api/export/1?format=rar').status_code == 400


class TestBackupSchedulerStartup:
    """Test when create_app starts the backup job."""

    @pytest.fixture
    def base_config(self, tmp_path):
        return {
            'TESTING': True,
            'DATA_DIR': str(tmp_path / "data"),
            'BACKUP_DIR': str(tmp_path / "backups"),
            'RUN_BACKUP_SCHEDULER': True,
            'AUDIO_SERVICES': MagicMock(),
        }

    def test_reloader_parent_does_not_start(self, base_config, monkeypatch):
        monkeypatch.delenv('WERKZEUG_RUN_MAIN', raising=False)
        monkeypatch.delenv('FLASK_DEBUG', raising=False)
        with patch('thai_learning_cards.web.app.BackupScheduler') as scheduler_cls:
            create_app(dict(base_config, USE_RELOADER=True))
        scheduler_cls.assert_not_called()

    def test_reloader_child_starts(self, base_config, monkeypatch):
        monkeypatch.setenv('WERKZEUG_RUN_MAIN', 'true')
        with patch('thai_learning_cards.web.app.BackupScheduler') as scheduler_cls:
            app = create_app(dict(base_config, USE_RELOADER=True))
        scheduler_cls.return_value.start.assert_called_once_with()
        assert app.config['BACKUP_SCHEDULER'] is scheduler_cls.return_value

    def test_without_reloader_starts(self, base_config, monkeypatch):
        monkeypatch.delenv('WERKZEUG_RUN_MAIN', raising=False)
        monkeypatch.delenv('FLASK_DEBUG', raising=False)
        with patch('thai_learning_cards.web.app.BackupScheduler') as scheduler_cls:
            create_app(base_config)
        scheduler_cls.return_value.start.assert_called_once_with()
