"""API endpoints for cards, audio, progress, backups and exports."""

import io
import json
import logging
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from ..audio.bulk import generate_bulk_audio
from ..audio.store import is_valid_key
from ..config import Config
from ..errors import FlashcardError
from ..export.formats import get_archive_format
from ..store.backup import create_backup
from .auth import login_required
from .error_responses import (
    ActionRequired,
    ErrorCode,
    error_response,
    file_too_large_response,
    flashcard_error_response,
    unexpected_error_response
)


logger = logging.getLogger(__name__)

bp = Blueprint('api', __name__, url_prefix='/api')


@bp.errorhandler(RequestEntityTooLarge)
def handle_file_too_large(e):
    """Handle request size limit exceeded."""
    logger.warning(f"Request size limit exceeded: {e}")
    max_bytes = current_app.config.get('MAX_CONTENT_LENGTH') or 0
    return file_too_large_response(max_bytes // (1024 * 1024))


@bp.errorhandler(FlashcardError)
def handle_flashcard_error(e):
    logger.warning(f"Request failed: {e}")
    return flashcard_error_response(e)


@bp.errorhandler(Exception)
def handle_unexpected_error(e):
    """Handle unexpected errors with proper logging."""
    logger.error(f"Unexpected error: {e}", exc_info=True)
    return unexpected_error_response(
        error_details=str(e),
        include_details=current_app.debug
    )


def _card_store():
    return current_app.config['CARD_STORE']


def _progress_store():
    return current_app.config['PROGRESS_STORE']


def _services():
    return current_app.config['AUDIO_SERVICES']


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


def _invalid_json():
    return error_response(
        "Request body must be a JSON object", ErrorCode.INVALID_JSON, 400, ActionRequired.FIX_INPUT
    )


@bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'ok',
        'message': 'Thai Learning Cards API is running',
        'timestamp': datetime.now().isoformat()
    })


# Cards

@bp.route('/cards/<int:level>', methods=['GET'])
def get_cards(level: int):
    store = _card_store()
    cards = store.list_cards(level)
    info = store.get_level_info(level)
    return jsonify({
        'success': True,
        'level': level,
        'cards': [card.to_dict() for card in cards],
        'totalCards': len(cards),
        'lastUpdated': info['lastUpdated']
    })


@bp.route('/cards/<int:level>/<int:card_id>', methods=['GET'])
def get_card(level: int, card_id: int):
    card = next((c for c in _card_store().list_cards(level) if c.id == card_id), None)
    if card is None:
        return error_response(
            f"Card {card_id} not found in level {level}", ErrorCode.CARD_NOT_FOUND, 404
        )
    return jsonify({'success': True, 'card': card.to_dict()})


@bp.route('/cards/<int:level>', methods=['POST'])
@login_required
def upload_cards(level: int):
    """
    Append uploaded cards to a level.

    Expects ``{cards: [...]}``; new ids are assigned by the store.
    """
    data = _json_body()
    if data is None:
        return _invalid_json()

    cards = data.get('cards')
    if not isinstance(cards, list) or not cards:
        return error_response(
            "Field 'cards' must be a non-empty list", ErrorCode.MISSING_DATA, 400,
            ActionRequired.FIX_INPUT
        )

    added = _card_store().add_cards(level, cards)
    return jsonify({
        'success': True,
        'message': f"Uploaded {len(added)} cards",
        'cards': [card.to_dict() for card in added],
        'totalCards': _card_store().get_level_info(level)['totalCards']
    }), 201


@bp.route('/cards/<int:level>', methods=['PUT'])
@login_required
def replace_cards(level: int):
    data = _json_body()
    if data is None or not isinstance(data.get('cards'), list):
        return _invalid_json()

    saved = _card_store().save_cards(level, data['cards'])
    return jsonify({
        'success': True,
        'message': f"Saved {len(saved)} cards",
        'totalCards': len(saved)
    })


@bp.route('/cards/<int:level>/<int:card_id>', methods=['DELETE'])
@login_required
def delete_card(level: int, card_id: int):
    if not _card_store().delete_card(level, card_id):
        return error_response(
            f"Card {card_id} not found in level {level}", ErrorCode.CARD_NOT_FOUND, 404
        )
    return jsonify({'success': True, 'message': 'Card deleted'})


# Audio

@bp.route('/audio/store', methods=['POST'])
def store_audio():
    """Persist a generated audio locator under its key."""
    data = _json_body()
    if data is None:
        return _invalid_json()

    key = data.get('key')
    audio_url = data.get('audioUrl')
    text = data.get('text', '')
    if not key or not audio_url:
        return error_response(
            "Fields 'key' and 'audioUrl' are required", ErrorCode.MISSING_FIELDS, 400,
            ActionRequired.FIX_INPUT
        )
    if not is_valid_key(key):
        return error_response("Invalid audio key", ErrorCode.INVALID_KEY, 400, ActionRequired.FIX_INPUT)

    audio_store = _services().stored_audio
    if not audio_store.store_audio(key, audio_url, text):
        return error_response("Failed to store audio", ErrorCode.STORE_ERROR, 500, ActionRequired.RETRY)

    stored = audio_store.get_stored_audio(key)
    return jsonify({
        'success': True,
        'localFile': stored.local_file if stored else None,
        'localFileAvailable': bool(stored and stored.local_file_available)
    })


@bp.route('/audio/file/<filename>', methods=['GET'])
def get_audio_file(filename: str):
    path = _services().stored_audio.file_path(secure_filename(filename))
    if path is None:
        return error_response(f"File not found: {filename}", ErrorCode.FILE_NOT_FOUND, 404)
    return send_file(path, mimetype='audio/mpeg')


@bp.route('/audio/<key>', methods=['GET'])
def get_stored_audio(key: str):
    if not is_valid_key(key):
        return error_response("Invalid audio key", ErrorCode.INVALID_KEY, 400, ActionRequired.FIX_INPUT)

    stored = _services().stored_audio.get_stored_audio(key)
    if stored is None:
        return error_response("Audio not found", ErrorCode.AUDIO_NOT_FOUND, 404)

    body = stored.to_dict()
    body['success'] = True
    body['localFileAvailable'] = stored.local_file_available
    body['localUrl'] = f"/api/audio/file/{stored.local_file}" if stored.local_file_available else None
    return jsonify(body)


@bp.route('/audio/generate', methods=['POST'])
def generate_audio():
    """Resolve or generate a locator for one text without playing it."""
    data = _json_body()
    if data is None:
        return _invalid_json()

    text = (data.get('text') or '').strip()
    language = data.get('language') or Config.DEFAULT_LANGUAGE
    if not text:
        return error_response("Field 'text' is required", ErrorCode.MISSING_FIELDS, 400,
                              ActionRequired.FIX_INPUT)

    locator = _services().resolver.pregenerate(text, language)
    if not locator:
        return error_response(
            f"Audio generation failed for '{text}'", ErrorCode.AUDIO_GENERATION_FAILED, 502,
            ActionRequired.RETRY
        )
    return jsonify({'success': True, 'audioUrl': locator})


@bp.route('/audio/generate-bulk/<int:level>', methods=['POST'])
@login_required
def generate_audio_bulk(level: int):
    """Generate headword and example audio for every card of a level."""
    cards = _card_store().list_cards(level)
    data = _json_body() or {}
    language = data.get('language') or Config.DEFAULT_LANGUAGE

    result = generate_bulk_audio(
        cards,
        _services().resolver,
        language=language,
        delay=current_app.config.get('BULK_GENERATION_DELAY', Config.BULK_GENERATION_DELAY)
    )
    return jsonify({
        'success': True,
        'message': result.message,
        'successCount': result.success_count,
        'failCount': result.fail_count,
        'failed': result.failed_texts
    })


# Progress

@bp.route('/progress/<int:level>', methods=['GET'])
def get_progress(level: int):
    _card_store().validate_level(level)
    return jsonify({'success': True, 'level': level, 'completed': _progress_store().get_progress(level)})


@bp.route('/progress/<int:level>', methods=['POST'])
def mark_progress(level: int):
    _card_store().validate_level(level)
    data = _json_body()
    if data is None:
        return _invalid_json()

    try:
        card_id = int(data.get('cardId'))
    except (TypeError, ValueError):
        return error_response("Field 'cardId' must be a number", ErrorCode.MISSING_FIELDS, 400,
                              ActionRequired.FIX_INPUT)

    completed = _progress_store().mark_completed(level, card_id)
    return jsonify({'success': True, 'level': level, 'completed': completed})


@bp.route('/progress/<int:level>', methods=['DELETE'])
def reset_progress(level: int):
    _card_store().validate_level(level)
    _progress_store().reset(level)
    return jsonify({'success': True, 'level': level, 'completed': []})


# Backups

@bp.route('/backup', methods=['GET'])
@login_required
def download_backup():
    """Download a snapshot of every level as JSON."""
    snapshot = _card_store().export_backup()
    content = json.dumps(snapshot, ensure_ascii=False, indent=2).encode('utf-8')
    filename = f"thai-cards-backup-{datetime.now().strftime('%Y-%m-%d')}.json"
    return send_file(
        io.BytesIO(content),
        mimetype='application/json',
        as_attachment=True,
        download_name=filename
    )


@bp.route('/backup', methods=['POST'])
@login_required
def run_backup():
    try:
        path = create_backup(
            _card_store(),
            current_app.config['BACKUP_DIR'],
            keep=current_app.config.get('BACKUP_KEEP', Config.BACKUP_KEEP)
        )
    except FlashcardError as e:
        logger.error(f"Backup failed: {e}")
        return error_response(str(e), ErrorCode.BACKUP_FAILED, 500, ActionRequired.RETRY)
    return jsonify({'success': True, 'filename': path.name})


# Export

@bp.route('/export/<int:level>', methods=['GET'])
def export_level(level: int):
    """
    Download a level as a package.

    Query parameter ``format`` selects zip (default), json or apkg. A failed
    package build still returns the basic JSON card export, flagged with the
    ``X-Export-Fallback`` header.
    """
    try:
        archive_format = get_archive_format(request.args.get('format', 'zip'))
    except ValueError as e:
        return error_response(str(e), ErrorCode.MISSING_FIELDS, 400, ActionRequired.FIX_INPUT)

    cards = _card_store().list_cards(level)
    exported = _services().exporter.build_archive(cards, level, archive_format=archive_format)

    response = send_file(
        io.BytesIO(exported.content),
        mimetype=exported.mime_type,
        as_attachment=True,
        download_name=exported.filename
    )
    if exported.is_fallback:
        response.headers['X-Export-Fallback'] = 'true'
    return response
