"""Flask application for the Thai Learning Cards API."""

import logging
import os
from datetime import timedelta
from pathlib import Path

from flask import Flask
from flask_cors import CORS

from ..config import Config
from ..sample_data import SAMPLE_CARDS
from ..services import build_audio_services
from ..store.backup import BackupScheduler
from ..store.card_store import CardStore
from ..store.progress_store import ProgressStore


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def initialize_backups(app):
    """
    Start the periodic backup job.

    In multi-worker deployments set RUN_BACKUP_SCHEDULER=false on all but one
    worker so backups are not written several times.
    """
    if not app.config.get('RUN_BACKUP_SCHEDULER'):
        logger.info("Background backups disabled")
        return

    scheduler = BackupScheduler(
        app.config['CARD_STORE'],
        backup_dir=app.config['BACKUP_DIR'],
        interval_hours=app.config['BACKUP_INTERVAL_HOURS'],
        keep=app.config['BACKUP_KEEP']
    )
    scheduler.start()
    app.config['BACKUP_SCHEDULER'] = scheduler


def create_app(config_overrides=None):
    """
    Create and configure the Flask application.

    Args:
        config_overrides: Optional mapping applied over the defaults. An
            ``AUDIO_SERVICES`` entry replaces the default audio stack.
    """
    app = Flask(__name__)

    # Configure CORS for API endpoints
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "PUT", "DELETE"],
            "allow_headers": ["Content-Type"],
            "supports_credentials": True
        }
    })

    app.config.update(
        SECRET_KEY=Config.SECRET_KEY,
        ADMIN_USERNAME=Config.ADMIN_USERNAME,
        ADMIN_PASSWORD=Config.ADMIN_PASSWORD,
        PERMANENT_SESSION_LIFETIME=timedelta(days=Config.SESSION_DAYS),
        MAX_CONTENT_LENGTH=10 * 1024 * 1024,  # 10MB max upload
        DATA_DIR=str(Config.DATA_DIR),
        AUDIO_DIR=str(Config.AUDIO_DIR),
        BACKUP_DIR=str(Config.BACKUP_DIR),
        BACKUP_KEEP=Config.BACKUP_KEEP,
        BACKUP_INTERVAL_HOURS=Config.BACKUP_INTERVAL_HOURS,
        BULK_GENERATION_DELAY=Config.BULK_GENERATION_DELAY,
        SEED_SAMPLE_CARDS=True,
        USE_RELOADER=False,
        RUN_BACKUP_SCHEDULER=os.environ.get('RUN_BACKUP_SCHEDULER', 'true').lower() == 'true'
    )
    if config_overrides:
        app.config.update(config_overrides)

    card_store = CardStore(app.config['DATA_DIR'])
    card_store.initialize(SAMPLE_CARDS if app.config['SEED_SAMPLE_CARDS'] else None)
    app.config['CARD_STORE'] = card_store
    app.config['PROGRESS_STORE'] = ProgressStore(Path(app.config['DATA_DIR']) / "progress.json")

    if app.config.get('AUDIO_SERVICES') is None:
        app.config['AUDIO_SERVICES'] = build_audio_services(audio_dir=app.config['AUDIO_DIR'])

    # Under the reloader only the child process starts background jobs
    if os.environ.get('WERKZEUG_RUN_MAIN') or not app.config['USE_RELOADER']:
        initialize_backups(app)

    register_routes(app)

    logger.info(f"Card data directory: {app.config['DATA_DIR']}")
    return app


def register_routes(app):
    """Register all application blueprints."""
    from . import api, auth
    app.register_blueprint(auth.bp)
    app.register_blueprint(api.bp)
