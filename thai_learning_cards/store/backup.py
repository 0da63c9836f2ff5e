"""
Card data backups.

create_backup writes a timestamped snapshot of every level and prunes old
snapshots. BackupScheduler runs it periodically in the background.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..config import Config
from ..errors import CardStoreError
from .card_store import CardStore


logger = logging.getLogger(__name__)

BACKUP_PREFIX = "backup-"


def list_backups(backup_dir: str) -> List[Path]:
    """Backup files in the directory, newest first."""
    directory = Path(backup_dir)
    if not directory.exists():
        return []
    return sorted(directory.glob(f"{BACKUP_PREFIX}*.json"), reverse=True)


def create_backup(store: CardStore, backup_dir: str = None, keep: int = Config.BACKUP_KEEP) -> Path:
    """
    Write a snapshot of all levels and keep only the newest ``keep`` backups.

    Returns:
        Path of the new backup file

    Raises:
        CardStoreError: If the backup cannot be written
    """
    directory = Path(backup_dir or Config.BACKUP_DIR)
    directory.mkdir(parents=True, exist_ok=True)

    snapshot = store.export_backup()
    timestamp = datetime.now().strftime('%Y-%m-%dT%H-%M-%S-%f')
    path = directory / f"{BACKUP_PREFIX}{timestamp}.json"

    try:
        path.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), encoding='utf-8')
    except OSError as e:
        raise CardStoreError("Failed to write backup", details=str(e))

    logger.info(f"Backup created: {path.name}")

    for old_backup in list_backups(directory)[keep:]:
        try:
            old_backup.unlink()
            logger.info(f"Deleted old backup: {old_backup.name}")
        except OSError as e:
            logger.warning(f"Could not delete old backup {old_backup.name}: {e}")

    return path


class BackupScheduler:
    """
    Periodic background backups using APScheduler.
    """

    def __init__(self, store: CardStore, backup_dir: str = None,
                 interval_hours: int = Config.BACKUP_INTERVAL_HOURS,
                 keep: int = Config.BACKUP_KEEP):
        self.store = store
        self.backup_dir = backup_dir or Config.BACKUP_DIR
        self.interval_hours = interval_hours
        self.keep = keep
        self.scheduler: Optional[BackgroundScheduler] = None
        self._is_running = False

    def start(self) -> None:
        """Schedule periodic backups. Calling start twice is a no-op."""
        if self._is_running:
            logger.warning("BackupScheduler is already running")
            return

        try:
            self.scheduler = BackgroundScheduler(daemon=True)
            self.scheduler.add_job(
                func=self.run_backup,
                trigger='interval',
                hours=self.interval_hours,
                id='card_backup',
                name='Card Data Backup',
                replace_existing=True
            )
            self.scheduler.start()
            self._is_running = True
            logger.info(f"BackupScheduler started - backing up every {self.interval_hours} hours")
        except Exception as e:
            logger.error(f"Failed to start BackupScheduler: {e}")
            self._is_running = False

    def stop(self) -> None:
        if not self._is_running:
            logger.debug("BackupScheduler is not running")
            return

        try:
            if self.scheduler:
                self.scheduler.shutdown(wait=False)
                self.scheduler = None
            self._is_running = False
            logger.info("BackupScheduler stopped")
        except Exception as e:
            logger.error(f"Error stopping BackupScheduler: {e}")

    def run_backup(self) -> Optional[Path]:
        """
        Scheduled job body. Errors are logged, never raised into the scheduler.
        """
        try:
            return create_backup(self.store, self.backup_dir, self.keep)
        except Exception as e:
            logger.error(f"BackupScheduler: backup failed: {e}")
            return None

    @property
    def is_running(self) -> bool:
        return self._is_running
