"""
Persistent storage for cards, study progress and backups.
"""

from .card_store import CardStore
from .progress_store import ProgressStore
from .backup import BackupScheduler, create_backup, list_backups

__all__ = [
    'CardStore',
    'ProgressStore',
    'BackupScheduler',
    'create_backup',
    'list_backups'
]
