"""
Card package export: SVG card images, cached audio and card data packed as
a ZIP, a JSON container or an Anki deck.
"""

from .zip_encoder import ZipEncoder, ZipEntry, crc32
from .manifest import ArchiveFile, ArchiveManifest
from .formats import (
    ArchiveFormat,
    ZipArchiveFormat,
    JsonContainerFormat,
    AnkiPackageFormat,
    get_archive_format
)
from .exporter import PackageExporter, ExportedArchive, ExportProgress

__all__ = [
    'ZipEncoder',
    'ZipEntry',
    'crc32',
    'ArchiveFile',
    'ArchiveManifest',
    'ArchiveFormat',
    'ZipArchiveFormat',
    'JsonContainerFormat',
    'AnkiPackageFormat',
    'get_archive_format',
    'PackageExporter',
    'ExportedArchive',
    'ExportProgress'
]
