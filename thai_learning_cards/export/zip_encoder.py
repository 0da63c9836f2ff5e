"""
Stored-mode ZIP writer.

Writes uncompressed (method 0) archives: one local file header plus data per
entry, a central directory pointing back at each local header, and the end
of central directory record. All integers are little-endian.
"""

import struct
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from ..errors import EncodingFailure


LOCAL_FILE_HEADER_SIGNATURE = 0x04034b50  # PK\x03\x04
CENTRAL_DIRECTORY_SIGNATURE = 0x02014b50  # PK\x01\x02
END_OF_CENTRAL_DIRECTORY_SIGNATURE = 0x06054b50  # PK\x05\x06

VERSION_NEEDED = 20
VERSION_MADE_BY = 20
FLAG_UTF8_NAMES = 0x0800
METHOD_STORED = 0

MAX_ENTRIES = 0xFFFF
MAX_SIZE = 0xFFFFFFFF

LOCAL_HEADER = struct.Struct('<IHHHHHIIIHH')
CENTRAL_HEADER = struct.Struct('<IHHHHHHIIIHHHHHII')
END_RECORD = struct.Struct('<IHHHHIIH')


def make_crc_table() -> List[int]:
    """Build the 256-entry table for the reflected polynomial 0xEDB88320."""
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (0xEDB88320 ^ (c >> 1)) if (c & 1) else (c >> 1)
        table.append(c)
    return table


CRC_TABLE = make_crc_table()


def crc32(data: bytes) -> int:
    """Standard CRC-32 of ``data`` as an unsigned 32-bit integer."""
    crc = 0xFFFFFFFF
    table = CRC_TABLE
    for byte in data:
        crc = (crc >> 8) ^ table[(crc ^ byte) & 0xFF]
    return crc ^ 0xFFFFFFFF


def dos_datetime(date_time: Tuple[int, int, int, int, int, int]) -> Tuple[int, int]:
    """Pack (year, month, day, hour, minute, second) into DOS (time, date) words."""
    year, month, day, hour, minute, second = date_time
    if year < 1980:
        raise EncodingFailure(f"ZIP timestamps cannot predate 1980: {date_time}")
    dos_time = (hour << 11) | (minute << 5) | (second // 2)
    dos_date = ((year - 1980) << 9) | (month << 5) | day
    return dos_time, dos_date


@dataclass
class ZipEntry:
    """A file written into the archive."""
    filename: bytes
    content: bytes
    crc: int
    offset: int

    @property
    def size(self) -> int:
        return len(self.content)


class ZipEncoder:
    """
    Encodes an ordered list of files into a stored ZIP archive.

    The output is deterministic for a given file list and timestamp.
    """

    def __init__(self, date_time: Tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)):
        self.dos_time, self.dos_date = dos_datetime(date_time)

    def encode(self, files: Iterable[Tuple[str, bytes]]) -> bytes:
        """
        Build the archive.

        Args:
            files: (path, content) pairs in archive order

        Returns:
            Complete archive bytes

        Raises:
            EncodingFailure: On duplicate paths or limits that would need ZIP64
        """
        out = bytearray()
        entries: List[ZipEntry] = []
        seen = set()

        for path, content in files:
            if isinstance(content, str):
                content = content.encode('utf-8')
            name = path.replace('\\', '/').lstrip('/')
            if not name:
                raise EncodingFailure("Archive entry has an empty path")
            if name in seen:
                raise EncodingFailure(f"Duplicate archive entry: {name}")
            seen.add(name)

            entry = ZipEntry(
                filename=name.encode('utf-8'),
                content=bytes(content),
                crc=crc32(content),
                offset=len(out)
            )
            self._check_limits(entry, len(entries) + 1)
            out += self._local_header(entry)
            out += entry.filename
            out += entry.content
            entries.append(entry)

        central_offset = len(out)
        for entry in entries:
            out += self._central_header(entry)
            out += entry.filename
        central_size = len(out) - central_offset

        if central_offset > MAX_SIZE or central_size > MAX_SIZE:
            raise EncodingFailure("Archive too large for a ZIP without ZIP64 extensions")

        out += END_RECORD.pack(
            END_OF_CENTRAL_DIRECTORY_SIGNATURE,
            0,  # number of this disk
            0,  # disk where central directory starts
            len(entries),
            len(entries),
            central_size,
            central_offset,
            0   # comment length
        )
        return bytes(out)

    def _check_limits(self, entry: ZipEntry, count: int) -> None:
        if count > MAX_ENTRIES:
            raise EncodingFailure(f"Too many archive entries: {count}")
        if entry.size > MAX_SIZE or entry.offset > MAX_SIZE:
            raise EncodingFailure(f"Entry too large for ZIP: {entry.filename.decode('utf-8')}")
        if len(entry.filename) > 0xFFFF:
            raise EncodingFailure("Entry name too long")

    def _local_header(self, entry: ZipEntry) -> bytes:
        return LOCAL_HEADER.pack(
            LOCAL_FILE_HEADER_SIGNATURE,
            VERSION_NEEDED,
            FLAG_UTF8_NAMES,
            METHOD_STORED,
            self.dos_time,
            self.dos_date,
            entry.crc,
            entry.size,  # compressed size
            entry.size,  # uncompressed size
            len(entry.filename),
            0            # extra field length
        )

    def _central_header(self, entry: ZipEntry) -> bytes:
        return CENTRAL_HEADER.pack(
            CENTRAL_DIRECTORY_SIGNATURE,
            VERSION_MADE_BY,
            VERSION_NEEDED,
            FLAG_UTF8_NAMES,
            METHOD_STORED,
            self.dos_time,
            self.dos_date,
            entry.crc,
            entry.size,
            entry.size,
            len(entry.filename),
            0,  # extra field length
            0,  # file comment length
            0,  # disk number start
            0,  # internal attributes
            0,  # external attributes
            entry.offset
        )
