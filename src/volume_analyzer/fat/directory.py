"""Skan katalogu głównego w poszukiwaniu etykiety woluminu i jej znaczników czasu."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from structlog import get_logger

from volume_analyzer.drivers.base import SectorSource
from volume_analyzer.layouts.fields import FieldReader
from volume_analyzer.layouts.registry import LayoutKind
from .classifier import AUX_ROOT_DIRECTORY, DIRECTORY_ENTRY_SIZE, ClassificationResult
from .decoder import NormalizedVolumeDescriptor

DIRENT_MIN = 0x20
DIRENT_E5 = 0x05
DIRENT_SUBDIR = 0x2E
DIRENT_DELETED = 0xE5
VOLUME_LABEL_ATTRIBUTES = frozenset({0x08, 0x28})
CASE_ALL_LOWER = 0x18

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DirectoryTimestampFields:
    """Etykieta i znaczniki czasu odczytane z wpisu etykiety woluminu."""

    volume_label: Optional[str] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    accessed: Optional[date] = None


def dos_to_datetime(dos_date: int, dos_time: int) -> Optional[datetime]:
    """Zamienia spakowane słowa daty i czasu DOS na ``datetime``.

    Zwraca ``None``, gdy słowa nie tworzą poprawnej daty.
    """

    year = 1980 + (dos_date >> 9)
    month = (dos_date >> 5) & 0x0F
    day = dos_date & 0x1F
    hour = dos_time >> 11
    minute = (dos_time >> 5) & 0x3F
    second = (dos_time & 0x1F) * 2
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None


def parse_volume_label_entry(entry: bytes, encoding: str) -> DirectoryTimestampFields:
    reader = FieldReader(entry)
    label = entry[0:11].decode(encoding, errors="replace").strip()
    if label and reader.uint(0x0C, 1) & CASE_ALL_LOWER == CASE_ALL_LOWER:
        label = label.lower()

    created: Optional[datetime] = None
    ctime = reader.uint(0x0E, 2)
    cdate = reader.uint(0x10, 2)
    if ctime > 0 and cdate > 0:
        created = dos_to_datetime(cdate, ctime)
        centiseconds = reader.uint(0x0D, 1)
        if created is not None and centiseconds > 0:
            created += timedelta(milliseconds=centiseconds * 10)

    modified: Optional[datetime] = None
    mtime = reader.uint(0x16, 2)
    mdate = reader.uint(0x18, 2)
    if mtime > 0 and mdate > 0:
        modified = dos_to_datetime(mdate, mtime)

    accessed: Optional[date] = None
    adate = reader.uint(0x12, 2)
    if adate > 0:
        stamp = dos_to_datetime(adate, 0)
        accessed = stamp.date() if stamp is not None else None

    return DirectoryTimestampFields(volume_label=label or None, created=created, modified=modified, accessed=accessed)


def find_volume_label(directory: bytes, encoding: str) -> Optional[DirectoryTimestampFields]:
    """Zwraca dane pierwszego wpisu etykiety woluminu w buforze katalogu."""

    for offset in range(0, len(directory) - DIRECTORY_ENTRY_SIZE + 1, DIRECTORY_ENTRY_SIZE):
        first = directory[offset]
        if first < DIRENT_MIN and first != DIRENT_E5:
            continue
        if first in (DIRENT_SUBDIR, DIRENT_DELETED):
            continue
        if directory[offset + 0x0B] not in VOLUME_LABEL_ATTRIBUTES:
            continue
        return parse_volume_label_entry(directory[offset : offset + DIRECTORY_ENTRY_SIZE], encoding)
    return None


def scan_root_directory(
    source: SectorSource,
    result: ClassificationResult,
    descriptor: NormalizedVolumeDescriptor,
    encoding: str,
) -> Optional[DirectoryTimestampFields]:
    """Czyta katalog główny partycji i szuka w nim etykiety woluminu."""

    geometry = result.geometry
    if geometry.is_optical:
        return None

    if result.kind is LayoutKind.DEC_RAINBOW and AUX_ROOT_DIRECTORY in result.auxiliary_buffers:
        directory = result.auxiliary_buffers[AUX_ROOT_DIRECTORY]
    else:
        lba = geometry.partition_start + descriptor.root_directory_sector
        if lba >= geometry.partition_end or descriptor.root_directory_sectors <= 0:
            return None
        count = min(descriptor.root_directory_sectors, geometry.partition_end - lba + 1, source.total_sectors - lba)
        if count <= 0:
            return None
        directory = source.read_sectors(lba, count)

    fields = find_volume_label(directory, encoding)
    if fields is not None:
        logger.debug("volume-label-found", label=fields.volume_label, start=geometry.partition_start)
    return fields


__all__ = [
    "DirectoryTimestampFields",
    "dos_to_datetime",
    "find_volume_label",
    "parse_volume_label_entry",
    "scan_root_directory",
]
