"""Testy odczytu etykiety woluminu z katalogu głównego."""

from __future__ import annotations

from datetime import date, datetime

from synthetic_data import SECTOR, boot_sector, dos_datetime, fat12_image, volume_label_entry
from volume_analyzer.core.models import MediaKind, SectorGeometry
from volume_analyzer.drivers import MemorySectorSource
from volume_analyzer.fat import FatClassifier, decode
from volume_analyzer.fat.directory import dos_to_datetime, find_volume_label, scan_root_directory


def test_dos_to_datetime_decodes_packed_words() -> None:
    dos_date, dos_time = dos_datetime(2001, 5, 17, 12, 30, 10)

    assert dos_to_datetime(dos_date, dos_time) == datetime(2001, 5, 17, 12, 30, 10)
    assert dos_to_datetime(0, 0) is None


def test_find_volume_label_skips_deleted_and_regular_entries() -> None:
    deleted = b"\xE5" + volume_label_entry(b"OLDLABEL")[1:]
    regular = bytearray(volume_label_entry(b"COMMAND COM"))
    regular[0x0B] = 0x20
    directory = deleted + bytes(regular) + volume_label_entry(b"CURRENT")

    fields = find_volume_label(directory, "cp437")

    assert fields is not None
    assert fields.volume_label == "CURRENT"


def test_label_timestamps_and_lowercase_flag() -> None:
    created = dos_datetime(1995, 8, 24, 9, 15, 0)
    modified = dos_datetime(1996, 1, 2, 10, 0, 4)
    accessed, _ = dos_datetime(1997, 3, 4)
    entry = volume_label_entry(
        b"DATA",
        created=created,
        centiseconds=50,
        modified=modified,
        accessed=accessed,
        case_flags=0x18,
    )

    fields = find_volume_label(entry, "cp437")

    assert fields is not None
    assert fields.volume_label == "data"
    assert fields.created == datetime(1995, 8, 24, 9, 15, 0, 500000)
    assert fields.modified == datetime(1996, 1, 2, 10, 0, 4)
    assert fields.accessed == date(1997, 3, 4)


def test_scan_root_directory_reads_label_from_image() -> None:
    image = fat12_image(boot_sector(), total_sectors=2880, root_entries=volume_label_entry(b"MYDISK"))
    source = MemorySectorSource(bytes(image))
    geometry = SectorGeometry(SECTOR, source.total_sectors, MediaKind.BLOCK_MEDIA, 0, source.total_sectors - 1)
    result = FatClassifier().classify(source, geometry)

    fields = scan_root_directory(source, result, decode(result), "cp437")

    assert fields is not None
    assert fields.volume_label == "MYDISK"
    assert fields.created is None


def test_scan_root_directory_is_skipped_on_optical_media() -> None:
    boot = boot_sector(sectors=256, sectors_per_fat=4, reserved=4, root_entries=64)
    image = bytearray(64 * 2048)
    image[0:SECTOR] = boot
    source = MemorySectorSource(bytes(image), sector_size=2048, media_kind=MediaKind.OPTICAL_DISC)
    geometry = SectorGeometry(2048, 64, MediaKind.OPTICAL_DISC, 0, 63)
    result = FatClassifier().classify(source, geometry)

    assert scan_root_directory(source, result, decode(result), "cp437") is None
