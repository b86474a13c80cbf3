"""Utilities for building deterministic synthetic disk images for tests.

This module is intentionally dependency-free and fast.

It supports:
- DOS/Atari/MSX/Apricot/FAT32 boot sectors with arbitrary BPB values,
- small FAT12 images with FAT copies and a root directory,
- System V family superblocks in any byte order,
- an in-memory driver compatible with detectors and the analysis manager.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from volume_analyzer.core.models import DiskSource, MediaKind, SourceType, Volume
from volume_analyzer.drivers import DriverCapabilities, DriverError, MemorySectorSource

SECTOR = 512


def boot_sector(
    *,
    jump: bytes = b"\xEB\x3C\x90",
    oem: bytes = b"MSDOS5.0",
    bytes_per_sector: int = 512,
    sectors_per_cluster: int = 4,
    reserved: int = 1,
    fats: int = 2,
    root_entries: int = 224,
    sectors: int = 2880,
    media: int = 0xF0,
    sectors_per_fat: int = 9,
    sectors_per_track: int = 18,
    heads: int = 2,
    hidden: int = 0,
    big_sectors: int = 0,
    drive: int = 0,
    flags: int = 0,
    signature: int = 0x29,
    serial: int = 0x1234ABCD,
    label: bytes = b"NO NAME    ",
    fs_type: bytes = b"FAT12   ",
    boot_signature: bool = True,
) -> bytearray:
    """DOS boot sector; extended fields are written only with signature 0x28/0x29."""

    sector = bytearray(SECTOR)
    sector[0 : len(jump)] = jump
    sector[3:11] = oem
    struct.pack_into(
        "<HBHBHHBHHHI",
        sector,
        0x0B,
        bytes_per_sector,
        sectors_per_cluster,
        reserved,
        fats,
        root_entries,
        sectors,
        media,
        sectors_per_fat,
        sectors_per_track,
        heads,
        hidden,
    )
    struct.pack_into("<I", sector, 0x20, big_sectors)
    if signature in (0x28, 0x29):
        struct.pack_into("<BBBI", sector, 0x24, drive, flags, signature, serial)
        if signature == 0x29:
            sector[0x2B:0x36] = label
            sector[0x36:0x3E] = fs_type
    if boot_signature:
        sector[510:512] = b"\x55\xAA"
    return sector


def fat32_boot_sector(
    *,
    oem: bytes = b"MSWIN4.1",
    sectors_per_cluster: int = 1,
    reserved: int = 32,
    fats: int = 2,
    big_sectors: int = 256,
    sectors_per_fat: int = 2,
    version: int = 0,
    root_cluster: int = 2,
    fsinfo: int = 1,
    backup: int = 6,
    mirror_flags: int = 0,
    signature: int = 0x29,
    serial: int = 0xCAFEBABE,
    label: bytes = b"FAT32VOL   ",
    huge_sectors: int = 0,
) -> bytearray:
    sector = bytearray(SECTOR)
    sector[0:3] = b"\xEB\x58\x90"
    sector[3:11] = oem
    struct.pack_into(
        "<HBHBHHBHHHII",
        sector,
        0x0B,
        512,
        sectors_per_cluster,
        reserved,
        fats,
        0,
        0,
        0xF8,
        0,
        63,
        255,
        0,
        big_sectors,
    )
    struct.pack_into("<IHHIHH", sector, 0x24, sectors_per_fat, mirror_flags, version, root_cluster, fsinfo, backup)
    struct.pack_into("<BBBI", sector, 0x40, 0x80, 0, signature, serial)
    if signature == 0x29:
        sector[0x47:0x52] = label
        sector[0x52:0x5A] = b"FAT32   "
    else:
        struct.pack_into("<Q", sector, 0x52, huge_sectors)
    sector[510:512] = b"\x55\xAA"
    return sector


def fsinfo_sector(*, free_clusters: int, last_allocated: int) -> bytes:
    sector = bytearray(SECTOR)
    struct.pack_into("<I", sector, 0, 0x41615252)
    struct.pack_into("<III", sector, 484, 0x61417272, free_clusters, last_allocated)
    struct.pack_into("<I", sector, 508, 0xAA550000)
    return bytes(sector)


def fat_sector(media: int) -> bytes:
    """First FAT sector: media byte followed by an end-of-chain marker."""

    return bytes([media, 0xFF, 0xFF]) + bytes(SECTOR - 3)


def dos_datetime(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> tuple[int, int]:
    dos_date = ((year - 1980) << 9) | (month << 5) | day
    dos_time = (hour << 11) | (minute << 5) | (second // 2)
    return dos_date, dos_time


def volume_label_entry(
    name: bytes,
    *,
    created: tuple[int, int] | None = None,
    centiseconds: int = 0,
    accessed: int = 0,
    modified: tuple[int, int] | None = None,
    case_flags: int = 0,
) -> bytes:
    entry = bytearray(32)
    entry[0:11] = name.ljust(11)
    entry[0x0B] = 0x08
    entry[0x0C] = case_flags
    entry[0x0D] = centiseconds
    if created is not None:
        struct.pack_into("<HH", entry, 0x0E, created[1], created[0])
    struct.pack_into("<H", entry, 0x12, accessed)
    if modified is not None:
        struct.pack_into("<HH", entry, 0x16, modified[1], modified[0])
    return bytes(entry)


def fat12_image(
    boot: bytes,
    *,
    total_sectors: int,
    reserved: int = 1,
    fats: int = 2,
    sectors_per_fat: int = 9,
    media: int = 0xF0,
    root_entries: bytes = b"",
    sector_size: int = SECTOR,
) -> bytearray:
    """Image with boot sector, FAT copies and root directory in the usual places."""

    image = bytearray(total_sectors * sector_size)
    image[0 : len(boot)] = boot
    for copy in range(fats):
        lba = reserved + copy * sectors_per_fat
        image[lba * sector_size : lba * sector_size + 3] = bytes([media, 0xFF, 0xFF])
    root_lba = reserved + fats * sectors_per_fat
    image[root_lba * sector_size : root_lba * sector_size + len(root_entries)] = root_entries
    return image


def put_sector(image: bytearray, lba: int, data: bytes, *, sector_size: int = SECTOR) -> None:
    image[lba * sector_size : lba * sector_size + len(data)] = data


def dec_rainbow_image(*, fat_id: int = 0xFA) -> bytearray:
    image = bytearray(800 * SECTOR)
    image[0] = 0xF3
    for lba in (0x14, 0x1A):
        put_sector(image, lba, bytes([fat_id, 0xFF, 0xFF]))
    put_sector(image, 0x17, volume_label_entry(b"RAINBOW"))
    return image


def legacy_floppy_image() -> bytearray:
    """5.25" 160 KiB floppy (media 0xFE) without any BPB."""

    image = bytearray(320 * SECTOR)
    put_sector(image, 1, fat_sector(0xFE))
    put_sector(image, 2, fat_sector(0xFE))
    return image


# ----------------------------------------------------------------------
# System V
# ----------------------------------------------------------------------


def _pack(order: str, fmt: str, buffer: bytearray, offset: int, *values: int) -> None:
    prefix = "<" if order == "little" else ">"
    struct.pack_into(prefix + fmt, buffer, offset, *values)


def pdp32(value: int) -> bytes:
    """32-bit value in PDP-11 order: high word first, each word little-endian."""

    return struct.pack("<HH", value >> 16, value & 0xFFFF)


def xenix_superblock(
    *,
    order: str = "little",
    fs_type: int = 1,
    fsize: int = 64,
    time: int = 1_000_000_000,
    clean: int = 0x46,
    fname: bytes = b"root",
    fpack: bytes = b"pack1",
) -> bytearray:
    sb = bytearray(0x400)
    _pack(order, "HIH", sb, 0x000, 12, fsize, 7)
    _pack(order, "H", sb, 0x198, 3)
    sb[0x262:0x266] = b"\x00\x00\x00\x00"
    _pack(order, "iIHHH", sb, 0x266, time, 40, 25, 18, 0)
    sb[0x278 : 0x278 + len(fname)] = fname
    sb[0x27E : 0x27E + len(fpack)] = fpack
    sb[0x284] = clean
    _pack(order, "II", sb, 0x3F8, 0x002B5544, fs_type)
    return sb


def sysv_superblock(
    *,
    order: str = "little",
    release: int = 4,
    fs_type: int = 1,
    fsize: int = 64,
    time: int = 1_000_000_000,
    clean: bool = True,
    fname: bytes = b"usr",
    fpack: bytes = b"disk0",
) -> bytearray:
    sb = bytearray(0x200)
    state = (0x7C269D38 - time) & 0xFFFFFFFF if clean else 0
    if release == 4:
        _pack(order, "HHIH", sb, 0x000, 10, 0, fsize, 5)
        _pack(order, "H", sb, 0x0D4, 4)
        sb[0x1A0] = 1
        _pack(order, "IHH", sb, 0x1A4, time, 16, 2)
        _pack(order, "IH", sb, 0x1B0, 30, 20)
        sb[0x1B6 : 0x1B6 + len(fname)] = fname
        sb[0x1BC : 0x1BC + len(fpack)] = fpack
    else:
        _pack(order, "HIH", sb, 0x000, 10, fsize, 5)
        _pack(order, "H", sb, 0x0D0, 4)
        _pack(order, "IHH", sb, 0x19E, time, 16, 2)
        _pack(order, "IH", sb, 0x1AA, 30, 20)
        sb[0x1B0 : 0x1B0 + len(fname)] = fname
        sb[0x1B6 : 0x1B6 + len(fpack)] = fpack
    _pack(order, "III", sb, 0x1F4, state, 0xFD187E20, fs_type)
    return sb


def coherent_superblock(*, fsize: int = 0x00010040, time: int = 1_000_000_000) -> bytearray:
    sb = bytearray(0x200)
    struct.pack_into("<H", sb, 0x000, 8)
    sb[0x002:0x006] = pdp32(fsize)
    struct.pack_into("<H", sb, 0x006, 9)
    struct.pack_into("<H", sb, 0x108, 6)
    sb[0x1D6:0x1DA] = pdp32(time)
    sb[0x1DA:0x1DE] = pdp32(300)
    struct.pack_into("<H", sb, 0x1DE, 50)
    sb[0x1E4:0x1EA] = b"noname"
    sb[0x1EA:0x1F0] = b"nopack"
    return sb


def v7_superblock(*, order: str = "little", fsize: int = 63, nfree: int = 10, ninode: int = 20) -> bytearray:
    sb = bytearray(0x200)
    _pack(order, "HIH", sb, 0x000, 6, fsize, nfree)
    _pack(order, "H", sb, 0x0D0, ninode)
    _pack(order, "IIH", sb, 0x19E, 0, 12, 34)
    return sb


def superblock_image(superblock: bytes, *, byte_offset: int, total_sectors: int = 64) -> bytearray:
    image = bytearray(total_sectors * SECTOR)
    image[byte_offset : byte_offset + len(superblock)] = superblock
    return image


# ----------------------------------------------------------------------
# Sterownik w pamięci
# ----------------------------------------------------------------------


@dataclass
class InMemoryDriver:
    """Simple in-memory driver for unit tests.

    Without explicit volumes the whole buffer is exposed as one volume.
    """

    data: bytes
    sector_size: int = SECTOR
    media_kind: MediaKind = MediaKind.BLOCK_MEDIA
    volumes: List[Volume] = field(default_factory=list)
    name: str = "memory"
    capabilities: DriverCapabilities = field(default_factory=lambda: DriverCapabilities(supports_disk_images=True))
    opened: bool = False
    closed: bool = False

    def __post_init__(self) -> None:
        self.data = bytes(self.data)
        if not self.volumes:
            self.volumes = [Volume(identifier="memory:0", offset=0, size=len(self.data))]
        self._source = DiskSource(
            identifier="memory",
            source_type=SourceType.MEMORY,
            display_name="Memory image",
            path=Path("memory.img"),
        )

    def enumerate_sources(self) -> List[DiskSource]:
        return [self._source]

    def open_source(self, source: DiskSource) -> None:
        if source != self._source:
            raise DriverError("Nieznane źródło")
        self.opened = True

    def close(self) -> None:
        self.opened = False
        self.closed = True

    def list_volumes(self) -> List[Volume]:
        if not self.opened:
            raise DriverError("Źródło nie zostało otwarte")
        return list(self.volumes)

    def sector_source(self) -> MemorySectorSource:
        return MemorySectorSource(self.data, sector_size=self.sector_size, media_kind=self.media_kind)

    def read(self, offset: int, size: int) -> bytes:
        return self.data[offset : offset + size]
