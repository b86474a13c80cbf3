"""Dekodowanie superbloku System V do wspólnego rekordu."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from volume_analyzer.layouts.fields import ByteOrder
from volume_analyzer.layouts.registry import LayoutKind
from .classifier import BLOCK_SIZES, SysVMatch

XENIX_CLEAN = 0x46
SYSV_CLEAN_BASE = 0x7C269D38


@dataclass(frozen=True, slots=True)
class SysVSuperblock:
    """Znormalizowane pola superbloku, wspólne dla wszystkich odmian."""

    variant: LayoutKind
    byte_order: ByteOrder
    location: int
    block_size: int
    fs_type: Optional[int]
    first_data_zone: int
    zones: int
    free_zones: int
    free_blocks_on_list: int
    free_inodes: int
    free_inodes_on_list: int
    cylinder_blocks: Optional[int]
    gap_blocks: Optional[int]
    free_list_locked: bool
    inode_cache_locked: bool
    being_modified: bool
    read_only: bool
    timestamp: int
    volume_name: bytes
    pack_name: bytes
    clean: Optional[bool]

    @property
    def updated_at(self) -> Optional[datetime]:
        return unix_to_datetime(self.timestamp)

    @property
    def known_block_size(self) -> bool:
        return self.fs_type is None or self.fs_type in BLOCK_SIZES


def unix_to_datetime(timestamp: int) -> Optional[datetime]:
    """Czas UNIX w UTC albo ``None`` poza zakresem ``datetime``."""

    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def decode(match: SysVMatch) -> SysVSuperblock:
    """Odczytuje pola wykrytego wariantu w wykrytej kolejności bajtów."""

    values = match.decode()
    kind = match.kind
    has_type = "type" in values
    fs_type = values["type"] if has_type else None
    block_size = BLOCK_SIZES.get(fs_type, 512) if has_type else 512

    clean: Optional[bool] = None
    if kind in (LayoutKind.XENIX_V1, LayoutKind.XENIX_V3):
        clean = values["clean"] == XENIX_CLEAN
    elif kind in (LayoutKind.SYSV_R2, LayoutKind.SYSV_R4):
        clean = values["state"] == (SYSV_CLEAN_BASE - values["time"]) & 0xFFFFFFFF

    return SysVSuperblock(
        variant=kind,
        byte_order=match.byte_order,
        location=match.location,
        block_size=block_size,
        fs_type=fs_type,
        first_data_zone=values["isize"],
        zones=values["fsize"],
        free_zones=values["tfree"],
        free_blocks_on_list=values["nfree"],
        free_inodes=values["tinode"],
        free_inodes_on_list=values["ninode"],
        cylinder_blocks=values.get("cylblks"),
        gap_blocks=values.get("gapblks"),
        free_list_locked=values["flock"] > 0,
        inode_cache_locked=values["ilock"] > 0,
        being_modified=values["fmod"] > 0,
        read_only=values["ronly"] > 0,
        timestamp=values["time"],
        volume_name=values["fname"],
        pack_name=values["fpack"],
        clean=clean,
    )


__all__ = ["SysVSuperblock", "decode", "unix_to_datetime"]
