"""Raport tekstowy i metadane dla superbloków rodziny System V."""

from __future__ import annotations

from typing import List

from volume_analyzer.core.models import FileSystemMetadata, FileSystemType, VolumeDescription
from volume_analyzer.layouts.registry import LayoutKind
from .decoder import SysVSuperblock

RAW_CD_SECTOR_SIZES = frozenset({2336, 2352, 2448})

_TITLES = {
    LayoutKind.XENIX_V1: "XENIX filesystem",
    LayoutKind.XENIX_V3: "XENIX filesystem",
    LayoutKind.SYSV_R4: "System V Release 4 filesystem",
    LayoutKind.SYSV_R2: "System V Release 2 filesystem",
    LayoutKind.COHERENT: "Coherent UNIX filesystem",
    LayoutKind.UNIX_V7: "UNIX 7th Edition filesystem",
}

_FS_TYPES = {
    LayoutKind.XENIX_V1: FileSystemType.XENIX,
    LayoutKind.XENIX_V3: FileSystemType.XENIX,
    LayoutKind.SYSV_R4: FileSystemType.SYSV_R4,
    LayoutKind.SYSV_R2: FileSystemType.SYSV_R2,
    LayoutKind.COHERENT: FileSystemType.COHERENT,
    LayoutKind.UNIX_V7: FileSystemType.UNIX7,
}

_XENIX = (LayoutKind.XENIX_V1, LayoutKind.XENIX_V3)
_SYSV = (LayoutKind.SYSV_R2, LayoutKind.SYSV_R4)


def _c_string(data: bytes, encoding: str) -> str:
    return data.split(b"\x00", 1)[0].decode(encoding, errors="replace")


def _warning(block_size: int, device: int) -> str:
    return f"WARNING: Filesystem indicates {block_size} bytes/block while device indicates {device} bytes/sector"


def _block_size_lines(superblock: SysVSuperblock, sector_size: int) -> List[str]:
    kind = superblock.variant
    bs = superblock.block_size
    lines: List[str] = []
    if kind in _XENIX:
        if superblock.known_block_size:
            lines.append(f"{bs} bytes per block")
        else:
            lines.append(f"Unknown s_type value: {superblock.fs_type}")
        device = 2048 if sector_size in RAW_CD_SECTOR_SIZES else sector_size
        if bs != device:
            lines.append(_warning(bs, device))
    elif kind in _SYSV:
        if not superblock.known_block_size:
            lines.append(f"Unknown s_type value: {superblock.fs_type}")
        lines.append(f"{bs} bytes per block")
    elif sector_size != 512:
        lines.append(_warning(512, sector_size))
    return lines


def build_report(superblock: SysVSuperblock, sector_size: int, *, encoding: str = "iso-8859-15") -> VolumeDescription:
    """Formatuje superblok do raportu i znormalizowanych metadanych."""

    kind = superblock.variant
    bs = superblock.block_size
    lines = [_TITLES[kind]]
    lines.extend(_block_size_lines(superblock, sector_size))
    lines.append(f"{superblock.zones} zones on volume ({superblock.zones * bs} bytes)")
    lines.append(f"{superblock.free_zones} free zones on volume ({superblock.free_zones * bs} bytes)")
    lines.append(f"{superblock.free_blocks_on_list} free blocks on list ({superblock.free_blocks_on_list * bs} bytes)")
    if kind in _XENIX or kind in _SYSV:
        cylinder = superblock.cylinder_blocks or 0
        gap = superblock.gap_blocks or 0
        lines.append(f"{cylinder} blocks per cylinder ({cylinder * bs} bytes)")
        lines.append(f"{gap} blocks per gap ({gap * bs} bytes)")
    lines.append(f"First data zone: {superblock.first_data_zone}")
    lines.append(f"{superblock.free_inodes} free inodes on volume")
    lines.append(f"{superblock.free_inodes_on_list} free inodes on list")

    if superblock.free_list_locked:
        lines.append("Free block list is locked")
    if superblock.inode_cache_locked:
        lines.append("inode cache is locked")
    if superblock.being_modified:
        lines.append("Superblock is being modified")
    if superblock.read_only:
        lines.append("Volume is mounted read-only")

    updated = superblock.updated_at
    lines.append(f"Superblock last updated on {updated if updated is not None else superblock.timestamp}")

    volume_name = _c_string(superblock.volume_name, encoding)
    lines.append(f"Volume name: {volume_name}")
    lines.append(f"Pack name: {_c_string(superblock.pack_name, encoding)}")

    if superblock.clean is True:
        lines.append("Volume is clean")
    elif superblock.clean is False:
        lines.append("Volume is dirty")

    metadata = FileSystemMetadata(
        type=_FS_TYPES[kind],
        cluster_size=bs,
        clusters=superblock.zones,
        volume_name=volume_name or None,
        free_clusters=superblock.free_zones,
        modification_date=updated if superblock.timestamp != 0 else None,
        dirty=superblock.clean is False,
    )
    return VolumeDescription(report="\n".join(lines) + "\n", metadata=metadata, descriptor=superblock)


__all__ = ["build_report"]
