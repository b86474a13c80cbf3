"""Formatowanie opisu FAT do raportu tekstowego i metadanych narzędzia."""

from __future__ import annotations

import hashlib
from typing import List, Optional, Sequence

from volume_analyzer.core.models import FileSystemMetadata, FileSystemType, VolumeDescription
from volume_analyzer.layouts.catalog import BootCodeSignature
from volume_analyzer.layouts.fields import ByteOrder, FieldReader
from volume_analyzer.layouts.predicates import ascii_printable_run, bounded_chs
from volume_analyzer.layouts.registry import LayoutKind
from .classifier import ClassificationResult
from .decoder import (
    ATARI_BOOT_CHECKSUM,
    VOLUME_TRACKER_MARK,
    Fat32Extension,
    FatSubtype,
    NormalizedVolumeDescriptor,
    atari_checksum,
)
from .directory import DirectoryTimestampFields

_SUBTYPE_TO_FS = {
    FatSubtype.FAT12: FileSystemType.FAT12,
    FatSubtype.FAT16: FileSystemType.FAT16,
    FatSubtype.FAT32: FileSystemType.FAT32,
    FatSubtype.FAT_PLUS: FileSystemType.FAT_PLUS,
}


def _c_string(data: bytes, encoding: str) -> str:
    return data.split(b"\x00", 1)[0].decode(encoding, errors="replace")


def _space_padded(data: Optional[bytes], encoding: str) -> Optional[str]:
    if not data:
        return None
    text = data.decode(encoding, errors="replace").replace("\x00", "").rstrip()
    return text or None


def _system_identifier(descriptor: NormalizedVolumeDescriptor, encoding: str) -> Optional[str]:
    oem = descriptor.oem_name
    if not oem:
        return None
    if descriptor.variant is LayoutKind.ATARI or descriptor.is_fat32:
        if descriptor.is_fat32 and descriptor.volume_tracker_modified:
            return None
        return _c_string(oem, encoding) or None
    if descriptor.volume_tracker_modified:
        return None
    if ascii_printable_run(oem):
        return _c_string(oem, encoding) or None
    if oem[0] < 0x20 and ascii_printable_run(oem[1:]):
        return _c_string(oem[1:], encoding) or None
    return None


def _volume_tracker_line(descriptor: NormalizedVolumeDescriptor) -> bool:
    if descriptor.variant is LayoutKind.ATARI:
        return descriptor.atari is not None and descriptor.atari.serial == VOLUME_TRACKER_MARK
    return len(descriptor.oem_name) == 8 and descriptor.volume_tracker_modified


def _type_line(descriptor: NormalizedVolumeDescriptor) -> str:
    if descriptor.subtype is FatSubtype.FAT_PLUS:
        return "FAT+"
    if descriptor.subtype is FatSubtype.FAT32:
        return "Microsoft FAT32"
    if descriptor.subtype is FatSubtype.FAT16:
        return "Microsoft FAT16"
    if descriptor.variant is LayoutKind.ATARI:
        return "Atari FAT12"
    if descriptor.variant is LayoutKind.APRICOT:
        return "Apricot FAT12"
    return "Microsoft FAT12"


def _flag_lines(flags: Optional[int]) -> List[str]:
    lines: List[str] = []
    if flags is None or flags & 0xF8:
        return lines
    if flags & 0x01:
        lines.append("Volume should be checked on next mount.")
    if flags & 0x02:
        lines.append("Disk surface should be on next mount.")
    return lines


def _is_dirty(descriptor: NormalizedVolumeDescriptor) -> bool:
    flags = descriptor.volume_flags
    if flags is None or flags & 0xF8:
        return False
    if not descriptor.is_fat32 and descriptor.signature_byte not in (0x28, 0x29) and not descriptor.andos_oem:
        return False
    return bool(flags & 0x01)


def _fat32_lines(descriptor: NormalizedVolumeDescriptor, fat32: Fat32Extension) -> List[str]:
    lines = [
        f"{descriptor.bytes_per_sector} bytes per sector.",
        f"{descriptor.sectors_per_cluster} sectors per cluster.",
        f"{descriptor.reserved_sectors} sectors reserved between BPB and FAT.",
        f"{descriptor.sector_count} sectors on volume ({descriptor.sector_count * descriptor.bytes_per_sector} bytes).",
        f"{descriptor.total_clusters} clusters on volume.",
        f"Media descriptor: 0x{descriptor.media_descriptor:02X}",
        f"{descriptor.sectors_per_fat} sectors per FAT.",
        f"{descriptor.sectors_per_track} sectors per track.",
        f"{descriptor.head_count} heads.",
        f"{descriptor.hidden_sectors} hidden sectors before BPB.",
        f"Cluster of root directory: {fat32.root_cluster}",
        f"Sector of FSINFO structure: {fat32.fsinfo_sector}",
        f"Sector of backup FAT32 parameter block: {fat32.backup_sector}",
        f"Drive number: 0x{descriptor.drive_number or 0:02X}",
        f"Volume Serial Number: 0x{descriptor.serial_number or 0:08X}",
    ]
    lines.extend(_flag_lines(descriptor.volume_flags))

    if fat32.mirror_flags & 0x80:
        lines.append(f"FATs are out of sync. FAT #{fat32.mirror_flags & 0xF} is in use.")
    else:
        lines.append("All copies of FAT are the same.")
    if fat32.mirror_flags & 0x6F20 == 0x6F20:
        lines.append("DR-DOS will boot this FAT32 using CHS.")
    elif fat32.mirror_flags & 0x4F20 == 0x4F20:
        lines.append("DR-DOS will boot this FAT32 using LBA.")

    if descriptor.signature_byte == 0x29 and descriptor.fs_type_tag is not None:
        lines.append(f"Filesystem type: {descriptor.fs_type_tag.decode('ascii', errors='replace')}")
    if fat32.free_clusters is not None:
        lines.append(f"{fat32.free_clusters} free clusters")
    if fat32.last_allocated_cluster is not None:
        lines.append(f"Last allocated cluster {fat32.last_allocated_cluster}")
    return lines


def _fat_lines(descriptor: NormalizedVolumeDescriptor, result: ClassificationResult) -> List[str]:
    geometry = result.geometry
    lines = [
        f"{descriptor.bytes_per_sector} bytes per sector.",
        f"{descriptor.sector_count} sectors on volume ({descriptor.sector_count * descriptor.bytes_per_sector} bytes).",
        f"{descriptor.sectors_per_cluster} sectors per cluster.",
        f"{descriptor.total_clusters} clusters on volume.",
        f"{descriptor.reserved_sectors} sectors reserved between BPB and FAT.",
        f"{descriptor.fat_count} FATs.",
        f"{descriptor.root_entries} entries on root directory.",
    ]
    if descriptor.media_descriptor > 0:
        lines.append(f"Media descriptor: 0x{descriptor.media_descriptor:02X}")
    lines.append(f"{descriptor.sectors_per_fat} sectors per FAT.")
    if bounded_chs(descriptor.sectors_per_track, descriptor.head_count):
        lines.append(f"{descriptor.sectors_per_track} sectors per track.")
        lines.append(f"{descriptor.head_count} heads.")
    if descriptor.hidden_sectors <= geometry.partition_start:
        lines.append(f"{descriptor.hidden_sectors} hidden sectors before BPB.")

    if descriptor.signature_byte in (0x28, 0x29) or descriptor.andos_oem:
        lines.append(f"Drive number: 0x{descriptor.drive_number or 0:02X}")
        if descriptor.volume_serial is not None:
            lines.append(f"Volume Serial Number: {descriptor.volume_serial}")
        lines.extend(_flag_lines(descriptor.volume_flags))
        if (descriptor.signature_byte == 0x29 or descriptor.andos_oem) and descriptor.fs_type_tag is not None:
            lines.append(f"Filesystem type: {descriptor.fs_type_tag.decode('ascii', errors='replace')}")
    elif descriptor.variant is LayoutKind.ATARI and descriptor.volume_serial is not None:
        lines.append(f"Volume Serial Number: {descriptor.volume_serial}")

    if descriptor.variant is LayoutKind.ATARI:
        lines.extend(_atari_lines(descriptor, result.raw_buffer))
    return lines


def _atari_lines(descriptor: NormalizedVolumeDescriptor, raw_buffer: bytes) -> List[str]:
    atari = descriptor.atari
    if atari is None or atari_checksum(raw_buffer[:512]) != ATARI_BOOT_CHECKSUM:
        return []
    lines = [
        f"cmdload will be loaded with value {FieldReader(raw_buffer, ByteOrder.BIG).uint(0x1E, 2):04X}h",
        f"Boot program will be loaded at address {atari.ldaaddr:04X}h",
        f"FAT and directory will be cached at address {atari.fatbuf:04X}h",
    ]
    if atari.ldmode == 0:
        name = atari.fname[:8].decode("ascii", errors="replace").strip()
        extension = atari.fname[8:11].decode("ascii", errors="replace").strip()
        filename = f"{name}.{extension}" if extension else name
        lines.append(f'Boot program resides in file "{filename}"')
    else:
        lines.append(
            f"Boot program starts in sector {atari.ssect} and is {atari.sectcnt} sectors long "
            f"({atari.sectcnt * descriptor.bytes_per_sector} bytes)"
        )
    return lines


def boot_code_digest(boot_code: bytes) -> str:
    """Skrót SHA-1 kodu rozruchowego."""

    return hashlib.sha1(boot_code).hexdigest()


def build_report(
    descriptor: NormalizedVolumeDescriptor,
    result: ClassificationResult,
    directory: Optional[DirectoryTimestampFields] = None,
    *,
    encoding: str = "cp437",
    boot_signatures: Sequence[BootCodeSignature] = (),
) -> VolumeDescription:
    """Buduje raport tekstowy i znormalizowane metadane wolumenu FAT."""

    lines = [_type_line(descriptor)]
    system_identifier = _system_identifier(descriptor, encoding)
    if _volume_tracker_line(descriptor):
        lines.append("Volume has been modified by Windows 9x/Me Volume Tracker.")
    if system_identifier is not None:
        lines.append(f"OEM Name: {system_identifier.strip()}")

    if descriptor.fat32 is not None:
        lines.extend(_fat32_lines(descriptor, descriptor.fat32))
    else:
        lines.extend(_fat_lines(descriptor, result))

    volume_name: Optional[str] = None
    if descriptor.signature_byte == 0x29 or descriptor.andos_oem:
        volume_name = _space_padded(descriptor.volume_label, encoding)

    created = modified = None
    if directory is not None:
        if directory.created is not None:
            created = directory.created
            lines.append(f"Volume created on {created}")
        if directory.modified is not None:
            modified = directory.modified
            lines.append(f"Volume last modified on {modified}")
        if directory.accessed is not None:
            lines.append(f"Volume last accessed on {directory.accessed.isoformat()}")
        if directory.volume_label:
            volume_name = directory.volume_label

    if volume_name:
        lines.append(f"Volume label: {volume_name}")

    if descriptor.bootable:
        digest = boot_code_digest(descriptor.boot_code)
        lines.append("Volume is bootable")
        lines.append(f"Boot code's SHA1: {digest}")
        known = next((signature.name for signature in boot_signatures if signature.sha1 == digest), None)
        lines.append(f"Boot code corresponds to {known}" if known else "Unknown boot code.")

    fat32 = descriptor.fat32
    metadata = FileSystemMetadata(
        type=_SUBTYPE_TO_FS[descriptor.subtype],
        cluster_size=descriptor.cluster_size_bytes,
        clusters=descriptor.total_clusters,
        volume_name=volume_name,
        volume_serial=descriptor.volume_serial,
        system_identifier=system_identifier,
        free_clusters=fat32.free_clusters if fat32 is not None else None,
        creation_date=created,
        modification_date=modified,
        bootable=descriptor.bootable,
        dirty=_is_dirty(descriptor),
    )
    return VolumeDescription(report="\n".join(lines) + "\n", metadata=metadata, descriptor=descriptor)


__all__ = ["boot_code_digest", "build_report"]
