"""Dekodowanie wyniku klasyfikacji do znormalizowanego opisu wolumenu FAT."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from volume_analyzer.layouts.fields import FieldReader, FieldValue
from volume_analyzer.layouts.predicates import andos_oem_quirk, x86_boot_jump
from volume_analyzer.layouts.registry import BOOT_SIGNATURE_OFFSET, LayoutKind
from .classifier import AUX_BOOT_CODE, AUX_FSINFO, BOOT_SIGNATURE, ClassificationResult

FAT12_CLUSTER_LIMIT = 4089
FSINFO_SIGNATURE1 = 0x41615252
FSINFO_SIGNATURE2 = 0x61417272
FSINFO_SIGNATURE3 = 0xAA550000
ATARI_BOOT_CHECKSUM = 0x1234
VOLUME_TRACKER_MARK = b"IHC"


class FatSubtype(str, Enum):
    FAT12 = "FAT12"
    FAT16 = "FAT16"
    FAT32 = "FAT32"
    FAT_PLUS = "FAT+"


@dataclass(frozen=True, slots=True)
class Fat32Extension:
    """Pola obecne wyłącznie w BPB FAT32 (wraz z danymi FSINFO)."""

    root_cluster: int
    fsinfo_sector: int
    backup_sector: int
    mirror_flags: int
    version: int
    free_clusters: Optional[int] = None
    last_allocated_cluster: Optional[int] = None


@dataclass(frozen=True, slots=True)
class AtariExtension:
    """Pola rozruchowe GEMDOS."""

    serial: bytes
    execflag: int
    ldmode: int
    ssect: int
    sectcnt: int
    ldaaddr: int
    fatbuf: int
    fname: bytes


@dataclass(frozen=True, slots=True)
class NormalizedVolumeDescriptor:
    """Kanoniczny, niezmienny opis wolumenu niezależny od wariantu BPB."""

    variant: LayoutKind
    subtype: FatSubtype
    bytes_per_sector: int
    sectors_per_cluster: int
    reserved_sectors: int
    fat_count: int
    root_entries: int
    sector_count: int
    media_descriptor: int
    sectors_per_fat: int
    sectors_per_track: int
    head_count: int
    hidden_sectors: int
    drive_number: Optional[int]
    volume_flags: Optional[int]
    signature_byte: Optional[int]
    serial_number: Optional[int]
    volume_serial: Optional[str]
    volume_label: Optional[bytes]
    fs_type_tag: Optional[bytes]
    boot_signature: int
    boot_code: bytes
    jump: bytes
    oem_name: bytes
    andos_oem: bool
    total_clusters: int
    root_directory_sector: int
    root_directory_sectors: int
    bootable: bool
    fat32: Optional[Fat32Extension] = None
    atari: Optional[AtariExtension] = None

    @property
    def cluster_size_bytes(self) -> int:
        return self.bytes_per_sector * self.sectors_per_cluster

    @property
    def is_fat32(self) -> bool:
        return self.fat32 is not None

    @property
    def volume_tracker_modified(self) -> bool:
        return self.oem_name[5:8] == VOLUME_TRACKER_MARK


def _int(values: Mapping[str, FieldValue], name: str, default: int = 0) -> int:
    value = values.get(name, default)
    return value if isinstance(value, int) else default


def _bytes(values: Mapping[str, FieldValue], name: str) -> Optional[bytes]:
    value = values.get(name)
    return value if isinstance(value, bytes) else None


def decode(result: ClassificationResult) -> NormalizedVolumeDescriptor:
    """Mapuje pola wybranego wariantu na rekord kanoniczny.

    Funkcja jest czysta: ten sam wynik klasyfikacji daje identyczny rekord.
    """

    variant = result.variant
    geometry = result.geometry
    optical = geometry.is_optical
    values = _field_values(result, optical=optical)

    kind = variant.kind
    is_fat32 = variant.is_fat32
    bytes_per_sector = _int(values, "bytes_per_sector")
    sectors_per_cluster = _int(values, "sectors_per_cluster")
    reserved_sectors = _int(values, "reserved_sectors")
    sectors_per_fat = _int(values, "big_sectors_per_fat" if is_fat32 else "sectors_per_fat")
    hidden_sectors = _int(values, "hidden_sectors")
    sectors_per_track = _int(values, "sectors_per_track")
    heads = _int(values, "apricot_heads" if kind is LayoutKind.APRICOT else "heads")
    signature = values.get("signature")
    sector_count = _sector_count(values, is_fat32)

    if optical:
        bytes_per_sector *= 4
        sectors_per_cluster //= 4
        sectors_per_fat //= 4
        hidden_sectors //= 4
        sectors_per_track //= 4
        if not is_fat32:
            reserved_sectors //= 4
    sectors_per_cluster = sectors_per_cluster or 1

    # klastry liczone w jednostkach logicznych BPB, niezależnie od nośnika
    logical = _field_values(result, optical=False) if optical else values
    total_clusters = _sector_count(logical, is_fat32) // (_int(logical, "sectors_per_cluster") or 1)
    subtype = _subtype(kind, is_fat32, _int(values, "version"), total_clusters, variant.forces_fat12)

    physical_sector = geometry.bytes_per_sector
    sectors_per_real_sector = max(bytes_per_sector // physical_sector, 1)
    fat_count = _int(values, "fat_count")
    root_entries = _int(values, "root_entries")
    fat32: Optional[Fat32Extension] = None
    if is_fat32:
        root_cluster = _int(values, "root_cluster")
        root_sector = (
            max(root_cluster - 2, 0) * sectors_per_cluster + sectors_per_fat * fat_count + reserved_sectors
        ) * sectors_per_real_sector
        root_sectors = 1
        fat32 = _fat32_extension(values, result.auxiliary_buffers.get(AUX_FSINFO))
    else:
        root_sector = (sectors_per_fat * fat_count + reserved_sectors) * sectors_per_real_sector
        root_sectors = root_entries * 32 // physical_sector

    jump = _bytes(values, "jump") or result.raw_buffer[:3]
    oem_name = _bytes(values, "oem_name") or b""
    boot_signature = FieldReader(result.raw_buffer).uint(BOOT_SIGNATURE_OFFSET, 2)
    andos = kind is LayoutKind.EBPB and andos_oem_quirk(oem_name)

    return NormalizedVolumeDescriptor(
        variant=kind,
        subtype=subtype,
        bytes_per_sector=bytes_per_sector,
        sectors_per_cluster=sectors_per_cluster,
        reserved_sectors=reserved_sectors,
        fat_count=fat_count,
        root_entries=root_entries,
        sector_count=sector_count,
        media_descriptor=_int(values, "media_descriptor"),
        sectors_per_fat=sectors_per_fat,
        sectors_per_track=sectors_per_track,
        head_count=heads,
        hidden_sectors=hidden_sectors,
        drive_number=values.get("drive_number"),
        volume_flags=values.get("flags"),
        signature_byte=signature,
        serial_number=values.get("serial_number"),
        volume_serial=_volume_serial(kind, is_fat32, values),
        volume_label=_bytes(values, "volume_label"),
        fs_type_tag=_bytes(values, "fs_type"),
        boot_signature=boot_signature,
        boot_code=_boot_code(result),
        jump=jump,
        oem_name=oem_name,
        andos_oem=andos,
        total_clusters=total_clusters,
        root_directory_sector=root_sector,
        root_directory_sectors=root_sectors,
        bootable=_bootable(kind, values, result.raw_buffer, jump, boot_signature),
        fat32=fat32,
        atari=_atari_extension(values) if kind is LayoutKind.ATARI else None,
    )


def _field_values(result: ClassificationResult, *, optical: bool) -> Dict[str, FieldValue]:
    values = dict(result.variant.decode(result.raw_buffer, optical=optical))
    preset = result.preset
    if preset is not None:
        values.update(
            bytes_per_sector=preset.bytes_per_sector,
            sectors_per_cluster=preset.sectors_per_cluster,
            reserved_sectors=preset.reserved_sectors,
            fat_count=preset.fat_count,
            root_entries=preset.root_entries,
            sectors=preset.total_sectors,
            media_descriptor=preset.media_descriptor,
            sectors_per_fat=preset.sectors_per_fat,
            sectors_per_track=preset.sectors_per_track,
            heads=preset.heads,
        )
    return values


def _sector_count(values: Mapping[str, FieldValue], is_fat32: bool) -> int:
    sectors = _int(values, "sectors")
    big_sectors = _int(values, "big_sectors")
    if is_fat32:
        if big_sectors == 0 and values.get("signature") == 0x28:
            return _int(values, "huge_sectors")
        return big_sectors if sectors == 0 else sectors
    return sectors if sectors else big_sectors


def _subtype(kind: LayoutKind, is_fat32: bool, version: int, clusters: int, forces_fat12: bool) -> FatSubtype:
    if is_fat32:
        return FatSubtype.FAT_PLUS if version != 0 else FatSubtype.FAT32
    if forces_fat12 or clusters < FAT12_CLUSTER_LIMIT:
        return FatSubtype.FAT12
    return FatSubtype.FAT16


def _fat32_extension(values: Mapping[str, FieldValue], fsinfo: Optional[bytes]) -> Fat32Extension:
    free_clusters: Optional[int] = None
    last_cluster: Optional[int] = None
    if fsinfo is not None and len(fsinfo) >= 512:
        reader = FieldReader(fsinfo)
        if (
            reader.uint(0, 4) == FSINFO_SIGNATURE1
            and reader.uint(484, 4) == FSINFO_SIGNATURE2
            and reader.uint(508, 4) == FSINFO_SIGNATURE3
        ):
            free = reader.uint(488, 4)
            last = reader.uint(492, 4)
            free_clusters = free if free < 0xFFFFFFFF else None
            last_cluster = last if 2 < last < 0xFFFFFFFF else None
    return Fat32Extension(
        root_cluster=_int(values, "root_cluster"),
        fsinfo_sector=_int(values, "fsinfo_sector"),
        backup_sector=_int(values, "backup_sector"),
        mirror_flags=_int(values, "mirror_flags"),
        version=_int(values, "version"),
        free_clusters=free_clusters,
        last_allocated_cluster=last_cluster,
    )


def _atari_extension(values: Mapping[str, FieldValue]) -> AtariExtension:
    return AtariExtension(
        serial=_bytes(values, "atari_serial") or b"",
        execflag=_int(values, "execflag"),
        ldmode=_int(values, "ldmode"),
        ssect=_int(values, "ssect"),
        sectcnt=_int(values, "sectcnt"),
        ldaaddr=_int(values, "ldaaddr"),
        fatbuf=_int(values, "fatbuf"),
        fname=_bytes(values, "fname") or b"",
    )


def _volume_serial(kind: LayoutKind, is_fat32: bool, values: Mapping[str, FieldValue]) -> Optional[str]:
    if kind is LayoutKind.ATARI:
        serial = _bytes(values, "atari_serial") or b""
        if serial == VOLUME_TRACKER_MARK:
            return None
        return serial.hex().upper() or None
    serial_number = values.get("serial_number")
    if not isinstance(serial_number, int):
        return None
    if is_fat32 or values.get("signature") in (0x28, 0x29) or kind is LayoutKind.MSX:
        return f"{serial_number:08X}"
    return None


def _boot_code(result: ClassificationResult) -> bytes:
    if result.kind is LayoutKind.APRICOT:
        return bytes(result.auxiliary_buffers.get(AUX_BOOT_CODE, b""))
    offset = result.variant.boot_code_offset or 0
    return bytes(result.raw_buffer[offset:BOOT_SIGNATURE_OFFSET])


def _bootable(kind: LayoutKind, values: Mapping[str, FieldValue], raw_buffer: bytes, jump: bytes, boot_signature: int) -> bool:
    if kind in (LayoutKind.DEC_RAINBOW, LayoutKind.MSX):
        return True
    if kind is LayoutKind.APRICOT:
        return _int(values, "boot_type") > 0
    generic = len(jump) >= 2 and x86_boot_jump(jump) and boot_signature == BOOT_SIGNATURE
    if kind is LayoutKind.ATARI:
        return atari_checksum(raw_buffer[:512]) == ATARI_BOOT_CHECKSUM or generic
    return generic


def atari_checksum(sector: bytes) -> int:
    total = 0
    for offset in range(0, len(sector) - 1, 2):
        total += (sector[offset] << 8) | sector[offset + 1]
    return total & 0xFFFF


__all__ = [
    "AtariExtension",
    "FatSubtype",
    "Fat32Extension",
    "atari_checksum",
    "NormalizedVolumeDescriptor",
    "decode",
]
