"""Rejestr układów sektora rozruchowego i superbloków.

Każdy wariant to niezmienny deskryptor: tabela pól (nazwa, przesunięcie,
szerokość) wspólna dla klasyfikatora i dekodera. Pola mają nazwy kanoniczne,
więc jedno dekodowanie obsługuje wszystkie warianty danej rodziny.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from .fields import ByteOrder, Field, FieldReader, FieldValue, i32, raw, u8, u16, u32, u64


class LayoutFamily(str, Enum):
    FAT = "fat"
    SYSV = "sysv"


class LayoutKind(str, Enum):
    """Warianty układów rozpoznawane przez klasyfikatory."""

    ATARI = "atari"
    MSX = "msx"
    DOS20 = "dos20"
    DOS30 = "dos30"
    DOS32 = "dos32"
    DOS33 = "dos33"
    SHORT_EBPB = "short_ebpb"
    EBPB = "ebpb"
    SHORT_FAT32 = "short_fat32"
    FAT32 = "fat32"
    APRICOT = "apricot"
    DEC_RAINBOW = "dec_rainbow"
    LEGACY_FLOPPY = "legacy_floppy"
    XENIX_V1 = "xenix_v1"
    XENIX_V3 = "xenix_v3"
    SYSV_R2 = "sysv_r2"
    SYSV_R4 = "sysv_r4"
    COHERENT = "coherent"
    UNIX_V7 = "unix_v7"


@dataclass(frozen=True, slots=True)
class LayoutDescriptor:
    """Niezmienny opis jednego wariantu układu."""

    kind: LayoutKind
    family: LayoutFamily
    title: str
    fields: Mapping[str, Field]
    boot_code_offset: Optional[int] = None
    forces_fat12: bool = False
    is_fat32: bool = False
    default_byte_order: ByteOrder = ByteOrder.LITTLE

    def decode(
        self,
        buffer: bytes,
        *,
        byte_order: ByteOrder | None = None,
        base: int = 0,
        optical: bool = False,
    ) -> Dict[str, FieldValue]:
        """Odczytuje wszystkie pola układu z bufora."""

        reader = FieldReader(buffer, byte_order or self.default_byte_order, base)
        return reader.read_all(self.fields.values(), optical=optical)


BOOT_SECTOR_SIZE = 512
BOOT_SIGNATURE_OFFSET = 510


def _table(*fields: Field) -> Mapping[str, Field]:
    return MappingProxyType({item.name: item for item in fields})


def _extend(base: Mapping[str, Field], *fields: Field) -> Mapping[str, Field]:
    merged = dict(base)
    for item in fields:
        merged[item.name] = item
    return MappingProxyType(merged)


def _without(base: Mapping[str, Field], *names: str) -> Mapping[str, Field]:
    return MappingProxyType({name: item for name, item in base.items() if name not in names})


# ----------------------------------------------------------------------
# Rodzina FAT
# ----------------------------------------------------------------------

_BPB_CORE = (
    u16("bytes_per_sector", 0x0B),
    u8("sectors_per_cluster", 0x0D),
    u16("reserved_sectors", 0x0E),
    u8("fat_count", 0x10),
    u16("root_entries", 0x11),
    u16("sectors", 0x13, scaled=True),
    u8("media_descriptor", 0x15),
    u16("sectors_per_fat", 0x16),
)

_DOS20_FIELDS = _table(
    raw("jump", 0x00, 3),
    raw("oem_name", 0x03, 8),
    *_BPB_CORE,
    u16("boot_signature", BOOT_SIGNATURE_OFFSET),
)

_DOS30_FIELDS = _extend(
    _DOS20_FIELDS,
    u16("sectors_per_track", 0x18),
    u16("heads", 0x1A),
    u16("hidden_sectors", 0x1C),
)

_DOS32_FIELDS = _extend(_DOS30_FIELDS, u16("total_sectors", 0x1E))

_DOS33_FIELDS = _extend(
    _DOS30_FIELDS,
    u32("hidden_sectors", 0x1C),
    u32("big_sectors", 0x20, scaled=True),
)

_SHORT_EBPB_FIELDS = _extend(
    _DOS33_FIELDS,
    u8("drive_number", 0x24),
    u8("flags", 0x25),
    u8("signature", 0x26),
    u32("serial_number", 0x27),
)

_EBPB_FIELDS = _extend(
    _SHORT_EBPB_FIELDS,
    raw("volume_label", 0x2B, 11),
    raw("fs_type", 0x36, 8),
)

_FAT32_FIELDS = _extend(
    _DOS33_FIELDS,
    u32("big_sectors_per_fat", 0x24),
    u16("mirror_flags", 0x28),
    u16("version", 0x2A),
    u32("root_cluster", 0x2C),
    u16("fsinfo_sector", 0x30),
    u16("backup_sector", 0x32),
    u8("drive_number", 0x40),
    u8("flags", 0x41),
    u8("signature", 0x42),
    u32("serial_number", 0x43),
    raw("volume_label", 0x47, 11),
    raw("fs_type", 0x52, 8),
)

_SHORT_FAT32_FIELDS = _extend(
    _without(_FAT32_FIELDS, "volume_label", "fs_type"),
    u64("huge_sectors", 0x52, scaled=True),
)

_MSX_FIELDS = _extend(
    _DOS30_FIELDS,
    u16("msxdos_jump", 0x1E),
    raw("vol_id", 0x20, 6),
    u8("undelete_flag", 0x2B),
    u32("serial_number", 0x2C),
)

_ATARI_FIELDS = _table(
    raw("jump", 0x00, 2),
    raw("oem_name", 0x02, 6),
    raw("atari_serial", 0x08, 3),
    *_BPB_CORE,
    u16("sectors_per_track", 0x18),
    u16("heads", 0x1A),
    u16("hidden_sectors", 0x1C),
    u16("execflag", 0x1E),
    u16("ldmode", 0x20),
    u16("ssect", 0x22),
    u16("sectcnt", 0x24),
    u16("ldaaddr", 0x26),
    u16("fatbuf", 0x2A),
    raw("fname", 0x2E, 11),
)

_APRICOT_FIELDS = _table(
    raw("apricot_version", 0x00, 8),
    u8("operating_system", 0x08),
    u8("boot_type", 0x0B),
    u8("partition_count", 0x0C),
    u8("winchester", 0x0D),
    u16("apricot_sector_size", 0x0E),
    u16("sectors_per_track", 0x10),
    u32("cylinders", 0x12),
    u8("apricot_heads", 0x16),
    u32("boot_location", 0x1A),
    u16("boot_size", 0x1E),
    u16("bytes_per_sector", 0x50),
    u8("sectors_per_cluster", 0x52),
    u16("reserved_sectors", 0x53),
    u8("fat_count", 0x55),
    u16("root_entries", 0x56),
    u16("sectors", 0x58, scaled=True),
    u8("media_descriptor", 0x5A),
    u16("sectors_per_fat", 0x5B),
)

# Układy bez BPB: geometria pochodzi z tabeli, z sektora czytamy tylko skok i sygnaturę
_HARDCODED_FIELDS = _table(
    raw("jump", 0x00, 3),
    u16("boot_signature", BOOT_SIGNATURE_OFFSET),
)


# ----------------------------------------------------------------------
# Rodzina System V
# ----------------------------------------------------------------------

_SYSV_LOCKS_V7 = (
    u8("flock", 0x19A),
    u8("ilock", 0x19B),
    u8("fmod", 0x19C),
    u8("ronly", 0x19D),
)

_XENIX_V1_FIELDS = _table(
    u16("isize", 0x000),
    u32("fsize", 0x002),
    u16("nfree", 0x006),
    u16("ninode", 0x198),
    u8("flock", 0x262),
    u8("ilock", 0x263),
    u8("fmod", 0x264),
    u8("ronly", 0x265),
    i32("time", 0x266),
    u32("tfree", 0x26A),
    u16("tinode", 0x26E),
    u16("cylblks", 0x270),
    u16("gapblks", 0x272),
    u16("dinfo0", 0x274),
    u16("dinfo1", 0x276),
    raw("fname", 0x278, 6),
    raw("fpack", 0x27E, 6),
    u8("clean", 0x284),
    u32("magic", 0x3F8),
    u32("type", 0x3FC),
)

_XENIX_V3_FIELDS = _table(
    u16("isize", 0x000),
    u32("fsize", 0x002),
    u16("nfree", 0x006),
    u16("ninode", 0x0D0),
    *_SYSV_LOCKS_V7,
    i32("time", 0x19E),
    u32("tfree", 0x1A2),
    u16("tinode", 0x1A6),
    u16("cylblks", 0x1A8),
    u16("gapblks", 0x1AA),
    u16("dinfo0", 0x1AC),
    u16("dinfo1", 0x1AE),
    raw("fname", 0x1B0, 6),
    raw("fpack", 0x1B6, 6),
    u8("clean", 0x1BC),
    u32("magic", 0x1F0),
    u32("type", 0x1F4),
)

_SYSV_R4_FIELDS = _table(
    u16("isize", 0x000),
    u32("fsize", 0x004),
    u16("nfree", 0x008),
    u16("ninode", 0x0D4),
    u8("flock", 0x1A0),
    u8("ilock", 0x1A1),
    u8("fmod", 0x1A2),
    u8("ronly", 0x1A3),
    u32("time", 0x1A4),
    u16("cylblks", 0x1A8),
    u16("gapblks", 0x1AA),
    u16("dinfo0", 0x1AC),
    u16("dinfo1", 0x1AE),
    u32("tfree", 0x1B0),
    u16("tinode", 0x1B4),
    raw("fname", 0x1B6, 6),
    raw("fpack", 0x1BC, 6),
    u32("state", 0x1F4),
    u32("magic", 0x1F8),
    u32("type", 0x1FC),
)

_SYSV_R2_FIELDS = _table(
    u16("isize", 0x000),
    u32("fsize", 0x002),
    u16("nfree", 0x006),
    u16("ninode", 0x0D0),
    *_SYSV_LOCKS_V7,
    u32("time", 0x19E),
    u16("cylblks", 0x1A2),
    u16("gapblks", 0x1A4),
    u16("dinfo0", 0x1A6),
    u16("dinfo1", 0x1A8),
    u32("tfree", 0x1AA),
    u16("tinode", 0x1AE),
    raw("fname", 0x1B0, 6),
    raw("fpack", 0x1B6, 6),
    u32("state", 0x1F4),
    u32("magic", 0x1F8),
    u32("type", 0x1FC),
)

_COHERENT_FIELDS = _table(
    u16("isize", 0x000),
    u32("fsize", 0x002),
    u16("nfree", 0x006),
    u16("ninode", 0x108),
    u8("flock", 0x1D2),
    u8("ilock", 0x1D3),
    u8("fmod", 0x1D4),
    u8("ronly", 0x1D5),
    u32("time", 0x1D6),
    u32("tfree", 0x1DA),
    u16("tinode", 0x1DE),
    u16("int_m", 0x1E0),
    u16("int_n", 0x1E2),
    raw("fname", 0x1E4, 6),
    raw("fpack", 0x1EA, 6),
)

_UNIX_V7_FIELDS = _table(
    u16("isize", 0x000),
    u32("fsize", 0x002),
    u16("nfree", 0x006),
    u16("ninode", 0x0D0),
    *_SYSV_LOCKS_V7,
    u32("time", 0x19E),
    u32("tfree", 0x1A2),
    u16("tinode", 0x1A6),
    u16("int_m", 0x1A8),
    u16("int_n", 0x1AA),
    raw("fname", 0x1AC, 6),
    raw("fpack", 0x1B2, 6),
)


def _fat(kind: LayoutKind, title: str, fields: Mapping[str, Field], boot_code_offset: int, **extra) -> LayoutDescriptor:
    return LayoutDescriptor(
        kind=kind,
        family=LayoutFamily.FAT,
        title=title,
        fields=fields,
        boot_code_offset=boot_code_offset,
        **extra,
    )


def _sysv(kind: LayoutKind, title: str, fields: Mapping[str, Field], **extra) -> LayoutDescriptor:
    return LayoutDescriptor(kind=kind, family=LayoutFamily.SYSV, title=title, fields=fields, **extra)


LAYOUTS: Mapping[LayoutKind, LayoutDescriptor] = MappingProxyType(
    {
        descriptor.kind: descriptor
        for descriptor in (
            _fat(LayoutKind.FAT32, "FAT32 BPB", _FAT32_FIELDS, 0x5A, is_fat32=True),
            _fat(LayoutKind.SHORT_FAT32, "short FAT32 BPB", _SHORT_FAT32_FIELDS, 0x5A, is_fat32=True),
            _fat(LayoutKind.MSX, "MSX-DOS BPB", _MSX_FIELDS, 0x37, forces_fat12=True),
            _fat(LayoutKind.APRICOT, "Apricot label", _APRICOT_FIELDS, 0x00, forces_fat12=True),
            _fat(LayoutKind.EBPB, "DOS 4.0 extended BPB", _EBPB_FIELDS, 0x3E),
            _fat(LayoutKind.SHORT_EBPB, "DOS 3.4 short extended BPB", _SHORT_EBPB_FIELDS, 0x2B),
            _fat(LayoutKind.DOS33, "DOS 3.3 BPB", _DOS33_FIELDS, 0x24),
            _fat(LayoutKind.ATARI, "Atari GEMDOS BPB", _ATARI_FIELDS, 0x3B, forces_fat12=True),
            _fat(LayoutKind.DOS32, "DOS 3.2 BPB", _DOS32_FIELDS, 0x20),
            _fat(LayoutKind.DOS30, "DOS 3.0 BPB", _DOS30_FIELDS, 0x1E),
            _fat(LayoutKind.DOS20, "DOS 2.0 BPB", _DOS20_FIELDS, 0x18),
            _fat(LayoutKind.DEC_RAINBOW, "DEC Rainbow", _HARDCODED_FIELDS, 0x00, forces_fat12=True),
            _fat(LayoutKind.LEGACY_FLOPPY, "BPB-less floppy", _HARDCODED_FIELDS, 0x00, forces_fat12=True),
            _sysv(LayoutKind.XENIX_V1, "XENIX", _XENIX_V1_FIELDS),
            _sysv(LayoutKind.XENIX_V3, "XENIX 3", _XENIX_V3_FIELDS),
            _sysv(LayoutKind.SYSV_R4, "System V Release 4", _SYSV_R4_FIELDS),
            _sysv(LayoutKind.SYSV_R2, "System V Release 2", _SYSV_R2_FIELDS),
            _sysv(LayoutKind.COHERENT, "Coherent UNIX", _COHERENT_FIELDS, default_byte_order=ByteOrder.PDP),
            _sysv(LayoutKind.UNIX_V7, "UNIX 7th Edition", _UNIX_V7_FIELDS),
        )
    }
)


def layout(kind: LayoutKind) -> LayoutDescriptor:
    """Zwraca deskryptor wariantu."""

    return LAYOUTS[kind]


__all__ = [
    "BOOT_SECTOR_SIZE",
    "BOOT_SIGNATURE_OFFSET",
    "LAYOUTS",
    "LayoutDescriptor",
    "LayoutFamily",
    "LayoutKind",
    "layout",
]
