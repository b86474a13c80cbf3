"""Czyste predykaty wiarygodności pól wykorzystywane przez klasyfikatory."""

from __future__ import annotations

from volume_analyzer.core.models import SectorGeometry

ALLOWED_CLUSTER_SIZES = frozenset({1, 2, 4, 8, 16, 32, 64})

# Nazwy OEM sektorów rozruchowych, które nie są FAT mimo zgodnego BPB
FOREIGN_OEM_NAMES = frozenset({b"EXFAT   ", b"FQNX4FS "})
NTFS_OEM_NAME = b"NTFS    "
NEXT_OEM_NAME = b"NEXT    "
ATARI_PARTITION_TYPES = frozenset({"GEM", "BGM"})


def is_power_of_two16(value: int) -> bool:
    """Dokładnie jeden ustawiony bit w 16-bitowej wartości."""

    return 0 < value <= 0xFFFF and value & (value - 1) == 0


def is_allowed_cluster_size(sectors_per_cluster: int) -> bool:
    return sectors_per_cluster in ALLOWED_CLUSTER_SIZES


def ascii_printable_run(data: bytes) -> bool:
    """Każdy bajt w przedziale [0x20, 0x7F]."""

    return all(0x20 <= byte <= 0x7F for byte in data)


def sector_count_fits_partition(count: int, geometry: SectorGeometry) -> bool:
    return count <= geometry.partition_length


def bounded_chs(sectors_per_track: int, heads: int) -> bool:
    return 0 < sectors_per_track < 64 and 0 < heads < 256


def andos_oem_quirk(oem_name: bytes) -> bool:
    """Nazwa OEM zaczyna się bajtem sterującym, reszta jest drukowalna (ANDOS)."""

    return len(oem_name) == 8 and oem_name[0] < 0x20 and all(byte >= 0x20 for byte in oem_name[1:])


def atari_jump(jump: bytes, oem_name: bytes) -> bool:
    """Skok w kodzie 68000 (BRA.S lub 0xE9 0x00) zamiast kodu x86."""

    if jump[0] == 0x60:
        return True
    return jump[0] == 0xE9 and jump[1] == 0x00 and oem_name != NEXT_OEM_NAME


def x86_boot_jump(jump: bytes) -> bool:
    """Sektor zaczyna się od CLI albo krótkiego skoku w przód."""

    return jump[0] == 0xFA or (jump[0] == 0xEB and jump[1] <= 0x7F)


def fat12_terminator(sector: bytes) -> bool:
    """Drugi i trzeci bajt FAT tworzą znacznik końca łańcucha FAT12."""

    return (((sector[1] << 8) + sector[2]) & 0xFFF) >= 0xFF0


def directory_name_plausible(name: bytes) -> bool:
    """Bajty nazwy wpisu katalogu są drukowalne, zerowe lub 0x05."""

    for byte in name:
        if byte < 0x20 and byte not in (0x00, 0x05):
            return False
        if byte in (0xFF, 0x2E):
            return False
    return True


__all__ = [
    "ALLOWED_CLUSTER_SIZES",
    "ATARI_PARTITION_TYPES",
    "FOREIGN_OEM_NAMES",
    "NTFS_OEM_NAME",
    "andos_oem_quirk",
    "ascii_printable_run",
    "atari_jump",
    "bounded_chs",
    "directory_name_plausible",
    "fat12_terminator",
    "is_allowed_cluster_size",
    "is_power_of_two16",
    "sector_count_fits_partition",
    "x86_boot_jump",
]
