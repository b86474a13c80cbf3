"""Kaskada reguł rozpoznających wariant BPB w sektorze rozruchowym FAT.

Reguły są sprawdzane w ustalonej kolejności i pierwsza spełniona wygrywa.
Kolejność odpowiada historycznemu pierwszeństwu formatów: ten sam sektor
potrafi przypadkowo spełniać kilka słabszych reguł naraz.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional

from structlog import get_logger

from volume_analyzer.core.models import SectorGeometry
from volume_analyzer.drivers.base import SectorSource
from volume_analyzer.layouts.catalog import GeometryCatalog, PresetGeometry, load_default_geometry_catalog
from volume_analyzer.layouts.fields import FieldReader, FieldValue
from volume_analyzer.layouts.outcome import Unrecognized, UnrecognizedReason
from volume_analyzer.layouts.predicates import (
    ATARI_PARTITION_TYPES,
    FOREIGN_OEM_NAMES,
    NTFS_OEM_NAME,
    andos_oem_quirk,
    atari_jump,
    bounded_chs,
    directory_name_plausible,
    fat12_terminator,
    is_allowed_cluster_size,
    is_power_of_two16,
    sector_count_fits_partition,
)
from volume_analyzer.layouts.registry import BOOT_SECTOR_SIZE, LayoutDescriptor, LayoutKind, layout

HPFS_SUPERBLOCK_LBA = 16
HPFS_MAGIC1 = 0xF995E849
HPFS_MAGIC2 = 0xFA53E9C5
BOOT_SIGNATURE = 0xAA55
FAT32_FS_TYPE = b"FAT32   "
MSX_VOL_ID = b"VOL_ID"
DEC_RAINBOW_FIRST_BYTE = 0xF3
DIRECTORY_ENTRY_SIZE = 32

AUX_FSINFO = "fsinfo"
AUX_BOOT_CODE = "boot_code"
AUX_FAT = "fat"
AUX_SECOND_FAT = "second_fat"
AUX_ROOT_DIRECTORY = "root_directory"


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Wybrany wariant wraz z buforem sektora i odczytami pomocniczymi."""

    variant: LayoutDescriptor
    raw_buffer: bytes
    geometry: SectorGeometry
    auxiliary_buffers: Mapping[str, bytes] = field(default_factory=lambda: MappingProxyType({}))
    preset: Optional[PresetGeometry] = None

    @property
    def kind(self) -> LayoutKind:
        return self.variant.kind


@dataclass(frozen=True, slots=True)
class _Probe:
    """Dane wejściowe jednej klasyfikacji współdzielone przez reguły."""

    buffer: bytes
    geometry: SectorGeometry
    source: SectorSource

    def fields(self, kind: LayoutKind) -> Dict[str, FieldValue]:
        return layout(kind).decode(self.buffer, optical=self.geometry.is_optical)


_Match = Optional[ClassificationResult]


def boot_sector_count(sector_size: int) -> int:
    """Liczba sektorów nośnika mieszczących 512-bajtowy sektor rozruchowy."""

    return BOOT_SECTOR_SIZE // sector_size if sector_size < BOOT_SECTOR_SIZE else 1


class FatClassifier:
    """Rozpoznaje wariant sektora rozruchowego FAT."""

    def __init__(self, catalog: GeometryCatalog | None = None) -> None:
        self._catalog = catalog or load_default_geometry_catalog()
        self._logger = get_logger(__name__)
        self._rules: List[Callable[[_Probe], _Match]] = [
            self._long_fat32,
            self._short_fat32,
            self._msx,
            self._apricot,
            self._extended_bpb,
            self._dos_bpb,
            self._dec_rainbow,
            self._legacy_floppy,
        ]

    def classify(
        self,
        source: SectorSource,
        geometry: SectorGeometry,
        *,
        collect_auxiliary: bool = True,
    ) -> ClassificationResult | Unrecognized:
        """Uruchamia kaskadę reguł dla partycji opisanej geometrią.

        Błędy odczytu poza obrazem są propagowane; niepasujące dane zawsze
        kończą się wynikiem :class:`Unrecognized`.
        """

        if geometry.partition_start + 2 >= geometry.partition_end:
            return Unrecognized(UnrecognizedReason.GEOMETRY_TOO_SMALL, "partycja krótsza niż 3 sektory")

        buffer = self.read_boot_sector(source, geometry)
        probe = _Probe(buffer=buffer, geometry=geometry, source=source)

        reason = self._foreign_filesystem(probe)
        if reason:
            self._logger.debug("foreign-boot-sector", reason=reason, start=geometry.partition_start)
            return Unrecognized(UnrecognizedReason.NOT_RECOGNIZED, reason)

        for rule in self._rules:
            result = rule(probe)
            if result is not None:
                self._logger.debug("fat-variant-matched", variant=result.kind.value, rule=rule.__name__)
                if collect_auxiliary:
                    result = self._with_auxiliary(result, source)
                return result
        return Unrecognized(UnrecognizedReason.NOT_RECOGNIZED, "brak pasującej reguły")

    @staticmethod
    def read_boot_sector(source: SectorSource, geometry: SectorGeometry) -> bytes:
        """Czyta sektor rozruchowy, dopełniając go do 512 bajtów."""

        count = boot_sector_count(source.sector_size)
        data = source.read_sectors(geometry.partition_start, count)
        if len(data) < BOOT_SECTOR_SIZE:
            data = data.ljust(BOOT_SECTOR_SIZE, b"\x00")
        return data

    # ------------------------------------------------------------------
    # Odrzucanie obcych systemów plików
    # ------------------------------------------------------------------

    def _foreign_filesystem(self, probe: _Probe) -> str:
        reader = FieldReader(probe.buffer)
        oem_name = reader.raw_bytes(3, 8)
        if oem_name in FOREIGN_OEM_NAMES:
            return f"OEM {oem_name!r}"
        if (
            oem_name == NTFS_OEM_NAME
            and reader.uint(510, 2) == BOOT_SIGNATURE
            and reader.uint(0x10, 1) == 0
            and reader.uint(0x16, 2) == 0
        ):
            return "NTFS"

        geometry = probe.geometry
        hpfs_lba = geometry.partition_start + HPFS_SUPERBLOCK_LBA
        if hpfs_lba <= geometry.partition_end and hpfs_lba < probe.source.total_sectors:
            superblock = FieldReader(probe.source.read_sector(hpfs_lba).ljust(8, b"\x00"))
            if superblock.uint(0, 4) == HPFS_MAGIC1 and superblock.uint(4, 4) == HPFS_MAGIC2:
                return "HPFS"
        return ""

    # ------------------------------------------------------------------
    # Reguły kaskady
    # ------------------------------------------------------------------

    def _fat32_prefix(self, values: Mapping[str, FieldValue]) -> bool:
        return (
            is_power_of_two16(values["bytes_per_sector"])
            and is_allowed_cluster_size(values["sectors_per_cluster"])
            and values["fat_count"] <= 2
            and values["sectors"] == 0
            and values["sectors_per_fat"] == 0
        )

    def _long_fat32(self, probe: _Probe) -> _Match:
        values = probe.fields(LayoutKind.FAT32)
        if not self._fat32_prefix(values):
            return None
        if values["signature"] != 0x29 or values["fs_type"] != FAT32_FS_TYPE:
            return None
        return self._result(LayoutKind.FAT32, probe)

    def _short_fat32(self, probe: _Probe) -> _Match:
        values = probe.fields(LayoutKind.SHORT_FAT32)
        if not self._fat32_prefix(values) or values["signature"] != 0x28:
            return None
        count = values["huge_sectors"] if values["big_sectors"] == 0 else values["big_sectors"]
        if not sector_count_fits_partition(count, probe.geometry):
            self._skipped("short_fat32", "sector-count", count=count)
            return None
        return self._result(LayoutKind.SHORT_FAT32, probe)

    def _msx(self, probe: _Probe) -> _Match:
        values = probe.fields(LayoutKind.MSX)
        if not (
            is_power_of_two16(values["bytes_per_sector"])
            and is_allowed_cluster_size(values["sectors_per_cluster"])
            and values["fat_count"] <= 2
            and values["root_entries"] > 0
            and sector_count_fits_partition(values["sectors"], probe.geometry)
            and values["sectors_per_fat"] > 0
        ):
            return None
        if values["vol_id"] != MSX_VOL_ID:
            return None
        return self._result(LayoutKind.MSX, probe)

    def _apricot(self, probe: _Probe) -> _Match:
        values = probe.fields(LayoutKind.APRICOT)
        if not (
            is_allowed_cluster_size(values["sectors_per_cluster"])
            and values["fat_count"] <= 2
            and values["root_entries"] > 0
            and sector_count_fits_partition(values["sectors"], probe.geometry)
            and values["sectors_per_fat"] > 0
            and values["partition_count"] == 0
        ):
            return None
        return self._result(LayoutKind.APRICOT, probe)

    def _extended_bpb(self, probe: _Probe) -> _Match:
        values = probe.fields(LayoutKind.EBPB)
        if not (
            is_power_of_two16(values["bytes_per_sector"])
            and is_allowed_cluster_size(values["sectors_per_cluster"])
            and values["fat_count"] <= 2
            and values["root_entries"] > 0
            and values["sectors_per_fat"] > 0
        ):
            return None

        andos = andos_oem_quirk(values["oem_name"])
        if values["signature"] not in (0x28, 0x29) and not andos:
            return None

        count = values["sectors"] or values["big_sectors"]
        if not sector_count_fits_partition(count, probe.geometry):
            self._skipped("extended_bpb", "sector-count", count=count)
            return None

        if values["signature"] == 0x29 or andos:
            return self._result(LayoutKind.EBPB, probe)
        return self._result(LayoutKind.SHORT_EBPB, probe)

    def _dos_bpb(self, probe: _Probe) -> _Match:
        values = probe.fields(LayoutKind.DOS33)
        geometry = probe.geometry
        if not (
            is_power_of_two16(values["bytes_per_sector"])
            and is_allowed_cluster_size(values["sectors_per_cluster"])
            and values["reserved_sectors"] < geometry.partition_length
            and values["fat_count"] <= 2
            and values["root_entries"] > 0
            and values["sectors_per_fat"] > 0
        ):
            return None

        jump_is_68k = atari_jump(values["jump"], values["oem_name"])
        start = geometry.partition_start
        if values["sectors"] == 0 and values["hidden_sectors"] <= start and 0 < values["big_sectors"] <= geometry.partition_length:
            return self._result(LayoutKind.DOS33, probe)
        if values["big_sectors"] == 0 and values["hidden_sectors"] <= start and 0 < values["sectors"] <= geometry.partition_length:
            if jump_is_68k or geometry.partition_type in ATARI_PARTITION_TYPES:
                return self._result(LayoutKind.ATARI, probe)
            return self._result(LayoutKind.DOS33, probe)

        return self._older_dos_bpb(probe, jump_is_68k)

    def _older_dos_bpb(self, probe: _Probe, jump_is_68k: bool) -> _Match:
        values = probe.fields(LayoutKind.DOS32)
        geometry = probe.geometry
        hidden = values["hidden_sectors"]
        if hidden <= geometry.partition_start and hidden + values["sectors"] == values["total_sectors"]:
            return self._result(LayoutKind.DOS32, probe)
        if jump_is_68k:
            return self._result(LayoutKind.ATARI, probe)
        if bounded_chs(values["sectors_per_track"], values["heads"]):
            return self._result(LayoutKind.DOS30, probe)
        return self._result(LayoutKind.DOS20, probe)

    def _dec_rainbow(self, probe: _Probe) -> _Match:
        preset = self._catalog.dec_rainbow
        geometry = probe.geometry
        if (
            geometry.total_sectors != preset.total_sectors
            or geometry.bytes_per_sector != preset.bytes_per_sector
            or geometry.partition_start != 0
        ):
            return None
        if probe.buffer[0] != DEC_RAINBOW_FIRST_BYTE:
            return None

        source = probe.source
        first_fat, second_fat = (source.read_sector(lba) for lba in self._catalog.dec_fat_lbas)
        if first_fat[:2] != second_fat[:2]:
            self._skipped("dec_rainbow", "fat-copies-differ")
            return None
        if first_fat[0] & 0xF0 != 0xF0 or first_fat[1] != 0xFF:
            self._skipped("dec_rainbow", "fat-id")
            return None

        root = b"".join(source.read_sector(lba) for lba in self._catalog.dec_root_directory_lbas)
        entries = len(root) // DIRECTORY_ENTRY_SIZE
        for index in range(min(entries, preset.root_entries)):
            offset = index * DIRECTORY_ENTRY_SIZE
            if not directory_name_plausible(root[offset : offset + 11]):
                self._skipped("dec_rainbow", "root-directory", entry=index)
                return None

        auxiliary = {AUX_FAT: first_fat, AUX_SECOND_FAT: second_fat, AUX_ROOT_DIRECTORY: root}
        return self._result(LayoutKind.DEC_RAINBOW, probe, auxiliary=auxiliary, preset=preset)

    def _legacy_floppy(self, probe: _Probe) -> _Match:
        geometry = probe.geometry
        if geometry.partition_start != 0:
            return None

        source = probe.source
        fat = source.read_sector(geometry.partition_start + boot_sector_count(source.sector_size))
        if not fat12_terminator(fat):
            return None

        preset = self._catalog.lookup(fat[0], geometry.total_sectors, geometry.bytes_per_sector)
        if preset is None:
            self._skipped("legacy_floppy", "unknown-fat-id", fat_id=fat[0])
            return None

        second_lba = geometry.partition_start + (preset.second_fat_lba or 0)
        if preset.second_fat_lba is None or second_lba > geometry.partition_end:
            self._skipped("legacy_floppy", "second-fat-out-of-range", lba=second_lba)
            return None
        second_fat = source.read_sector(second_lba)
        if second_fat[0] != fat[0] or not fat12_terminator(second_fat):
            self._skipped("legacy_floppy", "second-fat-mismatch")
            return None

        auxiliary = {AUX_FAT: fat, AUX_SECOND_FAT: second_fat}
        return self._result(LayoutKind.LEGACY_FLOPPY, probe, auxiliary=auxiliary, preset=preset)

    # ------------------------------------------------------------------
    # Odczyty pomocnicze
    # ------------------------------------------------------------------

    def _with_auxiliary(self, result: ClassificationResult, source: SectorSource) -> ClassificationResult:
        geometry = result.geometry
        extra: Dict[str, bytes] = {}

        if result.variant.is_fat32:
            values = result.variant.decode(result.raw_buffer)
            fsinfo = values["fsinfo_sector"]
            lba = geometry.partition_start + fsinfo
            if 0 < fsinfo < 0xFFFF and lba <= geometry.partition_end and lba < source.total_sectors:
                extra[AUX_FSINFO] = source.read_sector(lba)
        elif result.kind is LayoutKind.APRICOT:
            values = result.variant.decode(result.raw_buffer)
            location = values["boot_location"]
            count = values["apricot_sector_size"] * values["boot_size"] // source.sector_size
            if location > 0 and count > 0 and location + values["boot_size"] < geometry.total_sectors:
                lba = geometry.partition_start + location
                if lba + count <= source.total_sectors:
                    extra[AUX_BOOT_CODE] = source.read_sectors(lba, count)

        if not extra:
            return result
        merged = dict(result.auxiliary_buffers)
        merged.update(extra)
        return ClassificationResult(
            variant=result.variant,
            raw_buffer=result.raw_buffer,
            geometry=geometry,
            auxiliary_buffers=MappingProxyType(merged),
            preset=result.preset,
        )

    @staticmethod
    def _result(
        kind: LayoutKind,
        probe: _Probe,
        *,
        auxiliary: Mapping[str, bytes] | None = None,
        preset: PresetGeometry | None = None,
    ) -> ClassificationResult:
        return ClassificationResult(
            variant=layout(kind),
            raw_buffer=probe.buffer,
            geometry=probe.geometry,
            auxiliary_buffers=MappingProxyType(dict(auxiliary or {})),
            preset=preset,
        )

    def _skipped(self, rule: str, check: str, **details: object) -> None:
        self._logger.debug(
            "rule-skipped",
            rule=rule,
            check=check,
            reason=UnrecognizedReason.INCONSISTENT_FIELD.value,
            **details,
        )


__all__ = [
    "AUX_BOOT_CODE",
    "AUX_FAT",
    "AUX_FSINFO",
    "AUX_ROOT_DIRECTORY",
    "AUX_SECOND_FAT",
    "ClassificationResult",
    "FatClassifier",
    "boot_sector_count",
    "Unrecognized",
    "UnrecognizedReason",
]
