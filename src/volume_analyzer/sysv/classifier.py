"""Wyszukiwanie superbloku rodziny System V (XENIX, SVR2/R4, Coherent, V7)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional

from structlog import get_logger

from volume_analyzer.core.models import SectorGeometry
from volume_analyzer.drivers.base import SectorSource
from volume_analyzer.layouts.fields import ByteOrder, FieldReader
from volume_analyzer.layouts.outcome import Unrecognized, UnrecognizedReason
from volume_analyzer.layouts.registry import LayoutDescriptor, LayoutKind, layout

SUPERBLOCK_SIZE = 0x400
CANDIDATE_LOCATIONS = tuple(range(16))

XENIX_MAGIC = 0x002B5544
XENIX_CIGAM = 0x44552B00
SYSV_MAGIC = 0xFD187E20
SYSV_CIGAM = 0x207E18FD

COHERENT_NAMES = (
    ("noname", "nopack"),
    ("xxxxx", "xxxxx"),
    ("xxxxx ", "xxxxx\n"),
)

V7_NICINOD = 100
V7_NICFREE = 100
V7_MAXSIZE = 0x00FFFFFF

# s_type -> rozmiar bloku
BLOCK_SIZES = {1: 512, 2: 1024, 3: 2048}


@dataclass(frozen=True, slots=True)
class SysVMatch:
    """Rozpoznany superblok: wariant, kolejność bajtów i położenie."""

    variant: LayoutDescriptor
    byte_order: ByteOrder
    base: int
    location: int
    buffer: bytes
    geometry: SectorGeometry

    @property
    def kind(self) -> LayoutKind:
        return self.variant.kind

    def decode(self) -> dict:
        return self.variant.decode(self.buffer, byte_order=self.byte_order, base=self.base)


def superblock_sectors(sector_size: int) -> int:
    """Liczba sektorów zajmowanych przez 1024-bajtowy superblok."""

    return SUPERBLOCK_SIZE // sector_size if sector_size <= SUPERBLOCK_SIZE else 1


def _c_string(data: bytes) -> str:
    return data.split(b"\x00", 1)[0].decode("latin-1")


class SysVClassifier:
    """Sprawdza kandydujące położenia superbloku w ustalonej kolejności."""

    def __init__(self) -> None:
        self._logger = get_logger(__name__)

    def classify(self, source: SectorSource, geometry: SectorGeometry) -> SysVMatch | Unrecognized:
        sb_size = superblock_sectors(source.sector_size)
        if geometry.partition_end <= geometry.partition_start + 5 * sb_size:
            return Unrecognized(UnrecognizedReason.GEOMETRY_TOO_SMALL, "partycja mniejsza niż obszar superbloku")

        for location in self._locations(source, geometry, sb_size):
            buffer = source.read_sectors(geometry.partition_start + location, sb_size)
            if len(buffer) < SUPERBLOCK_SIZE:
                continue
            match = self._match(buffer, location, geometry, source.sector_size)
            if match is not None:
                self._logger.debug(
                    "sysv-superblock-found",
                    variant=match.kind.value,
                    byte_order=match.byte_order.value,
                    location=location,
                )
                return match
        return Unrecognized(UnrecognizedReason.NOT_RECOGNIZED, "brak superbloku System V")

    @staticmethod
    def _locations(source: SectorSource, geometry: SectorGeometry, sb_size: int) -> Iterator[int]:
        # superblok może też leżeć za pierwszym cylindrem (blok rozruchowy)
        candidates: List[int] = [*CANDIDATE_LOCATIONS, source.heads * source.sectors_per_track]
        for location in candidates:
            if location + geometry.partition_start + sb_size >= source.total_sectors:
                return
            yield location

    def _match(self, buffer: bytes, location: int, geometry: SectorGeometry, sector_size: int) -> Optional[SysVMatch]:
        reader = FieldReader(buffer)

        magic = reader.uint(0x3F8, 4)
        if magic in (XENIX_MAGIC, XENIX_CIGAM):
            order = ByteOrder.BIG if magic == XENIX_CIGAM else ByteOrder.LITTLE
            return self._build(LayoutKind.XENIX_V1, order, 0, location, buffer, geometry)
        if magic in (SYSV_MAGIC, SYSV_CIGAM):
            order = ByteOrder.BIG if magic == SYSV_CIGAM else ByteOrder.LITTLE
            return self._system_v(order, 0x200, location, buffer, geometry)

        magic = reader.uint(0x1F0, 4)
        if magic in (XENIX_MAGIC, XENIX_CIGAM):
            order = ByteOrder.BIG if magic == XENIX_CIGAM else ByteOrder.LITTLE
            return self._build(LayoutKind.XENIX_V3, order, 0, location, buffer, geometry)

        magic = reader.uint(0x1F8, 4)
        if magic in (SYSV_MAGIC, SYSV_CIGAM):
            order = ByteOrder.BIG if magic == SYSV_CIGAM else ByteOrder.LITTLE
            return self._system_v(order, 0, location, buffer, geometry)

        names = (_c_string(reader.raw_bytes(0x1E4, 6)), _c_string(reader.raw_bytes(0x1EA, 6)))
        if names in COHERENT_NAMES:
            return self._build(LayoutKind.COHERENT, ByteOrder.PDP, 0, location, buffer, geometry)

        order = self._seventh_edition(reader, geometry, sector_size)
        if order is not None:
            return self._build(LayoutKind.UNIX_V7, order, 0, location, buffer, geometry)
        return None

    def _system_v(
        self,
        order: ByteOrder,
        base: int,
        location: int,
        buffer: bytes,
        geometry: SectorGeometry,
    ) -> SysVMatch:
        reader = FieldReader(buffer, order, base)
        block_size = BLOCK_SIZES.get(reader.uint(0x1FC, 4), 512)
        r2_size = reader.uint(0x002, 4) * block_size
        kind = LayoutKind.SYSV_R4 if r2_size <= 0 or r2_size != geometry.partition_bytes else LayoutKind.SYSV_R2
        return self._build(kind, order, base, location, buffer, geometry)

    def _seventh_edition(self, reader: FieldReader, geometry: SectorGeometry, sector_size: int) -> Optional[ByteOrder]:
        fsize = reader.uint(0x002, 4)
        nfree = reader.uint(0x006, 2)
        ninode = reader.uint(0x0D0, 2)
        if not (0 < fsize < 0xFFFFFFFF and 0 < nfree < 0xFFFF and 0 < ninode < 0xFFFF):
            return None

        order = ByteOrder.LITTLE
        if fsize & 0xFF == 0 and nfree & 0xFF == 0 and ninode & 0xFF == 0:
            order = ByteOrder.BIG
            fsize = int.from_bytes(fsize.to_bytes(4, "little"), "big")
            nfree >>= 8
            ninode >>= 8

        if fsize & 0xFF000000 or nfree & 0xFF00 or ninode & 0xFF00:
            return None
        if fsize >= V7_MAXSIZE or nfree >= V7_NICFREE or ninode >= V7_NICINOD:
            return None

        device_bytes = (geometry.partition_end - geometry.partition_start) * sector_size
        if fsize * 1024 != device_bytes and fsize * 512 != device_bytes:
            self._logger.debug(
                "rule-skipped",
                rule="unix_v7",
                check="size",
                reason=UnrecognizedReason.INCONSISTENT_FIELD.value,
                fsize=fsize,
            )
            return None
        return order

    @staticmethod
    def _build(
        kind: LayoutKind,
        order: ByteOrder,
        base: int,
        location: int,
        buffer: bytes,
        geometry: SectorGeometry,
    ) -> SysVMatch:
        return SysVMatch(
            variant=layout(kind),
            byte_order=order,
            base=base,
            location=location,
            buffer=bytes(buffer),
            geometry=geometry,
        )


__all__ = [
    "BLOCK_SIZES",
    "SYSV_CIGAM",
    "SYSV_MAGIC",
    "SysVClassifier",
    "SysVMatch",
    "XENIX_CIGAM",
    "XENIX_MAGIC",
    "superblock_sectors",
]
