"""Modele danych używane w rdzeniu aplikacji."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional


class SourceType(str, Enum):
    """Rodzaj analizowanego źródła danych."""

    DISK_IMAGE = "disk_image"
    MEMORY = "memory"


class MediaKind(str, Enum):
    """Rodzaj nośnika, z którego pochodzą sektory."""

    OPTICAL_DISC = "optical_disc"
    BLOCK_MEDIA = "block_media"


class FileSystemType(str, Enum):
    """Rozpoznawane systemy plików."""

    FAT12 = "FAT12"
    FAT16 = "FAT16"
    FAT32 = "FAT32"
    FAT_PLUS = "FAT+"
    XENIX = "xenixfs"
    SYSV_R4 = "sysv_r4"
    SYSV_R2 = "sysv_r2"
    COHERENT = "coherent"
    UNIX7 = "unix7fs"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class SectorGeometry:
    """Geometria nośnika oraz zakres partycji (LBA włącznie)."""

    bytes_per_sector: int
    total_sectors: int
    media_kind: MediaKind
    partition_start: int
    partition_end: int
    partition_type: Optional[str] = None
    heads: int = 0
    sectors_per_track: int = 0

    def __post_init__(self) -> None:
        if self.bytes_per_sector <= 0:
            raise ValueError("Rozmiar sektora musi być dodatni")
        if self.partition_end <= self.partition_start:
            raise ValueError(
                f"Koniec partycji ({self.partition_end}) musi być większy niż jej początek ({self.partition_start})"
            )

    @property
    def partition_length(self) -> int:
        """Liczba sektorów partycji."""

        return self.partition_end - self.partition_start + 1

    @property
    def partition_bytes(self) -> int:
        return self.partition_length * self.bytes_per_sector

    @property
    def is_optical(self) -> bool:
        return self.media_kind is MediaKind.OPTICAL_DISC


@dataclass(frozen=True, slots=True)
class FileSystemMetadata:
    """Znormalizowany opis systemu plików przekazywany do reszty narzędzia."""

    type: FileSystemType
    cluster_size: int
    clusters: int
    volume_name: Optional[str] = None
    volume_serial: Optional[str] = None
    system_identifier: Optional[str] = None
    free_clusters: Optional[int] = None
    creation_date: Optional[datetime] = None
    modification_date: Optional[datetime] = None
    bootable: bool = False
    dirty: bool = False


@dataclass(frozen=True, slots=True)
class VolumeDescription:
    """Raport tekstowy wraz z metadanymi i zdekodowanym deskryptorem."""

    report: str
    metadata: FileSystemMetadata
    descriptor: Any


@dataclass(slots=True)
class DiskSource:
    """Opis źródła danych (obraz dysku)."""

    identifier: str
    source_type: SourceType
    display_name: str
    path: Optional[Path] = None


@dataclass(slots=True)
class Volume:
    """Model wolumenu wykrytego na źródle danych."""

    identifier: str
    offset: int
    size: int
    filesystem: FileSystemType = FileSystemType.UNKNOWN
    partition_type: Optional[str] = None


@dataclass(slots=True)
class VolumeAnalysis:
    """Wynik analizy pojedynczego wolumenu."""

    volume: Volume
    filesystem: FileSystemType
    description: Optional[VolumeDescription] = None
    detector: Optional[str] = None


@dataclass(slots=True)
class AnalysisResult:
    """Podsumowanie całej analizy źródła danych."""

    source: DiskSource
    volumes: List[VolumeAnalysis] = field(default_factory=list)

    def recognized_volumes(self) -> int:
        """Liczba wolumenów z rozpoznanym systemem plików."""

        return sum(1 for volume in self.volumes if volume.description is not None)
